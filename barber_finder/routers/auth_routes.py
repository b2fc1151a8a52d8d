# barber_finder/routers/auth_routes.py

import logging

from fastapi import APIRouter, Depends
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from barber_finder.auth import SHOP, authenticate, get_current_user, hash_password, token_for
from barber_finder.config import Settings, get_settings
from barber_finder.db import get_session, transaction
from barber_finder.errors import AuthenticationError, ConflictError
from barber_finder.models import BarberShop
from barber_finder.schemas import ShopCreate, ShopPublic, Token, UserPublic

logger = logging.getLogger(__name__)

router = APIRouter(
    tags=["auth"],
)


@router.post("/auth/signup", status_code=201, response_model=ShopPublic)
def shop_signup(
    shop: ShopCreate,
    session: Session = Depends(get_session),
):
    # 1) Check if email already exists
    existing = session.exec(
        select(BarberShop).where(BarberShop.email == shop.email)
    ).first()
    if existing is not None:
        raise ConflictError("An account with this email already exists")

    # 2) Create shop in DB
    db_shop = BarberShop(
        name=shop.name,
        address=shop.address,
        email=shop.email,
        password_hash=hash_password(shop.password),
    )
    try:
        with transaction(session):
            session.add(db_shop)
    except IntegrityError:
        raise ConflictError("An account with this email already exists")
    session.refresh(db_shop)  # fills db_shop.id

    logger.info("Barber shop %s registered", db_shop.id)
    return db_shop


@router.post("/auth/login", response_model=Token)
def shop_login(
    form_data: OAuth2PasswordRequestForm = Depends(),
    session: Session = Depends(get_session),
    settings: Settings = Depends(get_settings),
):
    try:
        shop = authenticate(session, SHOP, form_data.username, form_data.password)
    except AuthenticationError:
        logger.warning("Failed shop login for %s", form_data.username)
        raise

    return {"access_token": token_for(shop, SHOP, settings), "token_type": "bearer"}


@router.get("/me", response_model=UserPublic)
def me(current_user: dict = Depends(get_current_user)):
    return current_user
