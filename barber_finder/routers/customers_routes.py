# barber_finder/routers/customers_routes.py

import logging
from typing import List

from fastapi import APIRouter, Depends
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from barber_finder.auth import CUSTOMER, authenticate, hash_password, token_for
from barber_finder.booking import book_appointment
from barber_finder.config import Settings, get_settings
from barber_finder.db import get_session, transaction
from barber_finder.deps import current_customer
from barber_finder.errors import AuthenticationError, ConflictError, NotFoundError
from barber_finder.models import Appointment, Barber, BarberShop, Customer, FavouriteShop, Service
from barber_finder.schemas import (
    AppointmentCreate,
    AppointmentPublic,
    CustomerBooking,
    CustomerCreate,
    CustomerPublic,
    FavouriteCreate,
    FavouritePublic,
    Message,
    ShopPublic,
    Token,
)

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/customers",
    tags=["customers"],
)


@router.post("/signup", status_code=201, response_model=CustomerPublic)
def customer_signup(
    customer: CustomerCreate,
    session: Session = Depends(get_session),
):
    existing = session.exec(
        select(Customer).where(Customer.email == customer.email)
    ).first()
    if existing is not None:
        raise ConflictError("An account with this email already exists")

    db_customer = Customer(
        name=customer.name,
        email=customer.email,
        password_hash=hash_password(customer.password),
    )
    try:
        with transaction(session):
            session.add(db_customer)
    except IntegrityError:
        raise ConflictError("An account with this email already exists")
    session.refresh(db_customer)

    logger.info("Customer %s registered", db_customer.id)
    return db_customer


@router.post("/login", response_model=Token)
def customer_login(
    form_data: OAuth2PasswordRequestForm = Depends(),
    session: Session = Depends(get_session),
    settings: Settings = Depends(get_settings),
):
    try:
        customer = authenticate(session, CUSTOMER, form_data.username, form_data.password)
    except AuthenticationError:
        logger.warning("Failed customer login for %s", form_data.username)
        raise

    return {"access_token": token_for(customer, CUSTOMER, settings), "token_type": "bearer"}


# --- PROTECTED ROUTES ---

@router.post("/appointments", response_model=AppointmentPublic, status_code=201)
def customer_create_appointment(
    appt: AppointmentCreate,
    session: Session = Depends(get_session),
    current_user: dict = Depends(current_customer),
):
    return book_appointment(session, appt, current_user)


@router.get("/bookings", response_model=List[CustomerBooking])
def list_my_bookings(
    session: Session = Depends(get_session),
    current_user: dict = Depends(current_customer),
):
    stmt = (
        select(Appointment, Service, Barber, BarberShop)
        .join(Service, Service.id == Appointment.service_id)
        .join(Barber, Barber.id == Appointment.barber_id)
        .join(BarberShop, BarberShop.id == Barber.shop_id)
        .where(Appointment.customer_id == current_user["id"])
        .order_by(Appointment.appointment_time.desc())
    )

    return [
        {
            "id": a.id,
            "appointment_time": a.appointment_time,
            "status": a.status,
            "service_name": s.name,
            "barber_name": b.name,
            "shop_name": shop.name,
            "shop_address": shop.address,
        }
        for a, s, b, shop in session.exec(stmt).all()
    ]


@router.get("/favourites", response_model=List[ShopPublic])
def list_favourites(
    session: Session = Depends(get_session),
    current_user: dict = Depends(current_customer),
):
    stmt = (
        select(BarberShop)
        .join(FavouriteShop, FavouriteShop.shop_id == BarberShop.id)
        .where(FavouriteShop.customer_id == current_user["id"])
        .order_by(BarberShop.name)
    )
    return session.exec(stmt).all()


@router.post("/favourites", response_model=FavouritePublic, status_code=201)
def add_favourite(
    favourite: FavouriteCreate,
    session: Session = Depends(get_session),
    current_user: dict = Depends(current_customer),
):
    if session.get(BarberShop, favourite.shop_id) is None:
        raise NotFoundError("Shop not found")
    if session.get(FavouriteShop, (current_user["id"], favourite.shop_id)) is not None:
        raise ConflictError("Shop is already in favourites")

    db_favourite = FavouriteShop(customer_id=current_user["id"], shop_id=favourite.shop_id)
    try:
        with transaction(session):
            session.add(db_favourite)
    except IntegrityError:
        raise ConflictError("Shop is already in favourites")
    session.refresh(db_favourite)
    return db_favourite


@router.delete("/favourites/{shop_id}", response_model=Message)
def remove_favourite(
    shop_id: int,
    session: Session = Depends(get_session),
    current_user: dict = Depends(current_customer),
):
    target = session.get(FavouriteShop, (current_user["id"], shop_id))
    if target is None:
        raise NotFoundError("Favourite not found")

    with transaction(session):
        session.delete(target)
    return {"message": "Removed from favourites."}
