# barber_finder/auth.py

from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
from jose import jwt, JWTError
from passlib.context import CryptContext
from sqlmodel import Session, select

from barber_finder.config import Settings, get_settings
from barber_finder.db import get_session
from barber_finder.errors import AuthenticationError
from barber_finder.models import BarberShop, Customer

SHOP = "shop"
CUSTOMER = "customer"

ACCOUNT_MODELS = {
    SHOP: BarberShop,
    CUSTOMER: Customer,
}

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="auth/login")


def create_access_token(
    data: dict,
    settings: Optional[Settings] = None,
    expires_minutes: Optional[int] = None,
) -> str:
    settings = settings or get_settings()
    if expires_minutes is None:
        expires_minutes = settings.access_token_expire_minutes
    to_encode = data.copy()
    to_encode["exp"] = datetime.now(timezone.utc) + timedelta(minutes=expires_minutes)
    return jwt.encode(to_encode, settings.secret_key, algorithm=settings.algorithm)


def decode_access_token(token: str, settings: Optional[Settings] = None) -> dict:
    settings = settings or get_settings()
    try:
        return jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])
    except JWTError:
        raise AuthenticationError("Invalid token")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain: str, hashed: str) -> bool:
    return pwd_context.verify(plain, hashed)


def authenticate(session: Session, role: str, email: str, password: str):
    """Return the shop or customer owning these credentials."""
    model = ACCOUNT_MODELS[role]
    account = session.exec(select(model).where(model.email == email)).first()
    if account is None or not verify_password(password, account.password_hash):
        raise AuthenticationError("Invalid credentials")
    return account


def token_for(account, role: str, settings: Optional[Settings] = None) -> str:
    return create_access_token({"sub": str(account.id), "role": role}, settings=settings)


def get_current_user(
    token: str = Depends(oauth2_scheme),
    session: Session = Depends(get_session),
    settings: Settings = Depends(get_settings),
) -> dict:
    payload = decode_access_token(token, settings)
    subject = payload.get("sub")
    role = payload.get("role")
    if subject is None or role not in ACCOUNT_MODELS:
        raise AuthenticationError("Invalid token")

    try:
        account_id = int(subject)
    except (TypeError, ValueError):
        raise AuthenticationError("Invalid token")

    account = session.get(ACCOUNT_MODELS[role], account_id)
    if account is None:
        raise AuthenticationError("User not found")

    return {
        "id": account.id,
        "role": role,
        "name": account.name,
        "email": account.email,
    }
