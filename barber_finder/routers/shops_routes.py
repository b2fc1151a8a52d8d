# barber_finder/routers/shops_routes.py

from typing import List

from fastapi import APIRouter, Depends
from sqlmodel import Session, select

from barber_finder.db import get_session
from barber_finder.errors import NotFoundError
from barber_finder.models import Barber, BarberShop, Service
from barber_finder.schemas import ServicePublic, ShopDetail, ShopPublic

router = APIRouter(
    prefix="/shops",
    tags=["shops"],
)


@router.get("", response_model=List[ShopPublic])
def list_shops(session: Session = Depends(get_session)):
    return session.exec(select(BarberShop).order_by(BarberShop.id)).all()


@router.get("/{shop_id}", response_model=ShopDetail)
def get_shop(shop_id: int, session: Session = Depends(get_session)):
    shop = session.get(BarberShop, shop_id)
    if shop is None:
        raise NotFoundError("Shop not found")

    barbers = session.exec(
        select(Barber).where(Barber.shop_id == shop_id).order_by(Barber.name)
    ).all()

    return {
        "id": shop.id,
        "name": shop.name,
        "address": shop.address,
        "email": shop.email,
        "image_url": shop.image_url,
        "barbers": barbers,
    }


@router.get("/{shop_id}/services", response_model=List[ServicePublic])
def list_shop_services(shop_id: int, session: Session = Depends(get_session)):
    if session.get(BarberShop, shop_id) is None:
        raise NotFoundError("Shop not found")
    return session.exec(
        select(Service).where(Service.shop_id == shop_id).order_by(Service.price)
    ).all()
