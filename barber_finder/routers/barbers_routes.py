# barber_finder/routers/barbers_routes.py

from datetime import date
from typing import List

from fastapi import APIRouter, Depends
from sqlmodel import Session, select

from barber_finder.availability import resolve_availability
from barber_finder.core import format_timestamp
from barber_finder.db import get_session
from barber_finder.errors import NotFoundError
from barber_finder.models import Barber, Service
from barber_finder.schemas import BarberDetail, ServicePublic

router = APIRouter(
    prefix="/barbers",
    tags=["barbers"],
)


def get_barber_or_404(session: Session, barber_id: int) -> Barber:
    barber = session.get(Barber, barber_id)
    if barber is None:
        raise NotFoundError("Barber not found")
    return barber


def availability_for(session: Session, barber_id: int, on_date: date) -> List[str]:
    get_barber_or_404(session, barber_id)
    return [format_timestamp(slot) for slot in resolve_availability(session, barber_id, on_date)]


@router.get("", response_model=List[BarberDetail])
def list_barbers(session: Session = Depends(get_session)):
    return session.exec(select(Barber).order_by(Barber.id)).all()


@router.get("/{barber_id}", response_model=BarberDetail)
def get_barber(barber_id: int, session: Session = Depends(get_session)):
    return get_barber_or_404(session, barber_id)


@router.get("/{barber_id}/services", response_model=List[ServicePublic])
def list_barber_services(barber_id: int, session: Session = Depends(get_session)):
    barber = get_barber_or_404(session, barber_id)
    return session.exec(
        select(Service).where(Service.shop_id == barber.shop_id).order_by(Service.price)
    ).all()


@router.get("/{barber_id}/availability", response_model=List[str])
def barber_availability(
    barber_id: int,
    date: date,
    session: Session = Depends(get_session),
):
    return availability_for(session, barber_id, date)
