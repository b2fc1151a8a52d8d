# barber_finder/routers/dashboard_routes.py

import logging
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy import delete
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from barber_finder.db import get_session, transaction
from barber_finder.deps import current_shop
from barber_finder.errors import ConflictError, NotFoundError
from barber_finder.models import Appointment, Barber, BarberSchedule, Service
from barber_finder.schemas import (
    BarberCreate,
    BarberPublic,
    Message,
    ScheduleEntryPublic,
    ScheduleUpdate,
    ScheduleUpdateResult,
    ServiceCreate,
    ServicePublic,
    ShopAppointment,
)
from barber_finder.schedules import list_shop_schedules, replace_schedules

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/dashboard",
    tags=["dashboard"],
)


def _owned(session: Session, model, item_id: int, shop_id: int, label: str):
    item = session.get(model, item_id)
    if item is None or item.shop_id != shop_id:
        raise NotFoundError(f"{label} not found in your shop")
    return item


def _delete_owned(session: Session, item, label: str, *cleanup) -> None:
    try:
        with transaction(session):
            for stmt in cleanup:
                session.exec(stmt)
            session.delete(item)
    except IntegrityError:
        raise ConflictError(f"{label} still has appointments and cannot be deleted")


# --- BARBER MANAGEMENT ---

@router.get("/barbers", response_model=List[BarberPublic])
def list_my_barbers(
    session: Session = Depends(get_session),
    current_user: dict = Depends(current_shop),
):
    return session.exec(
        select(Barber).where(Barber.shop_id == current_user["id"]).order_by(Barber.name)
    ).all()


@router.post("/barbers", response_model=BarberPublic, status_code=201)
def create_barber(
    barber: BarberCreate,
    session: Session = Depends(get_session),
    current_user: dict = Depends(current_shop),
):
    db_barber = Barber(shop_id=current_user["id"], name=barber.name, image_url=barber.image_url)
    with transaction(session):
        session.add(db_barber)
    session.refresh(db_barber)
    return db_barber


@router.put("/barbers/{barber_id}", response_model=BarberPublic)
def update_barber(
    barber_id: int,
    barber: BarberCreate,
    session: Session = Depends(get_session),
    current_user: dict = Depends(current_shop),
):
    db_barber = _owned(session, Barber, barber_id, current_user["id"], "Barber")
    with transaction(session):
        db_barber.name = barber.name
        db_barber.image_url = barber.image_url
        session.add(db_barber)
    session.refresh(db_barber)
    return db_barber


@router.delete("/barbers/{barber_id}", response_model=Message)
def delete_barber(
    barber_id: int,
    session: Session = Depends(get_session),
    current_user: dict = Depends(current_shop),
):
    db_barber = _owned(session, Barber, barber_id, current_user["id"], "Barber")
    _delete_owned(
        session,
        db_barber,
        "Barber",
        delete(BarberSchedule).where(BarberSchedule.barber_id == barber_id),
    )
    logger.info("Shop %s deleted barber %s", current_user["id"], barber_id)
    return {"message": "Barber deleted successfully."}


# --- APPOINTMENTS ---

@router.get("/appointments", response_model=List[ShopAppointment])
def list_shop_appointments(
    session: Session = Depends(get_session),
    current_user: dict = Depends(current_shop),
):
    stmt = (
        select(Appointment, Service, Barber)
        .join(Service, Service.id == Appointment.service_id)
        .join(Barber, Barber.id == Appointment.barber_id)
        .where(Barber.shop_id == current_user["id"])
        .order_by(Appointment.appointment_time.desc())
    )
    return [
        {
            "id": a.id,
            "appointment_time": a.appointment_time,
            "status": a.status,
            "service_name": s.name,
            "barber_name": b.name,
        }
        for a, s, b in session.exec(stmt).all()
    ]


# --- SCHEDULES ---

@router.get("/schedule", response_model=List[ScheduleEntryPublic])
def get_schedule(
    session: Session = Depends(get_session),
    current_user: dict = Depends(current_shop),
):
    return list_shop_schedules(session, current_user["id"])


@router.post("/schedule", response_model=ScheduleUpdateResult)
def update_schedule(
    update: ScheduleUpdate,
    session: Session = Depends(get_session),
    current_user: dict = Depends(current_shop),
):
    written = replace_schedules(
        session,
        current_user["id"],
        update.start_date,
        update.end_date,
        update.schedules_by_barber,
    )
    return {"message": "All schedules updated successfully!", "entries": written}


# --- SERVICES ---

@router.get("/services", response_model=List[ServicePublic])
def list_my_services(
    session: Session = Depends(get_session),
    current_user: dict = Depends(current_shop),
):
    return session.exec(
        select(Service).where(Service.shop_id == current_user["id"]).order_by(Service.name)
    ).all()


@router.post("/services", response_model=ServicePublic, status_code=201)
def create_service(
    service: ServiceCreate,
    session: Session = Depends(get_session),
    current_user: dict = Depends(current_shop),
):
    db_service = Service(
        shop_id=current_user["id"],
        name=service.name,
        price=service.price,
        duration_minutes=service.duration_minutes,
    )
    with transaction(session):
        session.add(db_service)
    session.refresh(db_service)
    return db_service


@router.put("/services/{service_id}", response_model=ServicePublic)
def update_service(
    service_id: int,
    service: ServiceCreate,
    session: Session = Depends(get_session),
    current_user: dict = Depends(current_shop),
):
    db_service = _owned(session, Service, service_id, current_user["id"], "Service")
    with transaction(session):
        db_service.name = service.name
        db_service.price = service.price
        db_service.duration_minutes = service.duration_minutes
        session.add(db_service)
    session.refresh(db_service)
    return db_service


@router.delete("/services/{service_id}", response_model=Message)
def delete_service(
    service_id: int,
    session: Session = Depends(get_session),
    current_user: dict = Depends(current_shop),
):
    db_service = _owned(session, Service, service_id, current_user["id"], "Service")
    _delete_owned(session, db_service, "Service")
    return {"message": "Service deleted successfully."}
