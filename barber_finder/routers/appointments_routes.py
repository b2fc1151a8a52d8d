# barber_finder/routers/appointments_routes.py

from datetime import date
from typing import List

from fastapi import APIRouter, Depends, Query
from sqlmodel import Session

from barber_finder.auth import get_current_user
from barber_finder.booking import book_appointment, cancel_appointment
from barber_finder.db import get_session
from barber_finder.routers.barbers_routes import availability_for
from barber_finder.schemas import AppointmentCreate, AppointmentPublic

router = APIRouter(
    tags=["appointments"],
)


@router.get("/availability", response_model=List[str])
def availability(
    barber_id: int = Query(alias="barberId"),
    on_date: date = Query(alias="date"),
    session: Session = Depends(get_session),
):
    return availability_for(session, barber_id, on_date)


@router.post("/appointments", response_model=AppointmentPublic, status_code=201)
def create_appointment(
    appt: AppointmentCreate,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    # shops book walk-ins for their own barbers, customers book for themselves
    return book_appointment(session, appt, current_user)


@router.patch("/appointments/{appt_id}/cancel", response_model=AppointmentPublic)
def cancel(
    appt_id: int,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    return cancel_appointment(session, appt_id, current_user)
