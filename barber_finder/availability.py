# barber_finder/availability.py

from datetime import date, datetime, time, timedelta
from typing import List, Optional, Set

from sqlmodel import Session, select

from barber_finder.core import slots_for
from barber_finder.models import Appointment, BarberSchedule, CANCELLED


def get_schedule_entry(
    session: Session, barber_id: int, on_date: date, lock: bool = False
) -> Optional[BarberSchedule]:
    stmt = (
        select(BarberSchedule)
        .where(BarberSchedule.barber_id == barber_id)
        .where(BarberSchedule.schedule_date == on_date)
    )
    if lock:
        stmt = stmt.with_for_update()
    return session.exec(stmt).first()


def booked_times(
    session: Session, barber_id: int, on_date: date, lock: bool = False
) -> Set[datetime]:
    """Start times of every non-cancelled appointment on that UTC date."""
    day_start_dt = datetime.combine(on_date, time.min)
    day_end_dt = day_start_dt + timedelta(days=1)

    stmt = (
        select(Appointment)
        .where(Appointment.barber_id == barber_id)
        .where(Appointment.appointment_time >= day_start_dt)
        .where(Appointment.appointment_time < day_end_dt)
        .where(Appointment.status != CANCELLED)
    )
    if lock:
        stmt = stmt.with_for_update()
    return {a.appointment_time for a in session.exec(stmt).all()}


def resolve_availability(
    session: Session, barber_id: int, on_date: date, lock: bool = False
) -> List[datetime]:
    """Open slots for a barber on a date, in ascending order.

    No schedule entry, or an inactive one, means no availability; that is
    an empty list, not an error. A slot is taken only by an appointment
    starting at exactly the same instant.
    """
    entry = get_schedule_entry(session, barber_id, on_date, lock=lock)
    candidates = slots_for(entry)
    if not candidates:
        return []

    taken = booked_times(session, barber_id, on_date, lock=lock)
    return [slot for slot in candidates if slot not in taken]
