# barber_finder/booking.py
"""
The booking transaction: validate a requested slot and insert the
appointment atomically.

Two requests for the same barber and start time may race between the
availability read and the insert. The partial unique index on
``(barber_id, appointment_time)`` for non-cancelled rows decides the race
in the database; the loser gets the same "already booked" rejection as a
request that found the slot already taken.
"""

import logging

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import Session

from barber_finder.auth import CUSTOMER, SHOP
from barber_finder.availability import get_schedule_entry, resolve_availability
from barber_finder.core import format_timestamp, parse_slot_time, slots_for
from barber_finder.db import transaction
from barber_finder.errors import (
    NotFoundError,
    PermissionDeniedError,
    ConflictError,
    SlotUnavailableError,
    StoreError,
)
from barber_finder.models import Appointment, Barber, Service, BOOKED, CANCELLED
from barber_finder.schemas import AppointmentCreate

logger = logging.getLogger(__name__)

SLOT_TAKEN = "slot_taken"
NOT_WORKING = "not_working"


def slot_taken(slot) -> SlotUnavailableError:
    return SlotUnavailableError(f"Slot {format_timestamp(slot)} is already booked", SLOT_TAKEN)


def rejection_for(session: Session, barber_id: int, slot) -> SlotUnavailableError:
    """Explain why ``slot`` is missing from the barber's availability."""
    entry = get_schedule_entry(session, barber_id, slot.date(), lock=True)
    if slot in slots_for(entry):
        return slot_taken(slot)
    return SlotUnavailableError(
        f"Barber is not working at {format_timestamp(slot)}", NOT_WORKING
    )


def book_appointment(session: Session, request: AppointmentCreate, requester: dict) -> Appointment:
    slot = parse_slot_time(request.appointment_time)

    barber = session.get(Barber, request.barber_id)
    if barber is None:
        raise NotFoundError("Barber not found")
    if requester["role"] == SHOP and barber.shop_id != requester["id"]:
        raise NotFoundError("Barber not found in your shop")

    service = session.get(Service, request.service_id)
    if service is None or service.shop_id != barber.shop_id:
        raise NotFoundError("Service not found for this barber")

    customer_id = requester["id"] if requester["role"] == CUSTOMER else None

    try:
        with transaction(session):
            available = resolve_availability(session, barber.id, slot.date(), lock=True)
            if slot not in available:
                raise rejection_for(session, barber.id, slot)

            appointment = Appointment(
                barber_id=barber.id,
                service_id=service.id,
                appointment_time=slot,
                customer_id=customer_id,
                status=BOOKED,
            )
            session.add(appointment)
            session.flush()
    except SlotUnavailableError as exc:
        logger.warning("Rejected booking for barber %s at %s: %s", barber.id, slot, exc.reason)
        raise
    except IntegrityError as exc:
        # lost the race: another transaction committed this slot first
        logger.warning("Rejected booking for barber %s at %s: unique constraint", barber.id, slot)
        raise slot_taken(slot) from exc
    except SQLAlchemyError as exc:
        logger.exception("Booking transaction failed for barber %s at %s", barber.id, slot)
        raise StoreError("Could not save the appointment") from exc

    session.refresh(appointment)
    logger.info(
        "Appointment %s booked: barber %s at %s by %s %s",
        appointment.id, barber.id, format_timestamp(slot), requester["role"], requester["id"],
    )
    return appointment


def cancel_appointment(session: Session, appointment_id: int, requester: dict) -> Appointment:
    target = session.get(Appointment, appointment_id)
    if target is None:
        raise NotFoundError("Appointment not found")

    # the customer who booked, or the shop the barber works for
    if requester["role"] == CUSTOMER:
        allowed = target.customer_id == requester["id"]
    else:
        barber = session.get(Barber, target.barber_id)
        allowed = barber is not None and barber.shop_id == requester["id"]
    if not allowed:
        raise PermissionDeniedError("Forbidden")

    if target.status == CANCELLED:
        raise ConflictError("Appointment already cancelled")

    try:
        with transaction(session):
            target.status = CANCELLED
            session.add(target)
    except SQLAlchemyError as exc:
        logger.exception("Cancelling appointment %s failed", appointment_id)
        raise StoreError("Could not cancel the appointment") from exc

    session.refresh(target)
    logger.info("Appointment %s cancelled by %s %s", target.id, requester["role"], requester["id"])
    return target
