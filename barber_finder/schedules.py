# barber_finder/schedules.py

import logging
from datetime import date
from typing import Dict, List

from sqlalchemy import delete
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import Session, select

from barber_finder.core import SlotRange
from barber_finder.db import transaction
from barber_finder.errors import StoreError, ValidationError
from barber_finder.models import Barber, BarberSchedule
from barber_finder.schemas import ScheduleDay

logger = logging.getLogger(__name__)


def shop_barber_ids(session: Session, shop_id: int) -> List[int]:
    return list(session.exec(select(Barber.id).where(Barber.shop_id == shop_id)).all())


def list_shop_schedules(session: Session, shop_id: int) -> List[BarberSchedule]:
    stmt = (
        select(BarberSchedule)
        .join(Barber, Barber.id == BarberSchedule.barber_id)
        .where(Barber.shop_id == shop_id)
        .order_by(BarberSchedule.schedule_date, BarberSchedule.barber_id)
    )
    return list(session.exec(stmt).all())


def validate_schedule_day(day: ScheduleDay, start_date: date, end_date: date) -> None:
    if not (start_date <= day.schedule_date <= end_date):
        raise ValidationError(
            f"schedule_date {day.schedule_date} is outside {start_date}..{end_date}"
        )
    # raises InvalidScheduleError for an empty, malformed or off-grid window
    SlotRange(day.schedule_date, day.start_time, day.end_time)


def replace_schedules(
    session: Session,
    shop_id: int,
    start_date: date,
    end_date: date,
    schedules_by_barber: Dict[int, List[ScheduleDay]],
) -> int:
    """Replace every schedule entry of the shop's barbers within the date range.

    Either the whole range is replaced or nothing changes. Returns the
    number of entries written.
    """
    if start_date > end_date:
        raise ValidationError("start_date cannot be after end_date")

    barber_ids = shop_barber_ids(session, shop_id)

    entries = []
    for barber_id, days in schedules_by_barber.items():
        if barber_id not in barber_ids:
            logger.warning("Shop %s sent a schedule for foreign barber %s; skipped", shop_id, barber_id)
            continue
        seen = set()
        for day in days:
            validate_schedule_day(day, start_date, end_date)
            if day.schedule_date in seen:
                raise ValidationError(
                    f"Barber {barber_id} has more than one entry for {day.schedule_date}"
                )
            seen.add(day.schedule_date)
            entries.append(
                BarberSchedule(
                    barber_id=barber_id,
                    schedule_date=day.schedule_date,
                    start_time=day.start_time,
                    end_time=day.end_time,
                    is_active=day.is_active,
                )
            )

    try:
        with transaction(session):
            if barber_ids:
                session.exec(
                    delete(BarberSchedule)
                    .where(BarberSchedule.barber_id.in_(barber_ids))
                    .where(BarberSchedule.schedule_date >= start_date)
                    .where(BarberSchedule.schedule_date <= end_date)
                )
            session.add_all(entries)
            session.flush()
    except IntegrityError as exc:
        raise ValidationError("Schedule entries conflict with each other") from exc
    except SQLAlchemyError as exc:
        logger.exception("Replacing schedules for shop %s failed", shop_id)
        raise StoreError("Could not update schedules") from exc

    logger.info(
        "Shop %s schedules replaced for %s..%s (%d entries)",
        shop_id, start_date, end_date, len(entries),
    )
    return len(entries)
