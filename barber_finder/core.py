# barber_finder/core.py
"""
Slot arithmetic.

A slot is a fixed-duration candidate start time inside a barber's working
window for one calendar date. Every timestamp handled here is a naive
``datetime`` in UTC.
"""

import math
from datetime import datetime, date, time, timedelta, timezone
from typing import Iterator, Optional, Tuple, Union

from barber_finder.errors import InvalidScheduleError, ValidationError

SLOT_MINUTES = 30
SLOT_DURATION = timedelta(minutes=SLOT_MINUTES)


def to_utc_naive(value: datetime) -> datetime:
    """Convert an aware timestamp to naive UTC; naive input is already UTC."""
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def format_timestamp(value: datetime) -> str:
    return to_utc_naive(value).strftime("%Y-%m-%dT%H:%M:%SZ")


def is_slot_aligned(value: datetime, granularity: timedelta = SLOT_DURATION) -> bool:
    """True when ``value`` sits on the slot grid counted from midnight UTC."""
    value = to_utc_naive(value)
    since_midnight = value - datetime.combine(value.date(), time.min)
    return since_midnight % granularity == timedelta(0)


class SlotRange:
    """Slots from ``start_time`` (inclusive) to ``end_time`` (exclusive).

    Iterating is lazy and can be repeated; nothing is precomputed.
    """

    def __init__(
        self,
        schedule_date: date,
        start_time: time,
        end_time: time,
        granularity: timedelta = SLOT_DURATION,
    ) -> None:
        if isinstance(schedule_date, datetime) or not isinstance(schedule_date, date):
            raise InvalidScheduleError("schedule date must be a calendar date")
        for label, value in (("start_time", start_time), ("end_time", end_time)):
            if not isinstance(value, time) or value.tzinfo is not None:
                raise InvalidScheduleError(f"{label} must be a time of day")
            if value.second or value.microsecond:
                raise InvalidScheduleError(f"{label} must be on a whole minute")
        if start_time >= end_time:
            raise InvalidScheduleError("start_time must be before end_time")
        if granularity <= timedelta(0):
            raise InvalidScheduleError("slot granularity must be positive")
        # every generated slot must be a bookable grid instant
        if not is_slot_aligned(datetime.combine(schedule_date, start_time), granularity):
            raise InvalidScheduleError(
                f"start_time must be on the {granularity} slot grid from midnight"
            )

        self.schedule_date = schedule_date
        self.start = datetime.combine(schedule_date, start_time)
        self.end = datetime.combine(schedule_date, end_time)
        self.granularity = granularity

    def __iter__(self) -> Iterator[datetime]:
        current = self.start
        while current < self.end:
            yield current
            current += self.granularity

    def __len__(self) -> int:
        return math.ceil((self.end - self.start) / self.granularity)

    def __contains__(self, value: object) -> bool:
        if not isinstance(value, datetime):
            return False
        value = to_utc_naive(value)
        if value < self.start or value >= self.end:
            return False
        return (value - self.start) % self.granularity == timedelta(0)

    def __repr__(self) -> str:
        return f"SlotRange({self.start.isoformat()} -> {self.end.isoformat()}, every {self.granularity})"


def slots_for(entry, granularity: timedelta = SLOT_DURATION) -> Union[SlotRange, Tuple[()]]:
    """Candidate slots for a schedule entry; empty when absent or inactive."""
    if entry is None or not entry.is_active:
        return ()
    return SlotRange(entry.schedule_date, entry.start_time, entry.end_time, granularity)


def parse_slot_time(value: Optional[datetime]) -> datetime:
    """Normalize a requested appointment time and check it sits on the grid."""
    if value is None:
        raise ValidationError("appointment_time is required")
    value = to_utc_naive(value)
    if value.second or value.microsecond or not is_slot_aligned(value):
        raise ValidationError(
            f"appointment_time must be on a {SLOT_MINUTES}-minute boundary"
        )
    return value
