# barber_finder/models.py

from typing import Optional
from datetime import datetime, date as Date, time, timezone

from sqlalchemy import Column, DateTime, Index, UniqueConstraint, text
from sqlmodel import SQLModel, Field

BOOKED = "booked"
CANCELLED = "cancelled"


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None, microsecond=0)


class BarberShop(SQLModel, table=True):
    __tablename__ = "barber_shops"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    address: str
    email: str = Field(index=True, unique=True)
    password_hash: str
    image_url: Optional[str] = None


class Customer(SQLModel, table=True):
    __tablename__ = "customers"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    email: str = Field(index=True, unique=True)
    password_hash: str


class Barber(SQLModel, table=True):
    __tablename__ = "barbers"

    id: Optional[int] = Field(default=None, primary_key=True)
    shop_id: int = Field(foreign_key="barber_shops.id", index=True)
    name: str
    image_url: Optional[str] = None


class Service(SQLModel, table=True):
    __tablename__ = "services"

    id: Optional[int] = Field(default=None, primary_key=True)
    shop_id: int = Field(foreign_key="barber_shops.id", index=True)
    name: str
    price: float
    duration_minutes: int


class BarberSchedule(SQLModel, table=True):
    __tablename__ = "barber_schedules"
    __table_args__ = (
        UniqueConstraint("barber_id", "schedule_date", name="uq_barber_schedule_date"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    barber_id: int = Field(foreign_key="barbers.id", index=True)
    schedule_date: Date
    start_time: time
    end_time: time
    is_active: bool = True


class Appointment(SQLModel, table=True):
    __tablename__ = "appointments"
    __table_args__ = (
        # at most one live appointment per barber and start time
        Index(
            "uq_appointment_barber_time_active",
            "barber_id",
            "appointment_time",
            unique=True,
            sqlite_where=text(f"status != '{CANCELLED}'"),
            postgresql_where=text(f"status != '{CANCELLED}'"),
        ),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    barber_id: int = Field(foreign_key="barbers.id", index=True)
    service_id: int = Field(foreign_key="services.id")
    # naive UTC
    appointment_time: datetime = Field(sa_column=Column(DateTime(timezone=False), nullable=False))
    customer_id: Optional[int] = Field(default=None, foreign_key="customers.id", index=True)
    status: str = BOOKED
    created_at: datetime = Field(
        default_factory=utcnow, sa_column=Column(DateTime(timezone=False), nullable=False)
    )


class FavouriteShop(SQLModel, table=True):
    __tablename__ = "favourite_shops"

    customer_id: int = Field(foreign_key="customers.id", primary_key=True)
    shop_id: int = Field(foreign_key="barber_shops.id", primary_key=True)
