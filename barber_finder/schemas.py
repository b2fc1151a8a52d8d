# barber_finder/schemas.py

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_serializer
from enum import Enum
from datetime import datetime, date, time
from typing import Dict, List, Optional

from barber_finder.core import format_timestamp


def _either(snake: str, camel: str) -> AliasChoices:
    return AliasChoices(snake, camel)


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"


class UserRole(str, Enum):
    shop = "shop"
    customer = "customer"


class AppointmentStatus(str, Enum):
    booked = "booked"
    cancelled = "cancelled"


# --- accounts ---

class ShopCreate(BaseModel):
    name: str = Field(min_length=1)
    address: str = Field(min_length=1)
    email: str = Field(min_length=3)
    password: str = Field(min_length=8, max_length=72)


class ShopPublic(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    address: str
    email: str
    image_url: Optional[str] = None


class CustomerCreate(BaseModel):
    name: str = Field(min_length=1)
    email: str = Field(min_length=3)
    password: str = Field(min_length=8, max_length=72)


class CustomerPublic(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    email: str


class UserPublic(BaseModel):
    id: int
    name: str
    email: str
    role: UserRole


# --- barbers & services ---

class BarberCreate(BaseModel):
    name: str = Field(min_length=1)
    image_url: Optional[str] = None


class BarberPublic(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    image_url: Optional[str] = None


class BarberDetail(BarberPublic):
    shop_id: int


class ShopDetail(ShopPublic):
    barbers: List[BarberPublic] = []


class ServiceCreate(BaseModel):
    name: str = Field(min_length=1)
    price: float = Field(gt=0)
    duration_minutes: int = Field(gt=0, validation_alias=_either("duration_minutes", "durationMinutes"))


class ServicePublic(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    shop_id: int
    name: str
    price: float
    duration_minutes: int


# --- schedules ---

class ScheduleDay(BaseModel):
    schedule_date: date = Field(validation_alias=_either("schedule_date", "scheduleDate"))
    start_time: time = Field(validation_alias=_either("start_time", "startTime"))
    end_time: time = Field(validation_alias=_either("end_time", "endTime"))
    is_active: bool = Field(default=True, validation_alias=_either("is_active", "isActive"))


class ScheduleUpdate(BaseModel):
    schedules_by_barber: Dict[int, List[ScheduleDay]] = Field(
        validation_alias=_either("schedules_by_barber", "schedulesByBarber")
    )
    start_date: date = Field(validation_alias=_either("start_date", "startDate"))
    end_date: date = Field(validation_alias=_either("end_date", "endDate"))


class ScheduleEntryPublic(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    barber_id: int
    schedule_date: date
    start_time: time
    end_time: time
    is_active: bool


class ScheduleUpdateResult(BaseModel):
    message: str
    entries: int


# --- appointments ---

class AppointmentCreate(BaseModel):
    barber_id: int = Field(validation_alias=_either("barber_id", "barberId"))
    service_id: int = Field(validation_alias=_either("service_id", "serviceId"))
    appointment_time: datetime = Field(
        validation_alias=_either("appointment_time", "appointmentTime")
    )


class AppointmentPublic(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    barber_id: int
    service_id: int
    appointment_time: datetime
    customer_id: Optional[int] = None
    status: AppointmentStatus

    @field_serializer("appointment_time")
    def _utc(self, value: datetime) -> str:
        return format_timestamp(value)


class ShopAppointment(BaseModel):
    id: int
    appointment_time: datetime
    status: AppointmentStatus
    service_name: str
    barber_name: str

    @field_serializer("appointment_time")
    def _utc(self, value: datetime) -> str:
        return format_timestamp(value)


class CustomerBooking(BaseModel):
    id: int
    appointment_time: datetime
    status: AppointmentStatus
    service_name: str
    barber_name: str
    shop_name: str
    shop_address: str

    @field_serializer("appointment_time")
    def _utc(self, value: datetime) -> str:
        return format_timestamp(value)


# --- favourites ---

class FavouriteCreate(BaseModel):
    shop_id: int = Field(validation_alias=_either("shop_id", "shopId"))


class FavouritePublic(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    customer_id: int
    shop_id: int


class Message(BaseModel):
    message: str
