# tests/test_booking.py

import threading
from datetime import datetime

import pytest
from sqlalchemy import DateTime
from sqlmodel import Session, func, select

from barber_finder import booking
from barber_finder.booking import NOT_WORKING, SLOT_TAKEN, book_appointment, cancel_appointment
from barber_finder.errors import (
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
    SlotUnavailableError,
    ValidationError,
)
from barber_finder.models import Appointment, Barber, Service, BOOKED, CANCELLED
from barber_finder.schemas import AppointmentCreate


def _request(barber, service, when):
    return AppointmentCreate(barber_id=barber.id, service_id=service.id, appointment_time=when)


def _count(session, barber, when):
    return session.exec(
        select(func.count())
        .select_from(Appointment)
        .where(Appointment.barber_id == barber.id)
        .where(Appointment.appointment_time == when)
    ).one()


class TestBookAppointment:
    def test_books_open_slot(self, session, barber, service, schedule, customer_requester):
        appt = book_appointment(
            session, _request(barber, service, "2024-07-21T10:00:00Z"), customer_requester
        )

        assert appt.id is not None
        assert appt.appointment_time == datetime(2024, 7, 21, 10, 0)
        assert appt.customer_id == customer_requester["id"]
        assert appt.status == BOOKED

    def test_shop_booking_has_no_customer(self, session, barber, service, schedule, shop_requester):
        appt = book_appointment(
            session, _request(barber, service, "2024-07-21T09:00:00Z"), shop_requester
        )

        assert appt.customer_id is None

    def test_offset_is_converted_to_utc(self, session, barber, service, schedule, customer_requester):
        appt = book_appointment(
            session, _request(barber, service, "2024-07-21T12:30:00+02:00"), customer_requester
        )

        assert appt.appointment_time == datetime(2024, 7, 21, 10, 30)

    def test_taken_slot_rejected(self, session, barber, service, schedule, customer_requester):
        book_appointment(session, _request(barber, service, "2024-07-21T09:30:00Z"), customer_requester)

        with pytest.raises(SlotUnavailableError) as caught:
            book_appointment(
                session, _request(barber, service, "2024-07-21T09:30:00Z"), customer_requester
            )
        assert caught.value.reason == SLOT_TAKEN
        assert caught.value.message == "Slot 2024-07-21T09:30:00Z is already booked"
        assert _count(session, barber, datetime(2024, 7, 21, 9, 30)) == 1

    def test_outside_working_hours_rejected(self, session, barber, service, schedule, customer_requester):
        with pytest.raises(SlotUnavailableError) as caught:
            book_appointment(
                session, _request(barber, service, "2024-07-21T11:00:00Z"), customer_requester
            )
        assert caught.value.reason == NOT_WORKING
        assert caught.value.message == "Barber is not working at 2024-07-21T11:00:00Z"

    def test_no_schedule_rejected(self, session, barber, service, customer_requester):
        with pytest.raises(SlotUnavailableError) as caught:
            book_appointment(
                session, _request(barber, service, "2024-07-21T09:00:00Z"), customer_requester
            )
        assert caught.value.reason == NOT_WORKING

    def test_inactive_day_rejected(self, session, barber, service, schedule, customer_requester):
        schedule.is_active = False
        session.add(schedule)
        session.commit()

        with pytest.raises(SlotUnavailableError) as caught:
            book_appointment(
                session, _request(barber, service, "2024-07-21T09:00:00Z"), customer_requester
            )
        assert caught.value.reason == NOT_WORKING

    def test_misaligned_time_rejected(self, session, barber, service, schedule, customer_requester):
        with pytest.raises(ValidationError):
            book_appointment(
                session, _request(barber, service, "2024-07-21T09:15:00Z"), customer_requester
            )

    def test_unknown_barber(self, session, service, schedule, customer_requester):
        request = AppointmentCreate(
            barber_id=999, service_id=service.id, appointment_time="2024-07-21T09:00:00Z"
        )
        with pytest.raises(NotFoundError):
            book_appointment(session, request, customer_requester)

    def test_unknown_service(self, session, barber, schedule, customer_requester):
        request = AppointmentCreate(
            barber_id=barber.id, service_id=999, appointment_time="2024-07-21T09:00:00Z"
        )
        with pytest.raises(NotFoundError):
            book_appointment(session, request, customer_requester)

    def test_service_from_another_shop(self, session, barber, schedule, other_shop, customer_requester):
        foreign = Service(shop_id=other_shop.id, name="Shave", price=10.0, duration_minutes=30)
        session.add(foreign)
        session.commit()
        session.refresh(foreign)

        with pytest.raises(NotFoundError):
            book_appointment(
                session, _request(barber, foreign, "2024-07-21T09:00:00Z"), customer_requester
            )

    def test_shop_cannot_book_foreign_barber(self, session, schedule, service, other_shop, shop_requester):
        foreign_barber = Barber(shop_id=other_shop.id, name="Mo")
        session.add(foreign_barber)
        session.commit()
        session.refresh(foreign_barber)

        with pytest.raises(NotFoundError):
            book_appointment(
                session, _request(foreign_barber, service, "2024-07-21T09:00:00Z"), shop_requester
            )

    def test_lost_race_maps_to_slot_unavailable(
        self, session, barber, service, schedule, customer_requester, monkeypatch
    ):
        slot = datetime(2024, 7, 21, 9, 30)
        book_appointment(session, _request(barber, service, "2024-07-21T09:30:00Z"), customer_requester)

        # a stale read: availability still reports the slot as open
        monkeypatch.setattr(booking, "resolve_availability", lambda *args, **kwargs: [slot])

        with pytest.raises(SlotUnavailableError) as caught:
            book_appointment(
                session, _request(barber, service, "2024-07-21T09:30:00Z"), customer_requester
            )
        assert caught.value.reason == SLOT_TAKEN
        assert _count(session, barber, slot) == 1

    def test_concurrent_bookings_one_winner(self, engine, barber, service, schedule, customer_requester):
        request = _request(barber, service, "2024-07-21T10:00:00Z")
        barrier = threading.Barrier(2)
        results = []

        def attempt():
            with Session(engine) as own_session:
                barrier.wait()
                try:
                    book_appointment(own_session, request, customer_requester)
                    results.append("committed")
                except SlotUnavailableError:
                    results.append("rejected")
                except Exception as exc:  # surfaced by the assertion below
                    results.append(repr(exc))

        threads = [threading.Thread(target=attempt) for _ in range(2)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert sorted(results) == ["committed", "rejected"]
        with Session(engine) as check:
            assert _count(check, barber, datetime(2024, 7, 21, 10, 0)) == 1

    def test_failed_booking_leaves_no_row(self, session, barber, service, schedule, customer_requester, monkeypatch):
        def explode():
            raise RuntimeError("commit failed")

        # the insert is flushed, then the commit fails
        monkeypatch.setattr(session, "commit", explode)

        with pytest.raises(RuntimeError):
            book_appointment(
                session, _request(barber, service, "2024-07-21T10:30:00Z"), customer_requester
            )
        monkeypatch.undo()

        assert _count(session, barber, datetime(2024, 7, 21, 10, 30)) == 0


class TestCancelAppointment:
    def test_customer_cancels_and_slot_reopens(self, session, barber, service, schedule, customer_requester):
        appt = book_appointment(session, _request(barber, service, "2024-07-21T09:00:00Z"), customer_requester)

        cancelled = cancel_appointment(session, appt.id, customer_requester)

        assert cancelled.status == CANCELLED
        again = book_appointment(session, _request(barber, service, "2024-07-21T09:00:00Z"), customer_requester)
        assert again.id != appt.id

    def test_shop_can_cancel(self, session, barber, service, schedule, customer_requester, shop_requester):
        appt = book_appointment(session, _request(barber, service, "2024-07-21T09:00:00Z"), customer_requester)

        assert cancel_appointment(session, appt.id, shop_requester).status == CANCELLED

    def test_twice_is_conflict(self, session, barber, service, schedule, customer_requester):
        appt = book_appointment(session, _request(barber, service, "2024-07-21T09:00:00Z"), customer_requester)
        cancel_appointment(session, appt.id, customer_requester)

        with pytest.raises(ConflictError):
            cancel_appointment(session, appt.id, customer_requester)

    def test_stranger_forbidden(self, session, barber, service, schedule, customer_requester):
        appt = book_appointment(session, _request(barber, service, "2024-07-21T09:00:00Z"), customer_requester)
        stranger = {"id": customer_requester["id"] + 1, "role": "customer", "name": "X", "email": "x@example.com"}

        with pytest.raises(PermissionDeniedError):
            cancel_appointment(session, appt.id, stranger)

    def test_unknown(self, session, customer_requester):
        with pytest.raises(NotFoundError):
            cancel_appointment(session, 999, customer_requester)


class TestAppointmentEndpoints:
    def test_book_then_slot_disappears(self, client, barber, service, schedule, customer_headers):
        response = client.post(
            "/appointments",
            json={"barberId": barber.id, "serviceId": service.id, "appointmentTime": "2024-07-21T10:00:00Z"},
            headers=customer_headers,
        )

        assert response.status_code == 201
        body = response.json()
        assert body["appointment_time"] == "2024-07-21T10:00:00Z"
        assert body["status"] == "booked"

        slots = client.get("/availability", params={"barberId": barber.id, "date": "2024-07-21"}).json()
        assert "2024-07-21T10:00:00Z" not in slots
        assert len(slots) == 3

    def test_taken_slot_is_409(self, client, barber, service, schedule, customer_headers):
        payload = {"barber_id": barber.id, "service_id": service.id, "appointment_time": "2024-07-21T09:30:00Z"}

        assert client.post("/appointments", json=payload, headers=customer_headers).status_code == 201
        response = client.post("/appointments", json=payload, headers=customer_headers)

        assert response.status_code == 409
        assert response.json() == {"detail": "Slot 2024-07-21T09:30:00Z is already booked"}

    def test_no_schedule_is_409_with_its_own_detail(self, client, barber, service, customer_headers):
        response = client.post(
            "/appointments",
            json={"barberId": barber.id, "serviceId": service.id, "appointmentTime": "2024-07-21T10:30:00Z"},
            headers=customer_headers,
        )

        assert response.status_code == 409
        assert response.json() == {"detail": "Barber is not working at 2024-07-21T10:30:00Z"}

    def test_missing_fields_is_400(self, client, barber, customer_headers):
        response = client.post("/appointments", json={"barberId": barber.id}, headers=customer_headers)

        assert response.status_code == 400

    def test_misaligned_is_400(self, client, barber, service, schedule, customer_headers):
        response = client.post(
            "/appointments",
            json={"barberId": barber.id, "serviceId": service.id, "appointmentTime": "2024-07-21T09:10:00Z"},
            headers=customer_headers,
        )

        assert response.status_code == 400

    def test_unknown_service_is_404(self, client, barber, schedule, customer_headers):
        response = client.post(
            "/appointments",
            json={"barberId": barber.id, "serviceId": 999, "appointmentTime": "2024-07-21T09:00:00Z"},
            headers=customer_headers,
        )

        assert response.status_code == 404

    def test_requires_authentication(self, client, barber, service, schedule):
        response = client.post(
            "/appointments",
            json={"barberId": barber.id, "serviceId": service.id, "appointmentTime": "2024-07-21T09:00:00Z"},
        )

        assert response.status_code == 401

    def test_shop_books_walk_in(self, client, barber, service, schedule, shop_headers):
        response = client.post(
            "/appointments",
            json={"barberId": barber.id, "serviceId": service.id, "appointmentTime": "2024-07-21T09:00:00Z"},
            headers=shop_headers,
        )

        assert response.status_code == 201
        assert response.json()["customer_id"] is None

    def test_cancel_endpoint(self, client, barber, service, schedule, customer_headers):
        created = client.post(
            "/appointments",
            json={"barberId": barber.id, "serviceId": service.id, "appointmentTime": "2024-07-21T09:00:00Z"},
            headers=customer_headers,
        ).json()

        response = client.patch(f"/appointments/{created['id']}/cancel", headers=customer_headers)

        assert response.status_code == 200
        assert response.json()["status"] == "cancelled"
        slots = client.get("/availability", params={"barberId": barber.id, "date": "2024-07-21"}).json()
        assert "2024-07-21T09:00:00Z" in slots


class TestAppointmentStorage:
    def test_times_use_plain_naive_datetime_columns(self):
        for name in ("appointment_time", "created_at"):
            column_type = Appointment.__table__.c[name].type
            assert type(column_type) is DateTime
            assert column_type.timezone is False

    def test_naive_utc_round_trips_through_queries(self, session, barber, service, schedule, customer_requester):
        appt = book_appointment(session, _request(barber, service, "2024-07-21T10:00:00Z"), customer_requester)

        stored = session.exec(
            select(Appointment).where(Appointment.appointment_time == datetime(2024, 7, 21, 10, 0))
        ).one()

        assert stored.id == appt.id
        assert stored.appointment_time.tzinfo is None
        assert stored.created_at.tzinfo is None
