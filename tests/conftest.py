# tests/conftest.py
"""
Shared fixtures: a file-backed SQLite database per test, an app built on
it, and a handful of rows (shop, barber, service, schedule, customer).
"""

from datetime import date, time

import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session

from barber_finder.auth import CUSTOMER, SHOP, hash_password, token_for
from barber_finder.config import Settings
from barber_finder.db import create_store_engine, create_tables
from barber_finder.main import create_app
from barber_finder.models import Barber, BarberSchedule, BarberShop, Customer, Service

PASSWORD = "password123"
PASSWORD_HASH = hash_password(PASSWORD)

SCHEDULE_DATE = date(2024, 7, 21)


@pytest.fixture
def settings(tmp_path):
    return Settings(
        _env_file=None,
        database_url=f"sqlite:///{tmp_path / 'test.db'}",
        secret_key="test-secret",
        log_level="WARNING",
    )


@pytest.fixture
def engine(settings):
    engine = create_store_engine(settings.database_url)
    create_tables(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture
def client(settings, engine):
    app = create_app(settings)
    with TestClient(app) as client:
        yield client


def _save(session: Session, obj):
    session.add(obj)
    session.commit()
    session.refresh(obj)
    return obj


@pytest.fixture
def shop(session):
    return _save(
        session,
        BarberShop(
            name="Sharp Cuts",
            address="1 Main St",
            email="shop@example.com",
            password_hash=PASSWORD_HASH,
        ),
    )


@pytest.fixture
def other_shop(session):
    return _save(
        session,
        BarberShop(
            name="Fade Factory",
            address="9 High St",
            email="fades@example.com",
            password_hash=PASSWORD_HASH,
        ),
    )


@pytest.fixture
def barber(session, shop):
    return _save(session, Barber(shop_id=shop.id, name="Tony"))


@pytest.fixture
def service(session, shop):
    return _save(session, Service(shop_id=shop.id, name="Haircut", price=25.0, duration_minutes=30))


@pytest.fixture
def schedule(session, barber):
    """Barber works 09:00-11:00 on 2024-07-21."""
    return _save(
        session,
        BarberSchedule(
            barber_id=barber.id,
            schedule_date=SCHEDULE_DATE,
            start_time=time(9, 0),
            end_time=time(11, 0),
            is_active=True,
        ),
    )


@pytest.fixture
def customer(session):
    return _save(
        session,
        Customer(name="Sam", email="sam@example.com", password_hash=PASSWORD_HASH),
    )


@pytest.fixture
def shop_headers(settings, shop):
    return {"Authorization": f"Bearer {token_for(shop, SHOP, settings)}"}


@pytest.fixture
def customer_headers(settings, customer):
    return {"Authorization": f"Bearer {token_for(customer, CUSTOMER, settings)}"}


@pytest.fixture
def shop_requester(shop):
    return {"id": shop.id, "role": SHOP, "name": shop.name, "email": shop.email}


@pytest.fixture
def customer_requester(customer):
    return {"id": customer.id, "role": CUSTOMER, "name": customer.name, "email": customer.email}
