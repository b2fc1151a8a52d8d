# barber_finder/db.py

import logging
from contextlib import contextmanager
from typing import Iterator

from fastapi import Request
from sqlalchemy import event
from sqlalchemy.engine import Engine
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

logger = logging.getLogger(__name__)


def create_store_engine(database_url: str, echo: bool = False) -> Engine:
    """Build the engine for one process; the app lifespan owns it."""
    kwargs = {"echo": echo}
    is_sqlite = database_url.startswith("sqlite")
    if is_sqlite:
        # required for SQLite + FastAPI (requests run in a threadpool)
        kwargs["connect_args"] = {"check_same_thread": False}
        if database_url in ("sqlite://", "sqlite:///:memory:"):
            # one shared connection, otherwise every checkout sees an empty database
            kwargs["poolclass"] = StaticPool
    else:
        kwargs["pool_pre_ping"] = True

    engine = create_engine(database_url, **kwargs)

    if is_sqlite:
        @event.listens_for(engine, "connect")
        def enable_sqlite_fk(dbapi_connection, _):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    return engine


def create_tables(engine: Engine) -> None:
    # table classes register themselves on import
    from barber_finder import models  # noqa: F401

    SQLModel.metadata.create_all(engine)
    logger.info("Database tables ready")


# Dependency: one session per request
def get_session(request: Request) -> Iterator[Session]:
    with Session(request.app.state.engine) as session:
        yield session


@contextmanager
def transaction(session: Session) -> Iterator[Session]:
    """Commit when the block finishes, roll back fully on any exception."""
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
