# barber_finder/errors.py
"""
Domain exceptions and their HTTP mapping.

Services raise these; the handlers registered by ``register_error_handlers``
turn them into JSON responses of the form ``{"detail": "..."}``.
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

logger = logging.getLogger(__name__)


class BarberFinderError(Exception):
    """Base exception for all domain errors."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    headers = None

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class ValidationError(BarberFinderError):
    """Missing or malformed input."""

    status_code = status.HTTP_400_BAD_REQUEST


class InvalidScheduleError(ValidationError):
    """A working-hours window that cannot produce a correct slot set."""


class AuthenticationError(BarberFinderError):
    status_code = status.HTTP_401_UNAUTHORIZED
    headers = {"WWW-Authenticate": "Bearer"}


class PermissionDeniedError(BarberFinderError):
    status_code = status.HTTP_403_FORBIDDEN


class NotFoundError(BarberFinderError):
    status_code = status.HTTP_404_NOT_FOUND


class ConflictError(BarberFinderError):
    status_code = status.HTTP_409_CONFLICT


class SlotUnavailableError(ConflictError):
    """The requested slot is not (or no longer) available.

    ``reason`` is ``"slot_taken"`` or ``"not_working"``.
    """

    def __init__(self, message: str, reason: str) -> None:
        super().__init__(message)
        self.reason = reason


class StoreError(BarberFinderError):
    """The database failed or aborted the transaction."""


def register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(BarberFinderError)
    async def domain_exception_handler(request: Request, exc: BarberFinderError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": exc.message},
            headers=exc.headers,
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_exception_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        # Malformed or missing request fields are client errors (400), never retried
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"detail": jsonable_encoder(exc.errors())},
        )

    @app.exception_handler(SQLAlchemyError)
    async def store_exception_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
        logger.error("%s %s database error", request.method, request.url.path, exc_info=exc)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"detail": "Database error"},
        )
