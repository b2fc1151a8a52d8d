# barber_finder/main.py

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from barber_finder.config import Settings, get_settings
from barber_finder.db import create_store_engine, create_tables
from barber_finder.errors import register_error_handlers
from barber_finder.routers import (
    appointments_routes,
    auth_routes,
    barbers_routes,
    customers_routes,
    dashboard_routes,
    shops_routes,
)

logger = logging.getLogger(__name__)


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or get_settings()
    configure_logging(settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # the store handle lives exactly as long as the process serves requests
        engine = create_store_engine(settings.database_url, echo=settings.database_echo)
        if settings.create_tables:
            create_tables(engine)
        app.state.engine = engine
        logger.info("Barber Finder API starting up")
        try:
            yield
        finally:
            engine.dispose()
            logger.info("Barber Finder API shut down")

    app = FastAPI(title="Barber Finder API", lifespan=lifespan)
    app.dependency_overrides[get_settings] = lambda: settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_error_handlers(app)

    @app.get("/health")
    def health_check():
        return {"status": "ok"}

    app.include_router(auth_routes.router)
    app.include_router(customers_routes.router)
    app.include_router(shops_routes.router)
    app.include_router(barbers_routes.router)
    app.include_router(appointments_routes.router)
    app.include_router(dashboard_routes.router)

    return app


app = create_app()


def main() -> None:
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "barber_finder.main:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
