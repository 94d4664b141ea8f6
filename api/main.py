"""
kitchenCOGS FastAPI Application

Run with: uvicorn api.main:app --reload
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.config import Settings, get_settings
from api.middleware.errors import setup_exception_handlers
from api.middleware.logging import RequestLoggingMiddleware
from api.routers import health, inventory
from kitchencogs.storage import init_database

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(level: str) -> None:
    logging.basicConfig(level=getattr(logging, level.upper(), logging.INFO), format=LOG_FORMAT)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings: Settings = app.state.settings
    logger.info(
        f"Starting {settings.app_name} v{settings.app_version} "
        f"(day boundary: {settings.shop_timezone} midnight)"
    )

    # Tables plus the one-alert-per-day index
    init_database(settings.database_path)
    logger.info(f"Database ready at {settings.database_path}")

    if not settings.alerts_enabled:
        logger.info("Low-stock alerts are disabled")

    yield

    logger.info("Shutting down...")


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Build the app. Settings default to the cached environment settings."""
    settings = settings or get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="Daily stock, usage and low-stock alerts for a single-location kitchen",
        lifespan=lifespan,
    )
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origin_list,
        allow_methods=["GET", "POST", "PATCH", "DELETE"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID", "X-Response-Time-Ms"],
    )
    app.add_middleware(RequestLoggingMiddleware)

    setup_exception_handlers(app)

    app.include_router(health.router, tags=["Health"])
    app.include_router(inventory.router, prefix="/api/v1/inventory", tags=["Inventory"])

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run("api.main:app", host=settings.host, port=settings.port, reload=settings.debug)
