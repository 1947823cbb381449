# backend/classbook/main.py
"""
classbook API

Recurring-class scheduling, occurrence materialization and cancellation
charges for a tutoring business.
"""

from contextlib import asynccontextmanager
import logging
from typing import AsyncGenerator

from fastapi import APIRouter, FastAPI

from . import __version__
from .core.config import settings
from .database import Base, engine
from .errors import register_error_handlers
from .routes.v1 import (
    availability as availability_v1,
    calendar as calendar_v1,
    cancellations as cancellations_v1,
    metrics as metrics_v1,
    occurrences as occurrences_v1,
    templates as templates_v1,
)

logging.basicConfig(
    level=getattr(logging, settings.log_level, logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def app_lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Handle application startup/shutdown."""
    logger.info(f"{settings.app_name} API starting up...")
    logger.info(f"Environment: {settings.environment}")
    # Imported for its side effect of registering every table on Base.metadata
    from . import models  # noqa: F401

    Base.metadata.create_all(bind=engine)
    yield
    logger.info(f"{settings.app_name} API shutting down...")
    engine.dispose()


def create_app() -> FastAPI:
    app = FastAPI(
        title=settings.app_name,
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=app_lifespan,
    )
    register_error_handlers(app)

    api_v1 = APIRouter(prefix="/api/v1")
    api_v1.include_router(occurrences_v1.router)
    api_v1.include_router(templates_v1.router)
    api_v1.include_router(calendar_v1.router)
    api_v1.include_router(availability_v1.router)
    api_v1.include_router(cancellations_v1.router)
    api_v1.include_router(metrics_v1.router)
    app.include_router(api_v1)

    @app.get("/health", tags=["health"])
    def health() -> dict:
        return {"status": "ok", "service": settings.app_name, "version": __version__}

    return app


app = create_app()
