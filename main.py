from __future__ import annotations

"""BloodConnect Backend - Main Application Entry Point
FastAPI application factory for the donor matching and confirmation backend.
Architecture Overview:
    - Feature-based modular architecture (see features/ directory)
    - Async SQLAlchemy persistence (MySQL or PostgreSQL; SQLite locally)
    - Detached background tasks for donor and requester notifications
    - Optional inbox poller that turns donor email replies into confirmations
Entry Points:
    - /health - Health check endpoint
    - /api/v1/donations/* - Donation request, matching and confirmation API
"""

import logging
import time
from contextlib import asynccontextmanager
from typing import AsyncIterator

from core.utils.env import is_production
# Track startup time in non-production environments
start_time = time.time() if not is_production() else None

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from config.database.defaults import AUTO_CREATE_SCHEMA
from config.donation import BACKGROUND_DRAIN_TIMEOUT_SECONDS
from config.email import EMAIL_MONITORING_ENABLED
from core.exceptions import ConfigurationError, DatabaseError, NotFoundError, ValidationError
from core.logging import setup_logging
from core.observability import register_http_request_logging
from core.pydantic_schemas import error as api_error, error_details
from features.donation.dependencies import build_reply_poller, get_background_runner
from features.donation.reference_data import seed_reference_data
from features.donation.routes import HTTP_422_UNPROCESSABLE_STATUS, router as donation_router
from infrastructure.db import (
    dispose_all_engines,
    prepare_database,
    require_donation_session_factory,
    session_scope,
)
from infrastructure.db import engines as db_engines

setup_logging()

logger = logging.getLogger(__name__)


async def _prepare_schema() -> None:
    """Create tables and seed reference rows (local and test deployments)."""

    factory = require_donation_session_factory()
    if db_engines.donation_engine is not None:
        await prepare_database(db_engines.donation_engine)
    async with session_scope(factory) as session:
        await seed_reference_data(session)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Manage application lifespan - startup and shutdown events."""
    # Startup
    if AUTO_CREATE_SCHEMA:
        try:
            await _prepare_schema()
        except ConfigurationError as exc:
            logger.warning("Skipping schema preparation: %s", exc)

    poller = None
    if EMAIL_MONITORING_ENABLED:
        try:
            poller = build_reply_poller()
        except ConfigurationError as exc:
            logger.warning("Email monitoring enabled but not startable: %s", exc)
        else:
            poller.start()
    else:
        logger.info("Email monitoring disabled")
    app.state.reply_poller = poller

    yield

    # Shutdown
    logger.info("Application shutting down...")
    if poller is not None:
        await poller.stop()
    cancelled = await get_background_runner().drain(timeout=BACKGROUND_DRAIN_TIMEOUT_SECONDS)
    if cancelled:
        logger.warning("Cancelled %d unfinished notification tasks", cancelled)
    await dispose_all_engines()
    logger.info("Shutdown complete")


def create_app() -> FastAPI:
    """Application factory returning a configured FastAPI instance."""

    app = FastAPI(
        title="BloodConnect Backend",
        description="Donor matching, notification and confirmation tracking",
        version="1.0.0",
        lifespan=lifespan,
    )

    # Configure CORS based on environment
    if is_production():
        # Production: Allow all origins
        app.add_middleware(
            CORSMiddleware,
            allow_origins=["*"],
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )
    else:
        # Development: Allow any localhost port (React/Vite/etc.)
        app.add_middleware(
            CORSMiddleware,
            allow_origin_regex=r"^http://(localhost|127\.0\.0\.1)(:\d+)?$",
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    @app.exception_handler(ValidationError)
    async def validation_error_handler(request: Request, exc: ValidationError):
        """Return every violation in a single 422 envelope."""

        payload = api_error(
            code=HTTP_422_UNPROCESSABLE_STATUS,
            message=exc.message,
            data=error_details(exc.errors),
        )
        return JSONResponse(status_code=HTTP_422_UNPROCESSABLE_STATUS, content=payload)

    @app.exception_handler(RequestValidationError)
    async def request_validation_error_handler(request: Request, exc: RequestValidationError):
        """Render FastAPI body/path validation failures in the shared envelope."""

        entries = [
            {
                "field": ".".join(str(part) for part in error.get("loc", ()) if part != "body") or None,
                "message": error.get("msg", "Invalid value"),
            }
            for error in exc.errors()
        ]
        payload = api_error(
            code=HTTP_422_UNPROCESSABLE_STATUS,
            message="Request validation failed",
            data=error_details(entries),
        )
        return JSONResponse(status_code=HTTP_422_UNPROCESSABLE_STATUS, content=payload)

    @app.exception_handler(NotFoundError)
    async def not_found_error_handler(request: Request, exc: NotFoundError):
        payload = api_error(
            code=status.HTTP_404_NOT_FOUND,
            message=exc.message,
            data={"resource": exc.resource} if exc.resource else None,
        )
        return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content=payload)

    @app.exception_handler(DatabaseError)
    async def database_error_handler(request: Request, exc: DatabaseError):
        logger.error("Database error handling %s %s", request.method, request.url.path, exc_info=exc)
        payload = api_error(
            code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            message="Database error while processing the request",
            data={"operation": exc.operation} if exc.operation else None,
        )
        return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=payload)

    @app.exception_handler(ConfigurationError)
    async def configuration_error_handler(request: Request, exc: ConfigurationError):
        """Return a structured API envelope for configuration errors."""

        payload = api_error(
            code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            message=str(exc),
            data={"key": exc.key} if getattr(exc, "key", None) else None,
        )
        return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=payload)

    @app.get("/health")
    async def health_check() -> dict[str, str]:
        return {"status": "healthy", "version": "1.0.0"}

    register_http_request_logging(app)

    app.include_router(donation_router)

    # Add timing info for non-production
    timing_info = ""
    if start_time is not None:
        elapsed = time.time() - start_time
        timing_info = f" (loaded in {elapsed:.2f}s)"

    logger.info(f"Application created with donation router{timing_info}")
    return app


app = create_app()


if __name__ == "__main__":  # pragma: no cover - manual execution helper
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)
