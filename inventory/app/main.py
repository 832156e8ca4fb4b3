"""
FastAPI Application Entry Point.

This is the main application file for the Trip Inventory service.
"""

from contextlib import asynccontextmanager
from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from inventory.app.core.config import settings
from inventory.app.api.v1.router import router as api_v1_router
from inventory.app.core.observability import ObservabilityMiddleware, configure_logging
from inventory.app.core.exceptions import (
    AppException,
    app_exception_handler,
    http_exception_handler,
    validation_exception_handler,
    generic_exception_handler
)
from inventory.app.services.trip_entry import TripEntryController
from inventory.app.services.trip_repository import OfflineTripRepository
from inventory.app.services.trip_store import TripStore


def build_services(app: FastAPI, store: TripStore) -> None:
    """Wire the store, repository and entry form onto the application state."""
    repository = OfflineTripRepository(store)
    app.state.trip_store = store
    app.state.trip_repository = repository
    app.state.trip_entry = TripEntryController(repository)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for application startup/shutdown.

    1. Opens the trip store (creating the table if needed).
    2. Closes it, and every live subscription, on shutdown.
    """
    configure_logging()
    async with TripStore(settings.database_url) as store:
        build_services(app, store)
        yield


def create_app(lifespan_handler=lifespan) -> FastAPI:
    """Build the FastAPI application."""
    application = FastAPI(
        title=settings.app_name,
        version=settings.api_version,
        debug=settings.debug,
        description="Local trip inventory with live trip lists",
        lifespan=lifespan_handler,
    )

    application.add_middleware(ObservabilityMiddleware)

    # Register global exception handlers
    application.add_exception_handler(AppException, app_exception_handler)
    application.add_exception_handler(HTTPException, http_exception_handler)
    application.add_exception_handler(RequestValidationError, validation_exception_handler)
    application.add_exception_handler(Exception, generic_exception_handler)

    @application.get("/health", tags=["Health"])
    async def health_check():
        """
        Health check endpoint.

        Returns:
            dict: Status and application information
        """
        store = getattr(application.state, "trip_store", None)
        return {
            "status": "healthy",
            "app_name": settings.app_name,
            "version": settings.api_version,
            "store_open": bool(store and store.is_open),
        }

    @application.get("/", tags=["Root"])
    async def root():
        """
        Root endpoint.

        Returns:
            dict: Welcome message and API documentation links
        """
        return {
            "message": "Welcome to the Trip Inventory API",
            "docs": "/docs",
            "health": "/health",
        }

    # Include API v1 router
    application.include_router(api_v1_router, prefix=f"/{settings.api_version}")

    return application


app = create_app()
