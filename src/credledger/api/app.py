"""FastAPI application setup."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from credledger import __version__
from credledger.api.dependencies import (
    MissingCallerError,
    close_event_manager,
    close_registry,
    init_event_manager,
    init_registry,
)
from credledger.api.models import APIResponse
from credledger.api.routes import (
    accounts,
    certificates,
    courses,
    events,
    instructors,
    stats,
    students,
)
from credledger.registry import (
    AuthorizationError,
    DuplicateError,
    InsufficientFundsError,
    InsufficientPaymentError,
    NotFoundError,
    RegistryError,
    ValidationError,
)

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator, Awaitable, Callable

logger = logging.getLogger(__name__)

# Most specific classes win; anything else derived from RegistryError is a 500
ERROR_STATUS: dict[type[Exception], int] = {
    MissingCallerError: status.HTTP_401_UNAUTHORIZED,
    AuthorizationError: status.HTTP_403_FORBIDDEN,
    NotFoundError: status.HTTP_404_NOT_FOUND,
    DuplicateError: status.HTTP_409_CONFLICT,
    ValidationError: status.HTTP_422_UNPROCESSABLE_ENTITY,
    InsufficientPaymentError: status.HTTP_402_PAYMENT_REQUIRED,
    InsufficientFundsError: status.HTTP_402_PAYMENT_REQUIRED,
}


def _error_handler(status_code: int) -> Callable[[Request, Exception], Awaitable[JSONResponse]]:
    async def handler(_request: Request, exc: Exception) -> JSONResponse:
        return JSONResponse(
            status_code=status_code,
            content=APIResponse[None](data=None, error=str(exc)).model_dump(),
        )

    return handler


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager."""
    # Startup
    db_path = app.state.db_path if hasattr(app.state, "db_path") else "credledger.db"
    owner = app.state.owner if hasattr(app.state, "owner") else None
    event_manager = init_event_manager()
    init_registry(db_path, owner=owner, event_manager=event_manager)
    logger.info("API started (db=%s)", db_path)

    yield
    # Shutdown
    close_registry()
    close_event_manager()


def register_exception_handlers(app: FastAPI) -> None:
    """Map registry errors to HTTP responses in the standard envelope."""
    for exc_class, status_code in ERROR_STATUS.items():
        app.add_exception_handler(exc_class, _error_handler(status_code))

    @app.exception_handler(RegistryError)
    async def registry_error_handler(_request: Request, exc: RegistryError) -> JSONResponse:
        logger.error("Unhandled registry error: %s", exc)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=APIResponse[None](data=None, error="Internal server error").model_dump(),
        )


def create_app(db_path: str = "credledger.db", owner: str | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        db_path: Path to the registry database
        owner: Owner identity, required when the database is not yet deployed
    """
    app = FastAPI(
        title="credledger API",
        description="REST API for the credential registry",
        version=__version__,
        lifespan=lifespan,
    )

    # Store config for lifespan manager
    app.state.db_path = db_path
    app.state.owner = owner

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)

    # Include routers
    app.include_router(students.router, prefix="/api/v1")
    app.include_router(instructors.router, prefix="/api/v1")
    app.include_router(courses.router, prefix="/api/v1")
    app.include_router(certificates.router, prefix="/api/v1")
    app.include_router(accounts.router, prefix="/api/v1")
    app.include_router(stats.router, prefix="/api/v1")
    app.include_router(events.router, prefix="/api/v1")

    return app
