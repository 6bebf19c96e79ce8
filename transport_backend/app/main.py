"""
FastAPI Application Entry Point.

This is the main application file for the Transport Manager Backend.
"""

from contextlib import asynccontextmanager
from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from transport_backend.app.core.config import settings
from transport_backend.app.api.v1.router import router as api_v1_router
from transport_backend.app.db.session import init_models
from transport_backend.app.core.observability import ObservabilityMiddleware, configure_logging
from transport_backend.app.core.redis_client import close_redis, ping_redis
from transport_backend.app.core.exceptions import (
    AppException,
    app_exception_handler,
    http_exception_handler,
    validation_exception_handler,
    generic_exception_handler
)

# Import models to ensure they are registered with Base
from transport_backend.app.models.user import User  # noqa: F401
from transport_backend.app.models.audit_log import AuditLog  # noqa: F401
from transport_backend.app.models.client import Client  # noqa: F401
from transport_backend.app.models.driver import Driver  # noqa: F401
from transport_backend.app.models.vehicle import Vehicle  # noqa: F401
from transport_backend.app.models.trip import Trip  # noqa: F401
from transport_backend.app.models.resource_lock import ResourceLock  # noqa: F401
from transport_backend.app.models.fare_rule import FareRule  # noqa: F401


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create database tables on startup; close Redis on shutdown."""
    configure_logging(settings.log_level)
    await init_models()
    yield
    await close_redis()


app = FastAPI(
    title=settings.app_name,
    version=settings.api_version,
    debug=settings.debug,
    description="Trip dispatch, fare calculation and fleet management for a transport operator",
    lifespan=lifespan,
)

app.add_middleware(ObservabilityMiddleware)

# Register global exception handlers
app.add_exception_handler(AppException, app_exception_handler)
app.add_exception_handler(HTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(Exception, generic_exception_handler)


@app.get("/health", tags=["Health"])
async def health_check():
    """
    Health check endpoint.

    Returns:
        dict: Status, application information and Redis reachability
    """
    return {
        "status": "healthy",
        "app_name": settings.app_name,
        "version": settings.api_version,
        "redis": await ping_redis(),
    }


app.include_router(api_v1_router, prefix=f"/{settings.api_version}")


@app.get("/", tags=["Root"])
async def root():
    return {
        "message": "Welcome to Transport Manager Backend API",
        "docs": "/docs",
        "health": "/health",
    }
