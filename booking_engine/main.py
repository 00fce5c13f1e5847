"""
FastAPI application for availability and booking

Slot listings, booking checks and appointment lifecycle per business
"""
import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from booking_engine.api.v1.router import api_v1_router
from booking_engine.config.redis import close_redis_pool, get_redis
from booking_engine.config.settings import get_settings
from booking_engine.core.exceptions import BookingError, ConflictError
from booking_engine.core.middleware import correlation_id_middleware, request_logging_middleware
from booking_engine.core.monitoring import health_router
from booking_engine.services.availability.availability_cache import AvailabilityCache
from booking_engine.utils.my_logging import setup_logging

settings = get_settings()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events"""
    # Startup
    setup_logging()

    if settings.AVAILABILITY_CACHE_ENABLED:
        app.state.availability_cache = AvailabilityCache(
            await get_redis(), ttl_seconds=settings.AVAILABILITY_CACHE_TTL_SECONDS
        )
        logger.info(f"Availability cache enabled (TTL {settings.AVAILABILITY_CACHE_TTL_SECONDS}s)")
    else:
        app.state.availability_cache = None
        logger.info("Availability cache disabled")

    logger.info(f"{settings.APP_NAME} starting up, API at /api/v1/, health at /health")

    yield

    # Shutdown
    await close_redis_pool()
    logger.info(f"{settings.APP_NAME} shutting down")


async def booking_error_handler(request: Request, exc: BookingError) -> JSONResponse:
    """Expected outcomes: invalid input, unknown ids, taken slots"""
    if isinstance(exc, ConflictError):
        logger.info(f"Booking conflict on {request.url.path}: {exc.conflicts}")
    else:
        logger.info(f"{exc.code} on {request.url.path}: {exc.message}")

    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def database_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.error(f"Database error on {request.method} {request.url.path}: {exc}", exc_info=exc)
    return JSONResponse(
        status_code=500,
        content={"error": "DATABASE_ERROR", "message": "A data access error occurred"},
    )


def create_app() -> FastAPI:
    """Create and configure FastAPI application"""

    app = FastAPI(
        title=settings.APP_NAME,
        description="Availability slots, booking conflict checks and appointment lifecycle",
        version="0.1.0",
        lifespan=lifespan,
        docs_url="/docs" if settings.DEBUG else None,
        redoc_url="/redoc" if settings.DEBUG else None,
    )

    # Add CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PATCH", "DELETE", "PUT"],
        allow_headers=["*"],
    )

    # Last registered runs first: the correlation id is set before request logging
    app.middleware("http")(request_logging_middleware)
    app.middleware("http")(correlation_id_middleware)

    app.add_exception_handler(BookingError, booking_error_handler)
    app.add_exception_handler(SQLAlchemyError, database_error_handler)

    # Include routers
    app.include_router(health_router, prefix="/health", tags=["monitoring"])
    app.include_router(api_v1_router, prefix="/api/v1")

    @app.get("/")
    async def root():
        return {
            "service": settings.APP_NAME,
            "version": "0.1.0",
            "status": "running",
            "endpoints": {
                "api": "/api/v1/",
                "health": "/health",
                "docs": "/docs" if settings.DEBUG else "disabled"
            }
        }

    return app


app = create_app()


if __name__ == "__main__":
    uvicorn.run(
        "booking_engine.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
        log_level="info"
    )
