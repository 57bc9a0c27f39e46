import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException as StarletteHTTPException

from .config import Settings, configure_logging, log_settings, settings as default_settings
from .db import ClientFactory, ConnectionCache, DatabaseUnavailableError
from .limiter import limiter, rate_limit_exceeded_handler
from .middleware import (
    BodySizeLimitMiddleware,
    ErrorHandlingMiddleware,
    LoggingMiddleware,
    SecurityHeadersMiddleware,
)
from .routers.contact import INVALID_DATA_MESSAGE, router as contact_router
from .routers.health import diagnostics_router, router as health_router
from .schemas import format_error

logger = logging.getLogger(__name__)

NOT_FOUND_MESSAGE = "Endpoint não encontrado"


# Lifespan context manager for startup and shutdown events
@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    cache: ConnectionCache = app.state.connection_cache
    if app.state.settings.CONNECT_ON_STARTUP:
        logger.info("⚡ Connecting to the database at startup...")
        try:
            await cache.get_connection()
        except DatabaseUnavailableError as e:
            # Requests will retry lazily
            logger.warning(f"⚠️ Startup connection failed: {str(e)}")

    yield  # App runs here

    await cache.close()


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    if exc.status_code in (status.HTTP_404_NOT_FOUND, status.HTTP_405_METHOD_NOT_ALLOWED):
        return JSONResponse(
            status_code=status.HTTP_404_NOT_FOUND,
            content={"error": NOT_FOUND_MESSAGE},
        )
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail, "success": False},
        headers=getattr(exc, "headers", None),
    )


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "error": INVALID_DATA_MESSAGE,
            "details": [format_error(error) for error in exc.errors()],
        },
    )


def create_app(
    settings: Optional[Settings] = None,
    client_factory: Optional[ClientFactory] = None,
) -> FastAPI:
    settings = settings or default_settings
    configure_logging(settings.LOG_LEVEL)
    log_settings(settings)

    app = FastAPI(
        title="Isothermica Contact API",
        description="Contact form intake for the Isothermica website",
        version="2.0.0",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.connection_cache = ConnectionCache(settings, client_factory=client_factory)
    app.state.limiter = limiter

    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)

    # Last added runs first
    app.add_middleware(BodySizeLimitMiddleware, max_body_bytes=settings.MAX_BODY_BYTES)
    app.add_middleware(ErrorHandlingMiddleware)
    app.add_middleware(LoggingMiddleware)
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization", "X-Admin-Key"],
    )

    app.include_router(health_router)
    app.include_router(contact_router)
    if settings.EXPOSE_DB_TEST_ROUTE:
        app.include_router(diagnostics_router)

    return app


app = create_app()
