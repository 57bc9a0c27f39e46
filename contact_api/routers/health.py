import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import JSONResponse

from ..config import Settings
from ..db import (
    ConnectionCache,
    DatabaseUnavailableError,
    STATUS_CONNECTED,
    STATUS_PING_FAILED,
)
from ..dependencies import get_connection_cache, get_settings
from ..limiter import RATE_LIMIT, limiter

logger = logging.getLogger(__name__)

API_VERSION = "2.0"

router = APIRouter(tags=["health"])
diagnostics_router = APIRouter(tags=["health"])


@router.get("/")
@limiter.limit(RATE_LIMIT)
async def root(request: Request, settings: Settings = Depends(get_settings)):
    endpoints = ["/health", "/contact", "/contacts"]
    if settings.EXPOSE_DB_TEST_ROUTE:
        endpoints.append("/test-mongodb")
    return {
        "message": "Isothermica Backend API",
        "status": "online",
        "version": API_VERSION,
        "endpoints": endpoints,
    }


@router.get("/health")
@limiter.limit(RATE_LIMIT)
async def health_check(
    request: Request,
    cache: ConnectionCache = Depends(get_connection_cache),
    settings: Settings = Depends(get_settings),
):
    """Report service status and the current database state without reconnecting"""
    try:
        db_status = await cache.status()
        db_details = {}
        if db_status == STATUS_CONNECTED:
            try:
                db_details = await cache.stats()
            except Exception as e:
                logger.warning(f"⚠️ Could not read database stats: {str(e)}")
        elif db_status == STATUS_PING_FAILED and not settings.is_production:
            db_details = {"error": cache.last_ping_error}

        return {
            "status": "OK",
            "database": db_status,
            "database_details": db_details,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "environment": settings.ENVIRONMENT,
            "version": API_VERSION,
        }
    except Exception as e:
        logger.error(f"❌ Health check failed: {str(e)}", exc_info=True)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "status": "ERROR",
                "database": "error",
                "timestamp": datetime.now(timezone.utc).isoformat(),
                "error": str(e),
            },
        )


@diagnostics_router.get("/test-mongodb")
@limiter.limit(RATE_LIMIT)
async def test_mongodb(
    request: Request,
    cache: ConnectionCache = Depends(get_connection_cache),
    settings: Settings = Depends(get_settings),
):
    """Open (or reuse) the connection and list the server's databases"""
    try:
        database_names = await cache.list_database_names()
    except DatabaseUnavailableError:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Database não conectado",
        )
    except Exception as e:
        logger.error(f"❌ MongoDB test failed: {str(e)}", exc_info=True)
        content = {"success": False, "error": "Falha ao testar o MongoDB"}
        if not settings.is_production:
            content["error"] = str(e)
        return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=content)

    logger.info(f"📊 Databases available: {database_names}")
    return {
        "success": True,
        "databases": database_names,
        "message": "Conexão MongoDB testada com sucesso",
    }
