import secrets
from typing import Any, Dict, Optional

from fastapi import Depends, Header, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError

from .config import Settings
from .db import ConnectionCache
from .services.contact_repository import ContactRepository, build_repository


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_connection_cache(request: Request) -> ConnectionCache:
    """Single accessor for the process-wide connection cache"""
    return request.app.state.connection_cache


def get_contact_repository(
    settings: Settings = Depends(get_settings),
    cache: ConnectionCache = Depends(get_connection_cache),
) -> ContactRepository:
    return build_repository(settings.CONTACT_BACKEND, cache)


FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"


async def get_submission_body(request: Request) -> Dict[str, Any]:
    """Request body as a flat mapping, from JSON or a url-encoded form"""
    content_type = request.headers.get("content-type", "")
    if content_type.startswith(FORM_CONTENT_TYPE):
        form = await request.form()
        return dict(form)

    try:
        payload = await request.json()
    except ValueError:
        raise RequestValidationError(
            [{"type": "json_invalid", "loc": ("body",), "msg": "JSON decode error"}]
        )
    if not isinstance(payload, dict):
        raise RequestValidationError(
            [{"type": "dict_type", "loc": ("body",), "msg": "Input should be a valid dictionary"}]
        )
    return payload


def get_client_ip(request: Request) -> Optional[str]:
    """Caller address, honouring the nearest proxy hop when TRUST_PROXY is set"""
    if request.app.state.settings.TRUST_PROXY:
        forwarded = request.headers.get("x-forwarded-for")
        if forwarded:
            return forwarded.split(",")[-1].strip()
    return request.client.host if request.client else None


async def require_admin_key(
    x_admin_key: Optional[str] = Header(None),
    settings: Settings = Depends(get_settings),
) -> None:
    """Production-only static key check for read access to submissions"""
    if not settings.is_production:
        return
    if (
        not x_admin_key
        or not settings.ADMIN_KEY
        or not secrets.compare_digest(x_admin_key, settings.ADMIN_KEY)
    ):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Não autorizado",
        )
