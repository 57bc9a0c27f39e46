from fastapi import Request
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded

from .config import settings
from .dependencies import get_client_ip

RATE_LIMIT_MESSAGE = "Muitas requisições deste IP, tente novamente mais tarde."

# Applied per route with @limiter.limit(RATE_LIMIT)
RATE_LIMIT = settings.RATE_LIMIT


def client_key(request: Request) -> str:
    return get_client_ip(request) or "unknown"


limiter = Limiter(key_func=client_key)


def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    return JSONResponse(status_code=429, content={"error": RATE_LIMIT_MESSAGE})
