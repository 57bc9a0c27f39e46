from fastapi import Request, HTTPException
from fastapi.responses import JSONResponse
from starlette.datastructures import Headers
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp, Message, Receive, Scope, Send

import time
import logging
from typing import Callable

logger = logging.getLogger(__name__)

INTERNAL_ERROR_MESSAGE = "Erro interno do servidor"
BODY_TOO_LARGE_MESSAGE = "Corpo da requisição muito grande"


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Middleware for adding security headers to all responses"""

    async def dispatch(self, request: Request, call_next: Callable):
        response = await call_next(request)

        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"

        # Remove server information for security
        if "Server" in response.headers:
            del response.headers["Server"]

        return response


class LoggingMiddleware(BaseHTTPMiddleware):
    """Middleware for logging requests and responses"""

    async def dispatch(self, request: Request, call_next: Callable):
        start_time = time.time()
        logger.info(f"Request: {request.method} {request.url.path}")

        response = await call_next(request)

        process_time = time.time() - start_time
        logger.info(f"Response: {response.status_code} - {process_time:.4f}s")
        response.headers["X-Process-Time"] = str(process_time)
        return response


class BodySizeLimitMiddleware:
    """Caps request bodies at max_body_bytes.

    A declared Content-Length over the cap is refused before the app runs.
    Bodies without one (chunked uploads) are counted as they are received;
    the read that crosses the cap raises a 413 inside the request handler.
    """

    def __init__(self, app: ASGIApp, max_body_bytes: int):
        self.app = app
        self.max_body_bytes = max_body_bytes

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        content_length = Headers(scope=scope).get("content-length")
        if content_length and content_length.isdigit() and int(content_length) > self.max_body_bytes:
            logger.warning(f"Rejected {content_length}-byte body on {scope['path']}")
            response = JSONResponse(status_code=413, content={"error": BODY_TOO_LARGE_MESSAGE})
            await response(scope, receive, send)
            return

        received = 0

        async def limited_receive() -> Message:
            nonlocal received
            message = await receive()
            if message["type"] == "http.request":
                received += len(message.get("body", b""))
                if received > self.max_body_bytes:
                    logger.warning(f"Body over {self.max_body_bytes} bytes on {scope['path']}")
                    raise HTTPException(status_code=413, detail=BODY_TOO_LARGE_MESSAGE)
            return message

        await self.app(scope, limited_receive, send)


class ErrorHandlingMiddleware(BaseHTTPMiddleware):
    """Terminal handler: any uncaught error becomes a generic 500"""

    async def dispatch(self, request: Request, call_next: Callable):
        try:
            response = await call_next(request)
            return response
        except HTTPException:
            # Re-raise HTTP exceptions (these are handled by FastAPI)
            raise
        except Exception as e:
            logger.error(f"Unhandled error: {str(e)}", exc_info=True)

            content = {"error": INTERNAL_ERROR_MESSAGE}
            if request.app.state.settings.is_development:
                content["details"] = str(e)
            return JSONResponse(status_code=500, content=content)
