"""
Custom middleware for security headers and request tracing.
"""
import re
import time
import uuid

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from .logging_config import get_logger, request_id_var

request_logger = get_logger("requests")

REQUEST_ID_HEADER = "X-Request-ID"
_VALID_REQUEST_ID = re.compile(r"^[A-Za-z0-9._-]{1,64}$")


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Add security headers to all responses."""

    async def dispatch(self, request: Request, call_next) -> Response:
        response = await call_next(request)

        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "no-referrer"
        # Uploaded images are served from /media; nothing else is embeddable
        response.headers["Cross-Origin-Resource-Policy"] = "same-site"

        return response


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Tag each request with an id, log its outcome and echo the id back.

    A well-formed inbound ``X-Request-ID`` is reused so a proxy's id follows
    the request through our logs.
    """

    async def dispatch(self, request: Request, call_next) -> Response:
        inbound = request.headers.get(REQUEST_ID_HEADER, "")
        request_id = inbound if _VALID_REQUEST_ID.match(inbound) else uuid.uuid4().hex[:12]
        token = request_id_var.set(request_id)
        started = time.perf_counter()

        try:
            response = await call_next(request)
        except Exception as e:
            request_logger.error(f"{request.method} {request.url.path} -> ERROR", error=e)
            raise
        finally:
            request_id_var.reset(token)

        status_code = response.status_code
        log = request_logger.info if status_code < 400 else request_logger.warning
        if status_code >= 500:
            log = request_logger.error
        log(
            f"{request.method} {request.url.path} -> {status_code}",
            request_id=request_id,
            duration_ms=round((time.perf_counter() - started) * 1000, 2),
        )

        response.headers[REQUEST_ID_HEADER] = request_id
        return response
