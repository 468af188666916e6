"""
Audit Logging Middleware

One "audit" log record per API request with the operator, timing and
outcome. Each request gets an id (taken from X-Request-ID when the caller
sends one) that is echoed back in the response headers.
"""

import logging
import time
from uuid import uuid4

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

logger = logging.getLogger("audit")

REQUEST_ID_HEADER = "X-Request-ID"
SKIP_PATHS = {"/health", "/health/ready", "/favicon.ico"}


def client_ip(request: Request) -> str:
    """First hop of X-Forwarded-For, else the socket peer."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


class AuditLogMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next) -> Response:
        if request.url.path in SKIP_PATHS:
            return await call_next(request)

        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid4().hex[:16]
        request.state.request_id = request_id
        start = time.monotonic()
        status_code = 500
        error: str | None = None

        try:
            response = await call_next(request)
            status_code = response.status_code
            response.headers[REQUEST_ID_HEADER] = request_id
            return response
        except Exception as exc:
            error = f"{type(exc).__name__}: {exc}"
            raise
        finally:
            record = {
                "request_id": request_id,
                "method": request.method,
                "path": request.url.path,
                "query": request.url.query or None,
                "status": status_code,
                "latency_ms": round((time.monotonic() - start) * 1000, 2),
                "client_ip": client_ip(request),
                # Set by get_current_user once the session token is read
                "user_id": getattr(request.state, "user_id", None),
                "user_email": getattr(request.state, "user_email", None),
            }
            if error:
                record["error"] = error

            level = logging.INFO
            if status_code >= 500:
                level = logging.ERROR
            elif status_code >= 400:
                level = logging.WARNING
            logger.log(level, f"{request.method} {request.url.path} -> {status_code}", extra=record)
