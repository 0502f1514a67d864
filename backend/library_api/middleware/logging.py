"""
Library Lending API — Access Log Middleware
============================================

What:  One access-log line per request on the "library.access" logger.

Line format:
    PATCH /lending/{lending_id} → 200 in 12.4ms [a1b2c3d4] (path=/lending/7)

The route template is logged instead of the raw path, so lines for
/book/9780441013593 and /book/9780547928227 group under /book/{isbn}.

Level:
    5xx                       → ERROR
    4xx, or slower than SLOW_REQUEST_MS → WARNING
    everything else           → INFO
/health is never logged. Request bodies are never logged.
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from library_api.config import settings
from library_api.middleware.request_id import request_id_var

logger = logging.getLogger("library.access")


def _route_template(request: Request) -> str:
    """The matched route's path template, or the raw path when nothing matched (404s)."""
    route = request.scope.get("route")
    return getattr(route, "path", None) or request.url.path


def _level_for(status: int, duration_ms: float) -> int:
    if status >= 500:
        return logging.ERROR
    if status >= 400 or duration_ms >= settings.slow_request_ms:
        return logging.WARNING
    return logging.INFO


class RequestLoggingMiddleware(BaseHTTPMiddleware):

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if request.url.path == "/health":
            return await call_next(request)

        started = time.perf_counter()
        response = await call_next(request)
        duration_ms = (time.perf_counter() - started) * 1000

        route = _route_template(request)
        rid = request_id_var.get("")
        status = response.status_code

        logger.log(
            _level_for(status, duration_ms),
            "%s %s → %d in %.1fms [%s] (path=%s)",
            request.method,
            route,
            status,
            duration_ms,
            rid,
            request.url.path,
            extra={
                "request_id": rid,
                "method": request.method,
                "route": route,
                "status": status,
                "duration_ms": round(duration_ms, 2),
            },
        )
        return response
