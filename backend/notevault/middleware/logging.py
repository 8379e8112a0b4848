"""
NoteVault Backend — Access Log Middleware
===========================================

What:  Writes one line to the `notevault.access` logger per request.
How:   Times the downstream call and picks the level from the status code.

Never logged: request bodies (passwords, note text), the Authorization
header, or anything derived from a token.
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from notevault.middleware.request_id import request_id_var

logger = logging.getLogger("notevault.access")

QUIET_PATHS = frozenset({"/health"})


def level_for_status(status: int) -> int:
    if status >= 500:
        return logging.ERROR
    if status >= 400:
        return logging.WARNING
    return logging.INFO


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Login and registration dominate latency here; bcrypt runs in the thread pool."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if request.url.path in QUIET_PATHS:
            return await call_next(request)

        started = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - started) * 1000

        fields = {
            "request_id": request_id_var.get(""),
            "method": request.method,
            "path": request.url.path,
            "status": response.status_code,
            "duration_ms": round(elapsed_ms, 2),
            "client_ip": request.client.host if request.client else "unknown",
        }
        logger.log(
            level_for_status(response.status_code),
            "[%(request_id)s] %(method)s %(path)s -> %(status)d in %(duration_ms).1fms (%(client_ip)s)",
            fields,
        )
        return response
