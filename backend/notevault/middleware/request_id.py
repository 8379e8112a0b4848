"""
NoteVault Backend — Request ID Middleware
===========================================

What:  Assigns a short correlation ID to each request and returns it in
       the X-Request-ID response header.
How:   Stored in a ContextVar so exception handlers and loggers running in
       the same request can include it; error bodies carry it as `request_id`.
"""

import uuid
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

# Coroutine-local: concurrent requests on one thread each see their own ID
request_id_var: ContextVar[str] = ContextVar("request_id", default="")


def resolve_request_id(request: Request) -> str:
    """The client's X-Request-ID when sent, else a fresh 8-character id."""
    return request.headers.get("X-Request-ID") or uuid.uuid4().hex[:8]


class RequestIDMiddleware(BaseHTTPMiddleware):
    """
    Behavior:
        1. Reuse the client's X-Request-ID header when present
        2. Otherwise generate an 8-character ID
        3. Store it in the ContextVar and request.state
        4. Echo it in the response headers
    """

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        rid = resolve_request_id(request)

        request_id_var.set(rid)
        request.state.request_id = rid

        response = await call_next(request)
        response.headers["X-Request-ID"] = rid

        return response
