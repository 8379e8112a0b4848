"""
NoteVault Backend — Rate Limiting Middleware
==============================================

What:  Per-client sliding window limiter with two budgets.
Why:   Every login or registration attempt costs a bcrypt computation, and
       login is where passwords get guessed; those two endpoints get their
       own, tighter budget than ordinary note traffic.
How:   A deque of request timestamps per (client IP, bucket) key, kept in
       process memory. Runs first in the middleware chain.

Buckets:
    credentials  POST /api/auth/login, POST /api/auth/register
    general      everything else except /health and the API docs

Multi-worker deployments each keep their own counters; a shared limit needs
an external store.
"""

import logging
import time
from collections import defaultdict, deque
from typing import Callable, Deque, Dict, Optional, Tuple

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from notevault.exceptions import RateLimitExceededError
from notevault.middleware.request_id import resolve_request_id

logger = logging.getLogger(__name__)

CREDENTIAL_PATHS = frozenset({"/api/auth/login", "/api/auth/register"})
UNLIMITED_PATHS = frozenset({"/health", "/docs", "/openapi.json", "/redoc"})


def bucket_for(method: str, path: str) -> Optional[str]:
    """Returns the budget a request counts against, or None when unlimited."""
    if path in UNLIMITED_PATHS:
        return None
    if method == "POST" and path in CREDENTIAL_PATHS:
        return "credentials"
    return "general"


class RateLimitMiddleware(BaseHTTPMiddleware):
    """
    Args:
        requests: Budget for general API traffic per window
        credential_requests: Budget for login/registration per window
        window: Window length in seconds
        clock: Monotonic time source; tests pass a fake
    """

    def __init__(
        self,
        app,
        requests: int,
        credential_requests: int,
        window: int,
        clock: Callable[[], float] = time.monotonic,
    ):
        super().__init__(app)
        self.limits = {"general": requests, "credentials": credential_requests}
        self.window = window
        self._clock = clock
        self._hits: Dict[Tuple[str, str], Deque[float]] = defaultdict(deque)
        self._since_sweep = 0

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        bucket = bucket_for(request.method, request.url.path)
        if bucket is None:
            return await call_next(request)

        # Behind a proxy this is the proxy's address
        client_ip = request.client.host if request.client else "unknown"
        now = self._clock()
        hits = self._hits[(client_ip, bucket)]
        while hits and hits[0] <= now - self.window:
            hits.popleft()

        if len(hits) >= self.limits[bucket]:
            retry_after = int(hits[0] + self.window - now) + 1
            logger.warning(
                "Rate limit hit: %s exhausted the %s budget (%d per %ds)",
                client_ip,
                bucket,
                self.limits[bucket],
                self.window,
            )
            return self._reject(request, RateLimitExceededError(retry_after=retry_after))

        hits.append(now)
        self._since_sweep += 1
        if self._since_sweep >= 1000:
            self._sweep(now)

        return await call_next(request)

    @staticmethod
    def _reject(request: Request, exc: RateLimitExceededError) -> JSONResponse:
        # Runs outside RequestIDMiddleware and the exception handlers, so the
        # request id and error body are produced here
        rid = resolve_request_id(request)
        return JSONResponse(
            status_code=exc.status_code,
            content={
                "error": exc.error_code,
                "message": exc.message,
                "details": exc.context,
                "request_id": rid,
            },
            headers={"Retry-After": str(exc.retry_after), "X-Request-ID": rid},
        )

    def _sweep(self, now: float) -> None:
        """Forget keys whose newest hit has left the window."""
        stale = [key for key, hits in self._hits.items() if not hits or hits[-1] <= now - self.window]
        for key in stale:
            del self._hits[key]
        self._since_sweep = 0
        if stale:
            logger.debug("Dropped %d idle rate limit keys", len(stale))
