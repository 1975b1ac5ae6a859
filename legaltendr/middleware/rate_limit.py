"""
LegalTendr Backend — Rate Limiting Middleware
===============================================

What:  Per-IP sliding window rate limiter.
Why:   Login and registration are cheap to hammer; so is the swipe endpoint.
How:   Keeps the timestamps of each IP's recent requests in memory, drops the
       ones older than the window and rejects with 429 once the count
       reaches settings.rate_limit_requests.
When:  First middleware to execute.

Limits:
    State lives in the process. Several uvicorn workers each count on their
    own, so the effective limit is workers × rate_limit_requests.
"""

import logging
import time
from collections import defaultdict, deque
from typing import Deque, Dict, Optional

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from legaltendr.config import settings
from legaltendr.exceptions import RateLimitExceededError
from legaltendr.middleware.request_id import request_id_var

logger = logging.getLogger(__name__)


class SlidingWindowCounter:
    """
    Request timestamps per key within a rolling window.

    hit() records a request and returns None, or returns the number of
    seconds until the oldest request leaves the window when the key is over
    its limit (the request is then not recorded).
    """

    def __init__(self, limit: int, window: int):
        self.limit = limit
        self.window = window
        self._hits: Dict[str, Deque[float]] = defaultdict(deque)
        self._calls = 0

    def hit(self, key: str, now: Optional[float] = None) -> Optional[int]:
        now = time.time() if now is None else now
        window_start = now - self.window
        hits = self._hits[key]
        while hits and hits[0] <= window_start:
            hits.popleft()

        if len(hits) >= self.limit:
            return int(hits[0] + self.window - now) + 1

        hits.append(now)
        self._calls += 1
        if self._calls % 1000 == 0:
            self.prune(window_start)
        return None

    def prune(self, window_start: float) -> int:
        """Forget keys with no request inside the window."""
        stale = [key for key, hits in self._hits.items() if not hits or hits[-1] <= window_start]
        for key in stale:
            del self._hits[key]
        if stale:
            logger.debug("Pruned %d idle rate limit keys", len(stale))
        return len(stale)


class RateLimitMiddleware(BaseHTTPMiddleware):
    """
    Applies SlidingWindowCounter per client IP.

    Health checks and API docs are never limited.
    """

    EXCLUDED_PATHS = {"/health", "/docs", "/openapi.json", "/redoc"}

    def __init__(self, app, **kwargs):
        super().__init__(app, **kwargs)
        self.counter = SlidingWindowCounter(
            limit=settings.rate_limit_requests,
            window=settings.rate_limit_window,
        )

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if request.url.path in self.EXCLUDED_PATHS:
            return await call_next(request)

        client_ip = request.client.host if request.client else "unknown"
        retry_after = self.counter.hit(client_ip)
        if retry_after is None:
            return await call_next(request)

        logger.warning(
            "Rate limit exceeded for IP %s: %d requests in %ds window",
            client_ip,
            self.counter.limit,
            self.counter.window,
        )
        # Middleware runs outside the exception handlers; render the same body here
        exc = RateLimitExceededError(retry_after=retry_after)
        return JSONResponse(
            status_code=429,
            content={
                "error": "rate_limit_exceeded",
                "message": exc.message,
                "details": exc.context,
                "request_id": request_id_var.get(""),
            },
            headers={"Retry-After": str(retry_after)},
        )
