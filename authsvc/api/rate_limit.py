from __future__ import annotations

import logging
import math
import threading
import time
from typing import Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from authsvc.api.responses import error_response


logger = logging.getLogger(__name__)

RATE_LIMITED_MESSAGE = "Too many requests from this IP, please try again later."
EXEMPT_PATHS = ("/health",)
MAX_TRACKED_CLIENTS = 10_000


class FixedWindowRateLimiter:
    """Per-key request counter over fixed windows of ``window_seconds``."""

    def __init__(
        self,
        *,
        max_requests: int,
        window_seconds: int,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._clock = clock
        self._buckets: dict[str, tuple[int, int]] = {}
        self._lock = threading.Lock()

    def hit(self, key: str) -> tuple[bool, int]:
        """Count one request; return ``(allowed, retry_after_seconds)``."""
        now = self._clock()
        slot = int(now // self.window_seconds)
        with self._lock:
            if len(self._buckets) > MAX_TRACKED_CLIENTS:
                self._buckets = {k: v for k, v in self._buckets.items() if v[0] == slot}
            last_slot, count = self._buckets.get(key, (slot, 0))
            if last_slot != slot:
                count = 0
            count += 1
            self._buckets[key] = (slot, count)

        if count <= self.max_requests:
            return True, 0
        retry_after = math.ceil((slot + 1) * self.window_seconds - now)
        return False, max(retry_after, 1)

    def reset(self) -> None:
        with self._lock:
            self._buckets.clear()


class RateLimitMiddleware(BaseHTTPMiddleware):
    def __init__(self, app: ASGIApp, *, limiter: FixedWindowRateLimiter):
        super().__init__(app)
        self._limiter = limiter

    async def dispatch(self, request, call_next):
        path = request.url.path
        if request.method == "OPTIONS" or path.startswith(EXEMPT_PATHS):
            return await call_next(request)

        ip = request.client.host if request.client else "0.0.0.0"
        allowed, retry_after = self._limiter.hit(ip)
        if not allowed:
            logger.warning("rate_limit: rejected ip=%s path=%s", ip, path)
            response = error_response(429, RATE_LIMITED_MESSAGE)
            response.headers["Retry-After"] = str(retry_after)
            return response
        return await call_next(request)
