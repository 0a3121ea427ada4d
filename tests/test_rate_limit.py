from __future__ import annotations

from fastapi import FastAPI
from fastapi.testclient import TestClient

from authsvc.api.rate_limit import (
    RATE_LIMITED_MESSAGE,
    FixedWindowRateLimiter,
    RateLimitMiddleware,
)


class Clock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


def _app(limiter: FixedWindowRateLimiter) -> FastAPI:
    app = FastAPI()
    app.add_middleware(RateLimitMiddleware, limiter=limiter)

    @app.post("/auth/login")
    def login():
        return {"success": True}

    @app.get("/health")
    def health():
        return {"success": True}

    return app


def test_limiter_allows_up_to_max_then_rejects_until_next_window():
    clock = Clock(now=1000.0)
    limiter = FixedWindowRateLimiter(max_requests=2, window_seconds=900, clock=clock)

    assert limiter.hit("1.2.3.4") == (True, 0)
    assert limiter.hit("1.2.3.4") == (True, 0)
    allowed, retry_after = limiter.hit("1.2.3.4")
    assert allowed is False
    assert retry_after == 800
    assert limiter.hit("5.6.7.8") == (True, 0)

    clock.now = 1800.0
    assert limiter.hit("1.2.3.4") == (True, 0)


def test_limiter_reset_forgets_counts():
    limiter = FixedWindowRateLimiter(max_requests=1, window_seconds=60, clock=Clock())
    limiter.hit("ip")
    assert limiter.hit("ip")[0] is False

    limiter.reset()

    assert limiter.hit("ip")[0] is True


def test_middleware_returns_envelope_429():
    limiter = FixedWindowRateLimiter(max_requests=3, window_seconds=900, clock=Clock())
    client = TestClient(_app(limiter))

    statuses = [client.post("/auth/login").status_code for _ in range(4)]
    rejected = client.post("/auth/login")

    assert statuses == [200, 200, 200, 429]
    assert rejected.status_code == 429
    assert rejected.json() == {"success": False, "message": RATE_LIMITED_MESSAGE}
    assert int(rejected.headers["Retry-After"]) > 0


def test_middleware_does_not_count_health_checks():
    limiter = FixedWindowRateLimiter(max_requests=1, window_seconds=900, clock=Clock())
    client = TestClient(_app(limiter))

    for _ in range(3):
        assert client.get("/health").status_code == 200
    assert client.post("/auth/login").status_code == 200
    assert client.post("/auth/login").status_code == 429
