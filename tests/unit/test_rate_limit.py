"""Tests for the authentication rate limiter."""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from redis.exceptions import ConnectionError as RedisConnectionError

from marketplace.api.middleware.rate_limit import RateLimiter, RateLimitMiddleware
from marketplace.core.config import Settings


@pytest.fixture()
def settings():
    return Settings(rate_limit_sign_in=2, rate_limit_window=60)


def _app(limiter, settings):
    app = FastAPI()
    app.add_middleware(RateLimitMiddleware, limiter=limiter, settings=settings)

    @app.post("/api/auth/sign-in")
    def sign_in():
        return {"ok": True}

    @app.get("/api/events")
    def events():
        return []

    return app


def _limiter(allowed, remaining=1, reset=0):
    limiter = MagicMock(spec=RateLimiter)
    limiter.is_allowed = AsyncMock(return_value=(allowed, remaining, reset))
    return limiter


def test_allowed_request_gets_limit_headers(settings):
    limiter = _limiter(True, remaining=1, reset=1700000000)
    client = TestClient(_app(limiter, settings))

    response = client.post("/api/auth/sign-in")

    assert response.status_code == 200
    assert response.headers["X-RateLimit-Limit"] == "2"
    assert response.headers["X-RateLimit-Remaining"] == "1"
    assert limiter.is_allowed.await_args.kwargs["endpoint"] == "sign_in"


def test_blocked_request_gets_429(settings):
    limiter = _limiter(False, remaining=0, reset=4102444800)
    client = TestClient(_app(limiter, settings))

    response = client.post("/api/auth/sign-in")

    assert response.status_code == 429
    assert response.json()["code"] == "RATE_LIMITED"
    assert int(response.headers["Retry-After"]) >= 1


def test_unlimited_paths_skip_the_limiter(settings):
    limiter = _limiter(False)
    client = TestClient(_app(limiter, settings))

    assert client.get("/api/events").status_code == 200
    limiter.is_allowed.assert_not_awaited()


def test_forwarded_address_is_the_identifier(settings):
    limiter = _limiter(True)
    client = TestClient(_app(limiter, settings))

    client.post("/api/auth/sign-in", headers={"X-Forwarded-For": "203.0.113.7, 10.0.0.1"})

    assert limiter.is_allowed.await_args.kwargs["identifier"] == "203.0.113.7"


def test_limiter_fails_open_without_redis(settings):
    limiter = RateLimiter(settings=settings)
    limiter.get_redis = AsyncMock(return_value=None)

    assert asyncio.run(limiter.is_allowed("1.2.3.4", "sign_in", limit=2)) == (True, 2, 0)


def test_limiter_fails_open_when_redis_errors(settings):
    pipe = MagicMock()
    pipe.execute = AsyncMock(side_effect=RedisConnectionError("gone"))
    pipeline = MagicMock()
    pipeline.__aenter__ = AsyncMock(return_value=pipe)
    pipeline.__aexit__ = AsyncMock(return_value=False)
    client = MagicMock()
    client.pipeline.return_value = pipeline

    limiter = RateLimiter(settings=settings)
    limiter.get_redis = AsyncMock(return_value=client)

    assert asyncio.run(limiter.is_allowed("1.2.3.4", "sign_in", limit=2)) == (True, 2, 0)


def test_limiter_counts_within_window(settings):
    pipe = MagicMock()
    pipe.execute = AsyncMock(side_effect=[[0, 0, 1, True], [0, 1, 1, True], [0, 2, 1, True]])
    pipeline = MagicMock()
    pipeline.__aenter__ = AsyncMock(return_value=pipe)
    pipeline.__aexit__ = AsyncMock(return_value=False)
    client = MagicMock()
    client.pipeline.return_value = pipeline

    limiter = RateLimiter(settings=settings)
    limiter.get_redis = AsyncMock(return_value=client)

    async def three_attempts():
        return [await limiter.is_allowed("1.2.3.4", "sign_in", limit=2) for _ in range(3)]

    first, second, third = asyncio.run(three_attempts())
    assert first[:2] == (True, 1)
    assert second[:2] == (True, 0)
    assert third[:2] == (False, 0)
