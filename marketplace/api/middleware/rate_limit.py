"""Rate limiting middleware for the authentication endpoints.

Sliding-window limits per client IP, stored in Redis so every API worker
shares the same counters:
- Sign-in attempts
- Sign-up attempts
- Password reset requests

Falls back to allowing requests when Redis is unavailable. Exceeded limits
return HTTP 429 with a Retry-After header.
"""

import hashlib
import logging
import time
from typing import Dict, Optional, Tuple

import redis.asyncio as redis
from fastapi import Request, Response, status
from fastapi.responses import JSONResponse
from redis.exceptions import RedisError
from starlette.middleware.base import BaseHTTPMiddleware

from marketplace.api.deps import client_ip
from marketplace.api.schemas.common import ErrorResponse
from marketplace.core.config import Settings, get_settings

logger = logging.getLogger(__name__)


class RateLimiter:
    """
    Sliding window rate limiter using Redis sorted sets.

    Falls back to allowing requests if Redis is unavailable.
    """

    def __init__(self, redis_url: Optional[str] = None, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()
        self.redis_url = redis_url or self.settings.redis_url
        self.window = self.settings.rate_limit_window
        self._redis: Optional[redis.Redis] = None

    async def get_redis(self) -> Optional[redis.Redis]:
        """Get or create Redis connection."""
        if self._redis is None:
            try:
                client = redis.from_url(
                    self.redis_url,
                    encoding="utf-8",
                    decode_responses=True,
                    socket_connect_timeout=2,
                    socket_timeout=2,
                )
                await client.ping()
                self._redis = client
            except (RedisError, OSError):
                logger.warning("Redis unavailable, rate limiting disabled for this request")
                return None
        return self._redis

    def _get_key(self, identifier: str, endpoint: str) -> str:
        """Generate Redis key for rate limiting."""
        # Hash the identifier for privacy
        hashed = hashlib.sha256(identifier.encode()).hexdigest()[:16]
        return f"ratelimit:{endpoint}:{hashed}"

    async def is_allowed(
        self,
        identifier: str,
        endpoint: str,
        limit: int,
        window: Optional[int] = None,
    ) -> Tuple[bool, int, int]:
        """
        Check if request is allowed under rate limit.

        Returns:
            Tuple of (allowed, remaining, reset_time)
        """
        r = await self.get_redis()
        if r is None:
            return True, limit, 0

        window = window or self.window
        key = self._get_key(identifier, endpoint)
        now = time.time()

        try:
            async with r.pipeline(transaction=True) as pipe:
                pipe.zremrangebyscore(key, 0, now - window)
                pipe.zcard(key)
                pipe.zadd(key, {f"{now:.6f}": now})
                pipe.expire(key, window)
                results = await pipe.execute()
        except (RedisError, OSError):
            logger.warning("Rate limit check failed, allowing request")
            return True, limit, 0

        current_count = results[1]
        reset_time = int(now) + window
        if current_count >= limit:
            return False, 0, reset_time
        return True, max(0, limit - current_count - 1), reset_time

    async def close(self):
        """Close Redis connection."""
        if self._redis:
            await self._redis.aclose()


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Applies per-IP limits to the authentication endpoints."""

    def __init__(self, app, limiter: Optional[RateLimiter] = None, settings: Optional[Settings] = None):
        super().__init__(app)
        settings = settings or get_settings()
        self.limiter = limiter or RateLimiter(settings=settings)
        self.limits: Dict[str, Tuple[str, int]] = {
            "/api/auth/sign-in": ("sign_in", settings.rate_limit_sign_in),
            "/api/auth/sign-up": ("sign_up", settings.rate_limit_sign_up),
            "/api/auth/password-reset": ("password_reset", settings.rate_limit_password_reset),
        }

    async def dispatch(self, request: Request, call_next) -> Response:
        rule = self.limits.get(request.url.path.rstrip("/"))
        if rule is None or request.method != "POST":
            return await call_next(request)

        endpoint, limit = rule
        allowed, remaining, reset_time = await self.limiter.is_allowed(
            identifier=client_ip(request) or "unknown",
            endpoint=endpoint,
            limit=limit,
        )

        if not allowed:
            retry_after = max(1, reset_time - int(time.time()))
            logger.warning("Rate limit exceeded on %s", endpoint)
            body = ErrorResponse(
                error="Too many requests",
                detail="Rate limit exceeded. Please try again later.",
                code="RATE_LIMITED",
            )
            return JSONResponse(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                content=body.model_dump(exclude_none=True),
                headers={
                    "Retry-After": str(retry_after),
                    "X-RateLimit-Limit": str(limit),
                    "X-RateLimit-Remaining": "0",
                    "X-RateLimit-Reset": str(reset_time),
                },
            )

        response = await call_next(request)
        response.headers["X-RateLimit-Limit"] = str(limit)
        response.headers["X-RateLimit-Remaining"] = str(remaining)
        if reset_time:
            response.headers["X-RateLimit-Reset"] = str(reset_time)
        return response
