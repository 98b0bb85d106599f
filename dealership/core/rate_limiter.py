from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass
from typing import Callable, Awaitable

import redis.asyncio as redis_async
from redis.exceptions import RedisError, WatchError
from fastapi import HTTPException, Request, status

from dealership.core.config import settings
from dealership.core.logging import get_logger

logger = get_logger(__name__)


@dataclass
class RateLimitExceeded(Exception):
    reset_in: float


class RateLimiter:
    """Fixed-window rate limiter backed by Redis when configured, process memory otherwise."""

    def __init__(self, redis_url: str | None = None, prefix: str = "rl") -> None:
        self._prefix = prefix
        self._memory_store: dict[str, tuple[int, float]] = {}
        self._lock = asyncio.Lock()
        self._redis = None
        if redis_url:
            self._redis = redis_async.from_url(
                redis_url,
                encoding="utf-8",
                decode_responses=True,
            )

    async def _hit_redis(self, key: str, limit: int, period_seconds: int) -> float | None:
        if self._redis is None:
            return None

        redis_key = f"{self._prefix}:{key}:{period_seconds}"
        try:
            async with self._redis.pipeline() as pipe:
                while True:
                    try:
                        await pipe.watch(redis_key)
                        current = await pipe.get(redis_key)
                        ttl = await pipe.ttl(redis_key)
                        if current is None:
                            pipe.multi()
                            pipe.set(redis_key, 1, ex=period_seconds, nx=True)
                            await pipe.execute()
                            return float(period_seconds)

                        if int(current) >= limit:
                            ttl = ttl if ttl and ttl > 0 else period_seconds
                            raise RateLimitExceeded(reset_in=float(ttl))

                        pipe.multi()
                        pipe.incr(redis_key, 1)
                        if ttl == -1:
                            pipe.expire(redis_key, period_seconds)
                            ttl = period_seconds
                        await pipe.execute()
                        return float(ttl if ttl and ttl > 0 else period_seconds)
                    except WatchError:  # pragma: no cover - redis race
                        continue
        except RedisError:
            logger.warning("Redis rate limiter unavailable, using memory window", extra={"key": key})
            return None

    async def check(self, key: str, limit: int, period_seconds: int) -> float:
        """Increment the counter and return the remaining window in seconds."""
        ttl = await self._hit_redis(key, limit, period_seconds)
        if ttl is not None:
            return ttl

        now = time.monotonic()
        async with self._lock:
            count, reset_at = self._memory_store.get(key, (0, now + period_seconds))
            if now > reset_at:
                count = 0
                reset_at = now + period_seconds
            if count >= limit:
                raise RateLimitExceeded(reset_in=max(0.0, reset_at - now))
            self._memory_store[key] = (count + 1, reset_at)
            return max(0.0, reset_at - now)

    def reset(self) -> None:
        self._memory_store.clear()


_rate_limiter: RateLimiter | None = None


def get_rate_limiter() -> RateLimiter:
    global _rate_limiter
    if _rate_limiter is None:
        _rate_limiter = RateLimiter(redis_url=settings.REDIS_URL)
    return _rate_limiter


def client_ip(request: Request) -> str:
    if settings.TRUST_FORWARDED_FOR:
        forwarded = request.headers.get("x-forwarded-for", "").split(",")[0].strip()
        if forwarded:
            return forwarded
    return request.client.host if request.client else "anonymous"


def rate_limit(
    limit: int,
    period_seconds: int = 60,
    scope: str = "default",
    identifier: Callable[[Request], str] | None = None,
) -> Callable[[Request], Awaitable[None]]:
    identifier = identifier or client_ip

    async def dependency(request: Request) -> None:
        key = f"{scope}:{identifier(request)}"
        limiter = get_rate_limiter()
        try:
            reset_in = await limiter.check(key, limit=limit, period_seconds=period_seconds)
        except RateLimitExceeded as exc:
            headers = {"Retry-After": str(int(max(1, round(exc.reset_in))))}
            raise HTTPException(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                detail="Too many requests, please slow down.",
                headers=headers,
            ) from exc
        request.state.rate_limit_reset_in = reset_in
        return None

    return dependency
