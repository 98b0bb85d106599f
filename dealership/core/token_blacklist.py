from __future__ import annotations

import time
from typing import Any

import redis.asyncio as redis_async
from jose import JWTError
from redis.exceptions import RedisError

from dealership.core.config import settings
from dealership.core.logging import get_logger

logger = get_logger(__name__)


class TokenBlacklist:
    """Revoked JWT ids, kept in Redis when configured and in process memory otherwise."""

    def __init__(self, redis_url: str | None = None, prefix: str = "jwt-bl") -> None:
        self._prefix = prefix
        self._store: dict[str, float] = {}
        self._redis: redis_async.Redis | None = None
        if redis_url:
            self._redis = redis_async.from_url(redis_url, encoding="utf-8", decode_responses=True)

    def _key(self, jti: str) -> str:
        return f"{self._prefix}:{jti}"

    def _prune(self, now: float) -> None:
        expired = [jti for jti, expires_at in self._store.items() if expires_at < now]
        for jti in expired:
            del self._store[jti]

    async def add(self, jti: str, ttl_seconds: int) -> None:
        ttl = max(int(ttl_seconds), 1)
        if self._redis is not None:
            try:
                await self._redis.setex(self._key(jti), ttl, "1")
                return
            except RedisError:
                logger.warning("Redis unavailable, storing revoked token in memory", extra={"jti": jti})
        now = time.time()
        self._prune(now)
        self._store[jti] = now + ttl

    async def contains(self, jti: str) -> bool:
        if self._redis is not None:
            try:
                if await self._redis.exists(self._key(jti)):
                    return True
            except RedisError:
                logger.warning("Redis unavailable, checking revoked token in memory", extra={"jti": jti})
        expires_at = self._store.get(jti)
        if not expires_at:
            return False
        if expires_at < time.time():
            self._store.pop(jti, None)
            return False
        return True

    def clear(self) -> None:
        self._store.clear()


_blacklist: TokenBlacklist | None = None


def get_blacklist() -> TokenBlacklist:
    global _blacklist
    if _blacklist is None:
        _blacklist = TokenBlacklist(redis_url=settings.REDIS_URL)
    return _blacklist


async def revoke_token(jti: str, expires_in_seconds: int) -> None:
    if not settings.JWT_BLACKLIST_ENABLED or not jti:
        return
    ttl = max(int(expires_in_seconds) + settings.JWT_BLACKLIST_TTL_LEEWAY_SECONDS, 1)
    await get_blacklist().add(jti, ttl)


async def is_token_revoked(jti: str) -> bool:
    if not settings.JWT_BLACKLIST_ENABLED or not jti:
        return False
    return await get_blacklist().contains(jti)


async def ensure_not_revoked(payload: dict[str, Any]) -> dict[str, Any]:
    """Devuelve el payload decodificado o levanta ``JWTError`` si su ``jti`` fue revocado."""
    if await is_token_revoked(payload.get("jti", "")):
        raise JWTError("Token has been revoked")
    return payload
