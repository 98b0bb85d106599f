"""Per-account failed login tracking and temporary lockout."""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass

import redis.asyncio as redis_async
from redis.exceptions import RedisError

from dealership.core.config import settings
from dealership.core.logging import get_logger

logger = get_logger(__name__)


@dataclass
class AccountLocked(Exception):
    unlock_in: float

    @property
    def minutes_remaining(self) -> int:
        return max(1, int((self.unlock_in + 59) // 60))


class LoginGuard:
    """Counts failed logins per email and locks the account once the limit is reached."""

    def __init__(
        self,
        max_attempts: int,
        lockout_seconds: int,
        redis_url: str | None = None,
        prefix: str = "login",
    ) -> None:
        self.max_attempts = max_attempts
        self.lockout_seconds = lockout_seconds
        self._prefix = prefix
        # email -> (fallos, vence); igual que el TTL de la clave en Redis
        self._attempts: dict[str, tuple[int, float]] = {}
        self._locked_until: dict[str, float] = {}
        self._lock = asyncio.Lock()
        self._redis = None
        if redis_url:
            self._redis = redis_async.from_url(redis_url, encoding="utf-8", decode_responses=True)

    @staticmethod
    def _normalize(email: str) -> str:
        return email.strip().lower()

    def _attempts_key(self, email: str) -> str:
        return f"{self._prefix}:attempts:{email}"

    def _lock_key(self, email: str) -> str:
        return f"{self._prefix}:locked:{email}"

    async def ensure_not_locked(self, email: str) -> None:
        """Raise ``AccountLocked`` while the lockout window is open."""
        email = self._normalize(email)
        if self._redis is not None:
            try:
                ttl = await self._redis.ttl(self._lock_key(email))
                if ttl and ttl > 0:
                    raise AccountLocked(unlock_in=float(ttl))
                return
            except RedisError:
                logger.warning("Redis login guard unavailable, using memory", extra={"email": email})

        now = time.monotonic()
        async with self._lock:
            locked_until = self._locked_until.get(email)
            if locked_until is None:
                return
            if locked_until <= now:
                self._locked_until.pop(email, None)
                self._attempts.pop(email, None)
                return
            raise AccountLocked(unlock_in=locked_until - now)

    async def register_failure(self, email: str) -> int:
        """Record a failed attempt; returns the count and locks the account at the limit."""
        email = self._normalize(email)
        if self._redis is not None:
            try:
                count = int(await self._redis.incr(self._attempts_key(email)))
                await self._redis.expire(self._attempts_key(email), self.lockout_seconds)
                if count >= self.max_attempts:
                    await self._redis.set(self._lock_key(email), "1", ex=self.lockout_seconds)
                    await self._redis.delete(self._attempts_key(email))
                return count
            except RedisError:
                logger.warning("Redis login guard unavailable, using memory", extra={"email": email})

        now = time.monotonic()
        async with self._lock:
            self._prune(now)
            previous, _ = self._attempts.get(email, (0, now))
            count = previous + 1
            self._attempts[email] = (count, now + self.lockout_seconds)
            if count >= self.max_attempts:
                self._locked_until[email] = now + self.lockout_seconds
                self._attempts.pop(email, None)
            return count

    def _prune(self, now: float) -> None:
        for email in [key for key, (_, expires_at) in self._attempts.items() if expires_at <= now]:
            del self._attempts[email]
        for email in [key for key, until in self._locked_until.items() if until <= now]:
            del self._locked_until[email]

    async def register_success(self, email: str) -> None:
        email = self._normalize(email)
        if self._redis is not None:
            try:
                await self._redis.delete(self._attempts_key(email), self._lock_key(email))
                return
            except RedisError:
                logger.warning("Redis login guard unavailable, using memory", extra={"email": email})
        async with self._lock:
            self._attempts.pop(email, None)
            self._locked_until.pop(email, None)

    def reset(self) -> None:
        self._attempts.clear()
        self._locked_until.clear()


_login_guard: LoginGuard | None = None


def get_login_guard() -> LoginGuard:
    global _login_guard
    if _login_guard is None:
        _login_guard = LoginGuard(
            max_attempts=settings.LOGIN_MAX_FAILED_ATTEMPTS,
            lockout_seconds=settings.LOGIN_LOCKOUT_MINUTES * 60,
            redis_url=settings.REDIS_URL,
        )
    return _login_guard
