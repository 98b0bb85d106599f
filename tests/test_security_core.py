# tests/test_security_core.py
import pytest
from jose import JWTError

from dealership.core.login_guard import AccountLocked, LoginGuard
from dealership.core.rate_limiter import RateLimiter, RateLimitExceeded
from dealership.core.security import (
    create_access_token,
    create_password_reset_token,
    create_refresh_token,
    decode_access_token,
    decode_password_reset_token,
    decode_refresh_token,
    get_password_hash,
    password_fingerprint_matches,
    verify_password,
)
from dealership.core.token_blacklist import TokenBlacklist, ensure_not_revoked, revoke_token


def test_password_hashing():
    hashed = get_password_hash("Secret123")
    assert hashed != "Secret123"
    assert verify_password("Secret123", hashed)
    assert not verify_password("secret123", hashed)


def test_access_and_refresh_tokens_are_not_interchangeable():
    access = create_access_token("user-1", extra={"scopes": ["users:me"]})
    refresh = create_refresh_token("user-1")

    assert decode_access_token(access)["scopes"] == ["users:me"]
    assert decode_refresh_token(refresh)["sub"] == "user-1"
    with pytest.raises(JWTError):
        decode_access_token(refresh)
    with pytest.raises(JWTError):
        decode_refresh_token(access)


@pytest.mark.asyncio
async def test_revoked_access_token_is_rejected():
    access = create_access_token("user-2")
    payload = await ensure_not_revoked(decode_access_token(access))
    await revoke_token(payload["jti"], 60)
    with pytest.raises(JWTError):
        await ensure_not_revoked(decode_access_token(access))


def test_reset_token_tracks_password_hash():
    hashed = get_password_hash("Original123")
    token = create_password_reset_token("user-3", hashed)
    user_id, fingerprint = decode_password_reset_token(token)
    assert user_id == "user-3"
    assert password_fingerprint_matches(hashed, fingerprint)
    assert not password_fingerprint_matches(get_password_hash("Original123"), fingerprint)

    with pytest.raises(JWTError):
        decode_password_reset_token(create_access_token("user-3"))


@pytest.mark.asyncio
async def test_memory_blacklist_expires():
    blacklist = TokenBlacklist()
    await blacklist.add("jti-1", 60)
    assert await blacklist.contains("jti-1")
    assert not await blacklist.contains("jti-2")
    blacklist._store["jti-1"] = 0
    assert not await blacklist.contains("jti-1")

    # las entradas vencidas se purgan al revocar otro token
    blacklist._store["jti-2"] = 0
    await blacklist.add("jti-3", 60)
    assert set(blacklist._store) == {"jti-3"}


@pytest.mark.asyncio
async def test_memory_rate_limiter_window():
    limiter = RateLimiter()
    await limiter.check("ip", limit=2, period_seconds=60)
    await limiter.check("ip", limit=2, period_seconds=60)
    with pytest.raises(RateLimitExceeded) as excinfo:
        await limiter.check("ip", limit=2, period_seconds=60)
    assert 0 < excinfo.value.reset_in <= 60

    # otra clave tiene su propio contador
    await limiter.check("other-ip", limit=2, period_seconds=60)

    limiter.reset()
    await limiter.check("ip", limit=2, period_seconds=60)


@pytest.mark.asyncio
async def test_login_guard_locks_and_unlocks():
    guard = LoginGuard(max_attempts=3, lockout_seconds=1800)
    for expected in (1, 2):
        assert await guard.register_failure("Someone@Example.com") == expected
        await guard.ensure_not_locked("someone@example.com")

    assert await guard.register_failure("someone@example.com") == 3
    with pytest.raises(AccountLocked) as excinfo:
        await guard.ensure_not_locked("someone@example.com")
    assert excinfo.value.minutes_remaining == 30

    await guard.register_success("someone@example.com")
    await guard.ensure_not_locked("someone@example.com")


@pytest.mark.asyncio
async def test_login_guard_lock_expires(monkeypatch):
    guard = LoginGuard(max_attempts=1, lockout_seconds=60)
    await guard.register_failure("late@example.com")
    with pytest.raises(AccountLocked):
        await guard.ensure_not_locked("late@example.com")

    guard._locked_until["late@example.com"] = 0.0
    await guard.ensure_not_locked("late@example.com")


@pytest.mark.asyncio
async def test_login_guard_forgets_stale_failures():
    guard = LoginGuard(max_attempts=5, lockout_seconds=900)
    await guard.register_failure("ghost1@example.com")
    await guard.register_failure("ghost2@example.com")
    assert set(guard._attempts) == {"ghost1@example.com", "ghost2@example.com"}

    # la ventana de ghost1 ya venció: se descarta en el próximo fallo
    count, _ = guard._attempts["ghost1@example.com"]
    guard._attempts["ghost1@example.com"] = (count, 0.0)
    assert await guard.register_failure("ghost2@example.com") == 2
    assert set(guard._attempts) == {"ghost2@example.com"}

    guard._attempts["ghost2@example.com"] = (2, 0.0)
    assert await guard.register_failure("ghost2@example.com") == 1


def test_service_errors_map_to_http_status():
    from dealership.api.error_handlers import status_for
    from dealership.services.exceptions import (
        DuplicateResourceError,
        InsufficientStockError,
        InvalidStatusTransitionError,
        PermissionDeniedError,
        ResourceNotFoundError,
        ServiceError,
    )

    assert status_for(ResourceNotFoundError("x")) == 404
    assert status_for(InsufficientStockError("x")) == 409
    assert status_for(InvalidStatusTransitionError("x")) == 409
    assert status_for(PermissionDeniedError("x")) == 403
    assert status_for(DuplicateResourceError("x")) == 400
    assert status_for(ServiceError("x")) == 400


def test_client_ip_uses_forwarded_header_only_when_trusted(monkeypatch):
    from starlette.requests import Request

    from dealership.core.config import settings
    from dealership.core.rate_limiter import client_ip

    request = Request(
        {
            "type": "http",
            "method": "POST",
            "path": "/",
            "headers": [(b"x-forwarded-for", b"203.0.113.9, 10.0.0.1")],
            "client": ("10.0.0.1", 4000),
        }
    )
    assert client_ip(request) == "10.0.0.1"

    monkeypatch.setattr(settings, "TRUST_FORWARDED_FOR", True)
    assert client_ip(request) == "203.0.113.9"
