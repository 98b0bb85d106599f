from __future__ import annotations

import hashlib
from datetime import datetime, timedelta, timezone
from typing import Any, Union
from uuid import uuid4

from jose import JWTError, jwt
from passlib.context import CryptContext

from dealership.core.config import settings

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")
ALGORITHM = settings.JWT_ALGORITHM
_RESERVED_EXTRA_CLAIMS = {"sub", "exp", "type", "jti", "iat"}


def _now() -> datetime:
    return datetime.now(timezone.utc)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def _apply_extra_claims(payload: dict[str, Any], extra: dict[str, Any] | None) -> None:
    if not extra:
        return
    for key, value in extra.items():
        if key in _RESERVED_EXTRA_CLAIMS:
            continue
        payload[key] = value


def _ensure_header_algorithm(token: str) -> None:
    try:
        header = jwt.get_unverified_header(token)
    except JWTError as exc:
        raise JWTError("Invalid token header") from exc
    if header.get("alg") != ALGORITHM:
        raise JWTError("Token signed with unexpected algorithm")


def _candidate_secrets(primary: str | None, fallbacks: list[str]) -> list[str]:
    seen: list[str] = []
    for item in [primary, *fallbacks]:
        if item and item not in seen:
            seen.append(item)
    return seen


def _decode_with_rotation(token: str, primary: str | None, fallbacks: list[str]) -> dict[str, Any]:
    _ensure_header_algorithm(token)
    last_error: JWTError | None = None
    for secret in _candidate_secrets(primary, fallbacks):
        try:
            return jwt.decode(token, secret, algorithms=[ALGORITHM])
        except JWTError as exc:
            last_error = exc
    raise last_error or JWTError("Unable to decode token with provided secrets")


def create_access_token(
    subject: Union[str, int],
    expires_minutes: int | None = None,
    extra: dict[str, Any] | None = None,
) -> str:
    exp_min = expires_minutes or settings.ACCESS_TOKEN_EXPIRE_MINUTES
    now = _now()
    payload: dict[str, Any] = {
        "sub": str(subject),
        "type": "access",
        "exp": now + timedelta(minutes=exp_min),
        "iat": int(now.timestamp()),
        "jti": uuid4().hex,
    }
    _apply_extra_claims(payload, extra)
    return jwt.encode(payload, settings.SECRET_KEY, algorithm=ALGORITHM)


def create_refresh_token(
    subject: Union[str, int],
    expires_days: int | None = None,
    extra: dict[str, Any] | None = None,
) -> str:
    exp_days = expires_days or settings.REFRESH_TOKEN_EXPIRE_DAYS
    now = _now()
    payload: dict[str, Any] = {
        "sub": str(subject),
        "type": "refresh",
        "exp": now + timedelta(days=exp_days),
        "iat": int(now.timestamp()),
        "jti": uuid4().hex,
    }
    _apply_extra_claims(payload, extra)
    return jwt.encode(payload, settings.refresh_secret_fallback, algorithm=ALGORITHM)


def decode_access_token(token: str) -> dict[str, Any]:
    """Verify signature, expiry and type. Revocation is checked by ``token_blacklist.ensure_not_revoked``."""
    data = _decode_with_rotation(token, settings.SECRET_KEY, settings.SECRET_KEY_FALLBACKS)
    if data.get("type") != "access":
        raise JWTError("Invalid token type")
    return data


def decode_refresh_token(token: str) -> dict[str, Any]:
    primary = settings.refresh_secret_fallback
    fallbacks: list[str] = list(settings.REFRESH_SECRET_KEY_FALLBACKS)
    if settings.REFRESH_SECRET_KEY:
        fallbacks.extend(settings.SECRET_KEY_FALLBACKS + [settings.SECRET_KEY])
    else:
        fallbacks.extend(settings.SECRET_KEY_FALLBACKS)
    data = _decode_with_rotation(token, primary, fallbacks)
    if data.get("type") != "refresh":
        raise JWTError("Invalid token type")
    return data


def token_seconds_remaining(payload: dict[str, Any]) -> int:
    exp = payload.get("exp")
    if exp is None:
        return 0
    return max(int(exp - _now().timestamp()), 0)


def _password_fingerprint(hashed_password: str) -> str:
    # Changes whenever the password hash changes, so a used reset link stops working.
    return hashlib.sha256(hashed_password.encode("utf-8")).hexdigest()[:16]


def create_password_reset_token(user_id: str, hashed_password: str) -> str:
    now = _now()
    payload = {
        "sub": str(user_id),
        "type": "password_reset",
        "pwd": _password_fingerprint(hashed_password),
        "exp": now + timedelta(minutes=settings.PASSWORD_RESET_TOKEN_EXPIRE_MINUTES),
        "iat": int(now.timestamp()),
    }
    return jwt.encode(payload, settings.SECRET_KEY, algorithm=ALGORITHM)


def decode_password_reset_token(token: str) -> tuple[str, str]:
    """Return ``(user_id, password_fingerprint)`` for a valid reset token."""
    data = _decode_with_rotation(token, settings.SECRET_KEY, settings.SECRET_KEY_FALLBACKS)
    if data.get("type") != "password_reset":
        raise JWTError("Invalid token type")
    return str(data["sub"]), str(data.get("pwd", ""))


def password_fingerprint_matches(hashed_password: str, fingerprint: str) -> bool:
    return _password_fingerprint(hashed_password) == fingerprint
