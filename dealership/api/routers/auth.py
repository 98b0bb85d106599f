from __future__ import annotations

import uuid

from fastapi import APIRouter, Body, Depends, HTTPException, Request, Response, status
from fastapi.security import OAuth2PasswordRequestForm
from jose import JWTError
from sqlalchemy.ext.asyncio import AsyncSession

from dealership.api.deps import get_current_active_user, oauth2_scheme, scopes_for
from dealership.core.config import settings
from dealership.core.logging import get_logger, security_alert
from dealership.core.login_guard import AccountLocked, get_login_guard
from dealership.core.metrics import record_login_attempt
from dealership.core.rate_limiter import client_ip, rate_limit
from dealership.core.security import (
    create_access_token,
    create_password_reset_token,
    create_refresh_token,
    decode_access_token,
    decode_password_reset_token,
    decode_refresh_token,
    token_seconds_remaining,
)
from dealership.core.token_blacklist import ensure_not_revoked, revoke_token
from dealership.db.operations import commit_async, rollback_async
from dealership.db.session_async import get_async_db
from dealership.models.user import User
from dealership.schemas.auth import (
    ForgotPasswordRequest,
    RefreshRequest,
    ResetPasswordRequest,
    TokenPair,
    TokenRefresh,
)
from dealership.schemas.user import UserCreate, UserRead
from dealership.services import email_service, user_service

router = APIRouter(prefix="/auth", tags=["auth"])

auth_logger = get_logger("dealership.auth")

login_rate_limit = rate_limit(
    settings.RATE_LIMIT_LOGIN_PER_WINDOW,
    settings.RATE_LIMIT_LOGIN_WINDOW_SECONDS,
    scope="login",
)
registration_rate_limit = rate_limit(
    settings.RATE_LIMIT_REGISTRATION_PER_WINDOW,
    settings.RATE_LIMIT_REGISTRATION_WINDOW_SECONDS,
    scope="register",
)
password_reset_rate_limit = rate_limit(
    settings.RATE_LIMIT_REGISTRATION_PER_WINDOW,
    settings.RATE_LIMIT_REGISTRATION_WINDOW_SECONDS,
    scope="password-reset",
)


def _locked_exception(exc: AccountLocked) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_423_LOCKED,
        detail=(
            "Account temporarily locked due to too many failed login attempts. "
            f"Try again in {exc.minutes_remaining} minutes."
        ),
        headers={"Retry-After": str(int(max(1, round(exc.unlock_in))))},
    )


def _token_pair(user: User) -> dict:
    user_scopes = scopes_for(user)
    return {
        "access_token": create_access_token(subject=user.id, extra={"scopes": user_scopes}),
        "refresh_token": create_refresh_token(subject=user.id, extra={"scopes": user_scopes}),
        "token_type": "bearer",
        "expires_in": settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        "user": UserRead.model_validate(user),
    }


@router.post(
    "/register",
    response_model=UserRead,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(registration_rate_limit)],
)
async def register(data: UserCreate, db: AsyncSession = Depends(get_async_db)):
    try:
        user = await user_service.create_user(db, data)
        await commit_async(db)
    except Exception:
        await rollback_async(db)
        raise
    auth_logger.info("User registered", extra={"user_id": str(user.id), "email": user.email})
    return user


@router.post("/login", response_model=TokenPair, dependencies=[Depends(login_rate_limit)])
async def login(
    request: Request,
    form_data: OAuth2PasswordRequestForm = Depends(),
    db: AsyncSession = Depends(get_async_db),
):
    guard = get_login_guard()
    email = user_service.normalize_email(form_data.username)
    ip = client_ip(request)

    try:
        await guard.ensure_not_locked(email)
    except AccountLocked as exc:
        record_login_attempt("locked")
        security_alert("Login attempt on locked account", email=email, client_ip=ip)
        raise _locked_exception(exc) from exc

    user = await user_service.authenticate(db, email, form_data.password)
    if not user:
        failures = await guard.register_failure(email)
        record_login_attempt("failure")
        security_alert("Failed login attempt", email=email, client_ip=ip, failures=failures)
        if failures >= guard.max_attempts:
            security_alert("Account locked after repeated failures", email=email, client_ip=ip)
            raise _locked_exception(AccountLocked(unlock_in=float(guard.lockout_seconds)))
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Incorrect email or password",
        )

    if not user.is_active:
        record_login_attempt("inactive")
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Inactive user")

    await guard.register_success(email)
    record_login_attempt("success")
    await user_service.mark_login(db, user)
    await commit_async(db)

    auth_logger.info(
        "User authenticated",
        extra={"user_id": str(user.id), "email": user.email, "client_ip": ip},
    )
    return _token_pair(user)


@router.post("/refresh", response_model=TokenRefresh)
async def refresh_token(payload: RefreshRequest, db: AsyncSession = Depends(get_async_db)):
    try:
        data = await ensure_not_revoked(decode_refresh_token(payload.refresh_token))
        user_id = uuid.UUID(str(data["sub"]))
    except (JWTError, KeyError, ValueError) as exc:
        security_alert("Refresh token validation failed", reason=str(exc))
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid refresh token",
        ) from exc

    user = await db.get(User, user_id)
    if user is None or not user.is_active:
        security_alert("Refresh token used for missing or inactive user", user_id=str(user_id))
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid refresh token")

    new_access = create_access_token(subject=user.id, extra={"scopes": scopes_for(user)})
    return {
        "access_token": new_access,
        "token_type": "bearer",
        "expires_in": settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
    }


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
async def logout(
    payload: RefreshRequest | None = Body(default=None),
    token: str = Depends(oauth2_scheme),
    current_user: User = Depends(get_current_active_user),
):
    access = decode_access_token(token)
    await revoke_token(access["jti"], token_seconds_remaining(access))
    if payload is not None:
        try:
            refresh = decode_refresh_token(payload.refresh_token)
        except JWTError:
            refresh = None
        if refresh and refresh.get("sub") == str(current_user.id):
            await revoke_token(refresh["jti"], token_seconds_remaining(refresh))
    auth_logger.info("User logged out", extra={"user_id": str(current_user.id)})
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/password/forgot",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[Depends(password_reset_rate_limit)],
)
async def forgot_password(payload: ForgotPasswordRequest, db: AsyncSession = Depends(get_async_db)):
    user = await user_service.get_by_email(db, payload.email)
    if user and user.is_active:
        token = create_password_reset_token(str(user.id), user.hashed_password)
        email_service.send_password_reset(user, token)
        auth_logger.info("Password reset requested", extra={"user_id": str(user.id)})
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/password/reset", status_code=status.HTTP_204_NO_CONTENT)
async def reset_password(payload: ResetPasswordRequest, db: AsyncSession = Depends(get_async_db)):
    try:
        user_id, fingerprint = decode_password_reset_token(payload.token)
        user_uuid = uuid.UUID(user_id)
    except (JWTError, ValueError) as exc:
        raise HTTPException(status_code=400, detail="Invalid or expired token") from exc

    user = await db.get(User, user_uuid)
    if not user or not user.is_active:
        raise HTTPException(status_code=400, detail="Invalid or expired token")

    try:
        await user_service.reset_password(db, user, fingerprint, payload.new_password)
        await commit_async(db)
    except Exception:
        await rollback_async(db)
        raise
    await get_login_guard().register_success(user.email)
    security_alert("Password reset completed", user_id=str(user.id))
    return Response(status_code=status.HTTP_204_NO_CONTENT)
