from __future__ import annotations

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from dealership.core.security import (
    get_password_hash,
    password_fingerprint_matches,
    verify_password,
)
from dealership.db.operations import flush_async, refresh_async
from dealership.db.types import utcnow
from dealership.models.user import User
from dealership.schemas.user import UserCreate, UserUpdate
from dealership.services.exceptions import DomainValidationError, DuplicateResourceError


def normalize_email(email: str) -> str:
    return email.strip().lower()


async def get_by_email(db: AsyncSession, email: str) -> User | None:
    stmt = select(User).where(func.lower(User.email) == normalize_email(email)).limit(1)
    result = await db.execute(stmt)
    return result.scalars().first()


async def create_user(db: AsyncSession, data: UserCreate, *, is_superuser: bool = False, is_active: bool = True) -> User:
    if await get_by_email(db, data.email):
        raise DuplicateResourceError("Email already registered")
    user = User(
        email=normalize_email(data.email),
        first_name=data.first_name.strip(),
        last_name=data.last_name.strip(),
        hashed_password=get_password_hash(data.password),
        phone_number=data.phone_number,
        address=data.address,
        city=data.city,
        country=data.country,
        is_superuser=is_superuser,
        is_active=is_active,
    )
    db.add(user)
    await flush_async(db, user)
    await refresh_async(db, user)
    return user


async def authenticate(db: AsyncSession, email: str, password: str) -> User | None:
    user = await get_by_email(db, email)
    if not user or not user.hashed_password:
        return None
    if not verify_password(password, user.hashed_password):
        return None
    return user


async def mark_login(db: AsyncSession, user: User) -> User:
    user.last_login_at = utcnow()
    db.add(user)
    await flush_async(db, user)
    return user


async def update_user(db: AsyncSession, user: User, changes: UserUpdate) -> User:
    data = changes.model_dump(exclude_unset=True)
    for field, value in data.items():
        if field in {"first_name", "last_name"} and value is None:
            continue
        setattr(user, field, value.strip() if isinstance(value, str) else value)
    db.add(user)
    await flush_async(db, user)
    await refresh_async(db, user)
    return user


async def change_password(db: AsyncSession, user: User, current_password: str, new_password: str) -> User:
    if not verify_password(current_password, user.hashed_password):
        raise DomainValidationError("Current password is incorrect")
    if current_password == new_password:
        raise DomainValidationError("New password must be different from the current password")
    user.hashed_password = get_password_hash(new_password)
    db.add(user)
    await flush_async(db, user)
    return user


async def reset_password(db: AsyncSession, user: User, fingerprint: str, new_password: str) -> User:
    if not password_fingerprint_matches(user.hashed_password, fingerprint):
        raise DomainValidationError("Reset token is no longer valid")
    user.hashed_password = get_password_hash(new_password)
    db.add(user)
    await flush_async(db, user)
    return user
