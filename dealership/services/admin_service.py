from __future__ import annotations

import uuid
from typing import Sequence

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from dealership.db.operations import flush_async, refresh_async
from dealership.domain.enums import UserRole
from dealership.models.user import User
from dealership.schemas.user import AdminUserCreate
from dealership.services.exceptions import ConflictError, ResourceNotFoundError
from dealership.services.user_service import create_user
from dealership.utils.text import LIKE_ESCAPE, like_pattern


def _filters(role: UserRole | None, is_active: bool | None, search: str | None) -> list:
    conditions = []
    if role is not None:
        conditions.append(User.is_superuser.is_(role == UserRole.admin))
    if is_active is not None:
        conditions.append(User.is_active.is_(is_active))
    if search and search.strip():
        pattern = like_pattern(search)
        conditions.append(
            or_(
                User.email.ilike(pattern, escape=LIKE_ESCAPE),
                User.first_name.ilike(pattern, escape=LIKE_ESCAPE),
                User.last_name.ilike(pattern, escape=LIKE_ESCAPE),
            )
        )
    return conditions


async def list_users(
    db: AsyncSession,
    *,
    role: UserRole | None = None,
    is_active: bool | None = None,
    search: str | None = None,
    skip: int = 0,
    limit: int = 50,
) -> tuple[Sequence[User], int]:
    conditions = _filters(role, is_active, search)
    total = await db.scalar(select(func.count(User.id)).where(*conditions))
    stmt = (
        select(User)
        .where(*conditions)
        .order_by(User.created_at.desc())
        .offset(skip)
        .limit(limit)
    )
    result = await db.execute(stmt)
    return result.scalars().all(), int(total or 0)


async def get_user(db: AsyncSession, user_id: uuid.UUID) -> User:
    user = await db.get(User, user_id)
    if not user:
        raise ResourceNotFoundError("User not found")
    return user


async def create_user_as_admin(db: AsyncSession, payload: AdminUserCreate) -> User:
    return await create_user(db, payload, is_superuser=payload.is_superuser, is_active=payload.is_active)


async def set_admin_role(db: AsyncSession, actor: User, user_id: uuid.UUID, make_admin: bool) -> User:
    user = await get_user(db, user_id)
    if user.id == actor.id and not make_admin:
        raise ConflictError("You cannot remove your own admin role")
    user.is_superuser = bool(make_admin)
    db.add(user)
    await flush_async(db, user)
    await refresh_async(db, user)
    return user


async def set_active(db: AsyncSession, actor: User, user_id: uuid.UUID, active: bool) -> User:
    user = await get_user(db, user_id)
    if user.id == actor.id and not active:
        raise ConflictError("You cannot deactivate your own account")
    user.is_active = bool(active)
    db.add(user)
    await flush_async(db, user)
    await refresh_async(db, user)
    return user
