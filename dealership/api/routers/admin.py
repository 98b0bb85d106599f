from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from dealership.api.deps import get_current_admin
from dealership.core.logging import get_logger
from dealership.db.operations import commit_async, rollback_async
from dealership.db.session_async import get_async_db
from dealership.domain.enums import UserRole
from dealership.models.user import User as UserModel
from dealership.schemas.dashboard import AdminDashboard
from dealership.schemas.pagination import Page
from dealership.schemas.user import AdminUserCreate, UserRead, UserRoleUpdate, UserStatusUpdate
from dealership.services import admin_service, dashboard_service

router = APIRouter(prefix="/admin", tags=["admin"])

logger = get_logger("dealership.admin")


@router.get("/dashboard", response_model=AdminDashboard)
async def admin_dashboard(
    db: AsyncSession = Depends(get_async_db),
    _: UserModel = Depends(get_current_admin),
):
    return await dashboard_service.admin_dashboard(db)


@router.get("/users", response_model=Page[UserRead])
async def list_users(
    role: UserRole | None = Query(None),
    is_active: bool | None = Query(None),
    search: str | None = Query(None, max_length=100),
    page: int = Query(1, ge=1),
    page_size: int = Query(50, ge=1, le=200),
    db: AsyncSession = Depends(get_async_db),
    _: UserModel = Depends(get_current_admin),
):
    users, total = await admin_service.list_users(
        db,
        role=role,
        is_active=is_active,
        search=search,
        skip=(page - 1) * page_size,
        limit=page_size,
    )
    return Page.build([UserRead.model_validate(u) for u in users], total, page, page_size)


@router.post("/users", response_model=UserRead, status_code=status.HTTP_201_CREATED)
async def create_user_admin(
    payload: AdminUserCreate,
    db: AsyncSession = Depends(get_async_db),
    admin: UserModel = Depends(get_current_admin),
):
    try:
        user = await admin_service.create_user_as_admin(db, payload)
        await commit_async(db)
    except Exception:
        await rollback_async(db)
        raise
    logger.info(
        "User created by admin",
        extra={"user_id": str(user.id), "actor_id": str(admin.id), "is_superuser": user.is_superuser},
    )
    return user


@router.get("/users/{user_id}", response_model=UserRead)
async def get_user(
    user_id: UUID,
    db: AsyncSession = Depends(get_async_db),
    _: UserModel = Depends(get_current_admin),
):
    return await admin_service.get_user(db, user_id)


@router.patch("/users/{user_id}/role", response_model=UserRead)
async def set_admin_role(
    user_id: UUID,
    payload: UserRoleUpdate,
    db: AsyncSession = Depends(get_async_db),
    admin: UserModel = Depends(get_current_admin),
):
    try:
        user = await admin_service.set_admin_role(db, admin, user_id, payload.make_admin)
        await commit_async(db)
    except Exception:
        await rollback_async(db)
        raise
    logger.info(
        "User role changed",
        extra={"user_id": str(user.id), "actor_id": str(admin.id), "is_superuser": user.is_superuser},
    )
    return user


@router.patch("/users/{user_id}/active", response_model=UserRead)
async def set_active(
    user_id: UUID,
    payload: UserStatusUpdate,
    db: AsyncSession = Depends(get_async_db),
    admin: UserModel = Depends(get_current_admin),
):
    try:
        user = await admin_service.set_active(db, admin, user_id, payload.is_active)
        await commit_async(db)
    except Exception:
        await rollback_async(db)
        raise
    logger.info(
        "User status changed",
        extra={"user_id": str(user.id), "actor_id": str(admin.id), "is_active": user.is_active},
    )
    return user
