from __future__ import annotations

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from dealership.api.deps import get_current_active_user
from dealership.core.logging import security_alert
from dealership.db.operations import commit_async, rollback_async
from dealership.db.session_async import get_async_db
from dealership.models.user import User as UserModel
from dealership.schemas.user import PasswordChange, UserRead, UserUpdate
from dealership.services.user_service import change_password, update_user

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/me", response_model=UserRead)
async def read_me(current_user: UserModel = Depends(get_current_active_user)):
    return current_user


@router.put("/me", response_model=UserRead)
async def update_me(
    payload: UserUpdate,
    db: AsyncSession = Depends(get_async_db),
    current_user: UserModel = Depends(get_current_active_user),
):
    user = await update_user(db, current_user, payload)
    await commit_async(db)
    return user


@router.post("/me/password", status_code=status.HTTP_204_NO_CONTENT)
async def change_my_password(
    payload: PasswordChange,
    db: AsyncSession = Depends(get_async_db),
    current_user: UserModel = Depends(get_current_active_user),
):
    try:
        await change_password(db, current_user, payload.current_password, payload.new_password)
        await commit_async(db)
    except Exception:
        await rollback_async(db)
        raise
    security_alert("Password changed", user_id=str(current_user.id))
    return Response(status_code=status.HTTP_204_NO_CONTENT)
