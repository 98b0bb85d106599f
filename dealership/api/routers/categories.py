from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from dealership.api.deps import get_current_admin
from dealership.db.operations import commit_async, rollback_async
from dealership.db.session_async import get_async_db
from dealership.domain.enums import CategoryType
from dealership.schemas.catalog import CategoryCreate, CategoryRead, CategoryUpdate
from dealership.services import category_service

router = APIRouter(prefix="/categories", tags=["categories"])


# --- Público ---
@router.get("", response_model=list[CategoryRead])
async def public_list(
    category_type: CategoryType | None = Query(None),
    db: AsyncSession = Depends(get_async_db),
):
    return await category_service.list_active_categories(db, category_type)


# --- Admin ---
@router.get(
    "/all",
    response_model=list[CategoryRead],
    dependencies=[Depends(get_current_admin)],
)
async def admin_list(
    category_type: CategoryType | None = Query(None),
    db: AsyncSession = Depends(get_async_db),
):
    return await category_service.list_all_categories(db, category_type)


@router.get("/slug/{slug}", response_model=CategoryRead)
async def public_by_slug(slug: str, db: AsyncSession = Depends(get_async_db)):
    return await category_service.get_category_by_slug(db, slug)


@router.post(
    "",
    response_model=CategoryRead,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(get_current_admin)],
)
async def admin_create(
    payload: CategoryCreate,
    db: AsyncSession = Depends(get_async_db),
):
    try:
        category = await category_service.create_category(db, payload)
        await commit_async(db)
    except Exception:
        await rollback_async(db)
        raise
    return category


@router.put(
    "/{category_id}",
    response_model=CategoryRead,
    dependencies=[Depends(get_current_admin)],
)
async def admin_update(
    category_id: uuid.UUID,
    payload: CategoryUpdate,
    db: AsyncSession = Depends(get_async_db),
):
    try:
        category = await category_service.get_category(db, category_id)
        updated = await category_service.update_category(db, category, payload)
        await commit_async(db)
    except Exception:
        await rollback_async(db)
        raise
    return updated


@router.delete(
    "/{category_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[Depends(get_current_admin)],
)
async def admin_delete(category_id: uuid.UUID, db: AsyncSession = Depends(get_async_db)):
    try:
        category = await category_service.get_category(db, category_id)
        await category_service.delete_category(db, category)
        await commit_async(db)
    except Exception:
        await rollback_async(db)
        raise
    return Response(status_code=status.HTTP_204_NO_CONTENT)
