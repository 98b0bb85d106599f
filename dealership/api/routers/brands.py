from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from dealership.api.deps import get_current_admin
from dealership.db.operations import commit_async, rollback_async
from dealership.db.session_async import get_async_db
from dealership.schemas.catalog import BrandCreate, BrandDetail, BrandRead, BrandUpdate
from dealership.schemas.pagination import Page
from dealership.services import brand_service

router = APIRouter(prefix="/brands", tags=["brands"])


# --- Público (paginado) ---
@router.get("", response_model=Page[BrandRead], summary="List active brands (public)")
async def public_list(
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    db: AsyncSession = Depends(get_async_db),
):
    items, total = await brand_service.list_active_brands(db, skip=(page - 1) * page_size, limit=page_size)
    return Page.build([BrandRead.model_validate(b) for b in items], total, page, page_size)


# --- Admin ---
@router.get(
    "/all",
    response_model=list[BrandRead],
    dependencies=[Depends(get_current_admin)],
)
async def admin_list(db: AsyncSession = Depends(get_async_db)):
    brands = await brand_service.list_all_brands(db)
    return [BrandRead.model_validate(b) for b in brands]


@router.get("/{brand_id}", response_model=BrandDetail)
async def public_detail(brand_id: uuid.UUID, db: AsyncSession = Depends(get_async_db)):
    return await brand_service.get_brand_detail(db, brand_id)


@router.post(
    "",
    response_model=BrandRead,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(get_current_admin)],
)
async def admin_create(payload: BrandCreate, db: AsyncSession = Depends(get_async_db)):
    try:
        brand = await brand_service.create_brand(db, payload)
        await commit_async(db)
    except Exception:
        await rollback_async(db)
        raise
    return brand


@router.put(
    "/{brand_id}",
    response_model=BrandRead,
    dependencies=[Depends(get_current_admin)],
)
async def admin_update(
    brand_id: uuid.UUID,
    payload: BrandUpdate,
    db: AsyncSession = Depends(get_async_db),
):
    try:
        brand = await brand_service.get_brand(db, brand_id)
        updated = await brand_service.update_brand(db, brand, payload)
        await commit_async(db)
    except Exception:
        await rollback_async(db)
        raise
    return updated


@router.delete(
    "/{brand_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[Depends(get_current_admin)],
)
async def admin_delete(brand_id: uuid.UUID, db: AsyncSession = Depends(get_async_db)):
    try:
        brand = await brand_service.get_brand(db, brand_id)
        await brand_service.delete_brand(db, brand)
        await commit_async(db)
    except Exception:
        await rollback_async(db)
        raise
    return Response(status_code=status.HTTP_204_NO_CONTENT)
