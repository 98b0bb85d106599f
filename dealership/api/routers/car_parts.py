from __future__ import annotations

import uuid
from decimal import Decimal
from typing import Literal

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from dealership.api.deps import get_current_admin
from dealership.db.operations import commit_async, rollback_async
from dealership.db.session_async import get_async_db
from dealership.schemas.catalog import (
    AvailabilityUpdate,
    CarPartCreate,
    CarPartDetail,
    CarPartRead,
    CarPartUpdate,
    CompareRequest,
    PriceRange,
    StockAdjustment,
)
from dealership.schemas.pagination import Page
from dealership.services import car_part_service
from dealership.services.car_part_service import CarPartFilters
from dealership.services.listing import clamp_page

router = APIRouter(prefix="/car-parts", tags=["car-parts"])

PartSort = Literal["price", "name", "brand", "newest"]


def part_filters(
    search: str | None = Query(None, max_length=100),
    brand_id: uuid.UUID | None = Query(None),
    category_id: uuid.UUID | None = Query(None),
    compatibility: str | None = Query(None, max_length=100),
    min_price: Decimal | None = Query(None, ge=0),
    max_price: Decimal | None = Query(None, ge=0),
    sort_by: PartSort = Query("newest"),
    descending: bool = Query(True),
) -> CarPartFilters:
    return CarPartFilters(
        search=search,
        brand_id=brand_id,
        category_id=category_id,
        compatibility=compatibility,
        min_price=min_price,
        max_price=max_price,
        sort_by=sort_by,
        descending=descending,
    )


def _page(items, total: int, page: int, page_size: int) -> Page[CarPartRead]:
    return Page.build([CarPartRead.model_validate(p) for p in items], total, page, page_size)


# --- Público ---
@router.get("", response_model=Page[CarPartRead])
async def public_list(
    filters: CarPartFilters = Depends(part_filters),
    page: int = Query(1, ge=1),
    page_size: int | None = Query(None, ge=1),
    db: AsyncSession = Depends(get_async_db),
):
    page, page_size = clamp_page(page, page_size)
    items, total = await car_part_service.list_parts(db, filters, page, page_size)
    return _page(items, total, page, page_size)


@router.get("/featured", response_model=list[CarPartRead])
async def featured(
    limit: int | None = Query(None, ge=1, le=24),
    db: AsyncSession = Depends(get_async_db),
):
    return await car_part_service.featured_parts(db, limit)


@router.get("/latest", response_model=list[CarPartRead])
async def latest(
    limit: int | None = Query(None, ge=1, le=24),
    db: AsyncSession = Depends(get_async_db),
):
    return await car_part_service.latest_parts(db, limit)


@router.get("/compatibilities", response_model=list[str])
async def compatibilities(db: AsyncSession = Depends(get_async_db)):
    return await car_part_service.compatibility_options(db)


@router.get("/price-range", response_model=PriceRange)
async def price_range(db: AsyncSession = Depends(get_async_db)):
    return await car_part_service.price_range(db)


@router.post("/compare", response_model=list[CarPartRead])
async def compare(payload: CompareRequest, db: AsyncSession = Depends(get_async_db)):
    return await car_part_service.compare_parts(db, payload.ids)


# --- Admin ---
@router.get(
    "/admin/all",
    response_model=Page[CarPartRead],
    dependencies=[Depends(get_current_admin)],
)
async def admin_list(
    filters: CarPartFilters = Depends(part_filters),
    page: int = Query(1, ge=1),
    page_size: int | None = Query(None, ge=1),
    db: AsyncSession = Depends(get_async_db),
):
    page, page_size = clamp_page(page, page_size)
    items, total = await car_part_service.list_parts(db, filters, page, page_size, only_available=False)
    return _page(items, total, page, page_size)


@router.get(
    "/admin/low-stock",
    response_model=list[CarPartRead],
    dependencies=[Depends(get_current_admin)],
)
async def admin_low_stock(db: AsyncSession = Depends(get_async_db)):
    return await car_part_service.low_stock_parts(db)


@router.get("/{part_id}", response_model=CarPartDetail)
async def public_detail(part_id: uuid.UUID, db: AsyncSession = Depends(get_async_db)):
    part = await car_part_service.get_public_part(db, part_id)
    related = await car_part_service.related_parts(db, part)
    return CarPartDetail(
        part=CarPartRead.model_validate(part),
        related=[CarPartRead.model_validate(p) for p in related],
    )


@router.post(
    "",
    response_model=CarPartRead,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(get_current_admin)],
)
async def admin_create(payload: CarPartCreate, db: AsyncSession = Depends(get_async_db)):
    try:
        part = await car_part_service.create_part(db, payload)
        await commit_async(db)
    except Exception:
        await rollback_async(db)
        raise
    return part


@router.put(
    "/{part_id}",
    response_model=CarPartRead,
    dependencies=[Depends(get_current_admin)],
)
async def admin_update(part_id: uuid.UUID, payload: CarPartUpdate, db: AsyncSession = Depends(get_async_db)):
    try:
        part = await car_part_service.get_part(db, part_id)
        part = await car_part_service.update_part(db, part, payload)
        await commit_async(db)
    except Exception:
        await rollback_async(db)
        raise
    return part


@router.patch(
    "/{part_id}/availability",
    response_model=CarPartRead,
    dependencies=[Depends(get_current_admin)],
)
async def admin_set_availability(
    part_id: uuid.UUID,
    payload: AvailabilityUpdate,
    db: AsyncSession = Depends(get_async_db),
):
    try:
        part = await car_part_service.get_part(db, part_id)
        part = await car_part_service.set_availability(db, part, payload.is_available)
        await commit_async(db)
    except Exception:
        await rollback_async(db)
        raise
    return part


@router.patch(
    "/{part_id}/stock",
    response_model=CarPartRead,
    dependencies=[Depends(get_current_admin)],
)
async def admin_adjust_stock(
    part_id: uuid.UUID,
    payload: StockAdjustment,
    db: AsyncSession = Depends(get_async_db),
):
    try:
        part = await car_part_service.get_part(db, part_id)
        part = await car_part_service.adjust_stock(db, part, payload)
        await commit_async(db)
    except Exception:
        await rollback_async(db)
        raise
    return part


@router.delete(
    "/{part_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[Depends(get_current_admin)],
)
async def admin_delete(part_id: uuid.UUID, db: AsyncSession = Depends(get_async_db)):
    try:
        part = await car_part_service.get_part(db, part_id)
        await car_part_service.delete_part(db, part)
        await commit_async(db)
    except Exception:
        await rollback_async(db)
        raise
    return Response(status_code=status.HTTP_204_NO_CONTENT)
