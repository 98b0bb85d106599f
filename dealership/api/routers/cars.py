from __future__ import annotations

import uuid
from decimal import Decimal
from typing import Literal

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from dealership.api.deps import get_current_admin
from dealership.db.operations import commit_async, rollback_async
from dealership.db.session_async import get_async_db
from dealership.domain.enums import FuelType, Transmission
from dealership.schemas.catalog import (
    AvailabilityUpdate,
    CarCreate,
    CarDetail,
    CarFilterOptions,
    CarRead,
    CarUpdate,
    StockAdjustment,
)
from dealership.schemas.pagination import Page
from dealership.services import car_service
from dealership.services.car_service import CarFilters
from dealership.services.listing import clamp_page

router = APIRouter(prefix="/cars", tags=["cars"])

CarSort = Literal["price", "year", "model", "brand", "newest"]


def car_filters(
    search: str | None = Query(None, max_length=100),
    brand_id: uuid.UUID | None = Query(None),
    category_id: uuid.UUID | None = Query(None),
    min_price: Decimal | None = Query(None, ge=0),
    max_price: Decimal | None = Query(None, ge=0),
    min_year: int | None = Query(None, ge=1900, le=2030),
    max_year: int | None = Query(None, ge=1900, le=2030),
    fuel_type: FuelType | None = Query(None),
    transmission: Transmission | None = Query(None),
    color: str | None = Query(None, max_length=50),
    sort_by: CarSort = Query("newest"),
    descending: bool = Query(True),
) -> CarFilters:
    return CarFilters(
        search=search,
        brand_id=brand_id,
        category_id=category_id,
        min_price=min_price,
        max_price=max_price,
        min_year=min_year,
        max_year=max_year,
        fuel_type=fuel_type,
        transmission=transmission,
        color=color,
        sort_by=sort_by,
        descending=descending,
    )


def _page(items, total: int, page: int, page_size: int) -> Page[CarRead]:
    return Page.build([CarRead.model_validate(c) for c in items], total, page, page_size)


# --- Público ---
@router.get("", response_model=Page[CarRead])
async def public_list(
    filters: CarFilters = Depends(car_filters),
    page: int = Query(1, ge=1),
    page_size: int | None = Query(None, ge=1),
    db: AsyncSession = Depends(get_async_db),
):
    page, page_size = clamp_page(page, page_size)
    items, total = await car_service.list_cars(db, filters, page, page_size)
    return _page(items, total, page, page_size)


@router.get("/featured", response_model=list[CarRead])
async def featured(
    limit: int | None = Query(None, ge=1, le=24),
    db: AsyncSession = Depends(get_async_db),
):
    return await car_service.featured_cars(db, limit)


@router.get("/latest", response_model=list[CarRead])
async def latest(
    limit: int | None = Query(None, ge=1, le=24),
    db: AsyncSession = Depends(get_async_db),
):
    return await car_service.latest_cars(db, limit)


@router.get("/filters", response_model=CarFilterOptions)
async def filter_options(db: AsyncSession = Depends(get_async_db)):
    return await car_service.filter_options(db)


# --- Admin ---
@router.get(
    "/admin/all",
    response_model=Page[CarRead],
    dependencies=[Depends(get_current_admin)],
)
async def admin_list(
    filters: CarFilters = Depends(car_filters),
    page: int = Query(1, ge=1),
    page_size: int | None = Query(None, ge=1),
    db: AsyncSession = Depends(get_async_db),
):
    page, page_size = clamp_page(page, page_size)
    items, total = await car_service.list_cars(db, filters, page, page_size, only_available=False)
    return _page(items, total, page, page_size)


@router.get(
    "/admin/low-stock",
    response_model=list[CarRead],
    dependencies=[Depends(get_current_admin)],
)
async def admin_low_stock(db: AsyncSession = Depends(get_async_db)):
    return await car_service.low_stock_cars(db)


@router.get("/{car_id}", response_model=CarDetail)
async def public_detail(car_id: uuid.UUID, db: AsyncSession = Depends(get_async_db)):
    car = await car_service.get_public_car(db, car_id)
    related = await car_service.related_cars(db, car)
    return CarDetail(
        car=CarRead.model_validate(car),
        related=[CarRead.model_validate(c) for c in related],
    )


@router.post(
    "",
    response_model=CarRead,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(get_current_admin)],
)
async def admin_create(payload: CarCreate, db: AsyncSession = Depends(get_async_db)):
    try:
        car = await car_service.create_car(db, payload)
        await commit_async(db)
    except Exception:
        await rollback_async(db)
        raise
    return car


@router.put(
    "/{car_id}",
    response_model=CarRead,
    dependencies=[Depends(get_current_admin)],
)
async def admin_update(car_id: uuid.UUID, payload: CarUpdate, db: AsyncSession = Depends(get_async_db)):
    try:
        car = await car_service.get_car(db, car_id)
        car = await car_service.update_car(db, car, payload)
        await commit_async(db)
    except Exception:
        await rollback_async(db)
        raise
    return car


@router.patch(
    "/{car_id}/availability",
    response_model=CarRead,
    dependencies=[Depends(get_current_admin)],
)
async def admin_set_availability(
    car_id: uuid.UUID,
    payload: AvailabilityUpdate,
    db: AsyncSession = Depends(get_async_db),
):
    try:
        car = await car_service.get_car(db, car_id)
        car = await car_service.set_availability(db, car, payload.is_available)
        await commit_async(db)
    except Exception:
        await rollback_async(db)
        raise
    return car


@router.patch(
    "/{car_id}/stock",
    response_model=CarRead,
    dependencies=[Depends(get_current_admin)],
)
async def admin_adjust_stock(
    car_id: uuid.UUID,
    payload: StockAdjustment,
    db: AsyncSession = Depends(get_async_db),
):
    try:
        car = await car_service.get_car(db, car_id)
        car = await car_service.adjust_stock(db, car, payload)
        await commit_async(db)
    except Exception:
        await rollback_async(db)
        raise
    return car


@router.delete(
    "/{car_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[Depends(get_current_admin)],
)
async def admin_delete(car_id: uuid.UUID, db: AsyncSession = Depends(get_async_db)):
    try:
        car = await car_service.get_car(db, car_id)
        await car_service.delete_car(db, car)
        await commit_async(db)
    except Exception:
        await rollback_async(db)
        raise
    return Response(status_code=status.HTTP_204_NO_CONTENT)
