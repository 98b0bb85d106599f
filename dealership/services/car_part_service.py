from __future__ import annotations

import uuid
from dataclasses import dataclass
from decimal import Decimal
from typing import Sequence

from sqlalchemy import delete, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from dealership.core.config import settings
from dealership.core.logging import get_logger
from dealership.db.operations import flush_async, refresh_async
from dealership.domain.enums import CategoryType, ItemType
from dealership.models.cart import CartItem
from dealership.models.catalog import Brand, CarPart, Category
from dealership.schemas.catalog import CarPartCreate, CarPartUpdate, PriceRange, StockAdjustment
from dealership.services import brand_service
from dealership.services.category_service import ensure_category_type
from dealership.services.exceptions import (
    DomainValidationError,
    DuplicateResourceError,
    ResourceNotFoundError,
)
from dealership.services.listing import apply_stock_adjustment, paginate
from dealership.services.pricing import q2
from dealership.utils.text import LIKE_ESCAPE, like_pattern

logger = get_logger(__name__)

_SORT_COLUMNS = {
    "price": CarPart.price,
    "name": CarPart.part_name,
    "brand": Brand.name,
    "newest": CarPart.created_at,
}


@dataclass
class CarPartFilters:
    search: str | None = None
    brand_id: uuid.UUID | None = None
    category_id: uuid.UUID | None = None
    compatibility: str | None = None
    min_price: Decimal | None = None
    max_price: Decimal | None = None
    sort_by: str = "newest"
    descending: bool = True


def _available():
    return [CarPart.is_available.is_(True), CarPart.stock_quantity > 0]


def search_condition(term: str):
    pattern = like_pattern(term)
    return or_(
        CarPart.part_name.ilike(pattern, escape=LIKE_ESCAPE),
        CarPart.part_number.ilike(pattern, escape=LIKE_ESCAPE),
        Brand.name.ilike(pattern, escape=LIKE_ESCAPE),
        Category.name.ilike(pattern, escape=LIKE_ESCAPE),
        CarPart.compatibility.ilike(pattern, escape=LIKE_ESCAPE),
        CarPart.description.ilike(pattern, escape=LIKE_ESCAPE),
    )


def _base_query():
    return (
        select(CarPart)
        .join(Brand, CarPart.brand_id == Brand.id)
        .join(Category, CarPart.category_id == Category.id)
    )


def build_listing_query(filters: CarPartFilters, *, only_available: bool = True):
    if filters.min_price is not None and filters.max_price is not None and filters.min_price > filters.max_price:
        raise DomainValidationError("min_price cannot be greater than max_price")

    stmt = _base_query()
    if only_available:
        stmt = stmt.where(*_available())
    if filters.search and filters.search.strip():
        stmt = stmt.where(search_condition(filters.search))
    if filters.brand_id:
        stmt = stmt.where(CarPart.brand_id == filters.brand_id)
    if filters.category_id:
        stmt = stmt.where(CarPart.category_id == filters.category_id)
    if filters.compatibility and filters.compatibility.strip():
        stmt = stmt.where(CarPart.compatibility.ilike(like_pattern(filters.compatibility), escape=LIKE_ESCAPE))
    if filters.min_price is not None:
        stmt = stmt.where(CarPart.price >= filters.min_price)
    if filters.max_price is not None:
        stmt = stmt.where(CarPart.price <= filters.max_price)

    column = _SORT_COLUMNS.get(filters.sort_by)
    if column is None:
        raise DomainValidationError(f"Unsupported sort field '{filters.sort_by}'")
    ordering = column.desc() if filters.descending else column.asc()
    return stmt.order_by(ordering, CarPart.id.asc())


# ---------------- Lectura pública ----------------
async def list_parts(
    db: AsyncSession,
    filters: CarPartFilters,
    page: int,
    page_size: int,
    *,
    only_available: bool = True,
) -> tuple[Sequence[CarPart], int]:
    stmt = build_listing_query(filters, only_available=only_available)
    return await paginate(db, stmt, page, page_size)


async def get_part(db: AsyncSession, part_id: uuid.UUID) -> CarPart:
    part = await db.get(CarPart, part_id)
    if not part:
        raise ResourceNotFoundError("Car part not found")
    return part


async def get_public_part(db: AsyncSession, part_id: uuid.UUID) -> CarPart:
    part = await db.get(CarPart, part_id)
    if not part or not part.is_available:
        raise ResourceNotFoundError("Car part not found")
    return part


async def related_parts(db: AsyncSession, part: CarPart, limit: int | None = None) -> Sequence[CarPart]:
    stmt = (
        select(CarPart)
        .where(*_available())
        .where(CarPart.id != part.id)
        .where(or_(CarPart.category_id == part.category_id, CarPart.brand_id == part.brand_id))
        .order_by(CarPart.created_at.desc())
        .limit(limit or settings.RELATED_ITEMS_LIMIT)
    )
    result = await db.execute(stmt)
    return result.scalars().all()


async def featured_parts(db: AsyncSession, limit: int | None = None) -> Sequence[CarPart]:
    stmt = (
        select(CarPart)
        .where(*_available())
        .order_by(CarPart.price.desc(), CarPart.created_at.desc())
        .limit(limit or settings.FEATURED_ITEMS_LIMIT)
    )
    result = await db.execute(stmt)
    return result.scalars().all()


async def latest_parts(db: AsyncSession, limit: int | None = None) -> Sequence[CarPart]:
    stmt = (
        select(CarPart)
        .where(*_available())
        .order_by(CarPart.created_at.desc())
        .limit(limit or settings.LATEST_ITEMS_LIMIT)
    )
    result = await db.execute(stmt)
    return result.scalars().all()


async def count_available(db: AsyncSession) -> int:
    return int(await db.scalar(select(func.count(CarPart.id)).where(*_available())) or 0)


async def compare_parts(db: AsyncSession, part_ids: list[uuid.UUID]) -> Sequence[CarPart]:
    unique_ids = list(dict.fromkeys(part_ids))
    if not 2 <= len(unique_ids) <= 4:
        raise DomainValidationError("Select between 2 and 4 different parts to compare")
    result = await db.execute(select(CarPart).where(CarPart.id.in_(unique_ids), CarPart.is_available.is_(True)))
    found = {part.id: part for part in result.scalars().all()}
    if len(found) < 2:
        raise DomainValidationError("At least 2 of the selected parts must exist to compare")
    return [found[pid] for pid in unique_ids if pid in found]


async def compatibility_options(db: AsyncSession) -> list[str]:
    stmt = (
        select(CarPart.compatibility)
        .where(*_available(), CarPart.compatibility.is_not(None))
        .distinct()
        .order_by(CarPart.compatibility.asc())
    )
    values = (await db.execute(stmt)).scalars().all()
    return [value for value in values if value and value.strip()]


async def price_range(db: AsyncSession) -> PriceRange:
    min_price, max_price = (
        await db.execute(select(func.min(CarPart.price), func.max(CarPart.price)).where(*_available()))
    ).one()
    return PriceRange(
        min_price=q2(min_price) if min_price is not None else None,
        max_price=q2(max_price) if max_price is not None else None,
    )


# ---------------- Admin ----------------
async def _validate_relations(db: AsyncSession, brand_id: uuid.UUID, category_id: uuid.UUID) -> None:
    try:
        await brand_service.get_brand(db, brand_id)
    except ResourceNotFoundError as exc:
        raise DomainValidationError("Brand does not exist") from exc
    await ensure_category_type(db, category_id, CategoryType.car_part)


async def _part_number_taken(db: AsyncSession, part_number: str | None, exclude_id: uuid.UUID | None = None) -> bool:
    if not part_number:
        return False
    stmt = select(CarPart.id).where(CarPart.part_number == part_number)
    if exclude_id is not None:
        stmt = stmt.where(CarPart.id != exclude_id)
    result = await db.execute(stmt.limit(1))
    return result.scalar_one_or_none() is not None


async def create_part(db: AsyncSession, payload: CarPartCreate) -> CarPart:
    await _validate_relations(db, payload.brand_id, payload.category_id)
    if await _part_number_taken(db, payload.part_number):
        raise DuplicateResourceError("Part number already exists")
    data = payload.model_dump()
    data["price"] = q2(data["price"])
    part = CarPart(**data)
    db.add(part)
    await flush_async(db, part)
    await refresh_async(db, part)
    logger.info("Car part created", extra={"part_id": str(part.id), "part_number": part.part_number})
    return part


async def update_part(db: AsyncSession, part: CarPart, changes: CarPartUpdate) -> CarPart:
    data = changes.model_dump(exclude_unset=True)
    required = {"brand_id", "category_id", "part_name", "price", "stock_quantity", "is_available"}
    for field in required & set(data):
        if data[field] is None:
            raise DomainValidationError(f"'{field}' cannot be null")

    if "brand_id" in data or "category_id" in data:
        await _validate_relations(db, data.get("brand_id", part.brand_id), data.get("category_id", part.category_id))
    if "part_number" in data and await _part_number_taken(db, data["part_number"], exclude_id=part.id):
        raise DuplicateResourceError("Part number already exists")
    if "price" in data:
        data["price"] = q2(data["price"])

    for field, value in data.items():
        setattr(part, field, value)
    await flush_async(db, part)
    await refresh_async(db, part)
    return part


async def set_availability(db: AsyncSession, part: CarPart, is_available: bool) -> CarPart:
    part.is_available = is_available
    await flush_async(db, part)
    await refresh_async(db, part)
    return part


async def adjust_stock(db: AsyncSession, part: CarPart, adjustment: StockAdjustment) -> CarPart:
    part.stock_quantity = apply_stock_adjustment(part.stock_quantity, adjustment.delta, adjustment.quantity)
    await flush_async(db, part)
    await refresh_async(db, part)
    return part


async def delete_part(db: AsyncSession, part: CarPart) -> None:
    await db.execute(
        delete(CartItem).where(CartItem.item_type == ItemType.car_part, CartItem.item_id == part.id)
    )
    await db.delete(part)
    await flush_async(db)
    logger.info("Car part deleted", extra={"part_id": str(part.id)})


async def low_stock_parts(db: AsyncSession) -> Sequence[CarPart]:
    stmt = (
        select(CarPart)
        .where(CarPart.stock_quantity > 0, CarPart.stock_quantity <= settings.LOW_STOCK_THRESHOLD_PARTS)
        .order_by(CarPart.stock_quantity.asc(), CarPart.part_name.asc())
    )
    result = await db.execute(stmt)
    return result.scalars().all()
