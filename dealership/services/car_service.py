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
from dealership.domain.enums import CategoryType, FuelType, ItemType, Transmission
from dealership.models.cart import CartItem
from dealership.models.catalog import Brand, Car, Category
from dealership.schemas.catalog import (
    BrandSummary,
    CarCreate,
    CarFilterOptions,
    CarUpdate,
    CategorySummary,
    StockAdjustment,
)
from dealership.services import brand_service
from dealership.services.category_service import ensure_category_type
from dealership.services.exceptions import DomainValidationError, ResourceNotFoundError
from dealership.services.listing import apply_stock_adjustment, paginate
from dealership.services.pricing import q2
from dealership.utils.text import LIKE_ESCAPE, like_pattern

logger = get_logger(__name__)

_SORT_COLUMNS = {
    "price": Car.price,
    "year": Car.year,
    "model": Car.model,
    "brand": Brand.name,
    "newest": Car.created_at,
}


@dataclass
class CarFilters:
    search: str | None = None
    brand_id: uuid.UUID | None = None
    category_id: uuid.UUID | None = None
    min_price: Decimal | None = None
    max_price: Decimal | None = None
    min_year: int | None = None
    max_year: int | None = None
    fuel_type: FuelType | None = None
    transmission: Transmission | None = None
    color: str | None = None
    sort_by: str = "newest"
    descending: bool = True


def _available():
    return [Car.is_available.is_(True), Car.stock_quantity > 0]


def search_condition(term: str):
    pattern = like_pattern(term)
    return or_(
        Car.model.ilike(pattern, escape=LIKE_ESCAPE),
        Brand.name.ilike(pattern, escape=LIKE_ESCAPE),
        Category.name.ilike(pattern, escape=LIKE_ESCAPE),
        Car.color.ilike(pattern, escape=LIKE_ESCAPE),
        Car.description.ilike(pattern, escape=LIKE_ESCAPE),
    )


def _base_query():
    return select(Car).join(Brand, Car.brand_id == Brand.id).join(Category, Car.category_id == Category.id)


def build_listing_query(filters: CarFilters, *, only_available: bool = True):
    if filters.min_price is not None and filters.max_price is not None and filters.min_price > filters.max_price:
        raise DomainValidationError("min_price cannot be greater than max_price")
    if filters.min_year is not None and filters.max_year is not None and filters.min_year > filters.max_year:
        raise DomainValidationError("min_year cannot be greater than max_year")

    stmt = _base_query()
    if only_available:
        stmt = stmt.where(*_available())
    if filters.search and filters.search.strip():
        stmt = stmt.where(search_condition(filters.search))
    if filters.brand_id:
        stmt = stmt.where(Car.brand_id == filters.brand_id)
    if filters.category_id:
        stmt = stmt.where(Car.category_id == filters.category_id)
    if filters.min_price is not None:
        stmt = stmt.where(Car.price >= filters.min_price)
    if filters.max_price is not None:
        stmt = stmt.where(Car.price <= filters.max_price)
    if filters.min_year is not None:
        stmt = stmt.where(Car.year >= filters.min_year)
    if filters.max_year is not None:
        stmt = stmt.where(Car.year <= filters.max_year)
    if filters.fuel_type:
        stmt = stmt.where(Car.fuel_type == filters.fuel_type)
    if filters.transmission:
        stmt = stmt.where(Car.transmission == filters.transmission)
    if filters.color and filters.color.strip():
        stmt = stmt.where(func.lower(Car.color) == filters.color.strip().lower())

    column = _SORT_COLUMNS.get(filters.sort_by)
    if column is None:
        raise DomainValidationError(f"Unsupported sort field '{filters.sort_by}'")
    ordering = column.desc() if filters.descending else column.asc()
    return stmt.order_by(ordering, Car.id.asc())


# ---------------- Lectura pública ----------------
async def list_cars(
    db: AsyncSession,
    filters: CarFilters,
    page: int,
    page_size: int,
    *,
    only_available: bool = True,
) -> tuple[Sequence[Car], int]:
    stmt = build_listing_query(filters, only_available=only_available)
    return await paginate(db, stmt, page, page_size)


async def get_car(db: AsyncSession, car_id: uuid.UUID) -> Car:
    car = await db.get(Car, car_id)
    if not car:
        raise ResourceNotFoundError("Car not found")
    return car


async def get_public_car(db: AsyncSession, car_id: uuid.UUID) -> Car:
    car = await db.get(Car, car_id)
    if not car or not car.is_available:
        raise ResourceNotFoundError("Car not found")
    return car


async def related_cars(db: AsyncSession, car: Car, limit: int | None = None) -> Sequence[Car]:
    stmt = (
        select(Car)
        .where(*_available())
        .where(Car.id != car.id)
        .where(or_(Car.brand_id == car.brand_id, Car.category_id == car.category_id))
        .order_by(Car.created_at.desc())
        .limit(limit or settings.RELATED_ITEMS_LIMIT)
    )
    result = await db.execute(stmt)
    return result.scalars().all()


async def featured_cars(db: AsyncSession, limit: int | None = None) -> Sequence[Car]:
    stmt = (
        select(Car)
        .where(*_available())
        .order_by(Car.price.desc(), Car.created_at.desc())
        .limit(limit or settings.FEATURED_ITEMS_LIMIT)
    )
    result = await db.execute(stmt)
    return result.scalars().all()


async def latest_cars(db: AsyncSession, limit: int | None = None) -> Sequence[Car]:
    stmt = (
        select(Car)
        .where(*_available())
        .order_by(Car.created_at.desc())
        .limit(limit or settings.LATEST_ITEMS_LIMIT)
    )
    result = await db.execute(stmt)
    return result.scalars().all()


async def count_available(db: AsyncSession) -> int:
    return int(await db.scalar(select(func.count(Car.id)).where(*_available())) or 0)


async def filter_options(db: AsyncSession) -> CarFilterOptions:
    brand_ids = select(Car.brand_id).where(*_available()).distinct()
    brands = (
        await db.execute(select(Brand).where(Brand.id.in_(brand_ids)).order_by(Brand.name.asc()))
    ).scalars().all()
    categories = (
        await db.execute(
            select(Category)
            .where(Category.is_active.is_(True), Category.category_type == CategoryType.car)
            .order_by(Category.name.asc())
        )
    ).scalars().all()
    colors = (
        await db.execute(
            select(Car.color).where(*_available(), Car.color.is_not(None)).distinct().order_by(Car.color.asc())
        )
    ).scalars().all()
    years = (
        await db.execute(select(Car.year).where(*_available()).distinct().order_by(Car.year.desc()))
    ).scalars().all()
    min_price, max_price = (
        await db.execute(select(func.min(Car.price), func.max(Car.price)).where(*_available()))
    ).one()
    return CarFilterOptions(
        brands=[BrandSummary.model_validate(b) for b in brands],
        categories=[CategorySummary.model_validate(c) for c in categories],
        colors=[c for c in colors if c and c.strip()],
        years=list(years),
        fuel_types=list(FuelType),
        transmissions=list(Transmission),
        min_price=q2(min_price) if min_price is not None else None,
        max_price=q2(max_price) if max_price is not None else None,
    )


# ---------------- Admin ----------------
async def _validate_relations(db: AsyncSession, brand_id: uuid.UUID, category_id: uuid.UUID) -> None:
    try:
        await brand_service.get_brand(db, brand_id)
    except ResourceNotFoundError as exc:
        raise DomainValidationError("Brand does not exist") from exc
    await ensure_category_type(db, category_id, CategoryType.car)


async def create_car(db: AsyncSession, payload: CarCreate) -> Car:
    await _validate_relations(db, payload.brand_id, payload.category_id)
    data = payload.model_dump()
    data["price"] = q2(data["price"])
    car = Car(**data)
    db.add(car)
    await flush_async(db, car)
    await refresh_async(db, car)
    logger.info("Car created", extra={"car_id": str(car.id), "model": car.model})
    return car


async def update_car(db: AsyncSession, car: Car, changes: CarUpdate) -> Car:
    data = changes.model_dump(exclude_unset=True)
    required = {"brand_id", "category_id", "model", "year", "price", "stock_quantity", "is_available"}
    for field in required & set(data):
        if data[field] is None:
            raise DomainValidationError(f"'{field}' cannot be null")

    if "brand_id" in data or "category_id" in data:
        await _validate_relations(db, data.get("brand_id", car.brand_id), data.get("category_id", car.category_id))
    if "price" in data:
        data["price"] = q2(data["price"])

    for field, value in data.items():
        setattr(car, field, value)
    await flush_async(db, car)
    await refresh_async(db, car)
    return car


async def set_availability(db: AsyncSession, car: Car, is_available: bool) -> Car:
    car.is_available = is_available
    await flush_async(db, car)
    await refresh_async(db, car)
    return car


async def adjust_stock(db: AsyncSession, car: Car, adjustment: StockAdjustment) -> Car:
    car.stock_quantity = apply_stock_adjustment(car.stock_quantity, adjustment.delta, adjustment.quantity)
    await flush_async(db, car)
    await refresh_async(db, car)
    return car


async def delete_car(db: AsyncSession, car: Car) -> None:
    # Las órdenes guardan snapshot; solo limpiamos carritos.
    await db.execute(
        delete(CartItem).where(CartItem.item_type == ItemType.car, CartItem.item_id == car.id)
    )
    await db.delete(car)
    await flush_async(db)
    logger.info("Car deleted", extra={"car_id": str(car.id)})


async def low_stock_cars(db: AsyncSession) -> Sequence[Car]:
    stmt = (
        select(Car)
        .where(Car.stock_quantity > 0, Car.stock_quantity <= settings.LOW_STOCK_THRESHOLD_CARS)
        .order_by(Car.stock_quantity.asc(), Car.model.asc())
    )
    result = await db.execute(stmt)
    return result.scalars().all()
