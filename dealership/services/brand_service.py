from __future__ import annotations

import uuid
from typing import Sequence

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from dealership.db.operations import flush_async, refresh_async
from dealership.models.catalog import Brand, Car, CarPart
from dealership.schemas.catalog import BrandCreate, BrandDetail, BrandRead, BrandUpdate
from dealership.services.exceptions import ConflictError, DuplicateResourceError, ResourceNotFoundError
from dealership.utils.slugify import slugify

_DUPLICATE = "Brand with the same name or slug already exists"


async def _exists(db: AsyncSession, name: str | None, slug: str | None, exclude_id: uuid.UUID | None = None) -> bool:
    conditions = []
    if name:
        conditions.append(func.lower(Brand.name) == name.strip().lower())
    if slug:
        conditions.append(Brand.slug == slug)
    if not conditions:
        return False
    stmt = select(Brand.id).where(or_(*conditions))
    if exclude_id is not None:
        stmt = stmt.where(Brand.id != exclude_id)
    result = await db.execute(stmt.limit(1))
    return result.scalar_one_or_none() is not None


async def create_brand(db: AsyncSession, payload: BrandCreate) -> Brand:
    slug = slugify(payload.slug or payload.name)
    if await _exists(db, payload.name, slug):
        raise DuplicateResourceError(_DUPLICATE)

    brand = Brand(
        name=payload.name.strip(),
        slug=slug,
        description=payload.description,
        logo_url=payload.logo_url,
        is_active=payload.is_active,
    )
    db.add(brand)
    await flush_async(db, brand)
    await refresh_async(db, brand)
    return brand


async def list_all_brands(db: AsyncSession) -> Sequence[Brand]:
    stmt = select(Brand).order_by(Brand.name.asc())
    result = await db.execute(stmt)
    return result.scalars().all()


async def list_active_brands(db: AsyncSession, skip: int = 0, limit: int = 50) -> tuple[Sequence[Brand], int]:
    total = await db.scalar(select(func.count(Brand.id)).where(Brand.is_active.is_(True)))
    stmt = (
        select(Brand)
        .where(Brand.is_active.is_(True))
        .order_by(Brand.name.asc())
        .offset(skip)
        .limit(limit)
    )
    result = await db.execute(stmt)
    return result.scalars().all(), int(total or 0)


async def get_brand(db: AsyncSession, brand_id: uuid.UUID) -> Brand:
    brand = await db.get(Brand, brand_id)
    if not brand:
        raise ResourceNotFoundError("Brand not found")
    return brand


async def get_brand_detail(db: AsyncSession, brand_id: uuid.UUID) -> BrandDetail:
    brand = await get_brand(db, brand_id)
    if not brand.is_active:
        raise ResourceNotFoundError("Brand not found")

    async def _counts(model) -> tuple[int, int]:
        total = await db.scalar(select(func.count(model.id)).where(model.brand_id == brand.id))
        available = await db.scalar(
            select(func.count(model.id)).where(
                model.brand_id == brand.id,
                model.is_available.is_(True),
                model.stock_quantity > 0,
            )
        )
        return int(total or 0), int(available or 0)

    total_cars, available_cars = await _counts(Car)
    total_parts, available_parts = await _counts(CarPart)
    return BrandDetail(
        **BrandRead.model_validate(brand).model_dump(),
        total_cars=total_cars,
        available_cars=available_cars,
        total_car_parts=total_parts,
        available_car_parts=available_parts,
    )


async def update_brand(db: AsyncSession, brand: Brand, changes: BrandUpdate) -> Brand:
    data = changes.model_dump(exclude_unset=True)

    if data.get("slug"):
        data["slug"] = slugify(data["slug"])
    elif data.get("name"):
        data["slug"] = slugify(data["name"])
    else:
        data.pop("slug", None)

    if await _exists(db, data.get("name"), data.get("slug"), exclude_id=brand.id):
        raise DuplicateResourceError(_DUPLICATE)

    for key, value in data.items():
        if key in {"name", "is_active"} and value is None:
            continue
        setattr(brand, key, value)

    await flush_async(db, brand)
    await refresh_async(db, brand)
    return brand


async def delete_brand(db: AsyncSession, brand: Brand) -> None:
    in_use = await db.scalar(select(func.count(Car.id)).where(Car.brand_id == brand.id))
    in_use = (in_use or 0) + (await db.scalar(select(func.count(CarPart.id)).where(CarPart.brand_id == brand.id)) or 0)
    if in_use:
        raise ConflictError("Brand has products assigned; deactivate it instead")
    await db.delete(brand)
    await flush_async(db)
