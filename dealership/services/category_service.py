from __future__ import annotations

import uuid
from typing import Sequence

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from dealership.db.operations import flush_async, refresh_async
from dealership.domain.enums import CategoryType
from dealership.models.catalog import Car, CarPart, Category
from dealership.schemas.catalog import CategoryCreate, CategoryUpdate
from dealership.services.exceptions import (
    ConflictError,
    DomainValidationError,
    DuplicateResourceError,
    ResourceNotFoundError,
)
from dealership.utils.slugify import slugify


async def _name_exists(db: AsyncSession, name: str, category_type: CategoryType, exclude_id: uuid.UUID | None = None) -> bool:
    stmt = select(Category.id).where(
        func.lower(Category.name) == name.strip().lower(),
        Category.category_type == category_type,
    )
    if exclude_id is not None:
        stmt = stmt.where(Category.id != exclude_id)
    result = await db.execute(stmt.limit(1))
    return result.scalar_one_or_none() is not None


async def _slug_exists(db: AsyncSession, slug: str, exclude_id: uuid.UUID | None = None) -> bool:
    stmt = select(Category.id).where(Category.slug == slug)
    if exclude_id is not None:
        stmt = stmt.where(Category.id != exclude_id)
    result = await db.execute(stmt.limit(1))
    return result.scalar_one_or_none() is not None


async def _usage_count(db: AsyncSession, category: Category) -> int:
    cars = await db.scalar(select(func.count(Car.id)).where(Car.category_id == category.id))
    parts = await db.scalar(select(func.count(CarPart.id)).where(CarPart.category_id == category.id))
    return int(cars or 0) + int(parts or 0)


# ---------------- Lectura pública ----------------
async def list_active_categories(db: AsyncSession, category_type: CategoryType | None = None) -> Sequence[Category]:
    stmt = select(Category).where(Category.is_active.is_(True))
    if category_type is not None:
        stmt = stmt.where(Category.category_type == category_type)
    result = await db.execute(stmt.order_by(Category.name.asc()))
    return result.scalars().all()


async def list_all_categories(db: AsyncSession, category_type: CategoryType | None = None) -> Sequence[Category]:
    stmt = select(Category)
    if category_type is not None:
        stmt = stmt.where(Category.category_type == category_type)
    result = await db.execute(stmt.order_by(Category.category_type.asc(), Category.name.asc()))
    return result.scalars().all()


async def get_category(db: AsyncSession, category_id: uuid.UUID) -> Category:
    category = await db.get(Category, category_id)
    if not category:
        raise ResourceNotFoundError("Category not found")
    return category


async def get_category_by_slug(db: AsyncSession, slug: str) -> Category:
    stmt = (
        select(Category)
        .where(Category.slug == slug)
        .where(Category.is_active.is_(True))
        .limit(1)
    )
    result = await db.execute(stmt)
    category = result.scalars().first()
    if not category:
        raise ResourceNotFoundError("Category not found")
    return category


# ---------------- Admin CRUD ----------------
async def create_category(db: AsyncSession, payload: CategoryCreate) -> Category:
    slug = slugify((payload.slug or "").strip() or payload.name)

    if await _name_exists(db, payload.name, payload.category_type):
        raise DuplicateResourceError("Category name already exists")
    if await _slug_exists(db, slug):
        raise DuplicateResourceError("Category slug already exists")

    category = Category(
        name=payload.name.strip(),
        slug=slug,
        description=payload.description,
        category_type=payload.category_type,
        is_active=payload.is_active,
    )
    db.add(category)
    await flush_async(db, category)
    await refresh_async(db, category)
    return category


async def update_category(db: AsyncSession, category: Category, payload: CategoryUpdate) -> Category:
    changes = payload.model_dump(exclude_unset=True)

    new_type = changes.get("category_type") or category.category_type
    if new_type != category.category_type and await _usage_count(db, category):
        raise ConflictError("Category type cannot change while products are assigned to it")

    new_name = changes.get("name") or category.name
    if (new_name != category.name or new_type != category.category_type) and await _name_exists(
        db, new_name, new_type, exclude_id=category.id
    ):
        raise DuplicateResourceError("Category name already exists")

    if "slug" in changes or "name" in changes:
        new_slug = slugify(changes.get("slug") or new_name)
        if new_slug != category.slug and await _slug_exists(db, new_slug, exclude_id=category.id):
            raise DuplicateResourceError("Category slug already exists")
        changes["slug"] = new_slug

    for field, value in changes.items():
        if value is None and field in {"name", "category_type", "is_active"}:
            continue
        setattr(category, field, value)

    db.add(category)
    await flush_async(db, category)
    await refresh_async(db, category)
    return category


async def delete_category(db: AsyncSession, category: Category) -> None:
    if await _usage_count(db, category):
        raise ConflictError("Category has products assigned; deactivate it instead")
    await db.delete(category)
    await flush_async(db)


async def ensure_category_type(db: AsyncSession, category_id: uuid.UUID, expected: CategoryType) -> Category:
    """Load a category and check it classifies the expected kind of item."""
    category = await db.get(Category, category_id)
    if not category:
        raise DomainValidationError("Category does not exist")
    if category.category_type != expected:
        raise DomainValidationError(f"Category must be of type '{expected.value}'")
    return category
