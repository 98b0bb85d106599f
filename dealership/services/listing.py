"""Shared helpers for paginated catalog queries and stock edits."""

from __future__ import annotations

from typing import Any, Sequence

from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from dealership.core.config import settings
from dealership.services.exceptions import DomainValidationError


def clamp_page(page: int, page_size: int | None) -> tuple[int, int]:
    page = max(page, 1)
    size = page_size or settings.CATALOG_DEFAULT_PAGE_SIZE
    return page, max(1, min(size, settings.CATALOG_MAX_PAGE_SIZE))


async def paginate(db: AsyncSession, stmt: Select, page: int, page_size: int) -> tuple[Sequence[Any], int]:
    total = await db.scalar(select(func.count()).select_from(stmt.order_by(None).subquery()))
    result = await db.execute(stmt.offset((page - 1) * page_size).limit(page_size))
    return result.scalars().all(), int(total or 0)


def apply_stock_adjustment(current: int, delta: int | None, quantity: int | None) -> int:
    if (delta is None) == (quantity is None):
        raise DomainValidationError("Provide exactly one of 'delta' or 'quantity'")
    new_stock = quantity if quantity is not None else current + delta
    if new_stock < 0:
        raise DomainValidationError("Stock cannot be negative")
    return new_stock
