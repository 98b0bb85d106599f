from __future__ import annotations

import uuid
from dataclasses import dataclass
from decimal import Decimal
from typing import Union

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from dealership.core.config import settings
from dealership.core.logging import get_logger
from dealership.db.operations import flush_async, refresh_async
from dealership.domain.enums import ItemType
from dealership.models.cart import Cart, CartItem
from dealership.models.catalog import Car, CarPart
from dealership.schemas.cart import CartItemCreate, CartLineRead, CartRead
from dealership.services.exceptions import (
    DomainValidationError,
    InsufficientStockError,
    ResourceNotFoundError,
)
from dealership.services.pricing import compute_totals, line_total, q2

logger = get_logger(__name__)

CatalogItem = Union[Car, CarPart]

_MODELS: dict[ItemType, type] = {
    ItemType.car: Car,
    ItemType.car_part: CarPart,
}


@dataclass
class PricedLine:
    """Cart line joined with the live catalog item."""

    line: CartItem
    product: CatalogItem

    @property
    def unit_price(self) -> Decimal:
        return q2(self.product.price)

    @property
    def total(self) -> Decimal:
        return line_total(self.product.price, self.line.quantity)

    @property
    def has_sufficient_stock(self) -> bool:
        return self.product.stock_quantity >= self.line.quantity

    @property
    def is_valid(self) -> bool:
        return self.product.is_available and self.has_sufficient_stock


def item_name(product: CatalogItem) -> str:
    return product.display_name


async def load_catalog_item(db: AsyncSession, item_type: ItemType, item_id: uuid.UUID) -> CatalogItem | None:
    return await db.get(_MODELS[item_type], item_id)


async def _load_products(db: AsyncSession, lines: list[CartItem]) -> dict[tuple[ItemType, uuid.UUID], CatalogItem]:
    found: dict[tuple[ItemType, uuid.UUID], CatalogItem] = {}
    for item_type, model in _MODELS.items():
        ids = [line.item_id for line in lines if line.item_type == item_type]
        if not ids:
            continue
        result = await db.execute(select(model).where(model.id.in_(ids)))
        for product in result.scalars().all():
            found[(item_type, product.id)] = product
    return found


async def get_cart(db: AsyncSession, user_id: uuid.UUID) -> Cart | None:
    result = await db.execute(select(Cart).where(Cart.user_id == user_id).limit(1))
    return result.scalars().first()


async def get_or_create_cart(db: AsyncSession, user_id: uuid.UUID) -> Cart:
    cart = await get_cart(db, user_id)
    if cart:
        return cart
    cart = Cart(user_id=user_id)
    db.add(cart)
    await flush_async(db, cart)
    await refresh_async(db, cart, attribute_names=["items"])
    return cart


async def priced_lines(db: AsyncSession, cart: Cart) -> list[PricedLine]:
    """Pair each line with its catalog item, dropping lines whose item was deleted."""
    products = await _load_products(db, list(cart.items))
    lines: list[PricedLine] = []
    for line in list(cart.items):
        product = products.get((line.item_type, line.item_id))
        if product is None:
            logger.info(
                "Pruning cart line for missing catalog item",
                extra={"cart_id": str(cart.id), "item_type": line.item_type.value, "item_id": str(line.item_id)},
            )
            cart.items.remove(line)
            continue
        lines.append(PricedLine(line=line, product=product))
    await flush_async(db)
    return lines


def _to_read(cart: Cart | None, lines: list[PricedLine]) -> CartRead:
    totals = compute_totals((pl.unit_price, pl.line.quantity) for pl in lines)
    items = [
        CartLineRead(
            id=pl.line.id,
            item_type=pl.line.item_type,
            item_id=pl.line.item_id,
            name=item_name(pl.product),
            brand_name=pl.product.brand.name if pl.product.brand else None,
            part_number=getattr(pl.product, "part_number", None),
            image_url=pl.product.image_url,
            unit_price=pl.unit_price,
            quantity=pl.line.quantity,
            line_total=pl.total,
            stock_quantity=pl.product.stock_quantity,
            is_available=pl.product.is_available,
            has_sufficient_stock=pl.has_sufficient_stock,
            added_at=pl.line.added_at,
        )
        for pl in lines
    ]
    return CartRead(
        id=cart.id if cart else None,
        items=items,
        total_items=totals.total_items,
        subtotal=totals.subtotal,
        shipping=totals.shipping,
        tax=totals.tax,
        grand_total=totals.grand_total,
        currency=settings.CURRENCY,
        free_shipping_threshold=q2(settings.FREE_SHIPPING_THRESHOLD),
        is_valid=all(pl.is_valid for pl in lines),
    )


async def view_cart(db: AsyncSession, user_id: uuid.UUID) -> CartRead:
    cart = await get_cart(db, user_id)
    if cart is None:
        return _to_read(None, [])
    return _to_read(cart, await priced_lines(db, cart))


async def count_items(db: AsyncSession, user_id: uuid.UUID) -> int:
    stmt = (
        select(func.coalesce(func.sum(CartItem.quantity), 0))
        .join(Cart, CartItem.cart_id == Cart.id)
        .where(Cart.user_id == user_id)
    )
    return int(await db.scalar(stmt) or 0)


def _find_line(cart: Cart, line_id: uuid.UUID) -> CartItem:
    for line in cart.items:
        if line.id == line_id:
            return line
    raise ResourceNotFoundError("Cart item not found")


def _ensure_stock(product: CatalogItem, quantity: int) -> None:
    if product.stock_quantity < quantity:
        raise InsufficientStockError(
            f"Insufficient stock for {item_name(product)}: only {product.stock_quantity} available"
        )


async def add_item(db: AsyncSession, user_id: uuid.UUID, payload: CartItemCreate) -> CartRead:
    product = await load_catalog_item(db, payload.item_type, payload.item_id)
    if product is None:
        raise ResourceNotFoundError("Item not found")
    if not product.is_purchasable:
        raise DomainValidationError("Item is not available")

    cart = await get_or_create_cart(db, user_id)
    existing = next(
        (line for line in cart.items if line.item_type == payload.item_type and line.item_id == payload.item_id),
        None,
    )
    new_quantity = payload.quantity + (existing.quantity if existing else 0)
    _ensure_stock(product, new_quantity)

    if existing:
        existing.quantity = new_quantity
    else:
        cart.items.append(
            CartItem(item_type=payload.item_type, item_id=payload.item_id, quantity=payload.quantity)
        )
    await flush_async(db)
    logger.info(
        "Item added to cart",
        extra={"user_id": str(user_id), "item_type": payload.item_type.value, "item_id": str(payload.item_id)},
    )
    return await view_cart(db, user_id)


async def update_item(db: AsyncSession, user_id: uuid.UUID, line_id: uuid.UUID, quantity: int) -> CartRead:
    cart = await get_cart(db, user_id)
    if cart is None:
        raise ResourceNotFoundError("Cart item not found")
    line = _find_line(cart, line_id)

    if quantity <= 0:
        cart.items.remove(line)
    else:
        product = await load_catalog_item(db, line.item_type, line.item_id)
        if product is None:
            cart.items.remove(line)
            await flush_async(db)
            raise ResourceNotFoundError("Item no longer exists")
        _ensure_stock(product, quantity)
        line.quantity = quantity
    await flush_async(db)
    return await view_cart(db, user_id)


async def remove_item(db: AsyncSession, user_id: uuid.UUID, line_id: uuid.UUID) -> CartRead:
    cart = await get_cart(db, user_id)
    if cart is None:
        raise ResourceNotFoundError("Cart item not found")
    cart.items.remove(_find_line(cart, line_id))
    await flush_async(db)
    return await view_cart(db, user_id)


async def clear_cart(db: AsyncSession, user_id: uuid.UUID) -> None:
    cart = await get_cart(db, user_id)
    if cart is None:
        return
    cart.items.clear()
    await flush_async(db)
