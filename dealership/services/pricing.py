"""Cart and order money arithmetic.

All amounts are ``Decimal`` rounded half-up to cents. Shipping is waived when
the subtotal is strictly above the free-shipping threshold; tax applies to the
subtotal only.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable

from dealership.core.config import settings

_CENT = Decimal("0.01")
ZERO = Decimal("0.00")


def q2(value) -> Decimal:
    """Quantize to 2 decimal places with HALF_UP."""
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(_CENT, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class Totals:
    subtotal: Decimal
    shipping: Decimal
    tax: Decimal
    grand_total: Decimal
    total_items: int


def line_total(unit_price, quantity: int) -> Decimal:
    return q2(q2(unit_price) * quantity)


def shipping_for(subtotal: Decimal) -> Decimal:
    if subtotal <= ZERO:
        return ZERO
    if subtotal > settings.FREE_SHIPPING_THRESHOLD:
        return ZERO
    return q2(settings.SHIPPING_FLAT_FEE)


def tax_for(subtotal: Decimal) -> Decimal:
    return q2(subtotal * settings.TAX_RATE)


def compute_totals(lines: Iterable[tuple[Decimal, int]]) -> Totals:
    """Totals for ``(unit_price, quantity)`` pairs."""
    subtotal = ZERO
    total_items = 0
    for unit_price, quantity in lines:
        subtotal += line_total(unit_price, quantity)
        total_items += quantity
    subtotal = q2(subtotal)
    shipping = shipping_for(subtotal)
    tax = tax_for(subtotal)
    return Totals(
        subtotal=subtotal,
        shipping=shipping,
        tax=tax,
        grand_total=q2(subtotal + shipping + tax),
        total_items=total_items,
    )
