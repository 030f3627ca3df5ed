"""Upgrade pricing: subtotal, GST and totals.

All arithmetic is Decimal; GST is rounded to cents half-up. Catalog
prices are either GST exclusive (GST is added on top) or GST inclusive
(the GST portion is extracted and the total equals the subtotal).
"""

from __future__ import annotations

from collections.abc import Iterable
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

CENTS = Decimal("0.01")


def _price_and_quantity(upgrade: Any) -> tuple[Decimal, int]:
    if isinstance(upgrade, dict):
        price, quantity = upgrade.get("price"), upgrade.get("quantity")
    else:
        price, quantity = upgrade.price, upgrade.quantity
    return Decimal(str(price or 0)), int(quantity or 0)


def upgrade_subtotal(upgrades: Iterable[Any]) -> Decimal:
    """Sum of price x quantity over selected upgrades (models or plain dicts)."""
    total = Decimal("0")
    for upgrade in upgrades:
        price, quantity = _price_and_quantity(upgrade)
        total += price * quantity
    return total.quantize(CENTS, rounding=ROUND_HALF_UP)


def gst(subtotal: Decimal, rate: Decimal, included: bool = False) -> Decimal:
    """GST on ``subtotal``; the GST contained in it when ``included``."""
    subtotal, rate = Decimal(subtotal), Decimal(rate)
    if included:
        amount = subtotal * rate / (1 + rate)
    else:
        amount = subtotal * rate
    return amount.quantize(CENTS, rounding=ROUND_HALF_UP)


def total_with_gst(subtotal: Decimal, rate: Decimal, included: bool = False) -> Decimal:
    subtotal = Decimal(subtotal).quantize(CENTS, rounding=ROUND_HALF_UP)
    if included:
        return subtotal
    return subtotal + gst(subtotal, rate)


def price_summary(
    upgrades: Iterable[Any], rate: Decimal, currency: str, included: bool = False
) -> dict:
    """Subtotal/GST/total block shown on the review step and upgrade PDF."""
    subtotal = upgrade_subtotal(upgrades)
    return {
        "subtotal": subtotal,
        "gst": gst(subtotal, rate, included),
        "total": total_with_gst(subtotal, rate, included),
        "gst_rate": Decimal(rate),
        "currency": currency,
    }
