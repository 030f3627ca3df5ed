"""Tests for fitout.portal.pricing - upgrade totals and GST."""

from __future__ import annotations

from decimal import Decimal

import pytest

from fitout.models import ClientUpgrade
from fitout.portal.pricing import gst, price_summary, total_with_gst, upgrade_subtotal


def _upgrade(price: str, quantity: int, category: str = "Appliances") -> ClientUpgrade:
    return ClientUpgrade(
        id=f"u-{price}-{quantity}",
        name="Upgrade",
        category=category,
        price=Decimal(price),
        quantity=quantity,
    )


class TestUpgradeSubtotal:
    def test_sums_price_times_quantity(self):
        upgrades = [_upgrade("2400.00", 1), _upgrade("150.00", 4), _upgrade("95.50", 2)]

        assert upgrade_subtotal(upgrades) == Decimal("3191.00")

    def test_accepts_plain_dicts(self):
        upgrades = [
            {"price": "200", "quantity": 2},
            {"price": 49.99, "quantity": 1},
        ]

        assert upgrade_subtotal(upgrades) == Decimal("449.99")

    def test_empty_selection_is_zero(self):
        assert upgrade_subtotal([]) == Decimal("0.00")


class TestGst:
    @pytest.mark.parametrize(
        "subtotal,expected",
        [
            (Decimal("1000.00"), Decimal("150.00")),
            (Decimal("3191.00"), Decimal("478.65")),
            (Decimal("0.10"), Decimal("0.02")),  # 0.015 rounds half-up
            (Decimal("0"), Decimal("0.00")),
        ],
    )
    def test_fifteen_percent(self, subtotal, expected):
        assert gst(subtotal, Decimal("0.15")) == expected

    def test_total_is_subtotal_plus_gst(self):
        assert total_with_gst(Decimal("3191.00"), Decimal("0.15")) == Decimal("3669.65")


def test_price_summary():
    summary = price_summary([_upgrade("150.00", 4)], Decimal("0.15"), "NZD")

    assert summary == {
        "subtotal": Decimal("600.00"),
        "gst": Decimal("90.00"),
        "total": Decimal("690.00"),
        "gst_rate": Decimal("0.15"),
        "currency": "NZD",
    }


class TestGstIncluded:
    def test_gst_extracted_from_price(self):
        assert gst(Decimal("115.00"), Decimal("0.15"), included=True) == Decimal("15.00")

    def test_total_equals_subtotal(self):
        assert total_with_gst(Decimal("115.00"), Decimal("0.15"), included=True) == Decimal("115.00")

    def test_price_summary(self):
        summary = price_summary([_upgrade("115.00", 1)], Decimal("0.15"), "NZD", included=True)

        assert summary["subtotal"] == Decimal("115.00")
        assert summary["gst"] == Decimal("15.00")
        assert summary["total"] == Decimal("115.00")

    def test_rounds_half_up(self):
        # 100 x 0.15 / 1.15 = 13.0434...
        assert gst(Decimal("100.00"), Decimal("0.15"), included=True) == Decimal("13.04")
