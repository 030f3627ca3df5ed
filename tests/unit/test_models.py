"""Tests for fitout.models - Pydantic view models."""

from __future__ import annotations

from decimal import Decimal

import pytest
from pydantic import ValidationError

from fitout.models import ClientUpgrade, SubmissionData, UpgradeOption, WizardStep


class TestSubmissionData:
    def test_token_is_required(self):
        with pytest.raises(ValidationError):
            SubmissionData(token="   ")

    def test_token_is_stripped(self):
        assert SubmissionData(token="  abc123  ").token == "abc123"

    def test_wizard_step_bounds(self):
        assert SubmissionData(token="t", wizard_step=5).wizard_step == WizardStep.CONFIRMATION
        with pytest.raises(ValidationError):
            SubmissionData(token="t", wizard_step=6)
        with pytest.raises(ValidationError):
            SubmissionData(token="t", wizard_step=0)

    def test_defaults(self):
        data = SubmissionData(token="t")

        assert data.selected_upgrades == []
        assert data.floor_plan_data == {}
        assert data.is_submitted is False


def test_upgrade_option_max_quantity_at_least_one():
    with pytest.raises(ValidationError):
        UpgradeOption(id="x", name="Oven", category="Appliances", price=Decimal("10"), max_quantity=0)


def test_client_upgrade_price_non_negative():
    with pytest.raises(ValidationError):
        ClientUpgrade(id="x", name="Oven", category="Appliances", price=Decimal("-1"), quantity=1)


def test_client_upgrade_json_round_trip_keeps_points():
    upgrade = ClientUpgrade.model_validate(
        {
            "id": "power",
            "name": "Double Power Points",
            "category": "Electrical",
            "price": "95.00",
            "quantity": 1,
            "floor_plan_points": [
                {
                    "id": "p1",
                    "x": 10,
                    "y": 20,
                    "label": "Double Power Points #1",
                    "upgrade_id": "power",
                    "upgrade_name": "Double Power Points",
                    "symbol": "PP",
                    "color": "#3B82F6",
                }
            ],
        }
    )

    dumped = upgrade.model_dump(mode="json")

    assert dumped["price"] == "95.00"
    assert dumped["floor_plan_points"][0]["symbol"] == "PP"
