"""Integration tests for submissions and the portal wizard flow."""

from __future__ import annotations

from decimal import Decimal

import pytest
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from fitout.config import reset_config
from fitout.db.models import SubmissionModel
from fitout.errors import ConflictError
from fitout.models import ClientUpgrade, FloorPlanPoint, SubmissionData
from fitout.portal.context import load_portal_context
from fitout.portal.wizard import WizardError
from fitout.submissions import service

TOKEN = "c" * 32


def _choice(option, quantity=1) -> ClientUpgrade:
    return ClientUpgrade(
        id=str(option.id),
        name=option.name,
        category=option.category,
        price=option.price,
        quantity=quantity,
    )


async def _count(session: AsyncSession) -> int:
    return (await session.execute(select(func.count()).select_from(SubmissionModel))).scalar()


class TestUpsertSubmission:
    async def test_defaults_for_missing_labels(self, db_session: AsyncSession):
        submission, created = await service.upsert_submission(
            db_session, SubmissionData(token=TOKEN)
        )

        assert created is True
        assert submission.unit_number == "Unknown Unit"
        assert submission.project_name == "Unknown Project"
        assert submission.client_name == "Anonymous Client"
        assert submission.status == "draft"
        assert submission.wizard_step == 1

    async def test_same_token_updates_in_place(self, db_session: AsyncSession, catalog):
        first, _ = await service.upsert_submission(
            db_session, SubmissionData(token=TOKEN, unit_number="101", color_scheme="Coastal")
        )
        second, created = await service.upsert_submission(
            db_session,
            SubmissionData(
                token=TOKEN,
                unit_number="101",
                color_scheme="Coastal",
                selected_upgrades=[_choice(catalog["downlights"], 3)],
                wizard_step=2,
            ),
        )

        assert created is False
        assert second.id == first.id
        assert second.upgrade_value == Decimal("450.00")
        assert second.wizard_step == 2
        assert await _count(db_session) == 1

    async def test_submitted_stays_submitted(self, db_session: AsyncSession):
        await service.upsert_submission(db_session, SubmissionData(token=TOKEN, is_submitted=True))

        submission, _ = await service.upsert_submission(
            db_session, SubmissionData(token=TOKEN, is_submitted=False, wizard_step=2)
        )

        assert submission.status == "submitted"
        assert submission.wizard_step == 5

    async def test_unknown_unit_id(self, db_session: AsyncSession):
        with pytest.raises(ValueError):
            await service.upsert_submission(
                db_session, SubmissionData(token=TOKEN, unit_id="not-a-uuid")
            )

    async def test_view_is_camel_case(self, db_session: AsyncSession):
        submission, _ = await service.upsert_submission(
            db_session, SubmissionData(token=TOKEN, client_name="Aroha Smith")
        )

        view = service.submission_view(submission)

        assert view["clientName"] == "Aroha Smith"
        assert view["upgradeValue"] == 0.0
        assert view["selectedUpgrades"] == []


class TestPortalFlow:
    async def test_full_wizard_to_confirmation(self, db_session: AsyncSession, unit_with_login, catalog):
        unit = unit_with_login.unit

        await service.save_draft(
            db_session, unit, TOKEN, "Coastal",
            [_choice(catalog["oven"]), _choice(catalog["downlights"], 2)],
            wizard_step=2,
        )
        assert await service.navigate(db_session, unit, TOKEN, "next") == 3

        with pytest.raises(WizardError):
            await service.navigate(db_session, unit, TOKEN, "next")

        downlight_id = str(catalog["downlights"].id)
        first = await service.place(db_session, unit, TOKEN, downlight_id, 0.25, 0.4)
        await service.place(db_session, unit, TOKEN, downlight_id, 0.5, 0.4)
        await service.remove(db_session, unit, TOKEN, first.id)
        await service.place(db_session, unit, TOKEN, downlight_id, 0.75, 0.4)

        assert await service.navigate(db_session, unit, TOKEN, "next") == 4

        confirmation = await service.submit(db_session, unit, TOKEN)

        assert confirmation["current_step"] == 5
        assert confirmation["color_scheme"] == "Coastal"
        assert confirmation["summary"] == {
            "subtotal": 2700.0,
            "gst": 405.0,
            "total": 3105.0,
            "gst_rate": 0.15,
            "currency": "NZD",
        }
        assert await _count(db_session) == 1

        context = await load_portal_context(db_session, unit)
        assert context["is_submitted"] is True
        assert context["current_step"] == 5
        chosen = {u["id"]: u for u in context["selection"]["upgrades"]}
        points = chosen[downlight_id]["floor_plan_points"]
        assert [p["x"] for p in points] == [0.5, 0.75]

    async def test_edits_after_submit_rejected(self, db_session: AsyncSession, unit_with_login, catalog):
        unit = unit_with_login.unit
        await service.save_draft(db_session, unit, TOKEN, "Coastal", [_choice(catalog["oven"])], wizard_step=4)
        await service.submit(db_session, unit, TOKEN)

        with pytest.raises(ConflictError):
            await service.save_draft(db_session, unit, TOKEN, "Coastal", [])
        with pytest.raises(ConflictError):
            await service.navigate(db_session, unit, TOKEN, "back")

    async def test_submit_with_gst_included_prices(
        self, db_session: AsyncSession, unit_with_login, catalog, monkeypatch
    ):
        monkeypatch.setenv("GST_INCLUDED_IN_PRICES", "true")
        reset_config()
        unit = unit_with_login.unit
        await service.save_draft(db_session, unit, TOKEN, "Coastal", [_choice(catalog["oven"])], wizard_step=4)

        confirmation = await service.submit(db_session, unit, TOKEN)

        assert confirmation["summary"]["subtotal"] == 2400.0
        assert confirmation["summary"]["gst"] == 313.04
        assert confirmation["summary"]["total"] == 2400.0

    async def test_submit_requires_color_scheme(self, db_session: AsyncSession, unit_with_login, catalog):
        unit = unit_with_login.unit
        await service.save_draft(db_session, unit, TOKEN, "", [_choice(catalog["oven"])], wizard_step=1)

        with pytest.raises(WizardError, match="color scheme"):
            await service.submit(db_session, unit, TOKEN)

    async def test_submit_requires_all_points(self, db_session: AsyncSession, unit_with_login, catalog):
        unit = unit_with_login.unit
        await service.save_draft(
            db_session, unit, TOKEN, "Coastal", [_choice(catalog["sockets"], 2)], wizard_step=3
        )
        await service.place(db_session, unit, TOKEN, str(catalog["sockets"].id), 0.1, 0.1)

        with pytest.raises(WizardError, match="floor plan"):
            await service.submit(db_session, unit, TOKEN)

    async def test_unknown_scheme_rejected(self, db_session: AsyncSession, unit_with_login, catalog):
        with pytest.raises(WizardError):
            await service.save_draft(db_session, unit_with_login.unit, TOKEN, "Midnight", [])

    async def test_confirmation_step_only_through_submit(self, db_session: AsyncSession, unit_with_login, catalog):
        with pytest.raises(WizardError):
            await service.save_draft(
                db_session, unit_with_login.unit, TOKEN, "Coastal", [], wizard_step=5
            )

    async def test_prices_come_from_catalog(self, db_session: AsyncSession, unit_with_login, catalog):
        tampered = _choice(catalog["oven"]).model_copy(update={"price": Decimal("1.00"), "quantity": 9})

        submission = await service.save_draft(
            db_session, unit_with_login.unit, TOKEN, "Coastal", [tampered], wizard_step=2
        )

        assert submission.upgrade_value == Decimal("2400.00")
        assert submission.selected_upgrades[0]["quantity"] == 1

    async def test_later_tokens_save_to_same_submission(self, db_session: AsyncSession, unit_with_login, catalog):
        unit = unit_with_login.unit
        first = await service.save_draft(db_session, unit, TOKEN, "Coastal", [], wizard_step=1)

        second = await service.save_draft(db_session, unit, "d" * 32, "Coastal", [], wizard_step=2)

        assert second.id == first.id
        assert second.token == TOKEN
        assert await _count(db_session) == 1

    async def test_back_from_upgrades(self, db_session: AsyncSession, unit_with_login, catalog):
        unit = unit_with_login.unit
        await service.save_draft(db_session, unit, TOKEN, "Coastal", [], wizard_step=2)

        assert await service.navigate(db_session, unit, TOKEN, "back") == 1

    async def test_invalid_direction(self, db_session: AsyncSession, unit_with_login, catalog):
        with pytest.raises(ValueError):
            await service.navigate(db_session, unit_with_login.unit, TOKEN, "sideways")

    async def test_draft_step_limited_to_reachable(self, db_session: AsyncSession, unit_with_login, catalog):
        unit = unit_with_login.unit

        no_scheme = await service.save_draft(
            db_session, unit, TOKEN, "", [_choice(catalog["oven"])], wizard_step=4
        )
        assert no_scheme.wizard_step == 1

        no_floor_plan = await service.save_draft(
            db_session, unit, TOKEN, "Coastal", [_choice(catalog["oven"])], wizard_step=3
        )
        assert no_floor_plan.wizard_step == 2

    async def test_draft_points_rebuilt_from_catalog(self, db_session: AsyncSession, unit_with_login, catalog):
        forged = FloorPlanPoint(
            id="p1", x=99999, y=-5, label="p", upgrade_id="someone-else",
            upgrade_name="p", symbol="ZZ", color="#000000",
        )
        oven = _choice(catalog["oven"]).model_copy(update={"floor_plan_points": [forged]})
        sockets = _choice(catalog["sockets"], 2).model_copy(
            update={"floor_plan_points": [forged, forged]}
        )

        submission = await service.save_draft(
            db_session, unit_with_login.unit, TOKEN, "Coastal", [oven, sockets], wizard_step=3
        )

        points = submission.floor_plan_data["points"]
        assert len(points) == 2
        assert {p["upgrade_id"] for p in points} == {str(catalog["sockets"].id)}
        assert {(p["x"], p["y"]) for p in points} == {(800.0, 0.0)}
        assert len({p["id"] for p in points}) == 2
