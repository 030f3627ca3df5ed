"""Integration tests for projects and the per-project catalog.

Runs the catalog services against an in-memory database.
"""

from __future__ import annotations

from decimal import Decimal
from uuid import uuid4

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from fitout.catalog import color_schemes, unit_types, upgrades
from fitout.errors import ConflictError, NotFoundError
from fitout.portal.context import load_portal_context
from fitout.projects import service as projects
from fitout.units.service import create_unit_with_login


class TestProjects:
    async def test_create_and_update(self, db_session: AsyncSession):
        project = await projects.create_project(db_session, "  Harbour View ", address="1 Quay St")

        updated = await projects.update_project(db_session, project.id, description="Stage 1")

        assert updated.name == "Harbour View"
        assert updated.address == "1 Quay St"
        assert updated.description == "Stage 1"

    async def test_name_required(self, db_session: AsyncSession):
        with pytest.raises(ValueError):
            await projects.create_project(db_session, "  ")

    async def test_missing_project(self, db_session: AsyncSession):
        with pytest.raises(NotFoundError):
            await projects.get_project(db_session, uuid4())

    async def test_delete_cascades_to_catalog(self, db_session: AsyncSession, project, catalog):
        await projects.delete_project(db_session, project.id)
        db_session.expunge_all()

        assert await unit_types.list_unit_types(db_session, project.id) == []
        assert await upgrades.list_upgrade_options(db_session, project.id) == []


class TestUnitTypes:
    async def test_allowed_ids_must_belong_to_project(self, db_session: AsyncSession, project, catalog):
        other = await projects.create_project(db_session, "Other Development")
        foreign = await upgrades.create_upgrade_option(
            db_session, other.id, name="Spa Bath", category="Bathroom", price=Decimal("5000")
        )

        with pytest.raises(ValueError):
            await unit_types.update_unit_type(
                db_session, catalog["unit_type"].id, allowed_upgrades=[str(foreign.id)]
            )

    async def test_negative_bedrooms_rejected(self, db_session: AsyncSession, project):
        with pytest.raises(ValueError):
            await unit_types.create_unit_type(db_session, project.id, name="Studio", bedrooms=-1)


class TestUpgradeOptions:
    async def test_price_must_be_positive(self, db_session: AsyncSession, project):
        with pytest.raises(ValueError):
            await upgrades.create_upgrade_option(
                db_session, project.id, name="Free Thing", category="Misc", price=0
            )

    async def test_max_quantity_at_least_one(self, db_session: AsyncSession, project):
        with pytest.raises(ValueError):
            await upgrades.create_upgrade_option(
                db_session, project.id, name="Thing", category="Misc", price=10, max_quantity=0
            )

    async def test_duplicate_name_is_conflict(self, db_session: AsyncSession, project, catalog):
        with pytest.raises(ConflictError):
            await upgrades.create_upgrade_option(
                db_session, project.id, name="steam oven", category="Appliances", price=100
            )

    async def test_previous_project_upgrades_reset_price(self, db_session: AsyncSession, project, catalog):
        new_project = await projects.create_project(db_session, "Stage Two")

        previous = await upgrades.previous_project_upgrades(db_session, new_project.id)

        assert {p["name"] for p in previous} == {"Steam Oven", "LED Downlight", "Double Power Point"}
        assert all(p["price"] == 0 for p in previous)
        assert all(p["allowed_unit_types"] == [] for p in previous)
        assert all(p["source_project_id"] == str(project.id) for p in previous)


class TestDeleteScrubsIds:
    """Deleting catalog entries leaves no orphan ids behind."""

    async def test_delete_color_scheme(self, db_session: AsyncSession, catalog):
        scheme_id = str(catalog["scheme"].id)

        await color_schemes.delete_color_scheme(db_session, catalog["scheme"].id)

        unit_type = await unit_types.get_unit_type(db_session, catalog["unit_type"].id)
        assert scheme_id not in unit_type.allowed_color_schemes

    async def test_delete_upgrade(self, db_session: AsyncSession, catalog):
        oven_id = str(catalog["oven"].id)

        await upgrades.delete_upgrade_option(db_session, catalog["oven"].id)

        unit_type = await unit_types.get_unit_type(db_session, catalog["unit_type"].id)
        assert oven_id not in unit_type.allowed_upgrades
        assert len(unit_type.allowed_upgrades) == 2

    async def test_delete_unit_type(self, db_session: AsyncSession, project, catalog):
        type_id = str(catalog["unit_type"].id)

        await unit_types.delete_unit_type(db_session, catalog["unit_type"].id)

        for scheme in await color_schemes.list_color_schemes(db_session, project.id):
            assert type_id not in scheme.allowed_unit_types
        for upgrade in await upgrades.list_upgrade_options(db_session, project.id):
            assert type_id not in upgrade.allowed_unit_types

    async def test_portal_lists_follow_deletes(self, db_session: AsyncSession, project, catalog):
        credentials = await create_unit_with_login(
            db_session, project.id, "202", unit_type_id=catalog["unit_type"].id
        )

        await color_schemes.delete_color_scheme(db_session, catalog["scheme"].id)
        await upgrades.delete_upgrade_option(db_session, catalog["sockets"].id)
        context = await load_portal_context(db_session, credentials.unit)

        assert context["color_schemes"] == []
        assert {u["name"] for u in context["upgrades"]} == {"Steam Oven", "LED Downlight"}
