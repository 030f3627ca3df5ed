"""Catalog routes: unit types, color schemes and upgrade options."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from fitout.catalog import color_schemes, unit_types, upgrades
from fitout.db.connection import get_session
from fitout.projects.service import get_project
from fitout.web.auth import require_admin
from fitout.web.dependencies import parse_uuid
from fitout.web.models import (
    ColorSchemeCreate,
    ColorSchemeUpdate,
    UnitTypeCreate,
    UnitTypeUpdate,
    UpgradeOptionCreate,
    UpgradeOptionUpdate,
)

router = APIRouter(tags=["catalog"], dependencies=[Depends(require_admin)])


# ============================================================================
# Unit Types
# ============================================================================


@router.get("/api/projects/{project_id}/unit-types")
async def list_unit_types(project_id: str):
    p_uuid = parse_uuid(project_id, "project ID")
    async with get_session() as session:
        await get_project(session, p_uuid)
        rows = await unit_types.list_unit_types(session, p_uuid)
        return {"success": True, "data": [unit_types.unit_type_to_dict(r) for r in rows]}


@router.post("/api/projects/{project_id}/unit-types", status_code=201)
async def create_unit_type(project_id: str, payload: UnitTypeCreate):
    p_uuid = parse_uuid(project_id, "project ID")
    async with get_session() as session:
        unit_type = await unit_types.create_unit_type(session, p_uuid, **payload.model_dump())
        return {"success": True, "data": unit_types.unit_type_to_dict(unit_type)}


@router.patch("/api/unit-types/{unit_type_id}")
async def update_unit_type(unit_type_id: str, payload: UnitTypeUpdate):
    ut_uuid = parse_uuid(unit_type_id, "unit type ID")
    async with get_session() as session:
        unit_type = await unit_types.update_unit_type(
            session, ut_uuid, **payload.model_dump(exclude_unset=True)
        )
        return {"success": True, "data": unit_types.unit_type_to_dict(unit_type)}


@router.delete("/api/unit-types/{unit_type_id}")
async def delete_unit_type(unit_type_id: str):
    ut_uuid = parse_uuid(unit_type_id, "unit type ID")
    async with get_session() as session:
        await unit_types.delete_unit_type(session, ut_uuid)
    return {"success": True}


# ============================================================================
# Color Schemes
# ============================================================================


@router.get("/api/projects/{project_id}/color-schemes")
async def list_color_schemes(project_id: str):
    p_uuid = parse_uuid(project_id, "project ID")
    async with get_session() as session:
        await get_project(session, p_uuid)
        rows = await color_schemes.list_color_schemes(session, p_uuid)
        return {"success": True, "data": [color_schemes.color_scheme_to_dict(r) for r in rows]}


@router.post("/api/projects/{project_id}/color-schemes", status_code=201)
async def create_color_scheme(project_id: str, payload: ColorSchemeCreate):
    p_uuid = parse_uuid(project_id, "project ID")
    async with get_session() as session:
        scheme = await color_schemes.create_color_scheme(session, p_uuid, **payload.model_dump())
        return {"success": True, "data": color_schemes.color_scheme_to_dict(scheme)}


@router.patch("/api/color-schemes/{scheme_id}")
async def update_color_scheme(scheme_id: str, payload: ColorSchemeUpdate):
    cs_uuid = parse_uuid(scheme_id, "color scheme ID")
    async with get_session() as session:
        scheme = await color_schemes.update_color_scheme(
            session, cs_uuid, **payload.model_dump(exclude_unset=True)
        )
        return {"success": True, "data": color_schemes.color_scheme_to_dict(scheme)}


@router.delete("/api/color-schemes/{scheme_id}")
async def delete_color_scheme(scheme_id: str):
    cs_uuid = parse_uuid(scheme_id, "color scheme ID")
    async with get_session() as session:
        await color_schemes.delete_color_scheme(session, cs_uuid)
    return {"success": True}


# ============================================================================
# Upgrade Options
# ============================================================================


@router.get("/api/projects/{project_id}/upgrade-options")
async def list_upgrade_options(project_id: str):
    p_uuid = parse_uuid(project_id, "project ID")
    async with get_session() as session:
        await get_project(session, p_uuid)
        rows = await upgrades.list_upgrade_options(session, p_uuid)
        return {"success": True, "data": [upgrades.upgrade_option_to_dict(r) for r in rows]}


@router.get("/api/projects/{project_id}/upgrade-options/previous")
async def previous_upgrade_options(project_id: str):
    """Upgrades from other projects to copy from (price and unit types reset)."""
    p_uuid = parse_uuid(project_id, "project ID")
    async with get_session() as session:
        await get_project(session, p_uuid)
        return {"success": True, "data": await upgrades.previous_project_upgrades(session, p_uuid)}


@router.post("/api/projects/{project_id}/upgrade-options", status_code=201)
async def create_upgrade_option(project_id: str, payload: UpgradeOptionCreate):
    p_uuid = parse_uuid(project_id, "project ID")
    async with get_session() as session:
        upgrade = await upgrades.create_upgrade_option(session, p_uuid, **payload.model_dump())
        return {"success": True, "data": upgrades.upgrade_option_to_dict(upgrade)}


@router.patch("/api/upgrade-options/{upgrade_id}")
async def update_upgrade_option(upgrade_id: str, payload: UpgradeOptionUpdate):
    u_uuid = parse_uuid(upgrade_id, "upgrade option ID")
    async with get_session() as session:
        upgrade = await upgrades.update_upgrade_option(
            session, u_uuid, **payload.model_dump(exclude_unset=True)
        )
        return {"success": True, "data": upgrades.upgrade_option_to_dict(upgrade)}


@router.delete("/api/upgrade-options/{upgrade_id}")
async def delete_upgrade_option(upgrade_id: str):
    u_uuid = parse_uuid(upgrade_id, "upgrade option ID")
    async with get_session() as session:
        await upgrades.delete_upgrade_option(session, u_uuid)
    return {"success": True}
