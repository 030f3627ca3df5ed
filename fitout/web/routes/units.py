"""Unit routes: creation with portal login, edits, password reset and floor plans."""

from __future__ import annotations

import structlog
from fastapi import APIRouter, Depends, File, HTTPException, Request, UploadFile

from fitout.core import audit_logger
from fitout.core.audit_logger import log_action
from fitout.db.connection import get_session
from fitout.portal.context import load_portal_context
from fitout.projects.service import get_project
from fitout.units import service
from fitout.web.auth import require_admin
from fitout.web.dependencies import parse_uuid
from fitout.web.models import UnitCreate, UnitUpdate

router = APIRouter(tags=["units"])
logger = structlog.get_logger()


@router.get("/api/projects/{project_id}/units")
async def list_units(project_id: str, username: str = Depends(require_admin)):
    p_uuid = parse_uuid(project_id, "project ID")
    async with get_session() as session:
        await get_project(session, p_uuid)
        return {"success": True, "data": await service.list_units(session, p_uuid)}


@router.post("/api/units", status_code=201)
async def create_unit(request: Request, payload: UnitCreate, username: str = Depends(require_admin)):
    """Create a unit and its portal login.

    The generated password is returned in this response only.
    """
    async with get_session() as session:
        credentials = await service.create_unit_with_login(
            session,
            project_id=payload.project_id,
            unit_number=payload.unit_number,
            unit_type_id=payload.unit_type_id,
            status=payload.status,
        )
        await log_action(
            request,
            audit_logger.UNIT_CREATE,
            username,
            resource_type="unit",
            resource_id=str(credentials.unit.id),
            details={"unit_number": credentials.unit.unit_number, "login": credentials.username},
            session=session,
        )
        return {
            "success": True,
            "data": {
                **service.unit_to_dict(credentials.unit),
                "username": credentials.username,
                "password": credentials.password,
            },
        }


@router.get("/api/units/{unit_id}")
async def get_unit(unit_id: str, username: str = Depends(require_admin)):
    u_uuid = parse_uuid(unit_id, "unit ID")
    async with get_session() as session:
        unit = await service.get_unit(session, u_uuid)
        return {"success": True, "data": service.unit_to_dict(unit)}


@router.patch("/api/units/{unit_id}")
async def update_unit(unit_id: str, payload: UnitUpdate, username: str = Depends(require_admin)):
    u_uuid = parse_uuid(unit_id, "unit ID")
    async with get_session() as session:
        unit = await service.update_unit(session, u_uuid, **payload.model_dump(exclude_unset=True))
        return {"success": True, "data": service.unit_to_dict(unit)}


@router.delete("/api/units/{unit_id}")
async def delete_unit(unit_id: str, username: str = Depends(require_admin)):
    u_uuid = parse_uuid(unit_id, "unit ID")
    async with get_session() as session:
        await service.delete_unit(session, u_uuid)
    return {"success": True}


@router.post("/api/units/{unit_id}/reset-password")
async def reset_password(request: Request, unit_id: str, username: str = Depends(require_admin)):
    u_uuid = parse_uuid(unit_id, "unit ID")
    async with get_session() as session:
        credentials = await service.reset_unit_password(session, u_uuid)
        await log_action(
            request,
            audit_logger.UNIT_PASSWORD_RESET,
            username,
            resource_type="unit",
            resource_id=str(u_uuid),
            session=session,
        )
        return {
            "success": True,
            "data": {"username": credentials.username, "password": credentials.password},
        }


@router.post("/api/units/{unit_id}/floor-plan")
async def upload_floor_plan(
    unit_id: str,
    file: UploadFile = File(...),
    username: str = Depends(require_admin),
):
    """Upload a floor plan file and attach it to the unit."""
    u_uuid = parse_uuid(unit_id, "unit ID")
    data = await file.read()
    if not data:
        raise HTTPException(status_code=400, detail="No file uploaded")

    async with get_session() as session:
        try:
            unit = await service.attach_floor_plan(session, u_uuid, file.filename or "floor-plan", data)
        except OSError as e:
            logger.error("floor_plan_upload_failed", unit_id=unit_id, error=str(e))
            raise HTTPException(status_code=500, detail="Failed to save floor plan")
        return {"success": True, "data": {"floor_plan_url": unit.floor_plan_url}}


@router.get("/api/units/{unit_id}/preview")
async def preview_unit(unit_id: str, username: str = Depends(require_admin)):
    """Portal view of a unit as its client would see it."""
    u_uuid = parse_uuid(unit_id, "unit ID")
    async with get_session() as session:
        unit = await service.get_unit(session, u_uuid)
        return {"success": True, "data": await load_portal_context(session, unit)}
