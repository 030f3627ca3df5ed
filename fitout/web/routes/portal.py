"""Client portal routes.

Every route is authorised by the portal token in the path: an unexpired
invitation token or the unit access token returned at client login.
"""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, Request
from sqlalchemy.ext.asyncio import AsyncSession

from fitout.core import audit_logger
from fitout.core.audit_logger import log_action
from fitout.db.connection import get_session
from fitout.db.models import UnitModel
from fitout.portal.context import load_portal_context
from fitout.portal.invitations import resolve_portal_token
from fitout.submissions import service
from fitout.web.models import NavigateRequest, PointCreate, SelectionUpdate

router = APIRouter(tags=["portal"])


async def _unit_for_token(session: AsyncSession, token: str) -> UnitModel:
    unit = await resolve_portal_token(session, token)
    if unit is None:
        raise HTTPException(status_code=404, detail="Invalid or expired link")
    return unit


@router.get("/api/portal/{token}")
async def get_portal(token: str):
    """Everything the wizard needs: catalog for the unit and the saved selection."""
    async with get_session() as session:
        unit = await _unit_for_token(session, token)
        return {"success": True, "data": await load_portal_context(session, unit)}


@router.put("/api/portal/{token}/selection")
async def save_selection(token: str, payload: SelectionUpdate):
    async with get_session() as session:
        unit = await _unit_for_token(session, token)
        submission = await service.save_draft(
            session,
            unit,
            token,
            payload.color_scheme,
            payload.upgrades,
            wizard_step=payload.wizard_step,
        )
        return {"success": True, "data": service.submission_view(submission)}


@router.post("/api/portal/{token}/navigate")
async def navigate(token: str, payload: NavigateRequest):
    async with get_session() as session:
        unit = await _unit_for_token(session, token)
        step = await service.navigate(session, unit, token, payload.direction)
        return {"success": True, "data": {"current_step": step}}


@router.post("/api/portal/{token}/points", status_code=201)
async def place_point(token: str, payload: PointCreate):
    async with get_session() as session:
        unit = await _unit_for_token(session, token)
        point = await service.place(session, unit, token, payload.upgrade_id, payload.x, payload.y)
        return {"success": True, "data": point.model_dump()}


@router.delete("/api/portal/{token}/points/{point_id}")
async def remove_point(token: str, point_id: str):
    async with get_session() as session:
        unit = await _unit_for_token(session, token)
        await service.remove(session, unit, token, point_id)
    return {"success": True}


@router.post("/api/portal/{token}/submit")
async def submit(request: Request, token: str):
    """Finalise the selection; later edits are rejected."""
    async with get_session() as session:
        unit = await _unit_for_token(session, token)
        confirmation = await service.submit(session, unit, token)
        await log_action(
            request,
            audit_logger.SUBMISSION_SUBMIT,
            unit.username or unit.unit_number,
            resource_type="submission",
            resource_id=confirmation["submission_id"],
            details={"unit_id": str(unit.id), "total": confirmation["summary"]["total"]},
            session=session,
        )
        return {"success": True, "data": confirmation}
