"""Client invitation routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request

from fitout.core import audit_logger
from fitout.core.audit_logger import log_action
from fitout.db.connection import get_session
from fitout.portal import invitations
from fitout.web.auth import require_admin
from fitout.web.models import InvitationCreate

router = APIRouter(tags=["invitations"])


@router.post("/api/invitations", status_code=201)
async def create_invitation(
    request: Request, payload: InvitationCreate, username: str = Depends(require_admin)
):
    """Invite a client to customize a unit; returns the portal link."""
    async with get_session() as session:
        invitation = await invitations.create_invitation(
            session,
            payload.unit_id,
            payload.client.model_dump(),
            expires_in_days=payload.expires_in_days,
        )
        await log_action(
            request,
            audit_logger.INVITATION_CREATE,
            username,
            resource_type="invitation",
            resource_id=invitation["invitation_id"],
            details={"unit_id": str(payload.unit_id), "email": payload.client.email},
            session=session,
        )
        return {"success": True, "data": invitation}


@router.post("/api/invitations/quick", status_code=201)
async def create_quick_invitation(request: Request, username: str = Depends(require_admin)):
    async with get_session() as session:
        invitation = await invitations.create_quick_invitation(session)
        await log_action(
            request,
            audit_logger.INVITATION_CREATE,
            username,
            resource_type="invitation",
            resource_id=invitation["invitation_id"],
            details={"unit_id": invitation["unit_id"], "quick": True},
            session=session,
        )
        return {"success": True, "data": invitation}
