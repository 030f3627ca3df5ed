"""Client invitations and portal token resolution."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from uuid import UUID, uuid4

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from fitout.config import get_config
from fitout.db.models import InvitationModel, UnitModel, utcnow
from fitout.errors import NotFoundError
from fitout.models import UnitStatus
from fitout.sales.service import upsert_client

logger = structlog.get_logger()

TEST_CLIENT_NAME = "Test Buyer"
TEST_CLIENT_EMAIL = "testbuyer@example.com"


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def portal_link(token: str, base_url: str | None = None) -> str:
    base = (base_url or get_config().portal.base_url).rstrip("/")
    return f"{base}/client/{token}"


async def create_invitation(
    session: AsyncSession,
    unit_id: UUID,
    client: dict,
    expires_in_days: int | None = None,
) -> dict:
    """Invite a client to customize a unit.

    Args:
        unit_id: Unit the client may customize
        client: ``{"name", "email", "phone"?}``
        expires_in_days: Lifetime of the link (configured default when None)

    Returns:
        dict: ``{invitation_id, token, link, expires_at}``
    """
    unit = await session.get(UnitModel, unit_id)
    if unit is None:
        raise NotFoundError("Unit", unit_id)
    client = client or {}
    if not (client.get("name") or "").strip() or not (client.get("email") or "").strip():
        raise ValueError("Missing required fields: client name and email")

    if expires_in_days is None:
        expires_in_days = get_config().portal.invitation_expiry_days
    if expires_in_days < 1:
        raise ValueError("Invitations must be valid for at least one day")

    client_row = await upsert_client(session, client["name"], client["email"], client.get("phone"))

    invitation = InvitationModel(
        client_id=client_row.id,
        unit_id=unit.id,
        token=uuid4().hex,
        expires_at=utcnow() + timedelta(days=expires_in_days),
    )
    session.add(invitation)
    await session.flush()

    logger.info(
        "invitation_created",
        invitation_id=str(invitation.id),
        unit_id=str(unit.id),
        client_email=client_row.email,
    )
    return {
        "invitation_id": str(invitation.id),
        "token": invitation.token,
        "link": portal_link(invitation.token),
        "expires_at": invitation.expires_at.isoformat(),
    }


async def create_quick_invitation(session: AsyncSession) -> dict:
    """Invite the test client to the most recently created unit."""
    result = await session.execute(
        select(UnitModel).order_by(UnitModel.created_at.desc()).limit(1)
    )
    unit = result.scalar_one_or_none()
    if unit is None:
        raise NotFoundError("Unit")

    invitation = await create_invitation(
        session, unit.id, {"name": TEST_CLIENT_NAME, "email": TEST_CLIENT_EMAIL}
    )
    return {**invitation, "unit_id": str(unit.id), "unit_number": unit.unit_number}


async def resolve_portal_token(
    session: AsyncSession, token: str, now: datetime | None = None
) -> UnitModel | None:
    """Unit authorised by a portal token, or None when unknown or expired.

    Accepts an invitation token (marked accepted on first use) or a unit
    ``access_token`` issued at client login. Units that are not active
    resolve to None.
    """
    token = (token or "").strip()
    if not token:
        return None
    now = now or utcnow()

    result = await session.execute(
        select(InvitationModel).where(InvitationModel.token == token)
    )
    invitation = result.scalar_one_or_none()
    if invitation is not None:
        if _as_utc(invitation.expires_at) <= now:
            logger.info("invitation_expired", invitation_id=str(invitation.id))
            return None
        unit = await session.get(UnitModel, invitation.unit_id)
        if not _is_active(unit):
            return None
        if invitation.accepted_at is None:
            invitation.accepted_at = now
            await session.flush()
        return unit

    result = await session.execute(select(UnitModel).where(UnitModel.access_token == token))
    unit = result.scalar_one_or_none()
    return unit if _is_active(unit) else None


def _is_active(unit: UnitModel | None) -> bool:
    return unit is not None and unit.status == UnitStatus.ACTIVE.value
