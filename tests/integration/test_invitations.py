"""Integration tests for client invitations and portal token resolution."""

from __future__ import annotations

from datetime import timedelta
from uuid import UUID, uuid4

import pytest
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from fitout.db.models import ClientModel, InvitationModel, utcnow
from fitout.errors import NotFoundError
from fitout.portal import invitations
from fitout.units import service as units

BUYER = {"name": "Aroha Smith", "email": "Aroha@Example.com", "phone": "021 555 0101"}


async def test_create_invitation_returns_link(db_session: AsyncSession, unit_with_login):
    result = await invitations.create_invitation(db_session, unit_with_login.unit.id, BUYER)

    assert len(result["token"]) == 32
    assert result["link"] == f"https://portal.test/client/{result['token']}"
    invitation = await db_session.get(InvitationModel, UUID(result["invitation_id"]))
    assert invitation.accepted_at is None


async def test_default_expiry_is_fourteen_days(db_session: AsyncSession, unit_with_login):
    before = utcnow()
    result = await invitations.create_invitation(db_session, unit_with_login.unit.id, BUYER)

    invitation = (
        await db_session.execute(select(InvitationModel).where(InvitationModel.token == result["token"]))
    ).scalar_one()
    lifetime = invitations._as_utc(invitation.expires_at) - before
    assert timedelta(days=13, hours=23) < lifetime <= timedelta(days=14, minutes=1)


async def test_client_created_with_lowercase_email(db_session: AsyncSession, unit_with_login):
    await invitations.create_invitation(db_session, unit_with_login.unit.id, BUYER)

    client = (await db_session.execute(select(ClientModel))).scalar_one()
    assert client.email == "aroha@example.com"


@pytest.mark.parametrize(
    "client",
    [
        {"name": "", "email": "a@example.com"},
        {"name": "Aroha", "email": "  "},
        {},
    ],
)
async def test_missing_client_fields(db_session: AsyncSession, unit_with_login, client):
    with pytest.raises(ValueError, match="Missing required fields"):
        await invitations.create_invitation(db_session, unit_with_login.unit.id, client)


async def test_expiry_must_be_positive(db_session: AsyncSession, unit_with_login):
    with pytest.raises(ValueError):
        await invitations.create_invitation(
            db_session, unit_with_login.unit.id, BUYER, expires_in_days=0
        )


async def test_unknown_unit(db_session: AsyncSession, project):
    with pytest.raises(NotFoundError):
        await invitations.create_invitation(db_session, uuid4(), BUYER)


class TestResolvePortalToken:
    async def test_invitation_token_marks_accepted(self, db_session: AsyncSession, unit_with_login):
        result = await invitations.create_invitation(db_session, unit_with_login.unit.id, BUYER)

        unit = await invitations.resolve_portal_token(db_session, result["token"])

        assert unit.id == unit_with_login.unit.id
        invitation = (
            await db_session.execute(
                select(InvitationModel).where(InvitationModel.token == result["token"])
            )
        ).scalar_one()
        assert invitation.accepted_at is not None

    async def test_accepted_at_kept_on_reuse(self, db_session: AsyncSession, unit_with_login):
        result = await invitations.create_invitation(db_session, unit_with_login.unit.id, BUYER)
        first_use = utcnow()
        await invitations.resolve_portal_token(db_session, result["token"], now=first_use)

        await invitations.resolve_portal_token(
            db_session, result["token"], now=first_use + timedelta(days=1)
        )

        invitation = (
            await db_session.execute(
                select(InvitationModel).where(InvitationModel.token == result["token"])
            )
        ).scalar_one()
        assert invitation.accepted_at == first_use

    async def test_expired_invitation_rejected(self, db_session: AsyncSession, unit_with_login):
        result = await invitations.create_invitation(
            db_session, unit_with_login.unit.id, BUYER, expires_in_days=1
        )

        unit = await invitations.resolve_portal_token(
            db_session, result["token"], now=utcnow() + timedelta(days=2)
        )

        assert unit is None

    async def test_unit_access_token(self, db_session: AsyncSession, unit_with_login):
        unit_with_login.unit.access_token = "a" * 32
        await db_session.flush()

        unit = await invitations.resolve_portal_token(db_session, "a" * 32)

        assert unit.id == unit_with_login.unit.id

    async def test_password_reset_rotates_access_token(self, db_session: AsyncSession, unit_with_login):
        old_token = unit_with_login.unit.access_token

        await units.reset_unit_password(db_session, unit_with_login.unit.id)

        assert await invitations.resolve_portal_token(db_session, old_token) is None
        new_token = unit_with_login.unit.access_token
        assert new_token != old_token
        unit = await invitations.resolve_portal_token(db_session, new_token)
        assert unit.id == unit_with_login.unit.id

    async def test_inactive_unit_rejected(self, db_session: AsyncSession, unit_with_login):
        result = await invitations.create_invitation(db_session, unit_with_login.unit.id, BUYER)
        await units.update_unit(db_session, unit_with_login.unit.id, status="inactive")

        assert await invitations.resolve_portal_token(db_session, unit_with_login.unit.access_token) is None
        assert await invitations.resolve_portal_token(db_session, result["token"]) is None
        invitation = (
            await db_session.execute(select(InvitationModel).where(InvitationModel.token == result["token"]))
        ).scalar_one()
        assert invitation.accepted_at is None

    @pytest.mark.parametrize("token", ["", "   ", "not-a-token"])
    async def test_unknown_tokens(self, db_session: AsyncSession, unit_with_login, token):
        assert await invitations.resolve_portal_token(db_session, token) is None


class TestQuickInvitation:
    async def test_invites_test_buyer_to_latest_unit(self, db_session: AsyncSession, unit_with_login):
        result = await invitations.create_quick_invitation(db_session)

        assert result["unit_number"] == "101"
        assert result["link"].endswith(result["token"])
        client = (await db_session.execute(select(ClientModel))).scalar_one()
        assert client.name == invitations.TEST_CLIENT_NAME

    async def test_no_units(self, db_session: AsyncSession, project):
        with pytest.raises(NotFoundError):
            await invitations.create_quick_invitation(db_session)
