"""Unit management: creation with portal login, floor plans and authentication."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from uuid import UUID

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from fitout.config import get_config
from fitout.db.models import ProjectModel, UnitModel, UnitTypeModel
from fitout.errors import ConflictError, NotFoundError
from fitout.models import UnitStatus
from fitout.projects.service import get_project
from fitout.storage.uploads import save_floor_plan
from fitout.units.credentials import (
    build_username,
    check_password,
    generate_access_token,
    generate_password,
    hash_password,
    sanitize,
)

logger = structlog.get_logger()


@dataclass
class UnitCredentials:
    """A unit together with its one-time plaintext password."""

    unit: UnitModel
    username: str
    password: str


def _check_status(status: str) -> str:
    try:
        return UnitStatus(status).value
    except ValueError:
        raise ValueError(f"Invalid unit status: {status}")


async def _check_unit_type(session: AsyncSession, project_id: UUID, unit_type_id: UUID | None) -> None:
    if unit_type_id is None:
        return
    unit_type = await session.get(UnitTypeModel, unit_type_id)
    if unit_type is None or unit_type.project_id != project_id:
        raise ValueError("Unit type does not belong to this project")


async def _ensure_unique_number(
    session: AsyncSession, project_id: UUID, unit_number: str, exclude_id: UUID | None = None
) -> None:
    query = select(UnitModel.id).where(
        UnitModel.project_id == project_id, UnitModel.unit_number == unit_number
    )
    if exclude_id is not None:
        query = query.where(UnitModel.id != exclude_id)
    if (await session.execute(query)).first() is not None:
        raise ConflictError("A unit with this number already exists in this project.")


async def get_unit(session: AsyncSession, unit_id: UUID) -> UnitModel:
    unit = await session.get(UnitModel, unit_id)
    if unit is None:
        raise NotFoundError("Unit", unit_id)
    return unit


async def list_units(session: AsyncSession, project_id: UUID) -> list[dict]:
    """Units of a project with their unit type name, ordered by unit number."""
    result = await session.execute(
        select(UnitModel, UnitTypeModel.name)
        .outerjoin(UnitTypeModel, UnitModel.unit_type_id == UnitTypeModel.id)
        .where(UnitModel.project_id == project_id)
        .order_by(UnitModel.unit_number)
    )
    return [
        {**unit_to_dict(unit), "unit_type_name": type_name}
        for unit, type_name in result.all()
    ]


async def create_unit_with_login(
    session: AsyncSession,
    project_id: UUID,
    unit_number: str,
    unit_type_id: UUID | None = None,
    status: str = UnitStatus.ACTIVE.value,
) -> UnitCredentials:
    """Create a unit and generate its portal login.

    The plaintext password is only available on the returned object; the
    database keeps the bcrypt hash.

    Raises:
        NotFoundError: If the project does not exist
        ConflictError: On a duplicate unit number or username
        ValueError: On invalid input
    """
    project: ProjectModel = await get_project(session, project_id)

    unit_number = (unit_number or "").strip()
    if not sanitize(unit_number):
        raise ValueError("Unit number must contain letters or digits")
    status = _check_status(status)
    await _check_unit_type(session, project_id, unit_type_id)
    await _ensure_unique_number(session, project_id, unit_number)

    username = build_username(project.name, unit_number)
    existing = await session.execute(select(UnitModel.id).where(UnitModel.username == username))
    if existing.first() is not None:
        raise ConflictError(
            f"A login already exists with username: {username}. Please use a different unit number."
        )

    password = generate_password(get_config().portal.generated_password_length)
    unit = UnitModel(
        project_id=project_id,
        unit_type_id=unit_type_id,
        unit_number=unit_number,
        status=status,
        username=username,
        password_hash=hash_password(password),
        access_token=generate_access_token(),
    )
    session.add(unit)
    await session.flush()

    logger.info("unit_created", unit_id=str(unit.id), project_id=str(project_id), username=username)
    return UnitCredentials(unit=unit, username=username, password=password)


async def update_unit(session: AsyncSession, unit_id: UUID, **changes) -> UnitModel:
    unit = await get_unit(session, unit_id)

    if "unit_number" in changes:
        unit_number = (changes["unit_number"] or "").strip()
        if not sanitize(unit_number):
            raise ValueError("Unit number must contain letters or digits")
        await _ensure_unique_number(session, unit.project_id, unit_number, exclude_id=unit.id)
        unit.unit_number = unit_number
    if "unit_type_id" in changes:
        await _check_unit_type(session, unit.project_id, changes["unit_type_id"])
        unit.unit_type_id = changes["unit_type_id"]
    if "status" in changes:
        unit.status = _check_status(changes["status"])

    await session.flush()
    return unit


async def delete_unit(session: AsyncSession, unit_id: UUID) -> None:
    unit = await get_unit(session, unit_id)
    await session.delete(unit)
    await session.flush()
    logger.info("unit_deleted", unit_id=str(unit_id))


async def reset_unit_password(session: AsyncSession, unit_id: UUID) -> UnitCredentials:
    unit = await get_unit(session, unit_id)
    password = generate_password(get_config().portal.generated_password_length)
    unit.password_hash = hash_password(password)
    unit.access_token = generate_access_token()
    await session.flush()
    logger.info("unit_password_reset", unit_id=str(unit_id))
    return UnitCredentials(unit=unit, username=unit.username, password=password)


async def attach_floor_plan(
    session: AsyncSession,
    unit_id: UUID,
    filename: str,
    data: bytes,
    upload_dir: Path | None = None,
) -> UnitModel:
    """Store an uploaded floor plan and point the unit at its public path."""
    unit = await get_unit(session, unit_id)
    _, public_path = save_floor_plan(upload_dir or get_config().portal.upload_dir, filename, data)
    unit.floor_plan_url = public_path
    await session.flush()
    logger.info("floor_plan_attached", unit_id=str(unit_id), path=public_path)
    return unit


async def authenticate_unit(session: AsyncSession, username: str, password: str) -> UnitModel | None:
    """Return the active unit whose login matches, else None."""
    username = (username or "").strip().lower()
    if not username or not password:
        return None

    result = await session.execute(select(UnitModel).where(UnitModel.username == username))
    unit = result.scalar_one_or_none()
    if unit is None or unit.status != UnitStatus.ACTIVE.value:
        return None
    if not check_password(password, unit.password_hash):
        return None
    return unit


def unit_to_dict(unit: UnitModel) -> dict:
    return {
        "id": str(unit.id),
        "project_id": str(unit.project_id),
        "unit_type_id": str(unit.unit_type_id) if unit.unit_type_id else None,
        "unit_number": unit.unit_number,
        "status": unit.status,
        "username": unit.username,
        "floor_plan_url": unit.floor_plan_url,
        "created_at": unit.created_at.isoformat() if unit.created_at else None,
    }
