"""Unit type CRUD and allowed-id list maintenance."""

from __future__ import annotations

import logging
from decimal import Decimal
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from fitout.db.models import ColorSchemeModel, UnitTypeModel, UpgradeOptionModel
from fitout.errors import NotFoundError
from fitout.projects.service import get_project

logger = logging.getLogger(__name__)


def normalize_ids(ids) -> list[str]:
    """Stringify and de-duplicate an id list, keeping first-seen order."""
    seen: list[str] = []
    for value in ids or []:
        text = str(value).strip()
        if text and text not in seen:
            seen.append(text)
    return seen


async def validate_project_ids(
    session: AsyncSession, model, project_id: UUID, ids, label: str
) -> list[str]:
    """Check every id in ``ids`` names a ``model`` row of the project.

    Raises:
        ValueError: On malformed or foreign ids
    """
    normalized = normalize_ids(ids)
    if not normalized:
        return []
    try:
        uuids = [UUID(value) for value in normalized]
    except ValueError:
        raise ValueError(f"Invalid {label} id")

    result = await session.execute(
        select(model.id).where(model.project_id == project_id, model.id.in_(uuids))
    )
    found = {str(row) for row in result.scalars().all()}
    missing = [value for value in normalized if str(UUID(value)) not in found]
    if missing:
        raise ValueError(f"Unknown {label} id(s): {', '.join(missing)}")
    return [str(UUID(value)) for value in normalized]


def _check_counts(bedrooms, bathrooms, size_m2) -> None:
    if bedrooms is not None and bedrooms < 0:
        raise ValueError("Bedrooms cannot be negative")
    if bathrooms is not None and bathrooms < 0:
        raise ValueError("Bathrooms cannot be negative")
    if size_m2 is not None and Decimal(str(size_m2)) < 0:
        raise ValueError("Size cannot be negative")


async def get_unit_type(session: AsyncSession, unit_type_id: UUID) -> UnitTypeModel:
    unit_type = await session.get(UnitTypeModel, unit_type_id)
    if unit_type is None:
        raise NotFoundError("Unit type", unit_type_id)
    return unit_type


async def list_unit_types(session: AsyncSession, project_id: UUID) -> list[UnitTypeModel]:
    result = await session.execute(
        select(UnitTypeModel)
        .where(UnitTypeModel.project_id == project_id)
        .order_by(UnitTypeModel.name)
    )
    return list(result.scalars().all())


async def create_unit_type(
    session: AsyncSession,
    project_id: UUID,
    name: str,
    description: str | None = None,
    bedrooms: int = 0,
    bathrooms: int = 0,
    size_m2: Decimal | None = None,
    allowed_color_schemes=None,
    allowed_upgrades=None,
) -> UnitTypeModel:
    await get_project(session, project_id)

    name = (name or "").strip()
    if not name:
        raise ValueError("Unit type name is required")
    _check_counts(bedrooms, bathrooms, size_m2)

    unit_type = UnitTypeModel(
        project_id=project_id,
        name=name,
        description=(description or "").strip() or None,
        bedrooms=bedrooms or 0,
        bathrooms=bathrooms or 0,
        size_m2=size_m2,
        allowed_color_schemes=await validate_project_ids(
            session, project_id=project_id, model=ColorSchemeModel,
            ids=allowed_color_schemes, label="color scheme",
        ),
        allowed_upgrades=await validate_project_ids(
            session, project_id=project_id, model=UpgradeOptionModel,
            ids=allowed_upgrades, label="upgrade option",
        ),
    )
    session.add(unit_type)
    await session.flush()
    return unit_type


async def update_unit_type(session: AsyncSession, unit_type_id: UUID, **changes) -> UnitTypeModel:
    unit_type = await get_unit_type(session, unit_type_id)

    if "name" in changes:
        name = (changes["name"] or "").strip()
        if not name:
            raise ValueError("Unit type name is required")
        unit_type.name = name
    if "description" in changes:
        unit_type.description = (changes["description"] or "").strip() or None

    _check_counts(changes.get("bedrooms"), changes.get("bathrooms"), changes.get("size_m2"))
    for field_name in ("bedrooms", "bathrooms"):
        if changes.get(field_name) is not None:
            setattr(unit_type, field_name, changes[field_name])
    if "size_m2" in changes:
        unit_type.size_m2 = changes["size_m2"]

    if "allowed_color_schemes" in changes:
        unit_type.allowed_color_schemes = await validate_project_ids(
            session, ColorSchemeModel, unit_type.project_id,
            changes["allowed_color_schemes"], "color scheme",
        )
    if "allowed_upgrades" in changes:
        unit_type.allowed_upgrades = await validate_project_ids(
            session, UpgradeOptionModel, unit_type.project_id,
            changes["allowed_upgrades"], "upgrade option",
        )

    await session.flush()
    return unit_type


async def delete_unit_type(session: AsyncSession, unit_type_id: UUID) -> None:
    """Delete a unit type and scrub its id from the project's catalog lists.

    Units of this type keep existing with no type (``ON DELETE SET NULL``).
    """
    unit_type = await get_unit_type(session, unit_type_id)
    project_id = unit_type.project_id
    removed = str(unit_type.id)

    for model in (ColorSchemeModel, UpgradeOptionModel):
        result = await session.execute(select(model).where(model.project_id == project_id))
        for row in result.scalars().all():
            if removed in (row.allowed_unit_types or []):
                row.allowed_unit_types = [i for i in row.allowed_unit_types if i != removed]

    await session.delete(unit_type)
    await session.flush()
    logger.info("Deleted unit type %s from project %s", removed, project_id)


def unit_type_to_dict(unit_type: UnitTypeModel) -> dict:
    return {
        "id": str(unit_type.id),
        "project_id": str(unit_type.project_id),
        "name": unit_type.name,
        "description": unit_type.description,
        "bedrooms": unit_type.bedrooms,
        "bathrooms": unit_type.bathrooms,
        "size_m2": float(unit_type.size_m2) if unit_type.size_m2 is not None else None,
        "allowed_color_schemes": list(unit_type.allowed_color_schemes or []),
        "allowed_upgrades": list(unit_type.allowed_upgrades or []),
        "created_at": unit_type.created_at.isoformat() if unit_type.created_at else None,
    }
