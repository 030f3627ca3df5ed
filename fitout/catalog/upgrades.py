"""Upgrade option CRUD, duplicate checks and copy templates."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from decimal import Decimal, InvalidOperation
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from fitout.catalog.unit_types import validate_project_ids
from fitout.db.models import UnitTypeModel, UpgradeOptionModel
from fitout.errors import ConflictError, NotFoundError
from fitout.models import UpgradeOption
from fitout.projects.service import get_project

logger = logging.getLogger(__name__)


def _parse_price(value) -> Decimal:
    try:
        price = Decimal(str(value))
    except (InvalidOperation, TypeError, ValueError):
        raise ValueError("Price must be a number")
    if not price.is_finite() or price <= 0:
        raise ValueError("Price must be greater than 0")
    return price


def _check_max_quantity(value) -> int:
    if value is None or int(value) < 1:
        raise ValueError("Max quantity must be at least 1")
    return int(value)


def upgrades_for_unit_type(upgrades: Iterable, unit_type_id) -> list:
    """Keep upgrades whose ``allowed_unit_types`` contains the unit type."""
    if unit_type_id is None:
        return []
    wanted = str(unit_type_id)
    return [u for u in upgrades if wanted in (u.allowed_unit_types or [])]


async def _ensure_unique_name(
    session: AsyncSession, project_id: UUID, name: str, exclude_id: UUID | None = None
) -> None:
    query = select(UpgradeOptionModel.id).where(
        UpgradeOptionModel.project_id == project_id,
        func.lower(UpgradeOptionModel.name) == name.lower(),
    )
    if exclude_id is not None:
        query = query.where(UpgradeOptionModel.id != exclude_id)
    result = await session.execute(query)
    if result.first() is not None:
        raise ConflictError(f'An upgrade named "{name}" already exists in this project')


async def get_upgrade_option(session: AsyncSession, upgrade_id: UUID) -> UpgradeOptionModel:
    upgrade = await session.get(UpgradeOptionModel, upgrade_id)
    if upgrade is None:
        raise NotFoundError("Upgrade option", upgrade_id)
    return upgrade


async def list_upgrade_options(session: AsyncSession, project_id: UUID) -> list[UpgradeOptionModel]:
    result = await session.execute(
        select(UpgradeOptionModel)
        .where(UpgradeOptionModel.project_id == project_id)
        .order_by(UpgradeOptionModel.category, UpgradeOptionModel.name)
    )
    return list(result.scalars().all())


async def create_upgrade_option(
    session: AsyncSession,
    project_id: UUID,
    name: str,
    category: str,
    price,
    max_quantity: int = 1,
    description: str | None = None,
    allowed_unit_types=None,
) -> UpgradeOptionModel:
    await get_project(session, project_id)

    name = (name or "").strip()
    category = (category or "").strip()
    if not name:
        raise ValueError("Upgrade name is required")
    if not category:
        raise ValueError("Upgrade category is required")
    price = _parse_price(price)
    max_quantity = _check_max_quantity(max_quantity)

    await _ensure_unique_name(session, project_id, name)

    upgrade = UpgradeOptionModel(
        project_id=project_id,
        name=name,
        category=category,
        description=(description or "").strip() or None,
        price=price,
        max_quantity=max_quantity,
        allowed_unit_types=await validate_project_ids(
            session, UnitTypeModel, project_id, allowed_unit_types, "unit type"
        ),
    )
    session.add(upgrade)
    await session.flush()
    return upgrade


async def update_upgrade_option(session: AsyncSession, upgrade_id: UUID, **changes) -> UpgradeOptionModel:
    upgrade = await get_upgrade_option(session, upgrade_id)

    if "name" in changes:
        name = (changes["name"] or "").strip()
        if not name:
            raise ValueError("Upgrade name is required")
        await _ensure_unique_name(session, upgrade.project_id, name, exclude_id=upgrade.id)
        upgrade.name = name
    if "category" in changes:
        category = (changes["category"] or "").strip()
        if not category:
            raise ValueError("Upgrade category is required")
        upgrade.category = category
    if "description" in changes:
        upgrade.description = (changes["description"] or "").strip() or None
    if "price" in changes:
        upgrade.price = _parse_price(changes["price"])
    if "max_quantity" in changes:
        upgrade.max_quantity = _check_max_quantity(changes["max_quantity"])
    if "allowed_unit_types" in changes:
        upgrade.allowed_unit_types = await validate_project_ids(
            session, UnitTypeModel, upgrade.project_id, changes["allowed_unit_types"], "unit type"
        )

    await session.flush()
    return upgrade


async def delete_upgrade_option(session: AsyncSession, upgrade_id: UUID) -> None:
    upgrade = await get_upgrade_option(session, upgrade_id)
    removed = str(upgrade.id)

    result = await session.execute(
        select(UnitTypeModel).where(UnitTypeModel.project_id == upgrade.project_id)
    )
    for unit_type in result.scalars().all():
        if removed in (unit_type.allowed_upgrades or []):
            unit_type.allowed_upgrades = [i for i in unit_type.allowed_upgrades if i != removed]

    await session.delete(upgrade)
    await session.flush()
    logger.info("Deleted upgrade option %s", removed)


async def previous_project_upgrades(session: AsyncSession, project_id: UUID) -> list[dict]:
    """Upgrade options of every other project, offered as copy templates.

    Price resets to 0 and unit type restrictions are cleared, since neither
    carries over between developments.
    """
    result = await session.execute(
        select(UpgradeOptionModel)
        .where(UpgradeOptionModel.project_id != project_id)
        .order_by(UpgradeOptionModel.created_at.desc())
    )
    return [
        {
            "source_id": str(upgrade.id),
            "source_project_id": str(upgrade.project_id),
            "name": upgrade.name,
            "description": upgrade.description,
            "category": upgrade.category,
            "price": 0,
            "max_quantity": upgrade.max_quantity,
            "allowed_unit_types": [],
        }
        for upgrade in result.scalars().all()
    ]


def to_upgrade_option(upgrade: UpgradeOptionModel) -> UpgradeOption:
    return UpgradeOption(
        id=str(upgrade.id),
        name=upgrade.name,
        description=upgrade.description,
        category=upgrade.category,
        price=Decimal(upgrade.price),
        max_quantity=upgrade.max_quantity,
        allowed_unit_types=list(upgrade.allowed_unit_types or []),
    )


def upgrade_option_to_dict(upgrade: UpgradeOptionModel) -> dict:
    return {
        "id": str(upgrade.id),
        "project_id": str(upgrade.project_id),
        "name": upgrade.name,
        "description": upgrade.description,
        "category": upgrade.category,
        "price": float(upgrade.price),
        "max_quantity": upgrade.max_quantity,
        "allowed_unit_types": list(upgrade.allowed_unit_types or []),
        "created_at": upgrade.created_at.isoformat() if upgrade.created_at else None,
    }
