"""Color scheme CRUD and material display helpers."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from fitout.catalog.unit_types import validate_project_ids
from fitout.db.models import ColorSchemeModel, UnitTypeModel
from fitout.errors import NotFoundError
from fitout.projects.service import get_project

logger = logging.getLogger(__name__)

# Standard material keys in display order
STANDARD_MATERIALS: tuple[tuple[str, str], ...] = (
    ("paint", "Paint"),
    ("carpet", "Carpet"),
    ("kitchen_floor", "Kitchen Floor"),
    ("kitchen_splashback", "Kitchen Splashback"),
    ("bathroom_tiles", "Bathroom Tiles"),
)

LINK_SUFFIX = "_link"


def _label_for(key: str) -> str:
    return " ".join(part.capitalize() for part in key.split("_") if part)


def normalize_materials(materials: dict | None) -> dict[str, str | None]:
    """Strip values; blank links become None and blank materials are dropped."""
    cleaned: dict[str, str | None] = {}
    for key, value in (materials or {}).items():
        key = str(key).strip()
        if not key:
            continue
        text = str(value).strip() if value is not None else ""
        if key.endswith(LINK_SUFFIX):
            cleaned[key] = text or None
        elif text:
            cleaned[key] = text
    return cleaned


def has_material(materials: dict | None) -> bool:
    return any(
        value and not key.endswith(LINK_SUFFIX)
        for key, value in (materials or {}).items()
    )


def material_entries(materials: dict | None) -> Iterator[tuple[str, str, str | None]]:
    """Yield ``(label, value, link)`` for every non-empty material.

    Standard keys come first in their fixed order, then custom keys in
    insertion order with a title-cased label.
    """
    materials = materials or {}
    standard_keys = {key for key, _ in STANDARD_MATERIALS}

    ordered: list[tuple[str, str]] = list(STANDARD_MATERIALS)
    for key in materials:
        if key.endswith(LINK_SUFFIX) or key in standard_keys:
            continue
        ordered.append((key, _label_for(key)))

    for key, label in ordered:
        value = materials.get(key)
        if not value:
            continue
        yield label, value, materials.get(f"{key}{LINK_SUFFIX}") or None


def schemes_for_unit_type(schemes: Iterable, unit_type_id) -> list:
    """Keep schemes whose ``allowed_unit_types`` contains the unit type."""
    if unit_type_id is None:
        return []
    wanted = str(unit_type_id)
    return [s for s in schemes if wanted in (s.allowed_unit_types or [])]


async def get_color_scheme(session: AsyncSession, scheme_id: UUID) -> ColorSchemeModel:
    scheme = await session.get(ColorSchemeModel, scheme_id)
    if scheme is None:
        raise NotFoundError("Color scheme", scheme_id)
    return scheme


async def list_color_schemes(session: AsyncSession, project_id: UUID) -> list[ColorSchemeModel]:
    result = await session.execute(
        select(ColorSchemeModel)
        .where(ColorSchemeModel.project_id == project_id)
        .order_by(ColorSchemeModel.created_at)
    )
    return list(result.scalars().all())


async def create_color_scheme(
    session: AsyncSession,
    project_id: UUID,
    name: str,
    materials: dict | None = None,
    description: str | None = None,
    color_board_file: str | None = None,
    allowed_unit_types=None,
) -> ColorSchemeModel:
    await get_project(session, project_id)

    name = (name or "").strip()
    if not name:
        raise ValueError("Color scheme name is required")
    materials = normalize_materials(materials)
    if not has_material(materials):
        raise ValueError("At least one material is required")

    scheme = ColorSchemeModel(
        project_id=project_id,
        name=name,
        description=(description or "").strip() or None,
        color_board_file=(color_board_file or "").strip() or None,
        materials=materials,
        allowed_unit_types=await validate_project_ids(
            session, UnitTypeModel, project_id, allowed_unit_types, "unit type"
        ),
    )
    session.add(scheme)
    await session.flush()
    return scheme


async def update_color_scheme(session: AsyncSession, scheme_id: UUID, **changes) -> ColorSchemeModel:
    scheme = await get_color_scheme(session, scheme_id)

    if "name" in changes:
        name = (changes["name"] or "").strip()
        if not name:
            raise ValueError("Color scheme name is required")
        scheme.name = name
    if "description" in changes:
        scheme.description = (changes["description"] or "").strip() or None
    if "color_board_file" in changes:
        scheme.color_board_file = (changes["color_board_file"] or "").strip() or None
    if "materials" in changes:
        materials = normalize_materials(changes["materials"])
        if not has_material(materials):
            raise ValueError("At least one material is required")
        scheme.materials = materials
    if "allowed_unit_types" in changes:
        scheme.allowed_unit_types = await validate_project_ids(
            session, UnitTypeModel, scheme.project_id, changes["allowed_unit_types"], "unit type"
        )

    await session.flush()
    return scheme


async def delete_color_scheme(session: AsyncSession, scheme_id: UUID) -> None:
    """Delete a scheme and drop its id from every unit type of the project."""
    scheme = await get_color_scheme(session, scheme_id)
    removed = str(scheme.id)

    result = await session.execute(
        select(UnitTypeModel).where(UnitTypeModel.project_id == scheme.project_id)
    )
    for unit_type in result.scalars().all():
        if removed in (unit_type.allowed_color_schemes or []):
            unit_type.allowed_color_schemes = [
                i for i in unit_type.allowed_color_schemes if i != removed
            ]

    await session.delete(scheme)
    await session.flush()
    logger.info("Deleted color scheme %s", removed)


def color_scheme_to_dict(scheme: ColorSchemeModel) -> dict:
    return {
        "id": str(scheme.id),
        "project_id": str(scheme.project_id),
        "name": scheme.name,
        "description": scheme.description,
        "color_board_file": scheme.color_board_file,
        "materials": dict(scheme.materials or {}),
        "allowed_unit_types": list(scheme.allowed_unit_types or []),
        "created_at": scheme.created_at.isoformat() if scheme.created_at else None,
    }
