"""Project CRUD operations."""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from fitout.db.models import ProjectModel
from fitout.errors import NotFoundError

_TEXT_FIELDS = ("development_company", "address", "description", "logo_url")


def _clean(value: str | None) -> str | None:
    if value is None:
        return None
    value = value.strip()
    return value or None


async def get_project(session: AsyncSession, project_id: UUID) -> ProjectModel:
    project = await session.get(ProjectModel, project_id)
    if project is None:
        raise NotFoundError("Project", project_id)
    return project


async def list_projects(session: AsyncSession) -> list[ProjectModel]:
    result = await session.execute(
        select(ProjectModel).order_by(ProjectModel.created_at.desc())
    )
    return list(result.scalars().all())


async def create_project(
    session: AsyncSession,
    name: str,
    development_company: str | None = None,
    address: str | None = None,
    description: str | None = None,
    logo_url: str | None = None,
) -> ProjectModel:
    name = _clean(name)
    if not name:
        raise ValueError("Project name is required")

    project = ProjectModel(
        name=name,
        development_company=_clean(development_company),
        address=_clean(address),
        description=_clean(description),
        logo_url=_clean(logo_url),
    )
    session.add(project)
    await session.flush()
    return project


async def update_project(session: AsyncSession, project_id: UUID, **changes) -> ProjectModel:
    """Apply partial changes; keys absent from ``changes`` are left untouched."""
    project = await get_project(session, project_id)

    if "name" in changes:
        name = _clean(changes["name"])
        if not name:
            raise ValueError("Project name is required")
        project.name = name

    for field_name in _TEXT_FIELDS:
        if field_name in changes:
            setattr(project, field_name, _clean(changes[field_name]))

    await session.flush()
    return project


async def delete_project(session: AsyncSession, project_id: UUID) -> None:
    project = await get_project(session, project_id)
    await session.delete(project)
    await session.flush()


def project_to_dict(project: ProjectModel) -> dict:
    return {
        "id": str(project.id),
        "name": project.name,
        "development_company": project.development_company,
        "address": project.address,
        "description": project.description,
        "logo_url": project.logo_url,
        "created_at": project.created_at.isoformat() if project.created_at else None,
        "updated_at": project.updated_at.isoformat() if project.updated_at else None,
    }
