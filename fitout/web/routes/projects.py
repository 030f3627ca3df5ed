"""Project management routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from fitout.db.connection import get_session
from fitout.projects import service
from fitout.web.auth import require_admin
from fitout.web.dependencies import parse_uuid
from fitout.web.models import ProjectCreate, ProjectUpdate

router = APIRouter(tags=["projects"], dependencies=[Depends(require_admin)])


@router.get("/api/projects")
async def list_projects():
    """List all projects, newest first."""
    async with get_session() as session:
        projects = await service.list_projects(session)
        return {"success": True, "data": [service.project_to_dict(p) for p in projects]}


@router.post("/api/projects", status_code=201)
async def create_project(payload: ProjectCreate):
    async with get_session() as session:
        project = await service.create_project(session, **payload.model_dump())
        return {"success": True, "data": service.project_to_dict(project)}


@router.get("/api/projects/{project_id}")
async def get_project(project_id: str):
    p_uuid = parse_uuid(project_id, "project ID")
    async with get_session() as session:
        project = await service.get_project(session, p_uuid)
        return {"success": True, "data": service.project_to_dict(project)}


@router.patch("/api/projects/{project_id}")
async def update_project(project_id: str, payload: ProjectUpdate):
    p_uuid = parse_uuid(project_id, "project ID")
    async with get_session() as session:
        project = await service.update_project(
            session, p_uuid, **payload.model_dump(exclude_unset=True)
        )
        return {"success": True, "data": service.project_to_dict(project)}


@router.delete("/api/projects/{project_id}")
async def delete_project(project_id: str):
    """Delete a project; its units, catalog and sales lists go with it."""
    p_uuid = parse_uuid(project_id, "project ID")
    async with get_session() as session:
        await service.delete_project(session, p_uuid)
    return {"success": True}
