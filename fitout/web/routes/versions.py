"""Sales list version routes: snapshots, restore and comparison.

Routes:
- GET    /api/sales-lists/{id}/versions       - List versions, newest first
- POST   /api/sales-lists/{id}/versions       - Snapshot the current state
- POST   /api/sales-lists/versions/compare    - Diff two versions
- GET    /api/sales-lists/versions/{vid}      - Version with its units
- DELETE /api/sales-lists/versions/{vid}      - Delete a non-current version
- POST   /api/sales-lists/versions/{vid}/restore
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request

from fitout.core import audit_logger
from fitout.core.audit_logger import log_action
from fitout.db.connection import get_session
from fitout.sales import versioning
from fitout.web.auth import require_admin
from fitout.web.dependencies import parse_uuid
from fitout.web.models import VersionCompare, VersionCreate, VersionRestore

router = APIRouter(tags=["versions"])


@router.get("/api/sales-lists/{sales_list_id}/versions")
async def list_versions(sales_list_id: str, username: str = Depends(require_admin)):
    sl_uuid = parse_uuid(sales_list_id, "sales list ID")
    async with get_session() as session:
        versions = await versioning.list_versions(session, sl_uuid)
        return {"success": True, "data": [versioning.version_to_dict(v) for v in versions]}


@router.post("/api/sales-lists/{sales_list_id}/versions", status_code=201)
async def create_version(
    request: Request,
    sales_list_id: str,
    payload: VersionCreate,
    username: str = Depends(require_admin),
):
    sl_uuid = parse_uuid(sales_list_id, "sales list ID")
    async with get_session() as session:
        version = await versioning.create_version(
            session,
            sl_uuid,
            created_by=payload.created_by or username,
            version_name=payload.version_name,
            description=payload.description,
        )
        await log_action(
            request,
            audit_logger.VERSION_CREATE,
            username,
            resource_type="sales_list_version",
            resource_id=str(version.id),
            details={"sales_list_id": sales_list_id, "version_number": version.version_number},
            session=session,
        )
        return {"success": True, "data": versioning.version_to_dict(version)}


@router.post("/api/sales-lists/versions/compare")
async def compare_versions(payload: VersionCompare, username: str = Depends(require_admin)):
    async with get_session() as session:
        comparison = await versioning.compare_versions(
            session, payload.version_id_1, payload.version_id_2
        )
        return {"success": True, "data": comparison}


@router.get("/api/sales-lists/versions/{version_id}")
async def get_version(version_id: str, username: str = Depends(require_admin)):
    """Version header plus its unit snapshots."""
    v_uuid = parse_uuid(version_id, "version ID")
    async with get_session() as session:
        version = await versioning.get_version(session, v_uuid)
        units = await versioning.get_version_units(session, v_uuid)
        return {
            "success": True,
            "data": {
                "version": versioning.version_to_dict(version),
                "units": [versioning.version_unit_to_dict(u) for u in units],
            },
        }


@router.delete("/api/sales-lists/versions/{version_id}")
async def delete_version(request: Request, version_id: str, username: str = Depends(require_admin)):
    v_uuid = parse_uuid(version_id, "version ID")
    async with get_session() as session:
        await versioning.delete_version(session, v_uuid)
        await log_action(
            request,
            audit_logger.VERSION_DELETE,
            username,
            resource_type="sales_list_version",
            resource_id=version_id,
            session=session,
        )
    return {"success": True}


@router.post("/api/sales-lists/versions/{version_id}/restore")
async def restore_version(
    request: Request,
    version_id: str,
    payload: VersionRestore | None = None,
    username: str = Depends(require_admin),
):
    v_uuid = parse_uuid(version_id, "version ID")
    created_by = (payload.created_by if payload else None) or username
    async with get_session() as session:
        result = await versioning.restore_version(session, v_uuid, created_by)
        await log_action(
            request,
            audit_logger.VERSION_RESTORE,
            username,
            resource_type="sales_list_version",
            resource_id=version_id,
            details=result,
            session=session,
        )
        return {"success": True, "data": result}
