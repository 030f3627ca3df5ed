"""Submission routes: listing, upsert, deletion and document export."""

from __future__ import annotations

import structlog
from fastapi import APIRouter, Depends, Response

from fitout.config import get_config
from fitout.db.connection import get_session
from fitout.db.models import UnitModel
from fitout.models import SubmissionData
from fitout.reporting.pdf_export import export_submission
from fitout.storage.uploads import resolve_public_path
from fitout.submissions import service
from fitout.web.auth import require_admin
from fitout.web.dependencies import parse_uuid
from fitout.web.models import ExportRequest

router = APIRouter(tags=["submissions"], dependencies=[Depends(require_admin)])
logger = structlog.get_logger()


@router.get("/api/submissions")
async def list_submissions():
    """All submissions, newest first."""
    async with get_session() as session:
        return {"success": True, "data": await service.list_submissions(session)}


@router.post("/api/submissions")
async def save_submission(payload: SubmissionData, response: Response):
    """Create or update the submission stored under the payload token."""
    async with get_session() as session:
        submission, created = await service.upsert_submission(session, payload)
        response.status_code = 201 if created else 200
        return {"success": True, "data": service.submission_view(submission)}


@router.get("/api/submissions/{submission_id}")
async def get_submission(submission_id: str):
    s_uuid = parse_uuid(submission_id, "submission ID")
    async with get_session() as session:
        submission = await service.get_submission(session, s_uuid)
        return {"success": True, "data": service.submission_view(submission)}


@router.delete("/api/submissions/{submission_id}")
async def delete_submission(submission_id: str):
    s_uuid = parse_uuid(submission_id, "submission ID")
    async with get_session() as session:
        await service.delete_submission(session, s_uuid)
    return {"success": True}


@router.post("/api/submissions/{submission_id}/export")
async def export_submission_documents(submission_id: str, payload: ExportRequest):
    """Render finishes, upgrades and electrical plan PDFs.

    A single document is returned as a PDF, several as a zip archive.
    """
    s_uuid = parse_uuid(submission_id, "submission ID")
    config = get_config()

    async with get_session() as session:
        submission = await service.get_submission(session, s_uuid)
        scheme = await service.scheme_for_submission(session, submission)

        floor_plan_path = None
        if submission.unit_id:
            unit = await session.get(UnitModel, submission.unit_id)
            if unit is not None:
                floor_plan_path = resolve_public_path(
                    config.portal.upload_dir, unit.floor_plan_url
                )

        file_name, content_type, content = export_submission(
            submission,
            scheme=scheme,
            floor_plan_path=floor_plan_path,
            export_types=payload.export_types,
            gst_rate=config.pricing.gst_rate,
            gst_included=config.pricing.gst_included,
            categories=config.portal.floor_plan_categories,
        )

    logger.info(
        "submission_exported",
        submission_id=submission_id,
        export_types=payload.export_types,
        file_name=file_name,
    )
    return Response(
        content=content,
        media_type=content_type,
        headers={"Content-Disposition": f'attachment; filename="{file_name}"'},
    )
