"""Admin dashboard metrics."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from fitout.db.connection import get_session
from fitout.reporting.dashboard_metrics import compute_dashboard_metrics
from fitout.web.auth import require_admin

router = APIRouter(tags=["dashboard"], dependencies=[Depends(require_admin)])


@router.get("/api/dashboard")
async def dashboard():
    async with get_session() as session:
        metrics = await compute_dashboard_metrics(session)
        return {"success": True, "data": metrics.to_dict()}
