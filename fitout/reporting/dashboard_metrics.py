"""Admin dashboard metrics aggregating project, unit and submission counts.

Projects and submissions are related by project name, the only link a
submission carries besides its optional unit.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import asdict, dataclass, field
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from fitout.db.models import ProjectModel, SubmissionModel, UnitModel, utcnow
from fitout.models import SubmissionStatus

RECENT_SUBMISSIONS = 3
PROJECT_STATUS_LIMIT = 3


def _round_half_up(value: Decimal) -> int:
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


@dataclass
class DashboardMetrics:
    """Admin dashboard statistics."""

    # Projects
    total_projects: int
    active_projects: int
    completed_projects: int

    # Units and submissions
    total_units: int
    units_with_submissions: int
    total_submissions: int
    submitted_count: int
    draft_count: int
    avg_upgrade_value: int

    recent_submissions: list[dict] = field(default_factory=list)
    project_statuses: list[dict] = field(default_factory=list)

    computed_at: datetime = field(default_factory=utcnow)

    def to_dict(self) -> dict:
        data = asdict(self)
        data["computed_at"] = self.computed_at.isoformat()
        return data


async def compute_dashboard_metrics(session: AsyncSession) -> DashboardMetrics:
    projects = (
        await session.execute(select(ProjectModel).order_by(ProjectModel.created_at.desc()))
    ).scalars().all()
    unit_rows = (await session.execute(select(UnitModel.project_id))).scalars().all()
    submissions = (
        await session.execute(
            select(SubmissionModel).order_by(SubmissionModel.created_at.desc())
        )
    ).scalars().all()

    units_per_project = Counter(unit_rows)
    submissions_per_name = Counter(s.project_name for s in submissions)
    submitted_per_name = Counter(
        s.project_name for s in submissions if s.status == SubmissionStatus.SUBMITTED.value
    )

    active = completed = 0
    statuses: list[dict] = []
    for project in projects:
        unit_count = units_per_project.get(project.id, 0)
        if unit_count == 0 or submissions_per_name.get(project.name, 0) < unit_count:
            active += 1
        else:
            completed += 1

        if unit_count > 0:
            done = submitted_per_name.get(project.name, 0)
            statuses.append(
                {
                    "id": str(project.id),
                    "name": project.name,
                    "total_units": unit_count,
                    "completed_units": done,
                    "progress": _round_half_up(Decimal(done * 100) / unit_count),
                }
            )

    total_value = sum((Decimal(s.upgrade_value or 0) for s in submissions), Decimal("0"))
    average = _round_half_up(total_value / len(submissions)) if submissions else 0

    return DashboardMetrics(
        total_projects=len(projects),
        active_projects=active,
        completed_projects=completed,
        total_units=len(unit_rows),
        units_with_submissions=len({s.unit_number for s in submissions}),
        total_submissions=len(submissions),
        submitted_count=sum(1 for s in submissions if s.status == SubmissionStatus.SUBMITTED.value),
        draft_count=sum(1 for s in submissions if s.status == SubmissionStatus.DRAFT.value),
        avg_upgrade_value=average,
        recent_submissions=[
            {
                "id": str(s.id),
                "unit_number": s.unit_number or "Unknown",
                "project_name": s.project_name or "Unknown Project",
                "status": s.status,
                "total_value": float(s.upgrade_value or 0),
            }
            for s in submissions[:RECENT_SUBMISSIONS]
        ],
        project_statuses=statuses[:PROJECT_STATUS_LIMIT],
    )
