"""Portal view model assembly for a unit."""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from fitout.catalog.color_schemes import schemes_for_unit_type
from fitout.catalog.upgrades import to_upgrade_option, upgrades_for_unit_type
from fitout.config import get_config
from fitout.db.models import (
    ColorSchemeModel,
    ProjectModel,
    SubmissionModel,
    UnitModel,
    UnitTypeModel,
    UpgradeOptionModel,
)
from fitout.models import ClientUpgrade, ColorScheme, SelectionState, SubmissionStatus
from fitout.portal.wizard import resume_step


async def find_unit_submission(session: AsyncSession, unit: UnitModel) -> SubmissionModel | None:
    """Most recent submission saved for the unit, whatever token saved it."""
    result = await session.execute(
        select(SubmissionModel)
        .where(SubmissionModel.unit_id == unit.id)
        .order_by(SubmissionModel.updated_at.desc())
        .limit(1)
    )
    return result.scalar_one_or_none()


def selection_from_submission(submission: SubmissionModel | None) -> SelectionState:
    if submission is None:
        return SelectionState()
    return SelectionState(
        color_scheme=submission.color_scheme or "",
        upgrades=[ClientUpgrade.model_validate(u) for u in submission.selected_upgrades or []],
        is_submitted=submission.status == SubmissionStatus.SUBMITTED.value,
    )


async def load_portal_context(session: AsyncSession, unit: UnitModel) -> dict:
    """Everything the client wizard needs to render one unit."""
    project = await session.get(ProjectModel, unit.project_id)
    unit_type = (
        await session.get(UnitTypeModel, unit.unit_type_id) if unit.unit_type_id else None
    )

    schemes = (
        await session.execute(
            select(ColorSchemeModel)
            .where(ColorSchemeModel.project_id == unit.project_id)
            .order_by(ColorSchemeModel.created_at)
        )
    ).scalars().all()
    upgrades = (
        await session.execute(
            select(UpgradeOptionModel)
            .where(UpgradeOptionModel.project_id == unit.project_id)
            .order_by(UpgradeOptionModel.category, UpgradeOptionModel.name)
        )
    ).scalars().all()

    submission = await find_unit_submission(session, unit)
    state = selection_from_submission(submission)
    categories = get_config().portal.floor_plan_categories

    if submission is not None and submission.wizard_step and not state.is_submitted:
        current_step = int(submission.wizard_step)
    else:
        current_step = int(resume_step(state, categories))

    return {
        "project_name": project.name if project else None,
        "development_company": project.development_company if project else None,
        "unit_id": str(unit.id),
        "unit_number": unit.unit_number,
        "unit_type_id": str(unit_type.id) if unit_type else None,
        "unit_type": unit_type.name if unit_type else None,
        "floor_plan_url": unit.floor_plan_url,
        "floor_plan_categories": list(categories),
        "color_schemes": [
            ColorScheme(
                id=str(s.id),
                name=s.name,
                description=s.description,
                color_board_file=s.color_board_file,
                materials=dict(s.materials or {}),
                allowed_unit_types=list(s.allowed_unit_types or []),
            ).model_dump(mode="json")
            for s in schemes_for_unit_type(schemes, unit.unit_type_id)
        ],
        "upgrades": [
            to_upgrade_option(u).model_dump(mode="json")
            for u in upgrades_for_unit_type(upgrades, unit.unit_type_id)
        ],
        "selection": state.model_dump(mode="json"),
        "is_submitted": state.is_submitted,
        "current_step": current_step,
        "submission_id": str(submission.id) if submission else None,
    }
