"""Submission persistence and the token-keyed portal wizard operations."""

from __future__ import annotations

from datetime import date
from uuid import UUID

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from fitout.catalog.color_schemes import schemes_for_unit_type
from fitout.catalog.upgrades import to_upgrade_option
from fitout.config import get_config
from fitout.db.models import (
    ClientModel,
    ColorSchemeModel,
    InvitationModel,
    ProjectModel,
    SubmissionModel,
    UnitClientModel,
    UnitModel,
    UpgradeOptionModel,
)
from fitout.errors import ConflictError, NotFoundError
from fitout.models import (
    ClientRole,
    ClientUpgrade,
    FloorPlanPoint,
    SelectionState,
    SubmissionData,
    SubmissionStatus,
    WizardStep,
)
from fitout.portal import wizard
from fitout.portal.context import find_unit_submission, selection_from_submission
from fitout.portal.pricing import price_summary, upgrade_subtotal

logger = structlog.get_logger()

UNKNOWN_UNIT = "Unknown Unit"
UNKNOWN_PROJECT = "Unknown Project"
ANONYMOUS_CLIENT = "Anonymous Client"


async def upsert_submission(session: AsyncSession, data: SubmissionData) -> tuple[SubmissionModel, bool]:
    """Create or update the submission saved under ``data.token``.

    ``upgrade_value`` is always recomputed here. A submission that has been
    submitted stays submitted when a later draft save arrives.

    Returns:
        tuple: (submission, created)
    """
    unit_id = None
    if data.unit_id:
        try:
            unit_id = UUID(data.unit_id)
        except ValueError:
            raise ValueError("Invalid unit id")
        if await session.get(UnitModel, unit_id) is None:
            raise NotFoundError("Unit", unit_id)

    upgrades = [u.model_dump(mode="json") for u in data.selected_upgrades]
    values = {
        "unit_id": unit_id,
        "unit_number": data.unit_number or UNKNOWN_UNIT,
        "project_name": data.project_name or UNKNOWN_PROJECT,
        "client_name": data.client_name or ANONYMOUS_CLIENT,
        "color_scheme": data.color_scheme or "",
        "upgrade_value": upgrade_subtotal(data.selected_upgrades),
        "selected_upgrades": upgrades,
        "floor_plan_data": dict(data.floor_plan_data or {}),
        "submitted_date": date.today(),
    }

    result = await session.execute(
        select(SubmissionModel).where(SubmissionModel.token == data.token)
    )
    submission = result.scalar_one_or_none()
    created = submission is None
    if created:
        submission = SubmissionModel(token=data.token)
        session.add(submission)

    already_submitted = submission.status == SubmissionStatus.SUBMITTED.value
    for key, value in values.items():
        setattr(submission, key, value)
    if data.is_submitted or already_submitted:
        submission.status = SubmissionStatus.SUBMITTED.value
    else:
        submission.status = SubmissionStatus.DRAFT.value

    if submission.status == SubmissionStatus.SUBMITTED.value:
        submission.wizard_step = WizardStep.CONFIRMATION.value
    elif data.wizard_step is not None:
        submission.wizard_step = data.wizard_step
    elif created:
        submission.wizard_step = WizardStep.COLOR_SCHEME.value

    await session.flush()
    logger.info(
        "submission_saved",
        submission_id=str(submission.id),
        status=submission.status,
        created=created,
    )
    return submission, created


async def get_submission(session: AsyncSession, submission_id: UUID) -> SubmissionModel:
    submission = await session.get(SubmissionModel, submission_id)
    if submission is None:
        raise NotFoundError("Submission", submission_id)
    return submission


async def list_submissions(session: AsyncSession) -> list[dict]:
    result = await session.execute(
        select(SubmissionModel).order_by(SubmissionModel.created_at.desc())
    )
    return [submission_view(s) for s in result.scalars().all()]


async def delete_submission(session: AsyncSession, submission_id: UUID) -> None:
    submission = await get_submission(session, submission_id)
    await session.delete(submission)
    await session.flush()


def submission_view(submission: SubmissionModel) -> dict:
    """camelCase view model used by the admin submissions screens."""
    return {
        "id": str(submission.id),
        "unitId": str(submission.unit_id) if submission.unit_id else None,
        "unitNumber": submission.unit_number,
        "projectName": submission.project_name,
        "clientName": submission.client_name,
        "colorScheme": submission.color_scheme,
        "upgradeValue": float(submission.upgrade_value or 0),
        "status": submission.status,
        "submittedDate": submission.submitted_date.isoformat() if submission.submitted_date else None,
        "createdAt": submission.created_at.isoformat() if submission.created_at else None,
        "updatedAt": submission.updated_at.isoformat() if submission.updated_at else None,
        "selectedUpgrades": list(submission.selected_upgrades or []),
        "floorPlanData": dict(submission.floor_plan_data or {}),
        "token": submission.token,
    }


async def scheme_for_submission(session: AsyncSession, submission: SubmissionModel) -> ColorSchemeModel | None:
    """Color scheme row matching the submission's scheme name, if any."""
    if not submission.color_scheme:
        return None
    query = select(ColorSchemeModel).where(ColorSchemeModel.name == submission.color_scheme)
    if submission.unit_id:
        unit = await session.get(UnitModel, submission.unit_id)
        if unit is not None:
            query = query.where(ColorSchemeModel.project_id == unit.project_id)
    result = await session.execute(query.order_by(ColorSchemeModel.created_at).limit(1))
    return result.scalar_one_or_none()


# Portal wizard operations


class _PortalSelection:
    """Saved selection of one unit plus the catalog it is validated against."""

    def __init__(self, unit, project, submission, state, schemes, upgrades):
        self.unit = unit
        self.project = project
        self.submission = submission
        self.state = state
        self.schemes = schemes
        self.upgrades = upgrades

    @property
    def step(self) -> int:
        if self.submission is not None and self.submission.wizard_step:
            return int(self.submission.wizard_step)
        return int(wizard.resume_step(self.state, get_config().portal.floor_plan_categories))


async def _load(session: AsyncSession, unit: UnitModel) -> _PortalSelection:
    project = await session.get(ProjectModel, unit.project_id)
    submission = await find_unit_submission(session, unit)
    state = selection_from_submission(submission)

    schemes = (
        await session.execute(
            select(ColorSchemeModel).where(ColorSchemeModel.project_id == unit.project_id)
        )
    ).scalars().all()
    upgrades = (
        await session.execute(
            select(UpgradeOptionModel).where(UpgradeOptionModel.project_id == unit.project_id)
        )
    ).scalars().all()

    return _PortalSelection(
        unit=unit,
        project=project,
        submission=submission,
        state=state,
        schemes=schemes_for_unit_type(schemes, unit.unit_type_id),
        upgrades=[to_upgrade_option(u) for u in upgrades],
    )


def _ensure_editable(selection: _PortalSelection) -> None:
    if selection.state.is_submitted:
        raise ConflictError("Selections have already been submitted and can no longer be changed")


async def _client_name(session: AsyncSession, unit: UnitModel) -> str | None:
    result = await session.execute(
        select(ClientModel.name)
        .join(UnitClientModel, UnitClientModel.client_id == ClientModel.id)
        .where(
            UnitClientModel.unit_id == unit.id,
            UnitClientModel.role == ClientRole.PURCHASER.value,
        )
    )
    name = result.scalars().first()
    if name:
        return name

    result = await session.execute(
        select(ClientModel.name)
        .join(InvitationModel, InvitationModel.client_id == ClientModel.id)
        .where(InvitationModel.unit_id == unit.id)
        .order_by(InvitationModel.created_at.desc())
    )
    return result.scalars().first()


async def _persist(
    session: AsyncSession,
    selection: _PortalSelection,
    token: str,
    state: SelectionState,
    step: int,
) -> SubmissionModel:
    # One submission per unit: keep saving under the token that created it
    save_token = selection.submission.token if selection.submission is not None else token
    submission, _ = await upsert_submission(
        session,
        SubmissionData(
            token=save_token,
            unit_id=str(selection.unit.id),
            unit_number=selection.unit.unit_number,
            project_name=selection.project.name if selection.project else None,
            client_name=await _client_name(session, selection.unit),
            color_scheme=state.color_scheme,
            selected_upgrades=state.upgrades,
            floor_plan_data={
                "floor_plan_url": selection.unit.floor_plan_url,
                "points": [
                    p.model_dump(mode="json") for u in state.upgrades for p in u.floor_plan_points
                ],
            },
            is_submitted=state.is_submitted,
            wizard_step=step,
        ),
    )
    return submission


async def save_draft(
    session: AsyncSession,
    unit: UnitModel,
    token: str,
    color_scheme: str | None,
    upgrades: list[ClientUpgrade],
    wizard_step: int | None = None,
) -> SubmissionModel:
    """Validate a client selection against the catalog and store it as a draft."""
    selection = await _load(session, unit)
    _ensure_editable(selection)

    color_scheme = (color_scheme or "").strip()
    if color_scheme and color_scheme not in {s.name for s in selection.schemes}:
        raise wizard.WizardError(f"Color scheme {color_scheme} is not available for this unit")

    categories = get_config().portal.floor_plan_categories
    state = SelectionState(
        color_scheme=color_scheme,
        upgrades=wizard.validate_selection(
            upgrades, selection.upgrades, unit.unit_type_id, categories
        ),
    )
    step = wizard_step if wizard_step is not None else selection.step
    if step >= WizardStep.CONFIRMATION:
        raise wizard.WizardError("Use submit to complete the selection")
    step = int(wizard.furthest_step(step, state, categories))
    return await _persist(session, selection, token, state, step)


async def navigate(session: AsyncSession, unit: UnitModel, token: str, direction: str) -> int:
    """Move the saved wizard one step forward or back; returns the new step."""
    selection = await _load(session, unit)
    _ensure_editable(selection)
    categories = get_config().portal.floor_plan_categories

    if direction == "next":
        step = wizard.next_step(selection.step, selection.state, categories)
    elif direction == "back":
        step = wizard.previous_step(selection.step, selection.state, categories)
    else:
        raise ValueError("direction must be 'next' or 'back'")

    await _persist(session, selection, token, selection.state, int(step))
    return int(step)


async def place(
    session: AsyncSession, unit: UnitModel, token: str, upgrade_id: str, x: float, y: float
) -> FloorPlanPoint:
    selection = await _load(session, unit)
    _ensure_editable(selection)

    upgrades, point = wizard.place_point(
        selection.state.upgrades, upgrade_id, x, y, get_config().portal.floor_plan_categories
    )
    state = selection.state.model_copy(update={"upgrades": upgrades})
    await _persist(session, selection, token, state, selection.step)
    return point


async def remove(session: AsyncSession, unit: UnitModel, token: str, point_id: str) -> None:
    selection = await _load(session, unit)
    _ensure_editable(selection)

    upgrades = wizard.remove_point(selection.state.upgrades, point_id)
    state = selection.state.model_copy(update={"upgrades": upgrades})
    await _persist(session, selection, token, state, selection.step)


async def submit(session: AsyncSession, unit: UnitModel, token: str) -> dict:
    """Finalise the selection; returns the confirmation with its price summary."""
    selection = await _load(session, unit)
    _ensure_editable(selection)
    config = get_config()

    if not selection.state.color_scheme:
        raise wizard.WizardError("Please select a color scheme before submitting")
    if not wizard.floor_plan_complete(selection.state.upgrades, config.portal.floor_plan_categories):
        raise wizard.WizardError("Please place all electrical and lighting upgrades on the floor plan")

    state = selection.state.model_copy(update={"is_submitted": True})
    submission = await _persist(session, selection, token, state, WizardStep.CONFIRMATION.value)

    logger.info("submission_submitted", submission_id=str(submission.id), unit_id=str(unit.id))
    summary = price_summary(
        state.upgrades,
        config.pricing.gst_rate,
        config.pricing.currency,
        config.pricing.gst_included,
    )
    return {
        "submission_id": str(submission.id),
        "unit_number": unit.unit_number,
        "color_scheme": state.color_scheme,
        "upgrades": [u.model_dump(mode="json") for u in state.upgrades],
        "summary": {
            "subtotal": float(summary["subtotal"]),
            "gst": float(summary["gst"]),
            "total": float(summary["total"]),
            "gst_rate": float(summary["gst_rate"]),
            "currency": summary["currency"],
        },
        "current_step": WizardStep.CONFIRMATION.value,
    }
