"""Client selection wizard state machine.

Pure functions over :class:`SelectionState` and lists of
:class:`ClientUpgrade`; persistence lives in ``fitout.submissions``.
"""

from __future__ import annotations

from collections.abc import Iterable
from uuid import uuid4

from fitout.models import (
    ClientUpgrade,
    FloorPlanPoint,
    SelectionState,
    UpgradeOption,
    WizardStep,
)

DEFAULT_FLOOR_PLAN_CATEGORIES = ("Electrical", "Lighting")

# Coordinate space of the client floor plan canvas
CANVAS_WIDTH = 800
CANVAS_HEIGHT = 400

# (name fragments, symbol, color); first match wins
_SYMBOLS: tuple[tuple[tuple[str, ...], str, str], ...] = (
    (("power outlets", "power points"), "PP", "#3B82F6"),
    (("usb",), "USB", "#10B981"),
    (("light",), "L", "#F59E0B"),
    (("switch",), "SW", "#8B5CF6"),
    (("dimmer",), "DIM", "#EF4444"),
)
_DEFAULT_SYMBOL = ("E", "#6B7280")


class WizardError(ValueError):
    """A wizard transition or edit is not allowed in the current state."""


def upgrade_symbol(name: str) -> tuple[str, str]:
    """Marker ``(symbol, color)`` for an upgrade, chosen from its name."""
    lowered = (name or "").lower()
    for fragments, symbol, color in _SYMBOLS:
        if any(fragment in lowered for fragment in fragments):
            return symbol, color
    return _DEFAULT_SYMBOL


def clamp_to_canvas(x: float, y: float) -> tuple[float, float]:
    return min(max(x, 0.0), CANVAS_WIDTH), min(max(y, 0.0), CANVAS_HEIGHT)


def is_floor_plan_upgrade(upgrade, categories: Iterable[str] = DEFAULT_FLOOR_PLAN_CATEGORIES) -> bool:
    return upgrade.category in tuple(categories)


def has_floor_plan_upgrades(
    upgrades: Iterable[ClientUpgrade], categories: Iterable[str] = DEFAULT_FLOOR_PLAN_CATEGORIES
) -> bool:
    categories = tuple(categories)
    return any(is_floor_plan_upgrade(u, categories) for u in upgrades)


def floor_plan_complete(
    upgrades: Iterable[ClientUpgrade], categories: Iterable[str] = DEFAULT_FLOOR_PLAN_CATEGORIES
) -> bool:
    """True when every floor plan upgrade has exactly ``quantity`` points."""
    categories = tuple(categories)
    return all(
        len(u.floor_plan_points) == u.quantity
        for u in upgrades
        if is_floor_plan_upgrade(u, categories)
    )


def next_step(
    step: int, state: SelectionState, categories: Iterable[str] = DEFAULT_FLOOR_PLAN_CATEGORIES
) -> WizardStep:
    """Step after ``step``; the review step only advances through submit.

    Raises:
        WizardError: If the current step is incomplete
    """
    step = WizardStep(step)
    categories = tuple(categories)

    if step == WizardStep.COLOR_SCHEME:
        if not state.color_scheme:
            raise WizardError("Please select a color scheme to continue")
        return WizardStep.UPGRADES
    if step == WizardStep.UPGRADES:
        if has_floor_plan_upgrades(state.upgrades, categories):
            return WizardStep.FLOOR_PLAN
        return WizardStep.REVIEW
    if step == WizardStep.FLOOR_PLAN:
        if not floor_plan_complete(state.upgrades, categories):
            raise WizardError("Please place all electrical and lighting upgrades on the floor plan")
        return WizardStep.REVIEW
    if step == WizardStep.REVIEW:
        raise WizardError("Submit your selections to continue")
    raise WizardError("Selections have already been submitted")


def previous_step(
    step: int, state: SelectionState, categories: Iterable[str] = DEFAULT_FLOOR_PLAN_CATEGORIES
) -> WizardStep:
    step = WizardStep(step)
    if step == WizardStep.REVIEW:
        if has_floor_plan_upgrades(state.upgrades, categories):
            return WizardStep.FLOOR_PLAN
        return WizardStep.UPGRADES
    if step == WizardStep.FLOOR_PLAN:
        return WizardStep.UPGRADES
    if step == WizardStep.UPGRADES:
        return WizardStep.COLOR_SCHEME
    if step == WizardStep.CONFIRMATION:
        raise WizardError("Selections have already been submitted")
    return WizardStep.COLOR_SCHEME


def resume_step(
    state: SelectionState, categories: Iterable[str] = DEFAULT_FLOOR_PLAN_CATEGORIES
) -> WizardStep:
    """Step to reopen a saved selection at when no step was stored.

    Any selected upgrade resumes at the floor plan step even without
    floor plan items; ``next_step`` moves on from there.
    """
    if state.is_submitted:
        return WizardStep.CONFIRMATION
    if has_floor_plan_upgrades(state.upgrades, categories):
        return WizardStep.REVIEW
    if state.upgrades:
        return WizardStep.FLOOR_PLAN
    if state.color_scheme:
        return WizardStep.UPGRADES
    return WizardStep.COLOR_SCHEME


def furthest_step(
    requested: int, state: SelectionState, categories: Iterable[str] = DEFAULT_FLOOR_PLAN_CATEGORIES
) -> WizardStep:
    """Latest step at or before ``requested`` that ``next_step`` can reach.

    Walks forward from the color scheme step and stops at the first
    incomplete step, so a saved step never skips a prerequisite.
    """
    requested = min(WizardStep(requested), WizardStep.REVIEW)
    categories = tuple(categories)
    step = WizardStep.COLOR_SCHEME
    while step < requested:
        try:
            following = next_step(step, state, categories)
        except WizardError:
            break
        if following > requested:
            break
        step = following
    return step


def set_upgrade_quantity(
    selected: list[ClientUpgrade], option: UpgradeOption, quantity: int
) -> list[ClientUpgrade]:
    """Return a new selection with ``option`` set to ``quantity``.

    Zero or less removes the upgrade. The quantity is clamped to the
    option's ``max_quantity`` and surplus floor plan points are dropped.
    """
    remaining = [u for u in selected if u.id != option.id]
    if quantity <= 0:
        return remaining

    quantity = min(quantity, option.max_quantity)
    existing = next((u for u in selected if u.id == option.id), None)
    points = list(existing.floor_plan_points[:quantity]) if existing else []

    updated = ClientUpgrade(
        id=option.id,
        name=option.name,
        description=option.description,
        category=option.category,
        price=option.price,
        quantity=quantity,
        floor_plan_points=points,
    )
    if existing is None:
        return remaining + [updated]
    return [updated if u.id == option.id else u for u in selected]


def place_point(
    selected: list[ClientUpgrade],
    upgrade_id: str,
    x: float,
    y: float,
    categories: Iterable[str] = DEFAULT_FLOOR_PLAN_CATEGORIES,
) -> tuple[list[ClientUpgrade], FloorPlanPoint]:
    """Add a floor plan marker for one instance of a selected upgrade.

    Coordinates outside the canvas are clamped to its edges.
    """
    upgrade = next((u for u in selected if u.id == upgrade_id), None)
    if upgrade is None:
        raise WizardError("Upgrade is not selected")
    if not is_floor_plan_upgrade(upgrade, categories):
        raise WizardError(f"{upgrade.name} is not placed on the floor plan")
    if len(upgrade.floor_plan_points) >= upgrade.quantity:
        raise WizardError(
            f"All {upgrade.quantity} {upgrade.name} location(s) have already been placed"
        )

    symbol, color = upgrade_symbol(upgrade.name)
    clamped_x, clamped_y = clamp_to_canvas(x, y)
    point = FloorPlanPoint(
        id=uuid4().hex,
        x=clamped_x,
        y=clamped_y,
        label=f"{upgrade.name} #{len(upgrade.floor_plan_points) + 1}",
        upgrade_id=upgrade.id,
        upgrade_name=upgrade.name,
        symbol=symbol,
        color=color,
    )
    updated = upgrade.model_copy(update={"floor_plan_points": upgrade.floor_plan_points + [point]})
    return [updated if u.id == upgrade_id else u for u in selected], point


def remove_point(selected: list[ClientUpgrade], point_id: str) -> list[ClientUpgrade]:
    found = False
    result = []
    for upgrade in selected:
        points = [p for p in upgrade.floor_plan_points if p.id != point_id]
        if len(points) != len(upgrade.floor_plan_points):
            found = True
            upgrade = upgrade.model_copy(update={"floor_plan_points": points})
        result.append(upgrade)
    if not found:
        raise WizardError("Floor plan point not found")
    return result


def validate_selection(
    selected: Iterable[ClientUpgrade],
    available: Iterable[UpgradeOption],
    unit_type_id,
    categories: Iterable[str] = DEFAULT_FLOOR_PLAN_CATEGORIES,
) -> list[ClientUpgrade]:
    """Rebuild a client supplied selection from the catalog.

    Name, category and price always come from the catalog; quantities are
    clamped and points beyond the quantity dropped. Points are kept only
    on floor plan upgrades and are rebuilt with catalog names, markers,
    canvas clamped coordinates and unique ids.

    Raises:
        WizardError: On upgrades unknown to the catalog or not offered to
            the unit type
    """
    catalog = {option.id: option for option in available}
    allowed = str(unit_type_id) if unit_type_id is not None else None
    categories = tuple(categories)

    rebuilt: list[ClientUpgrade] = []
    seen_ids: set[str] = set()
    for choice in selected:
        option = catalog.get(choice.id)
        if option is None:
            raise WizardError(f"Unknown upgrade: {choice.id}")
        if allowed is None or allowed not in option.allowed_unit_types:
            raise WizardError(f"{option.name} is not available for this unit")
        if choice.quantity <= 0:
            continue
        quantity = min(choice.quantity, option.max_quantity)
        points = []
        if is_floor_plan_upgrade(option, categories):
            symbol, color = upgrade_symbol(option.name)
            for index, point in enumerate(choice.floor_plan_points[:quantity], start=1):
                point_id = point.id
                if not point_id or point_id in seen_ids:
                    point_id = uuid4().hex
                seen_ids.add(point_id)
                x, y = clamp_to_canvas(point.x, point.y)
                points.append(
                    FloorPlanPoint(
                        id=point_id,
                        x=x,
                        y=y,
                        label=f"{option.name} #{index}",
                        upgrade_id=option.id,
                        upgrade_name=option.name,
                        symbol=symbol,
                        color=color,
                    )
                )
        rebuilt.append(
            ClientUpgrade(
                id=option.id,
                name=option.name,
                description=option.description,
                category=option.category,
                price=option.price,
                quantity=quantity,
                floor_plan_points=points,
            )
        )
    return rebuilt
