"""Fitout Pydantic models for type-safe data validation.

View models shared by the catalog, portal wizard, submissions and exports.
Ids are carried as strings so they round-trip through JSON columns unchanged.
"""

from __future__ import annotations

from decimal import Decimal
from enum import Enum, IntEnum

from pydantic import BaseModel, Field, field_validator


class UnitStatus(str, Enum):
    """Unit availability for the portal."""

    ACTIVE = "active"
    INACTIVE = "inactive"


class SaleStatus(str, Enum):
    """Sale status of a unit on a sales list."""

    AVAILABLE = "available"
    RESERVED = "reserved"
    SOLD = "sold"
    WITHDRAWN = "withdrawn"


class SalesListStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    CLOSED = "closed"


class SubmissionStatus(str, Enum):
    DRAFT = "draft"
    SUBMITTED = "submitted"


class ClientRole(str, Enum):
    PURCHASER = "purchaser"


class PriceType(str, Enum):
    """Which sales-list price column an edit targets."""

    LIST_PRICE = "list_price"
    SOLD_PRICE = "sold_price"


class WizardStep(IntEnum):
    """Client selection wizard steps, in display order."""

    COLOR_SCHEME = 1
    UPGRADES = 2
    FLOOR_PLAN = 3
    REVIEW = 4
    CONFIRMATION = 5


class FloorPlanPoint(BaseModel):
    """Marker placed on the unit floor plan for one upgrade instance."""

    id: str
    x: float
    y: float
    label: str
    upgrade_id: str
    upgrade_name: str
    symbol: str
    color: str


class UpgradeOption(BaseModel):
    """Catalog upgrade as offered to a unit type."""

    id: str
    name: str
    description: str | None = None
    category: str
    price: Decimal
    max_quantity: int = 1
    allowed_unit_types: list[str] = Field(default_factory=list)

    @field_validator("max_quantity")
    @classmethod
    def validate_max_quantity(cls, v: int) -> int:
        if v < 1:
            raise ValueError("max_quantity must be at least 1")
        return v


class ClientUpgrade(BaseModel):
    """An upgrade the client has selected, with quantity and placed points."""

    id: str
    name: str
    description: str | None = None
    category: str
    price: Decimal
    quantity: int
    floor_plan_points: list[FloorPlanPoint] = Field(default_factory=list)

    @field_validator("price")
    @classmethod
    def validate_price(cls, v: Decimal) -> Decimal:
        if v < 0:
            raise ValueError("price must be non-negative")
        return v

    class Config:
        json_schema_extra = {
            "example": {
                "id": "8d2f6a3e-8f6c-4c2b-9d7e-1f6a2b3c4d5e",
                "name": "USB Power Points",
                "category": "Electrical",
                "price": Decimal("200.00"),
                "quantity": 2,
                "floor_plan_points": [],
            }
        }


class ColorScheme(BaseModel):
    """Color scheme as offered to a unit type."""

    id: str
    name: str
    description: str | None = None
    color_board_file: str | None = None
    materials: dict[str, str | None] = Field(default_factory=dict)
    allowed_unit_types: list[str] = Field(default_factory=list)


class SelectionState(BaseModel):
    """Accumulated wizard selections for one unit."""

    color_scheme: str = ""
    upgrades: list[ClientUpgrade] = Field(default_factory=list)
    is_submitted: bool = False


class SubmissionData(BaseModel):
    """Selection snapshot saved against a portal token."""

    token: str
    unit_id: str | None = None
    unit_number: str | None = None
    project_name: str | None = None
    client_name: str | None = None
    color_scheme: str | None = None
    selected_upgrades: list[ClientUpgrade] = Field(default_factory=list)
    floor_plan_data: dict = Field(default_factory=dict)
    is_submitted: bool = False
    wizard_step: int | None = None

    @field_validator("token")
    @classmethod
    def validate_token(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("token is required")
        return v

    @field_validator("wizard_step")
    @classmethod
    def validate_wizard_step(cls, v: int | None) -> int | None:
        if v is not None and v not in {step.value for step in WizardStep}:
            raise ValueError(f"wizard_step must be between 1 and {len(WizardStep)}")
        return v
