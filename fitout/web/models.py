"""Request models for the Fitout web API.

Fields accept both snake_case and the camelCase names the admin screens
send (``projectId``, ``unitIds``, ``listPrice`` ...).

Usage:
    from fitout.web.models import UnitCreate

    @router.post("/api/units")
    async def create_unit(payload: UnitCreate):
        ...
"""

from __future__ import annotations

from decimal import Decimal
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from fitout.models import FloorPlanPoint


class _Request(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


# ============================================================================
# Authentication
# ============================================================================


class LoginRequest(_Request):
    username: str
    password: str


# ============================================================================
# Projects & Catalog
# ============================================================================


class ProjectCreate(_Request):
    name: str
    development_company: str | None = Field(default=None, alias="developmentCompany")
    address: str | None = None
    description: str | None = None
    logo_url: str | None = Field(default=None, alias="logoUrl")


class ProjectUpdate(_Request):
    name: str | None = None
    development_company: str | None = Field(default=None, alias="developmentCompany")
    address: str | None = None
    description: str | None = None
    logo_url: str | None = Field(default=None, alias="logoUrl")


class UnitTypeCreate(_Request):
    name: str
    description: str | None = None
    bedrooms: int = 0
    bathrooms: int = 0
    size_m2: Decimal | None = None
    allowed_color_schemes: list[str] = Field(default_factory=list)
    allowed_upgrades: list[str] = Field(default_factory=list)


class UnitTypeUpdate(_Request):
    name: str | None = None
    description: str | None = None
    bedrooms: int | None = None
    bathrooms: int | None = None
    size_m2: Decimal | None = None
    allowed_color_schemes: list[str] | None = None
    allowed_upgrades: list[str] | None = None


class ColorSchemeCreate(_Request):
    name: str
    description: str | None = None
    color_board_file: str | None = None
    materials: dict[str, str | None] = Field(default_factory=dict)
    allowed_unit_types: list[str] = Field(default_factory=list)


class ColorSchemeUpdate(_Request):
    name: str | None = None
    description: str | None = None
    color_board_file: str | None = None
    materials: dict[str, str | None] | None = None
    allowed_unit_types: list[str] | None = None


class UpgradeOptionCreate(_Request):
    name: str
    category: str
    price: Decimal
    max_quantity: int = 1
    description: str | None = None
    allowed_unit_types: list[str] = Field(default_factory=list)


class UpgradeOptionUpdate(_Request):
    name: str | None = None
    category: str | None = None
    price: Decimal | None = None
    max_quantity: int | None = None
    description: str | None = None
    allowed_unit_types: list[str] | None = None


# ============================================================================
# Units
# ============================================================================


class UnitCreate(_Request):
    project_id: UUID = Field(alias="projectId")
    unit_number: str = Field(alias="unitNumber")
    unit_type_id: UUID | None = Field(default=None, alias="unitTypeId")
    status: str = "active"


class UnitUpdate(_Request):
    unit_number: str | None = Field(default=None, alias="unitNumber")
    unit_type_id: UUID | None = Field(default=None, alias="unitTypeId")
    status: str | None = None


# ============================================================================
# Sales Lists & Versions
# ============================================================================


class SalesListCreate(_Request):
    project_id: UUID = Field(alias="projectId")
    name: str
    description: str | None = None


class SalesListUpdate(_Request):
    name: str | None = None
    description: str | None = None
    status: str | None = None


class SalesListUnitsAdd(_Request):
    unit_ids: list[UUID] = Field(alias="unitIds")
    list_price: Decimal | None = Field(default=None, alias="listPrice")


class SalesListUnitUpdate(_Request):
    list_price: Decimal | None = Field(default=None, alias="listPrice")
    sold_price: Decimal | None = Field(default=None, alias="soldPrice")
    status: str | None = None
    notes: str | None = None


class PriceEdit(SalesListUnitUpdate):
    id: UUID


class PriceEditsRequest(_Request):
    edits: list[PriceEdit]


class AssignClientRequest(_Request):
    name: str
    email: str
    phone: str | None = None
    list_price: Decimal | None = Field(default=None, alias="listPrice")
    sold_price: Decimal | None = Field(default=None, alias="soldPrice")


class VersionCreate(_Request):
    version_name: str | None = Field(default=None, alias="versionName")
    description: str | None = None
    created_by: str | None = Field(default=None, alias="createdBy")


class VersionRestore(_Request):
    created_by: str | None = Field(default=None, alias="createdBy")


class VersionCompare(_Request):
    version_id_1: UUID = Field(alias="versionId1")
    version_id_2: UUID = Field(alias="versionId2")


# ============================================================================
# Invitations, Submissions & Portal
# ============================================================================


class ClientInfo(_Request):
    name: str
    email: str
    phone: str | None = None


class InvitationCreate(_Request):
    unit_id: UUID = Field(alias="unitId")
    client: ClientInfo
    expires_in_days: int | None = Field(default=None, alias="expiresInDays")


class ExportRequest(_Request):
    export_types: list[str] = Field(alias="exportTypes")


class SelectedUpgradeInput(_Request):
    """Client side upgrade choice; everything but quantity comes from the catalog."""

    id: str
    quantity: int
    floor_plan_points: list[FloorPlanPoint] = Field(default_factory=list)


class SelectionUpdate(_Request):
    color_scheme: str | None = Field(default=None, alias="colorScheme")
    upgrades: list[SelectedUpgradeInput] = Field(default_factory=list)
    wizard_step: int | None = Field(default=None, alias="wizardStep")


class NavigateRequest(_Request):
    direction: Literal["next", "back"]


class PointCreate(_Request):
    upgrade_id: str = Field(alias="upgradeId")
    x: float
    y: float
