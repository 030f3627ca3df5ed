"""SQLAlchemy async database models for Fitout Portal.

One table per portal entity. Child rows reference their project with
``ON DELETE CASCADE`` so project deletion is a database concern.
"""

from __future__ import annotations

from datetime import date, datetime, timezone
from decimal import Decimal
from uuid import UUID, uuid4

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    """Base class for all models."""

    pass


class ProjectModel(Base):
    """Property development project; parent of every other entity."""

    __tablename__ = "projects"

    id: Mapped[UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    development_company: Mapped[str | None] = mapped_column(Text)
    address: Mapped[str | None] = mapped_column(Text)
    description: Mapped[str | None] = mapped_column(Text)
    logo_url: Mapped[str | None] = mapped_column(Text)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False
    )


class UnitTypeModel(Base):
    """Bedroom/bathroom/size template shared by many units."""

    __tablename__ = "unit_types"

    id: Mapped[UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    project_id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True), ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    bedrooms: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    bathrooms: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    size_m2: Mapped[Decimal | None] = mapped_column(Numeric(10, 2))

    # Catalog ids this type may choose from
    allowed_color_schemes: Mapped[list] = mapped_column(JSON, default=list, nullable=False)
    allowed_upgrades: Mapped[list] = mapped_column(JSON, default=list, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )

    __table_args__ = (
        CheckConstraint("bedrooms >= 0", name="check_unit_type_bedrooms"),
        CheckConstraint("bathrooms >= 0", name="check_unit_type_bathrooms"),
    )


class UnitModel(Base):
    """Individually sellable unit with its portal login."""

    __tablename__ = "units"

    id: Mapped[UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    project_id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True), ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True
    )
    unit_type_id: Mapped[UUID | None] = mapped_column(
        Uuid(as_uuid=True), ForeignKey("unit_types.id", ondelete="SET NULL"), index=True
    )
    unit_number: Mapped[str] = mapped_column(Text, nullable=False)
    status: Mapped[str] = mapped_column(String(16), default="active", nullable=False)

    # Portal login (password is only ever stored hashed)
    username: Mapped[str] = mapped_column(Text, nullable=False, unique=True)
    password_hash: Mapped[str] = mapped_column(Text, nullable=False)
    access_token: Mapped[str] = mapped_column(String(32), nullable=False, unique=True)

    floor_plan_url: Mapped[str | None] = mapped_column(Text)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False
    )

    __table_args__ = (
        UniqueConstraint("project_id", "unit_number", name="uq_units_project_number"),
        CheckConstraint("status IN ('active', 'inactive')", name="check_unit_status"),
        Index("idx_units_project_created", "project_id", "created_at"),
    )


class ColorSchemeModel(Base):
    """Named finish package (paint, carpet, flooring, ...)."""

    __tablename__ = "color_schemes"

    id: Mapped[UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    project_id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True), ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    color_board_file: Mapped[str | None] = mapped_column(Text)

    # {"paint": "...", "paint_link": "https://...", "custom_key": "...", ...}
    materials: Mapped[dict] = mapped_column(JSON, default=dict, nullable=False)
    allowed_unit_types: Mapped[list] = mapped_column(JSON, default=list, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )


class UpgradeOptionModel(Base):
    """Purchasable add-on with a category, price and quantity cap."""

    __tablename__ = "upgrade_options"

    id: Mapped[UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    project_id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True), ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    category: Mapped[str] = mapped_column(Text, nullable=False)
    price: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    max_quantity: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
    allowed_unit_types: Mapped[list] = mapped_column(JSON, default=list, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )

    __table_args__ = (
        CheckConstraint("price > 0", name="check_upgrade_price_positive"),
        CheckConstraint("max_quantity >= 1", name="check_upgrade_max_quantity"),
    )


class SalesListModel(Base):
    """Named view over a project's units used for sales tracking."""

    __tablename__ = "sales_lists"

    id: Mapped[UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    project_id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True), ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    status: Mapped[str] = mapped_column(String(16), default="active", nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False
    )


class SalesListUnitModel(Base):
    """Current price and sale status of one unit on a sales list."""

    __tablename__ = "sales_list_units"

    id: Mapped[UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    sales_list_id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True), ForeignKey("sales_lists.id", ondelete="CASCADE"), nullable=False, index=True
    )
    unit_id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True), ForeignKey("units.id", ondelete="CASCADE"), nullable=False, index=True
    )
    list_price: Mapped[Decimal | None] = mapped_column(Numeric(14, 2))
    sold_price: Mapped[Decimal | None] = mapped_column(Numeric(14, 2))
    status: Mapped[str] = mapped_column(String(16), default="available", nullable=False)
    notes: Mapped[str | None] = mapped_column(Text)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False
    )

    __table_args__ = (
        UniqueConstraint("sales_list_id", "unit_id", name="uq_sales_list_unit"),
        CheckConstraint(
            "status IN ('available', 'reserved', 'sold', 'withdrawn')",
            name="check_sales_list_unit_status",
        ),
    )


class SalesListVersionModel(Base):
    """Immutable snapshot header of a sales list's pricing/status."""

    __tablename__ = "sales_list_versions"

    id: Mapped[UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    sales_list_id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True), ForeignKey("sales_lists.id", ondelete="CASCADE"), nullable=False, index=True
    )
    version_number: Mapped[int] = mapped_column(Integer, nullable=False)
    version_name: Mapped[str | None] = mapped_column(Text)
    description: Mapped[str | None] = mapped_column(Text)
    created_by: Mapped[str] = mapped_column(Text, nullable=False)
    is_current: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    # Summary computed at snapshot time
    total_units: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    units_with_prices: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    average_list_price: Mapped[Decimal | None] = mapped_column(Numeric(14, 2))
    total_list_value: Mapped[Decimal | None] = mapped_column(Numeric(16, 2))

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )

    __table_args__ = (
        UniqueConstraint("sales_list_id", "version_number", name="uq_sales_list_version_number"),
    )


class SalesListVersionUnitModel(Base):
    """Snapshot row of one sales list unit; denormalised so it survives unit edits."""

    __tablename__ = "sales_list_version_units"

    id: Mapped[UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    version_id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("sales_list_versions.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    unit_id: Mapped[UUID] = mapped_column(Uuid(as_uuid=True), nullable=False, index=True)
    list_price: Mapped[Decimal | None] = mapped_column(Numeric(14, 2))
    sold_price: Mapped[Decimal | None] = mapped_column(Numeric(14, 2))
    status: Mapped[str] = mapped_column(String(16), nullable=False)
    notes: Mapped[str | None] = mapped_column(Text)
    unit_number: Mapped[str] = mapped_column(Text, nullable=False)
    unit_type_name: Mapped[str | None] = mapped_column(Text)
    unit_type_details: Mapped[dict] = mapped_column(JSON, default=dict, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )


class ClientModel(Base):
    """Unit purchaser."""

    __tablename__ = "clients"

    id: Mapped[UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    email: Mapped[str] = mapped_column(Text, nullable=False, unique=True)  # stored lowercase
    phone: Mapped[str | None] = mapped_column(Text)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )


class UnitClientModel(Base):
    """Join between a unit and its client, recording role and reservation details."""

    __tablename__ = "unit_clients"

    id: Mapped[UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    unit_id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True), ForeignKey("units.id", ondelete="CASCADE"), nullable=False, index=True
    )
    client_id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True), ForeignKey("clients.id", ondelete="CASCADE"), nullable=False, index=True
    )
    sales_list_id: Mapped[UUID | None] = mapped_column(
        Uuid(as_uuid=True), ForeignKey("sales_lists.id", ondelete="SET NULL")
    )
    role: Mapped[str] = mapped_column(String(16), default="purchaser", nullable=False)
    purchase_price: Mapped[Decimal | None] = mapped_column(Numeric(14, 2))
    reservation_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    status: Mapped[str] = mapped_column(String(16), default="active", nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )

    __table_args__ = (UniqueConstraint("unit_id", "role", name="uq_unit_client_role"),)


class InvitationModel(Base):
    """Time-limited portal access token linking a client to a unit."""

    __tablename__ = "invitations"

    id: Mapped[UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    client_id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True), ForeignKey("clients.id", ondelete="CASCADE"), nullable=False
    )
    unit_id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True), ForeignKey("units.id", ondelete="CASCADE"), nullable=False, index=True
    )
    token: Mapped[str] = mapped_column(String(32), nullable=False, unique=True)
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    accepted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )


class SubmissionModel(Base):
    """Client's draft or final selection snapshot, upserted by portal token."""

    __tablename__ = "submissions"

    id: Mapped[UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    unit_id: Mapped[UUID | None] = mapped_column(
        Uuid(as_uuid=True), ForeignKey("units.id", ondelete="SET NULL"), index=True
    )
    token: Mapped[str] = mapped_column(Text, nullable=False, unique=True)

    # Flattened view data
    unit_number: Mapped[str] = mapped_column(Text, nullable=False)
    project_name: Mapped[str] = mapped_column(Text, nullable=False)
    client_name: Mapped[str] = mapped_column(Text, nullable=False)
    color_scheme: Mapped[str] = mapped_column(Text, default="", nullable=False)

    selected_upgrades: Mapped[list] = mapped_column(JSON, default=list, nullable=False)
    floor_plan_data: Mapped[dict] = mapped_column(JSON, default=dict, nullable=False)
    upgrade_value: Mapped[Decimal] = mapped_column(Numeric(14, 2), default=Decimal("0"), nullable=False)

    status: Mapped[str] = mapped_column(String(16), default="draft", nullable=False)
    wizard_step: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
    submitted_date: Mapped[date | None] = mapped_column(Date)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False
    )

    __table_args__ = (
        CheckConstraint("status IN ('draft', 'submitted')", name="check_submission_status"),
        Index("idx_submissions_created", "created_at"),
    )


class AdminUserModel(Base):
    """Admin dashboard login."""

    __tablename__ = "admin_users"

    id: Mapped[UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    username: Mapped[str] = mapped_column(Text, nullable=False, unique=True)
    password_hash: Mapped[str] = mapped_column(Text, nullable=False)
    role: Mapped[str] = mapped_column(String(16), default="admin", nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    last_login: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )


class AuditLogModel(Base):
    """Audit trail of logins and state-changing admin/client actions."""

    __tablename__ = "audit_logs"

    id: Mapped[UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    username: Mapped[str] = mapped_column(Text, nullable=False)
    action: Mapped[str] = mapped_column(Text, nullable=False, index=True)
    resource_type: Mapped[str | None] = mapped_column(Text)
    resource_id: Mapped[str | None] = mapped_column(Text)
    details: Mapped[dict | None] = mapped_column(JSON)
    ip_address: Mapped[str | None] = mapped_column(Text)

    timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False, index=True
    )
