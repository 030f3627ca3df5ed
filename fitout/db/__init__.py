"""Database layer for Fitout Portal with async SQLAlchemy."""

from fitout.db.connection import get_session, init_db
from fitout.db.models import (
    AdminUserModel,
    AuditLogModel,
    Base,
    ClientModel,
    ColorSchemeModel,
    InvitationModel,
    ProjectModel,
    SalesListModel,
    SalesListUnitModel,
    SalesListVersionModel,
    SalesListVersionUnitModel,
    SubmissionModel,
    UnitClientModel,
    UnitModel,
    UnitTypeModel,
    UpgradeOptionModel,
)

__all__ = [
    "Base",
    "ProjectModel",
    "UnitTypeModel",
    "UnitModel",
    "ColorSchemeModel",
    "UpgradeOptionModel",
    "SalesListModel",
    "SalesListUnitModel",
    "SalesListVersionModel",
    "SalesListVersionUnitModel",
    "ClientModel",
    "UnitClientModel",
    "InvitationModel",
    "SubmissionModel",
    "AdminUserModel",
    "AuditLogModel",
    "get_session",
    "init_db",
]
