from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncSession

from fitout.db.connection import get_session
from fitout.db.models import AuditLogModel

ADMIN_LOGIN = "ADMIN_LOGIN"
ADMIN_LOGIN_FAILED = "ADMIN_LOGIN_FAILED"
CLIENT_LOGIN = "CLIENT_LOGIN"
CLIENT_LOGIN_FAILED = "CLIENT_LOGIN_FAILED"
UNIT_CREATE = "UNIT_CREATE"
UNIT_PASSWORD_RESET = "UNIT_PASSWORD_RESET"
INVITATION_CREATE = "INVITATION_CREATE"
VERSION_CREATE = "VERSION_CREATE"
VERSION_RESTORE = "VERSION_RESTORE"
VERSION_DELETE = "VERSION_DELETE"
SUBMISSION_SUBMIT = "SUBMISSION_SUBMIT"


async def log_action(
    request: Request | None,
    action: str,
    username: str,
    resource_type: str | None = None,
    resource_id: str | None = None,
    details: dict | None = None,
    session: AsyncSession | None = None,
):
    """Log an action to the audit trail.

    Args:
        request: FastAPI request object (for IP address)
        action: Action name (e.g., "ADMIN_LOGIN", "UNIT_CREATE")
        username: Username of actor
        resource_type: Type of resource affected
        resource_id: ID of resource affected
        details: Additional details
        session: Optional existing DB session. If None, creates a new one.
    """
    ip_address = request.client.host if request is not None and request.client else None

    audit_entry = AuditLogModel(
        username=username,
        action=action,
        resource_type=resource_type,
        resource_id=str(resource_id) if resource_id is not None else None,
        details=details,
        ip_address=ip_address,
    )

    if session:
        session.add(audit_entry)
        # Caller is responsible for commit if session provided
    else:
        async with get_session() as new_session:
            new_session.add(audit_entry)
