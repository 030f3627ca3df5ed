"""Fitout Web Route Modules.

Each module exports a `router` (APIRouter instance) for one functional
area; `fitout.web.app` includes them all.

Pattern:
    from fastapi import APIRouter
    router = APIRouter(tags=["feature"])

    @router.get("/endpoint")
    async def handler(...):
        pass
"""

from fitout.web.routes import (
    auth,
    catalog,
    dashboard,
    health,
    invitations,
    portal,
    projects,
    sales_lists,
    submissions,
    units,
    versions,
)

__all__ = [
    "auth",
    "catalog",
    "dashboard",
    "health",
    "invitations",
    "portal",
    "projects",
    "sales_lists",
    "submissions",
    "units",
    "versions",
]
