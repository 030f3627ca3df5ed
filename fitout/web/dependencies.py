"""Shared helpers for Fitout web routes."""

from __future__ import annotations

from uuid import UUID

from fastapi import HTTPException


def parse_uuid(value: str, label: str = "ID") -> UUID:
    """Parse a path/query id, answering 400 on malformed input.

    Example:
        @router.get("/api/projects/{project_id}")
        async def get_project(project_id: str):
            p_uuid = parse_uuid(project_id, "project ID")
    """
    try:
        return UUID(str(value))
    except ValueError:
        raise HTTPException(status_code=400, detail=f"Invalid {label} format")
