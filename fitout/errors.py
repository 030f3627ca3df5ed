"""Domain exceptions raised by Fitout services.

Services raise these (or plain ``ValueError`` for bad input); the web layer
maps them to 404 / 409 / 400 responses.
"""

from __future__ import annotations


class NotFoundError(LookupError):
    """A referenced row does not exist."""

    def __init__(self, entity: str, identifier: object | None = None):
        self.entity = entity
        self.identifier = identifier
        message = f"{entity} not found"
        if identifier is not None:
            message = f"{entity} not found: {identifier}"
        super().__init__(message)


class ConflictError(ValueError):
    """The operation clashes with existing state (duplicates, current version, ...)."""
