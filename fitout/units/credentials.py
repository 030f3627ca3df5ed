"""Portal login generation and bcrypt hashing for unit and admin accounts."""

from __future__ import annotations

import re
import secrets
import string

import bcrypt

PASSWORD_ALPHABET = string.ascii_lowercase + string.digits

_NON_ALNUM = re.compile(r"[^a-zA-Z0-9]")


def sanitize(value: str) -> str:
    """Strip everything but ASCII letters and digits."""
    return _NON_ALNUM.sub("", str(value))


def build_username(project_name: str | None, unit_number: str) -> str:
    """Login name for a unit: ``<projectname>unit<unitnumber>``, lowercase."""
    project_part = sanitize(project_name or "").lower() or "project"
    return f"{project_part}unit{sanitize(unit_number).lower()}"


def generate_password(length: int = 10) -> str:
    if length < 6:
        raise ValueError("Generated passwords must be at least 6 characters")
    return "".join(secrets.choice(PASSWORD_ALPHABET) for _ in range(length))


def generate_access_token() -> str:
    return secrets.token_hex(16)


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode(), bcrypt.gensalt(rounds=12)).decode()


def check_password(password: str, password_hash: str | None) -> bool:
    if not password or not password_hash:
        return False
    try:
        return bcrypt.checkpw(password.encode(), password_hash.encode())
    except ValueError:
        # Malformed stored hash
        return False
