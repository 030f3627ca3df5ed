"""Session authentication for the Fitout admin API and client portal.

Admins log in against ``admin_users`` rows (bcrypt) with an environment
fallback admin; clients log in with their unit's generated credentials.
Sessions live in Redis when ``REDIS_URL`` is configured and in process
memory otherwise.
"""

from __future__ import annotations

import json
import logging
import secrets
from datetime import datetime, timedelta

import bcrypt
import redis
from fastapi import Cookie, HTTPException, Request
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from fitout.config import get_config
from fitout.db.connection import get_session
from fitout.db.models import AdminUserModel, UnitModel, utcnow
from fitout.units.service import authenticate_unit

logger = logging.getLogger(__name__)

SESSION_COOKIE = "session"

# In-memory fallback when Redis is not configured or unreachable
_memory_sessions: dict[str, dict] = {}

# Cache for bcrypt password hash (expensive to compute)
_password_hash_cache: bytes | None = None


def get_redis_client() -> redis.Redis | None:
    """Redis client for session storage, or None when REDIS_URL is unset."""
    redis_url = get_config().auth.redis_url
    if not redis_url:
        return None
    return redis.from_url(redis_url, decode_responses=True)


def _session_expiry() -> timedelta:
    return timedelta(hours=get_config().auth.session_expiry_hours)


def _get_password_hash() -> bytes | None:
    """bcrypt hash of the environment admin password, or None when unset."""
    global _password_hash_cache

    if _password_hash_cache is not None:
        return _password_hash_cache

    password = get_config().auth.admin_password
    if not password:
        logger.warning(
            "FITOUT_ADMIN_PASSWORD is not set; the environment admin login is disabled."
        )
        return None

    _password_hash_cache = bcrypt.hashpw(password.encode(), bcrypt.gensalt(rounds=12))
    return _password_hash_cache


def reset_password_cache() -> None:
    global _password_hash_cache
    _password_hash_cache = None


def create_session(
    username: str,
    role: str = "admin",
    unit_id: str | None = None,
    user_id: str | None = None,
) -> str:
    """Create a new session for an authenticated admin or client.

    Returns:
        str: Session token
    """
    session_token = secrets.token_urlsafe(32)
    expiry = _session_expiry()

    session_data = {
        "username": username,
        "role": role,
        "user_id": user_id,
        "unit_id": unit_id,
        "created_at": utcnow().isoformat(),
        "expires_at": (utcnow() + expiry).isoformat(),
    }

    redis_client = get_redis_client()
    if redis_client is not None:
        try:
            redis_client.setex(
                f"session:{session_token}",
                int(expiry.total_seconds()),
                json.dumps(session_data),
            )
            return session_token
        except (redis.exceptions.ConnectionError, redis.exceptions.TimeoutError):
            logger.warning("Redis unavailable, using in-memory session storage")

    _memory_sessions[session_token] = session_data
    return session_token


def _expired(session_data: dict) -> bool:
    return utcnow() > datetime.fromisoformat(session_data["expires_at"])


def validate_session(session_token: str | None) -> dict | None:
    """Session data for a token, or None when missing, invalid or expired."""
    if not session_token:
        return None

    session_data = _memory_sessions.get(session_token)
    if session_data is not None:
        if _expired(session_data):
            del _memory_sessions[session_token]
            return None
        return session_data

    redis_client = get_redis_client()
    if redis_client is None:
        return None

    try:
        session_data_str = redis_client.get(f"session:{session_token}")
    except (redis.exceptions.ConnectionError, redis.exceptions.TimeoutError):
        return None
    if not session_data_str:
        return None

    try:
        session_data = json.loads(session_data_str)
        if _expired(session_data):
            redis_client.delete(f"session:{session_token}")
            return None
        return session_data
    except (json.JSONDecodeError, KeyError, ValueError):
        redis_client.delete(f"session:{session_token}")
        return None


def logout(session_token: str | None) -> None:
    """Invalidate a session token."""
    if not session_token:
        return
    _memory_sessions.pop(session_token, None)

    redis_client = get_redis_client()
    if redis_client is not None:
        try:
            redis_client.delete(f"session:{session_token}")
        except (redis.exceptions.ConnectionError, redis.exceptions.TimeoutError):
            logger.warning("Redis unavailable, session %s not removed from Redis", session_token[:8])


def require_admin(request: Request, session: str | None = Cookie(default=None)) -> str:
    """Dependency to require an admin session.

    Returns:
        str: Username of the authenticated admin

    Raises:
        HTTPException: 401 without a session, 403 for non-admin sessions
    """
    if get_config().auth.auth_disabled:
        return "default_admin"

    session_data = validate_session(session)
    if not session_data:
        raise HTTPException(status_code=401, detail="Authentication required")

    if session_data.get("role") != "admin":
        raise HTTPException(status_code=403, detail="Admin access required")

    return session_data["username"]


async def verify_credentials_db(username: str, password: str) -> tuple[bool, AdminUserModel | None]:
    """Verify admin credentials against the database.

    Returns:
        tuple: (is_valid, admin_user)
    """
    try:
        async with get_session() as session:
            result = await session.execute(
                select(AdminUserModel).where(AdminUserModel.username == username)
            )
            user = result.scalars().first()

            if not user or not user.is_active:
                return False, None

            if bcrypt.checkpw(password.encode(), user.password_hash.encode()):
                user.last_login = utcnow()
                return True, user

            return False, None
    except SQLAlchemyError as e:
        logger.error(f"Database auth failed: {e}")
        return False, None


def verify_credentials(username: str, password: str) -> bool:
    """Verify the environment fallback admin using bcrypt."""
    password_hash = _get_password_hash()
    if password_hash is None:
        return False
    password_matches = bcrypt.checkpw(password.encode(), password_hash)
    return secrets.compare_digest(username, get_config().auth.admin_username) and password_matches


async def verify_client_credentials(username: str, password: str) -> UnitModel | None:
    """Unit whose generated login matches, or None."""
    async with get_session() as session:
        return await authenticate_unit(session, username, password)
