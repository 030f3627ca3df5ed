"""Startup validation for Fitout Portal.

Fail fast when the database or upload storage is unusable, before the
portal starts accepting clients.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from fitout.config import get_config
from fitout.db.models import ProjectModel

logger = logging.getLogger(__name__)


class StartupValidationError(Exception):
    """Raised when startup validation fails."""
    pass


async def validate_database_connection(session: AsyncSession) -> None:
    """Validate database connection and schema.

    Raises:
        StartupValidationError: If database connection or schema is invalid
    """
    try:
        result = await session.execute(select(func.count()).select_from(ProjectModel))
        project_count = result.scalar()

        logger.info(f"✓ Database connection OK ({project_count} projects)")

    except Exception as e:
        raise StartupValidationError(
            f"Database connection failed: {e}. "
            "Check DATABASE_URL and run `fitout init` to create the schema."
        ) from e


def validate_upload_dir(upload_dir: Path | None = None) -> Path:
    """Ensure the floor plan directory exists and is writable.

    Raises:
        StartupValidationError: If the directory cannot be created or written
    """
    target = Path(upload_dir or get_config().portal.upload_dir) / "floor-plans"
    try:
        target.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise StartupValidationError(f"Cannot create upload directory {target}: {e}") from e

    if not os.access(target, os.W_OK):
        raise StartupValidationError(f"Upload directory {target} is not writable")

    logger.info(f"✓ Upload directory: {target}")
    return target


def validate_pricing_config() -> None:
    """Warn on unusual GST settings; never fails startup."""
    config = get_config()

    if not (0 <= config.pricing.gst_rate < 1):
        logger.warning(
            f"⚠ GST rate {config.pricing.gst_rate} looks wrong. "
            "Set GST_RATE as a fraction, e.g. 0.15"
        )
    else:
        logger.info(f"✓ GST rate: {float(config.pricing.gst_rate):.2%} ({config.pricing.currency})")

    if config.environment == "production" and not config.auth.admin_password:
        logger.warning("⚠ FITOUT_ADMIN_PASSWORD is not set; only database admins can log in.")


async def run_all_validations(session: AsyncSession | None = None) -> None:
    """Run all startup validations.

    Args:
        session: Database session (optional, will warn if not provided)

    Raises:
        StartupValidationError: If any critical validation fails
    """
    logger.info("Running startup validations...")

    validate_pricing_config()
    validate_upload_dir()

    if session is not None:
        await validate_database_connection(session)
    else:
        logger.warning("⚠ Database session not provided, skipping DB validations")

    logger.info("✓ All startup validations passed")
