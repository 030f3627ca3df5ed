"""Pytest configuration and fixtures for Fitout tests.

Provides common fixtures for testing.
"""

from __future__ import annotations

from decimal import Decimal

import pytest
import pytest_asyncio
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker

from fitout.catalog import color_schemes, unit_types, upgrades
from fitout.config import reset_config
from fitout.db import connection
from fitout.db.models import Base
from fitout.projects.service import create_project
from fitout.units.service import create_unit_with_login
from fitout.web import auth


@pytest.fixture(autouse=True)
def fitout_env(monkeypatch, tmp_path):
    """Point configuration at a throwaway database and upload directory."""
    monkeypatch.setenv("DATABASE_URL", f"sqlite+aiosqlite:///{tmp_path / 'fitout.db'}")
    monkeypatch.setenv("UPLOAD_DIR", str(tmp_path / "uploads"))
    monkeypatch.setenv("PORTAL_BASE_URL", "https://portal.test")
    monkeypatch.delenv("REDIS_URL", raising=False)
    monkeypatch.delenv("FITOUT_ADMIN_PASSWORD", raising=False)
    monkeypatch.delenv("FITOUT_AUTH_DISABLED", raising=False)
    monkeypatch.delenv("GST_RATE", raising=False)
    monkeypatch.delenv("GST_INCLUDED_IN_PRICES", raising=False)
    monkeypatch.delenv("LOG_FORMAT", raising=False)
    monkeypatch.delenv("ENVIRONMENT", raising=False)
    reset_config()
    auth.reset_password_cache()
    auth._memory_sessions.clear()
    connection._engine = None
    connection._session_factory = None
    yield
    reset_config()
    auth.reset_password_cache()
    auth._memory_sessions.clear()
    connection._engine = None
    connection._session_factory = None


@pytest_asyncio.fixture()
async def db_session() -> AsyncSession:
    """Create in-memory database for testing."""
    engine = create_async_engine("sqlite+aiosqlite:///:memory:")

    @event.listens_for(engine.sync_engine, "connect")
    def _foreign_keys(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    SessionLocal = sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    session = SessionLocal()
    try:
        yield session
    finally:
        await session.close()
        await engine.dispose()


@pytest_asyncio.fixture()
async def project(db_session: AsyncSession):
    """A development named Harbour View."""
    return await create_project(
        db_session, name="Harbour View", development_company="Coastal Developments"
    )


@pytest_asyncio.fixture()
async def catalog(db_session: AsyncSession, project):
    """Two-bedroom unit type with one scheme and three upgrades allowed.

    Returns a dict with ``unit_type``, ``scheme``, ``oven`` (Appliances),
    ``downlights`` (Lighting, max 4) and ``sockets`` (Electrical, max 2).
    """
    unit_type = await unit_types.create_unit_type(
        db_session, project.id, name="Type A", bedrooms=2, bathrooms=1, size_m2=Decimal("78.5")
    )
    allowed = [str(unit_type.id)]
    scheme = await color_schemes.create_color_scheme(
        db_session,
        project.id,
        name="Coastal",
        materials={"benchtop": "Caesarstone Oyster", "flooring": "Oak Herringbone"},
        allowed_unit_types=allowed,
    )
    oven = await upgrades.create_upgrade_option(
        db_session, project.id, name="Steam Oven", category="Appliances",
        price=Decimal("2400.00"), allowed_unit_types=allowed,
    )
    downlights = await upgrades.create_upgrade_option(
        db_session, project.id, name="LED Downlight", category="Lighting",
        price=Decimal("150.00"), max_quantity=4, allowed_unit_types=allowed,
    )
    sockets = await upgrades.create_upgrade_option(
        db_session, project.id, name="Double Power Point", category="Electrical",
        price=Decimal("95.00"), max_quantity=2, allowed_unit_types=allowed,
    )
    await unit_types.update_unit_type(
        db_session,
        unit_type.id,
        allowed_color_schemes=[str(scheme.id)],
        allowed_upgrades=[str(oven.id), str(downlights.id), str(sockets.id)],
    )
    return {
        "unit_type": unit_type,
        "scheme": scheme,
        "oven": oven,
        "downlights": downlights,
        "sockets": sockets,
    }


@pytest_asyncio.fixture()
async def unit_with_login(db_session: AsyncSession, project, catalog):
    """Unit 101 of type A with its generated credentials."""
    return await create_unit_with_login(
        db_session, project.id, "101", unit_type_id=catalog["unit_type"].id
    )
