"""Sales list version snapshots: create, restore, compare and delete.

Each operation runs inside the caller's session and flushes but never
commits, so the whole operation lands in one transaction.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from uuid import UUID

import structlog
from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from fitout.db.models import (
    SalesListUnitModel,
    SalesListVersionModel,
    SalesListVersionUnitModel,
    UnitModel,
    UnitTypeModel,
)
from fitout.errors import ConflictError, NotFoundError
from fitout.sales.service import get_sales_list

logger = structlog.get_logger()

CENTS = Decimal("0.01")


async def _snapshot_rows(session: AsyncSession, sales_list_id: UUID) -> list[tuple]:
    result = await session.execute(
        select(SalesListUnitModel, UnitModel, UnitTypeModel)
        .join(UnitModel, SalesListUnitModel.unit_id == UnitModel.id)
        .outerjoin(UnitTypeModel, UnitModel.unit_type_id == UnitTypeModel.id)
        .where(SalesListUnitModel.sales_list_id == sales_list_id)
    )
    return list(result.all())


def _summary(prices: list[Decimal | None]) -> dict:
    priced = [Decimal(p) for p in prices if p is not None]
    if not priced:
        return {
            "total_units": len(prices),
            "units_with_prices": 0,
            "average_list_price": None,
            "total_list_value": None,
        }
    total = sum(priced, Decimal("0"))
    return {
        "total_units": len(prices),
        "units_with_prices": len(priced),
        "average_list_price": (total / len(priced)).quantize(CENTS, rounding=ROUND_HALF_UP),
        "total_list_value": total.quantize(CENTS, rounding=ROUND_HALF_UP),
    }


async def get_version(session: AsyncSession, version_id: UUID) -> SalesListVersionModel:
    version = await session.get(SalesListVersionModel, version_id)
    if version is None:
        raise NotFoundError("Version", version_id)
    return version


async def get_version_units(session: AsyncSession, version_id: UUID) -> list[SalesListVersionUnitModel]:
    result = await session.execute(
        select(SalesListVersionUnitModel)
        .where(SalesListVersionUnitModel.version_id == version_id)
        .order_by(SalesListVersionUnitModel.unit_number)
    )
    return list(result.scalars().all())


async def list_versions(session: AsyncSession, sales_list_id: UUID) -> list[SalesListVersionModel]:
    await get_sales_list(session, sales_list_id)
    result = await session.execute(
        select(SalesListVersionModel)
        .where(SalesListVersionModel.sales_list_id == sales_list_id)
        .order_by(SalesListVersionModel.version_number.desc())
    )
    return list(result.scalars().all())


async def create_version(
    session: AsyncSession,
    sales_list_id: UUID,
    created_by: str,
    version_name: str | None = None,
    description: str | None = None,
) -> SalesListVersionModel:
    """Snapshot the current state of a sales list as the new current version."""
    created_by = (created_by or "").strip()
    if not created_by:
        raise ValueError("created_by is required")
    await get_sales_list(session, sales_list_id)

    result = await session.execute(
        select(func.max(SalesListVersionModel.version_number)).where(
            SalesListVersionModel.sales_list_id == sales_list_id
        )
    )
    version_number = (result.scalar() or 0) + 1

    await session.execute(
        update(SalesListVersionModel)
        .where(
            SalesListVersionModel.sales_list_id == sales_list_id,
            SalesListVersionModel.is_current.is_(True),
        )
        .values(is_current=False)
        .execution_options(synchronize_session="fetch")
    )

    rows = await _snapshot_rows(session, sales_list_id)
    summary = _summary([row.list_price for row, _, _ in rows])

    version = SalesListVersionModel(
        sales_list_id=sales_list_id,
        version_number=version_number,
        version_name=(version_name or "").strip() or None,
        description=(description or "").strip() or None,
        created_by=created_by,
        is_current=True,
        **summary,
    )
    session.add(version)
    await session.flush()

    for row, unit, unit_type in rows:
        session.add(
            SalesListVersionUnitModel(
                version_id=version.id,
                unit_id=unit.id,
                list_price=row.list_price,
                sold_price=row.sold_price,
                status=row.status,
                notes=row.notes,
                unit_number=unit.unit_number,
                unit_type_name=unit_type.name if unit_type else None,
                unit_type_details={
                    "bedrooms": unit_type.bedrooms,
                    "bathrooms": unit_type.bathrooms,
                    "size_m2": float(unit_type.size_m2) if unit_type.size_m2 is not None else None,
                    "description": unit_type.description,
                }
                if unit_type
                else {},
            )
        )
    await session.flush()

    logger.info(
        "version_created",
        sales_list_id=str(sales_list_id),
        version_number=version_number,
        total_units=summary["total_units"],
    )
    return version


async def delete_version(session: AsyncSession, version_id: UUID) -> None:
    version = await get_version(session, version_id)
    if version.is_current:
        raise ConflictError("Cannot delete the current version")

    await session.execute(
        delete(SalesListVersionUnitModel).where(SalesListVersionUnitModel.version_id == version_id)
    )
    await session.delete(version)
    await session.flush()
    logger.info("version_deleted", version_id=str(version_id))


async def restore_version(session: AsyncSession, version_id: UUID, created_by: str) -> dict:
    """Rewrite the sales list to match a snapshot, then record a new version.

    Snapshot units are updated in place or re-added when removed since;
    rows for units outside the snapshot are deleted. Units that no longer
    exist are skipped.
    """
    created_by = (created_by or "").strip()
    if not created_by:
        raise ValueError("created_by is required")

    version = await get_version(session, version_id)
    sales_list_id = version.sales_list_id
    snapshot = await get_version_units(session, version_id)

    result = await session.execute(
        select(SalesListUnitModel).where(SalesListUnitModel.sales_list_id == sales_list_id)
    )
    current = {row.unit_id: row for row in result.scalars().all()}

    snapshot_unit_ids = [entry.unit_id for entry in snapshot]
    existing_units: set[UUID] = set()
    if snapshot_unit_ids:
        result = await session.execute(
            select(UnitModel.id).where(UnitModel.id.in_(snapshot_unit_ids))
        )
        existing_units = set(result.scalars().all())

    restored = skipped = 0
    for entry in snapshot:
        if entry.unit_id not in existing_units:
            skipped += 1
            continue
        row = current.get(entry.unit_id)
        if row is None:
            row = SalesListUnitModel(sales_list_id=sales_list_id, unit_id=entry.unit_id)
            session.add(row)
        row.list_price = entry.list_price
        row.sold_price = entry.sold_price
        row.status = entry.status
        row.notes = entry.notes
        restored += 1

    keep = set(snapshot_unit_ids)
    removed = 0
    for unit_id, row in current.items():
        if unit_id not in keep:
            await session.delete(row)
            removed += 1

    await session.flush()

    new_version = await create_version(
        session,
        sales_list_id,
        created_by=created_by,
        version_name=f"Restored from version {version.version_number}",
        description=f"Restored state of version {version.version_number}",
    )

    logger.info(
        "version_restored",
        version_id=str(version_id),
        new_version_id=str(new_version.id),
        restored=restored,
        removed=removed,
        skipped=skipped,
    )
    return {
        "restored_version_id": str(version_id),
        "new_version_id": str(new_version.id),
        "units_restored": restored,
        "units_removed": removed,
        "units_skipped": skipped,
    }


def _header(version: SalesListVersionModel) -> dict:
    return {
        "id": str(version.id),
        "version_number": version.version_number,
        "version_name": version.version_name,
        "created_at": version.created_at.isoformat() if version.created_at else None,
    }


async def compare_versions(session: AsyncSession, version_id_1: UUID, version_id_2: UUID) -> dict:
    """Per-unit price and status differences between two versions of one list."""
    version1 = await get_version(session, version_id_1)
    version2 = await get_version(session, version_id_2)
    if version1.sales_list_id != version2.sales_list_id:
        raise ValueError("Versions belong to different sales lists")

    units1 = {u.unit_id: u for u in await get_version_units(session, version_id_1)}
    units2 = {u.unit_id: u for u in await get_version_units(session, version_id_2)}

    comparison = []
    for unit_id in set(units1) | set(units2):
        first, second = units1.get(unit_id), units2.get(unit_id)
        price1 = first.list_price if first else None
        price2 = second.list_price if second else None
        status1 = first.status if first else None
        status2 = second.status if second else None
        comparison.append(
            {
                "unit_id": str(unit_id),
                "unit_number": (second or first).unit_number,
                "version1_list_price": float(price1) if price1 is not None else None,
                "version2_list_price": float(price2) if price2 is not None else None,
                "price_difference": float((price2 or Decimal("0")) - (price1 or Decimal("0"))),
                "version1_status": status1,
                "version2_status": status2,
                "status_changed": status1 != status2,
            }
        )
    comparison.sort(key=lambda item: item["unit_number"])

    return {
        "version1": _header(version1),
        "version2": _header(version2),
        "comparison": comparison,
    }


def version_to_dict(version: SalesListVersionModel) -> dict:
    return {
        "id": str(version.id),
        "sales_list_id": str(version.sales_list_id),
        "version_number": version.version_number,
        "version_name": version.version_name,
        "description": version.description,
        "created_by": version.created_by,
        "is_current": version.is_current,
        "total_units": version.total_units,
        "units_with_prices": version.units_with_prices,
        "average_list_price": float(version.average_list_price)
        if version.average_list_price is not None
        else None,
        "total_list_value": float(version.total_list_value)
        if version.total_list_value is not None
        else None,
        "created_at": version.created_at.isoformat() if version.created_at else None,
    }


def version_unit_to_dict(entry: SalesListVersionUnitModel) -> dict:
    return {
        "id": str(entry.id),
        "unit_id": str(entry.unit_id),
        "unit_number": entry.unit_number,
        "unit_type_name": entry.unit_type_name,
        "unit_type_details": dict(entry.unit_type_details or {}),
        "list_price": float(entry.list_price) if entry.list_price is not None else None,
        "sold_price": float(entry.sold_price) if entry.sold_price is not None else None,
        "status": entry.status,
        "notes": entry.notes,
    }
