"""Sales list operations: lists, unit rows, pricing and purchaser assignment."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from decimal import Decimal, InvalidOperation
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from fitout.db.models import (
    ClientModel,
    SalesListModel,
    SalesListUnitModel,
    UnitClientModel,
    UnitModel,
    UnitTypeModel,
    utcnow,
)
from fitout.errors import NotFoundError
from fitout.models import ClientRole, PriceType, SalesListStatus, SaleStatus
from fitout.projects.service import get_project

logger = logging.getLogger(__name__)


def parse_price(value) -> Decimal | None:
    """Parse a price; None and blank clear it, negatives are rejected."""
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    try:
        price = Decimal(str(value))
    except (InvalidOperation, TypeError, ValueError):
        raise ValueError(f"Invalid price: {value!r}")
    if not price.is_finite() or price < 0:
        raise ValueError("Prices cannot be negative")
    return price


def _check_sale_status(status: str) -> str:
    try:
        return SaleStatus(status).value
    except ValueError:
        raise ValueError(f"Invalid sale status: {status}")


# Sales lists


async def get_sales_list(session: AsyncSession, sales_list_id: UUID) -> SalesListModel:
    sales_list = await session.get(SalesListModel, sales_list_id)
    if sales_list is None:
        raise NotFoundError("Sales list", sales_list_id)
    return sales_list


async def list_sales_lists(session: AsyncSession, project_id: UUID) -> list[SalesListModel]:
    result = await session.execute(
        select(SalesListModel)
        .where(SalesListModel.project_id == project_id)
        .order_by(SalesListModel.created_at.desc())
    )
    return list(result.scalars().all())


async def create_sales_list(
    session: AsyncSession, project_id: UUID, name: str, description: str | None = None
) -> SalesListModel:
    await get_project(session, project_id)
    name = (name or "").strip()
    if not name:
        raise ValueError("Sales list name is required")

    sales_list = SalesListModel(
        project_id=project_id,
        name=name,
        description=(description or "").strip() or None,
        status=SalesListStatus.ACTIVE.value,
    )
    session.add(sales_list)
    await session.flush()
    return sales_list


async def update_sales_list(session: AsyncSession, sales_list_id: UUID, **changes) -> SalesListModel:
    sales_list = await get_sales_list(session, sales_list_id)

    if "name" in changes:
        name = (changes["name"] or "").strip()
        if not name:
            raise ValueError("Sales list name is required")
        sales_list.name = name
    if "description" in changes:
        sales_list.description = (changes["description"] or "").strip() or None
    if "status" in changes:
        try:
            sales_list.status = SalesListStatus(changes["status"]).value
        except ValueError:
            raise ValueError(f"Invalid sales list status: {changes['status']}")

    await session.flush()
    return sales_list


async def delete_sales_list(session: AsyncSession, sales_list_id: UUID) -> None:
    sales_list = await get_sales_list(session, sales_list_id)
    await session.delete(sales_list)
    await session.flush()


# Units on a list


async def get_sales_list_unit(session: AsyncSession, row_id: UUID) -> SalesListUnitModel:
    row = await session.get(SalesListUnitModel, row_id)
    if row is None:
        raise NotFoundError("Sales list unit", row_id)
    return row


async def add_units(
    session: AsyncSession,
    sales_list_id: UUID,
    unit_ids: Iterable[UUID],
    list_price=None,
) -> list[SalesListUnitModel]:
    """Put units on a sales list as ``available``; units already listed are skipped.

    Returns:
        list: The newly created rows
    """
    unit_ids = list(dict.fromkeys(unit_ids or []))
    if not unit_ids:
        raise ValueError("At least one unit is required")

    sales_list = await get_sales_list(session, sales_list_id)
    price = parse_price(list_price)

    result = await session.execute(
        select(UnitModel.id).where(
            UnitModel.id.in_(unit_ids), UnitModel.project_id == sales_list.project_id
        )
    )
    valid = set(result.scalars().all())
    foreign = [str(u) for u in unit_ids if u not in valid]
    if foreign:
        raise ValueError(f"Units not in this project: {', '.join(foreign)}")

    result = await session.execute(
        select(SalesListUnitModel.unit_id).where(
            SalesListUnitModel.sales_list_id == sales_list_id
        )
    )
    already = set(result.scalars().all())

    created = []
    for unit_id in unit_ids:
        if unit_id in already:
            continue
        row = SalesListUnitModel(
            sales_list_id=sales_list_id,
            unit_id=unit_id,
            list_price=price,
            status=SaleStatus.AVAILABLE.value,
        )
        session.add(row)
        created.append(row)

    await session.flush()
    logger.info(
        "Added %d unit(s) to sales list %s (%d already listed)",
        len(created), sales_list_id, len(unit_ids) - len(created),
    )
    return created


async def remove_unit(session: AsyncSession, row_id: UUID) -> None:
    row = await get_sales_list_unit(session, row_id)
    await session.delete(row)
    await session.flush()


async def list_sales_list_units(session: AsyncSession, sales_list_id: UUID) -> list[dict]:
    """Rows of a list joined with unit, unit type and purchaser client."""
    await get_sales_list(session, sales_list_id)

    result = await session.execute(
        select(SalesListUnitModel, UnitModel, UnitTypeModel)
        .join(UnitModel, SalesListUnitModel.unit_id == UnitModel.id)
        .outerjoin(UnitTypeModel, UnitModel.unit_type_id == UnitTypeModel.id)
        .where(SalesListUnitModel.sales_list_id == sales_list_id)
        .order_by(UnitModel.unit_number)
    )
    rows = result.all()

    unit_ids = [unit.id for _, unit, _ in rows]
    purchasers: dict[UUID, ClientModel] = {}
    if unit_ids:
        client_result = await session.execute(
            select(UnitClientModel.unit_id, ClientModel)
            .join(ClientModel, UnitClientModel.client_id == ClientModel.id)
            .where(
                UnitClientModel.unit_id.in_(unit_ids),
                UnitClientModel.role == ClientRole.PURCHASER.value,
            )
        )
        purchasers = {unit_id: client for unit_id, client in client_result.all()}

    items = []
    for row, unit, unit_type in rows:
        client = purchasers.get(unit.id)
        items.append(
            {
                **sales_list_unit_to_dict(row),
                "unit": {
                    "id": str(unit.id),
                    "unit_number": unit.unit_number,
                    "status": unit.status,
                    "unit_type": {
                        "name": unit_type.name,
                        "bedrooms": unit_type.bedrooms,
                        "bathrooms": unit_type.bathrooms,
                        "size_m2": float(unit_type.size_m2) if unit_type.size_m2 is not None else None,
                    }
                    if unit_type
                    else None,
                },
                "client": {
                    "id": str(client.id),
                    "name": client.name,
                    "email": client.email,
                    "phone": client.phone,
                }
                if client
                else None,
            }
        )
    return items


# Pricing edits


async def update_price(
    session: AsyncSession, row_id: UUID, price_type: str, value
) -> SalesListUnitModel:
    row = await get_sales_list_unit(session, row_id)
    try:
        column = PriceType(price_type).value
    except ValueError:
        raise ValueError(f"Invalid price type: {price_type}")
    setattr(row, column, parse_price(value))
    await session.flush()
    return row


async def update_status(session: AsyncSession, row_id: UUID, status: str) -> SalesListUnitModel:
    row = await get_sales_list_unit(session, row_id)
    row.status = _check_sale_status(status)
    await session.flush()
    return row


async def update_notes(session: AsyncSession, row_id: UUID, notes: str | None) -> SalesListUnitModel:
    row = await get_sales_list_unit(session, row_id)
    row.notes = (notes or "").strip() or None
    await session.flush()
    return row


async def apply_price_edits(session: AsyncSession, sales_list_id: UUID, edits: list[dict]) -> int:
    """Apply a batch of pending row edits to one sales list.

    Each edit is ``{"id": row_id, ...}`` with any of ``list_price``,
    ``sold_price``, ``status`` and ``notes``. Everything is validated
    before the first row changes.

    Returns:
        int: Number of rows updated
    """
    await get_sales_list(session, sales_list_id)
    if not edits:
        return 0

    result = await session.execute(
        select(SalesListUnitModel).where(SalesListUnitModel.sales_list_id == sales_list_id)
    )
    rows = {row.id: row for row in result.scalars().all()}

    planned = []
    for edit in edits:
        try:
            row_id = UUID(str(edit["id"]))
        except (KeyError, ValueError):
            raise ValueError("Each edit needs a valid row id")
        row = rows.get(row_id)
        if row is None:
            raise NotFoundError("Sales list unit", row_id)

        values = {}
        for column in (PriceType.LIST_PRICE.value, PriceType.SOLD_PRICE.value):
            if column in edit:
                values[column] = parse_price(edit[column])
        if "status" in edit:
            values["status"] = _check_sale_status(edit["status"])
        if "notes" in edit:
            values["notes"] = (edit["notes"] or "").strip() or None
        planned.append((row, values))

    for row, values in planned:
        for column, value in values.items():
            setattr(row, column, value)

    await session.flush()
    logger.info("Applied %d price edit(s) to sales list %s", len(planned), sales_list_id)
    return len(planned)


# Purchaser assignment


async def upsert_client(
    session: AsyncSession, name: str, email: str, phone: str | None = None
) -> ClientModel:
    """Find a client by case-insensitive email or create one; refreshes name/phone."""
    name = (name or "").strip()
    email = (email or "").strip().lower()
    if not name:
        raise ValueError("Client name is required")
    if not email or "@" not in email:
        raise ValueError("A valid client email is required")
    phone = (phone or "").strip() or None

    result = await session.execute(
        select(ClientModel).where(func.lower(ClientModel.email) == email)
    )
    client = result.scalars().first()
    if client is None:
        client = ClientModel(name=name, email=email, phone=phone)
        session.add(client)
    else:
        client.name = name
        if phone:
            client.phone = phone
    await session.flush()
    return client


async def assign_client(
    session: AsyncSession,
    row_id: UUID,
    name: str,
    email: str,
    phone: str | None = None,
    list_price=None,
    sold_price=None,
) -> SalesListUnitModel:
    """Record a purchaser for a listed unit and mark the row reserved."""
    row = await get_sales_list_unit(session, row_id)
    list_price = parse_price(list_price)
    sold_price = parse_price(sold_price)

    client = await upsert_client(session, name, email, phone)

    result = await session.execute(
        select(UnitClientModel).where(
            UnitClientModel.unit_id == row.unit_id,
            UnitClientModel.role == ClientRole.PURCHASER.value,
        )
    )
    link = result.scalar_one_or_none()
    if link is None:
        link = UnitClientModel(unit_id=row.unit_id, role=ClientRole.PURCHASER.value)
        session.add(link)
    link.client_id = client.id
    link.sales_list_id = row.sales_list_id
    link.purchase_price = sold_price
    link.reservation_date = utcnow()
    link.status = "active"

    row.status = SaleStatus.RESERVED.value
    if list_price is not None:
        row.list_price = list_price
    if sold_price is not None:
        row.sold_price = sold_price

    await session.flush()
    logger.info("Assigned client %s to unit %s", client.email, row.unit_id)
    return row


def _money(value: Decimal | None) -> float | None:
    return float(value) if value is not None else None


def sales_list_to_dict(sales_list: SalesListModel) -> dict:
    return {
        "id": str(sales_list.id),
        "project_id": str(sales_list.project_id),
        "name": sales_list.name,
        "description": sales_list.description,
        "status": sales_list.status,
        "created_at": sales_list.created_at.isoformat() if sales_list.created_at else None,
        "updated_at": sales_list.updated_at.isoformat() if sales_list.updated_at else None,
    }


def sales_list_unit_to_dict(row: SalesListUnitModel) -> dict:
    return {
        "id": str(row.id),
        "sales_list_id": str(row.sales_list_id),
        "unit_id": str(row.unit_id),
        "list_price": _money(row.list_price),
        "sold_price": _money(row.sold_price),
        "status": row.status,
        "notes": row.notes,
    }
