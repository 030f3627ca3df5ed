"""Sales list routes: lists, listed units, pricing and purchaser assignment."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from fitout.db.connection import get_session
from fitout.projects.service import get_project
from fitout.sales import service
from fitout.web.auth import require_admin
from fitout.web.dependencies import parse_uuid
from fitout.web.models import (
    AssignClientRequest,
    PriceEditsRequest,
    SalesListCreate,
    SalesListUnitsAdd,
    SalesListUnitUpdate,
    SalesListUpdate,
)

router = APIRouter(tags=["sales-lists"], dependencies=[Depends(require_admin)])


@router.get("/api/sales-lists")
async def list_sales_lists(project_id: str = Query(..., alias="projectId")):
    p_uuid = parse_uuid(project_id, "project ID")
    async with get_session() as session:
        await get_project(session, p_uuid)
        rows = await service.list_sales_lists(session, p_uuid)
        return {"success": True, "data": [service.sales_list_to_dict(r) for r in rows]}


@router.post("/api/sales-lists", status_code=201)
async def create_sales_list(payload: SalesListCreate):
    async with get_session() as session:
        sales_list = await service.create_sales_list(
            session, payload.project_id, payload.name, payload.description
        )
        return {"success": True, "data": service.sales_list_to_dict(sales_list)}


@router.patch("/api/sales-lists/{sales_list_id}")
async def update_sales_list(sales_list_id: str, payload: SalesListUpdate):
    sl_uuid = parse_uuid(sales_list_id, "sales list ID")
    async with get_session() as session:
        sales_list = await service.update_sales_list(
            session, sl_uuid, **payload.model_dump(exclude_unset=True)
        )
        return {"success": True, "data": service.sales_list_to_dict(sales_list)}


@router.delete("/api/sales-lists/{sales_list_id}")
async def delete_sales_list(sales_list_id: str):
    sl_uuid = parse_uuid(sales_list_id, "sales list ID")
    async with get_session() as session:
        await service.delete_sales_list(session, sl_uuid)
    return {"success": True}


@router.get("/api/sales-lists/{sales_list_id}/units")
async def list_sales_list_units(sales_list_id: str):
    """Listed units with unit type details and purchaser."""
    sl_uuid = parse_uuid(sales_list_id, "sales list ID")
    async with get_session() as session:
        return {"success": True, "data": await service.list_sales_list_units(session, sl_uuid)}


@router.post("/api/sales-lists/{sales_list_id}/units", status_code=201)
async def add_sales_list_units(sales_list_id: str, payload: SalesListUnitsAdd):
    sl_uuid = parse_uuid(sales_list_id, "sales list ID")
    async with get_session() as session:
        rows = await service.add_units(session, sl_uuid, payload.unit_ids, payload.list_price)
        return {"success": True, "data": [service.sales_list_unit_to_dict(r) for r in rows]}


@router.post("/api/sales-lists/{sales_list_id}/prices")
async def save_price_edits(sales_list_id: str, payload: PriceEditsRequest):
    """Save a batch of pending price/status edits in one transaction."""
    sl_uuid = parse_uuid(sales_list_id, "sales list ID")
    edits = [
        {"id": edit.id, **edit.model_dump(exclude_unset=True, exclude={"id"})}
        for edit in payload.edits
    ]
    async with get_session() as session:
        updated = await service.apply_price_edits(session, sl_uuid, edits)
    return {"success": True, "data": {"updated": updated}}


@router.patch("/api/sales-list-units/{row_id}")
async def update_sales_list_unit(row_id: str, payload: SalesListUnitUpdate):
    r_uuid = parse_uuid(row_id, "sales list unit ID")
    changes = payload.model_dump(exclude_unset=True)
    async with get_session() as session:
        row = await service.get_sales_list_unit(session, r_uuid)
        for price_type in ("list_price", "sold_price"):
            if price_type in changes:
                row = await service.update_price(session, r_uuid, price_type, changes[price_type])
        if changes.get("status") is not None:
            row = await service.update_status(session, r_uuid, changes["status"])
        if "notes" in changes:
            row = await service.update_notes(session, r_uuid, changes["notes"])
        return {"success": True, "data": service.sales_list_unit_to_dict(row)}


@router.delete("/api/sales-list-units/{row_id}")
async def remove_sales_list_unit(row_id: str):
    r_uuid = parse_uuid(row_id, "sales list unit ID")
    async with get_session() as session:
        await service.remove_unit(session, r_uuid)
    return {"success": True}


@router.post("/api/sales-list-units/{row_id}/assign-client")
async def assign_client(row_id: str, payload: AssignClientRequest):
    """Record the purchaser of a listed unit and mark it reserved."""
    r_uuid = parse_uuid(row_id, "sales list unit ID")
    async with get_session() as session:
        row = await service.assign_client(
            session,
            r_uuid,
            name=payload.name,
            email=payload.email,
            phone=payload.phone,
            list_price=payload.list_price,
            sold_price=payload.sold_price,
        )
        return {"success": True, "data": service.sales_list_unit_to_dict(row)}
