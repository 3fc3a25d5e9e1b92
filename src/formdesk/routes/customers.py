from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import JSONResponse

from formdesk.auth import AuthContext, current_context, require_admin
from formdesk.config import CUSTOMER_SEARCH_LIMIT
from formdesk.routes.forms import read_json_object
from formdesk.utils import now_utc, to_iso

router = APIRouter()

CUSTOMER_KEYS = ("name", "email", "phone", "address")


def sanitize_customer_output(customer: dict[str, Any]) -> dict[str, Any]:
    return {
        "id": customer["id"],
        "name": customer.get("name", ""),
        "email": customer.get("email"),
        "phone": customer.get("phone"),
        "address": customer.get("address"),
        "createdAt": to_iso(customer.get("created_at") or now_utc()),
        "updatedAt": to_iso(customer.get("updated_at") or now_utc()),
    }


def _customer_changes(payload: dict[str, Any]) -> dict[str, Any]:
    changes: dict[str, Any] = {}
    for key in CUSTOMER_KEYS:
        if key in payload:
            value = payload.get(key)
            changes[key] = str(value).strip() if value is not None else None
    if "name" in changes and not changes["name"]:
        raise HTTPException(status_code=400, detail="name is required")
    return changes


@router.get("/api/customers", tags=["api/customers"])
async def api_list_customers(
    request: Request, context: AuthContext = Depends(current_context)
) -> JSONResponse:
    customers = request.app.state.storage.customers.list_customers()
    return JSONResponse([sanitize_customer_output(item) for item in customers])


@router.get("/api/customers/search", tags=["api/customers"])
async def api_search_customers(
    request: Request, context: AuthContext = Depends(current_context)
) -> JSONResponse:
    query = str(request.query_params.get("q", "")).strip()
    if not query:
        return JSONResponse([])
    customers = request.app.state.storage.customers.search_customers(
        query, CUSTOMER_SEARCH_LIMIT
    )
    return JSONResponse([sanitize_customer_output(item) for item in customers])


@router.post("/api/customers", tags=["api/customers"])
async def api_create_customer(
    request: Request, context: AuthContext = Depends(current_context)
) -> JSONResponse:
    require_admin(context)
    payload = await read_json_object(request)
    changes = _customer_changes(payload)
    if not changes.get("name"):
        raise HTTPException(status_code=400, detail="name is required")
    customer = request.app.state.storage.customers.create_customer(changes)
    return JSONResponse(sanitize_customer_output(customer))


@router.put("/api/customers/{customer_id}", tags=["api/customers"])
async def api_update_customer(
    request: Request, customer_id: str, context: AuthContext = Depends(current_context)
) -> JSONResponse:
    require_admin(context)
    payload = await read_json_object(request)
    try:
        customer = request.app.state.storage.customers.update_customer(
            customer_id, _customer_changes(payload)
        )
    except KeyError:
        raise HTTPException(status_code=404, detail="Customer not found")
    return JSONResponse(sanitize_customer_output(customer))


@router.delete("/api/customers/{customer_id}", tags=["api/customers"])
async def api_delete_customer(
    request: Request, customer_id: str, context: AuthContext = Depends(current_context)
) -> JSONResponse:
    require_admin(context)
    request.app.state.storage.customers.delete_customer(customer_id)
    return JSONResponse({"detail": "Customer deleted successfully"})
