from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import JSONResponse

from formdesk.auth import AuthContext, current_context, require_admin
from formdesk.field_types import FIELD_PALETTE, field_contract, schema_from_fields
from formdesk.schema import parse_fields, sanitize_form_output
from formdesk.utils import now_utc

logger = logging.getLogger(__name__)

router = APIRouter()


def get_form_or_404(storage: Any, form_id: str) -> dict[str, Any]:
    form = storage.forms.get_form(form_id)
    if not form:
        raise HTTPException(status_code=404, detail="Form not found")
    return form


async def read_json_object(request: Request) -> dict[str, Any]:
    payload = await request.json()
    if not isinstance(payload, dict):
        raise HTTPException(status_code=400, detail="Request body must be a JSON object")
    return payload


def _parse_payload_fields(payload: dict[str, Any]) -> list[dict[str, Any]]:
    fields, errors = parse_fields(payload.get("fields"))
    if errors:
        raise HTTPException(status_code=400, detail=errors)
    return fields


@router.get("/api/field-types", tags=["api/forms"])
async def api_field_types() -> JSONResponse:
    return JSONResponse(FIELD_PALETTE)


@router.get("/api/forms", tags=["api/forms"])
async def api_list_forms(
    request: Request, context: AuthContext = Depends(current_context)
) -> JSONResponse:
    storage = request.app.state.storage
    if context.is_admin:
        forms = storage.forms.list_forms()
    else:
        forms = storage.forms.list_forms_for_user(context.user_id)
    return JSONResponse([sanitize_form_output(form) for form in forms])


@router.get("/api/forms/{form_id}", tags=["api/forms"])
async def api_get_form(
    request: Request, form_id: str, context: AuthContext = Depends(current_context)
) -> JSONResponse:
    form = get_form_or_404(request.app.state.storage, form_id)
    return JSONResponse(sanitize_form_output(form))


@router.get("/api/forms/{form_id}/contract", tags=["api/forms"])
async def api_form_contract(
    request: Request, form_id: str, context: AuthContext = Depends(current_context)
) -> JSONResponse:
    form = get_form_or_404(request.app.state.storage, form_id)
    fields = form.get("fields", [])
    return JSONResponse(
        {
            "formId": form["id"],
            "fields": [field_contract(field) for field in fields],
            "schema": schema_from_fields(fields),
        }
    )


@router.post("/api/forms", tags=["api/forms"])
async def api_create_form(
    request: Request, context: AuthContext = Depends(current_context)
) -> JSONResponse:
    require_admin(context)
    storage = request.app.state.storage
    payload = await read_json_object(request)
    title = str(payload.get("title", "")).strip()
    if not title:
        raise HTTPException(status_code=400, detail="title is required")
    fields = _parse_payload_fields(payload)

    form = storage.forms.create_form(
        {
            "title": title,
            "description": str(payload.get("description") or "").strip(),
            "fields": fields,
            "is_active": bool(payload.get("isActive")),
            "created_by": context.user_id,
        }
    )
    logger.info("Form %s created by %s", form["id"], context.user_id)
    return JSONResponse(sanitize_form_output(form))


@router.put("/api/forms/{form_id}", tags=["api/forms"])
async def api_update_form(
    request: Request, form_id: str, context: AuthContext = Depends(current_context)
) -> JSONResponse:
    require_admin(context)
    storage = request.app.state.storage
    get_form_or_404(storage, form_id)
    payload = await read_json_object(request)
    updates: dict[str, Any] = {}
    if "title" in payload:
        title = str(payload.get("title") or "").strip()
        if not title:
            raise HTTPException(status_code=400, detail="title is required")
        updates["title"] = title
    if "description" in payload:
        updates["description"] = str(payload.get("description") or "").strip()
    if "fields" in payload:
        updates["fields"] = _parse_payload_fields(payload)
    if "isActive" in payload:
        updates["is_active"] = bool(payload.get("isActive"))
    updates["updated_at"] = now_utc()
    updated = storage.forms.update_form(form_id, updates)
    return JSONResponse(sanitize_form_output(updated))


@router.post("/api/forms/{form_id}/toggle", tags=["api/forms"])
async def api_toggle_form(
    request: Request, form_id: str, context: AuthContext = Depends(current_context)
) -> JSONResponse:
    require_admin(context)
    storage = request.app.state.storage
    try:
        form = storage.forms.toggle_status(form_id)
    except KeyError:
        raise HTTPException(status_code=404, detail="Form not found")
    logger.info("Form %s is now %s", form_id, "active" if form["is_active"] else "inactive")
    return JSONResponse(sanitize_form_output(form))


@router.delete("/api/forms/{form_id}", tags=["api/forms"])
async def api_delete_form(
    request: Request, form_id: str, context: AuthContext = Depends(current_context)
) -> JSONResponse:
    require_admin(context)
    request.app.state.storage.forms.delete_form(form_id)
    return JSONResponse({"detail": "Form deleted successfully"})
