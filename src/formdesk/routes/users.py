from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import JSONResponse

from formdesk.auth import AuthContext, current_context, display_user, require_admin
from formdesk.routes.forms import get_form_or_404, read_json_object
from formdesk.utils import now_utc, to_iso

router = APIRouter()


def sanitize_assignment_output(assignment: dict[str, Any]) -> dict[str, Any]:
    return {
        "id": assignment["id"],
        "userId": assignment.get("user_id"),
        "formId": assignment.get("form_id"),
        "assignedBy": assignment.get("assigned_by"),
        "assignedAt": to_iso(assignment.get("assigned_at") or now_utc()),
    }


@router.get("/api/auth/user", tags=["api/users"])
async def api_current_user(
    request: Request, context: AuthContext = Depends(current_context)
) -> JSONResponse:
    user = request.app.state.storage.users.get_user(context.user_id)
    if not user:
        user = {"id": context.user_id, "role": context.role}
    return JSONResponse(display_user(user))


@router.get("/api/users", tags=["api/users"])
async def api_list_users(
    request: Request, context: AuthContext = Depends(current_context)
) -> JSONResponse:
    require_admin(context)
    users = request.app.state.storage.users.list_users()
    return JSONResponse([display_user(user) for user in users])


@router.post("/api/user-form-mappings", tags=["api/users"])
async def api_assign_form(
    request: Request, context: AuthContext = Depends(current_context)
) -> JSONResponse:
    require_admin(context)
    storage = request.app.state.storage
    payload = await read_json_object(request)
    user_id = str(payload.get("userId") or "").strip()
    form_id = str(payload.get("formId") or "").strip()
    if not user_id or not form_id:
        raise HTTPException(status_code=400, detail="userId and formId are required")
    if not storage.users.get_user(user_id):
        raise HTTPException(status_code=404, detail="User not found")
    get_form_or_404(storage, form_id)
    for existing in storage.assignments.list_for_user(user_id):
        if existing["form_id"] == form_id:
            return JSONResponse(sanitize_assignment_output(existing))
    assignment = storage.assignments.create_assignment(
        {"user_id": user_id, "form_id": form_id, "assigned_by": context.user_id}
    )
    return JSONResponse(sanitize_assignment_output(assignment))


@router.delete("/api/user-form-mappings/{user_id}/{form_id}", tags=["api/users"])
async def api_unassign_form(
    request: Request,
    user_id: str,
    form_id: str,
    context: AuthContext = Depends(current_context),
) -> JSONResponse:
    require_admin(context)
    request.app.state.storage.assignments.delete_assignment(user_id, form_id)
    return JSONResponse({"detail": "Assignment removed"})
