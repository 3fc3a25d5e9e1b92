from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import JSONResponse, PlainTextResponse

from formdesk.auth import AuthContext, current_context, require_admin
from formdesk.reports import csv_headers_and_rows, render_csv
from formdesk.routes.forms import get_form_or_404, read_json_object
from formdesk.submission import sanitize_submission_output, submit_form

router = APIRouter()


@router.get("/api/submissions", tags=["api/submissions"])
async def api_list_submissions(
    request: Request, context: AuthContext = Depends(current_context)
) -> JSONResponse:
    storage = request.app.state.storage
    form_id = request.query_params.get("formId") or None
    if context.is_admin:
        submissions = storage.submissions.list_submissions(form_id=form_id)
    else:
        submissions = storage.submissions.list_submissions(
            form_id=form_id, user_id=context.user_id
        )
    return JSONResponse([sanitize_submission_output(item) for item in submissions])


@router.post("/api/submissions", tags=["api/submissions"])
async def api_create_submission(
    request: Request, context: AuthContext = Depends(current_context)
) -> JSONResponse:
    storage = request.app.state.storage
    payload = await read_json_object(request)
    form_id = str(payload.get("formId") or "").strip()
    if not form_id:
        raise HTTPException(status_code=400, detail="formId is required")
    data = payload.get("data") or {}
    if not isinstance(data, dict):
        raise HTTPException(status_code=400, detail="data must be an object")

    raw_values: dict[str, Any] = dict(data)
    for key in ("collectionPlan", "waterPlan"):
        if payload.get(key) is not None:
            raw_values.setdefault(key, payload[key])
    customer_id = payload.get("customerId")

    submission = submit_form(
        storage,
        form_id,
        raw_values,
        context,
        customer_id=str(customer_id) if customer_id not in (None, "") else None,
    )
    return JSONResponse(sanitize_submission_output(submission))


@router.get("/api/export/csv", tags=["api/submissions"])
async def api_export_csv(
    request: Request, context: AuthContext = Depends(current_context)
) -> PlainTextResponse:
    require_admin(context)
    storage = request.app.state.storage
    form_id = request.query_params.get("formId") or None
    fields: list[dict[str, Any]] = []
    if form_id:
        fields = get_form_or_404(storage, form_id).get("fields", [])
    submissions = storage.submissions.list_submissions(form_id=form_id)
    headers, rows = csv_headers_and_rows(submissions, fields)

    fmt = request.query_params.get("format", "csv")
    delimiter = "," if fmt == "csv" else "\t"
    content_type = "text/csv" if fmt == "csv" else "text/tab-separated-values"
    filename = f"form-submissions.{'csv' if fmt == 'csv' else 'tsv'}"
    return PlainTextResponse(
        render_csv(headers, rows, delimiter),
        media_type=content_type,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
