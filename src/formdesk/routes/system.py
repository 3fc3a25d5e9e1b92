from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from formdesk.auth import AuthContext, current_context, require_admin
from formdesk.reports import collect_stats

router = APIRouter()


@router.get("/healthz", tags=["system"])
async def healthz() -> dict[str, str]:
    return {"status": "ok"}


@router.get("/api/stats", tags=["system"])
async def api_stats(
    request: Request, context: AuthContext = Depends(current_context)
) -> JSONResponse:
    require_admin(context)
    return JSONResponse(collect_stats(request.app.state.storage))
