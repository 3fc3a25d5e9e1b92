from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from formdesk.auth import get_auth_provider
from formdesk.config import Settings, ensure_dirs
from formdesk.errors import FormInactive, FormNotFound, PersistenceError, SubmissionRejected
from formdesk.routes.customers import router as customers_router
from formdesk.routes.forms import router as forms_router
from formdesk.routes.submissions import router as submissions_router
from formdesk.routes.system import router as system_router
from formdesk.routes.users import router as users_router
from formdesk.storage import init_storage

logger = logging.getLogger(__name__)


async def _submission_rejected(request: Request, exc: SubmissionRejected) -> JSONResponse:
    return JSONResponse(exc.to_dict(), status_code=400)


async def _form_not_found(request: Request, exc: FormNotFound) -> JSONResponse:
    return JSONResponse({"detail": "Form not found"}, status_code=404)


async def _form_inactive(request: Request, exc: FormInactive) -> JSONResponse:
    return JSONResponse({"detail": "This form is not accepting submissions"}, status_code=400)


async def _persistence_error(request: Request, exc: PersistenceError) -> JSONResponse:
    logger.error("Persistence failure on %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse({"detail": "Failed to save data"}, status_code=500)


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or Settings()
    ensure_dirs(settings)
    storage = init_storage(settings)
    auth = get_auth_provider(settings)

    app = FastAPI(
        title="formdesk",
        openapi_tags=[
            {"name": "api/forms", "description": "Form builder"},
            {"name": "api/submissions", "description": "Submissions and export"},
            {"name": "api/customers", "description": "Customer records"},
            {"name": "api/users", "description": "Users and form assignments"},
            {"name": "system", "description": "System"},
        ],
    )

    app.state.storage = storage
    app.state.settings = settings
    app.state.auth_provider = auth

    app.add_exception_handler(SubmissionRejected, _submission_rejected)
    app.add_exception_handler(FormNotFound, _form_not_found)
    app.add_exception_handler(FormInactive, _form_inactive)
    app.add_exception_handler(PersistenceError, _persistence_error)

    app.include_router(forms_router)
    app.include_router(submissions_router)
    app.include_router(customers_router)
    app.include_router(users_router)
    app.include_router(system_router)

    logger.info("formdesk started with %s storage", settings.storage_backend)
    return app
