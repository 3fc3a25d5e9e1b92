from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Protocol

from fastapi import HTTPException, Request

from formdesk.config import ROLE_ADMIN, ROLE_USER, Settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AuthContext:
    user_id: str
    role: str = ROLE_USER

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN


class AuthProvider(Protocol):
    def authenticate(self, request: Request) -> AuthContext: ...


class NoAuthProvider:
    """Local mode: every request acts as the configured admin user."""

    def __init__(self, settings: Settings) -> None:
        self._user_id = settings.default_user_id

    def authenticate(self, request: Request) -> AuthContext:
        return AuthContext(user_id=self._user_id, role=ROLE_ADMIN)


class HeaderAuthProvider:
    """Trusts an upstream proxy to put the signed-in user id in ``X-User-Id``."""

    header_name = "X-User-Id"

    def authenticate(self, request: Request) -> AuthContext:
        user_id = request.headers.get(self.header_name, "").strip()
        if not user_id:
            raise HTTPException(status_code=401, detail="Unauthorized")
        user = request.app.state.storage.users.get_user(user_id)
        if not user:
            logger.info("Rejected unknown user %s", user_id)
            raise HTTPException(status_code=401, detail="Unauthorized")
        return AuthContext(user_id=user_id, role=user.get("role") or ROLE_USER)


def get_auth_provider(settings: Settings) -> AuthProvider:
    if settings.auth_mode == "header":
        return HeaderAuthProvider()
    return NoAuthProvider(settings)


def current_context(request: Request) -> AuthContext:
    return request.app.state.auth_provider.authenticate(request)


def require_admin(context: AuthContext) -> None:
    if not context.is_admin:
        raise HTTPException(status_code=403, detail="Admin access required")


def display_user(user: dict[str, Any] | None) -> dict[str, Any] | None:
    if not user:
        return None
    return {
        "id": user["id"],
        "email": user.get("email"),
        "firstName": user.get("first_name"),
        "lastName": user.get("last_name"),
        "profileImageUrl": user.get("profile_image_url"),
        "role": user.get("role") or ROLE_USER,
    }
