from __future__ import annotations

import os
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent

COLLECTION_PLAN_MIN = 100
CURRENCY_FLOOR = 100
CUSTOMER_SEARCH_LIMIT = 10

COLLECTION_PLAN_KEYS = ("collection_plan", "collectionPlan")
WATER_PLAN_KEYS = ("water_plan", "waterPlan")

ROLE_ADMIN = "admin"
ROLE_USER = "user"
ROLES = {ROLE_ADMIN, ROLE_USER}


class Settings:
    def __init__(self) -> None:
        self.storage_backend = os.getenv("STORAGE_BACKEND", "sqlite").lower()
        self.sqlite_path = Path(os.getenv("SQLITE_PATH", "./data/app.db"))
        self.json_path = Path(os.getenv("JSON_PATH", "./data/jsonstore.json"))
        self.auth_mode = os.getenv("AUTH_MODE", "none").lower()
        self.default_user_id = os.getenv("DEFAULT_USER_ID", "local-admin")
        self.log_level = os.getenv("LOG_LEVEL", "info").lower()
        self.host = os.getenv("HOST", "0.0.0.0")
        port_value = os.getenv("PORT", "8000")
        try:
            self.port = int(port_value)
        except ValueError:
            self.port = 8000


def ensure_dirs(settings: Settings) -> None:
    if settings.storage_backend == "json":
        settings.json_path.parent.mkdir(parents=True, exist_ok=True)
    else:
        settings.sqlite_path.parent.mkdir(parents=True, exist_ok=True)
