from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from formdesk.app import create_app
from formdesk.auth import AuthContext
from formdesk.config import Settings
from formdesk.repo_json import JSONStorage
from formdesk.repo_sqlite import SQLiteStorage


@pytest.fixture
def admin():
    return AuthContext(user_id="admin-1", role="admin")


@pytest.fixture
def user():
    return AuthContext(user_id="user-1", role="user")


@pytest.fixture(params=["sqlite", "json"])
def storage(request, tmp_path):
    if request.param == "json":
        return JSONStorage(tmp_path / "store.json")
    return SQLiteStorage(tmp_path / "app.db")


@pytest.fixture
def sqlite_storage(tmp_path):
    return SQLiteStorage(tmp_path / "app.db")


@pytest.fixture
def settings(monkeypatch, tmp_path):
    monkeypatch.setenv("STORAGE_BACKEND", "sqlite")
    monkeypatch.setenv("SQLITE_PATH", str(tmp_path / "data" / "app.db"))
    monkeypatch.setenv("AUTH_MODE", "none")
    monkeypatch.setenv("DEFAULT_USER_ID", "admin-1")
    return Settings()


@pytest.fixture
def client(settings):
    with TestClient(create_app(settings)) as test_client:
        yield test_client


@pytest.fixture
def header_client(monkeypatch, tmp_path):
    monkeypatch.setenv("STORAGE_BACKEND", "json")
    monkeypatch.setenv("JSON_PATH", str(tmp_path / "data" / "store.json"))
    monkeypatch.setenv("AUTH_MODE", "header")
    app = create_app(Settings())
    app.state.storage.users.upsert_user({"id": "boss", "role": "admin"})
    app.state.storage.users.upsert_user({"id": "worker", "role": "user"})
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def fields():
    return [
        {"id": "name", "type": "text", "label": "Name", "required": True},
        {"id": "email", "type": "email", "label": "Email", "required": False},
        {
            "id": "plan",
            "type": "select",
            "label": "Plan",
            "required": True,
            "options": ["A", "B"],
        },
        {
            "id": "extras",
            "type": "checkbox",
            "label": "Extras",
            "required": False,
            "options": ["A", "B", "C"],
        },
        {"id": "amount", "type": "currency", "label": "Amount", "required": False},
        {"id": "count", "type": "number", "label": "Count", "required": False, "min": 0, "max": 10},
    ]
