from __future__ import annotations

import pytest
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session
from tinydb.table import Table

from formdesk.errors import PersistenceError
from formdesk.repo_json import JSONStorage


def test_form_create_preserves_field_order(storage, fields):
    created = storage.forms.create_form({"title": "Survey", "fields": fields, "created_by": "admin-1"})
    assert created["id"]
    loaded = storage.forms.get_form(created["id"])
    assert [field["id"] for field in loaded["fields"]] == [field["id"] for field in fields]
    assert loaded["fields"] == fields
    assert loaded["is_active"] is False
    assert loaded["created_by"] == "admin-1"


def test_form_update_toggle_delete(storage):
    form = storage.forms.create_form({"title": "Old", "fields": []})
    updated = storage.forms.update_form(form["id"], {"title": "New"})
    assert updated["title"] == "New"
    assert storage.forms.toggle_status(form["id"])["is_active"] is True
    assert storage.forms.toggle_status(form["id"])["is_active"] is False
    storage.forms.delete_form(form["id"])
    assert storage.forms.get_form(form["id"]) is None
    with pytest.raises(KeyError):
        storage.forms.update_form(form["id"], {"title": "Gone"})
    with pytest.raises(KeyError):
        storage.forms.toggle_status(form["id"])


def test_assigned_forms_only(storage):
    shared = storage.forms.create_form({"title": "Shared", "fields": []})
    storage.forms.create_form({"title": "Private", "fields": []})
    storage.assignments.create_assignment({"user_id": "u1", "form_id": shared["id"], "assigned_by": "a"})
    assert [form["title"] for form in storage.forms.list_forms_for_user("u1")] == ["Shared"]
    assert len(storage.assignments.list_for_user("u1")) == 1
    storage.assignments.delete_assignment("u1", shared["id"])
    assert storage.forms.list_forms_for_user("u1") == []


def test_submissions_filtering(storage):
    for user_id, plan in (("u1", 100.5), ("u2", None)):
        storage.submissions.create_submission(
            {
                "form_id": "F",
                "user_id": user_id,
                "data": {"a": [1, 2]},
                "collection_plan": plan,
                "water_plan": 3,
            }
        )
    assert len(storage.submissions.list_submissions()) == 2
    mine = storage.submissions.list_submissions(user_id="u1")
    assert len(mine) == 1
    assert mine[0]["data"] == {"a": [1, 2]}
    assert mine[0]["collection_plan"] == 100.5
    assert storage.submissions.get_submission(mine[0]["id"])["water_plan"] == 3
    assert storage.submissions.list_submissions(form_id="other") == []


def test_customer_crud_and_search(storage):
    acme = storage.customers.create_customer({"name": "Acme Water", "phone": "123"})
    storage.customers.create_customer({"name": "Blue Springs"})
    assert [c["name"] for c in storage.customers.search_customers("water", 10)] == ["Acme Water"]
    assert len(storage.customers.search_customers("s", 1)) == 1
    updated = storage.customers.update_customer(acme["id"], {"email": "ops@acme.test"})
    assert updated["email"] == "ops@acme.test"
    assert updated["phone"] == "123"
    storage.customers.delete_customer(acme["id"])
    assert storage.customers.get_customer(acme["id"]) is None
    with pytest.raises(KeyError):
        storage.customers.update_customer(acme["id"], {"name": "x"})


def test_user_upsert(storage):
    created = storage.users.upsert_user({"id": "u1", "email": "u1@test"})
    assert created["role"] == "user"
    promoted = storage.users.upsert_user({"id": "u1", "role": "admin"})
    assert promoted["role"] == "admin"
    assert promoted["email"] == "u1@test"
    assert [user["id"] for user in storage.users.list_users()] == ["u1"]


def test_customer_search_treats_wildcards_literally(storage):
    storage.customers.create_customer({"name": "100% Pure Water"})
    storage.customers.create_customer({"name": "A_B Supplies"})
    storage.customers.create_customer({"name": "AxB Traders"})
    assert [c["name"] for c in storage.customers.search_customers("%", 10)] == ["100% Pure Water"]
    assert [c["name"] for c in storage.customers.search_customers("a_b", 10)] == ["A_B Supplies"]
    assert storage.customers.search_customers("\\", 10) == []


def test_sqlite_failed_commits_raise_persistence_error(sqlite_storage, monkeypatch):
    form = sqlite_storage.forms.create_form({"title": "Survey", "fields": []})
    customer = sqlite_storage.customers.create_customer({"name": "Acme"})

    def broken_commit(self):
        raise OperationalError("COMMIT", {}, Exception("disk I/O error"))

    monkeypatch.setattr(Session, "commit", broken_commit)
    with pytest.raises(PersistenceError):
        sqlite_storage.forms.update_form(form["id"], {"title": "New"})
    with pytest.raises(PersistenceError):
        sqlite_storage.forms.toggle_status(form["id"])
    with pytest.raises(PersistenceError):
        sqlite_storage.forms.delete_form(form["id"])
    with pytest.raises(PersistenceError):
        sqlite_storage.customers.update_customer(customer["id"], {"phone": "1"})
    with pytest.raises(PersistenceError):
        sqlite_storage.customers.delete_customer(customer["id"])
    with pytest.raises(PersistenceError):
        sqlite_storage.users.upsert_user({"id": "u1"})
    with pytest.raises(PersistenceError):
        sqlite_storage.assignments.delete_assignment("u1", form["id"])

    monkeypatch.undo()
    assert sqlite_storage.forms.get_form(form["id"])["title"] == "Survey"


def test_json_failed_writes_raise_persistence_error(tmp_path, monkeypatch):
    storage = JSONStorage(tmp_path / "store.json")
    form = storage.forms.create_form({"title": "Survey", "fields": []})
    customer = storage.customers.create_customer({"name": "Acme"})

    def broken_write(self, *args, **kwargs):
        raise OSError("disk full")

    monkeypatch.setattr(Table, "update", broken_write)
    monkeypatch.setattr(Table, "remove", broken_write)
    with pytest.raises(PersistenceError):
        storage.forms.update_form(form["id"], {"title": "New"})
    with pytest.raises(PersistenceError):
        storage.forms.delete_form(form["id"])
    with pytest.raises(PersistenceError):
        storage.customers.update_customer(customer["id"], {"phone": "1"})
    with pytest.raises(PersistenceError):
        storage.customers.delete_customer(customer["id"])
    with pytest.raises(PersistenceError):
        storage.assignments.delete_assignment("u1", form["id"])
    with pytest.raises(KeyError):
        storage.forms.update_form("missing", {"title": "New"})
