from __future__ import annotations

import logging
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Any, Iterable

from filelock import FileLock
from tinydb import Query, TinyDB

from formdesk.errors import PersistenceError
from formdesk.utils import new_ulid, now_utc, parse_dt, to_iso

logger = logging.getLogger(__name__)

DATETIME_KEYS = {"created_at", "updated_at", "submitted_at", "assigned_at"}


def _to_record(item: dict[str, Any]) -> dict[str, Any]:
    record: dict[str, Any] = {}
    for key, value in item.items():
        if key in DATETIME_KEYS and isinstance(value, datetime):
            record[key] = to_iso(value)
        else:
            record[key] = value
    return record


def _from_record(record: dict[str, Any]) -> dict[str, Any]:
    item = dict(record)
    for key in DATETIME_KEYS:
        if key in item and item[key] is not None:
            item[key] = parse_dt(item[key])
    return item


class JSONRepoBase:
    table_name = ""

    def __init__(self, path: Path, lock: FileLock) -> None:
        self._path = path
        self._lock = lock

    @contextmanager
    def _db(self) -> Iterable[TinyDB]:
        with self._lock:
            db = TinyDB(self._path)
            try:
                yield db
            finally:
                db.close()

    @contextmanager
    def _write(self) -> Iterable[TinyDB]:
        try:
            with self._db() as db:
                yield db
        except (OSError, ValueError) as exc:
            logger.exception("Write to %s failed", self.table_name)
            raise PersistenceError(f"Could not save {self.table_name} record") from exc

    def _all(self) -> list[dict[str, Any]]:
        with self._db() as db:
            items = db.table(self.table_name).all()
        return [_from_record(item) for item in items]

    def _get(self, item_id: str) -> dict[str, Any] | None:
        with self._db() as db:
            item = db.table(self.table_name).get(Query().id == item_id)
        return _from_record(item) if item else None

    def _insert(self, item: dict[str, Any]) -> dict[str, Any]:
        record = _to_record(item)
        with self._write() as db:
            db.table(self.table_name).insert(record)
        return _from_record(record)

    def _update(self, item_id: str, updates: dict[str, Any]) -> dict[str, Any]:
        with self._write() as db:
            table = db.table(self.table_name)
            item = table.get(Query().id == item_id)
            if not item:
                raise KeyError(item_id)
            item = dict(item)
            item.update(_to_record(updates))
            table.update(item, Query().id == item_id)
        return _from_record(item)


class JSONFormRepo(JSONRepoBase):
    table_name = "forms"

    def list_forms(self) -> list[dict[str, Any]]:
        forms = [self._normalize(item) for item in self._all()]
        return sorted(forms, key=lambda x: x["created_at"], reverse=True)

    def list_forms_for_user(self, user_id: str) -> list[dict[str, Any]]:
        with self._db() as db:
            mappings = db.table("user_form_mappings").search(Query().user_id == user_id)
        form_ids = {mapping["form_id"] for mapping in mappings}
        return [form for form in self.list_forms() if form["id"] in form_ids]

    def get_form(self, form_id: str) -> dict[str, Any] | None:
        item = self._get(form_id)
        return self._normalize(item) if item else None

    def create_form(self, form: dict[str, Any]) -> dict[str, Any]:
        now = now_utc()
        record = {
            "id": form.get("id") or new_ulid(),
            "title": form["title"],
            "description": form.get("description", ""),
            "fields": form.get("fields", []),
            "is_active": bool(form.get("is_active")),
            "created_by": form.get("created_by"),
            "created_at": form.get("created_at") or now,
            "updated_at": form.get("updated_at") or now,
        }
        return self._normalize(self._insert(record))

    def update_form(self, form_id: str, updates: dict[str, Any]) -> dict[str, Any]:
        changes = {**updates, "updated_at": updates.get("updated_at") or now_utc()}
        return self._normalize(self._update(form_id, changes))

    def toggle_status(self, form_id: str) -> dict[str, Any]:
        form = self.get_form(form_id)
        if not form:
            raise KeyError(form_id)
        return self.update_form(form_id, {"is_active": not form["is_active"]})

    def delete_form(self, form_id: str) -> None:
        with self._write() as db:
            db.table("user_form_mappings").remove(Query().form_id == form_id)
            db.table(self.table_name).remove(Query().id == form_id)

    @staticmethod
    def _normalize(item: dict[str, Any]) -> dict[str, Any]:
        return {
            "id": item["id"],
            "title": item.get("title", ""),
            "description": item.get("description") or "",
            "fields": item.get("fields") or [],
            "is_active": bool(item.get("is_active")),
            "created_by": item.get("created_by"),
            "created_at": item.get("created_at") or now_utc(),
            "updated_at": item.get("updated_at") or now_utc(),
        }


class JSONSubmissionRepo(JSONRepoBase):
    table_name = "form_submissions"

    def list_submissions(
        self, form_id: str | None = None, user_id: str | None = None
    ) -> list[dict[str, Any]]:
        submissions = [
            item
            for item in self._all()
            if (form_id is None or item.get("form_id") == form_id)
            and (user_id is None or item.get("user_id") == user_id)
        ]
        return sorted(submissions, key=lambda x: x["submitted_at"], reverse=True)

    def get_submission(self, submission_id: str) -> dict[str, Any] | None:
        return self._get(submission_id)

    def create_submission(self, submission: dict[str, Any]) -> dict[str, Any]:
        return self._insert(
            {
                "id": submission.get("id") or new_ulid(),
                "form_id": submission["form_id"],
                "user_id": submission["user_id"],
                "customer_id": submission.get("customer_id"),
                "data": submission["data"],
                "collection_plan": submission.get("collection_plan"),
                "water_plan": submission.get("water_plan"),
                "submitted_at": submission.get("submitted_at") or now_utc(),
            }
        )


class JSONCustomerRepo(JSONRepoBase):
    table_name = "customers"

    def list_customers(self) -> list[dict[str, Any]]:
        return sorted(self._all(), key=lambda x: x["created_at"], reverse=True)

    def get_customer(self, customer_id: str) -> dict[str, Any] | None:
        return self._get(customer_id)

    def search_customers(self, query: str, limit: int) -> list[dict[str, Any]]:
        needle = query.lower()
        matches = [
            item for item in self._all() if needle in str(item.get("name", "")).lower()
        ]
        matches.sort(key=lambda x: str(x.get("name", "")))
        return matches[:limit]

    def create_customer(self, customer: dict[str, Any]) -> dict[str, Any]:
        now = now_utc()
        return self._insert(
            {
                "id": customer.get("id") or new_ulid(),
                "name": customer["name"],
                "email": customer.get("email"),
                "phone": customer.get("phone"),
                "address": customer.get("address"),
                "created_at": now,
                "updated_at": now,
            }
        )

    def update_customer(self, customer_id: str, updates: dict[str, Any]) -> dict[str, Any]:
        return self._update(customer_id, {**updates, "updated_at": now_utc()})

    def delete_customer(self, customer_id: str) -> None:
        with self._write() as db:
            db.table(self.table_name).remove(Query().id == customer_id)


class JSONUserRepo(JSONRepoBase):
    table_name = "users"

    def list_users(self) -> list[dict[str, Any]]:
        return sorted(self._all(), key=lambda x: x["created_at"], reverse=True)

    def get_user(self, user_id: str) -> dict[str, Any] | None:
        return self._get(user_id)

    def upsert_user(self, user: dict[str, Any]) -> dict[str, Any]:
        now = now_utc()
        changes = {
            key: user[key]
            for key in ("email", "first_name", "last_name", "profile_image_url", "role")
            if key in user
        }
        if self._get(user["id"]) is None:
            return self._insert(
                {
                    "id": user["id"],
                    "email": None,
                    "first_name": None,
                    "last_name": None,
                    "profile_image_url": None,
                    "role": "user",
                    **changes,
                    "created_at": now,
                    "updated_at": now,
                }
            )
        return self._update(user["id"], {**changes, "updated_at": now})


class JSONAssignmentRepo(JSONRepoBase):
    table_name = "user_form_mappings"

    def list_for_user(self, user_id: str) -> list[dict[str, Any]]:
        return [item for item in self._all() if item.get("user_id") == user_id]

    def create_assignment(self, assignment: dict[str, Any]) -> dict[str, Any]:
        return self._insert(
            {
                "id": assignment.get("id") or new_ulid(),
                "user_id": assignment["user_id"],
                "form_id": assignment["form_id"],
                "assigned_by": assignment.get("assigned_by"),
                "assigned_at": assignment.get("assigned_at") or now_utc(),
            }
        )

    def delete_assignment(self, user_id: str, form_id: str) -> None:
        mapping = Query()
        with self._write() as db:
            db.table(self.table_name).remove(
                (mapping.user_id == user_id) & (mapping.form_id == form_id)
            )


class JSONStorage:
    def __init__(self, path: Path) -> None:
        self._lock = FileLock(f"{path}.lock")
        self.forms = JSONFormRepo(path, self._lock)
        self.submissions = JSONSubmissionRepo(path, self._lock)
        self.customers = JSONCustomerRepo(path, self._lock)
        self.users = JSONUserRepo(path, self._lock)
        self.assignments = JSONAssignmentRepo(path, self._lock)
