from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from sqlalchemy import create_engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from formdesk.errors import PersistenceError
from formdesk.models import (
    Base,
    CustomerModel,
    FormModel,
    SubmissionModel,
    UserFormMappingModel,
    UserModel,
)
from formdesk.utils import dumps_json, loads_json, new_ulid, now_utc

logger = logging.getLogger(__name__)


class SQLiteRepoBase:
    def __init__(self, session_factory: sessionmaker) -> None:
        self._Session = session_factory

    def _commit(self, session: Session, table: str) -> None:
        try:
            session.commit()
        except SQLAlchemyError as exc:
            session.rollback()
            logger.exception("Write to %s failed", table)
            raise PersistenceError(f"Could not save {table} record") from exc

    def _insert(self, row: Any) -> None:
        with self._Session() as session:
            session.add(row)
            self._commit(session, row.__tablename__)


class SQLiteFormRepo(SQLiteRepoBase):
    def list_forms(self) -> list[dict[str, Any]]:
        with self._Session() as session:
            rows = session.query(FormModel).order_by(FormModel.created_at.desc()).all()
            return [self._to_dict(row) for row in rows]

    def list_forms_for_user(self, user_id: str) -> list[dict[str, Any]]:
        with self._Session() as session:
            rows = (
                session.query(FormModel)
                .join(UserFormMappingModel, UserFormMappingModel.form_id == FormModel.id)
                .filter(UserFormMappingModel.user_id == user_id)
                .order_by(FormModel.created_at.desc())
                .all()
            )
            return [self._to_dict(row) for row in rows]

    def get_form(self, form_id: str) -> dict[str, Any] | None:
        with self._Session() as session:
            row = session.get(FormModel, form_id)
            return self._to_dict(row) if row else None

    def create_form(self, form: dict[str, Any]) -> dict[str, Any]:
        now = now_utc()
        row = FormModel(
            id=form.get("id") or new_ulid(),
            title=form["title"],
            description=form.get("description", ""),
            fields_json=dumps_json(form.get("fields", [])),
            is_active=bool(form.get("is_active")),
            created_by=form.get("created_by"),
            created_at=form.get("created_at") or now,
            updated_at=form.get("updated_at") or now,
        )
        self._insert(row)
        return self._to_dict(row)

    def update_form(self, form_id: str, updates: dict[str, Any]) -> dict[str, Any]:
        with self._Session() as session:
            row = session.get(FormModel, form_id)
            if not row:
                raise KeyError(form_id)
            for key, value in updates.items():
                if key == "fields":
                    row.fields_json = dumps_json(value)
                else:
                    setattr(row, key, value)
            row.updated_at = updates.get("updated_at") or now_utc()
            self._commit(session, FormModel.__tablename__)
            session.refresh(row)
            return self._to_dict(row)

    def toggle_status(self, form_id: str) -> dict[str, Any]:
        with self._Session() as session:
            row = session.get(FormModel, form_id)
            if not row:
                raise KeyError(form_id)
            row.is_active = not row.is_active
            row.updated_at = now_utc()
            self._commit(session, FormModel.__tablename__)
            session.refresh(row)
            return self._to_dict(row)

    def delete_form(self, form_id: str) -> None:
        with self._Session() as session:
            row = session.get(FormModel, form_id)
            if row:
                session.query(UserFormMappingModel).filter(
                    UserFormMappingModel.form_id == form_id
                ).delete()
                session.delete(row)
                self._commit(session, FormModel.__tablename__)

    @staticmethod
    def _to_dict(row: FormModel) -> dict[str, Any]:
        return {
            "id": row.id,
            "title": row.title,
            "description": row.description or "",
            "fields": loads_json(row.fields_json) or [],
            "is_active": bool(row.is_active),
            "created_by": row.created_by,
            "created_at": row.created_at,
            "updated_at": row.updated_at,
        }


class SQLiteSubmissionRepo(SQLiteRepoBase):
    def list_submissions(
        self, form_id: str | None = None, user_id: str | None = None
    ) -> list[dict[str, Any]]:
        with self._Session() as session:
            query = session.query(SubmissionModel)
            if form_id is not None:
                query = query.filter(SubmissionModel.form_id == form_id)
            if user_id is not None:
                query = query.filter(SubmissionModel.user_id == user_id)
            rows = query.order_by(SubmissionModel.submitted_at.desc()).all()
            return [self._to_dict(row) for row in rows]

    def get_submission(self, submission_id: str) -> dict[str, Any] | None:
        with self._Session() as session:
            row = session.get(SubmissionModel, submission_id)
            return self._to_dict(row) if row else None

    def create_submission(self, submission: dict[str, Any]) -> dict[str, Any]:
        row = SubmissionModel(
            id=submission.get("id") or new_ulid(),
            form_id=submission["form_id"],
            user_id=submission["user_id"],
            customer_id=submission.get("customer_id"),
            data_json=dumps_json(submission["data"]),
            collection_plan=submission.get("collection_plan"),
            water_plan=submission.get("water_plan"),
            submitted_at=submission.get("submitted_at") or now_utc(),
        )
        self._insert(row)
        return self._to_dict(row)

    @staticmethod
    def _to_dict(row: SubmissionModel) -> dict[str, Any]:
        return {
            "id": row.id,
            "form_id": row.form_id,
            "user_id": row.user_id,
            "customer_id": row.customer_id,
            "data": loads_json(row.data_json) or {},
            "collection_plan": row.collection_plan,
            "water_plan": row.water_plan,
            "submitted_at": row.submitted_at,
        }


class SQLiteCustomerRepo(SQLiteRepoBase):
    def list_customers(self) -> list[dict[str, Any]]:
        with self._Session() as session:
            rows = session.query(CustomerModel).order_by(CustomerModel.created_at.desc()).all()
            return [self._to_dict(row) for row in rows]

    def get_customer(self, customer_id: str) -> dict[str, Any] | None:
        with self._Session() as session:
            row = session.get(CustomerModel, customer_id)
            return self._to_dict(row) if row else None

    def search_customers(self, query: str, limit: int) -> list[dict[str, Any]]:
        # LIKE wildcards in the search text match literally.
        pattern = query.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
        with self._Session() as session:
            rows = (
                session.query(CustomerModel)
                .filter(CustomerModel.name.ilike(f"%{pattern}%", escape="\\"))
                .order_by(CustomerModel.name)
                .limit(limit)
                .all()
            )
            return [self._to_dict(row) for row in rows]

    def create_customer(self, customer: dict[str, Any]) -> dict[str, Any]:
        now = now_utc()
        row = CustomerModel(
            id=customer.get("id") or new_ulid(),
            name=customer["name"],
            email=customer.get("email"),
            phone=customer.get("phone"),
            address=customer.get("address"),
            created_at=now,
            updated_at=now,
        )
        self._insert(row)
        return self._to_dict(row)

    def update_customer(self, customer_id: str, updates: dict[str, Any]) -> dict[str, Any]:
        with self._Session() as session:
            row = session.get(CustomerModel, customer_id)
            if not row:
                raise KeyError(customer_id)
            for key, value in updates.items():
                setattr(row, key, value)
            row.updated_at = now_utc()
            self._commit(session, CustomerModel.__tablename__)
            session.refresh(row)
            return self._to_dict(row)

    def delete_customer(self, customer_id: str) -> None:
        with self._Session() as session:
            row = session.get(CustomerModel, customer_id)
            if row:
                session.delete(row)
                self._commit(session, CustomerModel.__tablename__)

    @staticmethod
    def _to_dict(row: CustomerModel) -> dict[str, Any]:
        return {
            "id": row.id,
            "name": row.name,
            "email": row.email,
            "phone": row.phone,
            "address": row.address,
            "created_at": row.created_at,
            "updated_at": row.updated_at,
        }


class SQLiteUserRepo(SQLiteRepoBase):
    def list_users(self) -> list[dict[str, Any]]:
        with self._Session() as session:
            rows = session.query(UserModel).order_by(UserModel.created_at.desc()).all()
            return [self._to_dict(row) for row in rows]

    def get_user(self, user_id: str) -> dict[str, Any] | None:
        with self._Session() as session:
            row = session.get(UserModel, user_id)
            return self._to_dict(row) if row else None

    def upsert_user(self, user: dict[str, Any]) -> dict[str, Any]:
        now = now_utc()
        with self._Session() as session:
            row = session.get(UserModel, user["id"])
            if row is None:
                row = UserModel(id=user["id"], role="user", created_at=now)
                session.add(row)
            for key in ("email", "first_name", "last_name", "profile_image_url", "role"):
                if key in user:
                    setattr(row, key, user[key])
            row.updated_at = now
            self._commit(session, UserModel.__tablename__)
            session.refresh(row)
            return self._to_dict(row)

    @staticmethod
    def _to_dict(row: UserModel) -> dict[str, Any]:
        return {
            "id": row.id,
            "email": row.email,
            "first_name": row.first_name,
            "last_name": row.last_name,
            "profile_image_url": row.profile_image_url,
            "role": row.role,
            "created_at": row.created_at,
            "updated_at": row.updated_at,
        }


class SQLiteAssignmentRepo(SQLiteRepoBase):
    def list_for_user(self, user_id: str) -> list[dict[str, Any]]:
        with self._Session() as session:
            rows = (
                session.query(UserFormMappingModel)
                .filter(UserFormMappingModel.user_id == user_id)
                .all()
            )
            return [self._to_dict(row) for row in rows]

    def create_assignment(self, assignment: dict[str, Any]) -> dict[str, Any]:
        row = UserFormMappingModel(
            id=assignment.get("id") or new_ulid(),
            user_id=assignment["user_id"],
            form_id=assignment["form_id"],
            assigned_by=assignment.get("assigned_by"),
            assigned_at=assignment.get("assigned_at") or now_utc(),
        )
        self._insert(row)
        return self._to_dict(row)

    def delete_assignment(self, user_id: str, form_id: str) -> None:
        with self._Session() as session:
            session.query(UserFormMappingModel).filter(
                UserFormMappingModel.user_id == user_id,
                UserFormMappingModel.form_id == form_id,
            ).delete()
            self._commit(session, UserFormMappingModel.__tablename__)

    @staticmethod
    def _to_dict(row: UserFormMappingModel) -> dict[str, Any]:
        return {
            "id": row.id,
            "user_id": row.user_id,
            "form_id": row.form_id,
            "assigned_by": row.assigned_by,
            "assigned_at": row.assigned_at,
        }


class SQLiteStorage:
    def __init__(self, db_path: Path) -> None:
        self._engine = create_engine(f"sqlite:///{db_path}", future=True)
        self._Session = sessionmaker(self._engine, expire_on_commit=False)
        Base.metadata.create_all(self._engine)
        self.forms = SQLiteFormRepo(self._Session)
        self.submissions = SQLiteSubmissionRepo(self._Session)
        self.customers = SQLiteCustomerRepo(self._Session)
        self.users = SQLiteUserRepo(self._Session)
        self.assignments = SQLiteAssignmentRepo(self._Session)
