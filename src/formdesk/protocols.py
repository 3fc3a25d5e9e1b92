from __future__ import annotations

from typing import Any, Protocol


class FormRepository(Protocol):
    def list_forms(self) -> list[dict[str, Any]]: ...

    def list_forms_for_user(self, user_id: str) -> list[dict[str, Any]]: ...

    def get_form(self, form_id: str) -> dict[str, Any] | None: ...

    def create_form(self, form: dict[str, Any]) -> dict[str, Any]: ...

    def update_form(self, form_id: str, updates: dict[str, Any]) -> dict[str, Any]: ...

    def toggle_status(self, form_id: str) -> dict[str, Any]: ...

    def delete_form(self, form_id: str) -> None: ...


class SubmissionRepository(Protocol):
    def list_submissions(
        self, form_id: str | None = None, user_id: str | None = None
    ) -> list[dict[str, Any]]: ...

    def get_submission(self, submission_id: str) -> dict[str, Any] | None: ...

    def create_submission(self, submission: dict[str, Any]) -> dict[str, Any]: ...


class CustomerRepository(Protocol):
    def list_customers(self) -> list[dict[str, Any]]: ...

    def get_customer(self, customer_id: str) -> dict[str, Any] | None: ...

    def search_customers(self, query: str, limit: int) -> list[dict[str, Any]]: ...

    def create_customer(self, customer: dict[str, Any]) -> dict[str, Any]: ...

    def update_customer(self, customer_id: str, updates: dict[str, Any]) -> dict[str, Any]: ...

    def delete_customer(self, customer_id: str) -> None: ...


class UserRepository(Protocol):
    def list_users(self) -> list[dict[str, Any]]: ...

    def get_user(self, user_id: str) -> dict[str, Any] | None: ...

    def upsert_user(self, user: dict[str, Any]) -> dict[str, Any]: ...


class AssignmentRepository(Protocol):
    def list_for_user(self, user_id: str) -> list[dict[str, Any]]: ...

    def create_assignment(self, assignment: dict[str, Any]) -> dict[str, Any]: ...

    def delete_assignment(self, user_id: str, form_id: str) -> None: ...


class Storage(Protocol):
    forms: FormRepository
    submissions: SubmissionRepository
    customers: CustomerRepository
    users: UserRepository
    assignments: AssignmentRepository
