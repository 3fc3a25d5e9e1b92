from __future__ import annotations

from typing import Any

from formdesk.field_types import CHOICE_TYPES, DEFAULT_OPTIONS, palette_entry, resolve_field_type
from formdesk.schema import (
    append_field,
    find_field,
    parse_options_text,
    remove_field,
    serialize_fields,
    update_field,
)

DEFAULT_TITLE = "New Form"
DEFAULT_DESCRIPTION = "Form description"


def new_field(field_type: str, label: str | None = None) -> dict[str, Any]:
    """Field definition with the builder's palette defaults filled in."""
    resolved = resolve_field_type(field_type)
    label = label or palette_entry(resolved)["label"]
    field: dict[str, Any] = {
        "id": "",
        "type": field_type,
        "label": label,
        "placeholder": f"Enter {label.lower()}",
        "required": False,
    }
    if resolved in CHOICE_TYPES:
        field["options"] = list(DEFAULT_OPTIONS)
    return field


class FormDraft:
    """An in-progress form being edited by an administrator."""

    def __init__(
        self,
        title: str = DEFAULT_TITLE,
        description: str = DEFAULT_DESCRIPTION,
        fields: list[dict[str, Any]] | None = None,
        is_active: bool = False,
        form_id: str | None = None,
    ) -> None:
        self.form_id = form_id
        self.title = title
        self.description = description
        self.fields: list[dict[str, Any]] = list(fields or [])
        self.is_active = is_active
        self.selected_field_id: str | None = None

    @classmethod
    def from_form(cls, form: dict[str, Any]) -> "FormDraft":
        return cls(
            title=form.get("title", ""),
            description=form.get("description") or "",
            fields=[dict(field) for field in form.get("fields", [])],
            is_active=bool(form.get("is_active")),
            form_id=form.get("id"),
        )

    @property
    def selected_field(self) -> dict[str, Any] | None:
        if self.selected_field_id is None:
            return None
        return find_field(self.fields, self.selected_field_id)

    def add_field(self, field_type: str, label: str | None = None) -> dict[str, Any]:
        self.fields, field = append_field(self.fields, new_field(field_type, label))
        return field

    def select_field(self, field_id: str | None) -> None:
        if field_id is not None and find_field(self.fields, field_id) is None:
            field_id = None
        self.selected_field_id = field_id

    def update_field(self, field_id: str, patch: dict[str, Any]) -> dict[str, Any] | None:
        self.fields = update_field(self.fields, field_id, patch)
        return find_field(self.fields, field_id)

    def set_options_from_text(self, field_id: str, text: str) -> dict[str, Any] | None:
        return self.update_field(field_id, {"options": parse_options_text(text)})

    def remove_field(self, field_id: str) -> None:
        self.fields = remove_field(self.fields, field_id)
        self.selected_field_id = None

    def publish(self) -> dict[str, Any]:
        self.is_active = True
        return self.to_payload()

    def to_payload(self) -> dict[str, Any]:
        return {
            "title": self.title,
            "description": self.description,
            "fields": serialize_fields(self.fields),
            "isActive": self.is_active,
        }
