from __future__ import annotations

import logging
from typing import Any

import orjson
from jsonschema import Draft7Validator

from formdesk.field_types import (
    NUMERIC_TYPES,
    OPTIONS_REQUIRED_TYPES,
    CHOICE_TYPES,
    FieldType,
    resolve_field_type,
)
from formdesk.utils import new_field_id, now_utc, to_iso

logger = logging.getLogger(__name__)

KNOWN_TYPES = {field_type.value for field_type in FieldType}
FIELD_KEY_ORDER = ("id", "type", "label", "required", "placeholder", "options", "helpText", "min", "max")

FIELD_DEFINITION_SCHEMA: dict[str, Any] = {
    "type": "object",
    "required": ["id", "type", "label", "required"],
    "properties": {
        "id": {"type": "string", "minLength": 1},
        "type": {"type": "string", "minLength": 1},
        "label": {"type": "string"},
        "required": {"type": "boolean"},
        "placeholder": {"type": ["string", "null"]},
        "options": {"type": ["array", "null"], "items": {"type": "string"}},
        "helpText": {"type": ["string", "null"]},
        "min": {"type": ["number", "null"]},
        "max": {"type": ["number", "null"]},
    },
}
FIELD_LIST_SCHEMA: dict[str, Any] = {"type": "array", "items": FIELD_DEFINITION_SCHEMA}

_field_list_validator = Draft7Validator(FIELD_LIST_SCHEMA)


def _keeps_options(raw_type: str) -> bool:
    # Unknown types keep whatever they were given so newer clients round-trip.
    if raw_type not in KNOWN_TYPES:
        return True
    return resolve_field_type(raw_type) in CHOICE_TYPES


def normalize_field(raw: dict[str, Any]) -> dict[str, Any]:
    raw_type = str(raw.get("type", "")).strip()
    field: dict[str, Any] = {
        "id": str(raw["id"]),
        "type": raw_type,
        "label": str(raw.get("label", "")).strip(),
        "required": bool(raw.get("required")),
    }
    if raw.get("placeholder"):
        field["placeholder"] = str(raw["placeholder"])
    if raw.get("options") is not None and _keeps_options(raw_type):
        field["options"] = [str(option) for option in raw["options"]]
    if raw.get("helpText"):
        field["helpText"] = str(raw["helpText"])
    if resolve_field_type(raw_type) in NUMERIC_TYPES or raw_type not in KNOWN_TYPES:
        for bound in ("min", "max"):
            if raw.get(bound) is not None:
                field[bound] = raw[bound]
    return field


def parse_fields(raw_fields: Any) -> tuple[list[dict[str, Any]], list[str]]:
    """Check a persisted field list against the wire contract and normalize it."""
    if isinstance(raw_fields, (str, bytes)):
        try:
            raw_fields = orjson.loads(raw_fields) if raw_fields else []
        except orjson.JSONDecodeError:
            return [], ["Could not parse field definitions"]
    if raw_fields is None:
        raw_fields = []

    errors: list[str] = []
    for error in sorted(_field_list_validator.iter_errors(raw_fields), key=lambda err: list(err.path)):
        path = list(error.path)
        if path and isinstance(path[0], int):
            errors.append(f"Field {path[0] + 1}: {error.message}")
        else:
            errors.append(error.message)
    if errors:
        return [], errors

    fields: list[dict[str, Any]] = []
    seen_ids: set[str] = set()
    for index, raw in enumerate(raw_fields, start=1):
        field = normalize_field(raw)
        loc = f"Field {index}"
        if not field["label"]:
            errors.append(f"{loc}: label is required")
        if field["id"] in seen_ids:
            errors.append(f"{loc}: duplicate field id ({field['id']})")
        seen_ids.add(field["id"])
        field_type = resolve_field_type(field["type"])
        if field["type"] in KNOWN_TYPES and field_type in OPTIONS_REQUIRED_TYPES and not field.get("options"):
            errors.append(f"{loc}: {field_type.value} fields need at least one option")
        if field.get("min") is not None and field.get("max") is not None and field["min"] > field["max"]:
            errors.append(f"{loc}: min must not exceed max")
        fields.append(field)
    return fields, errors


def serialize_fields(fields: list[dict[str, Any]]) -> list[dict[str, Any]]:
    serialized: list[dict[str, Any]] = []
    for field in fields:
        item: dict[str, Any] = {}
        for key in FIELD_KEY_ORDER:
            if key not in field:
                continue
            value = field[key]
            item[key] = list(value) if isinstance(value, list) else value
        serialized.append(item)
    return serialized


def find_field(fields: list[dict[str, Any]], field_id: str) -> dict[str, Any] | None:
    for field in fields:
        if field.get("id") == field_id:
            return field
    return None


def append_field(
    fields: list[dict[str, Any]], field: dict[str, Any]
) -> tuple[list[dict[str, Any]], dict[str, Any]]:
    """Append a copy of ``field`` under a freshly generated id."""
    existing = {str(item.get("id")) for item in fields}
    new_field = {**field, "id": new_field_id(existing)}
    return [*fields, new_field], new_field


def update_field(
    fields: list[dict[str, Any]], field_id: str, patch: dict[str, Any]
) -> list[dict[str, Any]]:
    changes = {key: value for key, value in patch.items() if key != "id"}
    if find_field(fields, field_id) is None:
        logger.debug("update_field: no field with id %s", field_id)
    return [
        {**field, **changes} if field.get("id") == field_id else field
        for field in fields
    ]


def remove_field(fields: list[dict[str, Any]], field_id: str) -> list[dict[str, Any]]:
    if find_field(fields, field_id) is None:
        logger.debug("remove_field: no field with id %s", field_id)
    return [field for field in fields if field.get("id") != field_id]


def parse_options_text(text: str) -> list[str]:
    return [line.strip() for line in (text or "").splitlines() if line.strip()]


def sanitize_form_output(form: dict[str, Any]) -> dict[str, Any]:
    return {
        "id": form["id"],
        "title": form.get("title", ""),
        "description": form.get("description", ""),
        "fields": serialize_fields(form.get("fields", [])),
        "isActive": bool(form.get("is_active")),
        "createdBy": form.get("created_by"),
        "createdAt": to_iso(form.get("created_at") or now_utc()),
        "updatedAt": to_iso(form.get("updated_at") or now_utc()),
    }
