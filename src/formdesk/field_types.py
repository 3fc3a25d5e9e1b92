from __future__ import annotations

from enum import Enum
from typing import Any

from formdesk.config import CURRENCY_FLOOR


class FieldType(str, Enum):
    TEXT = "text"
    TEXTAREA = "textarea"
    NUMBER = "number"
    EMAIL = "email"
    PHONE = "phone"
    DATE = "date"
    DATETIME = "datetime"
    CURRENCY = "currency"
    SELECT = "select"
    RADIO = "radio"
    CHECKBOX = "checkbox"
    FILE = "file"
    LOCATION = "location"


TEXT_TYPES = {FieldType.TEXT, FieldType.TEXTAREA, FieldType.EMAIL, FieldType.PHONE}
NUMERIC_TYPES = {FieldType.NUMBER, FieldType.CURRENCY}
CHOICE_TYPES = {FieldType.SELECT, FieldType.RADIO, FieldType.CHECKBOX}
# A checkbox with zero or one option is a single boolean toggle.
OPTIONS_REQUIRED_TYPES = {FieldType.SELECT, FieldType.RADIO}
DEFAULT_OPTIONS = ["Option 1", "Option 2"]

FIELD_PALETTE: list[dict[str, str]] = [
    {"type": "text", "label": "Single Line Text", "description": "Short text input", "group": "basic"},
    {"type": "textarea", "label": "Multi Line Text", "description": "Paragraph text area", "group": "basic"},
    {"type": "number", "label": "Number", "description": "Numerical input", "group": "basic"},
    {"type": "email", "label": "Email", "description": "Email address input", "group": "basic"},
    {"type": "phone", "label": "Phone", "description": "Phone number input", "group": "basic"},
    {"type": "date", "label": "Date", "description": "Date picker", "group": "advanced"},
    {"type": "datetime", "label": "Date/Time", "description": "Date and time picker", "group": "advanced"},
    {"type": "select", "label": "Dropdown", "description": "Select from options", "group": "advanced"},
    {"type": "radio", "label": "Radio Buttons", "description": "Single choice selection", "group": "advanced"},
    {"type": "checkbox", "label": "Checkboxes", "description": "Multiple choice selection", "group": "advanced"},
    {"type": "file", "label": "File Upload", "description": "File attachment", "group": "business"},
    {"type": "currency", "label": "Currency", "description": "Monetary value input", "group": "business"},
    {"type": "location", "label": "Location/Map", "description": "Address and map selection", "group": "business"},
]


def resolve_field_type(raw: Any) -> FieldType:
    """Map a stored type string onto the registry, falling back to text."""
    try:
        return FieldType(str(raw or "").strip().lower())
    except ValueError:
        return FieldType.TEXT


def palette_entry(field_type: FieldType) -> dict[str, str]:
    for entry in FIELD_PALETTE:
        if entry["type"] == field_type.value:
            return entry
    return FIELD_PALETTE[0]


def is_multi_checkbox(field: dict[str, Any]) -> bool:
    if resolve_field_type(field.get("type")) != FieldType.CHECKBOX:
        return False
    return len(field.get("options") or []) > 1


def currency_minimum(field: dict[str, Any]) -> float:
    if field.get("min") is not None:
        return field["min"]
    return CURRENCY_FLOOR


def field_input_type(field: dict[str, Any]) -> str:
    field_type = resolve_field_type(field.get("type"))
    if field_type == FieldType.TEXTAREA:
        return "textarea"
    if field_type in NUMERIC_TYPES:
        return "number"
    if field_type == FieldType.EMAIL:
        return "email"
    if field_type == FieldType.PHONE:
        return "tel"
    if field_type == FieldType.DATE:
        return "date"
    if field_type == FieldType.DATETIME:
        return "datetime-local"
    if field_type == FieldType.SELECT:
        return "select"
    if field_type == FieldType.RADIO:
        return "radio"
    if field_type == FieldType.CHECKBOX:
        return "checkbox-group" if is_multi_checkbox(field) else "checkbox"
    if field_type == FieldType.FILE:
        return "file"
    if field_type == FieldType.LOCATION:
        return "address"
    return "text"


def value_shape(field: dict[str, Any]) -> str:
    field_type = resolve_field_type(field.get("type"))
    if field_type in NUMERIC_TYPES:
        return "number"
    if field_type == FieldType.CHECKBOX:
        return "array" if is_multi_checkbox(field) else "boolean"
    if field_type == FieldType.FILE:
        return "reference"
    if field_type == FieldType.LOCATION:
        return "object"
    return "string"


def build_property(field: dict[str, Any]) -> dict[str, Any]:
    """JSON Schema fragment describing the normalized value of one field."""
    field_type = resolve_field_type(field.get("type"))
    required = bool(field.get("required"))
    options = list(field.get("options") or [])

    if field_type in NUMERIC_TYPES:
        prop: dict[str, Any] = {"type": "number"}
        if field_type == FieldType.CURRENCY:
            prop["minimum"] = currency_minimum(field)
        elif field.get("min") is not None:
            prop["minimum"] = field["min"]
        if field.get("max") is not None:
            prop["maximum"] = field["max"]
    elif field_type == FieldType.CHECKBOX:
        if is_multi_checkbox(field):
            prop = {"type": "array", "items": {"type": "string", "enum": options}}
            if required:
                prop["minItems"] = 1
        else:
            prop = {"type": "boolean"}
            if required:
                prop["const"] = True
    elif field_type in {FieldType.SELECT, FieldType.RADIO}:
        prop = {"type": "string", "enum": options}
    elif field_type == FieldType.LOCATION:
        address: dict[str, Any] = {"type": "string"}
        if required:
            address["minLength"] = 1
        prop = {"type": "object", "properties": {"address": address}}
        if required:
            prop["required"] = ["address"]
    elif field_type == FieldType.FILE:
        prop = {"type": ["string", "object"], "x-field-type": "file"}
    elif field_type == FieldType.DATE:
        prop = {"type": "string", "format": "date"}
    elif field_type == FieldType.DATETIME:
        prop = {"type": "string", "format": "date-time"}
    else:
        prop = {"type": "string"}
        if field_type == FieldType.EMAIL:
            prop["format"] = "email"
        if required:
            prop["minLength"] = 1

    prop["title"] = field.get("label") or field.get("id", "")
    if field.get("helpText"):
        prop["description"] = field["helpText"]
    if field.get("placeholder"):
        prop["x-placeholder"] = field["placeholder"]
    prop["x-input-type"] = field_input_type(field)
    return prop


def schema_from_fields(fields: list[dict[str, Any]]) -> dict[str, Any]:
    properties: dict[str, Any] = {}
    required: list[str] = []
    for field in fields:
        properties[field["id"]] = build_property(field)
        if field.get("required"):
            required.append(field["id"])
    schema: dict[str, Any] = {
        "type": "object",
        "properties": properties,
        "x-field-order": [field["id"] for field in fields],
    }
    if required:
        schema["required"] = required
    return schema


def field_contract(field: dict[str, Any]) -> dict[str, Any]:
    """Everything a renderer needs to draw and re-validate one field."""
    field_type = resolve_field_type(field.get("type"))
    constraints: dict[str, Any] = {}
    if field_type in CHOICE_TYPES and field.get("options"):
        constraints["options"] = list(field["options"])
    if field_type == FieldType.CURRENCY:
        constraints["min"] = currency_minimum(field)
    elif field_type == FieldType.NUMBER and field.get("min") is not None:
        constraints["min"] = field["min"]
    if field_type in NUMERIC_TYPES and field.get("max") is not None:
        constraints["max"] = field["max"]
    return {
        "id": field["id"],
        "type": field.get("type"),
        "resolvedType": field_type.value,
        "label": field.get("label", ""),
        "required": bool(field.get("required")),
        "inputType": field_input_type(field),
        "valueShape": value_shape(field),
        "constraints": constraints,
        "schema": build_property(field),
    }
