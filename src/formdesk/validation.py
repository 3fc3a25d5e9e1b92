from __future__ import annotations

import math
import re
from datetime import date, datetime
from typing import Any, Iterable

from formdesk.config import COLLECTION_PLAN_KEYS, COLLECTION_PLAN_MIN, WATER_PLAN_KEYS
from formdesk.errors import (
    BusinessRuleViolation,
    InvalidFieldValue,
    InvalidOptionValue,
    MalformedNumeric,
    MissingRequiredFields,
    ValidationIssue,
)
from formdesk.field_types import (
    FieldType,
    currency_minimum,
    is_multi_checkbox,
    resolve_field_type,
)
from formdesk.utils import is_blank, parse_bool

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
PHONE_PATTERN = re.compile(r"^[\d\s()+\-./#*]+$")
NUMBER_PATTERN = re.compile(r"^[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?$", re.ASCII)


def resolve_alias(values: dict[str, Any], keys: Iterable[str]) -> Any:
    """Return the first non-blank value found under ``keys``, in order."""
    for key in keys:
        value = values.get(key)
        if not is_blank(value):
            return value
    return None


def parse_number(value: Any) -> int | float | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = value
    elif isinstance(value, str):
        text = value.strip()
        if not NUMBER_PATTERN.match(text):
            return None
        try:
            number = int(text)
        except ValueError:
            number = float(text)
    else:
        return None
    if isinstance(number, float) and not math.isfinite(number):
        return None
    return number


def parse_integer(value: Any) -> int | None:
    number = parse_number(value)
    if number is None:
        return None
    if isinstance(number, float):
        if not number.is_integer():
            return None
        return int(number)
    return number


def has_value(field: dict[str, Any], value: Any) -> bool:
    field_type = resolve_field_type(field.get("type"))
    if field_type == FieldType.CHECKBOX:
        if is_multi_checkbox(field):
            return isinstance(value, list) and len(value) > 0
        return value is True or (isinstance(value, str) and parse_bool(value))
    if field_type == FieldType.LOCATION:
        if not isinstance(value, dict):
            return False
        address = value.get("address")
        return isinstance(address, str) and bool(address.strip())
    if field_type == FieldType.FILE:
        if isinstance(value, (dict, list)):
            return bool(value)
        return not is_blank(value)
    return not is_blank(value)


def _check_number(field: dict[str, Any], value: Any, issues: list[ValidationIssue]) -> Any:
    label = field.get("label") or field["id"]
    number = parse_number(value)
    if number is None:
        issues.append(MalformedNumeric(label, value, field["id"]))
        return value

    if resolve_field_type(field.get("type")) == FieldType.CURRENCY:
        minimum = currency_minimum(field)
        if number < minimum:
            issues.append(
                BusinessRuleViolation(
                    f"{label} must be at least {minimum}",
                    minimum,
                    number,
                    field["id"],
                )
            )
    elif field.get("min") is not None and number < field["min"]:
        issues.append(InvalidFieldValue(f"{label} must be at least {field['min']}", field["id"]))
    if field.get("max") is not None and number > field["max"]:
        issues.append(InvalidFieldValue(f"{label} must be at most {field['max']}", field["id"]))
    return number


def _check_value(field: dict[str, Any], value: Any, issues: list[ValidationIssue]) -> Any:
    """Type-specific checks for a value that was supplied; returns the normalized value."""
    field_type = resolve_field_type(field.get("type"))
    label = field.get("label") or field["id"]
    field_id = field["id"]
    options = list(field.get("options") or [])

    if field_type in {FieldType.NUMBER, FieldType.CURRENCY}:
        return _check_number(field, value, issues)

    if field_type == FieldType.EMAIL:
        if not isinstance(value, str) or not EMAIL_PATTERN.match(value.strip()):
            issues.append(InvalidFieldValue(f"{label}: enter a valid email address", field_id))
    elif field_type == FieldType.PHONE:
        text = str(value).strip()
        if not PHONE_PATTERN.match(text) or not any(ch.isdigit() for ch in text):
            issues.append(InvalidFieldValue(f"{label}: enter a valid phone number", field_id))
    elif field_type == FieldType.DATE:
        try:
            date.fromisoformat(str(value).strip())
        except ValueError:
            issues.append(InvalidFieldValue(f"{label}: enter a valid date", field_id))
    elif field_type == FieldType.DATETIME:
        try:
            datetime.fromisoformat(str(value).strip())
        except ValueError:
            issues.append(InvalidFieldValue(f"{label}: enter a valid date and time", field_id))
    elif field_type in {FieldType.SELECT, FieldType.RADIO}:
        if value not in options:
            issues.append(InvalidOptionValue(label, value, options, field_id))
    elif field_type == FieldType.CHECKBOX and is_multi_checkbox(field):
        if not isinstance(value, list):
            issues.append(InvalidFieldValue(f"{label}: expected a list of options", field_id))
        else:
            for item in value:
                if item not in options:
                    issues.append(InvalidOptionValue(label, item, options, field_id))
    elif field_type == FieldType.LOCATION:
        if not isinstance(value, dict) or not isinstance(value.get("address", ""), str):
            issues.append(InvalidFieldValue(f"{label}: expected an address", field_id))
    return value


def _is_supplied(field: dict[str, Any], value: Any) -> bool:
    field_type = resolve_field_type(field.get("type"))
    if field_type in {FieldType.CHECKBOX, FieldType.LOCATION}:
        return value is not None
    return not is_blank(value)


def validate_submission(
    fields: list[dict[str, Any]], raw_values: dict[str, Any]
) -> tuple[dict[str, Any] | None, list[ValidationIssue]]:
    """Validate raw values against a field list.

    Returns ``(normalized, [])`` on success or ``(None, issues)`` with every
    problem found in a single pass.
    """
    issues: list[ValidationIssue] = []

    missing = [
        field.get("label") or field["id"]
        for field in fields
        if field.get("required") and not has_value(field, raw_values.get(field["id"]))
    ]
    if missing:
        issues.append(MissingRequiredFields(missing))

    data = dict(raw_values)
    for field in fields:
        field_id = field["id"]
        value = raw_values.get(field_id)
        if field.get("required") and not has_value(field, value):
            continue
        if not _is_supplied(field, value):
            continue
        data[field_id] = _check_value(field, value, issues)

    collection_plan = None
    raw_collection_plan = resolve_alias(raw_values, COLLECTION_PLAN_KEYS)
    if raw_collection_plan is not None:
        collection_plan = parse_number(raw_collection_plan)
        if collection_plan is None:
            issues.append(MalformedNumeric("Collection plan", raw_collection_plan))
        elif collection_plan < COLLECTION_PLAN_MIN:
            issues.append(
                BusinessRuleViolation(
                    f"Collection plan must be at least ₹{COLLECTION_PLAN_MIN}",
                    COLLECTION_PLAN_MIN,
                    collection_plan,
                )
            )

    water_plan = None
    raw_water_plan = resolve_alias(raw_values, WATER_PLAN_KEYS)
    if raw_water_plan is not None:
        water_plan = parse_integer(raw_water_plan)
        if water_plan is None:
            issues.append(MalformedNumeric("Water plan", raw_water_plan))

    if issues:
        return None, issues
    return {
        "data": data,
        "collectionPlan": collection_plan,
        "waterPlan": water_plan,
    }, []
