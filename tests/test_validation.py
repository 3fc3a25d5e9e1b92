from __future__ import annotations

import pytest

from formdesk.errors import (
    BusinessRuleViolation,
    InvalidFieldValue,
    InvalidOptionValue,
    MalformedNumeric,
    MissingRequiredFields,
)
from formdesk.validation import parse_integer, parse_number, resolve_alias, validate_submission


def kinds(issues):
    return [type(issue) for issue in issues]


def test_missing_required_fields_lists_every_label_in_schema_order(fields):
    normalized, issues = validate_submission(fields, {})
    assert normalized is None
    assert kinds(issues) == [MissingRequiredFields]
    assert issues[0].labels == ["Name", "Plan"]
    assert issues[0].message == "Please fill in required fields: Name, Plan"


def test_whitespace_counts_as_missing(fields):
    _, issues = validate_submission(fields, {"name": "   ", "plan": "A"})
    assert issues[0].labels == ["Name"]


@pytest.mark.parametrize("value", [99, "99", 99.99])
def test_collection_plan_below_minimum(fields, value):
    _, issues = validate_submission(fields, {"name": "x", "plan": "A", "collectionPlan": value})
    assert kinds(issues) == [BusinessRuleViolation]
    assert issues[0].minimum == 100


@pytest.mark.parametrize("value, expected", [(100, 100), ("100", 100), ("100.01", 100.01)])
def test_collection_plan_at_or_above_minimum(fields, value, expected):
    normalized, issues = validate_submission(
        fields, {"name": "x", "plan": "A", "collection_plan": value}
    )
    assert issues == []
    assert normalized["collectionPlan"] == expected


def test_collection_plan_reported_alongside_missing_fields(fields):
    _, issues = validate_submission(fields, {"collectionPlan": "20"})
    assert kinds(issues) == [MissingRequiredFields, BusinessRuleViolation]


def test_collection_plan_snake_case_alias_wins(fields):
    normalized, issues = validate_submission(
        fields,
        {"name": "x", "plan": "A", "collection_plan": "150", "collectionPlan": "50"},
    )
    assert issues == []
    assert normalized["collectionPlan"] == 150


def test_malformed_collection_plan(fields):
    _, issues = validate_submission(fields, {"name": "x", "plan": "A", "collectionPlan": "lots"})
    assert kinds(issues) == [MalformedNumeric]


def test_water_plan_absent_and_coerced(fields):
    normalized, _ = validate_submission(fields, {"name": "x", "plan": "A"})
    assert normalized["waterPlan"] is None
    assert normalized["collectionPlan"] is None

    normalized, _ = validate_submission(fields, {"name": "x", "plan": "A", "water_plan": "12"})
    assert normalized["waterPlan"] == 12
    assert isinstance(normalized["waterPlan"], int)


def test_water_plan_must_be_whole_number(fields):
    _, issues = validate_submission(fields, {"name": "x", "plan": "A", "waterPlan": "1.5"})
    assert kinds(issues) == [MalformedNumeric]


def test_select_value_outside_options(fields):
    _, issues = validate_submission(fields, {"name": "x", "plan": "C"})
    assert kinds(issues) == [InvalidOptionValue]
    assert issues[0].field_id == "plan"
    assert issues[0].options == ["A", "B"]


def test_multi_checkbox_keeps_submitted_order(fields):
    normalized, issues = validate_submission(
        fields, {"name": "x", "plan": "B", "extras": ["A", "C"]}
    )
    assert issues == []
    assert normalized["data"]["extras"] == ["A", "C"]


def test_multi_checkbox_rejects_unknown_option(fields):
    _, issues = validate_submission(fields, {"name": "x", "plan": "B", "extras": ["A", "Z"]})
    assert kinds(issues) == [InvalidOptionValue]
    assert issues[0].value == "Z"


def test_numeric_fields_are_coerced(fields):
    normalized, issues = validate_submission(
        fields, {"name": "x", "plan": "A", "count": "4", "amount": "250.50"}
    )
    assert issues == []
    assert normalized["data"]["count"] == 4
    assert normalized["data"]["amount"] == 250.5
    assert normalized["data"]["name"] == "x"


def test_number_bounds_and_parsing(fields):
    _, issues = validate_submission(fields, {"name": "x", "plan": "A", "count": "11"})
    assert kinds(issues) == [InvalidFieldValue]
    _, issues = validate_submission(fields, {"name": "x", "plan": "A", "count": "four"})
    assert kinds(issues) == [MalformedNumeric]


def test_currency_floor_and_custom_minimum():
    floor = [{"id": "c", "type": "currency", "label": "Cost", "required": True}]
    _, issues = validate_submission(floor, {"c": "50"})
    assert kinds(issues) == [BusinessRuleViolation]

    custom = [{"id": "c", "type": "currency", "label": "Cost", "required": True, "min": 10}]
    normalized, issues = validate_submission(custom, {"c": "50"})
    assert issues == []
    assert normalized["data"]["c"] == 50


def test_email_and_date_formats():
    schema = [
        {"id": "e", "type": "email", "label": "Email", "required": False},
        {"id": "d", "type": "date", "label": "Day", "required": False},
        {"id": "t", "type": "datetime", "label": "When", "required": False},
    ]
    _, issues = validate_submission(schema, {"e": "nope", "d": "2024-02-30", "t": "soon"})
    assert kinds(issues) == [InvalidFieldValue] * 3

    normalized, issues = validate_submission(
        schema, {"e": "a@b.co", "d": "2024-02-29", "t": "2024-02-29T10:30"}
    )
    assert issues == []
    assert normalized["data"]["d"] == "2024-02-29"


def test_single_checkbox_required_means_checked():
    schema = [{"id": "agree", "type": "checkbox", "label": "Agree", "required": True}]
    _, issues = validate_submission(schema, {"agree": False})
    assert issues[0].labels == ["Agree"]
    normalized, issues = validate_submission(schema, {"agree": True})
    assert issues == []
    assert normalized["data"]["agree"] is True


def test_location_and_file_presence():
    schema = [
        {"id": "where", "type": "location", "label": "Where", "required": True},
        {"id": "doc", "type": "file", "label": "Doc", "required": True},
    ]
    _, issues = validate_submission(schema, {"where": {"address": ""}, "doc": None})
    assert issues[0].labels == ["Where", "Doc"]
    _, issues = validate_submission(schema, {"where": {"address": "1 Main St"}, "doc": "upload-1"})
    assert issues == []


def test_unknown_type_uses_text_contract():
    schema = [{"id": "sig", "type": "signature", "label": "Signature", "required": True}]
    _, issues = validate_submission(schema, {"sig": ""})
    assert issues[0].labels == ["Signature"]
    _, issues = validate_submission(schema, {"sig": "J. Doe"})
    assert issues == []


def test_validation_is_repeatable(fields):
    values = {"name": "x", "plan": "A", "count": "3"}
    assert validate_submission(fields, values) == validate_submission(fields, values)
    assert values["count"] == "3"


def test_resolve_alias_skips_blank_values():
    assert resolve_alias({"a": "", "b": 5}, ("a", "b")) == 5
    assert resolve_alias({"a": 0, "b": 5}, ("a", "b")) == 0
    assert resolve_alias({}, ("a", "b")) is None


def test_number_parsers():
    assert parse_number("12") == 12
    assert parse_number(" 1.5 ") == 1.5
    assert parse_number(True) is None
    assert parse_number("nan") is None
    assert parse_integer(3.0) == 3
    assert parse_integer("3.2") is None


@pytest.mark.parametrize("count, expected", [("0", 0), ("10", 10), ("-0", 0), (10.0, 10.0)])
def test_number_bounds_are_inclusive(fields, count, expected):
    normalized, issues = validate_submission(fields, {"name": "x", "plan": "A", "count": count})
    assert issues == []
    assert normalized["data"]["count"] == expected


@pytest.mark.parametrize("count", ["-1", "10.5"])
def test_number_just_outside_bounds(fields, count):
    _, issues = validate_submission(fields, {"name": "x", "plan": "A", "count": count})
    assert kinds(issues) == [InvalidFieldValue]


@pytest.mark.parametrize("amount, ok", [("100", True), (100, True), ("99.99", False)])
def test_currency_floor_boundary(fields, amount, ok):
    _, issues = validate_submission(fields, {"name": "x", "plan": "A", "amount": amount})
    assert kinds(issues) == ([] if ok else [BusinessRuleViolation])


@pytest.mark.parametrize(
    "phone, ok",
    [
        ("+1 (555) 010-2030", True),
        ("555.010.2030 #12", True),
        ("98765*43210", True),
        ("call me", False),
        ("555-CALL", False),
        ("+-()", False),
    ],
)
def test_phone_accepts_digits_and_dial_symbols(phone, ok):
    schema = [{"id": "tel", "type": "phone", "label": "Phone", "required": False}]
    _, issues = validate_submission(schema, {"tel": phone})
    assert kinds(issues) == ([] if ok else [InvalidFieldValue])


@pytest.mark.parametrize("text", ["1_000", "1__0", "0x10", "1e", "١٢", "inf", "1e999", ""])
def test_parse_number_rejects_non_decimal_text(text):
    assert parse_number(text) is None


def test_digit_separators_are_malformed(fields):
    _, issues = validate_submission(
        fields, {"name": "x", "plan": "A", "count": "1_0", "collectionPlan": "1_000"}
    )
    assert kinds(issues) == [MalformedNumeric, MalformedNumeric]


def test_parse_number_accepts_signed_and_exponent_forms():
    assert parse_number("-3") == -3
    assert parse_number("+2.5") == 2.5
    assert parse_number(".5") == 0.5
    assert parse_number("1e3") == 1000.0
