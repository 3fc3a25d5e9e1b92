from __future__ import annotations

from jsonschema import Draft7Validator

from formdesk.field_types import (
    FIELD_PALETTE,
    FieldType,
    build_property,
    field_contract,
    field_input_type,
    is_multi_checkbox,
    resolve_field_type,
    schema_from_fields,
)
from formdesk.validation import validate_submission


def test_resolve_field_type_falls_back_to_text():
    assert resolve_field_type("currency") == FieldType.CURRENCY
    assert resolve_field_type("Select") == FieldType.SELECT
    assert resolve_field_type("signature") == FieldType.TEXT
    assert resolve_field_type(None) == FieldType.TEXT


def test_palette_covers_every_type():
    assert {entry["type"] for entry in FIELD_PALETTE} == {t.value for t in FieldType}


def test_checkbox_variants():
    single = {"id": "a", "type": "checkbox", "label": "Agree", "required": True, "options": ["Yes"]}
    multi = {"id": "b", "type": "checkbox", "label": "Pick", "required": False, "options": ["A", "B"]}
    assert not is_multi_checkbox(single)
    assert is_multi_checkbox(multi)
    assert field_input_type(single) == "checkbox"
    assert field_input_type(multi) == "checkbox-group"
    assert build_property(single)["const"] is True
    assert build_property(multi)["items"]["enum"] == ["A", "B"]


def test_currency_contract_uses_floor_unless_min_set():
    field = {"id": "c", "type": "currency", "label": "Cost", "required": True}
    assert field_contract(field)["constraints"] == {"min": 100}
    assert build_property({**field, "min": 5, "max": 50})["minimum"] == 5
    assert build_property({**field, "min": 5, "max": 50})["maximum"] == 50


def test_contract_for_unknown_type_is_text():
    contract = field_contract({"id": "s", "type": "signature", "label": "Sig", "required": False})
    assert contract["type"] == "signature"
    assert contract["resolvedType"] == "text"
    assert contract["inputType"] == "text"
    assert contract["valueShape"] == "string"


def test_location_contract():
    contract = field_contract({"id": "l", "type": "location", "label": "Site", "required": True})
    assert contract["valueShape"] == "object"
    assert contract["schema"]["required"] == ["address"]


def test_schema_from_fields_keeps_order_and_required(fields):
    schema = schema_from_fields(fields)
    assert schema["x-field-order"] == [field["id"] for field in fields]
    assert schema["required"] == ["name", "plan"]
    assert schema["properties"]["plan"]["enum"] == ["A", "B"]
    assert schema["properties"]["name"]["title"] == "Name"


def test_normalized_submission_satisfies_client_schema(fields):
    normalized, issues = validate_submission(
        fields,
        {"name": "Asha", "plan": "B", "extras": ["C"], "amount": "120", "count": "2"},
    )
    assert issues == []
    errors = list(Draft7Validator(schema_from_fields(fields)).iter_errors(normalized["data"]))
    assert errors == []
