from __future__ import annotations

from formdesk.schema import (
    append_field,
    find_field,
    parse_fields,
    parse_options_text,
    remove_field,
    serialize_fields,
    update_field,
)


def test_parse_options_text_drops_blank_lines():
    assert parse_options_text("Option 1\n\nOption 2\n  \nOption 3") == [
        "Option 1",
        "Option 2",
        "Option 3",
    ]
    assert parse_options_text("  A  \r\nB") == ["A", "B"]
    assert parse_options_text("") == []


def test_append_field_always_generates_a_fresh_id():
    fields = [{"id": "field_1", "type": "text", "label": "A", "required": False}]
    fields, added = append_field(fields, {"id": "field_1", "type": "text", "label": "B", "required": False})
    assert added["id"] != "field_1"
    assert len({field["id"] for field in fields}) == 2
    assert fields[-1] is added


def test_update_field_merges_patch_and_keeps_id():
    fields = [{"id": "f", "type": "text", "label": "Old", "required": False, "placeholder": "p"}]
    updated = update_field(fields, "f", {"label": "New", "id": "other"})
    assert updated[0] == {"id": "f", "type": "text", "label": "New", "required": False, "placeholder": "p"}
    assert fields[0]["label"] == "Old"


def test_update_and_remove_unknown_id_are_no_ops():
    fields = [{"id": "f", "type": "text", "label": "A", "required": False}]
    assert update_field(fields, "missing", {"label": "B"}) == fields
    assert remove_field(fields, "missing") == fields
    assert remove_field(fields, "f") == []
    assert find_field(fields, "missing") is None


def test_parse_fields_round_trip(fields):
    parsed, errors = parse_fields(fields)
    assert errors == []
    again, errors = parse_fields(serialize_fields(parsed))
    assert errors == []
    assert again == parsed
    assert [field["id"] for field in again] == ["name", "email", "plan", "extras", "amount", "count"]
    assert again[5]["min"] == 0 and again[5]["max"] == 10


def test_parse_fields_accepts_json_text():
    parsed, errors = parse_fields('[{"id": "a", "type": "date", "label": "Day", "required": true}]')
    assert errors == []
    assert parsed == [{"id": "a", "type": "date", "label": "Day", "required": True}]


def test_parse_fields_wire_contract_errors():
    _, errors = parse_fields([{"id": "a", "type": "text", "label": "A"}])
    assert errors and errors[0].startswith("Field 1:")
    _, errors = parse_fields("{not json")
    assert errors == ["Could not parse field definitions"]


def test_parse_fields_semantic_errors():
    raw = [
        {"id": "a", "type": "select", "label": "Pick", "required": False, "options": []},
        {"id": "a", "type": "text", "label": "Dup", "required": False},
        {"id": "n", "type": "number", "label": "N", "required": False, "min": 5, "max": 1},
    ]
    _, errors = parse_fields(raw)
    assert errors == [
        "Field 1: select fields need at least one option",
        "Field 2: duplicate field id (a)",
        "Field 3: min must not exceed max",
    ]


def test_parse_fields_drops_attributes_that_do_not_apply():
    parsed, errors = parse_fields(
        [
            {"id": "t", "type": "text", "label": "T", "required": False, "options": ["x"], "min": 1},
            {"id": "s", "type": "signature", "label": "S", "required": False, "options": ["x"]},
        ]
    )
    assert errors == []
    assert "options" not in parsed[0] and "min" not in parsed[0]
    assert parsed[1]["options"] == ["x"]
