import json

import pytest

from tm1ctl.output import (
    OutputError,
    format_collection,
    format_entity,
    format_map,
    format_output,
    render_json,
    render_table,
    stringify,
)


def test_stringify_scalars():
    assert stringify("abc") == "abc"
    assert stringify(True) == "true"
    assert stringify(3.0) == "3"
    assert stringify(None) == "null"
    assert stringify(42) == str(42)


def test_stringify_structures_are_compact_json():
    value = {"b": 1, "a": [1, 2], "c": {"d": "e"}}
    text = stringify(value)
    assert " " not in text
    assert json.loads(text) == value
    assert text.index('"a"') < text.index('"b"') < text.index('"c"')


def test_render_json_round_trip():
    data = {"Name": "x", "Items": [1, 2, {"k": "v"}]}
    text = render_json(data)
    assert text.endswith("\n")
    assert json.loads(text) == data
    assert text.splitlines()[1].startswith('  "')


def test_render_table_empty():
    assert render_table([]) == "No data.\n"


def test_render_table_shape():
    rows = [{"Name": "alpha", "Size": 5}, {"Name": "b", "Size": 12345}]
    text = render_table(rows)
    lines = text.rstrip("\n").split("\n")
    assert len(lines) == 2 + 1 + 1 + len(rows) + 1 - 1
    assert len({len(line) for line in lines}) == 1
    assert lines[0].startswith("+") and lines[0] == lines[2] == lines[-1]
    assert "NAME" in lines[1] and "SIZE" in lines[1]
    assert "alpha" in lines[3] and "12345" in lines[4]


def test_render_table_single_object_matches_list():
    obj = {"Name": "x"}
    assert render_table(obj) == render_table([obj])


def test_render_table_unsupported_type():
    with pytest.raises(OutputError, match="unsupported data type"):
        render_table("text")


def test_format_output_invalid_format():
    with pytest.raises(OutputError, match="invalid output format specified: xml"):
        format_output({"a": 1}, "xml")


def test_format_output_dispatch():
    data = [{"Name": "x"}]
    assert format_output(data, "json") == render_json(data)
    assert format_output(data, "table") == render_table(data)


def test_format_entity_removes_context():
    data = {"@odata.context": "$metadata#Instances/$entity", "Name": "x"}
    result = json.loads(format_entity(data, "json"))
    assert result == {"Name": "x"}
    assert "@odata.context" in data


def test_format_entity_requires_object():
    with pytest.raises(OutputError, match="expected object at top level"):
        format_entity([1], "json")


def test_format_collection_extracts_value():
    data = {"@odata.context": "$metadata#Instances", "value": [{"Name": "a"}, {"Name": "b"}]}
    assert json.loads(format_collection(data, "json")) == data["value"]


def test_format_collection_errors():
    with pytest.raises(OutputError, match="'value' not found in response"):
        format_collection({"Name": "a"}, "json")
    with pytest.raises(OutputError, match="to extract 'value'"):
        format_collection([], "json")


def test_format_map_is_json():
    data = {"local": {"service_root_url": "http://localhost:4444"}}
    assert format_map(data, "Name") == render_json(data)
    assert json.loads(format_map(data, "Name")) == data