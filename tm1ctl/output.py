"""Rendering of API responses and configuration data as tables or JSON."""

from __future__ import annotations

import json
import re
from typing import Any

_DECIMAL = re.compile(r"^-?(?:\d{1,3}(?:,\d{3})*|\d+)(?:\.\d+)?$")
_HTML_ESCAPES = {"<": "\\u003c", ">": "\\u003e", "&": "\\u0026", "\u2028": "\\u2028", "\u2029": "\\u2029"}


class OutputError(Exception):
    """Raised when data cannot be rendered in the requested form."""


def _format_float(value: float) -> str:
    if value != value:
        return "NaN"
    if value in (float("inf"), float("-inf")):
        return "+Inf" if value > 0 else "-Inf"
    if value.is_integer() and abs(value) < 1e21:
        return str(int(value))
    text = repr(value)
    if "e" in text:
        mantissa, exponent = text.split("e")
        exp = int(exponent)
        return f"{mantissa}e{'+' if exp >= 0 else '-'}{abs(exp):02d}"
    return text


def _normalise_numbers(data: Any) -> Any:
    if isinstance(data, float) and data.is_integer() and abs(data) < 1e21:
        return int(data)
    if isinstance(data, dict):
        return {key: _normalise_numbers(value) for key, value in data.items()}
    if isinstance(data, (list, tuple)):
        return [_normalise_numbers(item) for item in data]
    return data


def _dumps(data: Any, indent: int | None) -> str:
    separators = (",", ":") if indent is None else (",", ": ")
    text = json.dumps(
        _normalise_numbers(data),
        indent=indent,
        sort_keys=True,
        ensure_ascii=False,
        separators=separators,
        default=str,
    )
    for char, escaped in _HTML_ESCAPES.items():
        text = text.replace(char, escaped)
    return text


def stringify(value):
    """Return a compact textual form of a value for display."""
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        return _format_float(value)
    return _dumps(value, None)


def render_json(data):
    """Return data as JSON indented by two spaces, ending in a newline."""
    return _dumps(data, 2) + "\n"


def _title(name: str) -> str:
    title = name.replace("_", " ").replace(".", " ").strip()
    if not title and name:
        title = " "
    return title.upper()


def _center(text: str, width: int) -> str:
    gap = width - len(text)
    left = gap // 2
    return " " * left + text + " " * (gap - left)


def render_table(data):
    """Return an object, or a list of objects, as a bordered text table."""
    if isinstance(data, list):
        rows = data
    elif isinstance(data, dict):
        rows = [data]
    else:
        raise OutputError(f"unsupported data type: {type(data).__name__}")

    if not rows:
        return "No data.\n"
    if not all(isinstance(item, dict) for item in rows):
        raise OutputError("expected objects in table data")

    headers = sorted(rows[0])
    body = [[stringify(item.get(key)) for key in headers] for item in rows]
    titles = [_title(header) for header in headers]
    widths = [
        max([len(title)] + [len(row[column]) for row in body])
        for column, title in enumerate(titles)
    ]

    separator = "+" + "+".join("-" * (width + 2) for width in widths) + "+"

    def line(cells):
        return "| " + " | ".join(cells) + " |"

    lines = [separator, line(_center(t, w) for t, w in zip(titles, widths)), separator]
    for row in body:
        lines.append(
            line(
                cell.rjust(width) if _DECIMAL.match(cell) else cell.ljust(width)
                for cell, width in zip(row, widths)
            )
        )
    lines.append(separator)
    return "\n".join(lines) + "\n"


def format_output(data, output_format):
    """Render data in the given output format, 'table' or 'json'."""
    if output_format == "table":
        return render_table(data)
    if output_format == "json":
        return render_json(data)
    raise OutputError(f"invalid output format specified: {output_format}")


def format_entity(data, output_format):
    """Render a single entity, leaving out its '@odata.context' annotation."""
    if not isinstance(data, dict):
        raise OutputError("expected object at top level")
    entity = {key: value for key, value in data.items() if key != "@odata.context"}
    return format_output(entity, output_format)


def format_collection(data, output_format):
    """Render the 'value' collection of a response."""
    if not isinstance(data, dict):
        raise OutputError("expected object at top level to extract 'value'")
    if "value" not in data:
        raise OutputError("'value' not found in response")
    return format_output(data["value"], output_format)


def format_map(data, key_prop_name):
    """Render a keyed mapping; currently always as pretty JSON."""
    return render_json(data)