"""Type lookup tables for generated code.

``map_type`` turns an operator-facing logical type into the Mongoose schema
type token written into models.  ``html_input_type`` turns a schema type
token read back from a model into the ``<input type>`` used by views.  Both
are total: unknown values fall back to a default instead of raising.
"""

from __future__ import annotations

DEFAULT_STORAGE_TYPE = "String"
DEFAULT_INPUT_TYPE = "text"

_STORAGE_TYPE_MAP: dict[str, str] = {
    "string": "String",
    "number": "Number",
    "boolean": "Boolean",
    "date": "Date",
    "text": "String",
}

_INPUT_TYPE_MAP: dict[str, str] = {
    "String": "text",
    "Number": "number",
    "Date": "date",
    "Boolean": "checkbox",
    "Array": "array",
}


def map_type(logical_type: str | None) -> str:
    """Return the Mongoose type token for *logical_type* (``String`` if unknown)."""
    if not logical_type:
        return DEFAULT_STORAGE_TYPE
    key = str(getattr(logical_type, "value", logical_type)).strip().lower()
    return _STORAGE_TYPE_MAP.get(key, DEFAULT_STORAGE_TYPE)


def html_input_type(storage_type: str | None) -> str:
    """Return the HTML input type for a Mongoose type token (``text`` if unknown)."""
    if not storage_type:
        return DEFAULT_INPUT_TYPE
    return _INPUT_TYPE_MAP.get(storage_type.strip(), DEFAULT_INPUT_TYPE)
