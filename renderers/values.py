"""
Placeholder values for request skeletons, SDK snippets and mock payloads.

Field-name heuristics win over the declared type: a string field called
"email" gets a sample address, "price" gets a number.
"""

from typing import Any, Dict, List, Tuple

from contract.params import json_type

SAMPLE_ID = "550e8400-e29b-41d4-a716-446655440000"
SAMPLE_TIMESTAMP = "2024-01-01T00:00:00Z"

NAME_HINTS: List[Tuple[Tuple[str, ...], Any]] = [
    (("email",), "user@example.com"),
    (("name",), "John Doe"),
    (("phone",), "+1-555-123-4567"),
    (("url", "link"), "https://example.com"),
    (("date",), SAMPLE_TIMESTAMP),
    (("id",), SAMPLE_ID),
    (("password",), "********"),
    (("price", "amount"), 99.99),
    (("count", "quantity"), 10),
    (("status",), "active"),
    (("enabled", "active"), True),
]

TYPE_DEFAULTS: Dict[str, Any] = {
    "string": "sample_string",
    "integer": 42,
    "number": 42,
    "boolean": True,
    "array": [],
    "object": {},
    "file": "@/path/to/file",
}

JSON_TYPES = set(TYPE_DEFAULTS)


def schema_type(type_name: str) -> str:
    """JSON-schema type of a parameter type, mapping source-language names when needed."""
    if type_name in JSON_TYPES:
        return type_name
    if type_name and type_name.lower() in ("date", "datetime"):
        return "string"
    return json_type(type_name)


def placeholder_value(type_name: str, name: str) -> Any:
    lower_name = (name or "").lower()
    for keys, value in NAME_HINTS:
        if any(key in lower_name for key in keys):
            return value

    if (type_name or "").lower() in ("date", "datetime"):
        return SAMPLE_TIMESTAMP
    default = TYPE_DEFAULTS[schema_type(type_name or "string")]
    return type(default)() if isinstance(default, (list, dict)) else default
