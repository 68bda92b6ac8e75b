from __future__ import annotations

import json
from functools import lru_cache
from pathlib import Path
from typing import Any


def _type_name(v: Any) -> str:
    if v is None:
        return "null"
    if isinstance(v, bool):
        return "boolean"
    if isinstance(v, (int, float)):
        return "number"
    if isinstance(v, str):
        return "string"
    if isinstance(v, list):
        return "array"
    if isinstance(v, dict):
        return "object"
    return type(v).__name__


@lru_cache(maxsize=None)
def load_schema(name: str) -> dict[str, Any]:
    """Load a bundled schema from `stripeconf/schemas/<name>`."""

    path = Path(__file__).resolve().parents[1] / "schemas" / name
    return json.loads(path.read_text(encoding="utf-8"))


def validate_json_schema(obj: Any, schema: dict[str, Any], *, path: str = "$") -> list[str]:
    """Validate `obj` against the subset of JSON Schema used by stripeconf schemas.

    Supported keywords: type, properties, required, additionalProperties, items,
    enum, minLength, maxLength.

    Returns a list of human-readable errors (empty when valid).
    """

    if not isinstance(schema, dict):
        return [f"{path}: schema is not an object"]

    if "enum" in schema:
        enum = schema.get("enum")
        if isinstance(enum, list) and obj not in enum:
            return [f"{path}: expected one of {enum}, got {_type_name(obj)}={obj!r}"]

    t = schema.get("type")
    if t == "object":
        if not isinstance(obj, dict):
            return [f"{path}: expected object, got {_type_name(obj)}"]
        errors: list[str] = []
        props = schema.get("properties") if isinstance(schema.get("properties"), dict) else {}
        for k in schema.get("required") or []:
            if k not in obj:
                errors.append(f"{path}: missing required key {k!r}")
        if schema.get("additionalProperties", True) is False:
            for k in obj.keys():
                if k not in props:
                    errors.append(f"{path}: unexpected key {k!r}")
        for k, sub_schema in props.items():
            if k in obj:
                errors.extend(validate_json_schema(obj[k], sub_schema, path=f"{path}.{k}"))
        return errors

    if t == "array":
        if not isinstance(obj, list):
            return [f"{path}: expected array, got {_type_name(obj)}"]
        items = schema.get("items")
        errors = []
        if isinstance(items, dict):
            for i, item in enumerate(obj):
                errors.extend(validate_json_schema(item, items, path=f"{path}[{i}]"))
        return errors

    if t == "string":
        if not isinstance(obj, str):
            return [f"{path}: expected string, got {_type_name(obj)}"]
        mn = schema.get("minLength")
        mx = schema.get("maxLength")
        if isinstance(mn, int) and len(obj) < mn:
            return [f"{path}: expected length >= {mn}, got {len(obj)}"]
        if isinstance(mx, int) and len(obj) > mx:
            return [f"{path}: expected length <= {mx}, got {len(obj)}"]
        return []

    # Untyped schemas accept anything (we only ship typed schemas).
    return []
