"""
Template resolution for workflow configs.

Replaces {{path.to.value}} placeholders with values looked up in a context
dict. Resolution is a single pass: values substituted into a string are never
scanned again, and a missing path resolves to the empty string.
"""

from __future__ import annotations

import json
import re
from collections.abc import Mapping
from typing import Any

# Template pattern: {{data.products.0.name}}
_TEMPLATE_RE = re.compile(r"\{\{([^}]+)\}\}")


def get_nested_value(obj: Any, path: str | None) -> Any:
    """
    Look up a dot-separated path in nested mappings and lists.

    Mapping levels are traversed by key, list levels by integer index.
    Returns None when any segment is missing.
    """
    if not path or obj is None:
        return None

    current = obj
    for key in path.split("."):
        if current is None:
            return None
        if isinstance(current, Mapping):
            current = current.get(key)
        elif isinstance(current, (list, tuple)):
            if not key.lstrip("-").isdigit():
                return None
            idx = int(key)
            if -len(current) <= idx < len(current):
                current = current[idx]
            else:
                return None
        else:
            return None
    return current


def set_nested_value(obj: dict[str, Any], path: str | None, value: Any) -> None:
    """Set a value at a dot-separated path, creating intermediate dicts."""
    if not path or obj is None:
        return

    keys = path.split(".")
    current = obj
    for key in keys[:-1]:
        if not isinstance(current.get(key), dict):
            current[key] = {}
        current = current[key]
    current[keys[-1]] = value


def to_template_string(value: Any) -> str:
    """String form used when a value is substituted into a template."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (dict, list, tuple)):
        return json.dumps(value, ensure_ascii=False, default=str)
    return str(value)


def resolve_template_string(template: str, context: Mapping[str, Any]) -> str:
    """Replace every {{path}} placeholder in a string."""
    if not isinstance(template, str):
        return template

    def replacer(m: re.Match) -> str:
        return to_template_string(get_nested_value(context, m.group(1).strip()))

    return _TEMPLATE_RE.sub(replacer, template)


def resolve_template(value: Any, context: Mapping[str, Any] | None) -> Any:
    """Deep-resolve placeholders in strings, lists and dicts."""
    context = context or {}
    if isinstance(value, str):
        return resolve_template_string(value, context)
    if isinstance(value, list):
        return [resolve_template(item, context) for item in value]
    if isinstance(value, tuple):
        return tuple(resolve_template(item, context) for item in value)
    if isinstance(value, Mapping):
        return {k: resolve_template(v, context) for k, v in value.items()}
    return value


def has_template_variables(value: Any) -> bool:
    return isinstance(value, str) and _TEMPLATE_RE.search(value) is not None


def extract_variable_names(template: Any) -> list[str]:
    """Return the trimmed placeholder paths in a template string."""
    if not isinstance(template, str):
        return []
    return [m.group(1).strip() for m in _TEMPLATE_RE.finditer(template)]
