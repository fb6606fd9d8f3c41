"""Redaction applied to every alert's data before it is stored or audited."""

from __future__ import annotations

import re
from typing import Any

REDACTED = "[REDACTED]"
MAX_EXCERPT = 200

_SENSITIVE = re.compile(r"password|token|key|secret", re.IGNORECASE)
_MAX_DEPTH = 6


def redact_text(value: str) -> str:
    """Mask sensitive words and cut the result to MAX_EXCERPT characters."""
    return _SENSITIVE.sub(REDACTED, value)[:MAX_EXCERPT]


def sanitize(data: Any, _depth: int = 0) -> dict[str, Any]:
    """Return a redacted copy of a mapping; anything else becomes {}.

    Keys naming a secret have their whole value replaced. Strings are
    redacted and truncated, numbers/bools/None pass through, nested
    mappings and lists are sanitized recursively. Other types are dropped.
    """
    if not isinstance(data, dict):
        return {}

    out: dict[str, Any] = {}
    for key, value in data.items():
        key = str(key)
        if _SENSITIVE.search(key) and isinstance(value, (str, bytes)):
            out[key] = REDACTED
            continue
        cleaned = _clean(value, _depth)
        if cleaned is not _DROP:
            out[key] = cleaned
    return out


_DROP = object()


def _clean(value: Any, depth: int) -> Any:
    if isinstance(value, str):
        return redact_text(value)
    if value is None or isinstance(value, (bool, int, float)):
        return value
    if depth >= _MAX_DEPTH:
        return _DROP
    if isinstance(value, dict):
        return sanitize(value, depth + 1)
    if isinstance(value, (list, tuple)):
        items = (_clean(item, depth + 1) for item in value)
        return [item for item in items if item is not _DROP]
    return _DROP
