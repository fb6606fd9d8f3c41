"""Severity ladder shared by findings, alerts and audit records."""

from __future__ import annotations

from typing import Iterable, Literal

Severity = Literal["low", "medium", "high", "critical"]

SEVERITY_LEVELS: tuple[Severity, ...] = ("low", "medium", "high", "critical")


def severity_rank(severity: Severity) -> int:
    return SEVERITY_LEVELS.index(severity)


def max_severity(severities: Iterable[Severity]) -> Severity | None:
    """Return the highest severity in the iterable, or None if it is empty."""
    highest: Severity | None = None
    for severity in severities:
        if highest is None or severity_rank(severity) > severity_rank(highest):
            highest = severity
    return highest


def next_severity(severity: Severity) -> Severity:
    """One step up the ladder, capped at critical."""
    index = min(severity_rank(severity) + 1, len(SEVERITY_LEVELS) - 1)
    return SEVERITY_LEVELS[index]


def is_valid_severity(value: object) -> bool:
    return value in SEVERITY_LEVELS
