"""Finding — the internal output of every detection and behaviour counter.

Findings are never persisted on their own; they are folded into an Alert's
data or discarded.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal

from security_alerting.models.severity import Severity

Category = Literal[
    "xss",
    "sql_injection",
    "path_traversal",
    "command_injection",
    "brute_force",
    "rate_limit",
    "suspicious_agent",
    "suspicious_behavior",
]


@dataclass(frozen=True)
class Finding:
    category: Category
    severity: Severity
    description: str
    matched_rule: str
    metadata: dict[str, Any] = field(default_factory=dict)

    def summary(self) -> dict[str, Any]:
        return {
            "category": self.category,
            "severity": self.severity,
            "description": self.description,
            "matched_rule": self.matched_rule,
        }
