"""Shared PatternRule dataclass and the scan loop every signature detection uses."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterable

from security_alerting.models.finding import Category, Finding
from security_alerting.models.severity import Severity


@dataclass(frozen=True)
class PatternRule:
    rule_id: str
    category: Category
    severity: Severity
    description: str
    pattern: re.Pattern[str]

    def matches(self, text: str) -> bool:
        return self.pattern.search(text) is not None

    def to_finding(self, **metadata: object) -> Finding:
        return Finding(
            category=self.category,
            severity=self.severity,
            description=self.description,
            matched_rule=self.rule_id,
            metadata=dict(metadata),
        )


def rule(
    rule_id: str,
    category: Category,
    severity: Severity,
    description: str,
    regex: str,
    flags: int = re.IGNORECASE,
) -> PatternRule:
    return PatternRule(rule_id, category, severity, description, re.compile(regex, flags))


def scan(rules: Iterable[PatternRule], texts: list[str]) -> list[Finding]:
    """Return one Finding per rule that matches at least one of the texts."""
    findings: list[Finding] = []
    for r in rules:
        for index, text in enumerate(texts):
            if r.matches(text):
                findings.append(r.to_finding(field_index=index))
                break
    return findings
