"""RiskScorer — pure mapping from findings to a 0–100 risk score and a severity."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from security_alerting.models.finding import Finding
from security_alerting.models.severity import Severity, max_severity

BASE_SCORES: dict[str, int] = {
    "low": 10,
    "medium": 30,
    "high": 60,
    "critical": 90,
}
CORROBORATION_STEP = 5
CORROBORATION_CAP = 20
MAX_SCORE = 100


@dataclass(frozen=True)
class RiskAssessment:
    risk_score: int
    severity: Severity | None  # None only when there were no findings


def score(findings: Sequence[Finding]) -> RiskAssessment:
    """Base score of the worst finding plus a capped bonus per extra finding."""
    severity = max_severity(f.severity for f in findings)
    if severity is None:
        return RiskAssessment(risk_score=0, severity=None)

    bonus = min(CORROBORATION_STEP * (len(findings) - 1), CORROBORATION_CAP)
    return RiskAssessment(
        risk_score=min(BASE_SCORES[severity] + bonus, MAX_SCORE),
        severity=severity,
    )
