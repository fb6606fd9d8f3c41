"""Unit tests for the risk scorer."""

from __future__ import annotations

from typing import Callable

import pytest

from security_alerting.models.finding import Finding
from security_alerting.scoring import RiskAssessment, score


def test_empty_findings_score_zero() -> None:
    assert score([]) == RiskAssessment(risk_score=0, severity=None)


@pytest.mark.parametrize(
    "severity, expected",
    [("low", 10), ("medium", 30), ("high", 60), ("critical", 90)],
)
def test_base_score_by_severity(
    make_finding: Callable[..., Finding], severity: str, expected: int
) -> None:
    result = score([make_finding(severity=severity)])
    assert result.risk_score == expected
    assert result.severity == severity


def test_corroborating_findings_add_five_each(make_finding: Callable[..., Finding]) -> None:
    findings = [make_finding(severity="high"), make_finding(severity="low"), make_finding(severity="medium")]
    result = score(findings)
    assert result.risk_score == 70
    assert result.severity == "high"


def test_corroboration_bonus_is_capped(make_finding: Callable[..., Finding]) -> None:
    findings = [make_finding(severity="medium") for _ in range(10)]
    assert score(findings).risk_score == 50


def test_total_is_capped_at_100(make_finding: Callable[..., Finding]) -> None:
    findings = [make_finding(severity="critical") for _ in range(6)]
    assert score(findings).risk_score == 100


@pytest.mark.parametrize("extra", [0, 1, 3, 8])
def test_any_critical_finding_scores_at_least_90(
    make_finding: Callable[..., Finding], extra: int
) -> None:
    findings = [make_finding(severity="low") for _ in range(extra)]
    findings.append(make_finding(severity="critical"))
    result = score(findings)
    assert result.risk_score >= 90
    assert result.severity == "critical"


def test_score_is_pure(make_finding: Callable[..., Finding]) -> None:
    findings = [make_finding(severity="high"), make_finding(severity="medium")]
    assert score(findings) == score(list(findings))
