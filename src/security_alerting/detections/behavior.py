"""Suspicious behaviour from structured payloads.

Two sources:
  * runtime_error events whose message mentions a security concern
    (CORS, CSRF, token, forbidden, ...);
  * behaviour flags set by the caller on a structured payload
    (unusual_hours, rapid_actions, large_data_access, geographic_anomaly).
"""

from __future__ import annotations

import re

from security_alerting.models.events import Event
from security_alerting.models.finding import Finding
from security_alerting.models.severity import Severity

_SECURITY_KEYWORDS = re.compile(
    r"\b(?:cors|csrf|xss|injection|unauthorized|forbidden|security|"
    r"authentication|authorization|token|session)\b",
    re.IGNORECASE,
)

# flag -> (severity, description)
BEHAVIOR_FLAGS: dict[str, tuple[Severity, str]] = {
    "unusual_hours": ("medium", "Access during unusual hours"),
    "rapid_actions": ("medium", "Unusually rapid sequence of actions"),
    "large_data_access": ("high", "Access to unusually large amounts of data"),
    "geographic_anomaly": ("high", "Access from unusual geographic location"),
}


def detect(event: Event) -> list[Finding]:
    findings: list[Finding] = []
    if event.kind == "runtime_error":
        message = _error_message(event.payload)
        match = _SECURITY_KEYWORDS.search(message) if message else None
        if match:
            findings.append(
                Finding(
                    category="suspicious_behavior",
                    severity="medium",
                    description="Security-related runtime error",
                    matched_rule="behavior.security_error",
                    metadata={"keyword": match.group(0).lower()},
                )
            )

    if isinstance(event.payload, dict):
        flags = event.payload.get("behavior")
        if isinstance(flags, dict):
            for flag, (severity, description) in BEHAVIOR_FLAGS.items():
                if flags.get(flag) is True:
                    findings.append(
                        Finding(
                            category="suspicious_behavior",
                            severity=severity,
                            description=description,
                            matched_rule=f"behavior.{flag}",
                        )
                    )
    return findings


def _error_message(payload: object) -> str:
    if isinstance(payload, str):
        return payload
    if isinstance(payload, dict):
        parts = [payload.get("message"), payload.get("reason")]
        return " ".join(p for p in parts if isinstance(p, str))
    return ""
