"""Suspicious user-agent heuristics against context["user_agent"].

A missing key is not suspicious (many callers never see a user agent); a
key that is present but blank is.
"""

from __future__ import annotations

from security_alerting.detections.base import PatternRule, rule, scan
from security_alerting.models.finding import Finding

RULES: list[PatternRule] = [
    rule("agent.crawler", "suspicious_agent", "medium",
         "Crawler or bot user agent", r"bot\b|crawler|spider|scraper"),
    rule("agent.scripted_client", "suspicious_agent", "medium",
         "Scripted HTTP client user agent",
         r"^(?:curl|wget|python-requests|python-urllib|java|php|go-http-client|libwww-perl)\b"),
    rule("agent.scanner", "suspicious_agent", "high",
         "Known vulnerability scanner user agent", r"\b(?:sqlmap|nmap|nikto|burp|masscan|zgrab)\b"),
]


def detect(user_agent: str | None) -> list[Finding]:
    if user_agent is None:
        return []
    if not user_agent.strip():
        return [
            Finding(
                category="suspicious_agent",
                severity="high",
                description="Blank user agent",
                matched_rule="agent.blank",
            )
        ]
    return scan(RULES, [user_agent])
