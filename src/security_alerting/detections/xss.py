"""XSS / script injection signatures."""

from __future__ import annotations

from security_alerting.detections.base import PatternRule, rule, scan
from security_alerting.models.finding import Finding

RULES: list[PatternRule] = [
    rule("xss.script_tag", "xss", "high",
         "Script tag in submitted input", r"<\s*script\b[^>]*>"),
    rule("xss.script_uri", "xss", "high",
         "javascript:/vbscript: URI in submitted input", r"\b(?:java|vb)script\s*:"),
    rule("xss.event_handler", "xss", "high",
         "Inline DOM event handler attribute", r"<[^>]*\bon[a-z]+\s*="),
    rule("xss.embed_tag", "xss", "high",
         "Embedded frame or object tag", r"<\s*(?:iframe|object|embed)\b"),
    rule("xss.css_expression", "xss", "high",
         "CSS expression() payload", r"\bexpression\s*\("),
]


def detect(texts: list[str]) -> list[Finding]:
    return scan(RULES, texts)
