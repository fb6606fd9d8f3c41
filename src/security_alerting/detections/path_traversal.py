"""Path traversal signatures, including URL-encoded and double-encoded dots/slashes."""

from __future__ import annotations

from security_alerting.detections.base import PatternRule, rule, scan
from security_alerting.models.finding import Finding

RULES: list[PatternRule] = [
    rule("traversal.dot_dot_slash", "path_traversal", "high",
         "Parent directory sequence", r"\.\.[/\\]"),
    rule("traversal.encoded", "path_traversal", "high",
         "URL-encoded parent directory sequence",
         r"(?:%2e%2e|\.\.)(?:%2f|%5c)|%2e%2e[/\\]"),
    rule("traversal.double_encoded", "path_traversal", "high",
         "Double-encoded parent directory sequence", r"(?:%252e%252e|\.\.)%25(?:2f|5c)"),
    rule("traversal.sensitive_file", "path_traversal", "high",
         "Reference to a sensitive system file",
         r"(?:^|[/\\])(?:etc[/\\](?:passwd|shadow)|windows[/\\]win\.ini|proc[/\\]self[/\\]environ)\b"),
]


def detect(texts: list[str]) -> list[Finding]:
    return scan(RULES, texts)
