"""SQL injection signatures — keyword/operator combinations, not lone keywords.

A lone "select" or "update" shows up in ordinary prose; every rule here
needs either a second keyword or a quote/operator context to fire.
"""

from __future__ import annotations

from security_alerting.detections.base import PatternRule, rule, scan
from security_alerting.models.finding import Finding

RULES: list[PatternRule] = [
    rule("sqli.union_select", "sql_injection", "critical",
         "UNION SELECT combination", r"\bunion\b(?:\s+all)?\s+select\b"),
    rule("sqli.select_from", "sql_injection", "critical",
         "SELECT ... FROM statement",
         r"\bselect\s+(?:\*|[\w.]+(?:\s*,\s*[\w.]+)*)\s+from\s+\w"),
    rule("sqli.drop_table", "sql_injection", "critical",
         "DROP TABLE statement", r"\bdrop\s+(?:table|database)\b"),
    rule("sqli.insert_into", "sql_injection", "critical",
         "INSERT INTO statement", r"\binsert\s+into\s+\w+\s*(?:\(|values\b|select\b)"),
    rule("sqli.update_set", "sql_injection", "critical",
         "UPDATE ... SET statement", r"\bupdate\s+\w+\s+set\b\s+\w+\s*="),
    rule("sqli.tautology", "sql_injection", "critical",
         "Quoted boolean tautology", r"['\"]\s*(?:or|and)\s+['\"]?\w+['\"]?\s*=\s*['\"]?\w+"),
    # the comment must end the statement: "admin'--", "x'); --" but not "'A' #3 please"
    rule("sqli.comment_terminator", "sql_injection", "critical",
         "Quote followed by SQL comment",
         r"['\"]\s*\)*\s*(?:;\s*(?:--|#|/\*)|(?:--|#|/\*)[\s-]*$)"),
]


def detect(texts: list[str]) -> list[Finding]:
    return scan(RULES, texts)
