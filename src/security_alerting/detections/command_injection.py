"""Shell command injection signatures.

Metacharacters alone are common in legitimate text ("(1)", "a & b"), so
each rule pairs a separator or substitution with something executable.
Command names match case-sensitively and must stand alone: followed by an
argument, a path or the end of the input.
"""

from __future__ import annotations

from security_alerting.detections.base import PatternRule, rule, scan
from security_alerting.models.finding import Finding

_COMMANDS = (
    r"(?-i:cat|ls|pwd|whoami|id|uname|ps|netstat|ifconfig|ping|traceroute|nslookup|dig"
    r"|wget|curl|nc|ncat|telnet|ssh|ftp|bash|sh|zsh|rm|chmod|chown|python|perl)"
)

# whitespace then an argument, option or path; or nothing left at all
_INVOCATION = r"(?:\s+[\w./~$'\"-]|\s*$)"

RULES: list[PatternRule] = [
    rule("cmdi.chained_command", "command_injection", "critical",
         "Shell separator followed by a command",
         rf"(?:;|&&|\|\|?)\s*{_COMMANDS}{_INVOCATION}"),
    rule("cmdi.subshell", "command_injection", "critical",
         "$( ) command substitution", rf"\$\(\s*{_COMMANDS}(?:\s[^)]*)?\)"),
    rule("cmdi.backtick", "command_injection", "critical",
         "Backtick command substitution", rf"`\s*{_COMMANDS}(?:\s[^`]*)?`"),
]


def detect(texts: list[str]) -> list[Finding]:
    return scan(RULES, texts)
