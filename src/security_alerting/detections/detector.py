"""ThreatDetector — runs the fixed signature battery against one Event.

Pure and deterministic: no I/O, no state between calls. Every detection is
guarded so a failing rule (or a payload shape nobody anticipated) degrades
to "no findings from that detection" instead of failing the pipeline.
"""

from __future__ import annotations

from typing import Any, Callable

import structlog

from security_alerting.config import DetectionConfig
from security_alerting.detections import (
    behavior,
    command_injection,
    path_traversal,
    sql_injection,
    user_agent,
    xss,
)
from security_alerting.models.events import Event
from security_alerting.models.finding import Finding

logger = structlog.get_logger(__name__)

_MAX_DEPTH = 8
_MAX_STRINGS = 256


class ThreatDetector:
    def __init__(self, config: DetectionConfig | None = None) -> None:
        self._config = config or DetectionConfig()
        enabled = set(self._config.enabled_categories)
        # (category, detection); order fixes the order of returned findings
        battery: list[tuple[str, Callable[[Event, list[str]], list[Finding]]]] = [
            ("xss", lambda _e, texts: xss.detect(texts)),
            ("sql_injection", lambda _e, texts: sql_injection.detect(texts)),
            ("path_traversal", lambda _e, texts: path_traversal.detect(texts)),
            ("command_injection", lambda _e, texts: command_injection.detect(texts)),
            ("suspicious_agent", lambda e, _texts: user_agent.detect(e.user_agent)),
            ("suspicious_behavior", lambda e, _texts: behavior.detect(e)),
        ]
        self._battery = [(name, fn) for name, fn in battery if name in enabled]

    def detect(self, event: Event) -> list[Finding]:
        """Return zero or more Findings for the event. Never raises."""
        try:
            texts = payload_strings(event.payload, self._config.max_scan_length)
        except Exception:
            logger.exception("payload_unscannable", event_id=event.id, kind=event.kind)
            texts = []

        findings: list[Finding] = []
        for name, detection in self._battery:
            try:
                findings.extend(detection(event, texts))
            except Exception:
                logger.exception("detection_rule_failed", detection=name, event_id=event.id)

        if findings:
            logger.debug(
                "threats_detected",
                event_id=event.id,
                identity=event.identity,
                rules=[f.matched_rule for f in findings],
            )
        return findings


def payload_strings(payload: Any, max_length: int) -> list[str]:
    """Collect string leaves of a str/mapping/list payload, each truncated to max_length."""
    out: list[str] = []
    stack: list[tuple[Any, int]] = [(payload, 0)]
    while stack and len(out) < _MAX_STRINGS:
        value, depth = stack.pop()
        if isinstance(value, str):
            if value:
                out.append(value[:max_length])
        elif depth >= _MAX_DEPTH:
            continue
        elif isinstance(value, dict):
            stack.extend((v, depth + 1) for v in reversed(list(value.values())))
        elif isinstance(value, (list, tuple)):
            stack.extend((v, depth + 1) for v in reversed(value))
    return out
