"""SecurityEngine — owns one of each component and runs the Event pipeline.

    Event -> ThreatDetector -> BehaviorTracker -> RiskScorer -> AlertManager -> AuditSink

Constructed once per process (the FastAPI lifespan puts it on app.state)
and passed by reference to every caller. start() launches the background
tasks; shutdown() stops the sweep and drains the audit buffer.

submit() is synchronous and safe to call from any thread. It never raises:
a failing stage is logged and whatever was computed so far is returned.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Callable

import structlog
from pydantic import BaseModel, Field

from security_alerting import scoring
from security_alerting.alerts.manager import AlertManager
from security_alerting.alerts.sanitize import sanitize
from security_alerting.audit.sink import AuditSink
from security_alerting.config import AppConfig
from security_alerting.detections.detector import ThreatDetector
from security_alerting.models.audit import event_record
from security_alerting.models.events import Event
from security_alerting.models.finding import Finding
from security_alerting.models.severity import Severity
from security_alerting.store.audited import AuditedStorage, KeyValueStore
from security_alerting.store.base import AuditWriter
from security_alerting.tasks import PeriodicTask
from security_alerting.tracking.behavior import BehaviorTracker

logger = structlog.get_logger(__name__)


def _utcnow() -> datetime:
    return datetime.now(tz=timezone.utc)


class SubmissionResult(BaseModel):
    """What the pipeline made of one Event."""

    event_id: str
    findings: list[dict[str, Any]] = Field(default_factory=list)
    risk_score: int = 0
    severity: Severity | None = None
    alert_ids: list[str] = Field(default_factory=list)
    blocked: bool = False
    blocked_until: datetime | None = None


def counter_kinds(event: Event, findings: list[Finding]) -> list[str]:
    """Behaviour counters an event increments, in recording order."""
    if event.kind == "auth_attempt":
        kinds = ["auth_request"]
        if event.auth_failed():
            kinds.append("login_failure")
        return kinds
    if event.kind == "network_request":
        return ["api_request"]
    if event.kind == "input_submission" and findings:
        return ["input_rejection"]
    return []


class SecurityEngine:
    def __init__(
        self,
        config: AppConfig,
        writer: AuditWriter,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        config.validate()
        self.config = config
        self._clock = clock
        self.detector = ThreatDetector(config.detection)
        self.tracker = BehaviorTracker(config.counters, config.behavior)
        self.audit = AuditSink(writer, config.audit)
        self.alerts = AlertManager(config, self.audit, clock)
        self._sweep_task = PeriodicTask(
            "alert_sweep", config.alerts.sweep_interval_seconds, self.sweep
        )

    def submit(self, event: Event) -> SubmissionResult:
        result = SubmissionResult(event_id=event.id)
        now = event.timestamp
        findings: list[Finding] = []
        try:
            findings = self.detector.detect(event)

            for kind in counter_kinds(event, findings):
                if kind not in self.config.counters:
                    continue
                state = self.tracker.record(event.identity, kind, now)
                if state.finding is not None:
                    findings.append(state.finding)
            blocked_until = self.tracker.blocked_until(event.identity, now)
            result.blocked = blocked_until is not None
            result.blocked_until = blocked_until

            assessment = scoring.score(findings)
            result.findings = [f.summary() for f in findings]
            result.risk_score = assessment.risk_score
            result.severity = assessment.severity

            if findings:
                alerts = self.alerts.create_alert(event, findings, assessment.risk_score, now)
                result.alert_ids = [a.id for a in alerts]
        except Exception:
            logger.exception(
                "submission_failed", event_id=event.id, kind=event.kind, identity=event.identity
            )

        if findings:
            self._record_event(event, result)
        return result

    def _record_event(self, event: Event, result: SubmissionResult) -> None:
        try:
            self.audit.enqueue(
                event_record(
                    event,
                    result.severity or "low",
                    {
                        "context": sanitize(event.context),
                        "findings": result.findings,
                        "risk_score": result.risk_score,
                        "alert_ids": result.alert_ids,
                        "blocked": result.blocked,
                    },
                )
            )
        except Exception:
            logger.exception("event_record_failed", event_id=event.id)

    def audited(self, store: KeyValueStore, identity: str | None = None) -> AuditedStorage:
        """Wrap a key-value store so every access lands in the audit log."""
        return AuditedStorage(store, self.audit, identity)

    def now(self) -> datetime:
        return self._clock()

    async def sweep(self) -> None:
        """One maintenance cycle: auto-resolve stale alerts, forget idle identities."""
        now = self._clock()
        self.alerts.sweep(now)
        pruned = self.tracker.prune(now)
        if pruned:
            logger.debug("identities_pruned", count=pruned)

    async def start(self) -> None:
        await self.audit.start()
        await self._sweep_task.start()
        logger.info("engine_started")

    async def shutdown(self) -> None:
        await self._sweep_task.stop()
        await self.audit.stop()
        logger.info("engine_stopped", audit_pending=self.audit.pending)
