"""AlertManager — alert lifecycle, inline escalation and the auto-resolve sweep.

Lifecycle per alert: created -> (acknowledged) -> resolved. Escalation never
mutates an alert; it spawns a new one at the next severity that points back
via escalated_from.

Escalation is keyed by (alert_type, severity): each key has a CounterWindow
sized by the `<severity>_severity_alert` counter. When the count inside that
window meets the threshold the alert just stored is escalated one level.
Escalated alerts are not re-evaluated, critical alerts have nowhere to go,
and a resolved alert is never escalated.

All mutations hold one re-entrant lock. Every alert handed out is a copy,
so callers can only change state through acknowledge_alert/resolve_alert.
"""

from __future__ import annotations

import threading
from collections import Counter
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Sequence

import structlog

from security_alerting.alerts.sanitize import sanitize
from security_alerting.audit.sink import AuditSink
from security_alerting.config import AppConfig
from security_alerting.models.alert import Alert, AlertFilter, AlertMetrics
from security_alerting.models.audit import alert_record
from security_alerting.models.events import Event
from security_alerting.models.finding import Finding
from security_alerting.models.severity import Severity, max_severity, next_severity, severity_rank
from security_alerting.scoring import BASE_SCORES
from security_alerting.tracking.window import CounterWindow

logger = structlog.get_logger(__name__)

STALE_RESOLUTION = "stale_alert"
SYSTEM_ACTOR = "system"


def _utcnow() -> datetime:
    return datetime.now(tz=timezone.utc)


class AlertManager:
    def __init__(
        self,
        config: AppConfig,
        audit: AuditSink | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._config = config
        self._audit = audit
        self._clock = clock
        self._lock = threading.RLock()
        self._alerts: dict[str, Alert] = {}  # insertion order == creation order
        self._windows: dict[tuple[str, Severity], CounterWindow] = {}
        self._created_by_severity: Counter[str] = Counter()
        self._total_created = 0
        self._last_alert_time: datetime | None = None

    # ------------------------------------------------------------------
    # Creation
    # ------------------------------------------------------------------

    def create_alert(
        self,
        event: Event,
        findings: Sequence[Finding],
        risk_score: int,
        now: datetime | None = None,
    ) -> list[Alert]:
        """Store an alert for the event's findings, plus its escalation if one fires.

        The alert type is the category of the most severe finding. Returns []
        when there are no findings or they fall below alerts.min_severity.
        """
        severity = max_severity(f.severity for f in findings)
        if severity is None or not self._meets_minimum(severity):
            return []

        primary = next(f for f in findings if f.severity == severity)
        data: dict[str, Any] = {
            "event_id": event.id,
            "event_kind": event.kind,
            "context": event.context,
            "findings": [f.summary() for f in findings],
        }
        if isinstance(event.payload, str):
            data["payload_excerpt"] = event.payload
        else:
            data["payload"] = event.payload

        return self.raise_alert(
            alert_type=primary.category,
            severity=severity,
            identity=event.identity,
            data=data,
            risk_score=risk_score,
            now=now or event.timestamp,
        )

    def raise_alert(
        self,
        alert_type: str,
        severity: Severity,
        identity: str | None = None,
        data: dict[str, Any] | None = None,
        risk_score: int | None = None,
        now: datetime | None = None,
    ) -> list[Alert]:
        """Raise an operational alert directly (e.g. high_error_rate)."""
        if not self._meets_minimum(severity):
            return []
        now = now or self._clock()
        alert = Alert(
            alert_type=alert_type,
            severity=severity,
            timestamp=now,
            identity=identity,
            data=sanitize(data or {}),
            risk_score=BASE_SCORES[severity] if risk_score is None else risk_score,
        )

        with self._lock:
            self._store(alert, "alert_created")
            created = [alert.model_copy(deep=True)]
            escalated = self._evaluate_escalation(alert, now)
            if escalated is not None:
                created.append(escalated.model_copy(deep=True))

        logger.info(
            "alert_created",
            alert_id=alert.id,
            alert_type=alert.alert_type,
            severity=alert.severity,
            identity=alert.identity,
            risk_score=alert.risk_score,
        )
        return created

    def _evaluate_escalation(self, alert: Alert, now: datetime) -> Alert | None:
        if alert.is_escalation or alert.resolved or alert.severity == "critical":
            return None
        counter = self._config.escalation_counter(alert.severity)
        if counter is None:
            return None

        key = (alert.alert_type, alert.severity)
        window = self._windows.get(key)
        if window is None:
            window = CounterWindow(counter.window_seconds, self._config.behavior.max_events_tracked)
            self._windows[key] = window
        count = window.add(now)
        if count < counter.threshold:
            return None

        severity = next_severity(alert.severity)
        escalated = Alert(
            alert_type=f"{alert.alert_type}_escalated",
            severity=severity,
            timestamp=now,
            identity=alert.identity,
            data={
                "original_alert": alert.id,
                "alert_count": count,
                "window_seconds": counter.window_seconds,
                "threshold": counter.threshold,
                "escalation_reason": "threshold_exceeded",
            },
            risk_score=max(alert.risk_score, BASE_SCORES[severity]),
            escalated_from=alert.id,
        )
        self._store(escalated, "alert_escalated")
        logger.warning(
            "alert_escalated",
            alert_id=escalated.id,
            escalated_from=alert.id,
            alert_type=alert.alert_type,
            from_severity=alert.severity,
            to_severity=severity,
            alert_count=count,
        )
        return escalated

    def _store(self, alert: Alert, action: str) -> None:
        self._alerts[alert.id] = alert
        self._total_created += 1
        self._created_by_severity[alert.severity] += 1
        self._last_alert_time = alert.timestamp
        self._emit(action, alert)

    def _meets_minimum(self, severity: Severity) -> bool:
        return severity_rank(severity) >= severity_rank(self._config.alerts.min_severity)

    # ------------------------------------------------------------------
    # Operator actions
    # ------------------------------------------------------------------

    def acknowledge_alert(
        self, alert_id: str, actor: str, now: datetime | None = None
    ) -> Alert | None:
        """Mark an alert acknowledged. None if unknown; no-op if already acknowledged."""
        with self._lock:
            alert = self._alerts.get(alert_id)
            if alert is None:
                return None
            if not alert.acknowledged:
                alert.acknowledged = True
                alert.acknowledged_by = actor
                alert.acknowledged_at = now or self._clock()
                self._emit("alert_acknowledged", alert, actor)
                logger.info("alert_acknowledged", alert_id=alert_id, actor=actor)
            return alert.model_copy(deep=True)

    def resolve_alert(
        self,
        alert_id: str,
        actor: str | None,
        reason: str | None = None,
        now: datetime | None = None,
    ) -> Alert | None:
        """Mark an alert resolved. None if unknown; no-op if already resolved."""
        with self._lock:
            alert = self._alerts.get(alert_id)
            if alert is None:
                return None
            if not alert.resolved:
                self._resolve_locked(alert, actor, reason or "resolved", now or self._clock())
            return alert.model_copy(deep=True)

    def _resolve_locked(
        self, alert: Alert, actor: str | None, reason: str, now: datetime
    ) -> None:
        alert.resolved = True
        alert.resolved_by = actor
        alert.resolved_at = now
        alert.resolution = reason
        self._emit("alert_resolved", alert, actor)
        logger.info("alert_resolved", alert_id=alert.id, actor=actor, resolution=reason)

    # ------------------------------------------------------------------
    # Sweep
    # ------------------------------------------------------------------

    def sweep(self, now: datetime | None = None) -> list[Alert]:
        """Resolve stale alerts as stale_alert and evict old resolved alerts.

        An alert is stale when its severity has an auto_resolve_after_seconds
        entry and it is older than that. Returns the alerts resolved.
        """
        now = now or self._clock()
        expiry = {
            severity: timedelta(seconds=seconds)
            for severity, seconds in self._config.alerts.auto_resolve_after_seconds.items()
        }
        resolved: list[Alert] = []
        with self._lock:
            for alert in self._alerts.values():
                ttl = expiry.get(alert.severity)
                if alert.resolved or ttl is None or now - alert.timestamp <= ttl:
                    continue
                self._resolve_locked(alert, SYSTEM_ACTOR, STALE_RESOLUTION, now)
                resolved.append(alert.model_copy(deep=True))

            for key in [k for k, w in self._windows.items() if w.is_empty(now)]:
                del self._windows[key]
            evicted = self._evict_resolved()

        if resolved or evicted:
            logger.info("alert_sweep", auto_resolved=len(resolved), evicted=evicted)
        return resolved

    def _evict_resolved(self) -> int:
        excess = len(self._alerts) - self._config.alerts.max_retained_alerts
        if excess <= 0:
            return 0
        doomed = [a.id for a in self._alerts.values() if a.resolved][:excess]
        for alert_id in doomed:
            del self._alerts[alert_id]
        return len(doomed)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_alert(self, alert_id: str) -> Alert | None:
        with self._lock:
            alert = self._alerts.get(alert_id)
            return alert.model_copy(deep=True) if alert else None

    def list_alerts(
        self,
        alert_filter: AlertFilter | None = None,
        skip: int = 0,
        limit: int | None = None,
    ) -> list[Alert]:
        """Matching alerts, newest first."""
        alert_filter = alert_filter or AlertFilter()
        with self._lock:
            matched = [a for a in reversed(self._alerts.values()) if alert_filter.matches(a)]
            end = None if limit is None else skip + limit
            return [a.model_copy(deep=True) for a in matched[skip:end]]

    def get_metrics(self) -> AlertMetrics:
        with self._lock:
            return AlertMetrics(
                total_alerts=self._total_created,
                by_severity=dict(self._created_by_severity),
                active_count=sum(1 for a in self._alerts.values() if not a.resolved),
                acknowledged_count=sum(1 for a in self._alerts.values() if a.acknowledged),
                last_alert_time=self._last_alert_time,
            )

    def _emit(self, action: str, alert: Alert, actor: str | None = None) -> None:
        if self._audit is not None:
            self._audit.enqueue(alert_record(action, alert, actor))
