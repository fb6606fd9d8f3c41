"""AuditRecord — the durable projection of an Event or Alert queued for storage.

A record is owned by AuditSink until a batch containing it is written, then
dropped. The id is fixed at creation so a consumer can collapse the duplicate
writes that at-least-once delivery produces on retry.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Any, Literal

from pydantic import BaseModel, Field

from security_alerting.models.alert import Alert
from security_alerting.models.events import Event
from security_alerting.models.severity import Severity


def _new_id() -> str:
    return str(uuid.uuid4())


def _utcnow() -> datetime:
    return datetime.now(tz=timezone.utc)


RecordKind = Literal["event", "alert", "data_access", "diagnostic"]


class AuditRecord(BaseModel):
    id: str = Field(default_factory=_new_id)
    kind: RecordKind
    action: str  # e.g. "alert_created", "event_received", "audit_records_dropped"
    severity: Severity = "low"
    identity: str | None = None
    payload: dict[str, Any] = Field(default_factory=dict)
    enqueued_at: datetime = Field(default_factory=_utcnow)
    attempts: int = 0


def alert_record(action: str, alert: Alert, actor: str | None = None) -> AuditRecord:
    payload = alert.model_dump(mode="json")
    if actor is not None:
        payload["actor"] = actor
    return AuditRecord(
        kind="alert",
        action=action,
        severity=alert.severity,
        identity=alert.identity,
        payload=payload,
    )


def event_record(event: Event, severity: Severity, data: dict[str, Any]) -> AuditRecord:
    """Project an event into a record; data is the already-sanitized summary."""
    return AuditRecord(
        kind="event",
        action="event_received",
        severity=severity,
        identity=event.identity,
        payload={
            "event_id": event.id,
            "event_kind": event.kind,
            "timestamp": event.timestamp.isoformat(),
            **data,
        },
    )
