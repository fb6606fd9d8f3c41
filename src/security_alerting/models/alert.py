"""Alert Pydantic model — the stateful record owned by AlertManager."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, Field

from security_alerting.models.severity import Severity


def _new_id() -> str:
    return str(uuid.uuid4())


def _utcnow() -> datetime:
    return datetime.now(tz=timezone.utc)


class Alert(BaseModel):
    """A fired alert. Escalations are new Alerts pointing back via escalated_from."""

    id: str = Field(default_factory=_new_id)
    alert_type: str
    severity: Severity
    timestamp: datetime = Field(default_factory=_utcnow)
    identity: str | None = None
    data: dict[str, Any] = Field(default_factory=dict)
    risk_score: int = Field(default=0, ge=0, le=100)

    acknowledged: bool = False
    acknowledged_by: str | None = None
    acknowledged_at: datetime | None = None

    resolved: bool = False
    resolved_by: str | None = None
    resolved_at: datetime | None = None
    resolution: str | None = None

    escalated_from: str | None = None  # id of the triggering alert, reference only

    @property
    def is_escalation(self) -> bool:
        return self.escalated_from is not None


class AlertFilter(BaseModel):
    """Query filter for AlertManager.list_alerts(); None means 'any'."""

    resolved: bool | None = None
    severity: Severity | None = None
    identity: str | None = None

    def matches(self, alert: Alert) -> bool:
        if self.resolved is not None and alert.resolved != self.resolved:
            return False
        if self.severity is not None and alert.severity != self.severity:
            return False
        if self.identity is not None and alert.identity != self.identity:
            return False
        return True


class AlertMetrics(BaseModel):
    total_alerts: int = 0
    by_severity: dict[str, int] = Field(default_factory=dict)
    active_count: int = 0
    acknowledged_count: int = 0
    last_alert_time: datetime | None = None
