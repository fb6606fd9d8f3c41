"""Alert routes — list, metrics, fetch, acknowledge and resolve."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel

from security_alerting.alerts.manager import AlertManager
from security_alerting.api.dependencies import get_engine
from security_alerting.engine import SecurityEngine
from security_alerting.models.alert import Alert, AlertFilter, AlertMetrics
from security_alerting.models.severity import Severity

router = APIRouter()


class AcknowledgeRequest(BaseModel):
    actor: str


class ResolveRequest(BaseModel):
    actor: str
    reason: str | None = None


def get_alert_manager(engine: SecurityEngine = Depends(get_engine)) -> AlertManager:
    return engine.alerts


@router.get("/alerts", response_model=list[Alert])
def list_alerts(
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=500),
    resolved: bool | None = Query(None),
    severity: Severity | None = Query(None),
    identity: str | None = Query(None),
    alerts: AlertManager = Depends(get_alert_manager),
) -> list[Alert]:
    return alerts.list_alerts(
        AlertFilter(resolved=resolved, severity=severity, identity=identity),
        skip=skip,
        limit=limit,
    )


# Declared before /alerts/{alert_id} so "metrics" is not taken for an id.
@router.get("/alerts/metrics", response_model=AlertMetrics)
def alert_metrics(alerts: AlertManager = Depends(get_alert_manager)) -> AlertMetrics:
    return alerts.get_metrics()


@router.get("/alerts/{alert_id}", response_model=Alert)
def get_alert(
    alert_id: str,
    alerts: AlertManager = Depends(get_alert_manager),
) -> Alert:
    alert = alerts.get_alert(alert_id)
    if alert is None:
        raise HTTPException(status_code=404, detail="Alert not found")
    return alert


@router.patch("/alerts/{alert_id}/acknowledge", response_model=Alert)
def acknowledge_alert(
    alert_id: str,
    body: AcknowledgeRequest,
    alerts: AlertManager = Depends(get_alert_manager),
) -> Alert:
    alert = alerts.acknowledge_alert(alert_id, body.actor)
    if alert is None:
        raise HTTPException(status_code=404, detail="Alert not found")
    return alert


@router.patch("/alerts/{alert_id}/resolve", response_model=Alert)
def resolve_alert(
    alert_id: str,
    body: ResolveRequest,
    alerts: AlertManager = Depends(get_alert_manager),
) -> Alert:
    alert = alerts.resolve_alert(alert_id, body.actor, body.reason)
    if alert is None:
        raise HTTPException(status_code=404, detail="Alert not found")
    return alert
