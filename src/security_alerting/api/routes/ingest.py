"""POST /ingest/event — run one Event through the detection pipeline."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from security_alerting.api.dependencies import get_engine
from security_alerting.engine import SecurityEngine, SubmissionResult
from security_alerting.models.events import Event

router = APIRouter()


@router.post("/ingest/event", response_model=SubmissionResult)
def ingest_event(
    event: Event,
    engine: SecurityEngine = Depends(get_engine),
) -> SubmissionResult:
    """Detect, count, score and alert on the event; never fails on a bad payload."""
    return engine.submit(event)
