"""Threat tracker routes — GET /threats/stats, DELETE /threats/blocks/{identity}."""

from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from security_alerting.api.dependencies import get_engine
from security_alerting.engine import SecurityEngine

router = APIRouter()


class BlockOut(BaseModel):
    identity: str
    blocked_until: datetime


class ExceededOut(BaseModel):
    identity: str
    counter_kind: str
    count: int
    threshold: int


class ThreatStats(BaseModel):
    tracked_identities: int
    active_blocks: list[BlockOut]
    exceeded_counters: list[ExceededOut]


@router.get("/threats/stats", response_model=ThreatStats)
def threat_stats(engine: SecurityEngine = Depends(get_engine)) -> ThreatStats:
    stats = engine.tracker.statistics(engine.now())
    return ThreatStats(
        tracked_identities=stats.tracked_identities,
        active_blocks=[
            BlockOut(identity=b.identity, blocked_until=b.blocked_until)
            for b in stats.active_blocks
        ],
        exceeded_counters=[
            ExceededOut(
                identity=c.identity,
                counter_kind=c.counter_kind,
                count=c.count,
                threshold=c.threshold,
            )
            for c in stats.exceeded_counters
        ],
    )


@router.delete("/threats/blocks/{identity}", response_model=dict)
def unblock_identity(
    identity: str,
    engine: SecurityEngine = Depends(get_engine),
) -> dict:  # type: ignore[type-arg]
    if not engine.tracker.unblock(identity):
        raise HTTPException(status_code=404, detail="Identity is not blocked")
    return {"unblocked": True, "identity": identity}
