"""GET /health — liveness check."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request

from security_alerting.api.dependencies import get_engine
from security_alerting.engine import SecurityEngine
from security_alerting.store.client import ping

router = APIRouter()


@router.get("/health")
async def health(
    request: Request,
    engine: SecurityEngine = Depends(get_engine),
) -> dict:  # type: ignore[type-arg]
    client = getattr(request.app.state, "mongo_client", None)
    if client is None:
        db_status = "not_configured"
    else:
        db_status = "connected" if await ping(client) else "unavailable"

    return {"status": "ok", "db": db_status, "audit_pending": engine.audit.pending}
