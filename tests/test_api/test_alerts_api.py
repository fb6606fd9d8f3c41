"""Route tests for /alerts — backed by a real engine with an in-memory writer."""

from __future__ import annotations

from typing import Any

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from security_alerting.config import AppConfig
from security_alerting.engine import SecurityEngine
from security_alerting.store.memory import InMemoryAuditWriter


def _make_app(engine: SecurityEngine) -> FastAPI:
    """Build a minimal FastAPI app with only the alerts router."""
    from security_alerting.api.routes import alerts

    app = FastAPI()
    app.include_router(alerts.router)
    app.state.engine = engine
    return app


@pytest.fixture
def engine(default_config: AppConfig, writer: InMemoryAuditWriter, clock: Any) -> SecurityEngine:
    return SecurityEngine(default_config, writer, clock)


@pytest.fixture
async def client(engine: SecurityEngine) -> AsyncClient:
    async with AsyncClient(transport=ASGITransport(app=_make_app(engine)), base_url="http://test") as c:
        yield c


# ---------------------------------------------------------------------------
# GET /alerts
# ---------------------------------------------------------------------------


async def test_list_alerts_empty(client: AsyncClient) -> None:
    response = await client.get("/alerts")
    assert response.status_code == 200
    assert response.json() == []


async def test_list_alerts_with_filters(client: AsyncClient, engine: SecurityEngine) -> None:
    [medium] = engine.alerts.raise_alert("csp_violation", "medium", identity="user-1")
    [low] = engine.alerts.raise_alert("slow_page", "low", identity="user-2")

    response = await client.get("/alerts")
    assert [a["id"] for a in response.json()] == [low.id, medium.id]

    response = await client.get("/alerts?severity=medium&resolved=false")
    assert [a["id"] for a in response.json()] == [medium.id]

    response = await client.get("/alerts?identity=user-2")
    assert [a["alert_type"] for a in response.json()] == ["slow_page"]

    response = await client.get("/alerts?skip=1&limit=1")
    assert [a["id"] for a in response.json()] == [medium.id]


async def test_list_alerts_rejects_unknown_severity(client: AsyncClient) -> None:
    response = await client.get("/alerts?severity=urgent")
    assert response.status_code == 422


# ---------------------------------------------------------------------------
# GET /alerts/metrics
# ---------------------------------------------------------------------------


async def test_metrics(client: AsyncClient, engine: SecurityEngine) -> None:
    engine.alerts.raise_alert("csp_violation", "medium")
    engine.alerts.raise_alert("brute_force", "high")

    response = await client.get("/alerts/metrics")
    assert response.status_code == 200
    data = response.json()
    assert data["total_alerts"] == 3
    assert data["by_severity"] == {"medium": 1, "high": 1, "critical": 1}
    assert data["active_count"] == 3
    assert data["acknowledged_count"] == 0


# ---------------------------------------------------------------------------
# GET /alerts/{alert_id}
# ---------------------------------------------------------------------------


async def test_get_alert_not_found(client: AsyncClient) -> None:
    response = await client.get("/alerts/missing-id")
    assert response.status_code == 404


async def test_get_alert_found(client: AsyncClient, engine: SecurityEngine) -> None:
    [alert] = engine.alerts.raise_alert("csp_violation", "medium")
    response = await client.get(f"/alerts/{alert.id}")
    assert response.status_code == 200
    assert response.json()["id"] == alert.id


# ---------------------------------------------------------------------------
# PATCH /alerts/{alert_id}/acknowledge and /resolve
# ---------------------------------------------------------------------------


async def test_acknowledge_alert(client: AsyncClient, engine: SecurityEngine) -> None:
    [alert] = engine.alerts.raise_alert("csp_violation", "medium")
    response = await client.patch(f"/alerts/{alert.id}/acknowledge", json={"actor": "alice"})
    assert response.status_code == 200
    assert response.json()["acknowledged"] is True
    assert response.json()["acknowledged_by"] == "alice"


async def test_acknowledge_alert_not_found(client: AsyncClient) -> None:
    response = await client.patch("/alerts/ghost-id/acknowledge", json={"actor": "alice"})
    assert response.status_code == 404


async def test_resolve_alert_twice_is_noop(client: AsyncClient, engine: SecurityEngine) -> None:
    [alert] = engine.alerts.raise_alert("csp_violation", "medium")
    first = await client.patch(
        f"/alerts/{alert.id}/resolve", json={"actor": "alice", "reason": "false_positive"}
    )
    second = await client.patch(
        f"/alerts/{alert.id}/resolve", json={"actor": "bob", "reason": "duplicate"}
    )
    assert first.status_code == second.status_code == 200
    assert second.json() == first.json()
    assert second.json()["resolution"] == "false_positive"


async def test_resolve_alert_not_found(client: AsyncClient) -> None:
    response = await client.patch("/alerts/ghost-id/resolve", json={"actor": "alice"})
    assert response.status_code == 404
