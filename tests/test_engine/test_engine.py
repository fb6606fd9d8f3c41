"""End-to-end tests for SecurityEngine — the full Event pipeline."""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Any, Callable

import pytest

from security_alerting.config import AppConfig, AuditConfig, ConfigError
from security_alerting.engine import SecurityEngine
from security_alerting.models.alert import AlertFilter
from security_alerting.models.events import Event
from security_alerting.store.audited import InMemoryKeyValueStore
from security_alerting.store.memory import InMemoryAuditWriter


@pytest.fixture
def engine(default_config: AppConfig, writer: InMemoryAuditWriter, clock: Any) -> SecurityEngine:
    return SecurityEngine(default_config, writer, clock)


def _auth_failure(make_event: Callable[..., Event], at: datetime) -> Event:
    return make_event(
        kind="auth_attempt",
        identity="user-42",
        payload={"success": False, "method": "password"},
        timestamp=at,
    )


def test_brute_force_scenario(
    engine: SecurityEngine, make_event: Callable[..., Event], t0: datetime
) -> None:
    results = [
        engine.submit(_auth_failure(make_event, t0 + timedelta(seconds=i * 10)))
        for i in range(6)
    ]

    assert all(not r.findings and not r.blocked for r in results[:5])
    sixth = results[5]
    assert [f["category"] for f in sixth.findings] == ["brute_force"]
    assert sixth.severity == "high"
    assert sixth.blocked
    assert sixth.blocked_until == t0 + timedelta(seconds=50) + timedelta(minutes=30)

    high = engine.alerts.list_alerts(AlertFilter(identity="user-42", severity="high"))
    assert [a.alert_type for a in high] == ["brute_force"]
    assert high[0].id in sixth.alert_ids

    # a 7th attempt inside the block is short-circuited, not counted
    at = t0 + timedelta(minutes=2)
    seventh = engine.submit(_auth_failure(make_event, at))
    assert seventh.blocked
    assert seventh.findings == []
    assert seventh.alert_ids == []
    assert engine.tracker.count("user-42", "auth_request", at) == 6


def test_xss_form_field_scenario(engine: SecurityEngine, make_event: Callable[..., Event]) -> None:
    result = engine.submit(make_event(payload="<script>alert(1)</script>"))

    assert len(result.findings) == 1
    assert result.findings[0]["category"] == "xss"
    assert result.findings[0]["severity"] == "high"
    assert result.risk_score >= 60
    alert = engine.alerts.get_alert(result.alert_ids[0])
    assert alert is not None
    assert alert.alert_type == "xss"
    assert alert.data["payload_excerpt"] == "<script>alert(1)</script>"


def test_repeated_medium_alerts_escalate(engine: SecurityEngine, clock: Any) -> None:
    created = []
    for _ in range(3):
        created.extend(engine.alerts.raise_alert("high_error_rate", "medium", identity="user-42"))
        clock.advance(minutes=4)

    assert len(created) == 4
    escalated = created[3]
    assert escalated.alert_type == "high_error_rate_escalated"
    assert escalated.severity == "high"
    assert escalated.escalated_from == created[2].id


def test_clean_event_produces_nothing(
    engine: SecurityEngine, make_event: Callable[..., Event]
) -> None:
    result = engine.submit(make_event(payload={"message": "Lovely site, thanks!"}))
    assert result.findings == []
    assert result.risk_score == 0
    assert result.severity is None
    assert result.alert_ids == []
    assert engine.audit.pending == 0


def test_api_request_rate_limit(engine: SecurityEngine, make_event: Callable[..., Event]) -> None:
    for _ in range(100):
        result = engine.submit(make_event(kind="network_request", identity="10.0.0.5", payload={}))
    assert result.findings == []

    result = engine.submit(make_event(kind="network_request", identity="10.0.0.5", payload={}))
    assert [f["category"] for f in result.findings] == ["rate_limit"]
    assert result.severity == "medium"
    assert not result.blocked


def test_repeated_rejected_input_adds_rate_limit_finding(
    engine: SecurityEngine, make_event: Callable[..., Event], t0: datetime
) -> None:
    for i in range(10):
        engine.submit(make_event(payload="../../etc/passwd", timestamp=t0 + timedelta(seconds=i)))
    result = engine.submit(make_event(payload="../../etc/passwd", timestamp=t0 + timedelta(seconds=10)))
    assert "rate_limit" in {f["category"] for f in result.findings}


def test_submit_never_raises(
    engine: SecurityEngine, make_event: Callable[..., Event], monkeypatch: pytest.MonkeyPatch
) -> None:
    def _boom(*args: Any, **kwargs: Any) -> None:
        raise RuntimeError("tracker down")

    monkeypatch.setattr(engine.tracker, "record", _boom)
    event = make_event(kind="auth_attempt", payload={"success": False})
    result = engine.submit(event)
    assert result.event_id == event.id
    assert result.alert_ids == []


def test_network_requests_are_counted_without_findings(
    engine: SecurityEngine, make_event: Callable[..., Event]
) -> None:
    engine.submit(make_event(kind="network_request", identity="10.0.0.5", payload={}))
    assert engine.tracker.count("10.0.0.5", "api_request", engine.now()) == 1


async def test_alerts_and_events_reach_the_audit_store(
    engine: SecurityEngine, writer: InMemoryAuditWriter, make_event: Callable[..., Event]
) -> None:
    await engine.start()
    result = engine.submit(make_event(payload="<script>alert(1)</script>"))
    await engine.shutdown()

    actions = [r.action for r in writer.records]
    assert actions.count("alert_created") == 1
    assert actions.count("alert_escalated") == 1
    assert actions.count("event_received") == 1
    event_record = next(r for r in writer.records if r.action == "event_received")
    assert event_record.payload["event_id"] == result.event_id
    assert event_record.payload["alert_ids"] == result.alert_ids
    assert engine.audit.pending == 0


async def test_audited_storage_writes_through_engine_sink(
    engine: SecurityEngine, writer: InMemoryAuditWriter
) -> None:
    storage = engine.audited(InMemoryKeyValueStore(), identity="user-42")
    storage.set("theme", "dark")
    assert storage.get("theme") == "dark"
    storage.delete("theme")
    assert engine.audit.pending == 3

    await engine.audit.flush()
    assert [r.action for r in writer.records] == ["storage_write", "storage_read", "storage_delete"]
    assert {r.identity for r in writer.records} == {"user-42"}


async def test_sweep_resolves_stale_alerts_and_prunes(
    engine: SecurityEngine, clock: Any, make_event: Callable[..., Event]
) -> None:
    [low] = engine.alerts.raise_alert("slow_page", "low")
    engine.submit(make_event(kind="network_request", identity="10.0.0.5", payload={}))

    clock.advance(hours=25)
    await engine.sweep()

    stored = engine.alerts.get_alert(low.id)
    assert stored is not None
    assert stored.resolution == "stale_alert"
    assert engine.tracker.statistics(clock.now).tracked_identities == 0


def test_invalid_config_fails_fast(writer: InMemoryAuditWriter) -> None:
    with pytest.raises(ConfigError):
        SecurityEngine(AppConfig(audit=AuditConfig(batch_size=0)), writer)
