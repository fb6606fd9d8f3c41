"""Shared pytest fixtures for the security alerting test suite."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Callable

import pytest

from security_alerting.config import AppConfig, AuditConfig, BehaviorConfig, default_counters
from security_alerting.models.events import Event
from security_alerting.models.finding import Finding
from security_alerting.store.memory import InMemoryAuditWriter

T0 = datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, start: datetime = T0) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


# ---------------------------------------------------------------------------
# Config fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def default_config() -> AppConfig:
    return AppConfig()


@pytest.fixture
def counters() -> dict:  # type: ignore[type-arg]
    return default_counters()


@pytest.fixture
def behavior_config() -> BehaviorConfig:
    return BehaviorConfig()


@pytest.fixture
def audit_config() -> AuditConfig:
    return AuditConfig(batch_size=3, max_buffered=10, flush_interval_seconds=30.0, flush_timeout_seconds=0.5)


# ---------------------------------------------------------------------------
# Clock / storage fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def t0() -> datetime:
    return T0


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def writer() -> InMemoryAuditWriter:
    return InMemoryAuditWriter()


# ---------------------------------------------------------------------------
# Model factories
# ---------------------------------------------------------------------------


@pytest.fixture
def make_event() -> Callable[..., Event]:
    """Factory: create an Event with sensible defaults, override via kwargs."""

    def _factory(**kwargs: Any) -> Event:
        defaults: dict[str, Any] = {
            "kind": "input_submission",
            "identity": "user-42",
            "payload": "hello world",
            "timestamp": T0,
            "context": {"form_id": "contact", "field_name": "message"},
        }
        defaults.update(kwargs)
        return Event(**defaults)

    return _factory


@pytest.fixture
def make_finding() -> Callable[..., Finding]:
    def _factory(**kwargs: Any) -> Finding:
        defaults: dict[str, Any] = {
            "category": "xss",
            "severity": "high",
            "description": "Script tag in submitted input",
            "matched_rule": "xss.script_tag",
        }
        defaults.update(kwargs)
        return Finding(**defaults)

    return _factory
