"""BehaviorTracker — per-identity sliding-window counters and brute-force blocks.

State is keyed by identity, then by counter kind. Each identity has its own
lock; the registry lock is held only long enough to find or create that
identity's state, so callers for different identities never contend.

BehaviorTracker is instantiated once by SecurityEngine and lives for the
lifetime of the process — no persistence.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from datetime import datetime, timedelta

import structlog

from security_alerting.config import BehaviorConfig, CounterConfig
from security_alerting.models.finding import Finding
from security_alerting.tracking.window import CounterWindow

logger = structlog.get_logger(__name__)


@dataclass
class CounterState:
    """Result of one BehaviorTracker.record() call."""

    identity: str
    counter_kind: str
    count: int
    threshold: int
    exceeded: bool = False
    blocked: bool = False
    blocked_until: datetime | None = None
    finding: Finding | None = None


@dataclass
class BlockInfo:
    identity: str
    blocked_until: datetime


@dataclass
class ExceededCounter:
    identity: str
    counter_kind: str
    count: int
    threshold: int


@dataclass
class TrackerStatistics:
    tracked_identities: int
    active_blocks: list[BlockInfo] = field(default_factory=list)
    exceeded_counters: list[ExceededCounter] = field(default_factory=list)


@dataclass
class _IdentityState:
    lock: threading.Lock = field(default_factory=threading.Lock)
    windows: dict[str, CounterWindow] = field(default_factory=dict)
    blocked_until: datetime | None = None
    retired: bool = False  # set once pruned; a racing record() re-fetches

    def is_blocked(self, now: datetime) -> bool:
        return self.blocked_until is not None and now < self.blocked_until


class BehaviorTracker:
    def __init__(self, counters: dict[str, CounterConfig], config: BehaviorConfig) -> None:
        self._counters = counters
        self._config = config
        self._block_duration = timedelta(seconds=config.block_duration_seconds)
        self._brute_force_kinds = frozenset(config.brute_force_counters)
        self._registry_lock = threading.Lock()
        self._identities: dict[str, _IdentityState] = {}

    def record(self, identity: str, counter_kind: str, now: datetime) -> CounterState:
        """Count one occurrence of counter_kind for identity at `now`.

        A blocked identity short-circuits: nothing is counted and the returned
        state has blocked=True. Crossing the threshold synthesizes a Finding;
        crossing a brute-force threshold also blocks the identity. An
        unconfigured counter_kind is logged and counts nothing.
        """
        counter = self._counters.get(counter_kind)
        if counter is None:
            logger.warning("unknown_counter_kind", identity=identity, counter_kind=counter_kind)
            blocked_until = self.blocked_until(identity, now)
            return CounterState(
                identity=identity,
                counter_kind=counter_kind,
                count=0,
                threshold=0,
                blocked=blocked_until is not None,
                blocked_until=blocked_until,
            )

        while True:
            state = self._state_for(identity)
            with state.lock:
                if not state.retired:
                    return self._record_locked(state, identity, counter_kind, counter, now)

    def _record_locked(
        self,
        state: _IdentityState,
        identity: str,
        counter_kind: str,
        counter: CounterConfig,
        now: datetime,
    ) -> CounterState:
        if state.is_blocked(now):
            window = state.windows.get(counter_kind)
            return CounterState(
                identity=identity,
                counter_kind=counter_kind,
                count=window.count(now) if window else 0,
                threshold=counter.threshold,
                blocked=True,
                blocked_until=state.blocked_until,
            )

        window = state.windows.get(counter_kind)
        if window is None:
            window = CounterWindow(counter.window_seconds, self._config.max_events_tracked)
            state.windows[counter_kind] = window
        count = window.add(now)

        result = CounterState(
            identity=identity,
            counter_kind=counter_kind,
            count=count,
            threshold=counter.threshold,
        )
        if count <= counter.threshold:
            return result

        result.exceeded = True
        if counter_kind in self._brute_force_kinds:
            state.blocked_until = now + self._block_duration
            result.blocked = True
            result.blocked_until = state.blocked_until
            result.finding = Finding(
                category="brute_force",
                severity="high",
                description=(
                    f"{count} {counter_kind} events for {identity} within "
                    f"{counter.window_seconds}s (threshold: {counter.threshold}); "
                    f"blocked until {state.blocked_until.isoformat()}"
                ),
                matched_rule=f"counter.{counter_kind}",
                metadata={
                    "count": count,
                    "threshold": counter.threshold,
                    "window_seconds": counter.window_seconds,
                    "blocked_until": state.blocked_until.isoformat(),
                },
            )
            logger.warning(
                "identity_blocked",
                identity=identity,
                counter_kind=counter_kind,
                count=count,
                blocked_until=state.blocked_until.isoformat(),
            )
        else:
            result.finding = Finding(
                category="rate_limit",
                severity="medium",
                description=(
                    f"{count} {counter_kind} events for {identity} within "
                    f"{counter.window_seconds}s (threshold: {counter.threshold})"
                ),
                matched_rule=f"counter.{counter_kind}",
                metadata={
                    "count": count,
                    "threshold": counter.threshold,
                    "window_seconds": counter.window_seconds,
                },
            )
            logger.info(
                "rate_limit_exceeded",
                identity=identity,
                counter_kind=counter_kind,
                count=count,
            )
        return result

    def count(self, identity: str, counter_kind: str, now: datetime) -> int:
        state = self._identities.get(identity)
        if state is None:
            return 0
        with state.lock:
            window = state.windows.get(counter_kind)
            return window.count(now) if window else 0

    def is_exceeded(self, identity: str, counter_kind: str, now: datetime) -> bool:
        counter = self._counters[counter_kind]
        return self.count(identity, counter_kind, now) > counter.threshold

    def blocked_until(self, identity: str, now: datetime) -> datetime | None:
        state = self._identities.get(identity)
        if state is None:
            return None
        with state.lock:
            return state.blocked_until if state.is_blocked(now) else None

    def unblock(self, identity: str) -> bool:
        """Lift a block early and reset the identity's counters.

        Returns False if the identity was never blocked.
        """
        state = self._identities.get(identity)
        if state is None:
            return False
        with state.lock:
            was_blocked = state.blocked_until is not None
            state.blocked_until = None
            for window in state.windows.values():
                window.clear()
        if was_blocked:
            logger.info("identity_unblocked", identity=identity)
        return was_blocked

    def prune(self, now: datetime) -> int:
        """Forget identities with no live counters and no active block."""
        removed = 0
        with self._registry_lock:
            for identity in list(self._identities):
                state = self._identities[identity]
                with state.lock:
                    if state.is_blocked(now):
                        continue
                    if all(w.is_empty(now) for w in state.windows.values()):
                        state.retired = True
                        del self._identities[identity]
                        removed += 1
        return removed

    def statistics(self, now: datetime) -> TrackerStatistics:
        with self._registry_lock:
            items = list(self._identities.items())

        stats = TrackerStatistics(tracked_identities=len(items))
        for identity, state in items:
            with state.lock:
                if state.is_blocked(now):
                    stats.active_blocks.append(BlockInfo(identity, state.blocked_until))  # type: ignore[arg-type]
                for kind, window in state.windows.items():
                    count = window.count(now)
                    threshold = self._counters[kind].threshold
                    if count > threshold:
                        stats.exceeded_counters.append(
                            ExceededCounter(identity, kind, count, threshold)
                        )
        return stats

    def reset(self, identity: str | None = None) -> None:
        """Clear state — useful in tests."""
        with self._registry_lock:
            if identity is None:
                self._identities.clear()
            else:
                self._identities.pop(identity, None)

    def _state_for(self, identity: str) -> _IdentityState:
        with self._registry_lock:
            state = self._identities.get(identity)
            if state is None:
                state = _IdentityState()
                self._identities[identity] = state
            return state
