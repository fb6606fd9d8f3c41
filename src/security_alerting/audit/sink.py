"""AuditSink — bounded in-memory buffer flushed in batches to an AuditWriter.

Delivery is at-least-once: a batch that fails (writer error or timeout) goes
back to the front of the buffer with its attempt count bumped and is retried
on the next cycle. Only the most recent `max_buffered` records are kept;
records pushed out are counted and reported by a diagnostic record queued
behind everything else.

enqueue() never blocks on I/O and is safe from any thread. The flush loop
is a PeriodicTask: every `flush_interval_seconds`, or immediately once
`batch_size` records are waiting; a cycle keeps writing while full batches
remain, so a burst drains without waiting out the interval.
"""

from __future__ import annotations

import asyncio
import threading
from collections import deque

import structlog

from security_alerting.config import AuditConfig
from security_alerting.models.audit import AuditRecord
from security_alerting.store.base import AuditWriter
from security_alerting.tasks import PeriodicTask

logger = structlog.get_logger(__name__)


class AuditSink:
    def __init__(self, writer: AuditWriter, config: AuditConfig | None = None) -> None:
        self._writer = writer
        self._config = config or AuditConfig()
        self._lock = threading.Lock()
        self._buffer: deque[AuditRecord] = deque()
        self._dropped_unreported = 0
        self._dropped_total = 0
        self._flush_lock = asyncio.Lock()
        self._task = PeriodicTask(
            "audit_flush", self._config.flush_interval_seconds, self._flush_cycle
        )

    @property
    def pending(self) -> int:
        with self._lock:
            return len(self._buffer)

    @property
    def dropped_total(self) -> int:
        return self._dropped_total

    def enqueue(self, record: AuditRecord) -> None:
        with self._lock:
            self._buffer.append(record)
            dropped = self._trim_locked()
            size = len(self._buffer)
        if dropped:
            logger.warning(
                "audit_records_dropped",
                dropped=dropped,
                max_buffered=self._config.max_buffered,
            )
        if size >= self._config.batch_size:
            self._task.trigger()

    async def flush(self) -> int:
        """Write at most one batch. Returns the number of records written (0 on failure)."""
        async with self._flush_lock:
            batch = self._take_batch()
            if not batch:
                return 0
            for record in batch:
                record.attempts += 1

            try:
                await asyncio.wait_for(
                    self._writer.write_batch(batch),
                    timeout=self._config.flush_timeout_seconds,
                )
            except asyncio.CancelledError:
                self._requeue(batch)
                raise
            except Exception as exc:
                self._requeue(batch)
                logger.warning(
                    "audit_flush_failed",
                    batch_size=len(batch),
                    attempts=max(r.attempts for r in batch),
                    error=repr(exc),
                    pending=self.pending,
                )
                return 0

            logger.debug("audit_batch_flushed", batch_size=len(batch), pending=self.pending)
            return len(batch)

    async def _flush_cycle(self) -> None:
        while await self.flush():
            if self.pending < self._config.batch_size:
                break

    async def start(self) -> None:
        await self._task.start()

    async def stop(self) -> None:
        """Stop the flush loop, then drain until empty or a flush fails."""
        await self._task.stop()
        while self.pending:
            if not await self.flush():
                break
        if self.pending:
            logger.error("audit_drain_incomplete", pending=self.pending)
        else:
            logger.info("audit_drained")

    def _take_batch(self) -> list[AuditRecord]:
        with self._lock:
            if self._dropped_unreported and len(self._buffer) < self._config.max_buffered:
                self._buffer.append(
                    AuditRecord(
                        kind="diagnostic",
                        action="audit_records_dropped",
                        severity="low",
                        payload={
                            "dropped": self._dropped_unreported,
                            "dropped_total": self._dropped_total,
                            "max_buffered": self._config.max_buffered,
                        },
                    )
                )
                self._dropped_unreported = 0
            size = min(self._config.batch_size, len(self._buffer))
            return [self._buffer.popleft() for _ in range(size)]

    def _requeue(self, batch: list[AuditRecord]) -> None:
        with self._lock:
            self._buffer.extendleft(reversed(batch))
            dropped = self._trim_locked()
        if dropped:
            logger.warning(
                "audit_records_dropped",
                dropped=dropped,
                max_buffered=self._config.max_buffered,
            )

    def _trim_locked(self) -> int:
        overflow = len(self._buffer) - self._config.max_buffered
        if overflow <= 0:
            return 0
        for _ in range(overflow):
            self._buffer.popleft()
        self._dropped_unreported += overflow
        self._dropped_total += overflow
        return overflow
