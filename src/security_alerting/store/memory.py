"""InMemoryAuditWriter — list-backed writer for tests and local runs."""

from __future__ import annotations

from typing import Sequence

from security_alerting.models.audit import AuditRecord
from security_alerting.store.base import AuditWriter


class InMemoryAuditWriter(AuditWriter):
    def __init__(self) -> None:
        self.batches: list[list[AuditRecord]] = []

    async def write_batch(self, records: Sequence[AuditRecord]) -> None:
        self.batches.append([r.model_copy() for r in records])

    @property
    def records(self) -> list[AuditRecord]:
        return [r for batch in self.batches for r in batch]

    def unique_ids(self) -> set[str]:
        return {r.id for r in self.records}
