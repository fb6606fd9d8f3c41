"""Abstract base class for every durable audit destination."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Sequence

from security_alerting.models.audit import AuditRecord


class AuditWriter(ABC):
    @abstractmethod
    async def write_batch(self, records: Sequence[AuditRecord]) -> None:
        """Persist the batch in order; raise on any failure.

        A batch may be delivered again after a failure or timeout, so
        implementations must tolerate records they have already stored.
        """
        ...
