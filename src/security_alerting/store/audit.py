"""MongoAuditWriter — async Motor writer for the audit_records collection.

Each batch is one ordered bulk_write of upserts keyed by record id, so a
batch replayed after a timeout collapses onto the documents it already
wrote instead of duplicating them.
"""

from __future__ import annotations

from typing import Sequence

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ReplaceOne

from security_alerting.models.audit import AuditRecord
from security_alerting.store.base import AuditWriter

COLLECTION = "audit_records"


class MongoAuditWriter(AuditWriter):
    def __init__(self, db: AsyncIOMotorDatabase) -> None:  # type: ignore[type-arg]
        self._col = db[COLLECTION]

    async def ensure_indexes(self) -> None:
        await self._col.create_index([("id", 1)], unique=True)
        await self._col.create_index([("enqueued_at", -1)])
        await self._col.create_index([("kind", 1), ("action", 1), ("enqueued_at", -1)])
        await self._col.create_index([("identity", 1), ("enqueued_at", -1)])

    async def write_batch(self, records: Sequence[AuditRecord]) -> None:
        if not records:
            return
        ops = [
            ReplaceOne({"id": r.id}, r.model_dump(mode="json"), upsert=True)
            for r in records
        ]
        await self._col.bulk_write(ops, ordered=True)

