"""Unit tests for MongoAuditWriter — Motor collection fully mocked."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest
from pymongo import ReplaceOne

from security_alerting.models.audit import AuditRecord
from security_alerting.store.audit import COLLECTION, MongoAuditWriter


@pytest.fixture
def collection() -> MagicMock:
    col = MagicMock()
    col.bulk_write = AsyncMock()
    col.create_index = AsyncMock()
    return col


@pytest.fixture
def mongo_writer(collection: MagicMock) -> MongoAuditWriter:
    db = MagicMock()
    db.__getitem__.return_value = collection
    writer = MongoAuditWriter(db)
    db.__getitem__.assert_called_once_with(COLLECTION)
    return writer


async def test_write_batch_upserts_by_record_id(
    mongo_writer: MongoAuditWriter, collection: MagicMock
) -> None:
    records = [
        AuditRecord(kind="alert", action="alert_created", severity="high"),
        AuditRecord(kind="event", action="event_received"),
    ]
    await mongo_writer.write_batch(records)

    ops = collection.bulk_write.await_args.args[0]
    assert collection.bulk_write.await_args.kwargs == {"ordered": True}
    assert ops == [
        ReplaceOne({"id": r.id}, r.model_dump(mode="json"), upsert=True) for r in records
    ]


async def test_empty_batch_is_not_written(
    mongo_writer: MongoAuditWriter, collection: MagicMock
) -> None:
    await mongo_writer.write_batch([])
    collection.bulk_write.assert_not_awaited()


async def test_write_errors_propagate(
    mongo_writer: MongoAuditWriter, collection: MagicMock
) -> None:
    collection.bulk_write.side_effect = ConnectionError("no primary")
    with pytest.raises(ConnectionError):
        await mongo_writer.write_batch([AuditRecord(kind="event", action="event_received")])


async def test_ensure_indexes(mongo_writer: MongoAuditWriter, collection: MagicMock) -> None:
    await mongo_writer.ensure_indexes()
    collection.create_index.assert_any_await([("id", 1)], unique=True)
