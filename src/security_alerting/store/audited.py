"""AuditedStorage — a KeyValueStore wrapper that audits every access.

Composition instead of patching the underlying store: callers hold an
AuditedStorage, which forwards each operation to the real store and then
enqueues a data_access record. Values are never copied into the record.
"""

from __future__ import annotations

from typing import Any, Protocol

from security_alerting.alerts.sanitize import redact_text
from security_alerting.audit.sink import AuditSink
from security_alerting.models.audit import AuditRecord
from security_alerting.models.severity import Severity

# operation -> record severity
ACCESS_SEVERITY: dict[str, Severity] = {
    "read": "low",
    "write": "medium",
    "delete": "high",
}


class KeyValueStore(Protocol):
    def get(self, key: str) -> Any | None: ...

    def set(self, key: str, value: Any) -> None: ...

    def delete(self, key: str) -> None: ...


class InMemoryKeyValueStore:
    def __init__(self) -> None:
        self._data: dict[str, Any] = {}

    def get(self, key: str) -> Any | None:
        return self._data.get(key)

    def set(self, key: str, value: Any) -> None:
        self._data[key] = value

    def delete(self, key: str) -> None:
        self._data.pop(key, None)


class AuditedStorage:
    def __init__(self, store: KeyValueStore, audit: AuditSink, identity: str | None = None) -> None:
        self._store = store
        self._audit = audit
        self._identity = identity

    def get(self, key: str) -> Any | None:
        value = self._store.get(key)
        self._record("read", key, found=value is not None)
        return value

    def set(self, key: str, value: Any) -> None:
        self._store.set(key, value)
        self._record("write", key)

    def delete(self, key: str) -> None:
        self._store.delete(key)
        self._record("delete", key)

    def _record(self, operation: str, key: str, **extra: Any) -> None:
        self._audit.enqueue(
            AuditRecord(
                kind="data_access",
                action=f"storage_{operation}",
                severity=ACCESS_SEVERITY[operation],
                identity=self._identity,
                payload={"operation": operation, "key": redact_text(key), **extra},
            )
        )
