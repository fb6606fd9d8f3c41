"""Event model — one occurrence submitted to the engine for evaluation.

Events are produced by callers (form handlers, API middleware, storage
wrappers) and consumed exactly once by SecurityEngine.submit(). They are
frozen: nothing downstream may rewrite what the caller observed.

context carries auxiliary tags such as form_id, endpoint, field_name and
user_agent. payload is either the raw submitted string or a structured map
(auth outcome, runtime error message, behaviour flags).
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _new_id() -> str:
    return str(uuid.uuid4())


def _utcnow() -> datetime:
    return datetime.now(tz=timezone.utc)


EventKind = Literal[
    "input_submission",
    "auth_attempt",
    "network_request",
    "storage_access",
    "runtime_error",
]


class Event(BaseModel):
    """An immutable occurrence to be scanned, counted and possibly alerted on."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=_new_id)
    kind: EventKind
    identity: str  # user id, session id or network address
    payload: str | dict[str, Any] = ""
    timestamp: datetime = Field(default_factory=_utcnow)
    context: dict[str, Any] = Field(default_factory=dict)

    @field_validator("timestamp")
    @classmethod
    def _assume_utc(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    @property
    def user_agent(self) -> str | None:
        agent = self.context.get("user_agent")
        return agent if isinstance(agent, str) else None

    def auth_failed(self) -> bool:
        """True for auth_attempt events whose payload reports a failed login."""
        if self.kind != "auth_attempt" or not isinstance(self.payload, dict):
            return False
        return self.payload.get("success") is False
