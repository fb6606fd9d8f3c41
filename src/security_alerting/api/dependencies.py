"""FastAPI dependency providers.

The engine and config are attached to app.state at startup and retrieved
here via Request injection.
"""

from __future__ import annotations

from fastapi import Request

from security_alerting.config import AppConfig
from security_alerting.engine import SecurityEngine


def get_config(request: Request) -> AppConfig:
    return request.app.state.config  # type: ignore[no-any-return]


def get_engine(request: Request) -> SecurityEngine:
    return request.app.state.engine  # type: ignore[no-any-return]
