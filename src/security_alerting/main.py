"""FastAPI application factory with lifespan startup/shutdown."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncGenerator

import structlog
from fastapi import FastAPI

from security_alerting.api.routes import alerts, health, ingest, threats
from security_alerting.config import load_config
from security_alerting.engine import SecurityEngine
from security_alerting.log import configure_logging
from security_alerting.store.audit import MongoAuditWriter
from security_alerting.store.client import get_database, get_motor_client

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Create shared resources on startup; drain and close them on shutdown."""
    # ConfigError propagates here: the app refuses to start on bad thresholds
    config = load_config()
    configure_logging(config.logging)

    client = get_motor_client(config.mongo_uri)
    db = get_database(client, config.mongo_db)

    writer = MongoAuditWriter(db)
    try:
        await writer.ensure_indexes()
    except Exception as exc:
        # Mongo may still be starting; the sink retries failed batches
        logger.warning("audit_indexes_unavailable", error=repr(exc))

    engine = SecurityEngine(config, writer)
    await engine.start()

    app.state.config = config
    app.state.mongo_client = client
    app.state.engine = engine

    yield

    await engine.shutdown()
    client.close()


def create_app() -> FastAPI:
    app = FastAPI(
        title="Security Alerting Engine",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.include_router(health.router)
    app.include_router(ingest.router)
    app.include_router(alerts.router)
    app.include_router(threats.router)
    return app


app = create_app()
