"""Motor async client setup.

The client is created once in the FastAPI lifespan and stored on app.state;
the audit writer and the health route share its connection pool.
"""

from __future__ import annotations

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase


def get_motor_client(uri: str, timeout_ms: int = 5000) -> AsyncIOMotorClient:  # type: ignore[type-arg]
    return AsyncIOMotorClient(uri, serverSelectionTimeoutMS=timeout_ms)


def get_database(
    client: AsyncIOMotorClient,  # type: ignore[type-arg]
    db_name: str,
) -> AsyncIOMotorDatabase:  # type: ignore[type-arg]
    return client[db_name]


async def ping(client: AsyncIOMotorClient) -> bool:  # type: ignore[type-arg]
    """True if the server answers a ping within the selection timeout."""
    try:
        await client.admin.command("ping")
    except Exception:
        return False
    return True
