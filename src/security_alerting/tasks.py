"""PeriodicTask — a cancellable background asyncio loop with an early-wake trigger.

Runs `func` every `interval_seconds`, or sooner when trigger() is called.
A failing cycle is logged and the loop carries on; the next cycle is the
retry. stop() cancels the loop and waits for it to finish.
"""

from __future__ import annotations

import asyncio
from contextlib import suppress
from typing import Awaitable, Callable

import structlog

logger = structlog.get_logger(__name__)


class PeriodicTask:
    def __init__(
        self,
        name: str,
        interval_seconds: float,
        func: Callable[[], Awaitable[object]],
    ) -> None:
        self.name = name
        self._interval = interval_seconds
        self._func = func
        self._task: asyncio.Task | None = None
        self._wake: asyncio.Event | None = None
        self._loop: asyncio.AbstractEventLoop | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start(self) -> None:
        """Start the background loop — call from the FastAPI lifespan."""
        if self.running:
            return
        self._loop = asyncio.get_running_loop()
        self._wake = asyncio.Event()
        self._task = asyncio.create_task(self._run(), name=self.name)
        logger.info("periodic_task_started", task=self.name, interval_seconds=self._interval)

    async def stop(self) -> None:
        if self._task:
            self._task.cancel()
            with suppress(asyncio.CancelledError):
                await self._task
            self._task = None
            logger.info("periodic_task_stopped", task=self.name)

    def trigger(self) -> None:
        """Run the next cycle now. Safe to call from any thread."""
        if self._loop is None or self._wake is None or self._loop.is_closed():
            return
        self._loop.call_soon_threadsafe(self._wake.set)

    async def _run(self) -> None:
        assert self._wake is not None
        while True:
            with suppress(asyncio.TimeoutError):
                await asyncio.wait_for(self._wake.wait(), timeout=self._interval)
            self._wake.clear()
            try:
                await self._func()
            except Exception:
                logger.exception("periodic_task_failed", task=self.name)
