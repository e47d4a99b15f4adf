"""Tick scheduler - drives a session on a fixed real-time interval."""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, Optional

from narrative_core import TickRecord
from narrative_core.logging_config import get_logger, story_context

from .session import NarrativeSession

logger = get_logger("engine.scheduler")

TickCallback = Callable[[TickRecord], Awaitable[None]]


class TickScheduler:
    """Background asyncio task that ticks a session until it goes terminal.

    Only one tick is ever in flight: the loop awaits each tick (and the
    ``on_tick`` callback) before sleeping for the next interval.
    """

    def __init__(
        self,
        session: NarrativeSession,
        interval: float = 1.0,
        dt: Optional[float] = None,
        on_tick: Optional[TickCallback] = None,
    ):
        if interval < 0:
            raise ValueError(f"interval must be non-negative, got {interval}")
        self.session = session
        self.interval = interval
        self.dt = dt
        self.on_tick = on_tick
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> asyncio.Task:
        """Start ticking. Calling again while running returns the same task."""
        if self.running:
            return self._task
        self._task = asyncio.create_task(self._run())
        logger.debug(f"scheduler started (every {self.interval}s)", extra=story_context(self.session.story.slug))
        return self._task

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is None or task.done():
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        logger.debug("Scheduler stopped")

    async def wait(self) -> None:
        """Block until the session goes terminal (or the scheduler is stopped)."""
        if self._task is not None:
            await asyncio.shield(self._task)

    async def _run(self) -> None:
        while not self.session.terminal:
            await asyncio.sleep(self.interval)
            record = await self.session.tick(self.dt)
            if self.on_tick is not None:
                await self._safe_callback(record)
        logger.info("terminal, scheduler exiting", extra=story_context(self.session.story.slug, self.session.snapshot.tick_count))

    async def _safe_callback(self, record: TickRecord) -> None:
        try:
            await self.on_tick(record)
        except Exception:
            logger.exception("on_tick callback failed", extra=story_context(self.session.story.slug, record.tick))
