"""
Goal: One recurring asyncio timer that keeps the host's playlist view fresh while linked.
start() is safe to call repeatedly; there is never more than one task alive.
"""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, Optional

from loguru import logger


class PlaylistPoller:
    def __init__(self, tick: Callable[[], Awaitable[None]], interval: float) -> None:
        self._tick = tick
        self.interval = interval
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.get_running_loop().create_task(self._run())
        logger.info("Playlist polling started (every {}s)", self.interval)

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is None or task.done():
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        logger.info("Playlist polling stopped")

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval)
            try:
                await self._tick()
            except Exception:  # noqa: BLE001
                # a failed poll just waits for the next tick
                logger.exception("Playlist poll failed")
