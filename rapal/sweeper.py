from __future__ import annotations

import asyncio
from typing import List, Optional

from rapal.logging_config import logger
from rapal.sessions import SessionStore


class SessionSweeper:
    """
    Periodically evicts idle sessions from a SessionStore.

    The long-running server drives it with ``start()``/``stop()`` from the
    application lifespan. Serverless handlers cannot rely on background
    tasks and call ``sweep_if_due()`` per request instead.
    """

    def __init__(self, store: SessionStore, *, interval: float = 1800.0) -> None:
        self.store = store
        self.interval = interval
        self._task: Optional[asyncio.Task] = None
        self._last_sweep = store.now()

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def run_once(self) -> List[str]:
        removed = self.store.sweep()
        self._last_sweep = self.store.now()
        if removed:
            logger.info(
                "Idle sweep removed %d session(s), %d live",
                len(removed),
                len(self.store),
            )
        return removed

    def sweep_if_due(self) -> List[str]:
        if self.store.now() - self._last_sweep < self.interval:
            return []
        return self.run_once()

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval)
            try:
                self.run_once()
            except Exception:
                logger.exception("Idle session sweep failed")

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.get_running_loop().create_task(
            self._run(), name="rapal-session-sweeper"
        )
        logger.info("Session sweeper started (interval=%ss)", self.interval)

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        logger.info("Session sweeper stopped")


__all__ = ["SessionSweeper"]
