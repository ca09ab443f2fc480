# src/tracker_helper/timer/scheduler.py

from __future__ import annotations

"""
Periodic scheduler.

Named repeating jobs on the running event loop. Each job is its own asyncio task:

- sleep interval_seconds,
- run the callback (sync or async),
- log and keep going if the callback raises.

Cancelling a job cancels its task; a cancelled job never runs its callback again.
"""

import asyncio
import inspect
import logging
from collections.abc import Awaitable, Callable

logger = logging.getLogger(__name__)

TickCallback = Callable[[], None] | Callable[[], Awaitable[None]]


async def _run_periodic(name: str, interval_seconds: float, callback: TickCallback) -> None:
    sleep_s = max(0.01, float(interval_seconds))
    while True:
        await asyncio.sleep(sleep_s)
        try:
            result = callback()
            if inspect.isawaitable(result):
                await result
        except asyncio.CancelledError:
            raise
        except Exception:
            logger.exception("periodic job failed name=%s", name)


class PeriodicScheduler:
    """Owns a set of named repeating jobs; at most one job per name."""

    def __init__(self) -> None:
        self._jobs: dict[str, asyncio.Task[None]] = {}

    def schedule(self, name: str, interval_seconds: float, callback: TickCallback) -> None:
        """(Re)start job `name`. Requires a running event loop."""
        self.cancel(name)
        self._jobs[name] = asyncio.get_running_loop().create_task(
            _run_periodic(name, interval_seconds, callback),
            name=f"periodic:{name}",
        )
        logger.debug("periodic job scheduled name=%s interval=%.3fs", name, interval_seconds)

    def cancel(self, name: str) -> None:
        task = self._jobs.pop(name, None)
        if task is not None and not task.done():
            task.cancel()
            logger.debug("periodic job cancelled name=%s", name)

    def cancel_all(self) -> None:
        for name in list(self._jobs):
            self.cancel(name)

    def is_scheduled(self, name: str) -> bool:
        task = self._jobs.get(name)
        return task is not None and not task.done()

    @property
    def active_jobs(self) -> list[str]:
        return [name for name in self._jobs if self.is_scheduled(name)]
