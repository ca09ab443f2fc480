# src/tracker_helper/timer/coordinator.py

from __future__ import annotations

"""
Timer coordinator.

Owns the session (selected task + running flag) for one workspace and drives the
timer state of that task through the task store:

- start(): start the selected task, then tick the UI and periodically snapshot + persist,
- stop(): cancel both ticks, fold the running time and persist,
- shutdown(): synchronous flush for process exit.

Only one task accrues time at a time: starting a different task stops the running one first.
"""

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass

from ..core import timer_state as ts
from ..core.ports import Notifier, TaskRepo
from ..core.timer_state import TimerState
from .scheduler import PeriodicScheduler

logger = logging.getLogger(__name__)

UI_TICK_JOB = "ui-refresh"
SAVE_TICK_JOB = "persist"


@dataclass(slots=True)
class TimerSession:
    """In-memory session state; never persisted as such."""

    active_task_key: str | None = None
    is_running: bool = False
    # Task whose timer this session started; differs from active_task_key after a re-select.
    running_task_key: str | None = None


class TimerCoordinator:
    def __init__(
            self,
            store: TaskRepo,
            notifier: Notifier,
            *,
            update_interval_ms: int = 1000,
            save_interval_ms: int = 5000,
            clock: Callable[[], int] = ts.now_ms,
    ) -> None:
        self.store = store
        self.notifier = notifier
        self.session = TimerSession()
        self.scheduler = PeriodicScheduler()
        self._update_interval_s = max(1, int(update_interval_ms)) / 1000.0
        self._save_interval_s = max(1, int(save_interval_ms)) / 1000.0
        self._clock = clock
        self._lock = asyncio.Lock()

    # ---- session accessors ----

    @property
    def active_task_key(self) -> str | None:
        return self.session.active_task_key

    @property
    def is_running(self) -> bool:
        return self.session.is_running

    def now_ms(self) -> int:
        return self._clock()

    def select_task(self, task_key: str | None) -> None:
        """Change the selection only; a running timer keeps running until start()/stop()."""
        self.session.active_task_key = (task_key or "").strip() or None
        logger.debug("selected task=%s", self.session.active_task_key)

    def current_elapsed_ms(self) -> int | None:
        key = self.session.running_task_key if self.session.is_running else self.session.active_task_key
        if not key:
            return None
        state = self.store.get_timer_state(key)
        if state is None:
            return None
        return ts.elapsed(state, self._clock())

    # ---- transitions ----

    async def start(self) -> bool:
        async with self._lock:
            key = self.session.active_task_key
            if not key:
                logger.warning("Attempt to start timer without selected task")
                self.notifier.error("Error: no task selected for tracking")
                return False

            if self.session.is_running and self.session.running_task_key == key:
                logger.info("Timer is already running for %s", key)
                return False

            state = self.store.get_timer_state(key)
            if state is None:
                logger.error("Task %s not found when trying to start timer", key)
                self.notifier.error("Error: task not found")
                return False

            if self.session.is_running:
                logger.info("Switching timer from %s to %s", self.session.running_task_key, key)
                self._stop_locked()

            started = ts.start(state, self._clock())
            if started is not state:
                self.store.set_timer_state(key, started)

            self.session.is_running = True
            self.session.running_task_key = key

            self.scheduler.schedule(UI_TICK_JOB, self._update_interval_s, self._ui_tick)
            self.scheduler.schedule(SAVE_TICK_JOB, self._save_interval_s, self._save_tick)

            logger.info("Timer started for %s (elapsed=%dms)", key, started.elapsed_ms)
            self.notifier.task_changed(key)
            self._ui_tick()
            return True

    async def stop(self) -> bool:
        async with self._lock:
            if not self.session.is_running:
                logger.info("Attempt to stop inactive timer")
                return False
            return self._stop_locked()

    def _stop_locked(self) -> bool:
        self.scheduler.cancel_all()

        key = self.session.running_task_key
        self.session.is_running = False
        self.session.running_task_key = None
        if not key:
            logger.warning("Running session had no task; ticks cancelled")
            return False

        state = self.store.get_timer_state(key)
        if state is None:
            logger.error("Task %s not found when trying to stop timer", key)
            self.notifier.error("Error: task not found")
            return False

        stopped = ts.stop(state, self._clock())
        self.store.set_timer_state(key, stopped)
        logger.info("Timer stopped for %s (elapsed=%dms)", key, stopped.elapsed_ms)
        self.notifier.task_changed(key)
        return True

    def flush(self) -> TimerState | None:
        """Snapshot the running task into the store right now."""
        if not self.session.is_running or not self.session.running_task_key:
            return None
        key = self.session.running_task_key
        state = self.store.get_timer_state(key)
        if state is None or not state.is_running:
            return None
        snap = ts.snapshot(state, self._clock())
        self.store.set_timer_state(key, snap)
        return snap

    def shutdown(self) -> None:
        """
        Process teardown: cancel both ticks and persist the folded running time.

        The running flag is left as is; the stored marker lets restart recovery resume.
        """
        self.scheduler.cancel_all()
        try:
            snap = self.flush()
        except Exception:
            logger.exception("Failed to persist running timer on shutdown")
            return
        if snap is not None:
            logger.info("Persisted running timer on shutdown (elapsed=%dms)", snap.elapsed_ms)

    # ---- periodic jobs ----

    def _ui_tick(self) -> None:
        key = self.session.running_task_key
        if not self.session.is_running or not key:
            return
        state = self.store.get_timer_state(key)
        if state is None:
            return
        self.notifier.timer_tick(key, ts.elapsed(state, self._clock()))

    def _save_tick(self) -> None:
        snap = self.flush()
        if snap is not None:
            logger.debug("Snapshot persisted for %s (elapsed=%dms)", self.session.running_task_key, snap.elapsed_ms)
