# src/tracker_helper/timer/recovery.py

from __future__ import annotations

import logging
from enum import Enum

from ..core import timer_state as ts
from .coordinator import TimerCoordinator

logger = logging.getLogger(__name__)


class RecoveryOutcome(str, Enum):
    NOTHING = "nothing"
    RESUMED = "resumed"
    FORCE_STOPPED = "force_stopped"


async def restore_active_timer(
        coordinator: TimerCoordinator,
        *,
        max_restore_time_ms: int,
        now_ms: int | None = None,
) -> RecoveryOutcome:
    """
    Pick up a timer that was left running by a previous process.

    - No running task in the store -> nothing.
    - Running for longer than max_restore_time_ms -> treat the session as abandoned:
      fold the whole gap into elapsed, clear the marker, do not start ticking.
    - Otherwise resume through coordinator.start(); start() keeps the stored marker.

    Must run before any user-triggered timer action.
    """
    store = coordinator.store
    task_key = store.get_active_key()
    if not task_key:
        return RecoveryOutcome.NOTHING

    state = store.get_timer_state(task_key)
    if state is None or state.started_at_ms is None:
        return RecoveryOutcome.NOTHING

    now = coordinator.now_ms() if now_ms is None else int(now_ms)
    age_ms = now - state.started_at_ms
    coordinator.select_task(task_key)

    if age_ms > max_restore_time_ms:
        stopped = ts.stop(state, now)
        store.set_timer_state(task_key, stopped)
        coordinator.notifier.task_changed(task_key)
        logger.warning(
            "Timer for %s was left running for %.1fh (> %.1fh); stopped without resuming",
            task_key,
            age_ms / 3_600_000,
            max_restore_time_ms / 3_600_000,
        )
        return RecoveryOutcome.FORCE_STOPPED

    await coordinator.start()
    logger.info("Resumed timer for %s (running for %ds)", task_key, max(0, age_ms) // 1000)
    return RecoveryOutcome.RESUMED
