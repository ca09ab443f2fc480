# tests/test_recovery.py

from __future__ import annotations

import pytest

from tracker_helper.core.timer_state import TimerState
from tracker_helper.tasks.task_models import TaskRecord
from tracker_helper.timer.recovery import RecoveryOutcome, restore_active_timer

from .conftest import seed

HOUR_MS = 60 * 60 * 1000
DAY_MS = 24 * HOUR_MS


@pytest.mark.asyncio
async def test_stale_timer_is_force_stopped(coordinator, store, clock) -> None:
    started = clock.now - 25 * HOUR_MS
    seed(store, TaskRecord(task_key="T1", timer_state=TimerState(1_000, started)))

    outcome = await restore_active_timer(coordinator, max_restore_time_ms=DAY_MS, now_ms=clock.now)

    assert outcome is RecoveryOutcome.FORCE_STOPPED
    assert store.get_timer_state("T1") == TimerState(1_000 + 25 * HOUR_MS, None)
    assert coordinator.is_running is False
    assert coordinator.scheduler.active_jobs == []


@pytest.mark.asyncio
async def test_recent_timer_is_resumed_with_original_marker(coordinator, store, clock) -> None:
    started = clock.now - 2 * HOUR_MS
    seed(store, TaskRecord(task_key="T2", timer_state=TimerState(500, started)))

    outcome = await restore_active_timer(coordinator, max_restore_time_ms=DAY_MS, now_ms=clock.now)

    assert outcome is RecoveryOutcome.RESUMED
    assert coordinator.is_running is True
    assert coordinator.active_task_key == "T2"
    assert store.get_timer_state("T2") == TimerState(500, started)
    assert coordinator.scheduler.active_jobs != []

    await coordinator.stop()
    assert store.get_timer_state("T2") == TimerState(500 + 2 * HOUR_MS, None)


@pytest.mark.asyncio
async def test_nothing_to_restore(coordinator, store, clock) -> None:
    seed(store, TaskRecord(task_key="T3", timer_state=TimerState(9_000)))

    outcome = await restore_active_timer(coordinator, max_restore_time_ms=DAY_MS, now_ms=clock.now)

    assert outcome is RecoveryOutcome.NOTHING
    assert coordinator.is_running is False
    assert coordinator.active_task_key is None
    assert store.get_timer_state("T3") == TimerState(9_000)


@pytest.mark.asyncio
async def test_recovery_uses_the_coordinator_clock(coordinator, store, clock) -> None:
    started = clock.now - 2 * HOUR_MS
    seed(store, TaskRecord(task_key="T4", timer_state=TimerState(0, started)))

    outcome = await restore_active_timer(coordinator, max_restore_time_ms=DAY_MS)

    assert outcome is RecoveryOutcome.RESUMED
    assert store.get_timer_state("T4") == TimerState(0, started)
    await coordinator.stop()
