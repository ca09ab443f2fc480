# tests/test_branch_binding.py

from __future__ import annotations

import pytest

from tracker_helper.core.timer_state import TimerState
from tracker_helper.tasks.task_models import TaskRecord
from tracker_helper.timer.branch_binding import handle_branch_change

from .conftest import seed


def _seed_branches(store) -> None:
    seed(
        store,
        TaskRecord(task_key="A", branch="feat/x"),
        TaskRecord(task_key="B", branch="feat/x"),
        TaskRecord(task_key="C", branch="main"),
    )


@pytest.mark.asyncio
async def test_ambiguous_branch_does_not_start_anything(coordinator, store, notifier) -> None:
    _seed_branches(store)

    result = await handle_branch_change(coordinator, "feat/x")

    assert result.is_ambiguous
    assert sorted(result.candidates) == ["A", "B"]
    assert result.started_task_key is None
    assert coordinator.is_running is False
    assert store.get_active_key() is None
    assert len(notifier.warnings) == 1
    assert "A" in notifier.warnings[0] and "B" in notifier.warnings[0]


@pytest.mark.asyncio
async def test_single_bound_task_is_started(coordinator, store, clock) -> None:
    _seed_branches(store)

    result = await handle_branch_change(coordinator, "main")

    assert result.started_task_key == "C"
    assert coordinator.is_running is True
    assert coordinator.active_task_key == "C"
    assert store.get_timer_state("C") == TimerState(0, clock.now)

    await coordinator.stop()


@pytest.mark.asyncio
async def test_branch_change_always_stops_running_timer(coordinator, store, clock) -> None:
    _seed_branches(store)
    coordinator.select_task("C")
    await coordinator.start()
    clock.advance(1_500)

    result = await handle_branch_change(coordinator, "unbound-branch")

    assert result.candidates == []
    assert coordinator.is_running is False
    assert store.get_timer_state("C") == TimerState(1_500, None)


@pytest.mark.asyncio
async def test_no_branch_is_ignored(coordinator, store, clock) -> None:
    _seed_branches(store)
    coordinator.select_task("C")
    await coordinator.start()

    result = await handle_branch_change(coordinator, None)

    assert result.branch is None
    assert coordinator.is_running is True
    await coordinator.stop()
