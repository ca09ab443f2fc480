# tests/conftest.py

from __future__ import annotations

import contextlib
from pathlib import Path
from types import SimpleNamespace

import pytest

from tracker_helper.core.state import AppState
from tracker_helper.tasks.task_models import TaskRecord
from tracker_helper.tasks.task_store import TaskStore
from tracker_helper.timer.coordinator import TimerCoordinator

from .fakes import FakeClock, FakeNotifier, FakeTrackerClient


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with AppState and the command handlers.

    We intentionally use a SimpleNamespace rather than importing real config,
    to keep unit tests isolated from the environment.
    """
    return SimpleNamespace(
        store_path=tmp_path / "tasks.sqlite3",
        repo_dir=tmp_path,
        timer_update_interval_ms=10,
        timer_save_interval_ms=20,
        max_restore_time_ms=24 * 60 * 60 * 1000,
        min_time_to_send_ms=1000,
    )


@pytest.fixture()
def store(settings: SimpleNamespace) -> TaskStore:
    return TaskStore(settings.store_path)


@pytest.fixture()
def notifier() -> FakeNotifier:
    return FakeNotifier()


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def client() -> FakeTrackerClient:
    return FakeTrackerClient()


@pytest.fixture()
def coordinator(store: TaskStore, notifier: FakeNotifier, clock: FakeClock, settings: SimpleNamespace):
    coord = TimerCoordinator(
        store,
        notifier,
        update_interval_ms=settings.timer_update_interval_ms,
        save_interval_ms=settings.timer_save_interval_ms,
        clock=clock,
    )
    yield coord
    # Never leave periodic jobs behind for the next test's event loop.
    with contextlib.suppress(RuntimeError):
        coord.scheduler.cancel_all()


@pytest.fixture()
def state(settings, store, client, notifier, coordinator) -> AppState:
    return AppState(
        settings=settings,
        store=store,
        client=client,
        notifier=notifier,
        coordinator=coordinator,
    )


def seed(store: TaskStore, *records: TaskRecord) -> None:
    store.merge({r.task_key: r for r in records})
