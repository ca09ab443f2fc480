# tests/test_task_store.py

from __future__ import annotations

import sqlite3
from pathlib import Path

from tracker_helper.core.timer_state import TimerState
from tracker_helper.tasks.task_models import TaskRecord
from tracker_helper.tasks.task_store import TaskStore


def test_merge_inserts_and_is_idempotent(tmp_path: Path) -> None:
    store = TaskStore(tmp_path / "tasks.sqlite3")
    payload = {
        "PROJ-1": TaskRecord(task_key="PROJ-1", task_id="a1"),
        "PROJ-2": TaskRecord(task_key="PROJ-2", task_id="a2"),
    }

    assert sorted(store.merge(payload)) == ["PROJ-1", "PROJ-2"]
    before = store.get_all()

    assert store.merge(payload) == []
    assert store.get_all() == before


def test_merge_never_overwrites_existing_record(tmp_path: Path) -> None:
    store = TaskStore(tmp_path / "tasks.sqlite3")
    store.merge({"PROJ-1": TaskRecord(task_key="PROJ-1", branch="feat/x", timer_state=TimerState(5_000))})

    store.merge({"PROJ-1": TaskRecord(task_key="PROJ-1", task_id="new-id")})

    record = store.get("PROJ-1")
    assert record is not None
    assert record.task_id is None
    assert record.branch == "feat/x"
    assert record.timer_state == TimerState(5_000)


def test_merge_with_nothing_is_a_noop(tmp_path: Path) -> None:
    store = TaskStore(tmp_path / "tasks.sqlite3")
    assert store.merge({}) == []
    assert store.get_all() == {}


def test_set_timer_state_requires_existing_key(tmp_path: Path) -> None:
    store = TaskStore(tmp_path / "tasks.sqlite3")
    assert store.set_timer_state("GHOST-1", TimerState(10)) is False
    assert store.get_timer_state("GHOST-1") is None
    assert store.get_all() == {}

    store.merge({"PROJ-1": TaskRecord(task_key="PROJ-1")})
    assert store.set_timer_state("PROJ-1", TimerState(10, 123)) is True
    assert store.get_timer_state("PROJ-1") == TimerState(10, 123)


def test_assign_branch_validates_params(tmp_path: Path) -> None:
    store = TaskStore(tmp_path / "tasks.sqlite3")
    store.merge({"PROJ-1": TaskRecord(task_key="PROJ-1")})

    assert store.assign_branch("PROJ-1", "") is False
    assert store.assign_branch(None, "main") is False
    assert store.assign_branch("GHOST-1", "main") is False
    assert store.assign_branch("PROJ-1", "feat/login") is True

    assert store.get("PROJ-1").branch == "feat/login"
    assert store.find_by_branch("feat/login") == ["PROJ-1"]


def test_set_task_id_patches_existing_record(tmp_path: Path) -> None:
    store = TaskStore(tmp_path / "tasks.sqlite3")
    store.merge({"PROJ-1": TaskRecord(task_key="PROJ-1", timer_state=TimerState(77))})

    assert store.set_task_id("PROJ-1", "abc") is True
    assert store.set_task_id("GHOST-1", "abc") is False

    record = store.get("PROJ-1")
    assert record.task_id == "abc"
    assert record.timer_state == TimerState(77)


def test_get_active_key_is_first_running_record(tmp_path: Path) -> None:
    store = TaskStore(tmp_path / "tasks.sqlite3")
    store.merge(
        {
            "PROJ-1": TaskRecord(task_key="PROJ-1"),
            "PROJ-2": TaskRecord(task_key="PROJ-2", timer_state=TimerState(0, 1_000)),
        }
    )
    assert store.get_active_key() == "PROJ-2"

    store.set_timer_state("PROJ-2", TimerState(500))
    assert store.get_active_key() is None


def test_state_survives_reopen_and_clear(tmp_path: Path) -> None:
    db = tmp_path / "tasks.sqlite3"
    store = TaskStore(db)
    store.merge({"PROJ-1": TaskRecord(task_key="PROJ-1", task_id="1", branch="main")})
    store.set_timer_state("PROJ-1", TimerState(1_234, 99))

    reopened = TaskStore(db)
    assert reopened.get("PROJ-1") == TaskRecord("PROJ-1", "1", "main", TimerState(1_234, 99))

    reopened.clear()
    assert reopened.get_all() == {}
    assert TaskStore(db).get_all() == {}


def test_whole_mapping_is_one_json_value(tmp_path: Path) -> None:
    db = tmp_path / "tasks.sqlite3"
    store = TaskStore(db)
    store.merge({"PROJ-1": TaskRecord(task_key="PROJ-1"), "PROJ-2": TaskRecord(task_key="PROJ-2")})

    conn = sqlite3.connect(db)
    try:
        rows = conn.execute("SELECT key FROM kv").fetchall()
    finally:
        conn.close()
    assert rows == [("tracker-helper.taskStore",)]


def test_corrupt_blob_reads_as_empty(tmp_path: Path) -> None:
    db = tmp_path / "tasks.sqlite3"
    store = TaskStore(db)
    conn = sqlite3.connect(db)
    try:
        conn.execute("INSERT INTO kv(key, value) VALUES ('tracker-helper.taskStore', '{not json')")
        conn.commit()
    finally:
        conn.close()

    assert store.get_all() == {}
    assert store.get_active_key() is None


def test_update_timer_state_reads_and_writes_in_one_step(tmp_path: Path) -> None:
    store = TaskStore(tmp_path / "t.sqlite3")
    store.merge({"A": TaskRecord(task_key="A", timer_state=TimerState(300, 10))})

    updated = store.update_timer_state("A", lambda s: TimerState(s.elapsed_ms + 1, None))

    assert updated == TimerState(301, None)
    assert store.get_timer_state("A") == TimerState(301, None)
    assert store.update_timer_state("MISSING", lambda s: s) is None
    assert store.get("MISSING") is None
