# src/tracker_helper/tasks/task_store.py

from __future__ import annotations

import contextlib
import json
import logging
import sqlite3
import threading
from collections.abc import Callable, Mapping
from pathlib import Path
from typing import Any

from ..config import TASK_STORAGE_KEY
from ..core.timer_state import TimerState
from .task_models import TaskRecord

logger = logging.getLogger(__name__)


class TaskStore:
    """
    SQLite-backed task store.

    The whole task mapping is kept as ONE JSON value in a key/value table, under
    TASK_STORAGE_KEY. Reads return the full mapping; writes replace it wholesale.

    Every mutation is a read-modify-write of that blob. The span is guarded by a
    process-local lock so two mutations never interleave, even if one of them comes
    from a worker thread.

    Thread-safety:
    - each method opens its own SQLite connection
    """

    def __init__(self, db_path: str | Path = "tasks.sqlite3", *, storage_key: str = TASK_STORAGE_KEY) -> None:
        self._db_path = Path(db_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._storage_key = storage_key
        self._lock = threading.RLock()
        self._ensure_schema()
        try:
            total = len(self._read_mapping())
        except Exception:
            total = -1
        logger.info("TaskStore ready db=%s total=%s", self._db_path, total)

    def close(self) -> None:
        """Compatibility hook for shutdown (no persistent connections to close)."""
        return

    # ---- low-level helpers ----

    def _get_conn(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self._db_path), timeout=30.0)
        conn.row_factory = sqlite3.Row
        self._configure_conn(conn)
        return conn

    @staticmethod
    def _configure_conn(conn: sqlite3.Connection) -> None:
        with contextlib.suppress(Exception):
            conn.execute("PRAGMA journal_mode=WAL")

    def _ensure_schema(self) -> None:
        conn = self._get_conn()
        try:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS kv (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL
                )
                """
            )
            conn.commit()
        finally:
            conn.close()

    def _read_mapping(self) -> dict[str, Any]:
        conn = self._get_conn()
        try:
            cur = conn.cursor()
            cur.execute("SELECT value FROM kv WHERE key = ?", (self._storage_key,))
            row = cur.fetchone()
        finally:
            conn.close()

        if row is None or not row["value"]:
            return {}
        try:
            val = json.loads(row["value"])
        except Exception:
            logger.exception("Task mapping is not valid JSON; treating store as empty.")
            return {}
        return val if isinstance(val, dict) else {}

    def _write_mapping(self, mapping: Mapping[str, Any] | None) -> None:
        conn = self._get_conn()
        try:
            if mapping is None:
                conn.execute("DELETE FROM kv WHERE key = ?", (self._storage_key,))
            else:
                conn.execute(
                    "INSERT INTO kv(key, value) VALUES (?, ?) "
                    "ON CONFLICT(key) DO UPDATE SET value = excluded.value",
                    (self._storage_key, json.dumps(mapping, ensure_ascii=False)),
                )
            conn.commit()
        finally:
            conn.close()

    def _mutate(self, fn: Callable[[dict[str, Any]], bool]) -> bool:
        """Run fn over the mapping inside the critical section; write back only if fn returns True."""
        with self._lock:
            mapping = self._read_mapping()
            changed = fn(mapping)
            if changed:
                self._write_mapping(mapping)
            return changed

    # ---- public API ----

    def get_all(self) -> dict[str, TaskRecord]:
        mapping = self._read_mapping()
        return {key: TaskRecord.from_dict(key, raw) for key, raw in mapping.items()}

    def get(self, task_key: str) -> TaskRecord | None:
        mapping = self._read_mapping()
        raw = mapping.get(task_key)
        return TaskRecord.from_dict(task_key, raw) if raw is not None else None

    def merge(self, new_records: Mapping[str, TaskRecord]) -> list[str]:
        """
        Insert records for keys that are not stored yet.

        Existing records are never overwritten; patch individual fields with
        set_task_id / assign_branch / set_timer_state instead.
        Returns the keys that were actually inserted.
        """
        if not new_records:
            logger.info("merge called with no records; nothing to do")
            return []

        inserted: list[str] = []

        def apply(mapping: dict[str, Any]) -> bool:
            for key, record in new_records.items():
                if not key or key in mapping:
                    continue
                mapping[key] = record.to_dict()
                inserted.append(key)
            return bool(inserted)

        self._mutate(apply)
        if inserted:
            logger.info("Merged %d new task(s): %s", len(inserted), ", ".join(inserted))
        return inserted

    def set_timer_state(self, task_key: str, state: TimerState) -> bool:
        def apply(mapping: dict[str, Any]) -> bool:
            raw = mapping.get(task_key)
            if not isinstance(raw, dict):
                logger.warning("Task %s not found in storage when saving timer state", task_key)
                return False
            raw["state"] = state.to_dict()
            return True

        return self._mutate(apply)

    def update_timer_state(self, task_key: str, fn: Callable[[TimerState], TimerState]) -> TimerState | None:
        """Apply fn to the stored timer state in one read-modify-write; None if the task is gone."""
        result: list[TimerState] = []

        def apply(mapping: dict[str, Any]) -> bool:
            raw = mapping.get(task_key)
            if not isinstance(raw, dict):
                logger.warning("Task %s not found in storage when updating timer state", task_key)
                return False
            new_state = fn(TimerState.from_dict(raw.get("state")))
            raw["state"] = new_state.to_dict()
            result.append(new_state)
            return True

        self._mutate(apply)
        return result[0] if result else None

    def get_timer_state(self, task_key: str) -> TimerState | None:
        record = self.get(task_key)
        return record.timer_state if record is not None else None

    def assign_branch(self, task_key: str | None, branch: str | None) -> bool:
        if not task_key or not branch:
            logger.warning("Invalid params for assign_branch task_key=%r branch=%r", task_key, branch)
            return False

        def apply(mapping: dict[str, Any]) -> bool:
            raw = mapping.get(task_key)
            if not isinstance(raw, dict):
                logger.warning("Task %s not found when trying to assign branch", task_key)
                return False
            data = raw.setdefault("data", {"taskKey": task_key})
            data["branch"] = branch
            return True

        changed = self._mutate(apply)
        if changed:
            logger.info("Branch %s assigned to task %s", branch, task_key)
        return changed

    def set_task_id(self, task_key: str, task_id: str | None) -> bool:
        if not task_key or not task_id:
            logger.warning("Invalid params for set_task_id task_key=%r task_id=%r", task_key, task_id)
            return False

        def apply(mapping: dict[str, Any]) -> bool:
            raw = mapping.get(task_key)
            if not isinstance(raw, dict):
                logger.warning("Task %s not found when trying to set task id", task_key)
                return False
            data = raw.setdefault("data", {"taskKey": task_key})
            data["taskId"] = task_id
            return True

        return self._mutate(apply)

    def get_active_key(self) -> str | None:
        """First task whose stored timer is running (store-level notion of "active")."""
        for key, record in self.get_all().items():
            if record.timer_state.is_running:
                return key
        return None

    def find_by_branch(self, branch: str) -> list[str]:
        return [key for key, record in self.get_all().items() if record.branch == branch]

    def clear(self) -> None:
        with self._lock:
            self._write_mapping(None)
        logger.info("All tasks cleared from storage")
