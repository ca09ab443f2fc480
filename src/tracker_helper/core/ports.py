# src/tracker_helper/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the core.

The core depends on Protocols instead of concrete implementations.
This keeps the tracker client, storage and front-end swappable and makes testing easier.
"""

from collections.abc import Callable, Mapping
from datetime import datetime
from typing import Any, Protocol

from ..tasks.task_models import RemoteTask, TaskRecord
from .timer_state import TimerState


class TrackerClient(Protocol):
    """Remote issue tracker. Errors are raised as tracker.errors.TrackerError subclasses."""

    async def get_current_user(self) -> dict[str, Any]: ...

    async def get_tasks(self) -> list[RemoteTask]: ...

    async def add_worklog(
            self,
            task_id_or_key: str,
            duration_ms: int,
            start: datetime | None = None,
            comment: str | None = None,
    ) -> None: ...


class Notifier(Protocol):
    """
    Front-end side port: refresh signals and user-facing messages.

    The core never renders anything; it only signals.
    """

    def tasks_changed(self) -> None: ...
    def task_changed(self, task_key: str) -> None: ...
    def timer_tick(self, task_key: str, elapsed_ms: int) -> None: ...

    def info(self, text: str) -> None: ...
    def warning(self, text: str) -> None: ...
    def error(self, text: str) -> None: ...


class TaskRepo(Protocol):
    def get_all(self) -> dict[str, TaskRecord]: ...
    def get(self, task_key: str) -> TaskRecord | None: ...
    def merge(self, new_records: Mapping[str, TaskRecord]) -> list[str]: ...
    def set_timer_state(self, task_key: str, state: TimerState) -> bool: ...
    def update_timer_state(self, task_key: str, fn: Callable[[TimerState], TimerState]) -> TimerState | None: ...
    def get_timer_state(self, task_key: str) -> TimerState | None: ...
    def assign_branch(self, task_key: str | None, branch: str | None) -> bool: ...
    def set_task_id(self, task_key: str, task_id: str | None) -> bool: ...
    def get_active_key(self) -> str | None: ...
    def find_by_branch(self, branch: str) -> list[str]: ...
    def clear(self) -> None: ...
