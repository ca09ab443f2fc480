# src/tracker_helper/tasks/task_models.py

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from ..core.timer_state import TimerState


@dataclass(slots=True)
class TaskRecord:
    """
    One tracked task as persisted in the task store.

    Notes:
    - task_key is the human key ("PROJ-42"), unique in the store.
    - task_id is the tracker's internal id; worklogs prefer it and fall back to task_key.
    - branch is "" until the user binds the task to a git branch.
    """

    task_key: str
    task_id: str | None = None
    branch: str = ""
    timer_state: TimerState = field(default_factory=TimerState)

    @property
    def remote_ref(self) -> str:
        return self.task_id or self.task_key

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"taskKey": self.task_key, "branch": self.branch}
        if self.task_id:
            data["taskId"] = self.task_id
        return {"data": data, "state": self.timer_state.to_dict()}

    @classmethod
    def from_dict(cls, key: str, raw: Any) -> TaskRecord:
        raw = raw if isinstance(raw, dict) else {}
        data = raw.get("data") if isinstance(raw.get("data"), dict) else {}
        task_id = data.get("taskId")
        return cls(
            task_key=str(data.get("taskKey") or key),
            task_id=str(task_id) if task_id else None,
            branch=str(data.get("branch") or ""),
            timer_state=TimerState.from_dict(raw.get("state")),
        )


@dataclass(slots=True, frozen=True)
class RemoteTask:
    """The two task fields the tracker client hands back to the core."""

    key: str
    id: str | None = None
