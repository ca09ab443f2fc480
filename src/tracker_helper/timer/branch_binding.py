# src/tracker_helper/timer/branch_binding.py

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from .coordinator import TimerCoordinator

logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class BranchBinding:
    """What a branch change resolved to."""

    branch: str | None
    started_task_key: str | None = None
    candidates: list[str] = field(default_factory=list)

    @property
    def is_ambiguous(self) -> bool:
        return len(self.candidates) > 1


async def handle_branch_change(coordinator: TimerCoordinator, branch: str | None) -> BranchBinding:
    """
    React to "current branch is now `branch`".

    A running timer is always stopped first. Then:
    - no task bound to the branch -> nothing,
    - exactly one -> select it and start,
    - several -> do not start; report the candidates for manual selection.
    """
    if not branch:
        return BranchBinding(branch=None)

    if coordinator.is_running:
        await coordinator.stop()

    matches = coordinator.store.find_by_branch(branch)

    if not matches:
        return BranchBinding(branch=branch)

    if len(matches) == 1:
        task_key = matches[0]
        coordinator.select_task(task_key)
        await coordinator.start()
        logger.info("Auto-started timer for task %s on branch %s", task_key, branch)
        return BranchBinding(branch=branch, started_task_key=task_key, candidates=matches)

    keys = ", ".join(matches)
    logger.warning("Multiple tasks found for branch %s: %s", branch, keys)
    coordinator.notifier.warning(
        f'Multiple tasks ({len(matches)}) are associated with branch "{branch}". '
        f"Please select a task manually. Tasks: {keys}"
    )
    return BranchBinding(branch=branch, candidates=matches)
