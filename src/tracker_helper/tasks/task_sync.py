# src/tracker_helper/tasks/task_sync.py

"""
Synchronization with the remote tracker.

- fetch_tasks: pull the user's tasks into the local store (new keys only, patch missing ids)
- send_time_for_task / send_time_for_all_tasks: push accumulated time as worklogs and
  reset a task only after the tracker accepted it

A failed remote call never changes local state.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING

from ..core import timer_state as ts
from ..core.ports import Notifier, TaskRepo, TrackerClient
from ..core.timer_state import TimerState
from ..tracker.errors import TrackerError, friendly_tracker_error_message
from .task_models import TaskRecord

if TYPE_CHECKING:
    from ..timer.coordinator import TimerCoordinator

logger = logging.getLogger(__name__)

DEFAULT_BATCH_COMMENT = "Time worked on task"


@dataclass(slots=True, frozen=True)
class SendSummary:
    sent: int
    failed: int
    skipped: int

    @property
    def attempted(self) -> int:
        return self.sent + self.failed


def _settle_sent_time(store: TaskRepo, task_key: str, sent_ms: int, sent_at_ms: int) -> TimerState | None:
    # The timer may have been started, stopped or snapshotted while the request was in flight.
    settled = store.update_timer_state(task_key, lambda state: ts.deduct(state, sent_ms, sent_at_ms))
    if settled is None:
        logger.warning("Task %s disappeared while its time was being sent", task_key)
    return settled


async def fetch_tasks(store: TaskRepo, client: TrackerClient, notifier: Notifier) -> list[str]:
    """Returns the keys that were added to the store."""
    try:
        remote = await client.get_tasks()
    except TrackerError as e:
        logger.error("Error fetching tasks: %s", e)
        notifier.error(f"Error fetching tasks: {friendly_tracker_error_message(e)}")
        return []

    if not remote:
        logger.info("No tasks found")
        return []

    stored = store.get_all()
    new_records: dict[str, TaskRecord] = {}
    patched = 0

    for task in remote:
        existing = stored.get(task.key)
        if existing is None:
            new_records[task.key] = TaskRecord(task_key=task.key, task_id=task.id, branch="")
        elif not existing.task_id and task.id:
            if store.set_task_id(task.key, task.id):
                patched += 1

    added = store.merge(new_records) if new_records else []
    if added or patched:
        notifier.tasks_changed()
    logger.info("Fetched %d task(s): %d new, %d id(s) patched", len(remote), len(added), patched)
    return added


async def send_time_for_task(
        store: TaskRepo,
        client: TrackerClient,
        notifier: Notifier,
        task_key: str | None,
        *,
        comment: str | None = None,
        min_time_to_send_ms: int = 1000,
        clock: Callable[[], int] = ts.now_ms,
) -> bool:
    if not task_key or not task_key.strip():
        logger.error("Attempt to send time for task without key")
        notifier.error("Error: task key not specified")
        return False

    record = store.get(task_key)
    if record is None:
        logger.error("Attempt to send time for unknown task %s", task_key)
        notifier.error(f"Error: task {task_key} not found")
        return False

    sent_at = clock()
    elapsed_ms = ts.elapsed(record.timer_state, sent_at)
    if elapsed_ms < min_time_to_send_ms:
        notifier.warning(f"No time to send for task {task_key}")
        return False

    try:
        await client.add_worklog(record.remote_ref, elapsed_ms, None, comment or None)
    except (TrackerError, ValueError) as e:
        logger.error("Error sending time for task %s: %s", task_key, e)
        notifier.error(f"Error sending time: {friendly_tracker_error_message(e)}")
        return False

    _settle_sent_time(store, task_key, elapsed_ms, sent_at)
    notifier.task_changed(task_key)
    notifier.info(f"Time sent for task {task_key}")
    logger.info("Time successfully sent for task %s (%dms)", task_key, elapsed_ms)
    return True


async def send_time_for_all_tasks(
        store: TaskRepo,
        client: TrackerClient,
        notifier: Notifier,
        *,
        comment: str = DEFAULT_BATCH_COMMENT,
        min_time_to_send_ms: int = 1000,
        clock: Callable[[], int] = ts.now_ms,
) -> SendSummary:
    """
    Send every task that has at least min_time_to_send_ms accumulated.

    Tasks below the threshold are skipped (neither sent nor failed). One failure never
    stops the batch.
    """
    records = store.get_all()
    now = clock()
    pending = [r for r in records.values() if ts.elapsed(r.timer_state, now) >= min_time_to_send_ms]
    skipped = len(records) - len(pending)

    if not pending:
        notifier.warning("No tasks with accumulated time to send")
        return SendSummary(sent=0, failed=0, skipped=skipped)

    sent = 0
    failed = 0
    for record in pending:
        sent_at = clock()
        # Re-read: an earlier await may have let a tick persist a newer snapshot.
        current = store.get_timer_state(record.task_key) or record.timer_state
        elapsed_ms = ts.elapsed(current, sent_at)
        try:
            await client.add_worklog(record.remote_ref, elapsed_ms, None, comment)
        except (TrackerError, ValueError) as e:
            logger.error("Error sending time for task %s: %s", record.task_key, e)
            failed += 1
            continue

        _settle_sent_time(store, record.task_key, elapsed_ms, sent_at)
        notifier.task_changed(record.task_key)
        sent += 1
        logger.info("Time sent for task %s (%dms)", record.task_key, elapsed_ms)

    if failed == 0:
        notifier.info(f"Time successfully sent for {sent} task(s)")
    else:
        notifier.warning(f"Sent for {sent} task(s), errors: {failed}")
    return SendSummary(sent=sent, failed=failed, skipped=skipped)


async def clear_all_data(coordinator: TimerCoordinator) -> None:
    """Stop timing and drop every stored task."""
    if coordinator.is_running:
        await coordinator.stop()
    coordinator.select_task(None)
    coordinator.store.clear()
    coordinator.notifier.tasks_changed()
    logger.info("All data cleared")
