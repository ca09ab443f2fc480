# src/tracker_helper/cli/commands.py

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable

from ..core import timer_state as ts
from ..core.state import AppState
from ..git.branch_watcher import get_current_branch
from ..tasks.task_sync import (
    clear_all_data,
    fetch_tasks,
    send_time_for_all_tasks,
    send_time_for_task,
)
from ..tracker.formatting import format_elapsed

CommandHandler = Callable[[AppState, list[str]], Awaitable[str]]

logger = logging.getLogger(__name__)


class CommandRegistry:
    """Slash-command registry used by the console connector (/help, /start, ...)."""

    def __init__(self) -> None:
        self._handlers: dict[str, CommandHandler] = {}
        self._help: dict[str, str] = {}

    def register(
        self,
        name: str,
        handler: CommandHandler,
        help_text: str,
        aliases: list[str] | None = None,
    ) -> None:
        aliases = aliases or []
        key = name.lower()
        self._handlers[key] = handler
        self._help[key] = help_text
        for alias in aliases:
            self._handlers[alias.lower()] = handler

    async def handle(self, state: AppState, line: str) -> str | None:
        """
        Handle a string like "/command args".
        Returns a reply string or None if not a command.
        """
        if not line.startswith("/"):
            return None

        parts = line[1:].split()
        if not parts:
            return "Empty command. Use /help to list available commands."

        name = parts[0].lower()
        args = parts[1:]

        handler = self._handlers.get(name)
        if not handler:
            return f"Unknown command: /{name}. Use /help to list available commands."

        return await handler(state, args)

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        return "\n".join(lines)


registry = CommandRegistry()


async def cmd_help(state: AppState, args: list[str]) -> str:
    return registry.build_help()


async def cmd_list(state: AppState, args: list[str]) -> str:
    records = state.store.get_all()
    if not records:
        return "No tasks stored. Use /fetch to load tasks from the tracker."

    now = ts.now_ms()
    active = state.coordinator.active_task_key
    lines = ["Tasks:"]
    for key, record in sorted(records.items()):
        marker = "*" if key == active else " "
        running = " (running)" if record.timer_state.is_running else ""
        branch = f" [{record.branch}]" if record.branch else ""
        lines.append(f" {marker} {key}{branch}: {format_elapsed(ts.elapsed(record.timer_state, now))}{running}")
    return "\n".join(lines)


async def cmd_status(state: AppState, args: list[str]) -> str:
    coordinator = state.coordinator
    selected = coordinator.active_task_key or "none"
    if not coordinator.is_running:
        return f"Timer stopped. Selected task: {selected}"
    elapsed_ms = coordinator.current_elapsed_ms() or 0
    return f"Timer running. Selected task: {selected} ({format_elapsed(elapsed_ms)})"


async def cmd_select(state: AppState, args: list[str]) -> str:
    if not args:
        return "Usage: /select KEY"
    key = args[0]
    if state.store.get(key) is None:
        return f"Task {key} not found. Use /list to see stored tasks."
    state.coordinator.select_task(key)
    return f"Selected {key}."


async def cmd_start(state: AppState, args: list[str]) -> str:
    """
    /start       -> start the selected task
    /start KEY   -> select KEY and start it (stops a different running task first)
    """
    if args:
        key = args[0]
        if state.store.get(key) is None:
            return f"Task {key} not found. Use /list to see stored tasks."
        state.coordinator.select_task(key)
    if await state.coordinator.start():
        return f"Timer started for {state.coordinator.active_task_key}."
    if state.coordinator.is_running:
        return "Timer is already running."
    return ""


async def cmd_stop(state: AppState, args: list[str]) -> str:
    if await state.coordinator.stop():
        return "Timer stopped."
    return "Timer is not running."


async def cmd_fetch(state: AppState, args: list[str]) -> str:
    added = await fetch_tasks(state.store, state.client, state.notifier)
    return f"Added {len(added)} new task(s)." if added else "No new tasks."


async def cmd_assign(state: AppState, args: list[str]) -> str:
    """
    /assign KEY          -> bind KEY to the current git branch
    /assign KEY BRANCH   -> bind KEY to BRANCH
    """
    if not args:
        return "Usage: /assign KEY [BRANCH]"
    key = args[0]
    branch = args[1] if len(args) > 1 else await get_current_branch(state.settings.repo_dir)
    if not branch:
        return "No current git branch (not a repository, or detached HEAD)."
    if state.store.assign_branch(key, branch):
        state.notifier.task_changed(key)
        return f"Branch {branch} assigned to task {key}."
    return f"Task {key} not found."


async def cmd_send(state: AppState, args: list[str]) -> str:
    """/send KEY [comment...]"""
    if not args:
        return "Usage: /send KEY [comment...]"
    key = args[0]
    comment = " ".join(args[1:]) or None
    # Persist the latest running time before reading it for the worklog.
    state.coordinator.flush()
    await send_time_for_task(
        state.store,
        state.client,
        state.notifier,
        key,
        comment=comment,
        min_time_to_send_ms=state.settings.min_time_to_send_ms,
    )
    return ""


async def cmd_sendall(state: AppState, args: list[str]) -> str:
    state.coordinator.flush()
    summary = await send_time_for_all_tasks(
        state.store,
        state.client,
        state.notifier,
        min_time_to_send_ms=state.settings.min_time_to_send_ms,
    )
    return f"Sent: {summary.sent}, failed: {summary.failed}, skipped: {summary.skipped}."


async def cmd_clear(state: AppState, args: list[str]) -> str:
    """/clear yes  -> stop the timer and delete every stored task"""
    if not args or args[0].lower() != "yes":
        return "This deletes all tasks and their timers. Confirm with: /clear yes"
    await clear_all_data(state.coordinator)
    return "All data cleared."


registry.register("help", cmd_help, help_text="Show available commands.", aliases=["h", "?"])
registry.register("list", cmd_list, help_text="List stored tasks with their time.", aliases=["ls"])
registry.register("status", cmd_status, help_text="Show the selected task and timer state.")
registry.register("select", cmd_select, help_text="Select a task: /select KEY.")
registry.register("start", cmd_start, help_text="Start timing: /start [KEY].")
registry.register("stop", cmd_stop, help_text="Stop timing.")
registry.register("fetch", cmd_fetch, help_text="Load your tasks from the tracker.")
registry.register("assign", cmd_assign, help_text="Bind a task to a branch: /assign KEY [BRANCH].")
registry.register("send", cmd_send, help_text="Send a task's time: /send KEY [comment].")
registry.register("sendall", cmd_sendall, help_text="Send time for all tasks.")
registry.register("clear", cmd_clear, help_text="Delete all stored data: /clear yes.")
