# src/tracker_helper/connectors/console_connector.py

from __future__ import annotations

import asyncio
import logging
import threading
from datetime import datetime

from ..cli.commands import registry as command_registry
from ..core.state import AppState

logger = logging.getLogger(__name__)


def _ts_local() -> str:
    return datetime.now().astimezone().strftime("%Y-%m-%d %H:%M:%S")


def _print_ts(text: str) -> None:
    print(f"[{_ts_local()}] {text}", flush=True)


class ConsoleNotifier:
    """
    Notifier for the interactive console.

    User messages are printed immediately. Refresh signals are not rendered (the prompt
    would be overwritten every second); the last tick is kept for /status instead.
    """

    def __init__(self) -> None:
        self.last_tick: tuple[str, int] | None = None

    def tasks_changed(self) -> None:
        logger.debug("tasks changed")

    def task_changed(self, task_key: str) -> None:
        logger.debug("task changed key=%s", task_key)

    def timer_tick(self, task_key: str, elapsed_ms: int) -> None:
        self.last_tick = (task_key, elapsed_ms)

    def info(self, text: str) -> None:
        _print_ts(text)

    def warning(self, text: str) -> None:
        _print_ts(f"[WARN] {text}")

    def error(self, text: str) -> None:
        _print_ts(f"[ERROR] {text}")


def _start_stdin_reader(loop: asyncio.AbstractEventLoop, queue: asyncio.Queue[str | None]) -> None:
    """
    Read stdin lines on a daemon thread and hand them to the loop; None marks EOF.

    A daemon thread never keeps the process alive while blocked in input().
    """

    def _reader() -> None:
        while True:
            try:
                line = input(">>> ")
            except (EOFError, KeyboardInterrupt, OSError):
                loop.call_soon_threadsafe(queue.put_nowait, None)
                return
            loop.call_soon_threadsafe(queue.put_nowait, line)

    threading.Thread(target=_reader, name="console-stdin", daemon=True).start()


async def run_console_loop(state: AppState) -> None:
    logger.info("Console connector started.")
    _print_ts("[CONSOLE] Use /help for commands. Use /exit to quit.\n")

    queue: asyncio.Queue[str | None] = asyncio.Queue()
    _start_stdin_reader(asyncio.get_running_loop(), queue)

    while True:
        line = await queue.get()
        if line is None:
            logger.info("Console EOF received, exiting.")
            break

        user_input = line.strip()
        if not user_input:
            continue

        if user_input.lower() in ("/exit", "/quit"):
            logger.info("Console exit command received.")
            break

        try:
            response = await command_registry.handle(state, user_input)
        except Exception:
            logger.exception("Command handler crashed.")
            response = "Internal error while handling a command."

        if response is None:
            response = "Not a command. Use /help to list available commands."
        if response:
            _print_ts(response)

    logger.info("Console connector finished.")
