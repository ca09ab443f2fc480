# src/tracker_helper/cli/main.py

"""
CLI entrypoint.

Initializes logging, builds AppState, restores a timer left running by a previous run,
then runs the console REPL with the git branch watcher in the background.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging

from ..cli.bootstrap import create_initial_state
from ..config import get_settings
from ..connectors.console_connector import run_console_loop
from ..core.state import AppState
from ..git.branch_watcher import run_branch_watcher
from ..logging_setup import setup_logging
from ..timer.branch_binding import handle_branch_change
from ..timer.recovery import restore_active_timer
from ..tracker.errors import TrackerError

logger = logging.getLogger(__name__)


async def _shutdown(state: AppState, watcher: asyncio.Task | None) -> None:
    """Best-effort shutdown (no exceptions should escape)."""
    if watcher is not None:
        watcher.cancel()
        with contextlib.suppress(asyncio.CancelledError, Exception):
            await watcher

    # Flush running time first: nothing after this point may lose tracked time.
    state.coordinator.shutdown()

    try:
        await state.client.aclose()
    except Exception:
        logger.debug("Tracker client close failed.", exc_info=True)


async def _run(state: AppState) -> None:
    settings = state.settings

    try:
        await restore_active_timer(state.coordinator, max_restore_time_ms=settings.max_restore_time_ms)
    except Exception:
        logger.exception("Failed to restore active timer")

    if state.client.has_credentials:
        try:
            await state.client.initialize()
        except TrackerError:
            logger.exception("Failed to initialize tracker client")

    watcher = asyncio.create_task(
        run_branch_watcher(
            lambda branch: handle_branch_change(state.coordinator, branch),
            repo_dir=settings.repo_dir,
            interval_seconds=settings.branch_poll_seconds,
        ),
        name="branch-watcher",
    )

    try:
        await run_console_loop(state)
    finally:
        await _shutdown(state, watcher)


def main() -> None:
    settings = get_settings()

    level_name = str(getattr(settings, "log_level", "INFO")).upper()
    console_level = getattr(logging, level_name, logging.INFO)
    setup_logging(log_dir=settings.data_dir, console_level=console_level)

    logger.info("Starting %s...", settings.app_name)

    state = create_initial_state(settings=settings)

    try:
        asyncio.run(_run(state))
    except KeyboardInterrupt:
        # asyncio.run cancelled _run; its finally block already flushed the timer.
        logger.info("Interrupted.")
    finally:
        logger.info("Bye.")


if __name__ == "__main__":
    main()
