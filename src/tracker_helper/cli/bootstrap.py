# src/tracker_helper/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures local (gitignored) directories exist,
- wires concrete implementations into AppState (store/client/coordinator/notifier).
"""

from __future__ import annotations

import logging

from ..config import get_settings
from ..connectors.console_connector import ConsoleNotifier
from ..core.ports import Notifier
from ..core.state import AppState
from ..tasks.task_store import TaskStore
from ..timer.coordinator import TimerCoordinator
from ..tracker.client import YaTrackerClient

logger = logging.getLogger(__name__)


def _ensure_local_dirs(settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    settings.store_path.parent.mkdir(parents=True, exist_ok=True)


def create_initial_state(*, settings=None, notifier: Notifier | None = None) -> AppState:
    """
    Create AppState from the provided settings.

    Keeping settings injectable makes the app easier to test and avoids hidden global config reads.
    If settings is None, falls back to get_settings().
    """
    if settings is None:
        settings = get_settings()

    _ensure_local_dirs(settings)

    if notifier is None:
        notifier = ConsoleNotifier()

    store = TaskStore(settings.store_path)
    coordinator = TimerCoordinator(
        store,
        notifier,
        update_interval_ms=settings.timer_update_interval_ms,
        save_interval_ms=settings.timer_save_interval_ms,
    )

    client = YaTrackerClient.from_settings(settings)
    if not client.has_credentials:
        logger.warning("Tracker credentials are not set; /fetch and /send will fail until configured.")

    return AppState(
        settings=settings,
        store=store,
        client=client,
        notifier=notifier,
        coordinator=coordinator,
    )
