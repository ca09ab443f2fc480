# src/tracker_helper/core/state.py

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from ..core.ports import Notifier, TaskRepo, TrackerClient
from ..timer.coordinator import TimerCoordinator


@dataclass
class AppState:
    """
    Runtime state of one workspace.

    One coordinator per AppState: the selected task and running flag live on it,
    not in module globals.
    """

    # Settings are stored on the state for easy access in commands/connectors.
    settings: Any

    store: TaskRepo
    client: TrackerClient
    notifier: Notifier
    coordinator: TimerCoordinator
