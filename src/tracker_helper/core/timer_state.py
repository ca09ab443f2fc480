# src/tracker_helper/core/timer_state.py

from __future__ import annotations

"""
Timer state: an immutable record of accumulated time plus an optional running-since marker.

All transitions are pure and return a new TimerState. Running time is never stored "live":
while a timer runs, the total is computed from `elapsed_ms + (now - started_at_ms)`.
Every function takes an optional `now_ms` so callers (and tests) can pin the clock.
"""

import time
from dataclasses import dataclass
from typing import Any


def now_ms() -> int:
    """Wall-clock milliseconds since the epoch."""
    return int(time.time() * 1000)


@dataclass(slots=True, frozen=True)
class TimerState:
    elapsed_ms: int = 0
    started_at_ms: int | None = None

    @property
    def is_running(self) -> bool:
        return self.started_at_ms is not None

    def to_dict(self) -> dict[str, Any]:
        return {"elapsedMs": self.elapsed_ms, "startedAtMs": self.started_at_ms}

    @classmethod
    def from_dict(cls, raw: Any) -> TimerState:
        if not isinstance(raw, dict):
            return cls()
        try:
            elapsed = max(0, int(raw.get("elapsedMs") or 0))
        except (TypeError, ValueError):
            elapsed = 0
        started_raw = raw.get("startedAtMs")
        try:
            started = int(started_raw) if started_raw is not None else None
        except (TypeError, ValueError):
            started = None
        return cls(elapsed_ms=elapsed, started_at_ms=started)


def _now(now: int | None) -> int:
    return now_ms() if now is None else int(now)


def _accrued(state: TimerState, now: int) -> int:
    if state.started_at_ms is None:
        return 0
    return max(0, now - state.started_at_ms)


def create() -> TimerState:
    return TimerState(elapsed_ms=0, started_at_ms=None)


def start(state: TimerState, now: int | None = None) -> TimerState:
    if state.is_running:
        return state
    return TimerState(elapsed_ms=state.elapsed_ms, started_at_ms=_now(now))


def stop(state: TimerState, now: int | None = None) -> TimerState:
    if not state.is_running:
        return state
    return TimerState(elapsed_ms=state.elapsed_ms + _accrued(state, _now(now)), started_at_ms=None)


def snapshot(state: TimerState, now: int | None = None) -> TimerState:
    """Fold accrued time into the base and restart the marker at `now`, without stopping."""
    if not state.is_running:
        return state
    ts = _now(now)
    return TimerState(elapsed_ms=state.elapsed_ms + _accrued(state, ts), started_at_ms=ts)


def elapsed(state: TimerState, now: int | None = None) -> int:
    if not state.is_running:
        return state.elapsed_ms
    return state.elapsed_ms + _accrued(state, _now(now))


def reset(state: TimerState | None = None) -> TimerState:
    return create()


def deduct(state: TimerState, amount_ms: int, at: int | None = None) -> TimerState:
    """
    Remove amount_ms of the time accrued up to `at`.

    Time accrued after `at` survives: a marker later than `at` is kept as is, an earlier
    one moves to `at`. A stopped state stays stopped.
    """
    t = _now(at)
    remaining = max(0, elapsed(state, t) - max(0, int(amount_ms)))
    if state.started_at_ms is None:
        return TimerState(elapsed_ms=remaining, started_at_ms=None)
    return TimerState(elapsed_ms=remaining, started_at_ms=max(state.started_at_ms, t))
