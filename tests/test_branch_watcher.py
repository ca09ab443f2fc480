# tests/test_branch_watcher.py

from __future__ import annotations

import asyncio

import pytest

from tracker_helper.git.branch_watcher import get_current_branch, run_branch_watcher


class ScriptedBranches:
    """Returns branch names in order, then keeps repeating the last one."""

    def __init__(self, names: list[str | None]) -> None:
        self.names = list(names)

    async def __call__(self) -> str | None:
        if len(self.names) > 1:
            return self.names.pop(0)
        return self.names[0]


@pytest.mark.asyncio
async def test_watcher_reports_only_real_changes() -> None:
    seen: list[str] = []

    async def on_change(branch: str) -> None:
        seen.append(branch)

    reader = ScriptedBranches(["main", "main", "feat/x", None, "feat/x", "main"])
    runner = asyncio.create_task(
        run_branch_watcher(on_change, interval_seconds=0.01, read_branch=reader)
    )

    await asyncio.sleep(0.6)
    runner.cancel()
    with pytest.raises(asyncio.CancelledError):
        await runner

    assert seen == ["feat/x", "main"]


@pytest.mark.asyncio
async def test_watcher_survives_handler_errors() -> None:
    calls: list[str] = []

    async def on_change(branch: str) -> None:
        calls.append(branch)
        raise RuntimeError("handler blew up")

    reader = ScriptedBranches(["main", "a", "b"])
    runner = asyncio.create_task(
        run_branch_watcher(on_change, interval_seconds=0.01, read_branch=reader)
    )

    await asyncio.sleep(0.4)
    runner.cancel()
    with pytest.raises(asyncio.CancelledError):
        await runner

    assert calls == ["a", "b"]


@pytest.mark.asyncio
async def test_current_branch_outside_a_repository(tmp_path) -> None:
    assert await get_current_branch(tmp_path) is None
