# tests/test_commands.py

from __future__ import annotations

import pytest

from tracker_helper.cli.commands import CommandRegistry, registry
from tracker_helper.core.timer_state import TimerState
from tracker_helper.tasks.task_models import RemoteTask, TaskRecord

from .conftest import seed


@pytest.mark.asyncio
async def test_command_registry_routes_and_aliases(state) -> None:
    reg = CommandRegistry()
    called: list[list[str]] = []

    async def handler(state, args):
        called.append(args)
        return "ok"

    reg.register("go", handler, "go somewhere", aliases=["g"])

    assert await reg.handle(state, "/go a b") == "ok"
    assert await reg.handle(state, "/G c") == "ok"
    assert called == [["a", "b"], ["c"]]


@pytest.mark.asyncio
async def test_command_registry_unknown_and_non_command(state) -> None:
    reg = CommandRegistry()
    assert await reg.handle(state, "hello") is None
    assert "Unknown command" in (await reg.handle(state, "/nope") or "")
    assert "Empty command" in (await reg.handle(state, "/") or "")


@pytest.mark.asyncio
async def test_start_stop_commands_drive_the_coordinator(state, store, clock) -> None:
    seed(store, TaskRecord(task_key="PROJ-1"))

    assert await registry.handle(state, "/start PROJ-1") == "Timer started for PROJ-1."
    assert state.coordinator.is_running is True
    assert "Timer running" in await registry.handle(state, "/status")

    clock.advance(2_000)
    assert await registry.handle(state, "/stop") == "Timer stopped."
    assert store.get_timer_state("PROJ-1") == TimerState(2_000, None)
    assert await registry.handle(state, "/stop") == "Timer is not running."


@pytest.mark.asyncio
async def test_fetch_assign_and_send_commands(state, store, client, clock) -> None:
    client.tasks = [RemoteTask(key="PROJ-9", id="id-9")]

    assert await registry.handle(state, "/fetch") == "Added 1 new task(s)."
    assert await registry.handle(state, "/assign PROJ-9 feat/login") == "Branch feat/login assigned to task PROJ-9."
    assert store.get("PROJ-9").branch == "feat/login"

    store.set_timer_state("PROJ-9", TimerState(90_000))
    await registry.handle(state, "/send PROJ-9 fixed the login form")

    assert client.worklogs[0].task_id_or_key == "id-9"
    assert client.worklogs[0].comment == "fixed the login form"
    assert store.get_timer_state("PROJ-9") == TimerState(0, None)


@pytest.mark.asyncio
async def test_clear_requires_confirmation(state, store) -> None:
    seed(store, TaskRecord(task_key="PROJ-1"))

    assert "Confirm" in await registry.handle(state, "/clear")
    assert store.get_all() != {}

    assert await registry.handle(state, "/clear yes") == "All data cleared."
    assert store.get_all() == {}


@pytest.mark.asyncio
async def test_start_with_unknown_key_leaves_running_timer(state, store) -> None:
    seed(store, TaskRecord(task_key="PROJ-1"))
    await registry.handle(state, "/start PROJ-1")

    reply = await registry.handle(state, "/start TYPO-1")

    assert reply == "Task TYPO-1 not found. Use /list to see stored tasks."
    assert state.coordinator.is_running is True
    assert state.coordinator.active_task_key == "PROJ-1"
    await state.coordinator.stop()
