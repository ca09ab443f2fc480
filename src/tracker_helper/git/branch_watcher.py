# src/tracker_helper/git/branch_watcher.py

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from pathlib import Path

logger = logging.getLogger(__name__)

BranchCallback = Callable[[str], Awaitable[object]]
BranchReader = Callable[[], Awaitable[str | None]]


async def get_current_branch(repo_dir: str | Path = ".") -> str | None:
    """Current branch name, or None outside a repository / on a detached HEAD."""
    try:
        proc = await asyncio.create_subprocess_exec(
            "git",
            "rev-parse",
            "--abbrev-ref",
            "HEAD",
            cwd=str(repo_dir),
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
        out, err = await proc.communicate()
    except (FileNotFoundError, NotADirectoryError, PermissionError):
        logger.warning("git is not available for repo_dir=%s", repo_dir)
        return None

    if proc.returncode != 0:
        logger.debug("git rev-parse failed rc=%s: %s", proc.returncode, err.decode(errors="replace").strip())
        return None

    name = out.decode(errors="replace").strip()
    if not name or name == "HEAD":
        return None
    return name


async def run_branch_watcher(
        on_change: BranchCallback,
        *,
        repo_dir: str | Path = ".",
        interval_seconds: float = 2.0,
        read_branch: BranchReader | None = None,
) -> None:
    """
    Poll the working copy and call on_change(branch) whenever the branch name changes.

    The branch seen on the first poll is the baseline and is not reported. Changes to
    "no branch" (detached HEAD, repo gone) are not reported either; the baseline is kept.

    To stop the watcher, cancel the coroutine/task.
    """
    sleep_s = max(0.05, float(interval_seconds))

    async def _read() -> str | None:
        if read_branch is not None:
            return await read_branch()
        return await get_current_branch(repo_dir)

    last_branch = await _read()
    logger.info("Git branch watcher initialized. Current branch: %s", last_branch or "none")

    while True:
        await asyncio.sleep(sleep_s)
        try:
            branch = await _read()
        except Exception:
            logger.exception("reading current branch failed")
            continue

        if branch is None or branch == last_branch:
            continue

        logger.info("Branch changed from %s to %s", last_branch, branch)
        last_branch = branch
        try:
            await on_change(branch)
        except Exception:
            logger.exception("Error handling branch change to %s", branch)
