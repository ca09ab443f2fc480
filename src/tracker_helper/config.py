# src/tracker_helper/config.py

"""Centralized settings loaded from environment variables (+ optional .env).

Design goals:
- One Settings object for the whole app.
- No secrets required at import time (the tracker token may be empty until needed).
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

ENV_PREFIX = "TRACKER"

DEFAULT_BASE_URL = "https://api.tracker.yandex.net/v3"
TASK_STORAGE_KEY = "tracker-helper.taskStore"


def _k(suffix: str) -> str:
    """Build env var name with the project prefix."""
    return f"{ENV_PREFIX}_{suffix}"


# Real environment variables win over .env entries.
load_dotenv(override=False)


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else v


def _first_env(*names: str, default: str | None = None) -> str | None:
    for n in names:
        v = os.getenv(n)
        if v is not None and v.strip() != "":
            return v
    return default


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_path(name: str, default: Path) -> Path:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return Path(raw).expanduser()


@dataclass(frozen=True, slots=True)
class Settings:
    # ---- App / logging ----
    app_name: str
    log_level: str

    # ---- Local data paths ----
    data_dir: Path
    store_path: Path

    # ---- Tracker API ----
    tracker_base_url: str
    oauth_token: str | None
    org_id: str | None
    org_id_header: str
    http_timeout_seconds: float

    # ---- Git ----
    repo_dir: Path
    branch_poll_seconds: float

    # ---- Timer tuning ----
    timer_update_interval_ms: int
    timer_save_interval_ms: int
    max_restore_time_ms: int
    min_time_to_send_ms: int

    # ---- Worklog duration folding ----
    work_day_hours: int
    work_week_days: int

    @property
    def has_credentials(self) -> bool:
        return bool((self.oauth_token or "").strip() and (self.org_id or "").strip())

    @staticmethod
    def from_env() -> "Settings":
        app_name = _env(_k("APP_NAME"), "tracker-helper")
        log_level = _env(_k("LOG_LEVEL"), "INFO")

        data_dir = _env_path(_k("DATA_DIR"), Path(".local/tracker-helper"))
        store_path = _env_path(_k("STORE_PATH"), data_dir / "tasks.sqlite3")

        tracker_base_url = _env(_k("BASE_URL"), DEFAULT_BASE_URL).rstrip("/")
        # Token and org id also accept the unprefixed names used by other Yandex tooling.
        oauth_token = _first_env(_k("OAUTH_TOKEN"), "YA_TRACKER_OAUTH_TOKEN", default=None)
        org_id = _first_env(_k("ORG_ID"), "YA_TRACKER_ORG_ID", default=None)
        org_id_header = _env(_k("ORG_ID_HEADER"), "X-Org-ID").strip() or "X-Org-ID"
        http_timeout_seconds = _env_float(_k("HTTP_TIMEOUT_SECONDS"), 15.0)

        repo_dir = _env_path(_k("REPO_DIR"), Path("."))
        branch_poll_seconds = _env_float(_k("BRANCH_POLL_SECONDS"), 2.0)

        timer_update_interval_ms = _env_int(_k("TIMER_UPDATE_INTERVAL_MS"), 1000)
        timer_save_interval_ms = _env_int(_k("TIMER_SAVE_INTERVAL_MS"), 5000)
        max_restore_time_ms = _env_int(_k("MAX_RESTORE_TIME_MS"), 24 * 60 * 60 * 1000)
        min_time_to_send_ms = _env_int(_k("MIN_TIME_TO_SEND_MS"), 1000)

        work_day_hours = _env_int(_k("WORK_DAY_HOURS"), 8)
        work_week_days = _env_int(_k("WORK_WEEK_DAYS"), 5)

        return Settings(
            app_name=app_name,
            log_level=log_level,
            data_dir=data_dir,
            store_path=store_path,
            tracker_base_url=tracker_base_url,
            oauth_token=oauth_token,
            org_id=org_id,
            org_id_header=org_id_header,
            http_timeout_seconds=http_timeout_seconds,
            repo_dir=repo_dir,
            branch_poll_seconds=branch_poll_seconds,
            timer_update_interval_ms=max(50, timer_update_interval_ms),
            timer_save_interval_ms=max(50, timer_save_interval_ms),
            max_restore_time_ms=max(0, max_restore_time_ms),
            min_time_to_send_ms=max(1, min_time_to_send_ms),
            work_day_hours=max(1, work_day_hours),
            work_week_days=max(1, work_week_days),
        )


SETTINGS = Settings.from_env()


def get_settings() -> Settings:
    return SETTINGS
