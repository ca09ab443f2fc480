# src/tracker_helper/tracker/client.py

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Any

import httpx

from ..config import DEFAULT_BASE_URL, Settings
from ..tasks.task_models import RemoteTask
from .errors import TrackerConfigError, TrackerServiceError, TrackerTransportError
from .formatting import format_tracker_datetime, ms_to_iso8601_duration

logger = logging.getLogger(__name__)


def _error_body(response: httpx.Response) -> Any:
    try:
        return response.json()
    except Exception:
        return response.text


class YaTrackerClient:
    """
    Async client for the Yandex Tracker API v3 (only what the time tracker needs).

    Every failure leaves this class as a TrackerError subclass:
    - TrackerConfigError: no token / org id, nothing was sent
    - TrackerServiceError: the API answered with a non-2xx status (status + parsed body)
    - TrackerTransportError: connection problems, timeouts, unreadable payloads
    """

    def __init__(
            self,
            *,
            oauth_token: str | None,
            org_id: str | None,
            base_url: str = DEFAULT_BASE_URL,
            org_id_header: str = "X-Org-ID",
            timeout_seconds: float = 15.0,
            work_day_hours: int = 8,
            work_week_days: int = 5,
            transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._oauth_token = (oauth_token or "").strip()
        self._org_id = (org_id or "").strip()
        self._base_url = base_url.rstrip("/")
        self._org_id_header = org_id_header
        self._timeout = httpx.Timeout(timeout_seconds, connect=min(5.0, timeout_seconds))
        self._work_day_hours = work_day_hours
        self._work_week_days = work_week_days
        self._transport = transport
        self._http: httpx.AsyncClient | None = None
        self.current_user: dict[str, Any] | None = None

    @classmethod
    def from_settings(cls, settings: Settings, **kwargs: Any) -> YaTrackerClient:
        return cls(
            oauth_token=settings.oauth_token,
            org_id=settings.org_id,
            base_url=settings.tracker_base_url,
            org_id_header=settings.org_id_header,
            timeout_seconds=settings.http_timeout_seconds,
            work_day_hours=settings.work_day_hours,
            work_week_days=settings.work_week_days,
            **kwargs,
        )

    @property
    def has_credentials(self) -> bool:
        return bool(self._oauth_token and self._org_id)

    # ---- low-level helpers ----

    def _make_headers(self) -> dict[str, str]:
        if not self.has_credentials:
            raise TrackerConfigError("Tracker credentials not available")
        return {
            "Authorization": f"OAuth {self._oauth_token}",
            self._org_id_header: self._org_id,
        }

    def _get_http(self) -> httpx.AsyncClient:
        if self._http is None:
            self._http = httpx.AsyncClient(
                base_url=self._base_url,
                timeout=self._timeout,
                transport=self._transport,
            )
        return self._http

    async def aclose(self) -> None:
        if self._http is not None:
            await self._http.aclose()
            self._http = None

    async def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        headers = self._make_headers()
        try:
            response = await self._get_http().request(method, path, headers=headers, **kwargs)
        except httpx.TimeoutException as e:
            logger.error("%s %s timed out", method, path)
            raise TrackerTransportError(f"timeout: {e}") from e
        except httpx.HTTPError as e:
            logger.error("%s %s failed: %s", method, path, e)
            raise TrackerTransportError(str(e) or e.__class__.__name__) from e

        if response.is_error:
            body = _error_body(response)
            logger.error("%s %s request error: %s %s %s", method, path, response.status_code, response.reason_phrase, body)
            raise TrackerServiceError(response.status_code, response.reason_phrase, body)
        return response

    @staticmethod
    def _json(response: httpx.Response) -> Any:
        try:
            return response.json()
        except ValueError as e:
            raise TrackerTransportError("Tracker returned a non-JSON payload") from e

    # ---- public API ----

    async def initialize(self) -> dict[str, Any]:
        """Load and cache the current user (used to filter the task search)."""
        self.current_user = await self.get_current_user()
        logger.info("Tracker user: %s", self.current_user.get("login") or self.current_user.get("uid"))
        return self.current_user

    async def get_current_user(self) -> dict[str, Any]:
        data = self._json(await self._request("GET", "/myself"))
        if not isinstance(data, dict):
            raise TrackerTransportError("Unexpected /myself payload")
        return data

    async def get_tasks(self) -> list[RemoteTask]:
        if self.current_user is None:
            await self.initialize()
        uid = (self.current_user or {}).get("uid")

        payload: dict[str, Any] = {"filter": {}}
        if uid is not None:
            payload["filter"] = {"assignee": uid, "author": uid}

        data = self._json(
            await self._request("POST", "/issues/_search", params={"expand": "transitions"}, json=payload)
        )
        if not isinstance(data, list):
            raise TrackerTransportError("Unexpected /issues/_search payload")

        tasks: list[RemoteTask] = []
        for item in data:
            if not isinstance(item, dict) or not item.get("key"):
                continue
            task_id = item.get("id")
            tasks.append(RemoteTask(key=str(item["key"]), id=str(task_id) if task_id else None))
        logger.debug("Fetched %d task(s) from tracker", len(tasks))
        return tasks

    async def add_worklog(
            self,
            task_id_or_key: str,
            duration_ms: int,
            start: datetime | None = None,
            comment: str | None = None,
    ) -> None:
        if not task_id_or_key or not task_id_or_key.strip():
            raise ValueError("Task key or ID cannot be empty")
        if duration_ms < 0:
            raise ValueError("Time cannot be negative")
        if duration_ms == 0:
            raise ValueError("Time cannot be zero")

        if start is None:
            start = datetime.now().astimezone() - timedelta(milliseconds=duration_ms)

        body: dict[str, Any] = {
            "start": format_tracker_datetime(start),
            "duration": ms_to_iso8601_duration(
                duration_ms,
                work_day_hours=self._work_day_hours,
                work_week_days=self._work_week_days,
            ),
        }
        if comment:
            body["comment"] = comment

        await self._request("POST", f"/issues/{task_id_or_key.strip()}/worklog", json=body)
        logger.info("Worklog added task=%s duration=%s", task_id_or_key, body["duration"])
