# src/tracker_helper/tracker/errors.py

from __future__ import annotations

from typing import Any


class TrackerError(Exception):
    """Base for every failure raised by the tracker client."""


class TrackerConfigError(TrackerError):
    """Credentials or org id are missing; no request was made."""


class TrackerServiceError(TrackerError):
    """The tracker answered with an error status."""

    def __init__(self, status_code: int, reason: str = "", body: Any = None) -> None:
        self.status_code = int(status_code)
        self.reason = reason
        self.body = body
        super().__init__(f"{self.status_code} {reason}".strip())

    @property
    def messages(self) -> list[str]:
        """Error messages from a Tracker error payload ({"errorMessages": [...]}), if any."""
        if isinstance(self.body, dict):
            raw = self.body.get("errorMessages")
            if isinstance(raw, list):
                return [str(m) for m in raw if m]
        return []


class TrackerTransportError(TrackerError):
    """Network failure, timeout or an unreadable response."""


def friendly_tracker_error_message(err: Exception) -> str:
    if isinstance(err, TrackerConfigError):
        return "Tracker is not configured. Set TRACKER_OAUTH_TOKEN and TRACKER_ORG_ID in .env."
    if isinstance(err, TrackerServiceError):
        if err.status_code in (401, 403):
            return "Tracker rejected the credentials. Check TRACKER_OAUTH_TOKEN and TRACKER_ORG_ID."
        detail = ", ".join(err.messages)
        return f"Tracker error {err.status_code}: {detail}" if detail else f"Tracker error {err}"
    if isinstance(err, TrackerTransportError):
        return f"Tracker is unreachable: {err}"
    return str(err).strip() or "Unknown error"
