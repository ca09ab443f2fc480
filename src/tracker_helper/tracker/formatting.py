# src/tracker_helper/tracker/formatting.py

from __future__ import annotations

from datetime import datetime


def ms_to_iso8601_duration(ms: int, *, work_day_hours: int = 8, work_week_days: int = 5) -> str:
    """
    Encode a duration for the Tracker worklog API.

    Floors to whole seconds. Hours fold into work days and days into work weeks,
    the way Tracker counts them: 8h is "P1D", 5 work days are "P1W".
    """
    seconds = max(0, int(ms)) // 1000
    minutes = seconds // 60
    hours = minutes // 60
    days = hours // work_day_hours
    weeks = days // work_week_days

    date_part = ""
    if weeks:
        date_part += f"{weeks}W"
    if days % work_week_days:
        date_part += f"{days % work_week_days}D"

    time_part = ""
    if hours % work_day_hours:
        time_part += f"{hours % work_day_hours}H"
    if minutes % 60:
        time_part += f"{minutes % 60}M"
    if seconds % 60:
        time_part += f"{seconds % 60}S"

    if not date_part and not time_part:
        return "PT0S"
    return "P" + date_part + ("T" + time_part if time_part else "")


def format_tracker_datetime(dt: datetime) -> str:
    """Local time as YYYY-MM-DDThh:mm:ss.sss+hhmm."""
    local = dt.astimezone()
    return local.strftime("%Y-%m-%dT%H:%M:%S.") + f"{local.microsecond // 1000:03d}" + local.strftime("%z")


def format_elapsed(ms: int) -> str:
    """Human HH:MM:SS for status lines."""
    total = max(0, int(ms)) // 1000
    return f"{total // 3600:02d}:{total % 3600 // 60:02d}:{total % 60:02d}"
