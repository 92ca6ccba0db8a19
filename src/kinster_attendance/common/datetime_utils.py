from __future__ import annotations

import logging
import math
from datetime import datetime, timedelta, timezone
from typing import Union

logger = logging.getLogger(__name__)

Timestamp = Union[str, datetime]


def now_utc() -> datetime:
    """Current UTC time.

    Note: Wrapped so tests can patch/mock easier.
    """
    return datetime.now(timezone.utc)


def parse_iso(value: Timestamp) -> datetime:
    """Parse an ISO-8601 string (``Z`` suffix allowed) into an aware datetime.

    Naive values are taken as UTC.
    """
    if isinstance(value, datetime):
        dt = value
    else:
        text = str(value).strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        dt = datetime.fromisoformat(text)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def to_iso(value: datetime) -> str:
    """Serialize as ``2024-01-01T09:00:00.000Z`` (millisecond UTC)."""
    value = parse_iso(value).astimezone(timezone.utc)
    return value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}Z"


def calculate_working_hours(login_time: Timestamp, logout_time: Timestamp) -> float:
    """Hours between two timestamps, from the whole-minute difference."""
    try:
        login = parse_iso(login_time)
        logout = parse_iso(logout_time)
    except (TypeError, ValueError):
        logger.warning("Cannot calculate working hours for %r -> %r", login_time, logout_time)
        return 0

    total_minutes = math.trunc((logout - login) / timedelta(minutes=1))
    return total_minutes / 60


def format_working_hours(hours: float) -> str:
    if hours == 0:
        return "0h 0m"

    whole_hours = math.floor(hours)
    minutes = math.floor((hours - whole_hours) * 60 + 0.5)
    if minutes == 60:
        whole_hours += 1
        minutes = 0

    if whole_hours == 0 and minutes == 0:
        return "0h 0m"
    if whole_hours == 0:
        return f"{minutes}m"
    if minutes == 0:
        return f"{whole_hours}h"
    return f"{whole_hours}h {minutes}m"


def _format(value: Timestamp, pattern: str, invalid: str) -> str:
    try:
        return parse_iso(value).strftime(pattern)
    except (TypeError, ValueError):
        logger.warning("Error formatting timestamp %r", value)
        return invalid


def format_date_time(value: Timestamp) -> str:
    return _format(value, "%b %d, %Y %H:%M:%S", "Invalid Date")


def format_time(value: Timestamp) -> str:
    return _format(value, "%H:%M:%S", "Invalid Time")


def format_date(value: Timestamp) -> str:
    return _format(value, "%b %d, %Y", "Invalid Date")


def format_location_coordinates(lat: float, lng: float) -> str:
    return f"{lat:.6f}, {lng:.6f}"
