from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """User role used for authorization."""

    ADMIN = "admin"
    USER = "user"


class AttendanceState(str, Enum):
    """Clock state of a user, derived from the open attendance record."""

    IDLE = "idle"
    WORKING = "working"


class GeolocationErrorCode(int, Enum):
    UNSUPPORTED = 0
    PERMISSION_DENIED = 1
    POSITION_UNAVAILABLE = 2
    TIMEOUT = 3
