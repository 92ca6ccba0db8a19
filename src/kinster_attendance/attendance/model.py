from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass(frozen=True)
class Coordinates:
    lat: float
    lng: float


@dataclass(frozen=True)
class AttendanceRecord:
    """Domain entity: one work session, open until logout_time is set."""

    id: str
    user_id: str
    login_time: datetime
    login_location: Coordinates
    created_at: datetime
    logout_time: Optional[datetime] = None
    logout_location: Optional[Coordinates] = None
    total_hours: Optional[float] = None

    @property
    def is_open(self) -> bool:
        return self.logout_time is None


@dataclass(frozen=True)
class AttendanceWithUser:
    """Read-model for the admin log: a record joined with its user's identity."""

    record: AttendanceRecord
    user_name: str
    user_email: str
