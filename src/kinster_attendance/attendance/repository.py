from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence

from .model import AttendanceRecord, AttendanceWithUser


class AttendanceRepository(Protocol):
    def create_attendance_record(
        self,
        user_id: str,
        login_time: datetime,
        lat: float,
        lng: float,
    ) -> AttendanceRecord:
        raise NotImplementedError

    def update_attendance_logout(
        self,
        record_id: str,
        logout_time: datetime,
        lat: float,
        lng: float,
        total_hours: float,
    ) -> bool:
        raise NotImplementedError

    def get_attendance_records(self, user_id: Optional[str] = None) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

    def get_active_attendance_record(self, user_id: str) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def get_attendance_with_user_details(self) -> Sequence[AttendanceWithUser]:
        raise NotImplementedError
