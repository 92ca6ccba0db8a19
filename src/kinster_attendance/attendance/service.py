from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from datetime import datetime
from typing import Callable, Iterator, Optional, Set

from ..common.datetime_utils import (
    calculate_working_hours,
    format_date,
    format_date_time,
    format_location_coordinates,
    format_time,
    format_working_hours,
    now_utc,
    to_iso,
)
from ..core.enums import AttendanceState
from ..core.exceptions import ActionPendingError, LocationUnavailableError, ValidationError
from ..geolocation.model import LocationData
from ..geolocation.provider import Locator
from ..users.repository import UserRepository
from .model import AttendanceRecord
from .repository import AttendanceRepository

logger = logging.getLogger(__name__)


class AttendanceService:
    """Clock-in / clock-out state machine.

    A user is WORKING while an open record (no logout_time) exists, IDLE
    otherwise. The storage layer does not stop a second open record from
    being written; going through this service is what keeps it at one per user.
    """

    def __init__(
        self,
        attendance: AttendanceRepository,
        users: UserRepository,
        *,
        clock: Callable[[], datetime] = now_utc,
    ):
        self._attendance = attendance
        self._users = users
        self._clock = clock
        self._pending: Set[str] = set()
        self._pending_lock = threading.Lock()

    @contextmanager
    def _pending_action(self, user_id: str) -> Iterator[None]:
        with self._pending_lock:
            if user_id in self._pending:
                raise ActionPendingError("A clock action is already in progress")
            self._pending.add(user_id)
        try:
            yield
        finally:
            with self._pending_lock:
                self._pending.discard(user_id)

    def is_pending(self, user_id: str) -> bool:
        return user_id in self._pending

    def get_active_record(self, user_id: str) -> Optional[AttendanceRecord]:
        return self._attendance.get_active_attendance_record(user_id)

    def get_state(self, user_id: str) -> AttendanceState:
        if self.get_active_record(user_id):
            return AttendanceState.WORKING
        return AttendanceState.IDLE

    @staticmethod
    def _elapsed_hours(login_time: datetime, until: datetime) -> float:
        if until < login_time:
            logger.warning("Clock reads %s, before clock-in at %s; counting 0 hours", to_iso(until), to_iso(login_time))
            return 0.0
        return calculate_working_hours(login_time, until)

    def _require_location(self, locator: Locator, action: str) -> LocationData:
        result = locator.get_current_location()
        if not result.ok:
            logger.info("Location unavailable for %s: %s", action, result.error)
            raise LocationUnavailableError(f"Location access is required for {action}", result.error)
        return result.location

    def clock_in(self, user_id: str, locator: Locator, *, now: Optional[datetime] = None) -> AttendanceRecord:
        with self._pending_action(user_id):
            if not self._users.get_user_by_id(user_id):
                raise ValidationError("User does not exist")
            if self.get_active_record(user_id):
                raise ValidationError("You are already clocked in")

            location = self._require_location(locator, "clocking in")
            login_time = now or self._clock()

            record = self._attendance.create_attendance_record(
                user_id,
                login_time,
                location.latitude,
                location.longitude,
            )
            logger.info("User %s clocked in at %s", user_id, to_iso(record.login_time))
            return record

    def clock_out(self, user_id: str, locator: Locator, *, now: Optional[datetime] = None) -> AttendanceRecord:
        with self._pending_action(user_id):
            record = self.get_active_record(user_id)
            if not record:
                raise ValidationError("You are not clocked in")

            location = self._require_location(locator, "clocking out")
            logout_time = now or self._clock()
            total_hours = self._elapsed_hours(record.login_time, logout_time)

            if not self._attendance.update_attendance_logout(
                record.id,
                logout_time,
                location.latitude,
                location.longitude,
                total_hours,
            ):
                raise ValidationError("Attendance record no longer exists")

            closed = next(r for r in self._attendance.get_attendance_records(user_id) if r.id == record.id)
            logger.info("User %s clocked out after %s", user_id, format_working_hours(total_hours))
            return closed

    def get_history_ui(self, user_id: str, *, limit: Optional[int] = None) -> list[dict]:
        rows = self._attendance.get_attendance_records(user_id)
        if limit is not None:
            rows = rows[:limit]
        return [self.to_ui(r) for r in rows]

    def get_dashboard(self, user_id: str, *, now: Optional[datetime] = None) -> dict:
        active = self.get_active_record(user_id)
        elapsed = None
        if active:
            elapsed = format_working_hours(self._elapsed_hours(active.login_time, now or self._clock()))

        return {
            "state": AttendanceState.WORKING.value if active else AttendanceState.IDLE.value,
            "pending": self.is_pending(user_id),
            "active": self.to_ui(active) if active else None,
            "elapsed": elapsed,
            "history": self.get_history_ui(user_id),
        }

    @staticmethod
    def to_ui(r: AttendanceRecord) -> dict:
        return {
            "id": r.id,
            "date": format_date(r.login_time),
            "login_time": format_date_time(r.login_time),
            "logout_time": format_time(r.logout_time) if r.logout_time else "-",
            "login_location": format_location_coordinates(r.login_location.lat, r.login_location.lng),
            "logout_location": (
                format_location_coordinates(r.logout_location.lat, r.logout_location.lng)
                if r.logout_location
                else "-"
            ),
            "total_hours": r.total_hours,
            "total_hours_display": format_working_hours(r.total_hours) if r.total_hours is not None else "-",
        }
