from __future__ import annotations

import threading
from datetime import timedelta

import pytest

from kinster_attendance.attendance.service import AttendanceService
from kinster_attendance.core.enums import AttendanceState, GeolocationErrorCode
from kinster_attendance.core.exceptions import ActionPendingError, LocationUnavailableError, ValidationError
from kinster_attendance.geolocation.model import LocationError, LocationResult
from kinster_attendance.geolocation.provider import StaticLocator

HERE = StaticLocator.at(21.0285, 105.8542)
NOWHERE = StaticLocator(error=LocationError(code=GeolocationErrorCode.PERMISSION_DENIED, message="denied"))


@pytest.fixture
def user(db):
    return db.create_user("ann@example.com", "secret1", "Ann")


@pytest.fixture
def svc(db):
    return AttendanceService(db, db)


def test_new_user_is_idle(svc, user):
    assert svc.get_state(user.id) == AttendanceState.IDLE


def test_clock_in_then_out_computes_hours(svc, db, user, fixed_now):
    record = svc.clock_in(user.id, HERE, now=fixed_now)

    assert svc.get_state(user.id) == AttendanceState.WORKING
    assert record.login_time == fixed_now
    assert record.login_location.lat == 21.0285

    closed = svc.clock_out(user.id, HERE, now=fixed_now + timedelta(hours=8, minutes=30))

    assert closed.id == record.id
    assert closed.total_hours == 8.5
    assert closed.logout_time == fixed_now + timedelta(hours=8, minutes=30)
    assert svc.get_state(user.id) == AttendanceState.IDLE


def test_clock_in_without_location_creates_nothing(svc, db, user):
    with pytest.raises(LocationUnavailableError) as exc:
        svc.clock_in(user.id, NOWHERE)

    assert exc.value.error.code == GeolocationErrorCode.PERMISSION_DENIED
    assert svc.get_state(user.id) == AttendanceState.IDLE
    assert db.get_attendance_records(user.id) == []


def test_clock_out_without_location_keeps_session_open(svc, user, fixed_now):
    svc.clock_in(user.id, HERE, now=fixed_now)

    with pytest.raises(LocationUnavailableError):
        svc.clock_out(user.id, NOWHERE)

    assert svc.get_state(user.id) == AttendanceState.WORKING


def test_double_clock_in_is_rejected(svc, db, user, fixed_now):
    svc.clock_in(user.id, HERE, now=fixed_now)

    with pytest.raises(ValidationError):
        svc.clock_in(user.id, HERE, now=fixed_now + timedelta(minutes=5))

    assert len(db.get_attendance_records(user.id)) == 1


def test_clock_out_while_idle_is_rejected(svc, user):
    with pytest.raises(ValidationError):
        svc.clock_out(user.id, HERE)


def test_clock_in_for_unknown_user_is_rejected(svc):
    with pytest.raises(ValidationError):
        svc.clock_in("ghost", HERE)


def test_at_most_one_open_record_per_user(svc, db, user, fixed_now):
    now = fixed_now
    for _ in range(3):
        svc.clock_in(user.id, HERE, now=now)
        with pytest.raises(ValidationError):
            svc.clock_in(user.id, HERE, now=now)
        now += timedelta(hours=1)
        svc.clock_out(user.id, HERE, now=now)
        now += timedelta(hours=1)

    svc.clock_in(user.id, HERE, now=now)

    records = db.get_attendance_records(user.id)
    assert len(records) == 4
    assert len([r for r in records if r.is_open]) == 1
    assert all((r.total_hours is None) == r.is_open for r in records)


def test_overlapping_clock_action_is_rejected(svc, user):
    class ReentrantLocator:
        """Issues a second clock-in while the first is still waiting for a position."""

        def __init__(self):
            self.inner_error = None

        def get_current_location(self) -> LocationResult:
            try:
                svc.clock_in(user.id, HERE)
            except ActionPendingError as e:
                self.inner_error = e
            return HERE.get_current_location()

    locator = ReentrantLocator()
    svc.clock_in(user.id, locator)

    assert isinstance(locator.inner_error, ActionPendingError)
    assert not svc.is_pending(user.id)


def test_clock_action_from_another_thread_is_rejected_while_pending(svc, user):
    entered = threading.Event()
    release = threading.Event()

    class WaitingLocator:
        def get_current_location(self) -> LocationResult:
            entered.set()
            release.wait(5)
            return HERE.get_current_location()

    worker = threading.Thread(target=svc.clock_in, args=(user.id, WaitingLocator()))
    worker.start()
    try:
        assert entered.wait(5)
        assert svc.is_pending(user.id)
        with pytest.raises(ActionPendingError):
            svc.clock_in(user.id, HERE)
    finally:
        release.set()
        worker.join(5)

    assert not svc.is_pending(user.id)
    assert svc.get_state(user.id) == AttendanceState.WORKING


def test_clock_out_before_clock_in_time_counts_zero_hours(svc, user, fixed_now):
    svc.clock_in(user.id, HERE, now=fixed_now)

    assert svc.get_dashboard(user.id, now=fixed_now - timedelta(minutes=5))["elapsed"] == "0h 0m"

    closed = svc.clock_out(user.id, HERE, now=fixed_now - timedelta(minutes=30))

    assert closed.total_hours == 0.0
    assert svc.to_ui(closed)["total_hours_display"] == "0h 0m"


def test_dashboard_reports_open_session(svc, user, fixed_now):
    svc.clock_in(user.id, HERE, now=fixed_now)

    data = svc.get_dashboard(user.id, now=fixed_now + timedelta(minutes=15))

    assert data["state"] == "working"
    assert data["elapsed"] == "15m"
    assert data["active"]["logout_time"] == "-"
    assert len(data["history"]) == 1


def test_history_rows_are_formatted(svc, user, fixed_now):
    svc.clock_in(user.id, HERE, now=fixed_now)
    svc.clock_out(user.id, HERE, now=fixed_now + timedelta(hours=2, minutes=15))

    row = svc.get_history_ui(user.id)[0]

    assert row["total_hours_display"] == "2h 15m"
    assert row["login_location"] == "21.028500, 105.854200"
    assert row["login_time"] == "Jan 01, 2024 09:00:00"
    assert row["logout_time"] == "11:15:00"
