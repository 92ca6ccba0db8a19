"""Example: use the service layer without Flask.

Clocks the seeded user in and out against throwaway in-memory storage.
"""

from datetime import timedelta

from kinster_attendance.common.datetime_utils import now_utc
from kinster_attendance.container import build_container
from kinster_attendance.geolocation.provider import StaticLocator


def main():
    container = build_container(storage_path=":memory:")
    user = container.database.get_user_by_email("user@kinster.com")
    office = StaticLocator.at(21.0285, 105.8542)

    start = now_utc()
    container.attendance_service.clock_in(user.id, office, now=start)
    container.attendance_service.clock_out(user.id, office, now=start + timedelta(hours=7, minutes=45))

    print(container.attendance_service.get_history_ui(user.id))
    print(container.report_service.build_attendance_log().summary)


if __name__ == "__main__":
    main()
