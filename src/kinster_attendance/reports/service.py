from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..attendance.repository import AttendanceRepository
from ..common.datetime_utils import format_date, format_time, format_working_hours, to_iso
from ..users.service import matches_search


@dataclass(frozen=True)
class ReportData:
    rows: list[dict]
    summary: list[dict]


class AttendanceReportService:
    """Admin attendance log: records joined with user identity plus per-user totals."""

    def __init__(self, attendance: AttendanceRepository):
        self._attendance = attendance

    def build_attendance_log(self, *, search: Optional[str] = None, user_id: Optional[str] = None) -> ReportData:
        summary_map: dict[str, dict] = {}
        out_rows: list[dict] = []

        for item in self._attendance.get_attendance_with_user_details():
            r = item.record
            if user_id is not None and r.user_id != user_id:
                continue
            if not matches_search(search, item.user_name, item.user_email):
                continue

            out_rows.append(
                {
                    "id": r.id,
                    "user_id": r.user_id,
                    "user_name": item.user_name,
                    "user_email": item.user_email,
                    "date": format_date(r.login_time),
                    "login_time": to_iso(r.login_time),
                    "logout_time": to_iso(r.logout_time) if r.logout_time else None,
                    "clock_in": format_time(r.login_time),
                    "clock_out": format_time(r.logout_time) if r.logout_time else "-",
                    "login_lat": r.login_location.lat,
                    "login_lng": r.login_location.lng,
                    "logout_lat": r.logout_location.lat if r.logout_location else None,
                    "logout_lng": r.logout_location.lng if r.logout_location else None,
                    "total_hours": r.total_hours,
                    "worked_hours": format_working_hours(r.total_hours) if r.total_hours is not None else "-",
                }
            )

            s = summary_map.get(r.user_id)
            if not s:
                s = {
                    "user_id": r.user_id,
                    "user_name": item.user_name,
                    "user_email": item.user_email,
                    "sessions": 0,
                    "open_sessions": 0,
                    "total_hours": 0.0,
                }
                summary_map[r.user_id] = s
            s["sessions"] += 1
            if r.is_open:
                s["open_sessions"] += 1
            else:
                s["total_hours"] += r.total_hours or 0.0

        summary = []
        for s in summary_map.values():
            summary.append({**s, "total_hours_display": format_working_hours(s["total_hours"])})

        summary.sort(key=lambda x: x["total_hours"], reverse=True)
        return ReportData(rows=out_rows, summary=summary)
