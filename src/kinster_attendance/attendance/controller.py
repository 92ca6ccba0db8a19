from __future__ import annotations

import csv
import io
import logging
from dataclasses import asdict

from flask import Flask, jsonify, request, session

from ..common.datetime_utils import format_working_hours
from ..common.web import admin_required, json_error, login_required
from ..container import Container
from ..core.exceptions import ActionPendingError, LocationUnavailableError, ValidationError
from ..geolocation.provider import PayloadLocator
from .service import AttendanceService

logger = logging.getLogger(__name__)

CSV_FIELDS = [
    "date",
    "user_id",
    "user_name",
    "user_email",
    "clock_in",
    "clock_out",
    "login_lat",
    "login_lng",
    "logout_lat",
    "logout_lng",
    "worked_hours",
]


def register(app: Flask, container: Container) -> None:
    def _locator() -> PayloadLocator:
        return PayloadLocator(request.get_json(silent=True))

    def _location_failure(e: LocationUnavailableError):
        extra = {}
        if e.error is not None:
            extra["location_error"] = {"code": int(e.error.code), "message": e.error.message}
        return json_error(str(e), 400, **extra)

    @app.route("/attendance", methods=["GET"], endpoint="dashboard")
    @login_required
    def dashboard():
        data = container.attendance_service.get_dashboard(session["user_id"])
        return jsonify(
            {
                "success": True,
                "name": session.get("name"),
                "location_options": asdict(container.location_options),
                **data,
            }
        )

    @app.route("/attendance/clock-in", methods=["POST"], endpoint="clock_in")
    @login_required
    def clock_in():
        try:
            record = container.attendance_service.clock_in(session["user_id"], _locator())
        except LocationUnavailableError as e:
            return _location_failure(e)
        except ActionPendingError as e:
            return json_error(str(e), 409)
        except ValidationError as e:
            return json_error(str(e), 400)
        except Exception:
            logger.exception("Unexpected error during clock-in")
            return json_error("Failed to clock in", 500)

        return jsonify(
            {
                "success": True,
                "message": "Clocked in successfully!",
                "record": AttendanceService.to_ui(record),
            }
        )

    @app.route("/attendance/clock-out", methods=["POST"], endpoint="clock_out")
    @login_required
    def clock_out():
        try:
            record = container.attendance_service.clock_out(session["user_id"], _locator())
        except LocationUnavailableError as e:
            return _location_failure(e)
        except ActionPendingError as e:
            return json_error(str(e), 409)
        except ValidationError as e:
            return json_error(str(e), 400)
        except Exception:
            logger.exception("Unexpected error during clock-out")
            return json_error("Failed to clock out", 500)

        return jsonify(
            {
                "success": True,
                "message": f"Clocked out successfully! Total hours: {format_working_hours(record.total_hours or 0)}",
                "record": AttendanceService.to_ui(record),
            }
        )

    def _write_report_csv(*, data, filename: str):
        out = io.StringIO()
        writer = csv.DictWriter(out, fieldnames=CSV_FIELDS, extrasaction="ignore")
        writer.writeheader()
        for row in data.rows:
            writer.writerow(row)

        csv_bytes = out.getvalue().encode("utf-8-sig")
        return app.response_class(
            csv_bytes,
            mimetype="text/csv",
            headers={"Content-Disposition": f"attachment; filename={filename}"},
        )

    @app.route("/admin/attendance", methods=["GET"], endpoint="admin_attendance")
    @admin_required
    def admin_attendance():
        data = container.report_service.build_attendance_log(
            search=request.args.get("q"),
            user_id=request.args.get("user_id"),
        )
        return jsonify({"success": True, "rows": data.rows, "summary": data.summary})

    @app.route("/admin/attendance.csv", methods=["GET"], endpoint="admin_attendance_csv")
    @admin_required
    def admin_attendance_csv():
        data = container.report_service.build_attendance_log(
            search=request.args.get("q"),
            user_id=request.args.get("user_id"),
        )
        return _write_report_csv(data=data, filename="attendance_log.csv")
