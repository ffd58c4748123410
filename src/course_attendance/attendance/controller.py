from __future__ import annotations

import io

from flask import Flask, g, request, send_file

from ..common.datetime_utils import parse_optional_date
from ..common.http import fail, json_body, make_guards, respond
from ..core.exceptions import NotFoundError, ValidationError
from ..core.result import run_operation
from ..container import Container
from ..reports.excel import XLSX_MIMETYPE

PREFIX = "/api/v1/attendance"


def _date_arg(value):
    try:
        return parse_optional_date(str(value)) if value else None
    except ValueError:
        raise ValidationError("Date must use YYYY-MM-DD")


def _sessions_body(sessions):
    return [s.to_dict() for s in sessions]


def register(app: Flask, container: Container) -> None:
    svc = container.attendance_service
    reports = container.report_service
    login_required, admin_required = make_guards(container.auth_service)

    @app.route(f"{PREFIX}/start-session", methods=["POST"], endpoint="attendance_start_session")
    @admin_required
    def attendance_start_session():
        data = json_body()
        result = run_operation(
            lambda: svc.start_session(
                data.get("courseId", ""),
                session_date=_date_arg(data.get("sessionDate")),
                mode=data.get("attendanceMode") or "code",
            ),
            name="start_session",
        )
        return respond(result, message=lambda s: s.message, body=lambda s: s.session.to_dict(), status=201)

    @app.route(f"{PREFIX}/end-session/<session_id>", methods=["POST"], endpoint="attendance_end_session")
    @admin_required
    def attendance_end_session(session_id: str):
        result = run_operation(lambda: svc.end_session(session_id), name="end_session")
        return respond(result, message="Attendance session ended", body=lambda s: s.to_dict())

    @app.route(f"{PREFIX}/check-in", methods=["POST"], endpoint="attendance_check_in")
    @login_required
    def attendance_check_in():
        data = json_body()
        user = g.current_user
        result = run_operation(lambda: svc.check_in(user, data.get("attendanceCode", "")), name="check_in")
        return respond(result, message="Checked in", body=lambda r: r.to_dict())

    @app.route(f"{PREFIX}/student-records", methods=["GET"], endpoint="attendance_student_records")
    @login_required
    def attendance_student_records():
        user = g.current_user

        def load():
            ref = request.args.get("studentId") if user.is_admin else None
            if not ref:
                ref = user.student_info.sid if user.student_info else ""
            if not ref:
                raise NotFoundError("Student profile not found")
            return svc.student_records(ref, course_id=request.args.get("courseId") or None)

        result = run_operation(load, name="student_records")
        return respond(result, message="Attendance records loaded", body=lambda rows: [r.to_dict() for r in rows])

    @app.route(f"{PREFIX}/course-stats/<course_id>", methods=["GET"], endpoint="attendance_course_stats")
    @admin_required
    def attendance_course_stats(course_id: str):
        result = run_operation(
            lambda: svc.course_stats(course_id, session_id=request.args.get("sessionId") or None),
            name="course_stats",
        )
        return respond(result, message="Statistics loaded", body=lambda s: s.to_dict())

    @app.route(f"{PREFIX}/active-sessions", methods=["GET"], endpoint="attendance_active_sessions")
    @admin_required
    def attendance_active_sessions():
        result = run_operation(svc.list_active_sessions, name="list_active_sessions")
        return respond(result, message="Active sessions loaded", body=_sessions_body)

    @app.route(f"{PREFIX}/all-sessions", methods=["GET"], endpoint="attendance_all_sessions")
    @admin_required
    def attendance_all_sessions():
        result = run_operation(svc.list_all_sessions, name="list_all_sessions")
        return respond(result, message="Sessions loaded", body=_sessions_body)

    @app.route(f"{PREFIX}/sessions/<session_id>", methods=["GET"], endpoint="attendance_get_session")
    @admin_required
    def attendance_get_session(session_id: str):
        result = run_operation(lambda: svc.get_session(session_id), name="get_session")
        return respond(result, message="Session loaded", body=lambda s: s.to_dict())

    @app.route(f"{PREFIX}/sessions/<session_id>/qr", methods=["GET"], endpoint="attendance_session_qr")
    @admin_required
    def attendance_session_qr(session_id: str):
        result = run_operation(lambda: svc.session_qr_png(session_id), name="session_qr")
        if not result.ok:
            return fail(result)
        return send_file(io.BytesIO(result.value), mimetype="image/png")

    @app.route(f"{PREFIX}/course-students/<course_id>", methods=["GET"], endpoint="attendance_course_students")
    @admin_required
    def attendance_course_students(course_id: str):
        result = run_operation(lambda: svc.course_students_for_attendance(course_id), name="course_students")
        return respond(result, message="Course students loaded", body=lambda rows: [r.to_dict() for r in rows])

    @app.route(f"{PREFIX}/manual-attendance", methods=["POST"], endpoint="attendance_manual")
    @admin_required
    def attendance_manual():
        data = json_body()
        result = run_operation(
            lambda: svc.manual_attendance(data.get("sessionId", ""), data.get("studentId", ""), data.get("status", "")),
            name="manual_attendance",
        )
        return respond(result, message="Attendance updated", body=lambda s: s.to_dict())

    @app.route(f"{PREFIX}/mark-all-present", methods=["POST"], endpoint="attendance_mark_all_present")
    @admin_required
    def attendance_mark_all_present():
        data = json_body()
        result = run_operation(lambda: svc.mark_all_present(data.get("sessionId", "")), name="mark_all_present")
        return respond(
            result,
            message=lambda r: f"{r.marked_count} students marked present",
            body=lambda r: r.to_dict(),
        )

    @app.route(f"{PREFIX}/update-attendance-status", methods=["PATCH"], endpoint="attendance_update_status")
    @admin_required
    def attendance_update_status():
        data = json_body()
        result = run_operation(
            lambda: svc.update_attendance_status(
                data.get("sessionId", ""),
                data.get("studentId", ""),
                data.get("newStatus", ""),
                notes=data.get("notes"),
            ),
            name="update_attendance_status",
        )
        return respond(result, message="Attendance status updated", body=lambda s: s.to_dict())

    @app.route(f"{PREFIX}/export-session/<session_id>", methods=["GET"], endpoint="attendance_export_session")
    @admin_required
    def attendance_export_session(session_id: str):
        result = run_operation(lambda: reports.export_session(session_id), name="export_session")
        if not result.ok:
            return fail(result)
        return send_file(
            io.BytesIO(result.value.content),
            mimetype=XLSX_MIMETYPE,
            as_attachment=True,
            download_name=result.value.filename,
        )

    @app.route(f"{PREFIX}/export-excel/<course_id>", methods=["GET"], endpoint="attendance_export_course")
    @admin_required
    def attendance_export_course(course_id: str):
        result = run_operation(lambda: reports.export_course(course_id), name="export_course")
        if not result.ok:
            return fail(result)
        return send_file(
            io.BytesIO(result.value.content),
            mimetype=XLSX_MIMETYPE,
            as_attachment=True,
            download_name=result.value.filename,
        )

    @app.route(f"{PREFIX}/random-selection/<course_id>", methods=["GET"], endpoint="attendance_random_selection")
    @admin_required
    def attendance_random_selection(course_id: str):
        result = run_operation(
            lambda: svc.random_selection(course_id, target_date=_date_arg(request.args.get("date"))),
            name="random_selection",
        )
        return respond(
            result,
            message=lambda r: f"Selected {len(r.picks)} students",
            body=lambda r: r.to_dict(),
        )
