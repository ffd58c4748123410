from __future__ import annotations

from flask import Flask

from ..common.http import json_body, make_guards, respond
from ..core.result import run_operation
from ..container import Container

PREFIX = "/api/v1/course-students"


def register(app: Flask, container: Container) -> None:
    svc = container.enrollment_service
    students = container.student_service
    _, admin_required = make_guards(container.auth_service)

    @app.route(f"{PREFIX}/enroll", methods=["POST"], endpoint="enrollments_enroll")
    @admin_required
    def enrollments_enroll():
        data = json_body()
        result = run_operation(lambda: svc.enroll(data.get("courseId", ""), data.get("studentId", "")), name="enroll")
        return respond(
            result,
            message="Student enrolled",
            body=lambda e: e.to_dict(),
            status=201,
        )

    @app.route(f"{PREFIX}/import", methods=["POST"], endpoint="enrollments_import")
    @admin_required
    def enrollments_import():
        data = json_body()
        result = run_operation(
            lambda: svc.import_students(data.get("courseId", ""), data.get("studentIds") or []),
            name="import_students",
        )
        return respond(result, message=lambda s: s.message, body=lambda s: s.to_dict())

    @app.route(f"{PREFIX}/import-csv", methods=["POST"], endpoint="enrollments_import_csv")
    @admin_required
    def enrollments_import_csv():
        data = json_body()
        result = run_operation(
            lambda: svc.import_csv(data.get("courseId", ""), data.get("csvData", "")),
            name="import_csv",
        )
        return respond(result, message=lambda s: s.message, body=lambda s: s.to_dict())

    @app.route(f"{PREFIX}/course/<course_id>", methods=["GET"], endpoint="enrollments_course_students")
    @admin_required
    def enrollments_course_students(course_id: str):
        result = run_operation(lambda: svc.list_course_students(course_id), name="list_course_students")
        return respond(result, message="Course students loaded", body=lambda rows: [r.to_dict() for r in rows])

    @app.route(f"{PREFIX}/students", methods=["GET"], endpoint="enrollments_all_students")
    @admin_required
    def enrollments_all_students():
        result = run_operation(students.list_students, name="list_students")
        return respond(result, message="Students loaded", body=lambda rows: [s.to_dict() for s in rows])

    @app.route(
        f"{PREFIX}/course/<course_id>/student/<student_id>",
        methods=["DELETE"],
        endpoint="enrollments_remove",
    )
    @admin_required
    def enrollments_remove(course_id: str, student_id: str):
        result = run_operation(lambda: svc.remove(course_id, student_id), name="remove_enrollment")
        return respond(result, message="Student removed from course")

    @app.route(f"{PREFIX}/create-student", methods=["POST"], endpoint="enrollments_create_student")
    @admin_required
    def enrollments_create_student():
        data = json_body()
        result = run_operation(
            lambda: students.create_student(
                student_id=data.get("studentId", ""),
                name=data.get("name", ""),
                department=data.get("department", ""),
                class_name=data.get("class", ""),
            ),
            name="create_student",
        )
        return respond(result, message="Student created", body=lambda s: s.to_dict(), status=201)
