from __future__ import annotations

from flask import Flask, g

from ..common.http import json_body, make_guards, respond
from ..core.exceptions import NotFoundError
from ..core.result import run_operation
from ..container import Container

PREFIX = "/api/v1/courses"


def _courses_body(courses):
    return [c.to_dict() for c in courses]


def register(app: Flask, container: Container) -> None:
    svc = container.course_service
    login_required, admin_required = make_guards(container.auth_service)

    @app.route(f"{PREFIX}/", methods=["GET"], endpoint="courses_list")
    def courses_list():
        result = run_operation(svc.list_courses, name="list_courses")
        return respond(result, message="Courses loaded", body=_courses_body)

    @app.route(f"{PREFIX}/", methods=["POST"], endpoint="courses_create")
    @admin_required
    def courses_create():
        data = json_body()
        result = run_operation(
            lambda: svc.create_course(
                course_name=data.get("courseName", ""),
                course_code=data.get("courseCode", ""),
                schedule=data.get("schedule"),
                teacher=data.get("teacher"),
                semester=data.get("semester"),
                is_active=data.get("isActive", True),
            ),
            name="create_course",
        )
        return respond(result, message="Course created", body=lambda c: c.to_dict(), status=201)

    @app.route(f"{PREFIX}/student", methods=["GET"], endpoint="courses_for_student")
    @login_required
    def courses_for_student():
        user = g.current_user

        def load():
            if not user.student_info or not user.student_info.sid:
                raise NotFoundError("Student profile not found")
            return svc.list_student_courses(user.student_info.sid)

        result = run_operation(load, name="list_student_courses")
        return respond(result, message="Student courses loaded", body=_courses_body)

    @app.route(f"{PREFIX}/<course_id>", methods=["GET"], endpoint="courses_get")
    def courses_get(course_id: str):
        result = run_operation(lambda: svc.get_course(course_id), name="get_course")
        return respond(result, message="Course loaded", body=lambda c: c.to_dict())

    @app.route(f"{PREFIX}/<course_id>", methods=["PATCH"], endpoint="courses_update")
    @admin_required
    def courses_update(course_id: str):
        data = json_body()
        result = run_operation(lambda: svc.update_course(course_id, data), name="update_course")
        return respond(result, message="Course updated", body=lambda c: c.to_dict())

    @app.route(f"{PREFIX}/<course_id>", methods=["DELETE"], endpoint="courses_delete")
    @admin_required
    def courses_delete(course_id: str):
        result = run_operation(lambda: svc.delete_course(course_id), name="delete_course")
        return respond(result, message="Course deleted")
