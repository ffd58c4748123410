from __future__ import annotations

from flask import Flask, g, request

from ..common.http import json_body, make_guards, respond
from ..core.result import run_operation
from ..container import Container

PREFIX = "/api/v1/auth"


def register(app: Flask, container: Container) -> None:
    auth = container.auth_service
    login_required, _ = make_guards(auth)

    @app.route(f"{PREFIX}/register", methods=["POST"], endpoint="auth_register")
    def auth_register():
        data = json_body()
        result = run_operation(
            lambda: auth.register(
                username=data.get("userName", ""),
                password=data.get("password", ""),
                role=data.get("role") or "student",
                student_info=data.get("studentInfo"),
            ),
            name="register",
        )
        return respond(result, message="Registration successful", body=lambda r: r.to_dict(), status=201)

    @app.route(f"{PREFIX}/login", methods=["POST"], endpoint="auth_login")
    def auth_login():
        data = json_body()
        result = run_operation(lambda: auth.login(data.get("userName", ""), data.get("password", "")), name="login")
        return respond(result, message="Login successful", body=lambda r: r.to_dict())

    @app.route(f"{PREFIX}/me", methods=["GET"], endpoint="auth_me")
    @login_required
    def auth_me():
        result = run_operation(lambda: auth.get_user(g.current_user.user_id), name="get_user")
        return respond(result, message="User info loaded", body=lambda u: u.to_public_dict())

    @app.route(f"{PREFIX}/check-student-name", methods=["GET"], endpoint="auth_check_student_name")
    def auth_check_student_name():
        result = run_operation(lambda: auth.check_student_name(request.args.get("userName", "")), name="check_student_name")
        return respond(
            result,
            message=lambda exists: "Name already exists in student records" if exists else "Name is available",
        )
