"""JSON envelope and bearer-token guards shared by the controllers."""
from __future__ import annotations

from functools import wraps
from typing import Any, Callable, Optional

from flask import g, jsonify, request

from ..core.exceptions import AuthorizationError, ErrorKind
from ..core.result import Err, Result, run_operation

STATUS_FOR_KIND = {
    ErrorKind.VALIDATION: 400,
    ErrorKind.INVALID_CODE: 400,
    ErrorKind.ALREADY_CHECKED_IN: 400,
    ErrorKind.UNAUTHORIZED: 401,
    ErrorKind.FORBIDDEN: 403,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.CONFLICT: 409,
    ErrorKind.INTERNAL: 500,
}


def envelope(code: int, message: str, body: Any = None):
    return jsonify({"code": code, "message": message, "body": body}), code


def fail(err: Err):
    return envelope(STATUS_FOR_KIND.get(err.kind, 500), err.message)


def respond(
    result: Result,
    *,
    message: str | Callable[[Any], str],
    body: Callable[[Any], Any] = lambda value: value,
    status: int = 200,
):
    """Render an operation result; ``message``/``body`` may derive from the value."""
    if not result.ok:
        return fail(result)
    value = result.value
    text = message(value) if callable(message) else message
    return envelope(status, text, body(value))


def json_body() -> dict:
    return request.get_json(silent=True) or {}


def bearer_token() -> Optional[str]:
    header = request.headers.get("Authorization", "")
    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def make_guards(auth_service):
    """Build ``login_required`` and ``admin_required`` bound to an AuthService.

    The authenticated user is stored on ``flask.g.current_user``.
    """

    def login_required(view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            token = bearer_token()
            result = run_operation(lambda: auth_service.user_from_token(token), name="authenticate")
            if not result.ok:
                return fail(result)
            g.current_user = result.value
            return view(*args, **kwargs)

        return wrapper

    def admin_required(view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            if not g.current_user.is_admin:
                denied = AuthorizationError("Insufficient permissions")
                return fail(Err(denied.kind, str(denied)))
            return view(*args, **kwargs)

        return login_required(wrapper)

    return login_required, admin_required
