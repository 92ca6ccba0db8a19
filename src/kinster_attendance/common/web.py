from __future__ import annotations

from functools import wraps

from flask import current_app, jsonify, request, session

from ..core.exceptions import ValidationError

EXTENSION_KEY = "kinster_attendance"


def get_container():
    return current_app.extensions[EXTENSION_KEY]


def json_error(message: str, status: int, **extra):
    return jsonify({"success": False, "message": message, **extra}), status


def json_payload(*string_fields: str) -> dict:
    """Request body as a dict; a missing body reads as empty.

    Raises ValidationError when the body is not a JSON object or one of
    ``string_fields`` holds something other than a string.
    """
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    for name in string_fields:
        if data.get(name) is not None and not isinstance(data[name], str):
            raise ValidationError(f"{name} must be a string")
    return data


def _current_user():
    user_id = session.get("user_id")
    if not user_id:
        return None
    user = get_container().database.get_user_by_id(user_id)
    if not user or not user.is_active:
        # Deleted or deactivated since login.
        session.clear()
        return None
    return user


def login_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        if not _current_user():
            return json_error("Please log in to continue", 401)
        return view(*args, **kwargs)

    return wrapper


def admin_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        user = _current_user()
        if not user:
            return json_error("Please log in to continue", 401)
        if not user.is_admin:
            return json_error("Admin access required", 403)
        return view(*args, **kwargs)

    return wrapper
