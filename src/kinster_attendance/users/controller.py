from __future__ import annotations

import logging
from datetime import timedelta

from flask import Flask, jsonify, request, session

from ..common.datetime_utils import to_iso
from ..common.web import admin_required, json_error, json_payload, login_required
from ..core.constants import DEFAULT_SESSION_DAYS
from ..core.enums import Role
from ..core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    DuplicateEmailError,
    ValidationError,
)
from ..container import Container
from .model import User

logger = logging.getLogger(__name__)


def user_to_json(u: User) -> dict:
    return {
        "id": u.id,
        "email": u.email,
        "name": u.name,
        "role": u.role.value,
        "created_at": to_iso(u.created_at),
        "is_active": u.is_active,
    }


def register(app: Flask, container: Container) -> None:
    def _current_role() -> Role:
        return Role(session.get("role"))

    @app.route("/login", methods=["POST"], endpoint="login")
    def login():
        try:
            data = json_payload("email", "password")
        except ValidationError as e:
            return json_error(str(e), 400)

        try:
            s_user = container.auth_service.authenticate(data.get("email", ""), data.get("password", ""))
        except AuthenticationError as e:
            return json_error(str(e), 401)

        session.clear()
        session.permanent = bool(data.get("remember_me"))
        app.permanent_session_lifetime = timedelta(days=DEFAULT_SESSION_DAYS)

        session["user_id"] = s_user.user_id
        session["name"] = s_user.name
        session["email"] = s_user.email
        session["role"] = s_user.role.value

        return jsonify(
            {
                "success": True,
                "user": {"id": s_user.user_id, "name": s_user.name, "email": s_user.email, "role": s_user.role.value},
            }
        )

    @app.route("/logout", methods=["POST"], endpoint="logout")
    def logout():
        session.clear()
        return jsonify({"success": True, "message": "Logged out successfully"})

    @app.route("/me", methods=["GET"], endpoint="me")
    @login_required
    def me():
        user = container.user_service.get_user(session["user_id"])
        return jsonify({"success": True, "user": user_to_json(user)})

    @app.route("/admin/users", methods=["GET"], endpoint="admin_users")
    @admin_required
    def admin_users():
        users = container.user_service.list_users(search=request.args.get("q"))
        return jsonify({"success": True, "users": [user_to_json(u) for u in users]})

    @app.route("/admin/users", methods=["POST"], endpoint="add_user")
    @admin_required
    def add_user():
        try:
            data = json_payload("name", "email", "password", "role")
            user = container.user_service.create_account(
                current_role=_current_role(),
                name=data.get("name", ""),
                email=data.get("email", ""),
                password=data.get("password", ""),
                role=data.get("role", Role.USER.value),
            )
        except DuplicateEmailError as e:
            return json_error(str(e), 409)
        except (ValidationError, AuthorizationError) as e:
            return json_error(str(e), 400)
        except Exception:
            logger.exception("Unexpected error while creating user")
            return json_error("Failed to save user", 500)

        return jsonify({"success": True, "message": "User created successfully", "user": user_to_json(user)}), 201

    @app.route("/admin/users/<user_id>", methods=["PATCH"], endpoint="edit_user")
    @admin_required
    def edit_user(user_id: str):
        try:
            data = json_payload("name", "email", "password", "role")
        except ValidationError as e:
            return json_error(str(e), 400)

        is_active = data.get("is_active")
        if is_active is not None and not isinstance(is_active, bool):
            return json_error("is_active must be true or false", 400)

        try:
            user = container.user_service.update_account(
                current_role=_current_role(),
                user_id=user_id,
                name=data.get("name"),
                email=data.get("email"),
                password=data.get("password"),
                role=data.get("role"),
                is_active=is_active,
            )
        except DuplicateEmailError as e:
            return json_error(str(e), 409)
        except (ValidationError, AuthorizationError) as e:
            status = 404 if container.database.get_user_by_id(user_id) is None else 400
            return json_error(str(e), status)
        except Exception:
            logger.exception("Unexpected error while updating user %s", user_id)
            return json_error("Failed to save user", 500)

        return jsonify({"success": True, "message": "User updated successfully", "user": user_to_json(user)})

    @app.route("/admin/users/<user_id>", methods=["DELETE"], endpoint="delete_user")
    @admin_required
    def delete_user(user_id: str):
        try:
            container.user_service.delete_user(
                current_role=_current_role(),
                current_user_id=session["user_id"],
                user_id=user_id,
            )
        except (ValidationError, AuthorizationError) as e:
            status = 404 if container.database.get_user_by_id(user_id) is None else 400
            return json_error(str(e), status)
        except Exception:
            logger.exception("Unexpected error while deleting user %s", user_id)
            return json_error("Failed to delete user", 500)

        return jsonify({"success": True, "message": "User deleted successfully"})
