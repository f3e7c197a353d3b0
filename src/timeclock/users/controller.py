from __future__ import annotations

from typing import Optional

from flask import Flask, session

from ..common.web import (
    admin_required,
    current_role,
    current_user_id,
    json_body,
    login_required,
    ok,
    reviewer_required,
    text_field,
)
from ..core.enums import Role
from ..core.exceptions import ValidationError
from ..container import Container


def _role_field(data: dict, default: Optional[Role] = Role.EMPLOYEE) -> Optional[Role]:
    raw = data.get("role")
    if raw is None or raw == "":
        return default
    try:
        return Role(str(raw))
    except ValueError:
        raise ValidationError("Unknown role")


def register(app: Flask, container: Container) -> None:
    @app.route("/api/auth/login", methods=["POST"], endpoint="login")
    def login():
        data = json_body()
        s_user = container.auth_service.authenticate(text_field(data, "email"), text_field(data, "password"))

        session.clear()
        session["user_id"] = s_user.user_id
        session["name"] = s_user.name
        session["role"] = s_user.role.value
        return ok(s_user, message="Logged in")

    @app.route("/api/auth/logout", methods=["POST"], endpoint="logout")
    def logout():
        session.clear()
        return ok(message="Logged out")

    @app.route("/api/auth/me", methods=["GET"], endpoint="me")
    @login_required
    def me():
        return ok(container.user_service.get_user(current_user_id()).public_view())

    @app.route("/api/profile", methods=["GET"], endpoint="get_profile")
    @login_required
    def get_profile():
        return ok(container.user_service.get_user(current_user_id()).public_view())

    @app.route("/api/profile", methods=["PUT"], endpoint="update_profile")
    @login_required
    def update_profile():
        data = json_body()
        user = container.user_service.update_profile(
            user_id=current_user_id(),
            name=text_field(data, "name"),
            email=text_field(data, "email"),
        )
        session["name"] = user.name
        return ok(user.public_view(), message="Profile updated")

    @app.route("/api/users", methods=["GET"], endpoint="list_users")
    @reviewer_required
    def list_users():
        users = container.user_service.list_users(current_role=current_role())
        return ok([u.public_view() for u in users])

    @app.route("/api/users", methods=["POST"], endpoint="create_user")
    @admin_required
    def create_user():
        data = json_body()
        user_id = container.user_service.create_user(
            current_role=current_role(),
            name=text_field(data, "name"),
            email=text_field(data, "email"),
            password=text_field(data, "password"),
            role=_role_field(data),
        )
        return ok({"user_id": user_id}, 201, message="User created")

    @app.route("/api/users/<int:user_id>", methods=["GET"], endpoint="get_user")
    @reviewer_required
    def get_user(user_id: int):
        return ok(container.user_service.get_user(user_id).public_view())

    @app.route("/api/users/<int:user_id>", methods=["PUT"], endpoint="update_user")
    @admin_required
    def update_user(user_id: int):
        data = json_body()
        user = container.user_service.update_user(
            current_role=current_role(),
            user_id=user_id,
            name=text_field(data, "name"),
            role=_role_field(data, default=None),
            password=text_field(data, "password", None) or None,
        )
        return ok(user.public_view(), message="User updated")

    @app.route("/api/users/<int:user_id>", methods=["DELETE"], endpoint="delete_user")
    @admin_required
    def delete_user(user_id: int):
        container.user_service.delete_user(
            current_role=current_role(),
            current_user_id=current_user_id(),
            user_id=user_id,
        )
        return ok(message="User deleted")
