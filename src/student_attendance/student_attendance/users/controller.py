from __future__ import annotations

from flask import Flask

from ..common.responses import json_body, ok
from ..container import Container
from .guards import current_user


def register(app: Flask, container: Container) -> None:
    guards = container.guards

    @app.route("/api/auth/login", methods=["POST"], endpoint="auth_login")
    def login():
        body = json_body()
        token, user = container.auth_service.login(str(body.get("email") or ""), str(body.get("password") or ""))
        return ok({"token": token, "user": user.to_dict()})

    @app.route("/api/auth/me", methods=["GET"], endpoint="auth_me")
    @guards.protect
    def me():
        return ok(current_user().to_dict())
