from __future__ import annotations

from functools import wraps

from flask import g, request

from ..core.enums import Role
from .model import User
from .service import AuthService

MANAGERS = (Role.ADMIN, Role.MANAGER)


def bearer_token() -> str:
    scheme, _, token = request.headers.get("Authorization", "").partition(" ")
    if scheme.lower() != "bearer":
        return ""
    return token.strip()


def current_user() -> User:
    return g.current_user


class Guards:
    """Route decorators: ``protect`` resolves the bearer token, ``authorize`` checks roles."""

    def __init__(self, auth: AuthService):
        self._auth = auth

    def protect(self, view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            g.current_user = self._auth.user_for_token(bearer_token())
            return view(*args, **kwargs)

        return wrapper

    def authorize(self, *roles: Role):
        def decorator(view):
            @wraps(view)
            def wrapper(*args, **kwargs):
                g.current_user = self._auth.user_for_token(bearer_token())
                self._auth.authorize(g.current_user, *roles)
                return view(*args, **kwargs)

            return wrapper

        return decorator
