from __future__ import annotations

from datetime import datetime
from typing import Optional

from werkzeug.security import check_password_hash

from ..common.validators import require_non_empty
from ..core.enums import Role
from ..core.exceptions import AuthenticationError, AuthorizationError
from .model import User
from .repository import UserRepository
from .tokens import TokenService


class AuthService:
    """Use case: log in, and resolve bearer tokens back to active users."""

    def __init__(self, users: UserRepository, tokens: TokenService):
        self._users = users
        self._tokens = tokens

    def login(self, email: str, password: str, *, now: Optional[datetime] = None) -> tuple[str, User]:
        email = require_non_empty(email, "email").lower()
        password = require_non_empty(password, "password")

        user = self._users.get_by_email(email)
        if not user or not user.is_active:
            raise AuthenticationError("Invalid credentials")

        try:
            ok = check_password_hash(user.password_hash, password)
        except ValueError:
            # e.g. placeholder hashes like 'CHANGE_ME' or corrupted values
            ok = False

        if not ok:
            raise AuthenticationError("Invalid credentials")

        return self._tokens.issue(user, now=now), user

    def user_for_token(self, token: str) -> User:
        if not token:
            raise AuthenticationError("No token, authorization denied")

        claims = self._tokens.decode(token)
        try:
            user_id = int(claims.get("sub"))
        except (TypeError, ValueError):
            raise AuthenticationError("Token is not valid")

        user = self._users.get_by_id(user_id)
        if not user or not user.is_active:
            raise AuthenticationError("Token is not valid")
        return user

    @staticmethod
    def authorize(user: User, *roles: Role) -> None:
        if roles and user.role not in roles:
            raise AuthorizationError(f"User role {user.role.value} is not authorized to access this route")

    @staticmethod
    def authorize_self_or(user: User, target_user_id: int, *roles: Role) -> None:
        if user.user_id != int(target_user_id) and user.role not in roles:
            raise AuthorizationError("Not authorized to access this resource")
