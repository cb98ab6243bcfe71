from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Dict

from jose import JWTError, jwt

from ..core.exceptions import AuthenticationError
from .model import User


class TokenService:
    """Issues and verifies the bearer tokens carried in ``Authorization`` headers."""

    def __init__(self, secret_key: str, *, algorithm: str = "HS256", expire_minutes: int = 60 * 24):
        self._secret_key = secret_key
        self._algorithm = algorithm
        self._expire = timedelta(minutes=int(expire_minutes))

    def issue(self, user: User, *, now: datetime | None = None) -> str:
        now = now or datetime.now(timezone.utc)
        claims = {
            "sub": str(user.user_id),
            "role": user.role.value,
            "iat": now,
            "exp": now + self._expire,
        }
        return jwt.encode(claims, self._secret_key, algorithm=self._algorithm)

    def decode(self, token: str) -> Dict[str, Any]:
        try:
            return jwt.decode(token, self._secret_key, algorithms=[self._algorithm])
        except JWTError:
            raise AuthenticationError("Token is not valid")
