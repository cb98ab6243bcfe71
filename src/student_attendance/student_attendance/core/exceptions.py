from __future__ import annotations

from typing import Optional, Sequence


class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules.

    ``errors`` holds per-field messages as ``{"field": ..., "message": ...}``.
    """

    def __init__(self, message: str, errors: Optional[Sequence[dict]] = None):
        super().__init__(message)
        self.errors = list(errors or [])


class DuplicateError(DomainError):
    """Raised when a write would break a uniqueness rule."""


class DuplicateRollNumberError(DuplicateError):
    def __init__(self, message: str = "Student with this roll number already exists in this branch and year"):
        super().__init__(message)


class DuplicateUIDError(DuplicateError):
    def __init__(self, message: str = "Student with this UID already exists"):
        super().__init__(message)


class AlreadyMarkedError(DuplicateError):
    def __init__(self, message: str = "Attendance for this date already exists"):
        super().__init__(message)


class NotFoundError(DomainError):
    """Raised when a referenced entity does not exist."""


class AuthenticationError(DomainError):
    """Raised when credentials or bearer tokens are missing or invalid."""


class AuthorizationError(DomainError):
    """Raised when a user lacks permission for an action."""


class UniqueConstraintError(Exception):
    """Storage-level unique constraint violation.

    Raised by repositories; services translate it using ``constraint``.
    """

    def __init__(self, constraint: str, message: str = ""):
        super().__init__(message or f"unique constraint violated: {constraint}")
        self.constraint = constraint
