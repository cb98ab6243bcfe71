from __future__ import annotations

import logging
from typing import Any, Callable, Optional

from flask import Flask, jsonify, request
from werkzeug.exceptions import HTTPException

from ..core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    DuplicateError,
    NotFoundError,
    ValidationError,
)
from .pagination import Page

logger = logging.getLogger(__name__)


def ok(data: Any = None, *, message: Optional[str] = None, status: int = 200, **extra):
    """Success envelope: ``{success: true, message?, data?, ...extra}``."""

    body: dict[str, Any] = {"success": True}
    if message is not None:
        body["message"] = message
    body.update(extra)
    if data is not None:
        body["data"] = data
    return jsonify(body), status


def fail(message: str, status: int, **extra):
    body: dict[str, Any] = {"success": False, "message": message}
    body.update(extra)
    return jsonify(body), status


def paged(page: Page, serialize: Callable[[Any], dict]):
    return ok(
        [serialize(item) for item in page.items],
        count=len(page.items),
        total=page.total,
        totalPages=page.total_pages,
        currentPage=page.request.page,
    )


def json_body() -> dict:
    """Request JSON as a dict, or a ValidationError for anything else."""

    body = request.get_json(silent=True)
    if not isinstance(body, dict):
        raise ValidationError("Request body must be a JSON object")
    return body


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(ValidationError)
    def _validation(e: ValidationError):
        if e.errors:
            return fail(str(e), 400, errors=e.errors)
        return fail(str(e), 400)

    @app.errorhandler(DuplicateError)
    def _duplicate(e: DuplicateError):
        return fail(str(e), 400)

    @app.errorhandler(NotFoundError)
    def _not_found(e: NotFoundError):
        return fail(str(e), 404)

    @app.errorhandler(AuthenticationError)
    def _unauthenticated(e: AuthenticationError):
        return fail(str(e), 401)

    @app.errorhandler(AuthorizationError)
    def _forbidden(e: AuthorizationError):
        return fail(str(e), 403)

    @app.errorhandler(HTTPException)
    def _http(e: HTTPException):
        return fail(e.description or e.name, e.code or 500)

    @app.errorhandler(Exception)
    def _unexpected(e: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.path)
        return fail("Server error", 500)
