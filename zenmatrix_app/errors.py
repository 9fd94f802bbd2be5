"""
Error taxonomy and JSON error handlers.

Handlers raise one of the ``ApiError`` subclasses below; the handlers
registered by ``register_error_handlers`` turn them into a uniform
``{"error": message, "code": code}`` envelope.  Unexpected failures are
logged with their traceback and reported to the client only as a generic
internal error.
"""

from __future__ import annotations

import logging

from flask import Flask, Response, jsonify
from sqlalchemy.exc import SQLAlchemyError
from werkzeug.exceptions import HTTPException

from . import db

logger = logging.getLogger(__name__)


class ApiError(Exception):
    """Base class for errors that map onto a single HTTP status."""

    status_code = 500
    code = "internal_error"
    message = "Internal server error"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.message)
        self.message = message or self.message

    def to_response(self) -> tuple[Response, int]:
        return jsonify({"error": self.message, "code": self.code}), self.status_code


class ValidationError(ApiError):
    status_code = 400
    code = "validation_error"
    message = "Invalid request"


class Unauthenticated(ApiError):
    status_code = 401
    code = "unauthenticated"
    message = "Missing or invalid Authorization header"


class Forbidden(ApiError):
    status_code = 403
    code = "forbidden"
    message = "Invalid or expired token"


class NotFound(ApiError):
    status_code = 404
    code = "not_found"
    message = "Resource not found"


class Conflict(ApiError):
    status_code = 409
    code = "conflict"
    message = "Resource already exists"


class InternalError(ApiError):
    pass


# Werkzeug's own HTTP errors (unknown route, wrong method, bad JSON) are
# reported with these codes.
_HTTP_ERROR_CODES = {
    400: "bad_request",
    404: "not_found",
    405: "method_not_allowed",
    415: "unsupported_media_type",
}


def register_error_handlers(app: Flask) -> None:
    """Attach JSON error handlers for the taxonomy to *app*."""

    @app.errorhandler(ApiError)
    def handle_api_error(error: ApiError) -> tuple[Response, int]:
        if error.status_code >= 500:
            logger.error("Request failed: %s", error.message)
        else:
            logger.warning("Request rejected (%s): %s", error.status_code, error.message)
        return error.to_response()

    @app.errorhandler(HTTPException)
    def handle_http_exception(error: HTTPException) -> tuple[Response, int]:
        status = error.code or 500
        code = _HTTP_ERROR_CODES.get(status, "http_error")
        return jsonify({"error": error.name, "code": code}), status

    @app.errorhandler(SQLAlchemyError)
    def handle_store_error(error: SQLAlchemyError) -> tuple[Response, int]:
        db.session.rollback()
        logger.exception("Database error: %s", error)
        return InternalError().to_response()

    @app.errorhandler(Exception)
    def handle_unexpected_error(error: Exception) -> tuple[Response, int]:
        db.session.rollback()
        logger.exception("Unhandled error: %s", error)
        return InternalError().to_response()
