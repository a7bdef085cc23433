from __future__ import annotations

from typing import Any

from flask import Flask, jsonify, request
from werkzeug.exceptions import HTTPException

from ..common.logger import get_logger
from ..core.constants import RETRY_AFTER_SECONDS
from ..core.exceptions import (
    ConflictError,
    DatastoreUnavailable,
    DomainError,
    NotFoundError,
    TransactionError,
    ValidationError,
)

logger = get_logger("api")

STATUS_BY_ERROR: dict[type, int] = {
    ValidationError: 400,
    NotFoundError: 404,
    ConflictError: 409,
    TransactionError: 500,
    DatastoreUnavailable: 503,
}


def status_for(exc: DomainError) -> int:
    for cls in type(exc).__mro__:
        if cls in STATUS_BY_ERROR:
            return STATUS_BY_ERROR[cls]
    return 500


def error_response(message: str, kind: str, status: int):
    return jsonify({"message": message, "errorKind": kind}), status


def json_body() -> dict[str, Any]:
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        raise ValidationError("Request body must be a JSON object.", kind="InvalidBody")
    return payload


def register(app: Flask) -> None:
    @app.errorhandler(DomainError)
    def handle_domain_error(exc: DomainError):
        status = status_for(exc)
        if status >= 500:
            logger.error("%s %s failed: %s", request.method, request.path, exc.message)
        response, status = error_response(exc.message, exc.kind, status)
        if isinstance(exc, DatastoreUnavailable):
            response.headers["Retry-After"] = str(RETRY_AFTER_SECONDS)
        return response, status

    @app.errorhandler(HTTPException)
    def handle_http_error(exc: HTTPException):
        return error_response(exc.description or exc.name, exc.name.replace(" ", ""), exc.code or 500)

    @app.errorhandler(Exception)
    def handle_unexpected(exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.path)
        return error_response("Internal server error.", "InternalError", 500)
