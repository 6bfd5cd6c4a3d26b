"""Blueprint helpers shared by the JSON API."""

from __future__ import annotations

from flask import Flask, abort, jsonify, request, session

from ..errors import (
    BudgetPilotError,
    NoCreditCardAccountError,
    NotFoundError,
    StorageError,
    UnpayableScheduleError,
    ValidationError,
)
from ..logging_config import get_logger

logger = get_logger(__name__)

_STATUS_BY_ERROR: tuple[tuple[type[BudgetPilotError], int], ...] = (
    (ValidationError, 400),
    (UnpayableScheduleError, 400),
    (NotFoundError, 404),
    (NoCreditCardAccountError, 409),
)


def current_user_id() -> int:
    """Resolve the caller from the session cookie or the ``X-User-Id`` header."""

    raw = session.get("user_id") or request.headers.get("X-User-Id")
    try:
        user_id = int(raw) if raw is not None else None
    except (TypeError, ValueError):
        user_id = None
    if not user_id or user_id <= 0:
        abort(401)
    return user_id


def request_payload() -> dict:
    payload = request.get_json(silent=True)
    return payload if isinstance(payload, dict) else {}


def register_error_handlers(app: Flask) -> None:
    """Translate domain exceptions into JSON error responses."""

    @app.errorhandler(StorageError)
    def _storage_error(exc: StorageError):
        logger.error(
            "Storage failure while handling request",
            exc_info=(type(exc), exc, exc.__traceback__),
            extra={"path": request.path, "method": request.method},
        )
        message = "Something went wrong saving your data. Please try again."
        return jsonify({"error": exc.code, "message": message}), 500

    @app.errorhandler(BudgetPilotError)
    def _domain_error(exc: BudgetPilotError):
        status = 500
        for error_type, code in _STATUS_BY_ERROR:
            if isinstance(exc, error_type):
                status = code
                break
        body: dict = {"error": exc.code, "message": exc.message}
        if isinstance(exc, ValidationError) and exc.fields:
            body["fields"] = exc.fields
        if status >= 500:
            logger.error("Unhandled domain error", exc_info=(type(exc), exc, exc.__traceback__))
        return jsonify(body), status

    @app.errorhandler(401)
    def _unauthorized(_exc):
        return jsonify({"error": "unauthorized", "message": "Sign in required"}), 401
