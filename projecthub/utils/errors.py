"""JSON error bodies for the API.

Every error response has the same shape::

    {"error": "Project not found", "code": "ERR_NOT_FOUND", "details": {...}}

``details`` is present only when there is something structured to report
(missing fields, ``signed_out`` after session expiry). Views return
``api_error(E.X, "message")``; service exceptions are converted by the
handlers installed with ``register_error_handlers``.
"""

from __future__ import annotations

import logging

from flask import jsonify, request

from projecthub.core.exceptions import (
    AuthError,
    ConflictError,
    NotFoundError,
    SessionExpiredError,
    StoreError,
    ValidationError,
)

logger = logging.getLogger(__name__)


class E:
    """Error codes. The client switches on these, not on the message."""

    VALIDATION_REQUIRED = "ERR_VALIDATION_REQUIRED"
    VALIDATION_INVALID = "ERR_VALIDATION_INVALID"
    VALIDATION_RULE = "ERR_VALIDATION_RULE"
    AUTH_REQUIRED = "ERR_AUTH_REQUIRED"
    AUTH_FAILED = "ERR_AUTH_FAILED"
    SESSION_EXPIRED = "ERR_SESSION_EXPIRED"
    NOT_FOUND = "ERR_NOT_FOUND"
    CONFLICT_DUPLICATE = "ERR_CONFLICT_DUPLICATE"
    RATE_LIMITED = "ERR_RATE_LIMITED"
    DATABASE = "ERR_DATABASE"
    STORE_UNAVAILABLE = "ERR_STORE_UNAVAILABLE"
    INTERNAL = "ERR_INTERNAL"


_STATUS_BY_CODE: dict[str, int] = {
    # malformed request vs. well-formed but rejected by a rule
    E.VALIDATION_REQUIRED: 400,
    E.VALIDATION_INVALID: 400,
    E.VALIDATION_RULE: 422,
    E.AUTH_REQUIRED: 401,
    E.AUTH_FAILED: 401,
    E.SESSION_EXPIRED: 401,
    E.NOT_FOUND: 404,
    E.CONFLICT_DUPLICATE: 409,
    E.RATE_LIMITED: 429,
    E.DATABASE: 500,
    E.INTERNAL: 500,
    E.STORE_UNAVAILABLE: 503,
}


def api_error(code: str, message: str, *, status: int | None = None, details: dict | None = None):
    """``(response, status)`` for ``code``.

    ``status`` overrides the code's usual HTTP status; unknown codes get 400.
    """
    body: dict = {"error": message, "code": code}
    if details:
        body["details"] = details
    return jsonify(body), status or _STATUS_BY_CODE.get(code, 400)


def register_error_handlers(app) -> None:
    """Map service-layer exceptions to JSON responses for every blueprint."""

    @app.errorhandler(NotFoundError)
    def _handle_not_found(error: NotFoundError):
        return api_error(E.NOT_FOUND, str(error))

    @app.errorhandler(ValidationError)
    def _handle_validation(error: ValidationError):
        return api_error(E.VALIDATION_RULE, str(error), details=error.details)

    @app.errorhandler(ConflictError)
    def _handle_conflict(error: ConflictError):
        return api_error(E.CONFLICT_DUPLICATE, str(error))

    @app.errorhandler(AuthError)
    def _handle_auth(error: AuthError):
        return api_error(E.AUTH_FAILED, error.message, status=error.status_code)

    @app.errorhandler(SessionExpiredError)
    def _handle_session_expired(error: SessionExpiredError):
        return api_error(E.SESSION_EXPIRED, str(error), details={"signed_out": True})

    @app.errorhandler(StoreError)
    def _handle_store(error: StoreError):
        logger.error("Store failure on %s: %s", request.path, error)
        return api_error(E.STORE_UNAVAILABLE, "Data service unavailable")
