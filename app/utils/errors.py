"""JSON error bodies for the lease comp API.

    return api_error(E.NOT_FOUND, "LeaseComp not found")
    return api_error(E.VALIDATION_INVALID, "Invalid lease details input", details=errors)
    return api_error(E.FORBIDDEN, "Read-only", read_only=True)

Body shape: ``{"error": <message>, "code": <ERR_*>, "details"?: {...}, **extra}``.
"""

from __future__ import annotations

from flask import jsonify


class E:
    """Error codes (``ERR_`` prefix) returned in the ``code`` field."""

    VALIDATION_REQUIRED = "ERR_VALIDATION_REQUIRED"
    VALIDATION_INVALID = "ERR_VALIDATION_INVALID"
    UNAUTHORIZED = "ERR_UNAUTHORIZED"
    FORBIDDEN = "ERR_FORBIDDEN"
    NOT_FOUND = "ERR_NOT_FOUND"
    DATABASE = "ERR_DATABASE"
    AUDIT_LOG = "ERR_AUDIT_LOG"
    INTERNAL = "ERR_INTERNAL"


HTTP_STATUS: dict[str, int] = {
    E.VALIDATION_REQUIRED: 400,
    E.VALIDATION_INVALID: 400,
    E.UNAUTHORIZED: 401,
    E.FORBIDDEN: 403,
    E.NOT_FOUND: 404,
    E.DATABASE: 500,
    E.AUDIT_LOG: 500,
    E.INTERNAL: 500,
}


def api_error(code: str, message: str, *, status: int | None = None, details: dict | None = None, **extra):
    """Build ``(response, status)`` for a Flask view or error handler.

    ``status`` overrides the code's default; unknown codes default to 400.
    """
    body: dict = {"error": message, "code": code}
    if details:
        body["details"] = details
    body.update(extra)
    return jsonify(body), status or HTTP_STATUS.get(code, 400)
