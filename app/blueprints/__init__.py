"""
Lease Comp History
Blueprint helpers shared by the lease comp API.
"""

import logging

from flask import request

from app.core.exceptions import (
    AuditLogError,
    NotFoundError,
    PermissionDenied,
    PersistenceError,
    ValidationError,
)
from app.services.identity import resolve_caller_team_id, resolve_caller_user_id
from app.utils.errors import E, api_error

logger = logging.getLogger(__name__)


def require_caller():
    """Resolve (user_id, team_id) for the request.

    Returns (user_id, team_id, None) or (None, None, error_response).
    """
    user_id = resolve_caller_user_id()
    team_id = resolve_caller_team_id()
    if user_id is None or team_id is None:
        return None, None, api_error(E.UNAUTHORIZED, "Authentication required")
    return user_id, team_id, None


def json_body() -> dict:
    return request.get_json(silent=True) or {}


def register_error_handlers(bp):
    """Map the service exception hierarchy onto HTTP responses for *bp*."""

    @bp.errorhandler(NotFoundError)
    def _handle_not_found(error: NotFoundError):
        logger.debug("Not found: %s", error)
        return api_error(E.NOT_FOUND, f"{error.resource} not found")

    @bp.errorhandler(ValidationError)
    def _handle_validation(error: ValidationError):
        return api_error(E.VALIDATION_INVALID, str(error), details=error.details)

    @bp.errorhandler(PermissionDenied)
    def _handle_permission(error: PermissionDenied):
        return api_error(E.FORBIDDEN, str(error), read_only=True)

    @bp.errorhandler(PersistenceError)
    def _handle_persistence(error: PersistenceError):
        return api_error(E.DATABASE, str(error))

    @bp.errorhandler(AuditLogError)
    def _handle_audit(error: AuditLogError):
        message = "History could not be recorded"
        if error.mutation_committed:
            message += "; your change was saved"
        return api_error(
            E.AUDIT_LOG, message,
            details={"reason": str(error)},
            mutation_committed=error.mutation_committed,
        )
