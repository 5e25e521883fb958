"""
Application-wide exception hierarchy.

Services raise these; blueprints register one handler per type and get the
same HTTP status codes everywhere.

Usage:
    from app.core.exceptions import NotFoundError, ValidationError

    raise NotFoundError(resource="LeaseComp", resource_id=comp_id, team_id=1)
    raise ValidationError("Invalid lease details", details={"lease_sf": "..."})
"""


class NotFoundError(Exception):
    """Raised when a requested resource does not exist within the given scope.

    Used for BOTH genuinely missing records AND cross-team access attempts.
    A 403 would confirm the resource exists; a 404 does not.

    Args:
        resource: Human-readable model/entity name (e.g. "LeaseComp", "Task").
        resource_id: The PK that was looked up. Included in logs, not in HTTP response.
        team_id: Optional — the scope that was enforced. For debug logging only.
    """

    def __init__(
        self,
        resource: str,
        resource_id: int | str | None = None,
        team_id: int | None = None,
    ) -> None:
        self.resource = resource
        self.resource_id = resource_id
        self.team_id = team_id
        msg = f"{resource}"
        if resource_id is not None:
            msg += f" id={resource_id}"
        msg += " not found"
        if team_id is not None:
            msg += f" (team={team_id})"
        super().__init__(msg)


class ValidationError(Exception):
    """Raised when input fails local validation before any storage access.

    Maps to HTTP 400 in blueprint error handlers.

    Args:
        message: Human-readable explanation of what failed.
        details: Optional field-level breakdown for structured API responses.
                 Keys are field names; values are error descriptions.
    """

    def __init__(self, message: str, details: dict | None = None) -> None:
        self.details = details or {}
        super().__init__(message)


class PersistenceError(Exception):
    """Raised when a domain write could not be committed.

    The session has been rolled back; the record is unchanged and no
    history event was logged. Maps to HTTP 500.
    """

    def __init__(self, message: str = "Failed to save changes") -> None:
        super().__init__(message)


class PermissionDenied(PersistenceError):
    """Persistence failure caused by missing write permission.

    Maps to HTTP 403; the response carries ``read_only: true`` so clients
    can switch the view into read-only mode.
    """

    def __init__(self, message: str = "You do not have permission to edit this lease comp") -> None:
        super().__init__(message)


class AuditLogError(Exception):
    """Raised when the history event for a mutation could not be written.

    No event and no diff row exist for the failed call. When
    ``mutation_committed`` is true the domain write has already been
    committed and stays in place.

    Args:
        message: What went wrong.
        mutation_committed: Whether the preceding domain write is durable.
    """

    def __init__(self, message: str, mutation_committed: bool = True) -> None:
        self.mutation_committed = mutation_committed
        super().__init__(message)


class IdentityMismatchError(AuditLogError):
    """The actor passed to the event logger is not the authenticated caller."""
