"""
Caller identity for the current request.

The JWT middleware resolves the caller; services read it through these two
functions so that nothing outside the middleware touches ``flask.g`` directly.
Outside a request or application context both return None.
"""

from flask import g, has_app_context


def resolve_caller_user_id() -> int | None:
    """User id of the authenticated caller, or None."""
    if not has_app_context():
        return None
    return getattr(g, "jwt_user_id", None)


def resolve_caller_team_id() -> int | None:
    """Team id carried by the caller's access token, or None."""
    if not has_app_context():
        return None
    return getattr(g, "jwt_team_id", None)
