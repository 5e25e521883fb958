"""
Per-blueprint rate limits (Flask-Limiter).

The Limiter in app/__init__.py carries no default limit; this module attaches
limits by blueprint name, keyed by the caller's team so one busy team does
not throttle another.

    init_rate_limits(app, limiter)   # after blueprints are registered
"""

import logging

from flask import g, request

logger = logging.getLogger(__name__)

# blueprint name -> limit string; None means exempt
BLUEPRINT_LIMITS = {
    "lease_comps": "120/minute",
    "lease_comp_history": "300/minute",
    "health": None,
}


def team_rate_limit_key() -> str:
    """``team:<id>`` for authenticated callers, else the remote address."""
    team_id = getattr(g, "jwt_team_id", None)
    if team_id:
        return f"team:{team_id}"
    return request.remote_addr or "unknown"


def init_rate_limits(app, limiter):
    if app.config.get("TESTING") or not app.config.get("RATELIMIT_ENABLED", True):
        logger.debug("Rate limiting disabled")
        return

    for name, limit in BLUEPRINT_LIMITS.items():
        bp = app.blueprints.get(name)
        if bp is None:
            continue
        if limit is None:
            limiter.exempt(bp)
        else:
            limiter.limit(limit, key_func=team_rate_limit_key)(bp)

    logger.info("Rate limits applied: %s", {k: v for k, v in BLUEPRINT_LIMITS.items() if v})
