"""
Bearer token middleware.

    Authorization: Bearer <access token>  ->  g.jwt_user_id, g.jwt_team_id

Both values start as None on every request and stay None when the header is
missing or the token does not verify. Routes decide what that means; the
lease comp and history blueprints answer 401.
"""

import logging

import jwt
from flask import g, request

from app.services.jwt_service import caller_from_payload, decode_access_token

logger = logging.getLogger(__name__)

API_PREFIX = "/api/v1/"
PUBLIC_PREFIXES = ("/api/v1/health",)


def _bearer_token() -> str | None:
    scheme, _, token = request.headers.get("Authorization", "").partition(" ")
    if scheme != "Bearer" or not token.strip():
        return None
    return token.strip()


def init_jwt_middleware(app):
    """Register the before_request hook that resolves the caller."""

    @app.before_request
    def _resolve_caller():
        g.jwt_user_id = None
        g.jwt_team_id = None

        path = request.path
        if not path.startswith(API_PREFIX) or path.startswith(PUBLIC_PREFIXES):
            return

        token = _bearer_token()
        if token is None:
            return
        try:
            claims = decode_access_token(token)
        except jwt.ExpiredSignatureError:
            logger.info("Expired access token on %s %s", request.method, path)
            return
        except jwt.InvalidTokenError as exc:
            logger.info("Rejected access token on %s %s: %s", request.method, path, exc)
            return

        g.jwt_user_id, g.jwt_team_id = caller_from_payload(claims)
