"""
Access tokens for the lease comp API.

The external auth provider handles login and refresh. This module issues and
verifies the HS256 access tokens the API accepts, and turns a verified
payload into the (user_id, team_id) pair the identity interface exposes.

    token = generate_access_token(user.id, user.team_id)
    payload = decode_access_token(token)        # raises jwt.InvalidTokenError
    user_id, team_id = caller_from_payload(payload)

Claims: sub (user id, as a string), team_id, type="access", iat, exp, jti.
"""

import uuid
from datetime import datetime, timedelta, timezone

import jwt
from flask import current_app

ALGORITHM = "HS256"
TOKEN_TYPE = "access"
DEFAULT_ACCESS_EXPIRES = 900
_REQUIRED_CLAIMS = ["sub", "exp", "iat"]


def _signing_key() -> str:
    cfg = current_app.config
    return cfg.get("JWT_SECRET_KEY") or cfg["SECRET_KEY"]


def generate_access_token(user_id: int, team_id: int | None) -> str:
    issued = datetime.now(timezone.utc)
    lifetime = timedelta(seconds=current_app.config.get("JWT_ACCESS_EXPIRES", DEFAULT_ACCESS_EXPIRES))
    claims = {
        "sub": str(user_id),
        "type": TOKEN_TYPE,
        "iat": issued,
        "exp": issued + lifetime,
        "jti": uuid.uuid4().hex,
    }
    if team_id is not None:
        claims["team_id"] = team_id
    return jwt.encode(claims, _signing_key(), algorithm=ALGORITHM)


def decode_access_token(token: str) -> dict:
    """Verify signature, expiry and token type; return the claims.

    Raises ``jwt.ExpiredSignatureError`` or ``jwt.InvalidTokenError``.
    """
    claims = jwt.decode(
        token,
        _signing_key(),
        algorithms=[ALGORITHM],
        options={"require": _REQUIRED_CLAIMS},
    )
    if claims.get("type") != TOKEN_TYPE:
        raise jwt.InvalidTokenError(f"not an access token: type={claims.get('type')!r}")
    return claims


def _as_int(value):
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def caller_from_payload(claims: dict) -> tuple[int | None, int | None]:
    """(user_id, team_id) from verified claims; unparsable ids become None."""
    return _as_int(claims.get("sub")), _as_int(claims.get("team_id"))
