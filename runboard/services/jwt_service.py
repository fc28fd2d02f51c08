"""
JWT Service — verification of bearer tokens issued by the identity provider.

This service never issues tokens. It only checks signature, expiry, issuer
and audience, and extracts the user id.

Token payload:
{
    "sub" | "userId": <user_id>,
    "iss": "dashboard-app",
    "aud": "dashboard-users",
    "iat": <issued_at>,
    "exp": <expires_at>
}
"""

import jwt
from flask import current_app


# ─── Defaults ────────────────────────────────────────────────
ALGORITHM = "HS256"
DEFAULT_ISSUER = "dashboard-app"
DEFAULT_AUDIENCE = "dashboard-users"


def _get_secret():
    """Get the JWT secret key from app config."""
    return current_app.config.get("JWT_SECRET_KEY") or current_app.config["SECRET_KEY"]


# ═══════════════════════════════════════════════════════════════
# Token Verification
# ═══════════════════════════════════════════════════════════════
def decode_access_token(token: str) -> dict:
    """
    Decode and verify a bearer token.

    Returns the payload dict on success.
    Raises jwt.exceptions on failure (ExpiredSignatureError, InvalidTokenError, etc.)
    """
    cfg = current_app.config
    return jwt.decode(
        token,
        _get_secret(),
        algorithms=[cfg.get("JWT_ALGORITHM", ALGORITHM)],
        issuer=cfg.get("JWT_ISSUER", DEFAULT_ISSUER),
        audience=cfg.get("JWT_AUDIENCE", DEFAULT_AUDIENCE),
        options={"require": ["exp"]},
    )


def user_id_from_payload(payload: dict) -> int:
    """Extract the user id from ``sub`` (preferred) or ``userId``."""
    raw = payload.get("sub", payload.get("userId"))
    try:
        return int(raw)
    except (TypeError, ValueError):
        raise jwt.InvalidTokenError("Token carries no usable user id") from None
