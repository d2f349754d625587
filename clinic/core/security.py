"""
Access tokens for the clinic API (PyJWT, HS256).

Tokens are issued by the clinic's identity provider (or ``clinic-manage
issue-token`` locally) and carry ``sub`` (user id), ``email`` and
``roles``. The scheduling core only ever looks at the roles.
"""

import os
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Iterable, Optional

import jwt

JWT_ALGORITHM = "HS256"
JWT_EXPIRATION_HOURS = 24

DEV_JWT_SECRET = "dev-jwt-secret-change-me"
WEAK_JWT_SECRETS = frozenset({DEV_JWT_SECRET, "dev-secret-change-me", "secret123"})
MIN_PRODUCTION_SECRET_LENGTH = 32

REQUIRED_CLAIMS = ("exp", "sub")


def get_jwt_secret_key() -> str:
    """Return the signing secret from JWT_SECRET_KEY.

    Development falls back to a fixed secret. With FLASK_ENV=production the
    secret must be set, not a known default, and at least 32 characters.

    Raises:
        ValueError: weak or missing secret in production
    """
    secret = os.getenv("JWT_SECRET_KEY", DEV_JWT_SECRET)
    if os.getenv("FLASK_ENV") == "production" and (
        secret in WEAK_JWT_SECRETS or len(secret) < MIN_PRODUCTION_SECRET_LENGTH
    ):
        raise ValueError(
            "Production deployment requires a strong JWT_SECRET_KEY "
            f"(min {MIN_PRODUCTION_SECRET_LENGTH} chars)."
        )
    return secret


def create_access_token(
    data: Dict[str, Any], expires_delta: Optional[timedelta] = None
) -> str:
    """Sign ``data`` with issue and expiry times added."""
    issued_at = datetime.now(timezone.utc)
    claims = dict(data)
    claims["iat"] = issued_at
    claims["exp"] = issued_at + (
        expires_delta
        if expires_delta is not None
        else timedelta(hours=JWT_EXPIRATION_HOURS)
    )
    return jwt.encode(claims, get_jwt_secret_key(), algorithm=JWT_ALGORITHM)


def decode_access_token(token: str) -> Optional[Dict[str, Any]]:
    """Verified claims, or None for a bad signature, expiry or missing claim."""
    try:
        return jwt.decode(
            token,
            get_jwt_secret_key(),
            algorithms=[JWT_ALGORITHM],
            options={"require": list(REQUIRED_CLAIMS)},
        )
    except jwt.PyJWTError:
        return None


def create_user_token(
    user_id: int,
    email: str,
    roles: Iterable[str],
    expires_delta: Optional[timedelta] = None,
) -> str:
    """Issue an access token for a clinic user carrying their roles."""
    return create_access_token(
        {"sub": str(user_id), "email": email, "roles": list(roles), "type": "access"},
        expires_delta=expires_delta,
    )


def get_user_from_token(token: str) -> Optional[Dict[str, Any]]:
    """Return ``{"user_id", "email", "roles"}`` for a valid token, else None.

    A token without a ``roles`` claim carries no roles. A ``roles`` claim
    that is not a list of strings invalidates the token.
    """
    claims = decode_access_token(token)
    if claims is None or not claims.get("email"):
        return None

    roles = claims.get("roles", [])
    if not isinstance(roles, list) or not all(isinstance(r, str) for r in roles):
        return None

    try:
        user_id = int(claims["sub"])
    except (TypeError, ValueError):
        return None
    return {"user_id": user_id, "email": claims["email"], "roles": roles}
