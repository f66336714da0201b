"""
Bearer Token Service - issue and verify signed JWTs.

Algorithm: HS256
Lifetime:  JWT_EXPIRES_SECONDS (default one week)

Token payload:
{
    "sub": "<user_id>",
    "email": <email>,
    "role": "Admin" | "Sales" | "Production",
    "iat": <issued_at>,
    "exp": <expires_at>
}

Every verification failure (bad signature, expired, malformed, missing claims)
collapses to None. Callers never learn why a token was rejected.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

import jwt
from flask import current_app


DEFAULT_EXPIRES_SECONDS = 604800   # 7 days
ALGORITHM = "HS256"
BEARER_PREFIX = "Bearer "


@dataclass(frozen=True)
class Principal:
    """Authenticated identity carried by a verified token."""
    user_id: int
    email: str
    role: str


def _get_secret():
    """Get the JWT secret key from app config."""
    return current_app.config.get("JWT_SECRET_KEY") or current_app.config["SECRET_KEY"]


def _get_expires():
    return current_app.config.get("JWT_EXPIRES_SECONDS", DEFAULT_EXPIRES_SECONDS)


def issue_token(user) -> str:
    """Sign a token binding the user's id, email and role."""
    now = datetime.now(timezone.utc)
    payload = {
        "sub": str(user.id),
        "email": user.email,
        "role": user.role,
        "iat": now,
        "exp": now + timedelta(seconds=_get_expires()),
    }
    return jwt.encode(payload, _get_secret(), algorithm=ALGORITHM)


def verify_token(token: str | None) -> Principal | None:
    if not token:
        return None
    try:
        payload = jwt.decode(
            token,
            _get_secret(),
            algorithms=[ALGORITHM],
            options={"require": ["sub", "exp"]},
        )
        user_id = int(payload["sub"])
    except (jwt.PyJWTError, KeyError, TypeError, ValueError):
        return None

    email = payload.get("email")
    role = payload.get("role")
    if not isinstance(email, str) or not isinstance(role, str):
        return None
    return Principal(user_id=user_id, email=email, role=role)


def extract_bearer_token(header: str | None) -> str | None:
    """Return the token from a "Bearer <token>" header, or None."""
    if not header or not header.startswith(BEARER_PREFIX):
        return None
    token = header[len(BEARER_PREFIX):].strip()
    return token or None


def authenticate_header(header: str | None) -> Principal | None:
    return verify_token(extract_bearer_token(header))
