"""
RS256 access and refresh tokens.

Both kinds carry the user's email and role, so role guards need no second lookup,
and a `type` claim, so a refresh token is never accepted where an access token is due.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any

import jwt

from eventhub.config import get_settings

ACCESS = "access"
REFRESH = "refresh"

_keys: tuple[str, str] | None = None


def _load_keys() -> tuple[str, str]:
    """(private PEM, public PEM), read once from the configured paths."""
    global _keys  # noqa: PLW0603
    if _keys is None:
        settings = get_settings()
        _keys = (
            Path(settings.jwt_private_key_path).read_text(),
            Path(settings.jwt_public_key_path).read_text(),
        )
    return _keys


def reset_keys() -> None:
    """Forget the cached key pair so the next call re-reads the key files."""
    global _keys  # noqa: PLW0603
    _keys = None


def _issue(user_id: str, email: str, role: str, token_type: str, lifetime: timedelta) -> str:
    settings = get_settings()
    private_key, _ = _load_keys()
    now = datetime.now(timezone.utc)
    claims = {
        "sub": user_id,
        "email": email,
        "role": role,
        "type": token_type,
        "iss": settings.jwt_issuer,
        "iat": now,
        "exp": now + lifetime,
    }
    return jwt.encode(claims, private_key, algorithm=settings.jwt_algorithm)


def create_access_token(user_id: str, email: str, role: str) -> str:
    """Short-lived token sent as `Authorization: Bearer` on API calls."""
    minutes = get_settings().jwt_access_token_expire_minutes
    return _issue(user_id, email, role, ACCESS, timedelta(minutes=minutes))


def create_refresh_token(user_id: str, email: str, role: str) -> str:
    """Long-lived token accepted only by /api/auth/refresh."""
    days = get_settings().jwt_refresh_token_expire_days
    return _issue(user_id, email, role, REFRESH, timedelta(days=days))


def verify_token(token: str, expected_type: str = ACCESS) -> dict[str, Any]:
    """
    Decode a token and check its signature, issuer, expiry and type.

    Raises:
        jwt.InvalidTokenError: With a readable message for every failure.
    """
    settings = get_settings()
    _, public_key = _load_keys()
    try:
        claims: dict[str, Any] = jwt.decode(
            token,
            public_key,
            algorithms=[settings.jwt_algorithm],
            issuer=settings.jwt_issuer,
            options={"require": ["sub", "exp", "type"]},
        )
    except jwt.ExpiredSignatureError:
        raise jwt.InvalidTokenError("Token has expired") from None

    token_type = claims["type"]
    if token_type != expected_type:
        msg = f"Expected token type '{expected_type}', got '{token_type}'"
        raise jwt.InvalidTokenError(msg)
    return claims
