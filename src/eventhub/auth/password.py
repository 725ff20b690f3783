"""Password hashing (argon2id) and the strength rules applied at registration."""

from __future__ import annotations

from collections.abc import Callable
from functools import lru_cache

import argon2
from argon2.exceptions import InvalidHashError, VerificationError

from eventhub.config import get_settings


class PasswordStrengthError(ValueError):
    """The password breaks one of the strength rules."""


_CHARACTER_RULES: list[tuple[Callable[[str], bool], str]] = [
    (lambda p: any(c.isupper() for c in p), "Password must contain at least one uppercase letter"),
    (lambda p: any(c.islower() for c in p), "Password must contain at least one lowercase letter"),
    (lambda p: any(c.isdigit() for c in p), "Password must contain at least one digit"),
]


@lru_cache
def _hasher() -> argon2.PasswordHasher:
    settings = get_settings()
    return argon2.PasswordHasher(
        time_cost=settings.password_hash_time_cost,
        memory_cost=settings.password_hash_memory_kib,
        parallelism=1,
        type=argon2.Type.ID,
    )


def hash_password(password: str) -> str:
    return _hasher().hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    """True on a match. Mismatches and unreadable hashes both give False."""
    try:
        return _hasher().verify(password_hash, password)
    except (VerificationError, InvalidHashError):
        return False


def check_needs_rehash(password_hash: str) -> bool:
    """True when the stored hash was made with different cost settings."""
    return _hasher().check_needs_rehash(password_hash)


def validate_password_strength(password: str) -> None:
    """
    Enforce the configured length bounds plus upper, lower and digit characters.

    Raises:
        PasswordStrengthError: Naming the first rule the password breaks.
    """
    settings = get_settings()
    if not password.strip():
        raise PasswordStrengthError("Password cannot be empty")
    if len(password) < settings.password_min_length:
        raise PasswordStrengthError(f"Password must be at least {settings.password_min_length} characters")
    if len(password) > settings.password_max_length:
        raise PasswordStrengthError(f"Password must not exceed {settings.password_max_length} characters")
    for rule, message in _CHARACTER_RULES:
        if not rule(password):
            raise PasswordStrengthError(message)
