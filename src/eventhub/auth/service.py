"""
Authentication business logic.

Handles user registration, credential checks and user lookups.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog
from sqlalchemy import func, select

from eventhub.auth.password import (
    check_needs_rehash,
    hash_password,
    validate_password_strength,
    verify_password,
)
from eventhub.db.models import Role, User
from eventhub.users.wallet_service import get_or_create_wallet

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

logger = structlog.get_logger()


class EmailAlreadyRegisteredError(ValueError):
    """Raised when registering an email that already has an account."""


class InactiveUserError(PermissionError):
    """Raised when a deactivated account tries to authenticate."""


# ---------------------------------------------------------------------------
# User queries
# ---------------------------------------------------------------------------


async def get_user_by_id(db: AsyncSession, user_id: str) -> User | None:
    """Fetch a user by ID."""
    result = await db.execute(select(User).where(User.id == user_id))
    return result.scalar_one_or_none()


async def get_user_by_email(db: AsyncSession, email: str) -> User | None:
    """Fetch a user by email (case-insensitive)."""
    result = await db.execute(select(User).where(func.lower(User.email) == email.lower()))
    return result.scalar_one_or_none()


# ---------------------------------------------------------------------------
# Registration & login
# ---------------------------------------------------------------------------


async def register_user(
    db: AsyncSession,
    email: str,
    password: str,
    name: str | None = None,
    avatar: str | None = None,
    role: Role = Role.USER,
) -> User:
    """
    Register a new user with email + password and open an empty wallet.

    Raises:
        PasswordStrengthError: If the password is weak.
        EmailAlreadyRegisteredError: If the email already exists.
    """
    validate_password_strength(password)

    email = email.lower().strip()
    if await get_user_by_email(db, email) is not None:
        msg = "Email already registered"
        raise EmailAlreadyRegisteredError(msg)

    user = User(
        email=email,
        password_hash=hash_password(password),
        name=name,
        avatar=avatar,
        role=role.value,
    )
    db.add(user)
    await db.flush()
    await get_or_create_wallet(db, user.id)

    logger.info("user_registered", user_id=user.id, role=user.role)
    return user


async def authenticate_user(db: AsyncSession, email: str, password: str) -> User:
    """
    Check email + password.

    Raises:
        ValueError: On unknown email or wrong password (same message for both).
        InactiveUserError: If the account is deactivated.
    """
    user = await get_user_by_email(db, email)
    if user is None or not user.password_hash or not verify_password(password, user.password_hash):
        logger.info("login_failed", email=email)
        msg = "Invalid email or password"
        raise ValueError(msg)

    if not user.is_active:
        msg = "Account is deactivated"
        raise InactiveUserError(msg)

    if check_needs_rehash(user.password_hash):
        user.password_hash = hash_password(password)
        await db.flush()

    logger.info("login_succeeded", user_id=user.id)
    return user
