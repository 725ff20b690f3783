"""FastAPI authentication dependencies (bearer JWT guard and role guard)."""

from __future__ import annotations

from collections.abc import Awaitable, Callable

import jwt
from fastapi import Depends, HTTPException, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from eventhub.auth.jwt import verify_token
from eventhub.auth.service import get_user_by_id
from eventhub.database import get_session
from eventhub.db.models import Role, User

_bearer = HTTPBearer(auto_error=False)


async def _resolve_user(token: str, db: AsyncSession) -> User:
    try:
        payload = verify_token(token, expected_type="access")
    except jwt.InvalidTokenError as e:
        raise HTTPException(status_code=401, detail=str(e)) from e

    user = await get_user_by_id(db, str(payload["sub"]))
    if user is None:
        raise HTTPException(status_code=401, detail="User not found")
    if not user.is_active:
        raise HTTPException(status_code=403, detail="Account is deactivated")
    return user


async def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Security(_bearer),
    db: AsyncSession = Depends(get_session),
) -> User:
    """
    Extract and verify the bearer JWT, return the User model.

    Raises 401 when the token is missing or invalid, 403 for deactivated accounts.
    """
    if credentials is None:
        raise HTTPException(status_code=401, detail="Not authenticated")
    return await _resolve_user(credentials.credentials, db)


async def get_optional_user(
    credentials: HTTPAuthorizationCredentials | None = Security(_bearer),
    db: AsyncSession = Depends(get_session),
) -> User | None:
    """Same as get_current_user, but anonymous requests resolve to None."""
    if credentials is None:
        return None
    return await _resolve_user(credentials.credentials, db)


def require_roles(*roles: Role) -> Callable[..., Awaitable[User]]:
    """Build a dependency that admits only users holding one of `roles`."""
    allowed = {r.value for r in roles}

    async def _check(user: User = Depends(get_current_user)) -> User:
        if user.role not in allowed:
            raise HTTPException(status_code=403, detail="Insufficient permissions")
        return user

    return _check
