"""Authentication router: all /api/auth/* endpoints."""

from __future__ import annotations

import jwt
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from eventhub.auth.dependencies import get_current_user
from eventhub.auth.jwt import create_access_token, create_refresh_token, verify_token
from eventhub.auth.password import PasswordStrengthError
from eventhub.auth.schemas import (
    AuthUserResponse,
    LoginRequest,
    RefreshRequest,
    RegisterRequest,
    TokenResponse,
)
from eventhub.auth.service import (
    EmailAlreadyRegisteredError,
    InactiveUserError,
    authenticate_user,
    get_user_by_id,
    register_user,
)
from eventhub.config import get_settings
from eventhub.database import get_session
from eventhub.db.models import User


router = APIRouter(prefix="/api/auth", tags=["Auth"])


def _auth_user(user: User) -> AuthUserResponse:
    return AuthUserResponse(
        id=user.id,
        name=user.name,
        email=user.email,
        avatar=user.avatar,
        role=user.role,
        created_at=user.created_at,
    )


def _issue_tokens(user: User) -> TokenResponse:
    settings = get_settings()
    return TokenResponse(
        access_token=create_access_token(user.id, user.email, user.role),
        refresh_token=create_refresh_token(user.id, user.email, user.role),
        expires_in=settings.jwt_access_token_expire_minutes * 60,
        user=_auth_user(user),
    )


@router.post("/register", response_model=TokenResponse, status_code=201)
async def register(
    body: RegisterRequest,
    db: AsyncSession = Depends(get_session),
) -> TokenResponse:
    """Register with email + password."""
    try:
        user = await register_user(db, email=body.email, password=body.password, name=body.name, avatar=body.avatar)
    except PasswordStrengthError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    except EmailAlreadyRegisteredError as e:
        raise HTTPException(status_code=409, detail=str(e)) from e
    await db.commit()
    return _issue_tokens(user)


@router.post("/login", response_model=TokenResponse)
async def login(
    body: LoginRequest,
    db: AsyncSession = Depends(get_session),
) -> TokenResponse:
    """Login with email + password."""
    try:
        user = await authenticate_user(db, body.email, body.password)
    except InactiveUserError as e:
        raise HTTPException(status_code=403, detail=str(e)) from e
    except ValueError as e:
        raise HTTPException(status_code=401, detail=str(e)) from e
    await db.commit()
    return _issue_tokens(user)


@router.post("/refresh", response_model=TokenResponse)
async def refresh(
    body: RefreshRequest,
    db: AsyncSession = Depends(get_session),
) -> TokenResponse:
    """Exchange a refresh token for a new token pair."""
    try:
        payload = verify_token(body.refresh_token, expected_type="refresh")
    except jwt.InvalidTokenError as e:
        raise HTTPException(status_code=401, detail=str(e)) from e

    user = await get_user_by_id(db, str(payload["sub"]))
    if user is None or not user.is_active:
        raise HTTPException(status_code=401, detail="User not found")
    return _issue_tokens(user)


@router.get("/me", response_model=AuthUserResponse)
async def me(user: User = Depends(get_current_user)) -> AuthUserResponse:
    """Return the user behind the bearer token."""
    return _auth_user(user)
