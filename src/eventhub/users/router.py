"""User profile router: all /api/user/* endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from eventhub.auth.dependencies import get_current_user
from eventhub.database import get_session
from eventhub.db.models import Event, Post, User
from eventhub.events.schemas import Envelope
from eventhub.users.schemas import (
    EventRef,
    JoinedEventResponse,
    ProfileCommentResponse,
    ProfileEventResponse,
    ProfileLikeResponse,
    ProfilePostResponse,
    ProfileResponse,
    ProfileStatsResponse,
    ProfileUpdateRequest,
    ProfileUpvoteResponse,
    TransactionResponse,
    UserResponse,
    WalletResponse,
)
from eventhub.users.service import get_profile, update_profile
from eventhub.users.wallet_service import get_wallet_overview

router = APIRouter(prefix="/api/user", tags=["Users"])


def _user_response(user: User) -> UserResponse:
    return UserResponse(
        id=user.id,
        name=user.name,
        email=user.email,
        avatar=user.avatar,
        role=user.role,
        wallet_address=user.wallet_address,
        created_at=user.created_at,
        updated_at=user.updated_at,
    )


def _event_fields(event: Event) -> dict:
    return {
        "id": event.id,
        "title": event.title,
        "thumbnail": event.thumbnail,
        "verified": event.verified,
        "is_active": event.is_active,
        "start_date": event.start_date,
        "end_date": event.end_date,
        "creator_id": event.creator_id,
        "creator_name": event.creator.name,
        "winner_id": event.winner_id,
    }


def _event_ref(event: Event) -> EventRef:
    return EventRef(id=event.id, title=event.title)


def _post_ref(post: Post) -> dict:
    return {"post_id": post.id, "post_content": post.content, "event": _event_ref(post.event)}


# ---------------------------------------------------------------------------
# Profile
# ---------------------------------------------------------------------------


@router.get("/me", response_model=Envelope[ProfileResponse])
async def get_my_profile(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    """Own profile with hosted, joined and won events, content, reactions and stats."""
    profile = await get_profile(db, user)
    data = ProfileResponse(
        user=_user_response(user),
        created_events=[ProfileEventResponse(**_event_fields(e)) for e in profile.created_events],
        joined_events=[
            JoinedEventResponse(**_event_fields(e), joined_at=link.joined_at)
            for e, link in profile.joined_events
        ],
        won_events=[ProfileEventResponse(**_event_fields(e)) for e in profile.won_events],
        posts=[
            ProfilePostResponse(
                id=p.id, content=p.content, image=p.image, created_at=p.created_at, event=_event_ref(p.event),
            )
            for p in profile.posts
        ],
        comments=[
            ProfileCommentResponse(
                id=c.id,
                content=c.content,
                created_at=c.created_at,
                **_post_ref(c.post),
                parent_id=c.parent_id,
                parent_author_name=c.parent.author.name if c.parent else None,
            )
            for c in profile.comments
        ],
        upvotes=[ProfileUpvoteResponse(**_post_ref(u.post), created_at=u.created_at) for u in profile.upvotes],
        event_likes=[ProfileLikeResponse(event=_event_ref(lk.event), created_at=lk.created_at) for lk in profile.likes],
        stats=ProfileStatsResponse(**vars(profile.stats)),
    )
    return Envelope(message="Profile retrieved successfully", data=data)


@router.patch("/me", response_model=Envelope[UserResponse])
async def update_my_profile(
    body: ProfileUpdateRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    """Update name, avatar and wallet address."""
    try:
        user = await update_profile(
            db,
            user,
            name=body.name,
            avatar=body.avatar,
            wallet_address=body.wallet_address,
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    await db.commit()
    return Envelope(message="Profile updated successfully", data=_user_response(user))


# ---------------------------------------------------------------------------
# Wallet
# ---------------------------------------------------------------------------


@router.get("/me/wallet", response_model=Envelope[WalletResponse])
async def get_my_wallet(
    limit: int = Query(20, ge=1, le=100),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    """Wallet balances and the most recent transactions."""
    wallet, transactions = await get_wallet_overview(db, user.id, limit)
    await db.commit()
    return Envelope(
        message="Wallet retrieved successfully",
        data=WalletResponse(
            id=wallet.id,
            balance=wallet.balance,
            locked_balance=wallet.locked_balance,
            wallet_address=user.wallet_address,
            transactions=[
                TransactionResponse(
                    id=t.id,
                    type=t.type,
                    status=t.status,
                    amount=t.amount,
                    description=t.description,
                    tx_hash=t.tx_hash,
                    event_id=t.event_id,
                    created_at=t.created_at,
                )
                for t in transactions
            ],
        ),
    )
