"""User profile business logic."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

import structlog
from sqlalchemy import func, select
from sqlalchemy.orm import selectinload
from web3 import Web3

from eventhub.db.models import Comment, Event, EventLike, EventParticipant, Post, Upvote, User

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

logger = structlog.get_logger()


@dataclass
class ProfileStats:
    total_events_hosted: int = 0
    total_events_joined: int = 0
    total_events_won: int = 0
    total_posts: int = 0
    total_comments: int = 0
    total_upvotes_given: int = 0
    total_event_likes: int = 0
    total_upvotes_received: int = 0


@dataclass
class Profile:
    """Everything the profile page shows for one user."""

    user: User
    created_events: list[Event] = field(default_factory=list)
    joined_events: list[tuple[Event, EventParticipant]] = field(default_factory=list)
    won_events: list[Event] = field(default_factory=list)
    posts: list[Post] = field(default_factory=list)
    comments: list[Comment] = field(default_factory=list)
    upvotes: list[Upvote] = field(default_factory=list)
    likes: list[EventLike] = field(default_factory=list)
    stats: ProfileStats = field(default_factory=ProfileStats)


async def _scalars(db: AsyncSession, stmt) -> list:
    result = await db.execute(stmt)
    return list(result.scalars().all())


async def get_profile(db: AsyncSession, user: User) -> Profile:
    """Load the user's events, content and reactions, newest first."""
    created = await _scalars(
        db,
        select(Event).where(Event.creator_id == user.id)
        .options(selectinload(Event.creator), selectinload(Event.winner))
        .order_by(Event.created_at.desc()),
    )
    won = await _scalars(
        db,
        select(Event).where(Event.winner_id == user.id)
        .options(selectinload(Event.creator))
        .order_by(Event.created_at.desc()),
    )

    joined_result = await db.execute(
        select(Event, EventParticipant)
        .join(EventParticipant, EventParticipant.event_id == Event.id)
        .where(EventParticipant.user_id == user.id)
        .options(selectinload(Event.creator))
        .order_by(EventParticipant.joined_at.desc())
    )
    joined = [(row.Event, row.EventParticipant) for row in joined_result]

    posts = await _scalars(
        db,
        select(Post).where(Post.author_id == user.id)
        .options(selectinload(Post.event))
        .order_by(Post.created_at.desc()),
    )
    comments = await _scalars(
        db,
        select(Comment).where(Comment.author_id == user.id)
        .options(
            selectinload(Comment.post).selectinload(Post.event),
            selectinload(Comment.parent).selectinload(Comment.author),
        )
        .order_by(Comment.created_at.desc()),
    )
    upvotes = await _scalars(
        db,
        select(Upvote).where(Upvote.user_id == user.id)
        .options(selectinload(Upvote.post).selectinload(Post.event))
        .order_by(Upvote.created_at.desc()),
    )
    likes = await _scalars(
        db,
        select(EventLike).where(EventLike.user_id == user.id)
        .options(selectinload(EventLike.event))
        .order_by(EventLike.created_at.desc()),
    )

    received = await db.execute(
        select(func.count())
        .select_from(Upvote)
        .join(Post, Upvote.post_id == Post.id)
        .where(Post.author_id == user.id)
    )

    stats = ProfileStats(
        total_events_hosted=len(created),
        total_events_joined=len(joined),
        total_events_won=len(won),
        total_posts=len(posts),
        total_comments=len(comments),
        total_upvotes_given=len(upvotes),
        total_event_likes=len(likes),
        total_upvotes_received=received.scalar_one(),
    )
    return Profile(
        user=user,
        created_events=created,
        joined_events=joined,
        won_events=won,
        posts=posts,
        comments=comments,
        upvotes=upvotes,
        likes=likes,
        stats=stats,
    )


def normalize_wallet_address(address: str) -> str:
    """
    Validate an Ethereum address and return its checksummed form.

    Raises:
        ValueError: If the address is malformed.
    """
    address = address.strip()
    if not Web3.is_address(address):
        msg = "Invalid Ethereum wallet address"
        raise ValueError(msg)
    return Web3.to_checksum_address(address)


async def update_profile(
    db: AsyncSession,
    user: User,
    name: str | None = None,
    avatar: str | None = None,
    wallet_address: str | None = None,
) -> User:
    """
    Update profile fields. Omitted fields are left unchanged.

    Raises:
        ValueError: If the wallet address is invalid.
    """
    if wallet_address is not None:
        user.wallet_address = normalize_wallet_address(wallet_address)
    if name is not None:
        user.name = name
    if avatar is not None:
        user.avatar = avatar

    await db.flush()
    logger.info("profile_updated", user_id=user.id)
    return user
