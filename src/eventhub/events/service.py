"""Event business logic.

Rules:
- Anyone authenticated may host an event; the host cannot join their own event
- Joining requires an active event whose end date has not passed
- One like per user per event (unique key on event_likes)
- Only the host verifies their event; unverifying is an admin action (enforced by the router)
- The host picks the winner among participants and can close the event
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import InstrumentedAttribute, selectinload

from eventhub.db.models import Event, EventLike, EventParticipant, Post, Role, User
from eventhub.events.exceptions import NotFoundError, PermissionDeniedError
from eventhub.events.views import EventDetailView, EventView

logger = logging.getLogger(__name__)


def as_utc(value: datetime) -> datetime:
    """SQLite hands back naive datetimes; treat them as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


async def count_by(db: AsyncSession, column: InstrumentedAttribute, ids: list[str]) -> dict[str, int]:
    """Count rows grouped by `column`, restricted to `ids`."""
    if not ids:
        return {}
    result = await db.execute(
        select(column, func.count()).where(column.in_(ids)).group_by(column)
    )
    return {key: count for key, count in result.all()}


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------


async def get_event(db: AsyncSession, event_id: str) -> Event | None:
    """Get an event by ID with creator and winner loaded."""
    result = await db.execute(
        select(Event)
        .where(Event.id == event_id)
        .options(selectinload(Event.creator), selectinload(Event.winner))
    )
    return result.scalar_one_or_none()


async def require_event(db: AsyncSession, event_id: str) -> Event:
    event = await get_event(db, event_id)
    if event is None:
        raise NotFoundError("Event not found")
    return event


async def is_participant(db: AsyncSession, event_id: str, user_id: str) -> bool:
    result = await db.execute(
        select(EventParticipant).where(
            EventParticipant.event_id == event_id,
            EventParticipant.user_id == user_id,
        )
    )
    return result.scalar_one_or_none() is not None


async def build_event_views(
    db: AsyncSession,
    events: list[Event],
    viewer_id: str | None = None,
) -> list[EventView]:
    """Attach participant/post/like counts and the viewer's like flag to each event."""
    ids = [e.id for e in events]
    participants = await count_by(db, EventParticipant.event_id, ids)
    posts = await count_by(db, Post.event_id, ids)
    likes = await count_by(db, EventLike.event_id, ids)

    liked: set[str] = set()
    if viewer_id and ids:
        result = await db.execute(
            select(EventLike.event_id).where(
                EventLike.user_id == viewer_id,
                EventLike.event_id.in_(ids),
            )
        )
        liked = set(result.scalars().all())

    return [
        EventView(
            event=e,
            participant_count=participants.get(e.id, 0),
            post_count=posts.get(e.id, 0),
            like_count=likes.get(e.id, 0),
            is_liked_by_user=e.id in liked,
        )
        for e in events
    ]


async def list_events(
    db: AsyncSession,
    viewer_id: str | None = None,
    page: int = 1,
    per_page: int = 20,
) -> tuple[list[EventView], int]:
    """List events, newest first (paginated)."""
    offset = (page - 1) * per_page

    total_result = await db.execute(select(func.count()).select_from(Event))
    total = total_result.scalar_one()

    result = await db.execute(
        select(Event)
        .options(selectinload(Event.creator), selectinload(Event.winner))
        .order_by(Event.created_at.desc(), Event.id)
        .offset(offset)
        .limit(per_page)
    )
    events = list(result.scalars().all())
    return await build_event_views(db, events, viewer_id), total


async def get_event_detail(
    db: AsyncSession,
    event_id: str,
    viewer_id: str | None = None,
) -> EventDetailView:
    """Event with counters and participants; posts are attached by the content service."""
    event = await require_event(db, event_id)
    [view] = await build_event_views(db, [event], viewer_id)
    participants = [user for _, user in await get_participants(db, event_id)]
    return EventDetailView(
        view=view,
        participants=participants,
        is_participant=viewer_id is not None and any(u.id == viewer_id for u in participants),
    )


async def get_participants(db: AsyncSession, event_id: str) -> list[tuple[EventParticipant, User]]:
    """Participants of an event with user info, in join order."""
    result = await db.execute(
        select(EventParticipant, User)
        .join(User, EventParticipant.user_id == User.id)
        .where(EventParticipant.event_id == event_id)
        .order_by(EventParticipant.joined_at.asc())
    )
    return [(row.EventParticipant, row.User) for row in result]


# ---------------------------------------------------------------------------
# Mutations
# ---------------------------------------------------------------------------


async def create_event(
    db: AsyncSession,
    creator: User,
    title: str,
    start_date: datetime,
    end_date: datetime,
    description: str | None = None,
    prize: str | None = None,
    thumbnail: str | None = None,
) -> Event:
    """Create a new event hosted by `creator`."""
    if as_utc(end_date) < as_utc(start_date):
        raise ValueError("End date must be after start date")

    event = Event(
        title=title,
        description=description,
        prize=prize,
        thumbnail=thumbnail,
        start_date=start_date,
        end_date=end_date,
        creator=creator,
        winner=None,
    )
    db.add(event)
    await db.flush()
    logger.info("Event created: %s (id=%s, creator=%s)", title, event.id, creator.id)
    return event


async def join_event(db: AsyncSession, event_id: str, user_id: str) -> EventParticipant:
    """Add the user to the event's participants."""
    event = await require_event(db, event_id)

    if event.creator_id == user_id:
        raise ValueError("You cannot join your own event")

    if await is_participant(db, event_id, user_id):
        raise ValueError("You are already a participant of this event")

    if not event.is_active:
        raise ValueError("This event is not active")

    if datetime.now(timezone.utc) > as_utc(event.end_date):
        raise ValueError("This event has already ended")

    link = EventParticipant(event_id=event_id, user_id=user_id)
    db.add(link)
    try:
        await db.flush()
    except IntegrityError as e:
        await db.rollback()
        raise ValueError("You are already a participant of this event") from e

    logger.info("User %s joined event %s", user_id, event_id)
    return link


async def like_event(db: AsyncSession, event_id: str, user_id: str) -> int:
    """Like an event. Returns the new like count."""
    await require_event(db, event_id)

    existing = await db.execute(
        select(EventLike).where(EventLike.event_id == event_id, EventLike.user_id == user_id)
    )
    if existing.scalar_one_or_none() is not None:
        raise ValueError("You have already liked this event")

    db.add(EventLike(event_id=event_id, user_id=user_id))
    try:
        await db.flush()
    except IntegrityError as e:
        await db.rollback()
        raise ValueError("You have already liked this event") from e

    return (await count_by(db, EventLike.event_id, [event_id])).get(event_id, 0)


async def unlike_event(db: AsyncSession, event_id: str, user_id: str) -> int:
    """Remove the user's like. Returns the new like count."""
    await require_event(db, event_id)

    existing = await db.execute(
        select(EventLike).where(EventLike.event_id == event_id, EventLike.user_id == user_id)
    )
    like = existing.scalar_one_or_none()
    if like is None:
        raise ValueError("You have not liked this event")

    await db.delete(like)
    await db.flush()
    return (await count_by(db, EventLike.event_id, [event_id])).get(event_id, 0)


async def verify_event(db: AsyncSession, event_id: str, user_id: str) -> Event:
    """Mark an event verified. Only its creator may do this."""
    event = await require_event(db, event_id)
    if event.creator_id != user_id:
        raise PermissionDeniedError("Only the event creator can verify this event")

    event.verified = True
    await db.flush()
    logger.info("Event %s verified by %s", event_id, user_id)
    return event


async def unverify_event(db: AsyncSession, event_id: str) -> Event:
    """Clear the verified flag (callers are gated to admins)."""
    event = await require_event(db, event_id)
    event.verified = False
    await db.flush()
    logger.info("Event %s unverified", event_id)
    return event


async def set_winner(db: AsyncSession, event_id: str, user_id: str, winner_id: str) -> Event:
    """Creator names the winner; the winner must be a participant."""
    event = await require_event(db, event_id)
    if event.creator_id != user_id:
        raise PermissionDeniedError("Only the event creator can choose the winner")

    participants = {u.id: u for _, u in await get_participants(db, event_id)}
    winner = participants.get(winner_id)
    if winner is None:
        raise ValueError("The winner must be a participant of this event")

    event.winner = winner
    await db.flush()
    logger.info("Event %s winner set to %s", event_id, winner_id)
    return event


async def close_event(db: AsyncSession, event_id: str, user: User) -> Event:
    """Mark an event inactive. Allowed for its creator and for admins."""
    event = await require_event(db, event_id)
    if event.creator_id != user.id and user.role != Role.ADMIN.value:
        raise PermissionDeniedError("Only the event creator can close this event")

    event.is_active = False
    await db.flush()
    logger.info("Event %s closed by %s", event_id, user.id)
    return event
