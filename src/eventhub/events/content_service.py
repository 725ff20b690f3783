"""Posts, comments, replies and upvotes inside events.

Rules:
- Posting requires participation. The creator cannot join their own event, so the
  creator cannot post either; comments and replies are open to participants and the creator
- Posts, comments and replies need the owning event to be active
- A reply hangs off its parent comment and always lands on the parent's post
- One upvote per user per post (unique key on upvotes)
"""

from __future__ import annotations

import logging

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from eventhub.db.models import Comment, Event, Post, Upvote, User
from eventhub.events.comment_tree import group_comment_trees
from eventhub.events.exceptions import NotFoundError, PermissionDeniedError
from eventhub.events.service import count_by, get_event_detail, is_participant, require_event
from eventhub.events.views import EventDetailView, PostView

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------


async def get_post(db: AsyncSession, post_id: str) -> Post | None:
    """Get a post with its event and author loaded."""
    result = await db.execute(
        select(Post)
        .where(Post.id == post_id)
        .options(selectinload(Post.event), selectinload(Post.author))
    )
    return result.scalar_one_or_none()


async def get_comment(db: AsyncSession, comment_id: str) -> Comment | None:
    """Get a comment with its post and the post's event loaded."""
    result = await db.execute(
        select(Comment)
        .where(Comment.id == comment_id)
        .options(selectinload(Comment.post).selectinload(Post.event))
    )
    return result.scalar_one_or_none()


async def build_post_views(
    db: AsyncSession,
    posts: list[Post],
    viewer_id: str | None = None,
    with_comments: bool = True,
) -> list[PostView]:
    """Attach counts, the viewer's upvote flag and the comment trees to posts."""
    ids = [p.id for p in posts]
    upvotes = await count_by(db, Upvote.post_id, ids)
    comments = await count_by(db, Comment.post_id, ids)

    upvoted: set[str] = set()
    if viewer_id and ids:
        result = await db.execute(
            select(Upvote.post_id).where(Upvote.user_id == viewer_id, Upvote.post_id.in_(ids))
        )
        upvoted = set(result.scalars().all())

    trees = {}
    if with_comments and ids:
        result = await db.execute(
            select(Comment)
            .where(Comment.post_id.in_(ids))
            .options(selectinload(Comment.author))
        )
        trees = group_comment_trees(result.scalars().all())

    return [
        PostView(
            post=p,
            upvote_count=upvotes.get(p.id, 0),
            comment_count=comments.get(p.id, 0),
            is_upvoted_by_user=p.id in upvoted,
            comments=trees.get(p.id, []),
        )
        for p in posts
    ]


async def get_event_page(
    db: AsyncSession,
    event_id: str,
    viewer_id: str | None = None,
) -> EventDetailView:
    """Everything the event page shows: event, participants, posts and threads."""
    detail = await get_event_detail(db, event_id, viewer_id)
    result = await db.execute(
        select(Post)
        .where(Post.event_id == event_id)
        .options(selectinload(Post.author))
        .order_by(Post.created_at.desc(), Post.id)
    )
    detail.posts = await build_post_views(db, list(result.scalars().all()), viewer_id)
    return detail


async def explore_posts(
    db: AsyncSession,
    viewer_id: str | None = None,
    page: int = 1,
    per_page: int = 20,
) -> tuple[list[PostView], int]:
    """Posts from active events, newest first (paginated)."""
    offset = (page - 1) * per_page
    active = Post.event.has(Event.is_active.is_(True))

    total_result = await db.execute(select(func.count()).select_from(Post).where(active))
    total = total_result.scalar_one()

    result = await db.execute(
        select(Post)
        .where(active)
        .options(
            selectinload(Post.author),
            selectinload(Post.event).selectinload(Event.creator),
        )
        .order_by(Post.created_at.desc(), Post.id)
        .offset(offset)
        .limit(per_page)
    )
    posts = list(result.scalars().all())
    return await build_post_views(db, posts, viewer_id), total


# ---------------------------------------------------------------------------
# Mutations
# ---------------------------------------------------------------------------


async def _ensure_can_comment(db: AsyncSession, event: Event, user_id: str) -> None:
    if not event.is_active:
        raise ValueError("This event is not active")
    if event.creator_id != user_id and not await is_participant(db, event.id, user_id):
        raise PermissionDeniedError("You must be a participant or the creator of this event to comment")


async def create_post(
    db: AsyncSession,
    event_id: str,
    author: User,
    content: str,
    image: str | None = None,
) -> Post:
    """Publish a post in an event."""
    event = await require_event(db, event_id)

    if not event.is_active:
        raise ValueError("This event is not active")

    if not await is_participant(db, event_id, author.id):
        if event.creator_id == author.id:
            raise PermissionDeniedError("Event creators cannot post in their own event unless they are participants")
        raise PermissionDeniedError("You must join this event before posting")

    post = Post(event_id=event_id, author=author, content=content, image=image)
    db.add(post)
    await db.flush()
    logger.info("Post %s created in event %s by %s", post.id, event_id, author.id)
    return post


async def create_comment(db: AsyncSession, post_id: str, author: User, content: str) -> Comment:
    """Comment on a post."""
    post = await get_post(db, post_id)
    if post is None:
        raise NotFoundError("Post not found")

    await _ensure_can_comment(db, post.event, author.id)

    comment = Comment(post_id=post.id, author=author, content=content, parent_id=None)
    db.add(comment)
    await db.flush()
    logger.info("Comment %s created on post %s by %s", comment.id, post_id, author.id)
    return comment


async def create_reply(db: AsyncSession, comment_id: str, author: User, content: str) -> Comment:
    """Reply to a comment; the reply joins the parent's post."""
    parent = await get_comment(db, comment_id)
    if parent is None:
        raise NotFoundError("Comment not found")

    await _ensure_can_comment(db, parent.post.event, author.id)

    reply = Comment(post_id=parent.post_id, author=author, content=content, parent_id=parent.id)
    db.add(reply)
    await db.flush()
    logger.info("Reply %s created under comment %s by %s", reply.id, comment_id, author.id)
    return reply


async def upvote_post(db: AsyncSession, post_id: str, user_id: str) -> int:
    """Upvote a post. Returns the new upvote count."""
    if await get_post(db, post_id) is None:
        raise NotFoundError("Post not found")

    existing = await db.execute(
        select(Upvote).where(Upvote.post_id == post_id, Upvote.user_id == user_id)
    )
    if existing.scalar_one_or_none() is not None:
        raise ValueError("You have already upvoted this post")

    db.add(Upvote(post_id=post_id, user_id=user_id))
    try:
        await db.flush()
    except IntegrityError as e:
        await db.rollback()
        raise ValueError("You have already upvoted this post") from e

    return (await count_by(db, Upvote.post_id, [post_id])).get(post_id, 0)


async def remove_upvote(db: AsyncSession, post_id: str, user_id: str) -> int:
    """Withdraw the user's upvote. Returns the new upvote count."""
    if await get_post(db, post_id) is None:
        raise NotFoundError("Post not found")

    existing = await db.execute(
        select(Upvote).where(Upvote.post_id == post_id, Upvote.user_id == user_id)
    )
    upvote = existing.scalar_one_or_none()
    if upvote is None:
        raise ValueError("You have not upvoted this post")

    await db.delete(upvote)
    await db.flush()
    return (await count_by(db, Upvote.post_id, [post_id])).get(post_id, 0)
