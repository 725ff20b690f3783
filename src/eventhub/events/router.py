"""Event API endpoints: events, participation, likes, posts, comments and upvotes."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from eventhub.auth.dependencies import get_current_user, get_optional_user, require_roles
from eventhub.database import get_session
from eventhub.db.models import Comment, Role, User
from eventhub.events import content_service, service
from eventhub.events.comment_tree import CommentNode
from eventhub.events.exceptions import NotFoundError, PermissionDeniedError
from eventhub.events.schemas import (
    CommentResponse,
    CreateCommentRequest,
    CreateEventRequest,
    CreatePostRequest,
    Envelope,
    EventDetailResponse,
    EventListResponse,
    EventResponse,
    ExploreEventSummary,
    ExplorePostResponse,
    ExploreResponse,
    LikeResponse,
    ParticipantEventSummary,
    ParticipantResponse,
    ParticipantsResponse,
    PostResponse,
    SetWinnerRequest,
    UpvoteResponse,
    UserSummary,
)
from eventhub.events.views import EventView, PostView

router = APIRouter(prefix="/api/event", tags=["Events"])

_any_role = require_roles(Role.USER, Role.ADMIN)


# ── Helpers ──


def _http_error(e: ValueError) -> HTTPException:
    """Map service errors onto status codes."""
    if isinstance(e, NotFoundError):
        return HTTPException(status_code=404, detail=str(e))
    if isinstance(e, PermissionDeniedError):
        return HTTPException(status_code=403, detail=str(e))
    return HTTPException(status_code=400, detail=str(e))


def _user_summary(user: User) -> UserSummary:
    return UserSummary(id=user.id, name=user.name, avatar=user.avatar)


def _event_response(view: EventView) -> EventResponse:
    e = view.event
    return EventResponse(
        id=e.id,
        title=e.title,
        description=e.description,
        prize=e.prize,
        thumbnail=e.thumbnail,
        verified=e.verified,
        is_active=e.is_active,
        start_date=e.start_date,
        end_date=e.end_date,
        created_at=e.created_at,
        creator=_user_summary(e.creator),
        winner=_user_summary(e.winner) if e.winner else None,
        participant_count=view.participant_count,
        post_count=view.post_count,
        like_count=view.like_count,
        is_liked_by_user=view.is_liked_by_user,
    )


def _comment_response(node: CommentNode) -> CommentResponse:
    c = node.comment
    return CommentResponse(
        id=c.id,
        content=c.content,
        post_id=c.post_id,
        parent_id=c.parent_id,
        author=_user_summary(c.author),
        created_at=c.created_at,
        replies=[_comment_response(r) for r in node.replies],
    )


def _post_fields(view: PostView) -> dict:
    p = view.post
    return {
        "id": p.id,
        "content": p.content,
        "image": p.image,
        "event_id": p.event_id,
        "author": _user_summary(p.author),
        "created_at": p.created_at,
        "upvote_count": view.upvote_count,
        "comment_count": view.comment_count,
        "is_upvoted_by_user": view.is_upvoted_by_user,
        "comments": [_comment_response(n) for n in view.comments],
    }


def _single_comment(comment: Comment) -> CommentResponse:
    return _comment_response(CommentNode(comment))


def _viewer_id(user: User | None) -> str | None:
    return user.id if user else None


# ── Events ──


@router.post("", response_model=Envelope[EventResponse], status_code=201)
async def create_event_endpoint(
    body: CreateEventRequest,
    user: User = Depends(_any_role),
    db: AsyncSession = Depends(get_session),
):
    """Host a new event."""
    try:
        event = await service.create_event(
            db,
            user,
            title=body.title,
            start_date=body.start_date,
            end_date=body.end_date,
            description=body.description,
            prize=body.prize,
            thumbnail=body.thumbnail,
        )
        await db.commit()
    except ValueError as e:
        raise _http_error(e) from e

    return Envelope(message="Event created successfully", data=_event_response(EventView(event=event)))


@router.get("", response_model=Envelope[EventListResponse])
async def list_events_endpoint(
    page: int = Query(1, ge=1),
    per_page: int = Query(20, ge=1, le=100),
    user: User | None = Depends(get_optional_user),
    db: AsyncSession = Depends(get_session),
):
    """List events, newest first (paginated, public)."""
    views, total = await service.list_events(db, _viewer_id(user), page, per_page)
    return Envelope(
        message="Events retrieved successfully",
        data=EventListResponse(
            events=[_event_response(v) for v in views], total=total, page=page, per_page=per_page,
        ),
    )


@router.get("/explore", response_model=Envelope[ExploreResponse])
async def explore_endpoint(
    page: int = Query(1, ge=1),
    per_page: int = Query(20, ge=1, le=100),
    user: User | None = Depends(get_optional_user),
    db: AsyncSession = Depends(get_session),
):
    """Feed of posts from active events, newest first."""
    views, total = await content_service.explore_posts(db, _viewer_id(user), page, per_page)
    posts = []
    for v in views:
        e = v.post.event
        posts.append(ExplorePostResponse(
            **_post_fields(v),
            event=ExploreEventSummary(
                id=e.id,
                title=e.title,
                thumbnail=e.thumbnail,
                verified=e.verified,
                is_active=e.is_active,
                creator=_user_summary(e.creator),
            ),
        ))
    return Envelope(
        message="Posts retrieved successfully",
        data=ExploreResponse(posts=posts, total=total, page=page, per_page=per_page),
    )


@router.get("/{event_id}", response_model=Envelope[EventDetailResponse])
async def get_event_endpoint(
    event_id: str,
    user: User | None = Depends(get_optional_user),
    db: AsyncSession = Depends(get_session),
):
    """Event page: counters, participants, posts and comment threads."""
    try:
        detail = await content_service.get_event_page(db, event_id, _viewer_id(user))
    except ValueError as e:
        raise _http_error(e) from e

    data = EventDetailResponse(
        **_event_response(detail.view).model_dump(),
        participants=[_user_summary(u) for u in detail.participants],
        posts=[PostResponse(**_post_fields(p)) for p in detail.posts],
        is_participant=detail.is_participant,
    )
    return Envelope(message="Event retrieved successfully", data=data)


@router.get("/{event_id}/participants", response_model=Envelope[ParticipantsResponse])
async def participants_endpoint(
    event_id: str,
    _user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    """Participants in join order."""
    event = await service.get_event(db, event_id)
    if event is None:
        raise HTTPException(status_code=404, detail="Event not found")

    rows = await service.get_participants(db, event_id)
    participants = [
        ParticipantResponse(
            id=u.id, name=u.name, email=u.email, avatar=u.avatar, joined_at=link.joined_at,
        )
        for link, u in rows
    ]
    return Envelope(
        message="Participants retrieved successfully",
        data=ParticipantsResponse(
            event=ParticipantEventSummary(
                id=event.id, title=event.title, total_participants=len(participants),
            ),
            participants=participants,
        ),
    )


@router.patch("/{event_id}/join", response_model=Envelope[dict])
async def join_event_endpoint(
    event_id: str,
    user: User = Depends(_any_role),
    db: AsyncSession = Depends(get_session),
):
    """Join an event as a participant."""
    try:
        link = await service.join_event(db, event_id, user.id)
        await db.commit()
    except ValueError as e:
        raise _http_error(e) from e

    return Envelope(
        message="Joined event successfully",
        data={"event_id": link.event_id, "user_id": link.user_id, "joined_at": link.joined_at},
    )


@router.post("/{event_id}/like", response_model=Envelope[LikeResponse])
async def like_event_endpoint(
    event_id: str,
    user: User = Depends(_any_role),
    db: AsyncSession = Depends(get_session),
):
    try:
        count = await service.like_event(db, event_id, user.id)
        await db.commit()
    except ValueError as e:
        raise _http_error(e) from e

    return Envelope(
        message="Event liked successfully",
        data=LikeResponse(event_id=event_id, like_count=count, is_liked_by_user=True),
    )


@router.post("/{event_id}/unlike", response_model=Envelope[LikeResponse])
async def unlike_event_endpoint(
    event_id: str,
    user: User = Depends(_any_role),
    db: AsyncSession = Depends(get_session),
):
    try:
        count = await service.unlike_event(db, event_id, user.id)
        await db.commit()
    except ValueError as e:
        raise _http_error(e) from e

    return Envelope(
        message="Event unliked successfully",
        data=LikeResponse(event_id=event_id, like_count=count, is_liked_by_user=False),
    )


async def _event_envelope(db: AsyncSession, event_id: str, message: str) -> Envelope[EventResponse]:
    event = await service.require_event(db, event_id)
    [view] = await service.build_event_views(db, [event])
    return Envelope(message=message, data=_event_response(view))


@router.patch("/{event_id}/verify", response_model=Envelope[EventResponse])
async def verify_event_endpoint(
    event_id: str,
    user: User = Depends(_any_role),
    db: AsyncSession = Depends(get_session),
):
    """Mark the event verified (creator only)."""
    try:
        await service.verify_event(db, event_id, user.id)
        await db.commit()
    except ValueError as e:
        raise _http_error(e) from e
    return await _event_envelope(db, event_id, "Event verified successfully")


@router.patch("/{event_id}/unverify", response_model=Envelope[EventResponse])
async def unverify_event_endpoint(
    event_id: str,
    _admin: User = Depends(require_roles(Role.ADMIN)),
    db: AsyncSession = Depends(get_session),
):
    """Clear the verified flag (admin only)."""
    try:
        await service.unverify_event(db, event_id)
        await db.commit()
    except ValueError as e:
        raise _http_error(e) from e
    return await _event_envelope(db, event_id, "Event unverified successfully")


@router.patch("/{event_id}/winner", response_model=Envelope[EventResponse])
async def set_winner_endpoint(
    event_id: str,
    body: SetWinnerRequest,
    user: User = Depends(_any_role),
    db: AsyncSession = Depends(get_session),
):
    """Name the winner among the participants (creator only)."""
    try:
        await service.set_winner(db, event_id, user.id, body.winner_id)
        await db.commit()
    except ValueError as e:
        raise _http_error(e) from e
    return await _event_envelope(db, event_id, "Winner selected successfully")


@router.patch("/{event_id}/close", response_model=Envelope[EventResponse])
async def close_event_endpoint(
    event_id: str,
    user: User = Depends(_any_role),
    db: AsyncSession = Depends(get_session),
):
    """Close the event (creator or admin)."""
    try:
        await service.close_event(db, event_id, user)
        await db.commit()
    except ValueError as e:
        raise _http_error(e) from e
    return await _event_envelope(db, event_id, "Event closed successfully")


# ── Posts & Comments ──


@router.post("/{event_id}/post", response_model=Envelope[PostResponse], status_code=201)
async def create_post_endpoint(
    event_id: str,
    body: CreatePostRequest,
    user: User = Depends(_any_role),
    db: AsyncSession = Depends(get_session),
):
    """Publish a post in an event (participants only)."""
    try:
        post = await content_service.create_post(db, event_id, user, body.content, body.image)
        await db.commit()
    except ValueError as e:
        raise _http_error(e) from e

    return Envelope(message="Post created successfully", data=PostResponse(**_post_fields(PostView(post=post))))


@router.post("/post/{post_id}/comment", response_model=Envelope[CommentResponse], status_code=201)
async def create_comment_endpoint(
    post_id: str,
    body: CreateCommentRequest,
    user: User = Depends(_any_role),
    db: AsyncSession = Depends(get_session),
):
    """Comment on a post (participants and the event creator)."""
    try:
        comment = await content_service.create_comment(db, post_id, user, body.content)
        await db.commit()
    except ValueError as e:
        raise _http_error(e) from e

    return Envelope(message="Comment created successfully", data=_single_comment(comment))


@router.post("/comment/{comment_id}/reply", response_model=Envelope[CommentResponse], status_code=201)
async def create_reply_endpoint(
    comment_id: str,
    body: CreateCommentRequest,
    user: User = Depends(_any_role),
    db: AsyncSession = Depends(get_session),
):
    """Reply to a comment."""
    try:
        reply = await content_service.create_reply(db, comment_id, user, body.content)
        await db.commit()
    except ValueError as e:
        raise _http_error(e) from e

    return Envelope(message="Reply created successfully", data=_single_comment(reply))


@router.post("/post/{post_id}/upvote", response_model=Envelope[UpvoteResponse])
async def upvote_endpoint(
    post_id: str,
    user: User = Depends(_any_role),
    db: AsyncSession = Depends(get_session),
):
    try:
        count = await content_service.upvote_post(db, post_id, user.id)
        await db.commit()
    except ValueError as e:
        raise _http_error(e) from e

    return Envelope(
        message="Post upvoted successfully",
        data=UpvoteResponse(post_id=post_id, upvote_count=count, is_upvoted_by_user=True),
    )


@router.post("/post/{post_id}/remove-upvote", response_model=Envelope[UpvoteResponse])
async def remove_upvote_endpoint(
    post_id: str,
    user: User = Depends(_any_role),
    db: AsyncSession = Depends(get_session),
):
    try:
        count = await content_service.remove_upvote(db, post_id, user.id)
        await db.commit()
    except ValueError as e:
        raise _http_error(e) from e

    return Envelope(
        message="Upvote removed successfully",
        data=UpvoteResponse(post_id=post_id, upvote_count=count, is_upvoted_by_user=False),
    )
