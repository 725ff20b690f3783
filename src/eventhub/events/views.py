"""Read models: ORM rows plus the counters and viewer flags derived on read."""

from __future__ import annotations

from dataclasses import dataclass, field

from eventhub.db.models import Event, Post, User
from eventhub.events.comment_tree import CommentNode


@dataclass
class EventView:
    event: Event
    participant_count: int = 0
    post_count: int = 0
    like_count: int = 0
    is_liked_by_user: bool = False


@dataclass
class PostView:
    post: Post
    upvote_count: int = 0
    comment_count: int = 0
    is_upvoted_by_user: bool = False
    comments: list[CommentNode] = field(default_factory=list)


@dataclass
class EventDetailView:
    view: EventView
    participants: list[User] = field(default_factory=list)
    posts: list[PostView] = field(default_factory=list)
    is_participant: bool = False
