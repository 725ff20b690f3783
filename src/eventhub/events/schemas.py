"""Pydantic schemas for event, post and comment endpoints."""

from __future__ import annotations

from datetime import datetime
from typing import Generic, TypeVar

from pydantic import BaseModel, Field, model_validator

from eventhub.events.service import as_utc

T = TypeVar("T")


class Envelope(BaseModel, Generic[T]):
    """Success wrapper shared by the event and user APIs."""

    status: str = "success"
    message: str
    data: T | None = None


# --- Requests ---


class CreateEventRequest(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: str | None = Field(None, max_length=10_000)
    prize: str | None = Field(None, max_length=200)
    thumbnail: str | None = Field(None, max_length=2048)
    start_date: datetime
    end_date: datetime

    @model_validator(mode="after")
    def check_dates(self) -> CreateEventRequest:
        if as_utc(self.end_date) < as_utc(self.start_date):
            raise ValueError("End date must be after start date")
        return self


class CreatePostRequest(BaseModel):
    content: str = Field(..., min_length=1, max_length=10_000)
    image: str | None = Field(None, max_length=2048)


class CreateCommentRequest(BaseModel):
    content: str = Field(..., min_length=1, max_length=5_000)


class SetWinnerRequest(BaseModel):
    winner_id: str = Field(..., min_length=1, max_length=36)


# --- Responses ---


class UserSummary(BaseModel):
    id: str
    name: str | None = None
    avatar: str | None = None


class EventResponse(BaseModel):
    id: str
    title: str
    description: str | None = None
    prize: str | None = None
    thumbnail: str | None = None
    verified: bool
    is_active: bool
    start_date: datetime
    end_date: datetime
    created_at: datetime
    creator: UserSummary
    winner: UserSummary | None = None
    participant_count: int = 0
    post_count: int = 0
    like_count: int = 0
    is_liked_by_user: bool = False


class EventListResponse(BaseModel):
    events: list[EventResponse]
    total: int
    page: int
    per_page: int


class CommentResponse(BaseModel):
    id: str
    content: str
    post_id: str
    parent_id: str | None = None
    author: UserSummary
    created_at: datetime
    replies: list[CommentResponse] = []


class PostResponse(BaseModel):
    id: str
    content: str
    image: str | None = None
    event_id: str
    author: UserSummary
    created_at: datetime
    upvote_count: int = 0
    comment_count: int = 0
    is_upvoted_by_user: bool = False
    comments: list[CommentResponse] = []


class EventDetailResponse(EventResponse):
    participants: list[UserSummary] = []
    posts: list[PostResponse] = []
    is_participant: bool = False


class ExploreEventSummary(BaseModel):
    id: str
    title: str
    thumbnail: str | None = None
    verified: bool
    is_active: bool
    creator: UserSummary


class ExplorePostResponse(PostResponse):
    event: ExploreEventSummary


class ExploreResponse(BaseModel):
    posts: list[ExplorePostResponse]
    total: int
    page: int
    per_page: int


class ParticipantResponse(BaseModel):
    id: str
    name: str | None = None
    email: str
    avatar: str | None = None
    joined_at: datetime


class ParticipantEventSummary(BaseModel):
    id: str
    title: str
    total_participants: int


class ParticipantsResponse(BaseModel):
    event: ParticipantEventSummary
    participants: list[ParticipantResponse]


class LikeResponse(BaseModel):
    event_id: str
    like_count: int
    is_liked_by_user: bool


class UpvoteResponse(BaseModel):
    post_id: str
    upvote_count: int
    is_upvoted_by_user: bool
