"""Pydantic schemas for user profile and wallet endpoints."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field


class ProfileUpdateRequest(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=100)
    avatar: str | None = Field(None, max_length=2048)
    wallet_address: str | None = Field(None, min_length=1, max_length=64)


class UserResponse(BaseModel):
    id: str
    name: str | None = None
    email: str
    avatar: str | None = None
    role: str
    wallet_address: str | None = None
    created_at: datetime
    updated_at: datetime


class ProfileEventResponse(BaseModel):
    id: str
    title: str
    thumbnail: str | None = None
    verified: bool
    is_active: bool
    start_date: datetime
    end_date: datetime
    creator_id: str
    creator_name: str | None = None
    winner_id: str | None = None


class JoinedEventResponse(ProfileEventResponse):
    joined_at: datetime


class EventRef(BaseModel):
    id: str
    title: str


class ProfilePostResponse(BaseModel):
    id: str
    content: str
    image: str | None = None
    created_at: datetime
    event: EventRef


class ProfileCommentResponse(BaseModel):
    id: str
    content: str
    created_at: datetime
    post_id: str
    post_content: str
    event: EventRef
    parent_id: str | None = None
    parent_author_name: str | None = None


class ProfileUpvoteResponse(BaseModel):
    post_id: str
    post_content: str
    event: EventRef
    created_at: datetime


class ProfileLikeResponse(BaseModel):
    event: EventRef
    created_at: datetime


class ProfileStatsResponse(BaseModel):
    total_events_hosted: int
    total_events_joined: int
    total_events_won: int
    total_posts: int
    total_comments: int
    total_upvotes_given: int
    total_event_likes: int
    total_upvotes_received: int


class ProfileResponse(BaseModel):
    user: UserResponse
    created_events: list[ProfileEventResponse] = []
    joined_events: list[JoinedEventResponse] = []
    won_events: list[ProfileEventResponse] = []
    posts: list[ProfilePostResponse] = []
    comments: list[ProfileCommentResponse] = []
    upvotes: list[ProfileUpvoteResponse] = []
    event_likes: list[ProfileLikeResponse] = []
    stats: ProfileStatsResponse


class TransactionResponse(BaseModel):
    id: str
    type: str
    status: str
    amount: Decimal
    description: str | None = None
    tx_hash: str | None = None
    event_id: str | None = None
    created_at: datetime


class WalletResponse(BaseModel):
    id: str
    balance: Decimal
    locked_balance: Decimal
    wallet_address: str | None = None
    transactions: list[TransactionResponse] = []
