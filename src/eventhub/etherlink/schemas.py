"""Request/response schemas for the /etherlink endpoints."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class DistributeFundsRequest(BaseModel):
    recipient_address: str = Field(..., min_length=1, max_length=64)
    amount_in_ether: str = Field(..., min_length=1, max_length=80)
    # Accepted for client compatibility; the signing wallet is always the sender.
    sender_address: str | None = Field(None, max_length=64)


class LockFundsRequest(BaseModel):
    amount_in_ether: str = Field(..., min_length=1, max_length=80)


class EtherlinkResponse(BaseModel):
    success: bool = True
    message: str
    data: Any = None
    error: str | None = None
