"""Off-chain wallet ledger: one wallet per user plus its transaction log."""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog
from sqlalchemy import select

from eventhub.db.models import Transaction, Wallet

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

logger = structlog.get_logger()


async def get_wallet(db: AsyncSession, user_id: str) -> Wallet | None:
    result = await db.execute(select(Wallet).where(Wallet.user_id == user_id))
    return result.scalar_one_or_none()


async def get_or_create_wallet(db: AsyncSession, user_id: str) -> Wallet:
    """Get the user's wallet, opening an empty one if it doesn't exist."""
    wallet = await get_wallet(db, user_id)
    if wallet is None:
        wallet = Wallet(user_id=user_id)
        db.add(wallet)
        await db.flush()
        logger.info("wallet_created", user_id=user_id, wallet_id=wallet.id)
    return wallet


async def get_recent_transactions(db: AsyncSession, wallet_id: str, limit: int = 20) -> list[Transaction]:
    """Most recent transactions first."""
    result = await db.execute(
        select(Transaction)
        .where(Transaction.wallet_id == wallet_id)
        .order_by(Transaction.created_at.desc(), Transaction.id)
        .limit(limit)
    )
    return list(result.scalars().all())


async def get_wallet_overview(
    db: AsyncSession,
    user_id: str,
    limit: int = 20,
) -> tuple[Wallet, list[Transaction]]:
    """Wallet balances with the latest `limit` transactions."""
    wallet = await get_or_create_wallet(db, user_id)
    return wallet, await get_recent_transactions(db, wallet.id, limit)
