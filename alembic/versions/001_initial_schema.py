"""Initial schema: users, events, participation, posts, comments, reactions, wallets.

Revision ID: 001_initial_schema
Revises:
Create Date: 2026-10-17
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

revision: str = "001_initial_schema"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def _id() -> sa.Column:
    return sa.Column("id", sa.String(36), primary_key=True)


def _created_at() -> sa.Column:
    return sa.Column("created_at", sa.DateTime(timezone=True), nullable=False)


def _updated_at() -> sa.Column:
    return sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False)


def upgrade() -> None:
    # --- Users ---
    op.create_table(
        "users",
        _id(),
        sa.Column("name", sa.String(100)),
        sa.Column("email", sa.String(320), nullable=False, unique=True),
        sa.Column("password_hash", sa.String(256)),
        sa.Column("avatar", sa.Text),
        sa.Column("role", sa.String(16), nullable=False, server_default="USER"),
        sa.Column("wallet_address", sa.String(42)),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.true()),
        _created_at(),
        _updated_at(),
    )

    # --- Events ---
    op.create_table(
        "events",
        _id(),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("description", sa.Text),
        sa.Column("prize", sa.String(200)),
        sa.Column("thumbnail", sa.Text),
        sa.Column("verified", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("start_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("end_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column("creator_id", sa.String(36), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("winner_id", sa.String(36), sa.ForeignKey("users.id", ondelete="SET NULL")),
        _created_at(),
        _updated_at(),
    )
    op.create_index("ix_events_creator_id", "events", ["creator_id"])

    op.create_table(
        "event_participants",
        sa.Column("event_id", sa.String(36), sa.ForeignKey("events.id", ondelete="CASCADE"), primary_key=True),
        sa.Column("user_id", sa.String(36), sa.ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
        sa.Column("joined_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_event_participants_user_id", "event_participants", ["user_id"])

    op.create_table(
        "event_likes",
        _id(),
        sa.Column("user_id", sa.String(36), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("event_id", sa.String(36), sa.ForeignKey("events.id", ondelete="CASCADE"), nullable=False),
        _created_at(),
        sa.UniqueConstraint("user_id", "event_id", name="uq_event_likes_user_event"),
    )
    op.create_index("ix_event_likes_event_id", "event_likes", ["event_id"])

    # --- Posts & Comments ---
    op.create_table(
        "posts",
        _id(),
        sa.Column("content", sa.Text, nullable=False),
        sa.Column("image", sa.Text),
        sa.Column("event_id", sa.String(36), sa.ForeignKey("events.id", ondelete="CASCADE"), nullable=False),
        sa.Column("author_id", sa.String(36), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        _created_at(),
        _updated_at(),
    )
    op.create_index("ix_posts_event_id", "posts", ["event_id"])
    op.create_index("ix_posts_author_id", "posts", ["author_id"])

    op.create_table(
        "comments",
        _id(),
        sa.Column("content", sa.Text, nullable=False),
        sa.Column("post_id", sa.String(36), sa.ForeignKey("posts.id", ondelete="CASCADE"), nullable=False),
        sa.Column("author_id", sa.String(36), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("parent_id", sa.String(36), sa.ForeignKey("comments.id", ondelete="CASCADE")),
        _created_at(),
    )
    op.create_index("idx_comments_post_created", "comments", ["post_id", "created_at"])
    op.create_index("ix_comments_author_id", "comments", ["author_id"])
    op.create_index("ix_comments_parent_id", "comments", ["parent_id"])

    op.create_table(
        "upvotes",
        _id(),
        sa.Column("user_id", sa.String(36), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("post_id", sa.String(36), sa.ForeignKey("posts.id", ondelete="CASCADE"), nullable=False),
        _created_at(),
        sa.UniqueConstraint("user_id", "post_id", name="uq_upvotes_user_post"),
    )
    op.create_index("ix_upvotes_post_id", "upvotes", ["post_id"])

    # --- Wallet ledger ---
    op.create_table(
        "wallets",
        _id(),
        sa.Column("user_id", sa.String(36), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, unique=True),
        sa.Column("balance", sa.Numeric(36, 18), nullable=False, server_default="0"),
        sa.Column("locked_balance", sa.Numeric(36, 18), nullable=False, server_default="0"),
        _created_at(),
        _updated_at(),
    )

    op.create_table(
        "transactions",
        _id(),
        sa.Column("wallet_id", sa.String(36), sa.ForeignKey("wallets.id", ondelete="CASCADE"), nullable=False),
        sa.Column("type", sa.String(32), nullable=False),
        sa.Column("status", sa.String(16), nullable=False, server_default="PENDING"),
        sa.Column("amount", sa.Numeric(36, 18), nullable=False),
        sa.Column("description", sa.String(256)),
        sa.Column("tx_hash", sa.String(66)),
        sa.Column("event_id", sa.String(36), sa.ForeignKey("events.id", ondelete="SET NULL")),
        _created_at(),
    )
    op.create_index("idx_transactions_wallet_created", "transactions", ["wallet_id", "created_at"])


def downgrade() -> None:
    op.drop_table("transactions")
    op.drop_table("wallets")
    op.drop_table("upvotes")
    op.drop_table("comments")
    op.drop_table("posts")
    op.drop_table("event_likes")
    op.drop_table("event_participants")
    op.drop_table("events")
    op.drop_table("users")
