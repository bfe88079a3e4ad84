"""Initial schema: users, catalog items, follower links.

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-10-19
"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op

from libwatch.adapters.sqlalchemy.mappings import RecordListType, UTCDateTime
from libwatch.domain.model import FollowedItem, OwnedItem, PendingItem, SyncedItem

revision = "0001_initial_schema"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "user_account",
        sa.Column("external_id", sa.String(length=64), nullable=False),
        sa.Column("display_name", sa.String(length=255), nullable=False),
        sa.Column("avatar_url", sa.String(length=1024), nullable=True),
        sa.Column("notifications_enabled", sa.Boolean(), nullable=False),
        sa.Column("push_token", sa.String(length=512), nullable=True),
        sa.Column("auto_follow_new_items", sa.Boolean(), nullable=False),
        sa.Column("last_checked_at", UTCDateTime(), nullable=True),
        sa.Column("created_at", UTCDateTime(), nullable=True),
        sa.Column("owned_items", RecordListType(OwnedItem), nullable=False),
        sa.Column("synced_items", RecordListType(SyncedItem), nullable=False),
        sa.Column("followed_items", RecordListType(FollowedItem), nullable=False),
        sa.Column("pending_items", RecordListType(PendingItem), nullable=False),
        sa.PrimaryKeyConstraint("external_id", name=op.f("pk_user_account")),
    )
    op.create_table(
        "catalog_item",
        sa.Column("item_id", sa.String(length=64), nullable=False),
        sa.Column("name", sa.String(length=512), nullable=False),
        sa.Column("logo_url", sa.String(length=1024), nullable=True),
        sa.Column("last_news_at", UTCDateTime(), nullable=True),
        sa.Column("last_update_at", UTCDateTime(), nullable=True),
        sa.Column("created_at", UTCDateTime(), nullable=True),
        sa.PrimaryKeyConstraint("item_id", name=op.f("pk_catalog_item")),
    )
    op.create_table(
        "catalog_follower",
        sa.Column("item_id", sa.String(length=64), nullable=False),
        sa.Column("user_id", sa.String(length=64), nullable=False),
        sa.ForeignKeyConstraint(
            ["item_id"],
            ["catalog_item.item_id"],
            name=op.f("fk_catalog_follower_item_id_catalog_item"),
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("item_id", "user_id", name=op.f("pk_catalog_follower")),
    )
    op.create_index("ix_catalog_follower_user_id", "catalog_follower", ["user_id"])


def downgrade() -> None:
    op.drop_index("ix_catalog_follower_user_id", table_name="catalog_follower")
    op.drop_table("catalog_follower")
    op.drop_table("catalog_item")
    op.drop_table("user_account")
