"""create friendping tables

Revision ID: 7c1e4a9b2d30
Revises:
Create Date: 2026-10-19 10:20:11.402913

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '7c1e4a9b2d30'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade():
    op.create_table(
        "friends",
        sa.Column("friend_id", sa.String(64), primary_key=True),
        sa.Column("group_id", sa.String(64), nullable=False),
        sa.Column("color", sa.String(32), nullable=False),
        sa.Column("timeout_start", sa.String(5), nullable=True, server_default="00:00"),
        sa.Column("timeout_end", sa.String(5), nullable=True, server_default="23:59"),
        sa.Column("last_ping", sa.DateTime(timezone=True), nullable=False),
        sa.Column("tile_ids", sa.JSON, nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.UniqueConstraint("group_id", "color", name="uq_friends_group_color"),
    )
    op.create_index("ix_friends_group_id", "friends", ["group_id"])
    op.create_index("ix_friends_last_ping", "friends", ["last_ping"])

    op.create_table(
        "friend_signals",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column(
            "friend_id",
            sa.String(64),
            sa.ForeignKey("friends.friend_id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("payload", sa.JSON, nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
    )
    op.create_index("ix_friend_signals_friend_id", "friend_signals", ["friend_id"])

    op.create_table(
        "messages",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("from_friend_id", sa.String(64), nullable=False),
        sa.Column("to_friend_id", sa.String(64), nullable=False),
        sa.Column("timestamp", sa.DateTime(timezone=True), nullable=False),
        sa.Column("payload", sa.JSON, nullable=False),
    )
    op.create_index(
        "ix_messages_conversation",
        "messages",
        ["from_friend_id", "to_friend_id", sa.text("timestamp DESC")],
    )

    op.create_table(
        "generated_codes",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("friend_id", sa.String(64), nullable=False),
        sa.Column("code", sa.Text, nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
    )
    op.create_index("ix_generated_codes_friend_id", "generated_codes", ["friend_id"])


def downgrade():
    op.drop_index("ix_generated_codes_friend_id", table_name="generated_codes")
    op.drop_table("generated_codes")
    op.drop_index("ix_messages_conversation", table_name="messages")
    op.drop_table("messages")
    op.drop_index("ix_friend_signals_friend_id", table_name="friend_signals")
    op.drop_table("friend_signals")
    op.drop_index("ix_friends_last_ping", table_name="friends")
    op.drop_index("ix_friends_group_id", table_name="friends")
    op.drop_table("friends")
