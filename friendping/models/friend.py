from __future__ import annotations

from datetime import datetime
from typing import Any

import sqlalchemy as sa
from sqlalchemy.orm import Mapped, mapped_column, relationship

from friendping.db.base_class import Base
from friendping.db.types import UTCDateTime

DEFAULT_TIMEOUT_START = "00:00"
DEFAULT_TIMEOUT_END = "23:59"


class Friend(Base):
    __tablename__ = "friends"

    # ─────────────────────────────────────────────
    # Identity
    # ─────────────────────────────────────────────
    friend_id: Mapped[str] = mapped_column(sa.String(64), primary_key=True)

    group_id: Mapped[str] = mapped_column(sa.String(64), nullable=False, index=True)

    color: Mapped[str] = mapped_column(sa.String(32), nullable=False)

    # ─────────────────────────────────────────────
    # Reachability window ("HH:MM", time of day)
    # ─────────────────────────────────────────────
    timeout_start: Mapped[str | None] = mapped_column(
        sa.String(5), nullable=True, server_default=DEFAULT_TIMEOUT_START
    )
    timeout_end: Mapped[str | None] = mapped_column(
        sa.String(5), nullable=True, server_default=DEFAULT_TIMEOUT_END
    )

    # ─────────────────────────────────────────────
    # Liveness / display state
    # ─────────────────────────────────────────────
    last_ping: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False, index=True)
    tile_ids: Mapped[Any | None] = mapped_column(sa.JSON, nullable=True)

    created_at: Mapped[datetime] = mapped_column(UTCDateTime(), server_default=sa.func.now(), nullable=False)

    queue = relationship(
        "FriendSignal",
        back_populates="friend",
        cascade="all, delete-orphan",
        order_by="FriendSignal.id",
        lazy="selectin",
    )

    __table_args__ = (
        sa.UniqueConstraint("group_id", "color", name="uq_friends_group_color"),
    )
