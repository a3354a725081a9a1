from __future__ import annotations

from datetime import datetime
from typing import Any

import sqlalchemy as sa
from sqlalchemy.orm import Mapped, mapped_column, relationship

from friendping.db.base_class import Base
from friendping.db.types import UTCDateTime


class FriendSignal(Base):
    """One entry of a friend's inbound signal queue; ``id`` is arrival order."""

    __tablename__ = "friend_signals"

    id: Mapped[int] = mapped_column(sa.Integer, primary_key=True, autoincrement=True)

    friend_id: Mapped[str] = mapped_column(
        sa.String(64),
        sa.ForeignKey("friends.friend_id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    payload: Mapped[Any] = mapped_column(sa.JSON, nullable=False)

    created_at: Mapped[datetime] = mapped_column(UTCDateTime(), server_default=sa.func.now(), nullable=False)

    friend = relationship("Friend", back_populates="queue")
