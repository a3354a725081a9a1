from __future__ import annotations

from datetime import datetime
from typing import Any

import sqlalchemy as sa
from sqlalchemy.orm import Mapped, mapped_column

from friendping.db.base_class import Base
from friendping.db.types import UTCDateTime


class Message(Base):
    __tablename__ = "messages"

    id: Mapped[int] = mapped_column(sa.Integer, primary_key=True, autoincrement=True)

    # Not foreign keys: messages outlive purged friends.
    from_friend_id: Mapped[str] = mapped_column(sa.String(64), nullable=False)
    to_friend_id: Mapped[str] = mapped_column(sa.String(64), nullable=False)

    timestamp: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False)

    payload: Mapped[dict[str, Any]] = mapped_column(sa.JSON, nullable=False, default=dict)


# Conversation history is the common read: (from, to) newest first.
sa.Index(
    "ix_messages_conversation",
    Message.from_friend_id,
    Message.to_friend_id,
    Message.timestamp.desc(),
)
