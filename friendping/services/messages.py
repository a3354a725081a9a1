from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

import sqlalchemy as sa
from sqlalchemy.ext.asyncio import AsyncSession

from friendping.core.errors import store_errors
from friendping.models.message import Message

# Stamped by the log itself; never taken from the caller.
_RESERVED_KEYS = {"timestamp", "from_friend_id", "to_friend_id", "id"}


def _now_utc() -> datetime:
    return datetime.now(timezone.utc)


async def append_message(
    db: AsyncSession,
    from_friend_id: str,
    to_friend_id: str,
    payload: dict[str, Any] | None = None,
) -> Message:
    body = {k: v for k, v in (payload or {}).items() if k not in _RESERVED_KEYS}
    message = Message(
        from_friend_id=from_friend_id,
        to_friend_id=to_friend_id,
        timestamp=_now_utc(),
        payload=body,
    )
    with store_errors("Failed to save message"):
        db.add(message)
        await db.commit()
    return message


async def query_messages(
    db: AsyncSession,
    *,
    from_friend_id: str | None = None,
    to_friend_id: str | None = None,
    limit: int | None = None,
) -> list[Message]:
    """Messages matching the given ids, newest first.

    Filtering on both ids walks ix_messages_conversation in index order.
    """
    q = sa.select(Message)
    if from_friend_id is not None:
        q = q.where(Message.from_friend_id == from_friend_id)
    if to_friend_id is not None:
        q = q.where(Message.to_friend_id == to_friend_id)
    q = q.order_by(Message.timestamp.desc(), Message.id.desc())
    if limit is not None:
        q = q.limit(limit)

    with store_errors("Failed to retrieve messages"):
        return list((await db.execute(q)).scalars().all())


async def list_messages(db: AsyncSession) -> list[Message]:
    with store_errors("Failed to retrieve messages"):
        return list((await db.execute(sa.select(Message))).scalars().all())
