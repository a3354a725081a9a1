from __future__ import annotations

import logging
from typing import Any

import sqlalchemy as sa
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from friendping.core.errors import NotFoundError, store_errors
from friendping.models.friend_signal import FriendSignal
from friendping.services.friends import friend_exists

logger = logging.getLogger(__name__)


async def _queue_length(db: AsyncSession, friend_id: str) -> int:
    q = sa.select(sa.func.count(FriendSignal.id)).where(FriendSignal.friend_id == friend_id)
    return int((await db.execute(q)).scalar_one())


async def _trim_queue(db: AsyncSession, friend_id: str, overflow: int) -> None:
    oldest = (
        sa.select(FriendSignal.id)
        .where(FriendSignal.friend_id == friend_id)
        .order_by(FriendSignal.id.asc())
        .limit(overflow)
    )
    ids = list((await db.execute(oldest)).scalars().all())
    await db.execute(sa.delete(FriendSignal).where(FriendSignal.id.in_(ids)))


async def enqueue_signal(
    db: AsyncSession,
    friend_id: str,
    signal: Any,
    *,
    max_length: int | None = None,
) -> int:
    """Append ``signal`` to the friend's queue and return the queue length.

    Each entry is its own row, so concurrent producers never overwrite each
    other and arrival order is the row id. With ``max_length`` set the queue
    behaves as a ring buffer and the oldest entries are dropped.
    """
    with store_errors("Failed to add to queue"):
        if not await friend_exists(db, friend_id):
            raise NotFoundError()

        db.add(FriendSignal(friend_id=friend_id, payload=signal))
        try:
            await db.flush()
        except IntegrityError:
            # friend purged between the check and the insert
            await db.rollback()
            raise NotFoundError()

        length = await _queue_length(db, friend_id)
        if max_length is not None and length > max_length:
            overflow = length - max_length
            await _trim_queue(db, friend_id, overflow)
            logger.warning("queue full friend_id=%s dropped=%s", friend_id, overflow)
            length = max_length

        await db.commit()

    logger.info("signal queued friend_id=%s queue_length=%s", friend_id, length)
    return length


async def get_queue(db: AsyncSession, friend_id: str) -> list[Any]:
    with store_errors("Failed to retrieve queue"):
        if not await friend_exists(db, friend_id):
            raise NotFoundError()
        q = (
            sa.select(FriendSignal.payload)
            .where(FriendSignal.friend_id == friend_id)
            .order_by(FriendSignal.id.asc())
        )
        return list((await db.execute(q)).scalars().all())


async def drain_queue(db: AsyncSession, friend_id: str) -> list[Any]:
    """Hand the pending signals to the consumer and remove exactly those."""
    with store_errors("Failed to drain queue"):
        if not await friend_exists(db, friend_id):
            raise NotFoundError()
        q = (
            sa.select(FriendSignal.id, FriendSignal.payload)
            .where(FriendSignal.friend_id == friend_id)
            .order_by(FriendSignal.id.asc())
        )
        rows = (await db.execute(q)).all()
        if rows:
            await db.execute(sa.delete(FriendSignal).where(FriendSignal.id.in_([r.id for r in rows])))
        await db.commit()
    return [r.payload for r in rows]
