from __future__ import annotations

import logging
import random
from collections.abc import Sequence
from datetime import datetime, timezone, tzinfo
from typing import Any

import sqlalchemy as sa
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from friendping.core.config import settings
from friendping.core.errors import (
    AlreadyExistsError,
    NotFoundError,
    StoreUnavailableError,
    store_errors,
)
from friendping.core.group_locks import GroupLocks
from friendping.models.friend import DEFAULT_TIMEOUT_END, DEFAULT_TIMEOUT_START, Friend
from friendping.services.colors import allocate_color
from friendping.services.reachability import TimeoutWindow, is_reachable, time_of_day

logger = logging.getLogger(__name__)


def _now_utc() -> datetime:
    return datetime.now(timezone.utc)


async def friend_exists(db: AsyncSession, friend_id: str) -> bool:
    q = sa.select(Friend.friend_id).where(Friend.friend_id == friend_id)
    return (await db.execute(q)).scalar_one_or_none() is not None


async def _group_colors(db: AsyncSession, group_id: str) -> set[str]:
    q = sa.select(Friend.color).where(Friend.group_id == group_id)
    return set((await db.execute(q)).scalars().all())


async def create_friend(
    db: AsyncSession,
    friend_id: str,
    group_id: str,
    *,
    locks: GroupLocks,
    palette: Sequence[str] | None = None,
    rng: random.Random | None = None,
    retries: int | None = None,
) -> Friend:
    """Register a friend and give it a color nobody else in the group has.

    The group lock serializes allocation inside this process; the
    UNIQUE(group_id, color) constraint catches writers in other processes,
    in which case the allocation is retried against a fresh read.
    """
    palette = palette or settings.color_palette_list()
    attempts = retries or settings.color_allocation_retries

    async with locks.hold(group_id):
        for attempt in range(1, attempts + 1):
            with store_errors("Failed to create new friend"):
                # Fast path only; the primary key is what really guarantees uniqueness.
                if await friend_exists(db, friend_id):
                    raise AlreadyExistsError()

                reserved = await _group_colors(db, group_id)
                color = allocate_color(reserved, palette, rng)

                friend = Friend(
                    friend_id=friend_id,
                    group_id=group_id,
                    color=color,
                    timeout_start=DEFAULT_TIMEOUT_START,
                    timeout_end=DEFAULT_TIMEOUT_END,
                    last_ping=_now_utc(),
                    tile_ids=None,
                    queue=[],
                )
                db.add(friend)
                try:
                    await db.flush()
                except IntegrityError:
                    await db.rollback()
                    if await friend_exists(db, friend_id):
                        raise AlreadyExistsError()
                    logger.warning(
                        "color collision group_id=%s color=%s attempt=%s",
                        group_id,
                        color,
                        attempt,
                    )
                    continue

                await db.refresh(friend)
                await db.commit()
                logger.info("created friend friend_id=%s group_id=%s color=%s", friend_id, group_id, color)
                return friend

    raise StoreUnavailableError("Failed to create new friend")


async def get_friend(db: AsyncSession, friend_id: str) -> Friend:
    with store_errors("Failed to retrieve friend"):
        q = (
            sa.select(Friend)
            .where(Friend.friend_id == friend_id)
            .execution_options(populate_existing=True)
        )
        friend = (await db.execute(q)).scalar_one_or_none()
    if friend is None:
        raise NotFoundError()
    return friend


async def list_friends(db: AsyncSession) -> list[Friend]:
    with store_errors("Failed to retrieve friends"):
        q = sa.select(Friend).order_by(Friend.friend_id.asc())
        return list((await db.execute(q)).scalars().all())


async def list_friends_in_group(db: AsyncSession, group_id: str) -> list[Friend]:
    with store_errors("Failed to retrieve friend group"):
        q = (
            sa.select(Friend)
            .where(Friend.group_id == group_id)
            .order_by(Friend.friend_id.asc())
        )
        return list((await db.execute(q)).scalars().all())


async def _update_friend(db: AsyncSession, friend_id: str, action: str, **values: Any) -> None:
    with store_errors(action):
        result = await db.execute(
            sa.update(Friend)
            .where(Friend.friend_id == friend_id)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            await db.rollback()
            raise NotFoundError()
        await db.commit()


async def ping_friend(db: AsyncSession, friend_id: str, tile_ids: Any) -> Friend:
    await _update_friend(
        db,
        friend_id,
        "Failed to update friend",
        tile_ids=tile_ids,
        last_ping=_now_utc(),
    )
    return await get_friend(db, friend_id)


async def update_timestamp(db: AsyncSession, friend_id: str, timestamp: datetime) -> None:
    if timestamp.tzinfo is None:
        timestamp = timestamp.replace(tzinfo=timezone.utc)
    await _update_friend(
        db,
        friend_id,
        "Failed to update timestamp of friend",
        last_ping=timestamp,
    )


async def set_timeout(db: AsyncSession, friend_id: str, start: str, end: str) -> TimeoutWindow:
    # Existing friends only: no upsert of color-less records.
    window = TimeoutWindow.parse(start, end)
    start_s, end_s = window.as_strings()
    await _update_friend(
        db,
        friend_id,
        "Failed to update timeout of friend",
        timeout_start=start_s,
        timeout_end=end_s,
    )
    return window


async def get_timeout(db: AsyncSession, friend_id: str) -> TimeoutWindow | None:
    with store_errors("Failed to retrieve timeout of friend"):
        q = sa.select(Friend.timeout_start, Friend.timeout_end).where(Friend.friend_id == friend_id)
        row = (await db.execute(q)).one_or_none()
    if row is None:
        raise NotFoundError()
    if not row.timeout_start or not row.timeout_end:
        return None
    return TimeoutWindow.parse(row.timeout_start, row.timeout_end)


def friend_window(friend: Friend) -> TimeoutWindow | None:
    if not friend.timeout_start or not friend.timeout_end:
        return None
    return TimeoutWindow.parse(friend.timeout_start, friend.timeout_end)


def friend_is_reachable(
    friend: Friend,
    *,
    at: datetime | None = None,
    policy: str | None = None,
    tz: tzinfo | None = None,
) -> bool:
    window = friend_window(friend)
    if window is None:
        return True
    moment = time_of_day(at, tz or settings.reachability_zone())
    return is_reachable(window, moment, policy or settings.timeout_window_policy)


async def is_friend_reachable(
    db: AsyncSession,
    friend_id: str,
    *,
    at: datetime | None = None,
    policy: str | None = None,
    tz: tzinfo | None = None,
) -> bool:
    friend = await get_friend(db, friend_id)
    return friend_is_reachable(friend, at=at, policy=policy, tz=tz)
