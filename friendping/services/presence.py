"""Liveness expiry for friends.

A friend whose ``last_ping`` is older than the threshold is stale and gets
purged together with its signal queue. Purging frees the friend's color, so
purges take the same per-group lock as friend creation.
"""
from __future__ import annotations

import asyncio
import logging
from collections import defaultdict
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

import sqlalchemy as sa
from sqlalchemy.ext.asyncio import AsyncSession

from friendping.core.errors import StoreUnavailableError, store_errors
from friendping.core.group_locks import GroupLocks
from friendping.db.session import Database
from friendping.models.friend import Friend
from friendping.models.friend_signal import FriendSignal

logger = logging.getLogger(__name__)

STALE_AFTER_SECONDS = 150


def _now_utc() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class PurgedFriend:
    friend_id: str
    group_id: str
    color: str
    last_ping: datetime


def is_stale(
    last_ping: datetime,
    *,
    now: datetime | None = None,
    max_age_seconds: float = STALE_AFTER_SECONDS,
) -> bool:
    now = now or _now_utc()
    if last_ping.tzinfo is None:
        last_ping = last_ping.replace(tzinfo=timezone.utc)
    return now - last_ping > timedelta(seconds=max_age_seconds)


def is_online(
    last_ping: datetime,
    *,
    now: datetime | None = None,
    max_age_seconds: float = STALE_AFTER_SECONDS,
) -> bool:
    return not is_stale(last_ping, now=now, max_age_seconds=max_age_seconds)


async def find_stale_friends(
    db: AsyncSession,
    *,
    max_age_seconds: float = STALE_AFTER_SECONDS,
    now: datetime | None = None,
) -> list[PurgedFriend]:
    cutoff = (now or _now_utc()) - timedelta(seconds=max_age_seconds)
    q = (
        sa.select(Friend.friend_id, Friend.group_id, Friend.color, Friend.last_ping)
        .where(Friend.last_ping < cutoff)
        .order_by(Friend.group_id.asc(), Friend.friend_id.asc())
    )
    with store_errors("Failed to scan for stale friends"):
        rows = (await db.execute(q)).all()
    return [
        PurgedFriend(friend_id=r.friend_id, group_id=r.group_id, color=r.color, last_ping=r.last_ping)
        for r in rows
    ]


async def sweep_stale_friends(
    db: AsyncSession,
    *,
    locks: GroupLocks,
    max_age_seconds: float = STALE_AFTER_SECONDS,
    now: datetime | None = None,
    dry_run: bool = False,
) -> list[PurgedFriend]:
    now = now or _now_utc()
    cutoff = now - timedelta(seconds=max_age_seconds)

    candidates = await find_stale_friends(db, max_age_seconds=max_age_seconds, now=now)
    # Release the read snapshot before waiting on group locks.
    await db.rollback()
    if dry_run or not candidates:
        return candidates

    by_group: dict[str, list[str]] = defaultdict(list)
    for c in candidates:
        by_group[c.group_id].append(c.friend_id)

    purged: list[PurgedFriend] = []
    for group_id, friend_ids in by_group.items():
        async with locks.hold(group_id):
            with store_errors("Failed to purge stale friends"):
                # A ping may have landed since the scan.
                q = sa.select(Friend.friend_id, Friend.group_id, Friend.color, Friend.last_ping).where(
                    Friend.friend_id.in_(friend_ids),
                    Friend.last_ping < cutoff,
                )
                rows = (await db.execute(q)).all()
                stale_ids = [r.friend_id for r in rows]
                if stale_ids:
                    await db.execute(
                        sa.delete(FriendSignal)
                        .where(FriendSignal.friend_id.in_(stale_ids))
                        .execution_options(synchronize_session=False)
                    )
                    await db.execute(
                        sa.delete(Friend)
                        .where(Friend.friend_id.in_(stale_ids), Friend.last_ping < cutoff)
                        .execution_options(synchronize_session=False)
                    )
                await db.commit()

        for r in rows:
            logger.info(
                "purged stale friend friend_id=%s group_id=%s color=%s last_ping=%s",
                r.friend_id,
                r.group_id,
                r.color,
                r.last_ping.isoformat(),
            )
            purged.append(
                PurgedFriend(friend_id=r.friend_id, group_id=r.group_id, color=r.color, last_ping=r.last_ping)
            )

    return purged


class PresenceSweeper:
    """Runs sweep_stale_friends every ``interval_seconds`` in the background."""

    def __init__(
        self,
        database: Database,
        locks: GroupLocks,
        *,
        interval_seconds: float,
        max_age_seconds: float = STALE_AFTER_SECONDS,
    ):
        self.database = database
        self.locks = locks
        self.interval_seconds = interval_seconds
        self.max_age_seconds = max_age_seconds
        self._task: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self._loop(), name="presence-sweep")
        logger.info(
            "presence sweep started interval=%ss max_age=%ss",
            self.interval_seconds,
            self.max_age_seconds,
        )

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        await asyncio.gather(self._task, return_exceptions=True)
        self._task = None

    async def sweep_once(self) -> list[PurgedFriend]:
        async with self.database.session() as db:
            return await sweep_stale_friends(db, locks=self.locks, max_age_seconds=self.max_age_seconds)

    async def _loop(self) -> None:
        while True:
            await asyncio.sleep(self.interval_seconds)
            try:
                await self.sweep_once()
            except StoreUnavailableError:
                # already logged with the storage error; try again next tick
                logger.warning("presence sweep failed, retrying in %ss", self.interval_seconds)
            except Exception:
                # e.g. OSError from a refused connection at pool checkout
                logger.exception("presence sweep failed, retrying in %ss", self.interval_seconds)
