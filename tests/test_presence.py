import asyncio
from datetime import datetime, timedelta, timezone

import pytest

from friendping.core.errors import PaletteExhaustedError
from friendping.models.friend_signal import FriendSignal
from friendping.services.friends import create_friend, friend_exists, update_timestamp
from friendping.services.presence import (
    STALE_AFTER_SECONDS,
    PresenceSweeper,
    find_stale_friends,
    is_online,
    is_stale,
    sweep_stale_friends,
)
from friendping.services.signals import enqueue_signal

import sqlalchemy as sa

NOW = datetime(2026, 6, 1, 12, 0, tzinfo=timezone.utc)
PALETTE = ["#ff0000", "#00ff00"]


def test_default_threshold_is_150_seconds():
    assert STALE_AFTER_SECONDS == 150


def test_is_stale_is_strictly_older_than_threshold():
    assert not is_stale(NOW - timedelta(seconds=150), now=NOW)
    assert is_stale(NOW - timedelta(seconds=151), now=NOW)
    assert is_online(NOW, now=NOW)
    assert not is_online(NOW - timedelta(minutes=5), now=NOW, max_age_seconds=60)


def test_is_stale_accepts_naive_timestamps_as_utc():
    assert is_stale(datetime(2026, 6, 1, 11, 0), now=NOW)


@pytest.mark.anyio
async def test_sweep_purges_only_stale_friends(db_session, locks):
    await create_friend(db_session, "OLD", "G", locks=locks)
    await create_friend(db_session, "FRESH", "G", locks=locks)
    await update_timestamp(db_session, "OLD", NOW - timedelta(seconds=300))
    await update_timestamp(db_session, "FRESH", NOW - timedelta(seconds=10))
    await enqueue_signal(db_session, "OLD", "red")

    purged = await sweep_stale_friends(db_session, locks=locks, now=NOW)

    assert [p.friend_id for p in purged] == ["OLD"]
    assert not await friend_exists(db_session, "OLD")
    assert await friend_exists(db_session, "FRESH")

    leftover = await db_session.execute(sa.select(FriendSignal).where(FriendSignal.friend_id == "OLD"))
    assert leftover.scalars().all() == []


@pytest.mark.anyio
async def test_purged_color_is_reusable_in_group(db_session, locks):
    await create_friend(db_session, "A", "G", locks=locks, palette=PALETTE)
    b = await create_friend(db_session, "B", "G", locks=locks, palette=PALETTE)
    b_color = b.color
    await update_timestamp(db_session, "A", NOW - timedelta(hours=1))
    await update_timestamp(db_session, "B", NOW)

    with pytest.raises(PaletteExhaustedError):
        await create_friend(db_session, "C", "G", locks=locks, palette=PALETTE)

    purged = await sweep_stale_friends(db_session, locks=locks, now=NOW)
    assert [p.friend_id for p in purged] == ["A"]

    c = await create_friend(db_session, "C", "G", locks=locks, palette=PALETTE)
    assert c.color == purged[0].color
    assert c.color != b_color


@pytest.mark.anyio
async def test_dry_run_only_reports(db_session, locks):
    await create_friend(db_session, "OLD", "G", locks=locks)
    await update_timestamp(db_session, "OLD", NOW - timedelta(hours=1))

    found = await sweep_stale_friends(db_session, locks=locks, now=NOW, dry_run=True)

    assert [p.friend_id for p in found] == ["OLD"]
    assert await friend_exists(db_session, "OLD")


@pytest.mark.anyio
async def test_find_stale_friends_uses_custom_threshold(db_session, locks):
    await create_friend(db_session, "A", "G1", locks=locks)
    await create_friend(db_session, "B", "G2", locks=locks)
    await update_timestamp(db_session, "A", NOW - timedelta(seconds=40))
    await update_timestamp(db_session, "B", NOW - timedelta(seconds=20))

    stale = await find_stale_friends(db_session, max_age_seconds=30, now=NOW)
    assert [(s.friend_id, s.group_id) for s in stale] == [("A", "G1")]


@pytest.mark.anyio
async def test_sweeper_sweep_once_uses_its_own_session(database, db_session, locks):
    await create_friend(db_session, "OLD", "G", locks=locks)
    await update_timestamp(db_session, "OLD", datetime.now(timezone.utc) - timedelta(hours=1))

    sweeper = PresenceSweeper(database, locks, interval_seconds=3600)
    purged = await sweeper.sweep_once()

    assert [p.friend_id for p in purged] == ["OLD"]
    assert not sweeper.running


@pytest.mark.anyio
async def test_sweeper_start_and_stop(database, locks):
    sweeper = PresenceSweeper(database, locks, interval_seconds=3600)
    sweeper.start()
    assert sweeper.running
    await sweeper.stop()
    assert not sweeper.running


@pytest.mark.anyio
async def test_sweeper_keeps_running_after_unexpected_error(database, locks, monkeypatch):
    sweeper = PresenceSweeper(database, locks, interval_seconds=0.01)
    calls = []

    async def _flaky_sweep():
        calls.append(1)
        if len(calls) == 1:
            raise OSError("connection refused")
        return []

    monkeypatch.setattr(sweeper, "sweep_once", _flaky_sweep)

    sweeper.start()
    try:
        for _ in range(100):
            if len(calls) >= 2:
                break
            await asyncio.sleep(0.01)
        assert sweeper.running
        assert len(calls) >= 2
    finally:
        await sweeper.stop()
