import pytest
import sqlalchemy as sa

from friendping.core.errors import NotFoundError
from friendping.models.friend_signal import FriendSignal
from friendping.services import signals as signals_service
from friendping.services.friends import create_friend, get_friend
from friendping.services.signals import drain_queue, enqueue_signal, get_queue

pytestmark = pytest.mark.anyio


async def test_enqueue_keeps_arrival_order(db_session, locks):
    await create_friend(db_session, "A", "G", locks=locks)

    assert await enqueue_signal(db_session, "A", ["red"]) == 1
    assert await enqueue_signal(db_session, "A", ["blue"]) == 2

    assert await get_queue(db_session, "A") == [["red"], ["blue"]]


async def test_queue_is_not_deduplicated(db_session, locks):
    await create_friend(db_session, "A", "G", locks=locks)
    for signal in ("#ef4444", "#ef4444", ["#3b82f6", "#ef4444"], "#ef4444"):
        await enqueue_signal(db_session, "A", signal)

    assert await get_queue(db_session, "A") == [
        "#ef4444",
        "#ef4444",
        ["#3b82f6", "#ef4444"],
        "#ef4444",
    ]


async def test_queue_shows_up_on_friend(db_session, locks):
    await create_friend(db_session, "A", "G", locks=locks)
    await enqueue_signal(db_session, "A", ["red"])

    friend = await get_friend(db_session, "A")
    assert [s.payload for s in friend.queue] == [["red"]]


async def test_queues_are_per_friend(db_session, locks):
    await create_friend(db_session, "A", "G", locks=locks)
    await create_friend(db_session, "B", "G", locks=locks)
    await enqueue_signal(db_session, "A", "red")
    await enqueue_signal(db_session, "B", "blue")

    assert await get_queue(db_session, "A") == ["red"]
    assert await get_queue(db_session, "B") == ["blue"]


async def test_enqueue_for_missing_friend_raises_not_found(db_session):
    with pytest.raises(NotFoundError):
        await enqueue_signal(db_session, "nobody", ["red"])
    with pytest.raises(NotFoundError):
        await get_queue(db_session, "nobody")
    with pytest.raises(NotFoundError):
        await drain_queue(db_session, "nobody")


async def test_drain_returns_pending_and_empties_queue(db_session, locks):
    await create_friend(db_session, "A", "G", locks=locks)
    await enqueue_signal(db_session, "A", "red")
    await enqueue_signal(db_session, "A", "blue")

    assert await drain_queue(db_session, "A") == ["red", "blue"]
    assert await get_queue(db_session, "A") == []
    assert await drain_queue(db_session, "A") == []

    await enqueue_signal(db_session, "A", "green")
    assert await get_queue(db_session, "A") == ["green"]


async def test_capped_queue_drops_oldest(db_session, locks):
    await create_friend(db_session, "A", "G", locks=locks)
    for color in ("c1", "c2", "c3", "c4"):
        length = await enqueue_signal(db_session, "A", color, max_length=3)

    assert length == 3
    assert await get_queue(db_session, "A") == ["c2", "c3", "c4"]


async def test_signal_for_friend_removed_mid_enqueue_leaves_no_row(db_session, monkeypatch):
    async def _stale_exists(db, friend_id):
        # the existence check saw the friend, but it is gone by the insert
        return True

    monkeypatch.setattr(signals_service, "friend_exists", _stale_exists)

    with pytest.raises(NotFoundError):
        await enqueue_signal(db_session, "ghost", "red")

    rows = await db_session.execute(sa.select(FriendSignal))
    assert rows.scalars().all() == []
