from datetime import datetime, timedelta, timezone

import pytest

from friendping.services import messages as messages_service
from friendping.services.messages import append_message, list_messages, query_messages

pytestmark = pytest.mark.anyio

T0 = datetime(2026, 6, 1, 12, 0, tzinfo=timezone.utc)


def _clock(monkeypatch, *times):
    it = iter(times)
    monkeypatch.setattr(messages_service, "_now_utc", lambda: next(it))


async def test_conversation_is_newest_first_regardless_of_insert_order(db_session, monkeypatch):
    t1, t2, t3 = T0, T0 + timedelta(seconds=1), T0 + timedelta(seconds=2)
    _clock(monkeypatch, t2, t3, t1)

    await append_message(db_session, "A", "B", {"body": "second"})
    await append_message(db_session, "A", "B", {"body": "third"})
    await append_message(db_session, "A", "B", {"body": "first"})

    rows = await query_messages(db_session, from_friend_id="A", to_friend_id="B")
    assert [m.timestamp for m in rows] == [t3, t2, t1]
    assert [m.payload["body"] for m in rows] == ["third", "second", "first"]


async def test_timestamp_is_assigned_by_the_log(db_session, monkeypatch):
    _clock(monkeypatch, T0)
    m = await append_message(
        db_session,
        "A",
        "B",
        {"timestamp": "1999-01-01T00:00:00Z", "color": "#ef4444"},
    )

    assert m.timestamp == T0
    assert m.payload == {"color": "#ef4444"}


async def test_query_filters_by_pair(db_session, monkeypatch):
    _clock(monkeypatch, *(T0 + timedelta(seconds=i) for i in range(4)))
    await append_message(db_session, "A", "B")
    await append_message(db_session, "B", "A")
    await append_message(db_session, "A", "C")
    await append_message(db_session, "A", "B")

    pair = await query_messages(db_session, from_friend_id="A", to_friend_id="B")
    assert [(m.from_friend_id, m.to_friend_id) for m in pair] == [("A", "B"), ("A", "B")]

    sent = await query_messages(db_session, from_friend_id="A")
    assert len(sent) == 3
    timestamps = [m.timestamp for m in sent]
    assert timestamps == sorted(timestamps, reverse=True)

    latest = await query_messages(db_session, from_friend_id="A", to_friend_id="B", limit=1)
    assert latest[0].timestamp == T0 + timedelta(seconds=3)


async def test_list_messages_returns_everything(db_session):
    await append_message(db_session, "A", "B")
    await append_message(db_session, "C", "D", {"x": 1})
    assert len(await list_messages(db_session)) == 2
