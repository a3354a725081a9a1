from __future__ import annotations

from datetime import datetime

from friendping.core.config import settings
from friendping.models.friend import Friend
from friendping.schemas.friends import FriendRead, TimeoutWindowRead
from friendping.services.friends import friend_is_reachable, friend_window
from friendping.services.presence import is_online
from friendping.services.reachability import TimeoutWindow


def timeout_out(window: TimeoutWindow | None) -> TimeoutWindowRead | None:
    if window is None:
        return None
    start, end = window.as_strings()
    return TimeoutWindowRead(start=start, end=end)


def friend_out(friend: Friend, *, now: datetime | None = None) -> FriendRead:
    return FriendRead(
        friend_id=friend.friend_id,
        group_id=friend.group_id,
        color=friend.color,
        timeout=timeout_out(friend_window(friend)),
        last_ping=friend.last_ping,
        tile_ids=friend.tile_ids,
        queue=[s.payload for s in friend.queue],
        online=is_online(friend.last_ping, now=now, max_age_seconds=settings.presence_timeout_seconds),
        reachable=friend_is_reachable(friend, at=now),
    )
