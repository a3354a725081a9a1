from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager


class GroupLocks:
    """One asyncio.Lock per group id.

    Color allocation and stale-friend purges for the same group run under the
    same lock, so a freed color is never handed out while a purge of that group
    is still in flight. Cross-process safety comes from the
    UNIQUE(group_id, color) constraint, not from this class.

    A group's lock only lives while someone holds or waits for it.
    """

    def __init__(self) -> None:
        self._locks: dict[str, asyncio.Lock] = {}
        self._users: dict[str, int] = {}

    def __len__(self) -> int:
        return len(self._locks)

    def _acquire_ref(self, group_id: str) -> asyncio.Lock:
        lock = self._locks.get(group_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[group_id] = lock
        self._users[group_id] = self._users.get(group_id, 0) + 1
        return lock

    def _release_ref(self, group_id: str) -> None:
        self._users[group_id] -= 1
        if self._users[group_id] == 0:
            del self._users[group_id]
            del self._locks[group_id]

    @asynccontextmanager
    async def hold(self, group_id: str) -> AsyncIterator[None]:
        lock = self._acquire_ref(group_id)
        try:
            async with lock:
                yield
        finally:
            self._release_ref(group_id)

    def is_locked(self, group_id: str) -> bool:
        lock = self._locks.get(group_id)
        return lock is not None and lock.locked()
