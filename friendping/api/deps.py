from __future__ import annotations

from collections.abc import AsyncGenerator

from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncSession

from friendping.core.group_locks import GroupLocks


async def get_db(request: Request) -> AsyncGenerator[AsyncSession, None]:
    async for session in request.app.state.database.sessions():
        yield session


def get_group_locks(request: Request) -> GroupLocks:
    return request.app.state.group_locks
