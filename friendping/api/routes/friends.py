from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from friendping.api.deps import get_db, get_group_locks
from friendping.api.http_errors import value_error
from friendping.api.presenters.friends import friend_out, timeout_out
from friendping.core.group_locks import GroupLocks
from friendping.schemas.friends import (
    FriendCreateRequest,
    FriendRead,
    LastPingRequest,
    OkResponse,
    PingRequest,
    ReachableResponse,
    TimeoutUpdateRequest,
    TimeoutWindowRead,
)
from friendping.services.friends import (
    create_friend,
    get_friend,
    get_timeout,
    is_friend_reachable,
    list_friends,
    list_friends_in_group,
    ping_friend,
    set_timeout,
    update_timestamp,
)

router = APIRouter(prefix="/friends", tags=["friends"])


@router.post("", response_model=FriendRead, status_code=201)
async def create_friend_route(
    payload: FriendCreateRequest,
    db: AsyncSession = Depends(get_db),
    locks: GroupLocks = Depends(get_group_locks),
):
    try:
        friend = await create_friend(db, payload.friend_id, payload.group_id, locks=locks)
    except ValueError as e:
        raise value_error(e) from e
    return friend_out(friend)


@router.get("", response_model=list[FriendRead])
async def list_friends_route(
    group_id: str | None = None,
    db: AsyncSession = Depends(get_db),
):
    if group_id is not None:
        friends = await list_friends_in_group(db, group_id)
    else:
        friends = await list_friends(db)
    return [friend_out(f) for f in friends]


@router.get("/{friend_id}", response_model=FriendRead)
async def get_friend_route(friend_id: str, db: AsyncSession = Depends(get_db)):
    try:
        friend = await get_friend(db, friend_id)
    except ValueError as e:
        raise value_error(e) from e
    return friend_out(friend)


@router.post("/{friend_id}/ping", response_model=FriendRead)
async def ping_friend_route(
    friend_id: str,
    payload: PingRequest,
    db: AsyncSession = Depends(get_db),
):
    try:
        friend = await ping_friend(db, friend_id, payload.tile_ids)
    except ValueError as e:
        raise value_error(e) from e
    return friend_out(friend)


@router.put("/{friend_id}/last-ping", response_model=OkResponse)
async def update_last_ping_route(
    friend_id: str,
    payload: LastPingRequest,
    db: AsyncSession = Depends(get_db),
):
    try:
        await update_timestamp(db, friend_id, payload.timestamp)
    except ValueError as e:
        raise value_error(e) from e
    return OkResponse(ok=True)


@router.put("/{friend_id}/timeout", response_model=TimeoutWindowRead)
async def set_timeout_route(
    friend_id: str,
    payload: TimeoutUpdateRequest,
    db: AsyncSession = Depends(get_db),
):
    try:
        window = await set_timeout(db, friend_id, payload.start, payload.end)
    except ValueError as e:
        raise value_error(e) from e
    return timeout_out(window)


@router.get("/{friend_id}/timeout", response_model=TimeoutWindowRead | None)
async def get_timeout_route(friend_id: str, db: AsyncSession = Depends(get_db)):
    try:
        window = await get_timeout(db, friend_id)
    except ValueError as e:
        raise value_error(e) from e
    return timeout_out(window)


@router.get("/{friend_id}/reachable", response_model=ReachableResponse)
async def reachable_route(friend_id: str, db: AsyncSession = Depends(get_db)):
    try:
        reachable = await is_friend_reachable(db, friend_id)
    except ValueError as e:
        raise value_error(e) from e
    return ReachableResponse(friend_id=friend_id, reachable=reachable)
