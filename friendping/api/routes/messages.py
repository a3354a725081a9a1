from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from friendping.api.deps import get_db
from friendping.schemas.messages import MessageCreateRequest, MessageRead
from friendping.services.messages import append_message, list_messages, query_messages

router = APIRouter(prefix="/messages", tags=["messages"])


def _to_out(m) -> MessageRead:
    return MessageRead(
        id=m.id,
        from_friend_id=m.from_friend_id,
        to_friend_id=m.to_friend_id,
        timestamp=m.timestamp,
        payload=m.payload or {},
    )


@router.post("", response_model=MessageRead, status_code=201)
async def append_message_route(payload: MessageCreateRequest, db: AsyncSession = Depends(get_db)):
    m = await append_message(db, payload.from_friend_id, payload.to_friend_id, payload.payload)
    return _to_out(m)


@router.get("", response_model=list[MessageRead])
async def list_messages_route(db: AsyncSession = Depends(get_db)):
    return [_to_out(m) for m in await list_messages(db)]


@router.get("/conversation", response_model=list[MessageRead])
async def conversation_route(
    from_friend_id: str | None = None,
    to_friend_id: str | None = None,
    limit: int | None = Query(default=None, ge=1, le=500),
    db: AsyncSession = Depends(get_db),
):
    rows = await query_messages(
        db,
        from_friend_id=from_friend_id,
        to_friend_id=to_friend_id,
        limit=limit,
    )
    return [_to_out(m) for m in rows]
