from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from friendping.api.deps import get_db
from friendping.api.http_errors import value_error
from friendping.core.config import settings
from friendping.schemas.signals import EnqueueSignalRequest, EnqueueSignalResponse, QueueResponse
from friendping.services.signals import drain_queue, enqueue_signal, get_queue

router = APIRouter(prefix="/friends/{friend_id}/queue", tags=["signals"])


@router.post("", response_model=EnqueueSignalResponse)
async def enqueue_signal_route(
    friend_id: str,
    payload: EnqueueSignalRequest,
    db: AsyncSession = Depends(get_db),
):
    try:
        length = await enqueue_signal(
            db,
            friend_id,
            payload.signal,
            max_length=settings.signal_queue_max_length,
        )
    except ValueError as e:
        raise value_error(e) from e
    return EnqueueSignalResponse(ok=True, queue_length=length)


@router.get("", response_model=QueueResponse)
async def get_queue_route(friend_id: str, db: AsyncSession = Depends(get_db)):
    try:
        queue = await get_queue(db, friend_id)
    except ValueError as e:
        raise value_error(e) from e
    return QueueResponse(friend_id=friend_id, queue=queue)


@router.post("/drain", response_model=QueueResponse)
async def drain_queue_route(friend_id: str, db: AsyncSession = Depends(get_db)):
    try:
        queue = await drain_queue(db, friend_id)
    except ValueError as e:
        raise value_error(e) from e
    return QueueResponse(friend_id=friend_id, queue=queue)
