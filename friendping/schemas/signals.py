from __future__ import annotations

from typing import Any

from pydantic import BaseModel


class EnqueueSignalRequest(BaseModel):
    # A single color ("#ef4444") or a batch (["#ef4444", "#3b82f6"]).
    signal: str | list[str]


class EnqueueSignalResponse(BaseModel):
    ok: bool
    queue_length: int


class QueueResponse(BaseModel):
    friend_id: str
    queue: list[Any]
