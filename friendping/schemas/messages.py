from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field


class MessageCreateRequest(BaseModel):
    from_friend_id: str = Field(min_length=1, max_length=64)
    to_friend_id: str = Field(min_length=1, max_length=64)
    payload: dict[str, Any] = Field(default_factory=dict)


class MessageRead(BaseModel):
    id: int
    from_friend_id: str
    to_friend_id: str
    timestamp: datetime
    payload: dict[str, Any]
