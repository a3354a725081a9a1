from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field


class FriendCreateRequest(BaseModel):
    friend_id: str = Field(min_length=1, max_length=64)
    group_id: str = Field(min_length=1, max_length=64)


class TimeoutWindowRead(BaseModel):
    start: str
    end: str


class FriendRead(BaseModel):
    friend_id: str
    group_id: str
    color: str
    timeout: TimeoutWindowRead | None
    last_ping: datetime
    tile_ids: Any | None = None
    queue: list[Any] = Field(default_factory=list)
    online: bool
    reachable: bool


class PingRequest(BaseModel):
    tile_ids: Any | None = None


class LastPingRequest(BaseModel):
    timestamp: datetime


class TimeoutUpdateRequest(BaseModel):
    start: str = Field(min_length=3, max_length=5, examples=["09:00"])
    end: str = Field(min_length=3, max_length=5, examples=["17:00"])


class ReachableResponse(BaseModel):
    friend_id: str
    reachable: bool


class OkResponse(BaseModel):
    ok: bool
