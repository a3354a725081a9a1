from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


class GeneratedCodeCreateRequest(BaseModel):
    friend_id: str = Field(min_length=1, max_length=64)
    code: str = Field(min_length=1)


class GeneratedCodeRead(BaseModel):
    friend_id: str
    code: str
    created_at: datetime
