from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from friendping.api.deps import get_db
from friendping.schemas.codes import GeneratedCodeCreateRequest, GeneratedCodeRead
from friendping.services.codes import list_generated_codes, save_generated_code

router = APIRouter(prefix="/codes", tags=["codes"])


@router.post("", response_model=GeneratedCodeRead, status_code=201)
async def save_code_route(payload: GeneratedCodeCreateRequest, db: AsyncSession = Depends(get_db)):
    row = await save_generated_code(db, payload.friend_id, payload.code)
    return GeneratedCodeRead(friend_id=row.friend_id, code=row.code, created_at=row.created_at)


@router.get("", response_model=list[GeneratedCodeRead])
async def list_codes_route(db: AsyncSession = Depends(get_db)):
    rows = await list_generated_codes(db)
    return [GeneratedCodeRead(friend_id=r.friend_id, code=r.code, created_at=r.created_at) for r in rows]
