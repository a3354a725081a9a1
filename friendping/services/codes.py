from __future__ import annotations

import sqlalchemy as sa
from sqlalchemy.ext.asyncio import AsyncSession

from friendping.core.errors import store_errors
from friendping.models.generated_code import GeneratedCode


async def save_generated_code(db: AsyncSession, friend_id: str, code: str) -> GeneratedCode:
    row = GeneratedCode(friend_id=friend_id, code=code)
    with store_errors("Failed to save generated code"):
        db.add(row)
        await db.commit()
        await db.refresh(row)
    return row


async def list_generated_codes(db: AsyncSession) -> list[GeneratedCode]:
    with store_errors("Failed to retrieve generated codes"):
        q = sa.select(GeneratedCode).order_by(GeneratedCode.id.asc())
        return list((await db.execute(q)).scalars().all())
