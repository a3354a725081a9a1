from __future__ import annotations

from datetime import datetime

import sqlalchemy as sa
from sqlalchemy.orm import Mapped, mapped_column

from friendping.db.base_class import Base
from friendping.db.types import UTCDateTime


class GeneratedCode(Base):
    __tablename__ = "generated_codes"

    id: Mapped[int] = mapped_column(sa.Integer, primary_key=True, autoincrement=True)

    friend_id: Mapped[str] = mapped_column(sa.String(64), nullable=False, index=True)
    code: Mapped[str] = mapped_column(sa.Text, nullable=False)

    created_at: Mapped[datetime] = mapped_column(UTCDateTime(), server_default=sa.func.now(), nullable=False)
