from __future__ import annotations

from collections.abc import Mapping

from fastapi import HTTPException

from friendping.core.errors import (
    FRIEND_ALREADY_EXISTS,
    FRIEND_NOT_FOUND,
    INVALID_TIME_OF_DAY,
    PALETTE_EXHAUSTED,
)

FRIEND_CODE_STATUSES: dict[str, int] = {
    FRIEND_NOT_FOUND: 404,
    FRIEND_ALREADY_EXISTS: 409,
    PALETTE_EXHAUSTED: 409,
    INVALID_TIME_OF_DAY: 422,
}

FRIEND_DETAIL_OVERRIDES: dict[str, str] = {
    FRIEND_NOT_FOUND: "Friend not found",
    FRIEND_ALREADY_EXISTS: "Friend already exists",
    PALETTE_EXHAUSTED: "No free color left in this group",
    INVALID_TIME_OF_DAY: "Times must be HH:MM between 00:00 and 23:59",
}


def value_error(
    exc: ValueError,
    *,
    code_statuses: Mapping[str, int] | None = None,
    detail_overrides: Mapping[str, str] | None = None,
    default_status: int = 400,
    default_detail: str | None = None,
) -> HTTPException:
    raw_detail = str(exc)
    code_statuses = FRIEND_CODE_STATUSES if code_statuses is None else code_statuses
    detail_overrides = FRIEND_DETAIL_OVERRIDES if detail_overrides is None else detail_overrides

    if raw_detail in code_statuses:
        detail = detail_overrides.get(raw_detail, raw_detail)
        return HTTPException(status_code=code_statuses[raw_detail], detail=detail)

    return HTTPException(
        status_code=default_status,
        detail=default_detail if default_detail is not None else raw_detail,
    )
