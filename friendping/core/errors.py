from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy.exc import SQLAlchemyError

logger = logging.getLogger(__name__)

FRIEND_NOT_FOUND = "friend_not_found"
FRIEND_ALREADY_EXISTS = "friend_already_exists"
PALETTE_EXHAUSTED = "palette_exhausted"
INVALID_TIME_OF_DAY = "invalid_time_of_day"


class NotFoundError(ValueError):
    """Referenced friend does not exist."""

    def __init__(self, code: str = FRIEND_NOT_FOUND):
        super().__init__(code)
        self.code = code


class AlreadyExistsError(ValueError):
    def __init__(self, code: str = FRIEND_ALREADY_EXISTS):
        super().__init__(code)
        self.code = code


class PaletteExhaustedError(ValueError):
    """Every color in the palette is already taken within the group."""

    def __init__(self, code: str = PALETTE_EXHAUSTED):
        super().__init__(code)
        self.code = code


class InvalidTimeoutError(ValueError):
    def __init__(self, code: str = INVALID_TIME_OF_DAY):
        super().__init__(code)
        self.code = code


class StoreUnavailableError(RuntimeError):
    """The store failed; the message is safe to show to callers."""


@contextmanager
def store_errors(action: str) -> Iterator[None]:
    # Business errors pass through untouched; only storage failures are wrapped.
    try:
        yield
    except SQLAlchemyError as exc:
        logger.exception("%s", action)
        raise StoreUnavailableError(action) from exc
