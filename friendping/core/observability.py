from __future__ import annotations

import logging

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def setup_logging(level: str = "info") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
    )
    # SQL echo is controlled by the engine, keep the pool quiet otherwise.
    logging.getLogger("sqlalchemy.pool").setLevel(logging.WARNING)
