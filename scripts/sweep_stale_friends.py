#!/usr/bin/env python3
from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from dataclasses import dataclass
from pathlib import Path

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from friendping.core.config import settings
from friendping.core.group_locks import GroupLocks
from friendping.core.observability import LOG_FORMAT
from friendping.db.session import build_database
from friendping.services.presence import PurgedFriend, sweep_stale_friends

logger = logging.getLogger("sweep_stale_friends")


@dataclass
class SweepStats:
    stale: int = 0
    purged: int = 0
    groups: int = 0


def _parse_max_age(value: int | None) -> int:
    if value is None:
        return settings.presence_timeout_seconds
    if value <= 0:
        raise ValueError("--max-age must be greater than 0")
    return value


def summarize(purged: list[PurgedFriend], *, dry_run: bool) -> SweepStats:
    stats = SweepStats(stale=len(purged), groups=len({p.group_id for p in purged}))
    if not dry_run:
        stats.purged = len(purged)
    return stats


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Purge friends whose last ping is older than the presence timeout."
    )
    parser.add_argument(
        "--max-age",
        type=int,
        default=None,
        help="Seconds without a ping before a friend is stale (default: PRESENCE_TIMEOUT_SECONDS).",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="List stale friends without deleting them.",
    )
    parser.add_argument("--verbose", action="store_true", help="Log each stale friend.")
    return parser.parse_args(argv)


def _print_summary(*, dry_run: bool, stats: SweepStats) -> None:
    mode = "dry-run" if dry_run else "apply"
    print("Stale friend sweep complete")
    print(f"mode: {mode}")
    print(f"stale: {stats.stale}")
    print(f"purged: {stats.purged}")
    print(f"groups: {stats.groups}")


async def _main_async(args: argparse.Namespace) -> SweepStats:
    max_age = _parse_max_age(args.max_age)
    database = build_database(settings)
    try:
        async with database.session() as db:
            purged = await sweep_stale_friends(
                db,
                locks=GroupLocks(),
                max_age_seconds=max_age,
                dry_run=args.dry_run,
            )
    finally:
        await database.dispose()

    if args.verbose:
        for p in purged:
            logger.info(
                "stale friend_id=%s group_id=%s color=%s last_ping=%s",
                p.friend_id,
                p.group_id,
                p.color,
                p.last_ping.isoformat(),
            )
    return summarize(purged, dry_run=args.dry_run)


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format=LOG_FORMAT,
    )

    stats = asyncio.run(_main_async(args))
    _print_summary(dry_run=args.dry_run, stats=stats)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
