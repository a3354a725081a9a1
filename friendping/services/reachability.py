from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime, time, timezone, tzinfo

from friendping.core.errors import InvalidTimeoutError

WRAP = "wrap"
STRICT = "strict"

_TIME_OF_DAY_RE = re.compile(r"^(?P<hour>\d{1,2}):(?P<minute>\d{2})$")


def parse_time_of_day(value: str) -> time:
    if not isinstance(value, str):
        raise InvalidTimeoutError()
    m = _TIME_OF_DAY_RE.match(value.strip())
    if not m:
        raise InvalidTimeoutError()
    hour, minute = int(m.group("hour")), int(m.group("minute"))
    if hour > 23 or minute > 59:
        raise InvalidTimeoutError()
    return time(hour, minute)


def format_time_of_day(value: time) -> str:
    return f"{value.hour:02d}:{value.minute:02d}"


@dataclass(frozen=True)
class TimeoutWindow:
    start: time
    end: time

    @classmethod
    def parse(cls, start: str, end: str) -> "TimeoutWindow":
        return cls(start=parse_time_of_day(start), end=parse_time_of_day(end))

    @property
    def spans_midnight(self) -> bool:
        return self.start > self.end

    def as_strings(self) -> tuple[str, str]:
        return format_time_of_day(self.start), format_time_of_day(self.end)


def is_reachable(window: TimeoutWindow, moment: time, policy: str = WRAP) -> bool:
    """Whether ``moment`` falls inside the daily window (minute resolution).

    A window with start > end either wraps past midnight (``wrap``) or is
    empty (``strict``).
    """
    t = time(moment.hour, moment.minute)
    if not window.spans_midnight:
        return window.start <= t <= window.end
    if policy == STRICT:
        return False
    if policy == WRAP:
        return t >= window.start or t <= window.end
    raise ValueError(f"Unknown timeout window policy: {policy}")


def time_of_day(at: datetime | None = None, tz: tzinfo | None = None) -> time:
    at = at or datetime.now(timezone.utc)
    if at.tzinfo is None:
        at = at.replace(tzinfo=timezone.utc)
    return at.astimezone(tz or timezone.utc).time()
