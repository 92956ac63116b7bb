"""Injectable clock; services read "now" and the current year through it."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Callable

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def current_year(clock: Clock) -> int:
    now = clock()
    if now.tzinfo is not None:
        now = now.astimezone(timezone.utc)
    return now.year
