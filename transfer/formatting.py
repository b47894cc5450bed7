"""
Human-readable transfer durations
"""

import math
from datetime import datetime, timezone
from typing import Optional


def format_duration(seconds: float) -> str:
    """
    Format elapsed seconds by magnitude.
    
    Under a minute shows seconds, under an hour minutes and seconds,
    otherwise hours and minutes: ``59s``, ``1m 0s``, ``59m 59s``, ``1h 0m``.
    """
    total = max(0, int(math.floor(seconds + 0.5)))
    
    if total < 60:
        return f"{total}s"
    if total < 3600:
        return f"{total // 60}m {total % 60}s"
    return f"{total // 3600}h {(total % 3600) // 60}m"


def _as_utc(value: datetime) -> datetime:
    # Naive timestamps from the backend are UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def elapsed_seconds(start: datetime, end: Optional[datetime] = None, now: Optional[datetime] = None) -> float:
    """Seconds between ``start`` and ``end`` (or ``now`` while still running)"""
    finish = end or now or datetime.now(timezone.utc)
    return (_as_utc(finish) - _as_utc(start)).total_seconds()
