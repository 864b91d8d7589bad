"""Daily edit windows for the stock tables.

Stock may be edited during three windows a day; both boundary minutes are
inside the window (08:00 and 12:00 are both allowed).
"""
from datetime import datetime
from typing import Optional

ALLOWED_TIME_SLOTS = [
    (8, 12),
    (13, 16),
    (17, 20),
]


def _minutes(now: datetime) -> int:
    return now.hour * 60 + now.minute


def is_within_allowed_time(now: Optional[datetime] = None) -> bool:
    current = _minutes(now or datetime.now())
    return any(start * 60 <= current <= end * 60 for start, end in ALLOWED_TIME_SLOTS)


def get_next_allowed_time(now: Optional[datetime] = None) -> str:
    """Human-readable start of the next window, e.g. "13:00" or tomorrow's first one."""
    current = _minutes(now or datetime.now())
    for start, _ in sorted(ALLOWED_TIME_SLOTS):
        if start * 60 > current:
            return f"{start}:00"
    first_start = ALLOWED_TIME_SLOTS[0][0]
    return f"พรุ่งนี้เวลา {first_start}:00"
