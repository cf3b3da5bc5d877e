"""Time helper utilities."""
from __future__ import annotations

from datetime import datetime, timezone

DAY_MS = 86_400_000


def now_ms() -> int:
    return int(datetime.now(timezone.utc).timestamp() * 1000)


def from_ms(ts_ms: float) -> datetime:
    return datetime.fromtimestamp(ts_ms / 1000, tz=timezone.utc)


def day_label(ts_ms: float) -> str:
    """Short ``M/D`` label used on the shared category axis."""
    dt = from_ms(ts_ms)
    return f"{dt.month}/{dt.day}"


def date_label(ts_ms: float) -> str:
    """``M/D/YY`` label used by the data table."""
    dt = from_ms(ts_ms)
    return f"{dt.month}/{dt.day}/{dt.year % 100:02d}"
