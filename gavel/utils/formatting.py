"""
Display helpers shared by the engine messages and the CLI.
"""

from datetime import datetime, timezone
from typing import Optional, Union

Number = Union[int, float]


def format_price(value: Number) -> str:
    """Format a price with thousands separators, dropping a zero fraction."""
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return f"{value:,}"


def format_time_remaining(ms: Number) -> str:
    """
    Render a countdown such as '1d 2h 3m 4s'.

    Zero components are skipped except seconds, which are always shown.
    Non-positive durations render as 'Ended'.
    """
    if ms <= 0:
        return "Ended"

    ms = int(ms)
    s = (ms // 1000) % 60
    m = (ms // 60_000) % 60
    h = (ms // 3_600_000) % 24
    d = ms // 86_400_000

    parts = []
    if d:
        parts.append(f"{d}d")
    if h:
        parts.append(f"{h}h")
    if m:
        parts.append(f"{m}m")
    parts.append(f"{s}s")
    return " ".join(parts)


def time_remaining(end: Optional[datetime], now: Optional[datetime] = None) -> str:
    """Countdown text for an auction end timestamp."""
    if end is None:
        return "No end time"
    now = now or datetime.now(timezone.utc)
    return format_time_remaining((end - now).total_seconds() * 1000)
