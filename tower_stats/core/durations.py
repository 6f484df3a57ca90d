"""Duration codec for "22h 42m 35s" style time strings."""

import re
from datetime import datetime, timezone
from typing import Optional

from .numbers import PLACEHOLDER

_HOURS_RE = re.compile(r"(\d+)h")
_MINUTES_RE = re.compile(r"(\d+)m")
_SECONDS_RE = re.compile(r"(\d+)s")


def parse_time_to_seconds(text: Optional[str]) -> Optional[int]:
    """Parse a time string like "22h 42m 35s" into total seconds.

    Each component is optional. Returns None when nothing adds up to a
    positive total.

    >>> parse_time_to_seconds("1h 2m 3s")
    3723
    """
    if not text:
        return None
    total = 0
    hours = _HOURS_RE.search(text)
    minutes = _MINUTES_RE.search(text)
    seconds = _SECONDS_RE.search(text)
    if hours:
        total += int(hours.group(1)) * 3600
    if minutes:
        total += int(minutes.group(1)) * 60
    if seconds:
        total += int(seconds.group(1))
    return total or None


def format_seconds(total_seconds: Optional[int]) -> str:
    """Format seconds as "Xh Ym Zs", always emitting all three parts."""
    if total_seconds is None:
        return PLACEHOLDER
    total_seconds = int(total_seconds)
    h = total_seconds // 3600
    m = (total_seconds % 3600) // 60
    s = total_seconds % 60
    return f"{h}h {m}m {s}s"


def format_countdown(
    completion: str | datetime,
    now: Optional[datetime] = None
) -> tuple[str, bool]:
    """Time left until a milestone completes.

    Returns (text, completed). Text is "Completed" once the instant has
    passed, otherwise "{d}d {h}h {m}m" with zero day and hour parts dropped.
    """
    if isinstance(completion, str):
        target = datetime.fromisoformat(completion.replace("Z", "+00:00"))
    else:
        target = completion
    if target.tzinfo is None:
        target = target.replace(tzinfo=timezone.utc)
    now = now or datetime.now(timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)

    remaining = int((target - now).total_seconds())
    if remaining <= 0:
        return "Completed", True

    days = remaining // 86400
    hours = (remaining % 86400) // 3600
    minutes = (remaining % 3600) // 60

    parts = []
    if days > 0:
        parts.append(f"{days}d")
    if hours > 0:
        parts.append(f"{hours}h")
    parts.append(f"{minutes}m")
    return " ".join(parts), False
