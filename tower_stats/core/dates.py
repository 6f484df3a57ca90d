"""Battle date parsing for chronological ordering.

Battle dates are whatever the game printed ("Feb 14, 2026 10:32",
"2024-01-01 10:00", ...), so they are stored verbatim and only parsed when
runs need to be put in order.
"""

import re
from datetime import datetime
from typing import Optional

BATTLE_DATE_FORMATS = (
    "%Y-%m-%d %H:%M",
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%d",
    "%b %d, %Y %H:%M",
    "%b %d, %Y %I:%M %p",
    "%B %d, %Y %H:%M",
    "%B %d, %Y %I:%M %p",
    "%b %d, %Y",
    "%d.%m.%Y %H:%M",
    "%d.%m.%Y",
    "%m/%d/%Y %H:%M",
    "%m/%d/%Y %I:%M %p",
    "%m/%d/%Y",
)


def parse_battle_date(value: Optional[str]) -> Optional[datetime]:
    """Parse a battle date string. Returns a naive datetime or None."""
    if not value or not isinstance(value, str):
        return None
    text = re.sub(r"\s+", " ", value).strip()
    for fmt in BATTLE_DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt)
        except ValueError:
            continue
    try:
        parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError:
        return None
    return parsed.replace(tzinfo=None)


def battle_date_sort_key(value: Optional[str]) -> tuple:
    """Sort key that orders parseable dates after unparseable ones.

    Sorting ascending gives unparseable dates (by text) first, then real
    dates oldest to newest; reverse=True gives newest real dates first.
    """
    parsed = parse_battle_date(value)
    if parsed is None:
        return (0, datetime.min, str(value) if value else "")
    return (1, parsed, value)
