"""Milestone construction for timed in-game tasks (lab research)."""

from datetime import datetime, timedelta, timezone
from typing import Optional

LAB_RESEARCH = "lab_research"

SPEED_MULTIPLIERS = (1, 1.5, 2, 3, 4, 5, 6, 7, 8)


def iso_timestamp(moment: datetime) -> str:
    """ISO-8601 UTC instant with millisecond precision and a Z suffix."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    moment = moment.astimezone(timezone.utc)
    return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def build_lab_milestone(
    category: str,
    name: str,
    days: int = 0,
    hours: int = 0,
    minutes: int = 0,
    multiplier: float = 1,
    now: Optional[datetime] = None
) -> dict:
    """Build a lab research milestone body ready for the record store.

    The entered time is what the game shows at 1x; the completion instant
    divides it by the active speed multiplier.

    Raises:
        ValueError: If no time was entered or the multiplier isn't positive.
    """
    days, hours, minutes = int(days or 0), int(hours or 0), int(minutes or 0)
    if min(days, hours, minutes) < 0:
        raise ValueError("Research time cannot be negative")
    total_minutes = days * 24 * 60 + hours * 60 + minutes
    if total_minutes <= 0:
        raise ValueError("Research time must be greater than zero")
    if not multiplier or multiplier <= 0:
        raise ValueError(f"Invalid speed multiplier: {multiplier}")
    if float(multiplier).is_integer():
        multiplier = int(multiplier)

    now = now or datetime.now(timezone.utc)
    completion = now + timedelta(minutes=total_minutes / multiplier)

    return {
        "type": LAB_RESEARCH,
        "category": category,
        "name": name,
        "enteredTime": {"days": days, "hours": hours, "minutes": minutes},
        "multiplier": multiplier,
        "completionTimestamp": iso_timestamp(completion),
    }
