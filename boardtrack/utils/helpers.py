import math
from datetime import datetime, timezone
from typing import Optional


def utcnow() -> datetime:
    """Naive UTC timestamp; everything is stored without tzinfo."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Convert an aware datetime to naive UTC. Naive values are taken as UTC already."""
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def days_between(later: datetime, earlier: datetime) -> int:
    """
    Whole days from ``earlier`` to ``later``, floored:
      3.9 days -> 3, -0.5 days -> -1
    """
    return math.floor((later - earlier).total_seconds() / 86400)
