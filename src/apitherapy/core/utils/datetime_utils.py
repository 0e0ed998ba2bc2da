"""
Date and time utility functions for the Apitherapy Care backend.
"""

from datetime import datetime, timezone
from typing import Optional


def get_current_timestamp() -> datetime:
    """Get current UTC timestamp."""
    return datetime.now(timezone.utc)


def epoch_millis(timestamp: Optional[datetime] = None) -> int:
    """Milliseconds since the Unix epoch for ``timestamp`` (default: now)."""
    timestamp = timestamp or get_current_timestamp()
    return int(timestamp.timestamp() * 1000)


def minutes_between(start: datetime, end: datetime) -> int:
    """Whole minutes elapsed from ``start`` to ``end``, floored, never negative."""
    elapsed = (end - start).total_seconds()
    return max(0, int(elapsed // 60))

