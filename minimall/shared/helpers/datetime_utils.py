"""
DateTime utility functions for MINIMALL
"""

import time
from datetime import datetime, timezone
from typing import Optional


def now_utc() -> datetime:
    """Get current UTC datetime"""
    return datetime.now(timezone.utc)


def now_ms() -> int:
    """Milliseconds since the epoch, used in version names and object keys"""
    return int(time.time() * 1000)


def to_iso_z(value: datetime) -> str:
    """Format a datetime as ISO 8601 with millisecond precision and a Z suffix"""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    value = value.astimezone(timezone.utc)
    return value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}Z"


def parse_iso_timestamp(timestamp_str: str) -> Optional[datetime]:
    """
    Parse ISO timestamp string to timezone-aware datetime object.
    Handles both 'Z' suffix and '+00:00' formats for UTC timestamps.

    Returns:
        timezone-aware datetime object or None if parsing fails
    """
    try:
        if timestamp_str.endswith("Z"):
            parsed = datetime.fromisoformat(timestamp_str[:-1] + "+00:00")
        else:
            parsed = datetime.fromisoformat(timestamp_str)
    except (ValueError, TypeError, AttributeError):
        return None

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed
