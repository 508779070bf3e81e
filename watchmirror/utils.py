"""Utility functions."""

from __future__ import annotations

import os
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

from dateutil import parser as dtparser
from dateutil import tz

# Time zone used for hour / weekday / date bucketing and for export
DISPLAY_TZ_NAME = os.environ.get("WATCHMIRROR_TZ", "UTC")

DAY_NAMES = ["Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday"]

WATCHED_PREFIX = "Watched "
REMOVED_VIDEO_MARKER = "Watched a video that has been removed"
REMOVED_VIDEO_TITLE = "Removed Video"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def display_tz():
    return tz.gettz(DISPLAY_TZ_NAME) or timezone.utc


def clean_title(title: str) -> str:
    """Strip the export boilerplate from a watch-history title."""
    title = title.strip()
    if title.startswith(REMOVED_VIDEO_MARKER):
        return REMOVED_VIDEO_TITLE
    if title.startswith(WATCHED_PREFIX):
        title = title[len(WATCHED_PREFIX):]
    return title.strip()


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse a timestamp string into an aware datetime in the display zone.

    Naive values are taken as UTC. Returns None for anything unparseable.
    """
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, str) and value.strip():
        try:
            dt = dtparser.parse(value)
        except (ValueError, OverflowError):
            return None
    else:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    try:
        return dt.astimezone(display_tz())
    except (ValueError, OverflowError):
        # offset pushes the instant outside the representable range
        return None


def day_of_week(dt: datetime) -> int:
    """Weekday index with Sunday as 0."""
    return (dt.weekday() + 1) % 7


def iso_utc_millis(dt: Optional[datetime]) -> Optional[str]:
    if dt is None:
        return None
    dt = dt.astimezone(timezone.utc)
    return dt.strftime("%Y-%m-%dT%H:%M:%S.") + f"{dt.microsecond // 1000:03d}Z"


def day_span(first: datetime, last: datetime) -> int:
    """Whole days between two instants, never less than one."""
    return max(1, abs(last - first) // timedelta(days=1))
