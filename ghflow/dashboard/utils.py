"""Shared utility functions for the dashboard package."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

ELLIPSIS = "..."


def format_time_ago(when: datetime | None, now: datetime | None = None) -> str:
    """Format a timestamp as a compact age: 'now', '5m', '3h', '2d'."""
    if when is None:
        return ""
    now = now or datetime.now(timezone.utc)
    if when.tzinfo is None:
        when = when.replace(tzinfo=timezone.utc)
    secs = (now - when).total_seconds()
    if secs < 60:
        return "now"
    if secs < 3600:
        return f"{int(secs // 60)}m"
    if secs < 86400:
        return f"{int(secs // 3600)}h"
    return f"{int(secs // 86400)}d"


def format_duration(delta: timedelta) -> str:
    """Format a duration as '42s', '3m12s' or '1h5m'."""
    total = int(delta.total_seconds())
    if total < 60:
        return f"{total}s"
    if total < 3600:
        return f"{total // 60}m{total % 60}s"
    return f"{total // 3600}h{(total % 3600) // 60}m"


def truncate(text: str, max_len: int) -> str:
    """Cut text to max_len characters, ending in '...' when shortened."""
    if len(text) <= max_len:
        return text
    keep = max(1, max_len - len(ELLIPSIS))
    return text[:keep] + ELLIPSIS
