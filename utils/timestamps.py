"""
Timestamp helpers for GitHub payloads.

GitHub returns ISO 8601 strings with a trailing "Z". Everything inside
Issue Radar is an aware UTC datetime.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Optional


def parse_timestamp(value: Any) -> Optional[datetime]:
    """
    Parse a GitHub timestamp into an aware UTC datetime.

    Returns None for missing or unparseable values instead of raising.
    """
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    if not value or not isinstance(value, str):
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except (ValueError, TypeError):
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def to_iso(value: Optional[datetime]) -> Optional[str]:
    if value is None:
        return None
    return value.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def hours_between(earlier: datetime, later: datetime) -> float:
    return (later - earlier).total_seconds() / 3600


def days_between(earlier: datetime, later: datetime) -> float:
    return (later - earlier).total_seconds() / 86400


def time_ago(value: datetime, now: Optional[datetime] = None) -> str:
    """Render "5h ago" under a day and "3d ago" otherwise"""
    hours = int(hours_between(value, now or utcnow()))
    if hours < 24:
        return f"{hours}h ago"
    return f"{hours // 24}d ago"
