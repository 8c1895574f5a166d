from __future__ import annotations

from datetime import datetime, timedelta, timezone
from zoneinfo import ZoneInfo

UTC = timezone.utc

def utc_now() -> datetime:
    """Timezone-aware UTC now."""
    return datetime.now(tz=UTC)

def to_iso(dt: datetime) -> str:
    """Aware datetime -> ISO-8601 string with millisecond precision and a Z suffix."""
    if dt.tzinfo is None:
        raise ValueError("datetime must be timezone-aware")
    return dt.astimezone(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")

def parse_iso(s: str) -> datetime:
    """ISO-8601 (with Z or offset) -> aware UTC datetime. Naive input is taken as UTC."""
    dt = datetime.fromisoformat(s.replace("Z", "+00:00"))
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC)

def days_ago(days: float, now: datetime | None = None) -> datetime:
    return (now or utc_now()) - timedelta(days=days)

def fmt_local(dt: datetime, tz_name: str = "UTC") -> str:
    """Human-readable timestamp in the display zone, e.g. 2025-06-01 14:05:09 CDT."""
    return dt.astimezone(ZoneInfo(tz_name)).strftime("%Y-%m-%d %H:%M:%S %Z")
