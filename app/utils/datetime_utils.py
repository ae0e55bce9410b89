"""
Timezone-aware datetime helpers.
- Store and compute in UTC.
- API responses expose datetimes as ISO-8601 with a Z suffix.
"""
from datetime import datetime, timezone
from typing import Optional

UTC = timezone.utc


def now_utc() -> datetime:
    """Current time in UTC (timezone-aware). Use for created_at, updated_at, deleted_at, etc."""
    return datetime.now(UTC)


def ensure_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """If dt is naive, treat as UTC and return timezone-aware UTC. If already aware, convert to UTC."""
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC)


def iso_8601_utc(dt: Optional[datetime]) -> Optional[str]:
    """ISO-8601 with Z for UTC. SQLite hands back naive datetimes, which are UTC by convention."""
    if dt is None:
        return None
    s = ensure_utc(dt).isoformat()
    if s.endswith("+00:00"):
        s = s[:-6] + "Z"
    return s


def epoch_millis(dt: Optional[datetime] = None) -> int:
    """Milliseconds since the epoch, used to make stored file names unique"""
    return int(ensure_utc(dt or now_utc()).timestamp() * 1000)


def parse_iso_8601(value: str) -> datetime:
    """
    Parse an ISO-8601 date or datetime string.

    Raises:
        ValueError: If the value is not ISO-8601
    """
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    return datetime.fromisoformat(text)
