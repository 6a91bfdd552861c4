from __future__ import annotations

import re
from datetime import date, datetime, timezone
from typing import Any, Optional

_HHMM_RE = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)$")


def ensure_aware(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        raise ValueError("datetime must be timezone-aware")
    return dt


def to_iso(dt: datetime) -> str:
    ensure_aware(dt)
    # store as ISO 8601 with offset
    return dt.isoformat()


def from_iso(s: str) -> datetime:
    # "Z" suffix is what the REST backend sends
    return datetime.fromisoformat(s.replace("Z", "+00:00"))


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Lenient timestamp parse for remote payloads. Bad input -> None."""
    if not value:
        return None
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    try:
        dt = from_iso(str(value))
    except (ValueError, TypeError):
        return None
    return dt if dt.tzinfo else dt.replace(tzinfo=timezone.utc)


def parse_due_date(value: Any) -> Optional[date]:
    """
    Accepts 'YYYY-MM-DD' or a full ISO timestamp; only the calendar date
    is kept.
    """
    if not value:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    raw = str(value).strip()
    try:
        return date.fromisoformat(raw[:10])
    except ValueError:
        return None


def parse_hhmm(value: Any) -> Optional[tuple[int, int]]:
    if not value:
        return None
    m = _HHMM_RE.match(str(value).strip())
    if not m:
        return None
    return int(m.group(1)), int(m.group(2))


def normalize_hhmm(value: Any) -> Optional[str]:
    parsed = parse_hhmm(value)
    if parsed is None:
        return None
    return f"{parsed[0]:02d}:{parsed[1]:02d}"
