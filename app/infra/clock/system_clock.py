from __future__ import annotations

import logging
from datetime import datetime, timezone, tzinfo
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from app.domain.tasks.ports import Clock

logger = logging.getLogger(__name__)


def resolve_tz(tz_name: str) -> tzinfo:
    """User timezone; unknown names fall back to UTC."""
    try:
        return ZoneInfo(tz_name)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning(f"Unknown timezone {tz_name!r}, falling back to UTC")
        return timezone.utc


class SystemClock(Clock):
    """Wall clock in the user's timezone; due dates are judged in local time."""

    def __init__(self, tz_name: str) -> None:
        self._tz = resolve_tz(tz_name)

    @property
    def tz(self) -> tzinfo:
        return self._tz

    def now(self) -> datetime:
        return datetime.now(self._tz)
