"""System clock adapter."""

from __future__ import annotations

from datetime import datetime
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError


class SystemClock:
    """Reads the wall clock in the configured zone, or the local zone."""

    def __init__(self, tz_name: Optional[str] = None) -> None:
        self._tz: Optional[ZoneInfo] = None
        if tz_name:
            try:
                self._tz = ZoneInfo(tz_name)
            except ZoneInfoNotFoundError as exc:
                raise ValueError(f"Unknown timezone: {tz_name}") from exc

    @property
    def tzinfo(self) -> Optional[ZoneInfo]:
        """Configured zone, or None to follow the local zone per timestamp."""

        return self._tz

    def now(self) -> datetime:
        if self._tz is None:
            return datetime.now().astimezone()
        return datetime.now(self._tz)
