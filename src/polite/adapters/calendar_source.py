"""Calendar event source backed by a JSON file.

The file holds a list of event objects::

    [{"calendar_id": 1, "title": "Standup", "description": "",
      "start": "2024-01-01T09:00:00", "end": "2024-01-01T09:15:00"}]

It is re-read on every call so an external exporter can rewrite it at any
time; nothing is cached between evaluations.
"""

from __future__ import annotations

import json
import logging
import os
from datetime import datetime, tzinfo
from typing import Any, List, Optional

from polite.core.models import CalendarEvent

LOGGER = logging.getLogger(__name__)


def _parse_timestamp(value: str, default_tz: Optional[tzinfo]) -> datetime:
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        if default_tz is None:
            return parsed.astimezone()
        return parsed.replace(tzinfo=default_tz)
    return parsed


def parse_event(entry: dict[str, Any], default_tz: Optional[tzinfo] = None) -> CalendarEvent:
    """Build a CalendarEvent from one JSON object."""

    return CalendarEvent(
        calendar_id=int(entry["calendar_id"]),
        title=entry.get("title"),
        description=entry.get("description"),
        start=_parse_timestamp(entry["start"], default_tz),
        end=_parse_timestamp(entry["end"], default_tz),
    )


class JsonCalendarSource:
    """Supplies currently active events from an exported JSON file."""

    def __init__(self, path: str, default_tz: Optional[tzinfo] = None) -> None:
        self._path = path
        self._default_tz = default_tz

    def load_events(self) -> List[CalendarEvent]:
        if not os.path.exists(self._path):
            LOGGER.debug("Calendar events file not found: %s", self._path)
            return []

        with open(self._path, "r", encoding="utf-8") as handle:
            raw_events = json.load(handle)

        events: List[CalendarEvent] = []
        for entry in raw_events:
            try:
                events.append(parse_event(entry, self._default_tz))
            except (KeyError, TypeError, ValueError) as exc:
                LOGGER.warning("Skipping malformed calendar event %r: %s", entry, exc)
        return events

    def active_events(self, at: datetime) -> List[CalendarEvent]:
        return [event for event in self.load_events() if event.is_active_at(at)]
