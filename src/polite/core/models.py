"""Core domain models.

Rules are plain dataclasses so edit flows can mutate them in place, while
evaluation only reads them. Calendar events are frozen snapshots supplied by
a calendar source adapter.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Iterable, Optional, Union

from polite.core.match_mode import CalendarEventMatchBy
from polite.core.time_of_day import WEEKDAYS, TimeOfDay, Weekday

NEW_RULE = -1
DEFAULT_RULE_NAME = "Untitled rule"


def normalize_keywords(keywords: Iterable[str]) -> set[str]:
    """Strip and lower-case keywords, dropping blanks and duplicates."""

    return {word.strip().lower() for word in keywords if word and word.strip()}


@dataclass
class Rule:
    """Fields shared by every rule kind."""

    id: int = NEW_RULE
    name: str = DEFAULT_RULE_NAME
    enabled: bool = True
    vibrate: bool = False

    def __post_init__(self) -> None:
        if not self.name or not self.name.strip():
            self.name = DEFAULT_RULE_NAME

    @property
    def is_new(self) -> bool:
        return self.id == NEW_RULE


@dataclass
class CalendarRule(Rule):
    """Mutes during calendar events whose text matches the keywords."""

    calendar_ids: list[int] = field(default_factory=list)
    match_by: CalendarEventMatchBy = CalendarEventMatchBy.ALL
    inverse_match: bool = False
    keywords: set[str] = field(default_factory=set)

    def __post_init__(self) -> None:
        super().__post_init__()
        self.calendar_ids = list(self.calendar_ids)
        self.keywords = normalize_keywords(self.keywords)

    def sorted_keywords(self) -> list[str]:
        return sorted(self.keywords)


def _default_days() -> set[Weekday]:
    return set(WEEKDAYS)


@dataclass
class ScheduleRule(Rule):
    """Mutes during a recurring weekly time window."""

    begin: TimeOfDay = TimeOfDay.of(12, 0)
    end: TimeOfDay = TimeOfDay.of(13, 0)
    days: set[Weekday] = field(default_factory=_default_days)

    def __post_init__(self) -> None:
        super().__post_init__()
        self.days = {Weekday(day) for day in self.days}

    @property
    def wraps_midnight(self) -> bool:
        return self.end < self.begin


AnyRule = Union[CalendarRule, ScheduleRule]


@dataclass(frozen=True)
class CalendarEvent:
    """Snapshot of one calendar event instance."""

    calendar_id: int
    title: Optional[str]
    description: Optional[str]
    start: datetime
    end: datetime

    def is_active_at(self, at: datetime) -> bool:
        return self.start <= at < self.end


def scrub(rule: AnyRule) -> AnyRule:
    """Return a normalized copy of a rule, ready to persist.

    Matching by ALL ignores event text, so such calendar rules never keep
    keywords.
    """

    if isinstance(rule, CalendarRule):
        keywords: set[str] = set()
        if rule.match_by is not CalendarEventMatchBy.ALL:
            keywords = normalize_keywords(rule.keywords)
        return replace(rule, calendar_ids=list(rule.calendar_ids), keywords=keywords)
    return replace(rule, days=set(rule.days))


def copy_rule(rule: AnyRule) -> AnyRule:
    """Deep copy for edit flows that may be discarded."""

    return copy.deepcopy(rule)
