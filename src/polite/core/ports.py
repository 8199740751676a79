"""Ports (interfaces) used by the core controller.

Ports define the minimal contracts for storage, calendar, clock, and mute
adapters so that the core can be reused with different backends.
"""

from __future__ import annotations

from datetime import datetime
from typing import Iterable, List, Optional, Protocol

from polite.core.models import AnyRule, CalendarEvent, CalendarRule, ScheduleRule
from polite.core.rules_engine import MuteDecision


class RuleRepositoryPort(Protocol):
    """Rule persistence operations, all keyed by rule id."""

    def load_all_calendar_rules(
        self, enabled: Optional[bool] = None, ids: Optional[Iterable[int]] = None
    ) -> List[CalendarRule]:
        ...

    def load_all_schedule_rules(
        self, enabled: Optional[bool] = None, ids: Optional[Iterable[int]] = None
    ) -> List[ScheduleRule]:
        ...

    def load_enabled_rules(self) -> List[AnyRule]:
        ...

    def create_calendar_rule(self, rule: CalendarRule) -> int:
        ...

    def save_calendar_rule(self, rule: CalendarRule) -> None:
        ...

    def create_schedule_rule(self, rule: ScheduleRule) -> int:
        ...

    def save_schedule_rule(self, rule: ScheduleRule) -> None:
        ...

    def delete(self, rule_id: int) -> None:
        ...


class CalendarEventSourcePort(Protocol):
    """Supplies the calendar events active at an instant."""

    def active_events(self, at: datetime) -> List[CalendarEvent]:
        ...


class ClockPort(Protocol):
    def now(self) -> datetime:
        ...


class MuteSinkPort(Protocol):
    """Consumes the aggregate mute decision."""

    def apply(self, decision: MuteDecision) -> None:
        ...
