"""Rule evaluation logic (core domain).

Everything here is pure: no I/O, no clock reads, no mutation of rules. The
caller supplies the query moment and the currently active calendar events.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional, Sequence

from polite.core.match_mode import CalendarEventMatchBy
from polite.core.models import AnyRule, CalendarEvent, CalendarRule, ScheduleRule
from polite.core.time_of_day import Moment, TimeOfDay, Weekday


@dataclass(frozen=True)
class MuteDecision:
    """Aggregate decision handed to the mute sink."""

    mute: bool
    vibrate: bool
    triggered: tuple[AnyRule, ...] = ()

    @property
    def ringer_mode(self) -> str:
        if not self.mute:
            return "normal"
        return "vibrate" if self.vibrate else "silent"


def keyword_predicate(
    match_by: CalendarEventMatchBy,
    title: Optional[str],
    description: Optional[str],
    keywords: Iterable[str],
    inverse_match: bool,
) -> bool:
    """Return whether an event's text satisfies a rule's keyword settings."""

    matched = match_by.matches(title, description, keywords)
    return not matched if inverse_match else matched


def calendar_rule_triggered(rule: CalendarRule, events: Iterable[CalendarEvent]) -> bool:
    """Return True if any active event on the rule's calendars matches it.

    An empty calendar list means every calendar is considered.
    """

    if not rule.enabled:
        return False

    calendars = set(rule.calendar_ids)
    for event in events:
        if calendars and event.calendar_id not in calendars:
            continue
        if keyword_predicate(rule.match_by, event.title, event.description, rule.keywords, rule.inverse_match):
            return True
    return False


def schedule_window_contains(
    begin: TimeOfDay,
    end: TimeOfDay,
    days: Iterable[Weekday],
    moment: Moment,
) -> bool:
    """Return True if the weekly window covers the given moment.

    The end time is exclusive. When ``end < begin`` the window started on a
    listed day runs past midnight into the following day, so the early part
    of a day belongs to the previous day's window.
    """

    if begin == end:
        return False

    day_set = set(days)
    now = moment.time_of_day
    if begin < end:
        return moment.weekday in day_set and begin <= now < end

    if now >= begin and moment.weekday in day_set:
        return True
    return now < end and moment.weekday.previous() in day_set


def schedule_rule_triggered(rule: ScheduleRule, moment: Moment) -> bool:
    if not rule.enabled:
        return False
    return schedule_window_contains(rule.begin, rule.end, rule.days, moment)


def rule_triggered(rule: AnyRule, moment: Moment, events: Sequence[CalendarEvent]) -> bool:
    """Dispatch to the evaluation for the rule's kind."""

    if isinstance(rule, CalendarRule):
        return calendar_rule_triggered(rule, events)
    if isinstance(rule, ScheduleRule):
        return schedule_rule_triggered(rule, moment)
    raise TypeError(f"Unsupported rule type: {type(rule).__name__}")


def decide(rules: Iterable[AnyRule], moment: Moment, events: Sequence[CalendarEvent]) -> MuteDecision:
    """OR the per-rule results into one mute decision.

    Vibrate wins if any triggering rule asks for it; rules that do not
    trigger have no say.
    """

    triggered = tuple(rule for rule in rules if rule_triggered(rule, moment, events))
    return MuteDecision(
        mute=bool(triggered),
        vibrate=any(rule.vibrate for rule in triggered),
        triggered=triggered,
    )
