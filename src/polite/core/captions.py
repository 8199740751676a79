"""Human-readable rule captions for list views."""

from __future__ import annotations

from typing import Iterable, List

from polite.core.models import AnyRule, CalendarRule, ScheduleRule
from polite.core.time_of_day import WEEKDAYS, WEEKEND, Weekday


def calendar_caption(rule: CalendarRule) -> str:
    return ", ".join(rule.sorted_keywords())


def _day_runs(days: Iterable[Weekday]) -> List[List[Weekday]]:
    runs: List[List[Weekday]] = []
    for day in sorted(set(days)):
        if runs and runs[-1][-1] + 1 == day:
            runs[-1].append(day)
        else:
            runs.append([day])
    # A week is circular: Sunday runs on into Monday.
    if len(runs) > 1 and runs[0][0] == Weekday.MONDAY and runs[-1][-1] == Weekday.SUNDAY:
        runs[-1].extend(runs.pop(0))
    return runs


def days_summary(days: Iterable[Weekday]) -> str:
    """Summarize a day set, Monday first.

    Runs of three or more consecutive days collapse to ``Mon-Wed``, and a
    run may wrap from Sunday to Monday (``Sat-Mon``).
    """

    day_set = frozenset(days)
    if not day_set:
        return "Never"
    if len(day_set) == 7:
        return "Every day"
    if day_set == WEEKDAYS:
        return "Weekdays"
    if day_set == WEEKEND:
        return "Weekends"

    parts: List[str] = []
    for run in _day_runs(day_set):
        if len(run) >= 3:
            parts.append(f"{run[0].short_name}-{run[-1].short_name}")
        else:
            parts.extend(day.short_name for day in run)
    return ", ".join(parts)


def schedule_caption(rule: ScheduleRule) -> str:
    caption = f"{days_summary(rule.days)} {rule.begin}-{rule.end}"
    if rule.begin == rule.end:
        return f"{caption} (never active)"
    if rule.wraps_midnight:
        return f"{caption} (next day)"
    return caption


def rule_caption(rule: AnyRule) -> str:
    if isinstance(rule, CalendarRule):
        return calendar_caption(rule)
    if isinstance(rule, ScheduleRule):
        return schedule_caption(rule)
    raise TypeError(f"Unsupported rule type: {type(rule).__name__}")
