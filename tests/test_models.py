from __future__ import annotations

from polite.core.match_mode import CalendarEventMatchBy
from polite.core.models import (
    DEFAULT_RULE_NAME,
    NEW_RULE,
    CalendarRule,
    ScheduleRule,
    copy_rule,
    scrub,
)
from polite.core.time_of_day import TimeOfDay, Weekday


def test_new_rules_have_defaults() -> None:
    calendar = CalendarRule()
    assert calendar.id == NEW_RULE
    assert calendar.is_new
    assert calendar.name == DEFAULT_RULE_NAME
    assert calendar.enabled and not calendar.vibrate
    assert calendar.match_by is CalendarEventMatchBy.ALL
    assert calendar.calendar_ids == [] and calendar.keywords == set()

    schedule = ScheduleRule()
    assert schedule.begin == TimeOfDay.of(12) and schedule.end == TimeOfDay.of(13)
    assert schedule.days == {Weekday.MONDAY, Weekday.TUESDAY, Weekday.WEDNESDAY, Weekday.THURSDAY, Weekday.FRIDAY}


def test_blank_name_falls_back_to_default() -> None:
    assert ScheduleRule(name="   ").name == DEFAULT_RULE_NAME


def test_keywords_are_normalized() -> None:
    rule = CalendarRule(match_by=CalendarEventMatchBy.TITLE, keywords={" Standup ", "standup", "", "Review"})
    assert rule.keywords == {"standup", "review"}
    assert rule.sorted_keywords() == ["review", "standup"]


def test_default_instances_do_not_share_state() -> None:
    first, second = CalendarRule(), CalendarRule()
    first.keywords.add("x")
    first.calendar_ids.append(1)
    assert second.keywords == set() and second.calendar_ids == []

    a, b = ScheduleRule(), ScheduleRule()
    a.days.clear()
    assert b.days


def test_scrub_clears_keywords_for_match_all_without_mutating() -> None:
    rule = CalendarRule(id=3, match_by=CalendarEventMatchBy.TITLE, keywords={"standup"})
    rule.match_by = CalendarEventMatchBy.ALL

    cleaned = scrub(rule)

    assert cleaned.keywords == set()
    assert rule.keywords == {"standup"}
    assert cleaned.id == 3


def test_scrub_keeps_keywords_for_text_modes() -> None:
    rule = CalendarRule(match_by=CalendarEventMatchBy.DESCRIPTION, keywords={"standup"})
    rule.keywords.add(" Planning ")
    assert scrub(rule).keywords == {"standup", "planning"}


def test_wraps_midnight() -> None:
    assert ScheduleRule(begin=TimeOfDay.of(22), end=TimeOfDay.of(6)).wraps_midnight
    assert not ScheduleRule(begin=TimeOfDay.of(8), end=TimeOfDay.of(8)).wraps_midnight


def test_copy_rule_is_independent() -> None:
    rule = CalendarRule(id=5, match_by=CalendarEventMatchBy.TITLE, keywords={"a"}, calendar_ids=[1])
    duplicate = copy_rule(rule)
    duplicate.keywords.add("b")
    duplicate.calendar_ids.append(2)
    assert rule.keywords == {"a"} and rule.calendar_ids == [1]
    assert duplicate.id == 5
