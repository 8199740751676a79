from __future__ import annotations

import sqlite3
from pathlib import Path

import pytest

from polite.adapters.sqlite_storage import SQLiteRuleRepository
from polite.core.errors import MatchModeError, RuleNotFoundError
from polite.core.match_mode import CalendarEventMatchBy
from polite.core.models import NEW_RULE, CalendarRule, ScheduleRule
from polite.core.time_of_day import TimeOfDay, Weekday


@pytest.fixture
def db_path(tmp_path: Path) -> str:
    return str(tmp_path / "rules.db")


@pytest.fixture
def repository(db_path: str) -> SQLiteRuleRepository:
    repo = SQLiteRuleRepository(db_path)
    repo.init_db()
    return repo


def _calendar_rule(**overrides) -> CalendarRule:
    fields = dict(
        name="Meetings",
        vibrate=True,
        calendar_ids=[7, 2, 9],
        match_by=CalendarEventMatchBy.TITLE,
        inverse_match=False,
        keywords={"standup", "review"},
    )
    fields.update(overrides)
    return CalendarRule(**fields)


def _schedule_rule(**overrides) -> ScheduleRule:
    fields = dict(
        name="Night",
        begin=TimeOfDay.of(22),
        end=TimeOfDay.of(6),
        days={Weekday.FRIDAY, Weekday.SUNDAY},
    )
    fields.update(overrides)
    return ScheduleRule(**fields)


def test_calendar_rule_round_trip(repository: SQLiteRuleRepository) -> None:
    rule = _calendar_rule()
    rule_id = repository.create_calendar_rule(rule)
    assert rule_id != NEW_RULE
    assert rule.id == NEW_RULE

    [loaded] = repository.load_all_calendar_rules()
    rule.id = rule_id
    assert loaded == rule
    assert loaded.calendar_ids == [7, 2, 9]


def test_schedule_rule_round_trip_all_day_sets(repository: SQLiteRuleRepository) -> None:
    day_sets = [set(), {Weekday.MONDAY}, set(Weekday), {Weekday.SATURDAY, Weekday.SUNDAY}]
    created = []
    for days in day_sets:
        rule = _schedule_rule(days=days)
        rule.id = repository.create_schedule_rule(rule)
        created.append(rule)

    assert repository.load_all_schedule_rules() == created


def test_load_then_save_is_a_no_op(repository: SQLiteRuleRepository, db_path: str) -> None:
    repository.create_calendar_rule(_calendar_rule())
    repository.create_schedule_rule(_schedule_rule())

    def dump() -> list:
        with sqlite3.connect(db_path) as conn:
            return [
                conn.execute(f"SELECT * FROM {table} ORDER BY 1, 2").fetchall()
                for table in ("rule", "calendar_rule", "calendar_rule_calendar", "calendar_rule_keyword", "schedule_rule")
            ]

    before = dump()
    for rule in repository.load_all_rules():
        repository.save_rule(rule)
    assert dump() == before


def test_save_replaces_calendar_and_keyword_rows(repository: SQLiteRuleRepository) -> None:
    rule = _calendar_rule()
    rule.id = repository.create_calendar_rule(rule)

    rule.name = "Renamed"
    rule.calendar_ids = [1]
    rule.keywords = {"planning"}
    rule.match_by = CalendarEventMatchBy.DESCRIPTION
    rule.inverse_match = True
    repository.save_calendar_rule(rule)

    assert repository.get_rule(rule.id) == rule


def test_match_all_keywords_are_scrubbed_on_save(repository: SQLiteRuleRepository) -> None:
    rule = _calendar_rule(match_by=CalendarEventMatchBy.ALL)
    rule.keywords = {"leftover"}
    rule.id = repository.create_calendar_rule(rule)
    assert repository.get_rule(rule.id).keywords == set()

    rule.match_by = CalendarEventMatchBy.TITLE
    rule.keywords = {"standup"}
    repository.save_calendar_rule(rule)
    rule.match_by = CalendarEventMatchBy.ALL
    repository.save_calendar_rule(rule)
    assert repository.get_rule(rule.id).keywords == set()


def test_save_schedule_rule_overwrites_window_and_days(repository: SQLiteRuleRepository) -> None:
    rule = _schedule_rule()
    rule.id = repository.create_schedule_rule(rule)

    rule.begin = TimeOfDay.of(9)
    rule.end = TimeOfDay.of(17, 30)
    rule.days = {Weekday.MONDAY, Weekday.WEDNESDAY}
    rule.enabled = False
    repository.save_schedule_rule(rule)

    assert repository.get_rule(rule.id) == rule


def test_filters(repository: SQLiteRuleRepository) -> None:
    on_id = repository.create_schedule_rule(_schedule_rule(name="on"))
    off_id = repository.create_schedule_rule(_schedule_rule(name="off", enabled=False))
    cal_id = repository.create_calendar_rule(_calendar_rule())

    assert [rule.id for rule in repository.load_all_schedule_rules(enabled=True)] == [on_id]
    assert [rule.id for rule in repository.load_all_schedule_rules(enabled=False)] == [off_id]
    assert [rule.id for rule in repository.load_all_schedule_rules(ids=[off_id])] == [off_id]
    assert repository.load_all_schedule_rules(ids=[]) == []
    assert [rule.id for rule in repository.load_enabled_rules()] == [on_id, cal_id]


def test_create_rejects_persisted_rule(repository: SQLiteRuleRepository) -> None:
    with pytest.raises(ValueError):
        repository.create_schedule_rule(_schedule_rule(id=12))


def test_save_and_delete_unknown_ids(repository: SQLiteRuleRepository) -> None:
    with pytest.raises(RuleNotFoundError):
        repository.save_schedule_rule(_schedule_rule())
    with pytest.raises(RuleNotFoundError):
        repository.save_calendar_rule(_calendar_rule(id=99))
    with pytest.raises(RuleNotFoundError):
        repository.delete(NEW_RULE)
    with pytest.raises(RuleNotFoundError):
        repository.delete(99)
    with pytest.raises(RuleNotFoundError):
        repository.get_rule(99)


def test_save_with_id_of_other_kind_is_not_found(repository: SQLiteRuleRepository) -> None:
    schedule_id = repository.create_schedule_rule(_schedule_rule())
    with pytest.raises(RuleNotFoundError):
        repository.save_calendar_rule(_calendar_rule(id=schedule_id))
    assert repository.get_rule(schedule_id).name == "Night"


def test_delete_cascades(repository: SQLiteRuleRepository, db_path: str) -> None:
    rule_id = repository.create_calendar_rule(_calendar_rule())
    repository.delete(rule_id)

    assert repository.load_all_rules() == []
    with sqlite3.connect(db_path) as conn:
        assert conn.execute("SELECT COUNT(*) FROM calendar_rule_keyword").fetchone()[0] == 0
        assert conn.execute("SELECT COUNT(*) FROM calendar_rule_calendar").fetchone()[0] == 0
        assert conn.execute("SELECT COUNT(*) FROM calendar_rule").fetchone()[0] == 0


def test_corrupt_match_flags_skip_only_that_rule(repository: SQLiteRuleRepository, db_path: str) -> None:
    good_id = repository.create_calendar_rule(_calendar_rule(name="good"))
    bad_id = repository.create_calendar_rule(_calendar_rule(name="bad"))
    with sqlite3.connect(db_path) as conn:
        conn.execute("UPDATE calendar_rule SET match_all = 1, match_title = 1 WHERE id = ?", (bad_id,))

    assert [rule.id for rule in repository.load_all_calendar_rules()] == [good_id]
    with pytest.raises(MatchModeError):
        repository.get_rule(bad_id)


def test_out_of_range_schedule_times_skip_only_that_rule(repository: SQLiteRuleRepository, db_path: str) -> None:
    good_id = repository.create_schedule_rule(_schedule_rule(name="good"))
    bad_id = repository.create_schedule_rule(_schedule_rule(name="bad"))
    with sqlite3.connect(db_path) as conn:
        conn.execute("UPDATE schedule_rule SET end_minutes = 1440 WHERE id = ?", (bad_id,))

    assert [rule.id for rule in repository.load_all_schedule_rules()] == [good_id]
    assert [rule.id for rule in repository.load_enabled_rules()] == [good_id]
    with pytest.raises(ValueError):
        repository.get_rule(bad_id)
