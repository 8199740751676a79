"""SQLite storage adapter.

Implements the core RuleRepositoryPort using a simple SQLite database.
"""

from __future__ import annotations

import logging
import sqlite3
from typing import Iterable, List, Optional, Union

from polite.core.errors import MatchModeError, RuleNotFoundError
from polite.core.match_mode import CalendarEventMatchBy
from polite.core.models import NEW_RULE, AnyRule, CalendarRule, ScheduleRule, scrub
from polite.core.time_of_day import TimeOfDay, Weekday

LOGGER = logging.getLogger(__name__)

# Indexed by Weekday value, Monday first.
DAY_COLUMNS = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")

_CALENDAR_SELECT = """
    SELECT rule.id, rule.name, rule.enabled, rule.vibrate,
           calendar_rule.match_all, calendar_rule.match_title,
           calendar_rule.match_description, calendar_rule.inverse_match
    FROM rule INNER JOIN calendar_rule ON calendar_rule.id = rule.id
"""

_SCHEDULE_SELECT = f"""
    SELECT rule.id, rule.name, rule.enabled, rule.vibrate,
           schedule_rule.begin_minutes, schedule_rule.end_minutes,
           {', '.join('schedule_rule.' + column for column in DAY_COLUMNS)}
    FROM rule INNER JOIN schedule_rule ON schedule_rule.id = rule.id
"""


class SQLiteRuleRepository:
    """Thin SQLite wrapper that satisfies the RuleRepositoryPort contract."""

    def __init__(self, db_path: str) -> None:
        self._db_path = db_path

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._db_path)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
        return conn

    def init_db(self) -> None:
        """Create tables if they do not exist.

        Tables:
        - rule: fields shared by every rule kind
        - calendar_rule: match mode flags for calendar rules
        - calendar_rule_calendar: calendars a calendar rule is limited to
        - calendar_rule_keyword: keywords of a calendar rule
        - schedule_rule: weekly window with one flag column per weekday
        """

        with self._connect() as conn:
            # rule holds the base row every variant joins against.
            # Fields:
            # - id: auto-increment primary key, never reused
            # - name: display name
            # - enabled: disabled rules are skipped during evaluation
            # - vibrate: vibrate instead of silent while triggered
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS rule (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    name TEXT NOT NULL,
                    enabled INTEGER NOT NULL,
                    vibrate INTEGER NOT NULL
                )
                """
            )
            # The match mode is kept as three flags; only four combinations
            # are valid and loading rejects the rest.
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS calendar_rule (
                    id INTEGER PRIMARY KEY REFERENCES rule(id) ON DELETE CASCADE,
                    match_all INTEGER NOT NULL,
                    match_title INTEGER NOT NULL,
                    match_description INTEGER NOT NULL,
                    inverse_match INTEGER NOT NULL
                )
                """
            )
            # Rows are read back in rowid order to keep the user's ordering.
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS calendar_rule_calendar (
                    rule_id INTEGER NOT NULL REFERENCES rule(id) ON DELETE CASCADE,
                    calendar_id INTEGER NOT NULL
                )
                """
            )
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS calendar_rule_keyword (
                    rule_id INTEGER NOT NULL REFERENCES rule(id) ON DELETE CASCADE,
                    word TEXT NOT NULL,
                    UNIQUE (rule_id, word)
                )
                """
            )
            day_columns = ",\n".join(f"{column} INTEGER NOT NULL" for column in DAY_COLUMNS)
            conn.execute(
                f"""
                CREATE TABLE IF NOT EXISTS schedule_rule (
                    id INTEGER PRIMARY KEY REFERENCES rule(id) ON DELETE CASCADE,
                    begin_minutes INTEGER NOT NULL,
                    end_minutes INTEGER NOT NULL,
                    {day_columns}
                )
                """
            )

    @staticmethod
    def _filter_clause(enabled: Optional[bool], ids: Optional[List[int]]) -> tuple[str, list]:
        conditions: list[str] = []
        params: list = []
        if enabled is not None:
            conditions.append("rule.enabled = ?")
            params.append(int(enabled))
        if ids is not None:
            conditions.append(f"rule.id IN ({', '.join('?' for _ in ids)})")
            params.extend(ids)
        if not conditions:
            return "", params
        return " WHERE " + " AND ".join(conditions), params

    @staticmethod
    def _calendar_rule_from_row(conn: sqlite3.Connection, row: sqlite3.Row) -> CalendarRule:
        # Raises MatchModeError before any child rows are read.
        match_by = CalendarEventMatchBy.from_flags(
            row["match_all"], row["match_title"], row["match_description"]
        )
        calendar_rows = conn.execute(
            "SELECT calendar_id FROM calendar_rule_calendar WHERE rule_id = ? ORDER BY rowid",
            (row["id"],),
        ).fetchall()
        keyword_rows = conn.execute(
            "SELECT word FROM calendar_rule_keyword WHERE rule_id = ? ORDER BY word",
            (row["id"],),
        ).fetchall()
        return CalendarRule(
            id=int(row["id"]),
            name=row["name"],
            enabled=bool(row["enabled"]),
            vibrate=bool(row["vibrate"]),
            calendar_ids=[int(item["calendar_id"]) for item in calendar_rows],
            match_by=match_by,
            inverse_match=bool(row["inverse_match"]),
            keywords={item["word"] for item in keyword_rows},
        )

    @staticmethod
    def _schedule_rule_from_row(row: sqlite3.Row) -> ScheduleRule:
        return ScheduleRule(
            id=int(row["id"]),
            name=row["name"],
            enabled=bool(row["enabled"]),
            vibrate=bool(row["vibrate"]),
            begin=TimeOfDay(int(row["begin_minutes"])),
            end=TimeOfDay(int(row["end_minutes"])),
            days={Weekday(index) for index, column in enumerate(DAY_COLUMNS) if row[column]},
        )

    def load_all_calendar_rules(
        self, enabled: Optional[bool] = None, ids: Optional[Iterable[int]] = None
    ) -> List[CalendarRule]:
        """Return calendar rules, skipping rows with corrupt match flags."""

        id_list = list(ids) if ids is not None else None
        if id_list == []:
            return []
        where, params = self._filter_clause(enabled, id_list)

        rules: List[CalendarRule] = []
        with self._connect() as conn:
            rows = conn.execute(f"{_CALENDAR_SELECT}{where} ORDER BY rule.id", params).fetchall()
            for row in rows:
                try:
                    rules.append(self._calendar_rule_from_row(conn, row))
                except MatchModeError as exc:
                    LOGGER.warning("Skipping calendar rule %s: %s", row["id"], exc)
        return rules

    def load_all_schedule_rules(
        self, enabled: Optional[bool] = None, ids: Optional[Iterable[int]] = None
    ) -> List[ScheduleRule]:
        """Return schedule rules, skipping rows with out-of-range times."""

        id_list = list(ids) if ids is not None else None
        if id_list == []:
            return []
        where, params = self._filter_clause(enabled, id_list)

        with self._connect() as conn:
            rows = conn.execute(f"{_SCHEDULE_SELECT}{where} ORDER BY rule.id", params).fetchall()

        rules: List[ScheduleRule] = []
        for row in rows:
            try:
                rules.append(self._schedule_rule_from_row(row))
            except ValueError as exc:
                LOGGER.warning("Skipping schedule rule %s: %s", row["id"], exc)
        return rules

    def load_all_rules(self, enabled: Optional[bool] = None) -> List[AnyRule]:
        """Return rules of both kinds ordered by id."""

        rules: List[AnyRule] = [
            *self.load_all_calendar_rules(enabled=enabled),
            *self.load_all_schedule_rules(enabled=enabled),
        ]
        return sorted(rules, key=lambda rule: rule.id)

    def load_enabled_rules(self) -> List[AnyRule]:
        return self.load_all_rules(enabled=True)

    def get_rule(self, rule_id: int) -> AnyRule:
        """Load a single rule of either kind.

        Unlike the bulk loaders, corrupt match flags raise MatchModeError.
        """

        with self._connect() as conn:
            row = conn.execute(f"{_CALENDAR_SELECT} WHERE rule.id = ?", (rule_id,)).fetchone()
            if row is not None:
                return self._calendar_rule_from_row(conn, row)
            row = conn.execute(f"{_SCHEDULE_SELECT} WHERE rule.id = ?", (rule_id,)).fetchone()
        if row is None:
            raise RuleNotFoundError(rule_id)
        return self._schedule_rule_from_row(row)

    @staticmethod
    def _insert_base(conn: sqlite3.Connection, rule: AnyRule) -> int:
        cur = conn.execute(
            "INSERT INTO rule (name, enabled, vibrate) VALUES (?, ?, ?)",
            (rule.name, int(rule.enabled), int(rule.vibrate)),
        )
        return int(cur.lastrowid)

    @staticmethod
    def _update_base(conn: sqlite3.Connection, rule: AnyRule, table: str) -> None:
        # The variant table decides whether the id exists for this rule kind.
        exists = conn.execute(f"SELECT 1 FROM {table} WHERE id = ?", (rule.id,)).fetchone()
        if exists is None:
            raise RuleNotFoundError(rule.id)
        conn.execute(
            "UPDATE rule SET name = ?, enabled = ?, vibrate = ? WHERE id = ?",
            (rule.name, int(rule.enabled), int(rule.vibrate), rule.id),
        )

    @staticmethod
    def _write_calendar_children(conn: sqlite3.Connection, rule_id: int, rule: CalendarRule) -> None:
        conn.executemany(
            "INSERT INTO calendar_rule_calendar (rule_id, calendar_id) VALUES (?, ?)",
            [(rule_id, calendar_id) for calendar_id in rule.calendar_ids],
        )
        conn.executemany(
            "INSERT INTO calendar_rule_keyword (rule_id, word) VALUES (?, ?)",
            [(rule_id, word) for word in rule.sorted_keywords()],
        )

    @staticmethod
    def _require_new(rule: AnyRule) -> None:
        if rule.id != NEW_RULE:
            raise ValueError(f"Rule {rule.id} is already persisted; save it instead")

    @staticmethod
    def _require_persisted(rule: AnyRule) -> None:
        if rule.id == NEW_RULE:
            raise RuleNotFoundError(rule.id)

    def create_calendar_rule(self, rule: CalendarRule) -> int:
        """Insert a new calendar rule and return its assigned id."""

        self._require_new(rule)
        rule = scrub(rule)
        with self._connect() as conn:
            rule_id = self._insert_base(conn, rule)
            conn.execute(
                """
                INSERT INTO calendar_rule (id, match_all, match_title, match_description, inverse_match)
                VALUES (?, ?, ?, ?, ?)
                """,
                (
                    rule_id,
                    int(rule.match_by.all),
                    int(rule.match_by.title),
                    int(rule.match_by.description),
                    int(rule.inverse_match),
                ),
            )
            self._write_calendar_children(conn, rule_id, rule)
        LOGGER.info("Created calendar rule %s (%s)", rule_id, rule.name)
        return rule_id

    def save_calendar_rule(self, rule: CalendarRule) -> None:
        """Overwrite an existing calendar rule, replacing calendars and keywords."""

        self._require_persisted(rule)
        rule = scrub(rule)
        with self._connect() as conn:
            self._update_base(conn, rule, "calendar_rule")
            conn.execute(
                """
                UPDATE calendar_rule
                SET match_all = ?, match_title = ?, match_description = ?, inverse_match = ?
                WHERE id = ?
                """,
                (
                    int(rule.match_by.all),
                    int(rule.match_by.title),
                    int(rule.match_by.description),
                    int(rule.inverse_match),
                    rule.id,
                ),
            )
            conn.execute("DELETE FROM calendar_rule_calendar WHERE rule_id = ?", (rule.id,))
            conn.execute("DELETE FROM calendar_rule_keyword WHERE rule_id = ?", (rule.id,))
            self._write_calendar_children(conn, rule.id, rule)
        LOGGER.info("Saved calendar rule %s (%s)", rule.id, rule.name)

    @staticmethod
    def _day_flags(rule: ScheduleRule) -> list[int]:
        return [int(Weekday(index) in rule.days) for index in range(len(DAY_COLUMNS))]

    def create_schedule_rule(self, rule: ScheduleRule) -> int:
        """Insert a new schedule rule and return its assigned id."""

        self._require_new(rule)
        rule = scrub(rule)
        columns = ", ".join(DAY_COLUMNS)
        placeholders = ", ".join("?" for _ in range(len(DAY_COLUMNS) + 3))
        with self._connect() as conn:
            rule_id = self._insert_base(conn, rule)
            conn.execute(
                f"INSERT INTO schedule_rule (id, begin_minutes, end_minutes, {columns}) VALUES ({placeholders})",
                (rule_id, rule.begin.minutes, rule.end.minutes, *self._day_flags(rule)),
            )
        LOGGER.info("Created schedule rule %s (%s)", rule_id, rule.name)
        return rule_id

    def save_schedule_rule(self, rule: ScheduleRule) -> None:
        """Overwrite an existing schedule rule's window and day flags."""

        self._require_persisted(rule)
        rule = scrub(rule)
        assignments = ", ".join(f"{column} = ?" for column in DAY_COLUMNS)
        with self._connect() as conn:
            self._update_base(conn, rule, "schedule_rule")
            conn.execute(
                f"UPDATE schedule_rule SET begin_minutes = ?, end_minutes = ?, {assignments} WHERE id = ?",
                (rule.begin.minutes, rule.end.minutes, *self._day_flags(rule), rule.id),
            )
        LOGGER.info("Saved schedule rule %s (%s)", rule.id, rule.name)

    def save_rule(self, rule: AnyRule) -> Union[int, None]:
        """Create or save depending on whether the rule was persisted.

        Returns the new id when the rule was created.
        """

        if isinstance(rule, CalendarRule):
            if rule.is_new:
                return self.create_calendar_rule(rule)
            self.save_calendar_rule(rule)
            return None
        if isinstance(rule, ScheduleRule):
            if rule.is_new:
                return self.create_schedule_rule(rule)
            self.save_schedule_rule(rule)
            return None
        raise TypeError(f"Unsupported rule type: {type(rule).__name__}")

    def delete(self, rule_id: int) -> None:
        """Delete a rule and, through cascading keys, its variant rows."""

        if rule_id == NEW_RULE:
            raise RuleNotFoundError(rule_id)
        with self._connect() as conn:
            cur = conn.execute("DELETE FROM rule WHERE id = ?", (rule_id,))
            if cur.rowcount == 0:
                raise RuleNotFoundError(rule_id)
        LOGGER.info("Deleted rule %s", rule_id)
