"""Versioned structured encoding of rules.

Rules are written to plain dicts (and JSON text) with a fixed field order so
encoding and decoding stay symmetric. The match mode is stored as the same
three flags the database uses and decoded through the same checked path.
"""

from __future__ import annotations

import json
from typing import Any, Iterable, List

from polite.core.errors import MatchModeError, RuleDecodeError
from polite.core.match_mode import CalendarEventMatchBy
from polite.core.models import AnyRule, CalendarRule, ScheduleRule
from polite.core.time_of_day import TimeOfDay, Weekday

CODEC_VERSION = 1
KIND_CALENDAR = "calendar"
KIND_SCHEDULE = "schedule"


def encode_rule(rule: AnyRule) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "version": CODEC_VERSION,
        "id": rule.id,
        "name": rule.name,
        "enabled": rule.enabled,
        "vibrate": rule.vibrate,
    }
    if isinstance(rule, CalendarRule):
        payload.update(
            {
                "kind": KIND_CALENDAR,
                "calendar_ids": list(rule.calendar_ids),
                "match_all": rule.match_by.all,
                "match_title": rule.match_by.title,
                "match_description": rule.match_by.description,
                "inverse_match": rule.inverse_match,
                "keywords": rule.sorted_keywords(),
            }
        )
    elif isinstance(rule, ScheduleRule):
        payload.update(
            {
                "kind": KIND_SCHEDULE,
                "begin": rule.begin.minutes,
                "end": rule.end.minutes,
                "days": sorted(int(day) for day in rule.days),
            }
        )
    else:
        raise TypeError(f"Unsupported rule type: {type(rule).__name__}")
    return payload


def decode_rule(payload: dict[str, Any]) -> AnyRule:
    if not isinstance(payload, dict):
        raise RuleDecodeError(f"Expected a rule object, got {type(payload).__name__}")
    version = payload.get("version")
    if version != CODEC_VERSION:
        raise RuleDecodeError(f"Unsupported rule encoding version: {version!r}")

    try:
        base = {
            "id": int(payload["id"]),
            "name": str(payload["name"]),
            "enabled": bool(payload["enabled"]),
            "vibrate": bool(payload["vibrate"]),
        }
        kind = payload["kind"]
        if kind == KIND_CALENDAR:
            match_by = CalendarEventMatchBy.from_flags(
                payload["match_all"],
                payload["match_title"],
                payload["match_description"],
            )
            return CalendarRule(
                **base,
                calendar_ids=[int(value) for value in payload["calendar_ids"]],
                match_by=match_by,
                inverse_match=bool(payload["inverse_match"]),
                keywords=set(payload["keywords"]),
            )
        if kind == KIND_SCHEDULE:
            return ScheduleRule(
                **base,
                begin=TimeOfDay(int(payload["begin"])),
                end=TimeOfDay(int(payload["end"])),
                days={Weekday(int(value)) for value in payload["days"]},
            )
    except MatchModeError as exc:
        raise RuleDecodeError(str(exc)) from exc
    except (KeyError, TypeError, ValueError) as exc:
        raise RuleDecodeError(f"Malformed rule payload: {exc}") from exc

    raise RuleDecodeError(f"Unknown rule kind: {kind!r}")


def dumps_rules(rules: Iterable[AnyRule]) -> str:
    return json.dumps([encode_rule(rule) for rule in rules], ensure_ascii=False, indent=2)


def loads_rules(text: str) -> List[AnyRule]:
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise RuleDecodeError(f"Invalid JSON: {exc}") from exc
    if not isinstance(data, list):
        raise RuleDecodeError("Expected a JSON list of rules")
    return [decode_rule(item) for item in data]
