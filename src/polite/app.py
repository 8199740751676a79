"""Application entry point for the polite mute daemon and rule tools."""

from __future__ import annotations

import argparse
import logging
import os
import sys
import time
from dataclasses import replace
from logging.handlers import RotatingFileHandler
from typing import Optional

from art import tprint
from rich.console import Console
from rich.table import Table

from polite import settings
from polite.adapters.calendar_source import JsonCalendarSource
from polite.adapters.clock import SystemClock
from polite.adapters.mute_sink import LoggingMuteSink, build_sink
from polite.adapters.sqlite_storage import SQLiteRuleRepository
from polite.core.captions import rule_caption
from polite.core.codec import dumps_rules, loads_rules
from polite.core.errors import PoliteError
from polite.core.match_mode import CalendarEventMatchBy
from polite.core.models import NEW_RULE, CalendarRule, ScheduleRule
from polite.core.processor import MuteController
from polite.core.time_of_day import TimeOfDay, Weekday

NAME = "POLITE"
FONT = "tarty-1"

console = Console()


def _print_banner() -> None:
    tprint(NAME, FONT, space=1)


def _configure_logging() -> None:
    config = settings.LOGGING or {}
    if not config.get("enabled", False):
        return

    level_name = str(config.get("level", "INFO")).upper()
    level = getattr(logging, level_name, logging.INFO)

    fmt = "%(asctime)s %(levelname)s %(name)s: %(message)s"
    datefmt = "%Y-%m-%d %H:%M:%S"
    formatter = logging.Formatter(fmt=fmt, datefmt=datefmt)

    handlers: list[logging.Handler] = []

    if config.get("console", True):
        console_handler = logging.StreamHandler()
        console_handler.setLevel(level)
        console_handler.setFormatter(formatter)
        handlers.append(console_handler)

    file_cfg = config.get("file", {})
    if file_cfg.get("enabled", False):
        path = settings.resolve_path(file_cfg.get("path", "logs/polite.log"))
        directory = os.path.dirname(path)
        if directory:
            os.makedirs(directory, exist_ok=True)

        max_bytes = int(file_cfg.get("max_bytes", 5 * 1024 * 1024))
        backup_count = int(file_cfg.get("backup_count", 5))
        file_handler = RotatingFileHandler(
            path,
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding="utf-8",
        )
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)

    if not handlers:
        return

    logging.basicConfig(level=level, handlers=handlers)


def _open_repository() -> SQLiteRuleRepository:
    repository = SQLiteRuleRepository(settings.DB_PATH)
    repository.init_db()
    return repository


def _build_controller(repository: SQLiteRuleRepository, sink=None) -> MuteController:
    clock = SystemClock(settings.POLL_CONFIG.timezone)
    events = JsonCalendarSource(settings.CALENDAR_EVENTS_PATH, default_tz=clock.tzinfo)
    return MuteController(
        repository=repository,
        events=events,
        clock=clock,
        sink=sink if sink is not None else build_sink(settings.SINK_CONFIG),
    )


def _run(args: argparse.Namespace) -> None:
    _print_banner()
    logger = logging.getLogger(__name__)
    logger.info("Starting polite")

    repository = _open_repository()
    controller = _build_controller(repository)
    logger.info("Selected mute sink - %s", settings.SINK_CONFIG.method)

    interval = settings.POLL_CONFIG.interval_seconds
    while True:
        try:
            controller.tick()
        except Exception:
            # Keep polling; the next tick retries from scratch.
            logger.exception("Error while evaluating rules")
        if args.once:
            return
        time.sleep(interval)


def _check(args: argparse.Namespace) -> None:
    repository = _open_repository()
    controller = _build_controller(repository, sink=LoggingMuteSink())
    decision = controller.evaluate()
    console.print(f"Ringer mode: [bold]{decision.ringer_mode}[/bold]")
    for rule in decision.triggered:
        console.print(f"  triggered by #{rule.id} {rule.name}")


def _list(args: argparse.Namespace) -> None:
    repository = _open_repository()
    table = Table(title="Rules")
    table.add_column("id", justify="right")
    table.add_column("kind")
    table.add_column("name")
    table.add_column("enabled")
    table.add_column("vibrate")
    table.add_column("details")
    for rule in repository.load_all_rules():
        if isinstance(rule, CalendarRule):
            kind = f"calendar ({rule.match_by.name.lower()})"
            if rule.inverse_match:
                kind += ", inverse"
        else:
            kind = "schedule"
        table.add_row(
            str(rule.id),
            kind,
            rule.name,
            "yes" if rule.enabled else "no",
            "yes" if rule.vibrate else "no",
            rule_caption(rule),
        )
    console.print(table)


def _add_schedule(args: argparse.Namespace) -> None:
    days = {Weekday.parse(value) for value in args.days.split(",") if value.strip()}
    rule = ScheduleRule(
        name=args.name,
        enabled=not args.disabled,
        vibrate=args.vibrate,
        begin=TimeOfDay.parse(args.begin),
        end=TimeOfDay.parse(args.end),
        days=days,
    )
    rule_id = _open_repository().create_schedule_rule(rule)
    console.print(f"Created schedule rule #{rule_id}")


def _add_calendar(args: argparse.Namespace) -> None:
    rule = CalendarRule(
        name=args.name,
        enabled=not args.disabled,
        vibrate=args.vibrate,
        calendar_ids=args.calendar or [],
        match_by=CalendarEventMatchBy.parse(args.match),
        inverse_match=args.inverse,
        keywords=set(args.keyword or []),
    )
    rule_id = _open_repository().create_calendar_rule(rule)
    console.print(f"Created calendar rule #{rule_id}")


def _set_enabled(args: argparse.Namespace, enabled: bool) -> None:
    repository = _open_repository()
    rule = repository.get_rule(args.rule_id)
    rule.enabled = enabled
    repository.save_rule(rule)
    console.print(f"Rule #{rule.id} {'enabled' if enabled else 'disabled'}")


def _delete(args: argparse.Namespace) -> None:
    _open_repository().delete(args.rule_id)
    console.print(f"Deleted rule #{args.rule_id}")


def _export(args: argparse.Namespace) -> None:
    rules = _open_repository().load_all_rules()
    with open(args.path, "w", encoding="utf-8") as handle:
        handle.write(dumps_rules(rules))
    console.print(f"Exported {len(rules)} rules to {args.path}")


def _import(args: argparse.Namespace) -> None:
    with open(args.path, "r", encoding="utf-8") as handle:
        rules = loads_rules(handle.read())
    repository = _open_repository()
    for rule in rules:
        # Imported rules always get fresh ids in this database.
        repository.save_rule(replace(rule, id=NEW_RULE))
    console.print(f"Imported {len(rules)} rules from {args.path}")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="polite")
    subparsers = parser.add_subparsers(dest="command")

    run_parser = subparsers.add_parser("run", help="Start the mute daemon")
    run_parser.add_argument("--once", action="store_true", help="Evaluate a single time and exit")

    subparsers.add_parser("check", help="Show the current decision without muting")
    subparsers.add_parser("list", help="List all rules")

    schedule_parser = subparsers.add_parser("add-schedule", help="Create a weekly schedule rule")
    schedule_parser.add_argument("--name", default="")
    schedule_parser.add_argument("--begin", required=True, help="HH:MM")
    schedule_parser.add_argument("--end", required=True, help="HH:MM, earlier than begin to cross midnight")
    schedule_parser.add_argument("--days", default="mon,tue,wed,thu,fri", help="Comma separated day names")
    schedule_parser.add_argument("--vibrate", action="store_true")
    schedule_parser.add_argument("--disabled", action="store_true")

    calendar_parser = subparsers.add_parser("add-calendar", help="Create a calendar event rule")
    calendar_parser.add_argument("--name", default="")
    calendar_parser.add_argument(
        "--match",
        default="all",
        help="all, title, description, or title_and_description",
    )
    calendar_parser.add_argument("--keyword", action="append", help="Repeat for several keywords")
    calendar_parser.add_argument("--calendar", action="append", type=int, help="Limit to calendar id")
    calendar_parser.add_argument("--inverse", action="store_true", help="Mute when keywords do NOT match")
    calendar_parser.add_argument("--vibrate", action="store_true")
    calendar_parser.add_argument("--disabled", action="store_true")

    for command in ("enable", "disable", "delete"):
        command_parser = subparsers.add_parser(command, help=f"{command.title()} a rule by id")
        command_parser.add_argument("rule_id", type=int)

    export_parser = subparsers.add_parser("export", help="Write all rules to a JSON file")
    export_parser.add_argument("path")
    import_parser = subparsers.add_parser("import", help="Create rules from a JSON export")
    import_parser.add_argument("path")

    return parser


def main(argv: Optional[list[str]] = None) -> None:
    parser = _build_parser()
    args = parser.parse_args(argv)
    _configure_logging()

    handlers = {
        "check": _check,
        "list": _list,
        "add-schedule": _add_schedule,
        "add-calendar": _add_calendar,
        "enable": lambda parsed: _set_enabled(parsed, True),
        "disable": lambda parsed: _set_enabled(parsed, False),
        "delete": _delete,
        "export": _export,
        "import": _import,
    }
    handler = handlers.get(args.command)
    if handler is None:
        if args.command is None:
            args.once = False
        _run(args)
        return

    try:
        handler(args)
    except (PoliteError, ValueError) as exc:
        console.print(f"[red]Error:[/red] {exc}")
        sys.exit(1)


if __name__ == "__main__":
    main()
