"""Core mute controller.

This module is integration-agnostic. It only relies on ports for storage,
calendar events, time, and muting, enabling different adapters without
changes here.
"""

from __future__ import annotations

import logging
from typing import List, Optional

from polite.core.models import CalendarEvent, CalendarRule
from polite.core.ports import CalendarEventSourcePort, ClockPort, MuteSinkPort, RuleRepositoryPort
from polite.core.rules_engine import MuteDecision, decide
from polite.core.time_of_day import Moment

LOGGER = logging.getLogger(__name__)


class MuteController:
    """Orchestrates rule loading, evaluation, and handing the decision to the sink."""

    def __init__(
        self,
        repository: RuleRepositoryPort,
        events: CalendarEventSourcePort,
        clock: ClockPort,
        sink: MuteSinkPort,
    ) -> None:
        self._repository = repository
        self._events = events
        self._clock = clock
        self._sink = sink
        self._last: Optional[MuteDecision] = None

    @property
    def last_decision(self) -> Optional[MuteDecision]:
        return self._last

    def evaluate(self) -> MuteDecision:
        """Compute the current decision without touching the sink."""

        rules = self._repository.load_enabled_rules()
        now = self._clock.now()
        moment = Moment.from_datetime(now)

        # Calendar lookups can be slow, skip them when no calendar rule is on.
        events: List[CalendarEvent] = []
        if any(isinstance(rule, CalendarRule) for rule in rules):
            events = self._events.active_events(now)

        decision = decide(rules, moment, events)
        LOGGER.debug(
            "Evaluated %s rules against %s events at %s: %s",
            len(rules),
            len(events),
            now.isoformat(),
            decision.ringer_mode,
        )
        return decision

    def tick(self) -> MuteDecision:
        """Run one polling step."""

        decision = self.evaluate()
        previous = self._last
        if previous is None or previous.ringer_mode != decision.ringer_mode:
            names = ", ".join(rule.name for rule in decision.triggered) or "none"
            LOGGER.info("Ringer mode -> %s (rules: %s)", decision.ringer_mode, names)

        self._sink.apply(decision)
        self._last = decision
        return decision
