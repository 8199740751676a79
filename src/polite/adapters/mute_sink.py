"""Mute sink adapters.

Sinks receive the aggregate decision on every tick. The command sink only
acts when the ringer mode changes so the OS is not poked every poll.
"""

from __future__ import annotations

import logging
import subprocess
from typing import Optional

from polite.core.config import SinkConfig
from polite.core.rules_engine import MuteDecision

LOGGER = logging.getLogger(__name__)


class LoggingMuteSink:
    """Sink that only records decisions in the log."""

    def __init__(self) -> None:
        self.ringer_mode: Optional[str] = None

    def apply(self, decision: MuteDecision) -> None:
        if decision.ringer_mode != self.ringer_mode:
            LOGGER.info("Would set ringer mode to %s", decision.ringer_mode)
        self.ringer_mode = decision.ringer_mode


class CommandMuteSink:
    """Sink that runs a configured shell command per ringer mode."""

    def __init__(self, config: SinkConfig) -> None:
        self._commands = {
            "silent": config.silent_command,
            "vibrate": config.vibrate_command or config.silent_command,
            "normal": config.unmute_command,
        }
        self.ringer_mode: Optional[str] = None

    def apply(self, decision: MuteDecision) -> None:
        mode = decision.ringer_mode
        if mode == self.ringer_mode:
            return

        command = self._commands[mode]
        if command:
            LOGGER.info("Setting ringer mode to %s: %s", mode, " ".join(command))
            subprocess.run(command, check=True)
        else:
            LOGGER.warning("No command configured for ringer mode %s", mode)
        self.ringer_mode = mode


def build_sink(config: SinkConfig):
    """Select the sink adapter named by the configuration."""

    if config.method == "log":
        return LoggingMuteSink()
    if config.method == "command":
        return CommandMuteSink(config)
    raise ValueError("sink.method must be 'log' or 'command'")
