"""Core configuration dataclasses.

We keep config parsing outside the core, but these dataclasses define the
shape the core expects so adapters and app layers can build safely.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional


@dataclass(frozen=True)
class PollConfig:
    """Polling loop settings."""

    interval_seconds: float
    timezone: Optional[str] = None


@dataclass(frozen=True)
class SinkConfig:
    """Mute sink selection and the commands used by the command sink."""

    method: str = "log"
    silent_command: list[str] = field(default_factory=list)
    vibrate_command: list[str] = field(default_factory=list)
    unmute_command: list[str] = field(default_factory=list)
