"""Exception classes for polite."""

from __future__ import annotations


class PoliteError(Exception):
    """Base exception for all polite errors."""


class RuleNotFoundError(PoliteError, LookupError):
    """Raised when a rule id is not persisted or absent from storage."""

    def __init__(self, rule_id: int) -> None:
        super().__init__(f"Rule not found: {rule_id}")
        self.rule_id = rule_id


class MatchModeError(PoliteError, ValueError):
    """Raised when stored match-mode flags encode an impossible combination."""


class RuleDecodeError(PoliteError, ValueError):
    """Raised when an encoded rule cannot be decoded."""
