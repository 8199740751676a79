"""Calendar event match modes (core domain)."""

from __future__ import annotations

from enum import Enum
from typing import Iterable, Optional

from polite.core.errors import MatchModeError


class CalendarEventMatchBy(Enum):
    """Which event text fields are searched for keywords.

    Each member carries the three flags used for storage: ``(all, title,
    description)``. TITLE_AND_DESCRIPTION searches both fields and matches
    when either one contains a keyword.
    """

    ALL = (True, False, False)
    TITLE = (False, True, False)
    DESCRIPTION = (False, False, True)
    TITLE_AND_DESCRIPTION = (False, True, True)

    @property
    def all(self) -> bool:
        return self.value[0]

    @property
    def title(self) -> bool:
        return self.value[1]

    @property
    def description(self) -> bool:
        return self.value[2]

    @classmethod
    def having(cls, all: bool, title: bool, description: bool) -> Optional["CalendarEventMatchBy"]:
        """Return the mode for the stored flags, or None if they are inconsistent."""

        flags = (bool(all), bool(title), bool(description))
        for mode in cls:
            if mode.value == flags:
                return mode
        return None

    @classmethod
    def from_flags(cls, all: bool, title: bool, description: bool) -> "CalendarEventMatchBy":
        mode = cls.having(all, title, description)
        if mode is None:
            raise MatchModeError(
                f"Impossible match mode flags: all={bool(all)}, title={bool(title)}, "
                f"description={bool(description)}"
            )
        return mode

    @classmethod
    def parse(cls, text: str) -> "CalendarEventMatchBy":
        normalized = text.strip().lower().replace("-", "_")
        if normalized == "both":
            return cls.TITLE_AND_DESCRIPTION
        for mode in cls:
            if mode.name.lower() == normalized:
                return mode
        raise ValueError(f"Unknown match mode: {text!r}")

    def matches(self, title: Optional[str], description: Optional[str], keywords: Iterable[str]) -> bool:
        """Keyword predicate before inversion.

        Comparison uses ``str.casefold`` so it does not depend on the process
        locale. Absent fields never match.
        """

        if self is CalendarEventMatchBy.ALL:
            return True

        folded = [word.casefold() for word in keywords if word]
        if not folded:
            return False

        haystacks = []
        if self.title and title:
            haystacks.append(title.casefold())
        if self.description and description:
            haystacks.append(description.casefold())

        return any(word in text for text in haystacks for word in folded)
