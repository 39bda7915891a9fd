"""Availability scoring from free-text "next appointment" descriptions.

KeywordAvailabilityParser is a keyword heuristic standing in for a real
date parser. Anything that implements ``score(text) -> int`` can replace it.
Bands are checked in order; the first hit wins.
"""

from datetime import date
from typing import Protocol

# Sunday first, so (index - today) % 7 counts days forward
WEEKDAYS: tuple[str, ...] = (
    "sunday",
    "monday",
    "tuesday",
    "wednesday",
    "thursday",
    "friday",
    "saturday",
)

MONTH_ABBREVIATIONS: tuple[str, ...] = (
    "jan",
    "feb",
    "mar",
    "apr",
    "may",
    "jun",
    "jul",
    "aug",
    "sep",
    "oct",
    "nov",
    "dec",
)

IMMEDIATE_PHRASES = ("today", "same day", "immediately")
NEXT_DAY_PHRASES = ("tomorrow", "next day")

WEEK_PHRASE_SCORES: tuple[tuple[tuple[str, ...], int], ...] = (
    (("this week",), 80),
    (("next week",), 60),
    (("within 2 weeks", "within two weeks"), 50),
)

MONTH_PHRASE_SCORES: tuple[tuple[tuple[str, ...], int], ...] = (
    (("next month",), 40),
    (("within a month", "within 1 month"), 35),
    (("within 2 months", "within two months"), 25),
    (("within 3 months", "within three months"), 15),
)

UNRECOGNIZED_SCORE = 20
NO_AVAILABILITY_SCORE = 0


class AvailabilityParser(Protocol):
    """Scores free-text availability on 0-100, sooner is higher."""

    def score(self, text: str | None) -> int: ...


def _first_phrase_score(text: str, table: tuple[tuple[tuple[str, ...], int], ...]) -> int | None:
    for phrases, score in table:
        if any(phrase in text for phrase in phrases):
            return score
    return None


class KeywordAvailabilityParser:
    """Keyword availability scoring relative to a reference date.

    Args:
        as_of: Reference date for weekday and month distances; defaults to
            today, read at each call
    """

    def __init__(self, as_of: date | None = None):
        self._as_of = as_of

    @property
    def as_of(self) -> date:
        return self._as_of or date.today()

    def _weekday_score(self, text: str) -> int | None:
        today_index = (self.as_of.weekday() + 1) % 7  # date.weekday() is Monday=0
        for index, weekday in enumerate(WEEKDAYS):
            if weekday in text:
                days_until = (index - today_index) % 7 or 7
                return max(30, 100 - days_until * 10)
        return None

    def _month_score(self, text: str) -> int | None:
        current_index = self.as_of.month - 1
        for index, month in enumerate(MONTH_ABBREVIATIONS):
            if month in text:
                months_until = (index - current_index) % 12 or 12
                return max(10, 50 - months_until * 5)
        return None

    def score(self, text: str | None) -> int:
        """Score availability text.

        Args:
            text: e.g. "Tomorrow, Jan 22", "Friday", "within 2 weeks"

        Returns:
            0-100; 0 for missing text, 20 for text with no recognized phrase
        """
        if not text or not text.strip():
            return NO_AVAILABILITY_SCORE

        lowered = text.lower()
        if any(phrase in lowered for phrase in IMMEDIATE_PHRASES):
            return 100
        if any(phrase in lowered for phrase in NEXT_DAY_PHRASES):
            return 95

        weekday = self._weekday_score(lowered)
        if weekday is not None:
            return weekday

        week_phrase = _first_phrase_score(lowered, WEEK_PHRASE_SCORES)
        if week_phrase is not None:
            return week_phrase

        month = self._month_score(lowered)
        if month is not None:
            return month

        month_phrase = _first_phrase_score(lowered, MONTH_PHRASE_SCORES)
        if month_phrase is not None:
            return month_phrase

        return UNRECOGNIZED_SCORE
