"""Parsing of clock times, time-spent values and configured date formats.

Time values follow a small grammar::

    clock     := hour ":" minute
    hour      := digit{1,3}
    minute    := [0-5] digit
    time_spent := clock | digit{1,3} "h" | digit{1,3} "m"

The whole input has to match and nothing longer than five characters is
accepted.
"""

import re
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Optional

from time_tracking.exceptions import InvalidDate, InvalidTimeFormat

MAX_TIME_LENGTH = 5
MAX_NUMBER_DIGITS = 3
DEFAULT_DATE_FORMAT = "MM/DD/YYYY"

_DIGITS = "0123456789"
_DATE_TOKENS = re.compile(r"YYYY|YY|MM|M|DD|D")
_STRFTIME = {
    "YYYY": "%Y",
    "YY": "%y",
    "MM": "%m",
    "M": "%m",
    "DD": "%d",
    "D": "%d",
}


@dataclass(frozen=True)
class ClockTime:
    """A wall-clock time. Hours above 23 roll over into following days."""

    hour: int
    minute: int

    def on(self, day: date) -> datetime:
        """Combine with ``day`` (counted from its midnight)."""
        midnight = datetime.combine(day, datetime.min.time())
        return midnight + timedelta(hours=self.hour, minutes=self.minute)


@dataclass(frozen=True)
class Duration:
    """An amount of time spent."""

    hours: int = 0
    minutes: int = 0


def _number(text: str, max_digits: int = MAX_NUMBER_DIGITS) -> Optional[int]:
    if not 1 <= len(text) <= max_digits:
        return None
    if any(char not in _DIGITS for char in text):
        return None
    return int(text)


def _split_clock(text: str) -> Optional[tuple[int, int]]:
    hour_text, sep, minute_text = text.partition(":")
    if not sep or len(minute_text) != 2:
        return None
    hour = _number(hour_text)
    minute = _number(minute_text, max_digits=2)
    if hour is None or minute is None or minute > 59:
        return None
    return hour, minute


def parse_clock_time(text: Optional[str]) -> ClockTime:
    """Parse ``H:MM`` into a :class:`ClockTime`.

    Raises:
        InvalidTimeFormat: If ``text`` is not a clock time
    """
    if not text or len(text) > MAX_TIME_LENGTH:
        raise InvalidTimeFormat(f"Invalid clock time: {text!r}")
    parts = _split_clock(text)
    if parts is None:
        raise InvalidTimeFormat(f"Invalid clock time: {text!r}")
    return ClockTime(*parts)


def parse_time_spent(text: Optional[str]) -> Duration:
    """Parse ``H:MM``, ``Nh`` or ``Nm`` into a :class:`Duration`.

    Examples:
        >>> parse_time_spent("2:30")
        Duration(hours=2, minutes=30)
        >>> parse_time_spent("45m")
        Duration(hours=0, minutes=45)

    Raises:
        InvalidTimeFormat: If ``text`` matches none of the forms
    """
    if not text or len(text) > MAX_TIME_LENGTH:
        raise InvalidTimeFormat(f"Invalid time spent: {text!r}")

    if ":" in text:
        parts = _split_clock(text)
        if parts is not None:
            return Duration(*parts)
    else:
        value = _number(text[:-1])
        if value is not None and text[-1] == "h":
            return Duration(hours=value)
        if value is not None and text[-1] == "m":
            return Duration(minutes=value)

    raise InvalidTimeFormat(f"Invalid time spent: {text!r}")


def to_strftime(pattern: str) -> str:
    """Translate a ``MM/DD/YYYY`` style pattern into a strftime pattern.

    The pattern is uppercased first so ``dd/mm/yyyy`` is accepted as well.
    """
    escaped = pattern.upper().replace("%", "%%")
    return _DATE_TOKENS.sub(lambda m: _STRFTIME[m.group(0)], escaped)


@dataclass(frozen=True)
class DateFormat:
    """The user's configured date format, with an optional ``h:mm`` suffix."""

    pattern: str = DEFAULT_DATE_FORMAT

    @property
    def date_pattern(self) -> str:
        return to_strftime(self.pattern)

    @property
    def datetime_pattern(self) -> str:
        return f"{self.date_pattern} %H:%M"

    def format_date(self, value: date) -> str:
        return value.strftime(self.date_pattern)

    def format_datetime(self, value: datetime) -> str:
        return value.strftime(self.datetime_pattern)

    def parse_datetime(self, text: Optional[str]) -> datetime:
        """Parse ``<date> h:mm`` or a bare date (midnight).

        Raises:
            InvalidDate: If ``text`` matches neither form
        """
        if text:
            text = text.strip()
            for fmt in (self.datetime_pattern, self.date_pattern):
                try:
                    return datetime.strptime(text, fmt)
                except ValueError:
                    continue
        raise InvalidDate(f"Invalid date {text!r} for format {self.pattern}")

    def parse_date(self, text: Optional[str]) -> date:
        """Parse a date, ignoring any time of day given with it."""
        return self.parse_datetime(text).date()
