"""Six-digit MMDDYY identity used for URLs, primary keys and range sweeps."""

from __future__ import annotations

import functools
import os
import re
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import List

from .errors import InvalidDateError

# e.g. 040124 is April 1st, 2024
DATE_KEY_FORMAT = "%m%d%y"

_KEY_RE = re.compile(r"[0-9]{6}")


def local_today() -> date:
    tz_name = os.getenv("APP_TZ", "").strip()
    if tz_name:
        from zoneinfo import ZoneInfo

        return datetime.now(ZoneInfo(tz_name)).date()
    return date.today()


@functools.total_ordering
@dataclass(frozen=True)
class DateKey:
    """Calendar day as ``MMDDYY``.

    Equality and hashing use the raw string. Ordering compares the year
    field first and the month-day field second, so keys sort
    chronologically within a century even though the raw string does not.
    """

    value: str

    def __post_init__(self) -> None:
        if not isinstance(self.value, str) or not _KEY_RE.fullmatch(self.value):
            raise InvalidDateError(f"'{self.value}' is not a 6 digit MMDDYY date")

    @classmethod
    def parse(cls, raw: str) -> "DateKey":
        """Validate ``raw`` as MMDDYY and return its key."""
        if not isinstance(raw, str) or not _KEY_RE.fullmatch(raw):
            raise InvalidDateError(f"'{raw}' is not a 6 digit MMDDYY date")
        try:
            parsed = datetime.strptime(raw, DATE_KEY_FORMAT).date()
        except ValueError as exc:
            raise InvalidDateError(f"'{raw}' is not a valid calendar date") from exc
        return cls.from_date(parsed)

    @classmethod
    def from_date(cls, day: date) -> "DateKey":
        return cls(day.strftime(DATE_KEY_FORMAT))

    @classmethod
    def today(cls) -> "DateKey":
        return cls.from_date(local_today())

    @classmethod
    def offset_from_today(cls, days: int) -> "DateKey":
        return cls.from_date(local_today() + timedelta(days=days))

    @classmethod
    def range(cls, past_days: int, future_days: int) -> List["DateKey"]:
        """Keys from ``today - past_days`` to ``today + future_days - 1``.

        Today belongs to the future span: ``future_days=1`` yields only
        today and ``future_days=0`` leaves it out.
        """
        if past_days < 0 or future_days < 0:
            raise ValueError("past_days and future_days must be non-negative")
        today = local_today()
        return [
            cls.from_date(today + timedelta(days=delta))
            for delta in range(-past_days, future_days)
        ]

    def to_date(self) -> date:
        return datetime.strptime(self.value, DATE_KEY_FORMAT).date()

    def sort_key(self) -> tuple[str, str]:
        return (self.value[4:6], self.value[0:4])

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, DateKey):
            return NotImplemented
        return self.sort_key() < other.sort_key()

    def __str__(self) -> str:
        return self.value
