"""Generic (possibly partial, possibly BC) dates as stored in project files.

The serialized form is ``"0"`` for an unset date, otherwise
``[-]YYYYMMDDP``: an optional minus sign for BC, the year (at least one
digit, normally four), a two-digit month and day (either may be zero for a
partial date) and a single precision digit.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

UNSET = "0"

# February allows the 29th: a generic date does not always carry a year
# precise enough to rule it out.
_DAYS_IN_MONTH = (31, 29, 31, 30, 31, 30, 31, 31, 30, 31, 30, 31)


class DatePrecision(int, Enum):
    """How the stored date relates to the real one."""

    BEFORE = 0
    EXACT = 1
    APPROXIMATE = 2
    AFTER = 3


@dataclass(frozen=True, slots=True)
class GenDate:
    """A generic date value."""

    precision: DatePrecision
    year: int
    month: int
    day: int
    is_ad: bool = True

    @property
    def is_empty(self) -> bool:
        return self.year == 0 and self.month == 0 and self.day == 0

    @classmethod
    def empty(cls) -> GenDate:
        return cls(DatePrecision.EXACT, 0, 0, 0)

    @classmethod
    def parse(cls, text: str) -> GenDate:
        """Parse the serialized form.  Raises ValueError when malformed."""
        if text == UNSET:
            return cls.empty()
        is_ad = not text.startswith("-")
        digits = text if is_ad else text[1:]
        if len(digits) < 6 or not digits.isascii() or not digits.isdigit():
            raise ValueError(f"Malformed generic date: {text!r}")
        year = int(digits[:-5])
        month = int(digits[-5:-3])
        day = int(digits[-3:-1])
        try:
            precision = DatePrecision(int(digits[-1]))
        except ValueError:
            raise ValueError(f"Bad precision in generic date: {text!r}") from None
        date = cls(precision, year, month, day, is_ad)
        date.validate()
        return date

    def validate(self) -> None:
        if self.is_empty:
            return
        if self.year < 1:
            raise ValueError("Generic date year must be positive")
        if not 0 <= self.month <= 12:
            raise ValueError(f"Generic date month out of range: {self.month}")
        if self.month == 0:
            if self.day != 0:
                raise ValueError("Generic date has a day but no month")
            return
        if not 0 <= self.day <= _DAYS_IN_MONTH[self.month - 1]:
            raise ValueError(f"Generic date day out of range: {self.day}")

    def to_xml_string(self) -> str:
        if self.is_empty:
            return UNSET
        sign = "" if self.is_ad else "-"
        return f"{sign}{self.year:04d}{self.month:02d}{self.day:02d}{int(self.precision)}"


def is_valid_gendate(text: str) -> bool:
    try:
        GenDate.parse(text)
    except ValueError:
        return False
    return True
