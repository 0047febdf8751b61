"""Academic-year calendar window.

The report always shows the same 11 months: August of the academic start
year through June of the following year. July is never part of the window.
"""

from __future__ import annotations

import calendar
import re
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Iterable

ACADEMIC_START_MONTH = 8  # August
WINDOW_LENGTH = 11  # August → June

MONTH_KEY_RE = re.compile(r"^(\d{4})-(\d{2})")


@dataclass(frozen=True, order=True)
class CalendarMonth:
    """A calendar month without a day component.

    Attributes:
        year: Four-digit year.
        month: Month number (1-12).
    """
    year: int
    month: int

    @property
    def key(self) -> str:
        """`YYYY-MM` identifier used as the month key across the report."""
        return f"{self.year:04d}-{self.month:02d}"

    @property
    def start(self) -> datetime:
        return datetime(self.year, self.month, 1)

    @property
    def short_label(self) -> str:
        return calendar.month_abbr[self.month]

    @property
    def long_label(self) -> str:
        return f"{calendar.month_name[self.month]} {self.year}"


def academic_start_year(reference: date) -> int:
    """Return the year in which the academic year containing `reference` began."""
    if reference.month >= ACADEMIC_START_MONTH:
        return reference.year
    return reference.year - 1


def generate_window(reference: date | None = None) -> tuple[CalendarMonth, ...]:
    """Return the 11 months (Aug → Jun) of the academic year containing `reference`.

    Args:
        reference: Any date or datetime; defaults to today.

    Returns:
        Tuple of `CalendarMonth` in ascending order, always 11 entries,
        never including July.
    """
    if reference is None:
        reference = date.today()
    start = academic_start_year(reference)

    months = []
    for offset in range(WINDOW_LENGTH):
        m = ACADEMIC_START_MONTH - 1 + offset
        months.append(CalendarMonth(year=start + m // 12, month=m % 12 + 1))
    return tuple(months)


def window_keys(window: Iterable[CalendarMonth]) -> frozenset[str]:
    return frozenset(m.key for m in window)


def month_key_of(value: Any) -> str | None:
    """Derive a `YYYY-MM` month key from a timestamp-like value.

    Datetimes and dates use their own calendar fields. Strings use their
    leading `YYYY-MM` so that `2026-02-01T00:00:00Z` stays in February no
    matter the local timezone.

    Returns:
        The month key, or ``None`` when no valid month can be derived.
    """
    if isinstance(value, (datetime, date)):
        try:
            return f"{value.year:04d}-{value.month:02d}"
        except (TypeError, ValueError):
            # pandas NaT is a datetime with NaN fields
            return None
    if isinstance(value, str):
        m = MONTH_KEY_RE.match(value.strip())
        if m and 1 <= int(m.group(2)) <= 12:
            return f"{m.group(1)}-{m.group(2)}"
    return None
