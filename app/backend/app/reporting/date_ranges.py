"""Canonical report date windows.

All values are calendar days; no timezone conversion is performed.
"""

from __future__ import annotations

import calendar
import enum
from collections.abc import Iterator
from dataclasses import dataclass
from datetime import date, timedelta

ONE_DAY = timedelta(days=1)


class DatePreset(str, enum.Enum):
    CURRENT_WEEK = "current_week"
    CURRENT_MONTH = "current_month"
    LAST_MONTH = "last_month"
    LAST_3_MONTHS = "last_3_months"
    CURRENT_YEAR = "current_year"


@dataclass(frozen=True, slots=True)
class DateRange:
    start: date
    end: date

    @property
    def is_empty(self) -> bool:
        return self.start > self.end

    @property
    def days(self) -> int:
        if self.is_empty:
            return 0
        return (self.end - self.start).days + 1

    @property
    def label(self) -> str:
        return f"{self.start.isoformat()} to {self.end.isoformat()}"


def month_start(day: date) -> date:
    return date(day.year, day.month, 1)


def month_end(day: date) -> date:
    return date(day.year, day.month, calendar.monthrange(day.year, day.month)[1])


def shift_months(day: date, months: int) -> date:
    """Move to the first day of the month ``months`` away from ``day``."""

    index = day.year * 12 + (day.month - 1) + months
    return date(index // 12, index % 12 + 1, 1)


def current_month_range(today: date) -> DateRange:
    return DateRange(month_start(today), month_end(today))


def week_start(day: date) -> date:
    """Monday of the week containing ``day`` (weeks run Monday to Sunday)."""

    # 0 = Sunday .. 6 = Saturday
    day_of_week = (day.weekday() + 1) % 7
    offset = -day_of_week + (-6 if day_of_week == 0 else 1)
    return day + timedelta(days=offset)


def week_range(today: date) -> DateRange:
    monday = week_start(today)
    return DateRange(monday, monday + timedelta(days=6))


def last_n_days(days: int, today: date) -> DateRange:
    return DateRange(today - timedelta(days=days), today)


def resolve(start: date | None = None, end: date | None = None, *, today: date) -> DateRange:
    """Use explicit bounds verbatim when both are given, else the current month.

    An inverted explicit range is returned unchanged; callers treat it as empty.
    """

    if start is not None and end is not None:
        return DateRange(start, end)
    return current_month_range(today)


def preset_range(preset: DatePreset, today: date) -> DateRange:
    if preset is DatePreset.CURRENT_WEEK:
        return week_range(today)
    if preset is DatePreset.CURRENT_MONTH:
        return current_month_range(today)
    if preset is DatePreset.LAST_MONTH:
        return current_month_range(shift_months(today, -1))
    if preset is DatePreset.LAST_3_MONTHS:
        return DateRange(shift_months(today, -3), month_end(today))
    if preset is DatePreset.CURRENT_YEAR:
        return DateRange(date(today.year, 1, 1), date(today.year, 12, 31))
    raise ValueError(f"Unsupported date preset: {preset!r}")


def prior_period(date_range: DateRange) -> DateRange:
    """Window of the same length ending the day before ``date_range`` starts."""

    if date_range.start == date.min:
        # nothing precedes the first representable day
        return DateRange(date.max, date.min)
    prior_end = date_range.start - ONE_DAY
    if date_range.is_empty:
        return DateRange(date_range.start, prior_end)
    span = date_range.end - date_range.start
    if prior_end - date.min < span:
        return DateRange(date.min, prior_end)
    return DateRange(prior_end - span, prior_end)


def iter_days(date_range: DateRange) -> Iterator[date]:
    current = date_range.start
    while current <= date_range.end:
        yield current
        current += ONE_DAY
