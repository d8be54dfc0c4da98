"""ISO-8601 week arithmetic.

Weeks start on Monday and week 1 is the week holding the year's first
Thursday, so the days around New Year can belong to the neighbouring ISO year.
"""

from __future__ import annotations

import calendar
from datetime import date, timedelta


def iso_week_of(day: date) -> tuple[int, int]:
    """Return the `(iso_year, week)` a calendar date belongs to.

    The date is moved to the Thursday of its week; that Thursday's calendar
    year is the ISO year and its ordinal day fixes the week index.

    Args:
        day: Any calendar date.

    Returns:
        Tuple of ISO year and ISO week number (1-53).
    """
    thursday = day + timedelta(days=4 - day.isoweekday())
    ordinal = thursday.timetuple().tm_yday
    return thursday.year, (ordinal - 1) // 7 + 1


def monday_of(iso_year: int, week: int) -> date:
    """Return the Monday that starts ISO week `week` of `iso_year`."""
    return date.fromisocalendar(iso_year, week, 1)


def month_bounds(month: int, year: int) -> tuple[date, date]:
    """Return the first and last calendar day of a month."""
    last = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last)


def previous_month(month: int, year: int) -> tuple[int, int]:
    """Return `(month, year)` of the month before; January wraps to December."""
    if month == 1:
        return 12, year - 1
    return month - 1, year
