"""Distribute a calendar month over the ISO weeks it touches.

Each week gets the share of its seven days that fall inside the month. The
shares are the weights every aggregation policy uses.
"""

from __future__ import annotations

import logging
from datetime import timedelta
from typing import Iterable

import pandas as pd

from venue_rollups.models import WeekOverlap
from venue_rollups.periods.iso_weeks import iso_week_of, month_bounds

log = logging.getLogger(__name__)


def week_overlaps(month: int, year: int) -> list[WeekOverlap]:
    """Return the ISO weeks overlapping a month, in chronological order.

    Every day from the 1st to the last day of the month is bucketed by
    `(iso_year, week)`; a month yields 4, 5 or 6 weeks.

    Args:
        month: Calendar month (1-12).
        year: Calendar year.

    Returns:
        One `WeekOverlap` per distinct ISO week, ordered by `(iso_year, week)`.
    """
    first, last = month_bounds(month, year)

    counts: dict[tuple[int, int], int] = {}
    day = first
    while day <= last:
        key = iso_week_of(day)
        counts[key] = counts.get(key, 0) + 1
        day += timedelta(days=1)

    overlaps = [
        WeekOverlap(iso_year=iso_year, week=week, days_in_month=days)
        for (iso_year, week), days in sorted(counts.items())
    ]
    if log.isEnabledFor(logging.DEBUG):
        log.debug("%d-%02d spans %s", year, month, ", ".join(o.label for o in overlaps))
    return overlaps


def weeks_by_iso_year(overlaps: Iterable[WeekOverlap]) -> dict[int, set[int]]:
    """Group overlap keys by ISO year for batched store reads."""
    grouped: dict[int, set[int]] = {}
    for o in overlaps:
        grouped.setdefault(o.iso_year, set()).add(o.week)
    return grouped


def overlaps_frame(overlaps: Iterable[WeekOverlap]) -> pd.DataFrame:
    """Return overlaps as a DataFrame with a display label per week.

    Columns: `iso_year`, `week`, `days_in_month`, `proportion`, `label`.
    """
    rows = [
        {
            "iso_year": o.iso_year,
            "week": o.week,
            "days_in_month": o.days_in_month,
            "proportion": o.proportion,
            "label": o.label,
        }
        for o in overlaps
    ]
    return pd.DataFrame(
        rows, columns=["iso_year", "week", "days_in_month", "proportion", "label"]
    )
