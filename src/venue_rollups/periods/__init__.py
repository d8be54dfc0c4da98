"""Calendar helpers: ISO week resolution and month/week overlaps."""

from venue_rollups.periods.iso_weeks import (
    iso_week_of,
    monday_of,
    month_bounds,
    previous_month,
)
from venue_rollups.periods.overlap import (
    overlaps_frame,
    week_overlaps,
    weeks_by_iso_year,
)

__all__ = [
    "iso_week_of",
    "monday_of",
    "month_bounds",
    "previous_month",
    "week_overlaps",
    "weeks_by_iso_year",
    "overlaps_frame",
]
