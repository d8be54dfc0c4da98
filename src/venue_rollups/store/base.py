"""Interface the rollup engine expects from a weekly record store."""

from __future__ import annotations

from typing import Iterable, Protocol, runtime_checkable

from venue_rollups.models import WeeklyRecord


@runtime_checkable
class WeeklyRecordStore(Protocol):
    """Read-only access to weekly records of one source collection."""

    def get_weekly_records(
        self,
        entity_id: int,
        iso_year: int,
        week_numbers: Iterable[int],
    ) -> list[WeeklyRecord]:
        """Return the entity's records for `iso_year` and the given weeks.

        Must return an empty list (never raise) when nothing matches.
        Backend errors propagate to the caller untouched.
        """
        ...
