"""Compute many monthly rollups concurrently.

Each (month, year) is an independent dask task: rollups share no mutable
state, so the threaded scheduler can overlap their store reads.
"""

from __future__ import annotations

import logging
from typing import Any, Sequence, cast

from dask import compute, delayed  # type: ignore[attr-defined]

from venue_rollups.engine.assembler import MonthlyRollupAssembler
from venue_rollups.models import MonthlyRollup

log = logging.getLogger(__name__)


def year_periods(year: int) -> list[tuple[int, int]]:
    """Return the twelve `(month, year)` periods of a calendar year."""
    return [(m, year) for m in range(1, 13)]


def build_rollups(
    assembler: MonthlyRollupAssembler,
    entity_id: int,
    periods: Sequence[tuple[int, int]],
    scheduler: str = "threads",
) -> list[MonthlyRollup]:
    """Build rollups for `periods`, returned in the same order.

    Args:
        assembler: Assembler of the report to compute.
        entity_id: Venue id.
        periods: `(month, year)` pairs.
        scheduler: Dask scheduler name (`"threads"` or `"sync"`).

    Returns:
        One `MonthlyRollup` per period. The first failing period's error is
        raised unchanged.
    """
    if not periods:
        return []

    log.info(
        "Building %d %s rollups for entity=%d",
        len(periods),
        assembler.table.report,
        entity_id,
    )
    tasks = [delayed(assembler.build)(entity_id, m, y) for m, y in periods]
    results = cast(Any, compute)(*tasks, scheduler=scheduler)
    return list(results)
