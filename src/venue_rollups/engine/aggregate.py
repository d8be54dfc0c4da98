"""Aggregation policies applied to one field across a month's weeks.

Every function takes the column to read, the month's `WeekOverlap` list and a
lookup from `(iso_year, week)` to `WeeklyRecord`. A week without a record (a
gap) or without the column contributes nothing.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Mapping, Sequence

from venue_rollups.models import WeekContribution, WeekOverlap, WeeklyRecord

RecordLookup = Mapping[tuple[int, int], WeeklyRecord]


@dataclass(frozen=True)
class FieldResult:
    """Monthly value of a field plus the weeks it was computed from."""
    value: float | None
    contributions: tuple[WeekContribution, ...] = ()


def _week_value(lookup: RecordLookup, overlap: WeekOverlap, column: str) -> float | None:
    record = lookup.get(overlap.key)
    if record is None:
        return None
    return record.get(column)


def _contribution(overlap: WeekOverlap, value: float | None) -> WeekContribution:
    return WeekContribution(
        iso_year=overlap.iso_year,
        week=overlap.week,
        proportion=overlap.proportion,
        value=value,
    )


def sum_proportional(
    column: str,
    overlaps: Iterable[WeekOverlap],
    lookup: RecordLookup,
) -> FieldResult:
    """Sum each week's value scaled by the share of the week in the month.

    Used for flow quantities (sales, costs, counts). Gaps count as 0, so the
    result is 0.0 when no week has the column.
    """
    total = 0.0
    used: list[WeekContribution] = []
    for o in overlaps:
        v = _week_value(lookup, o, column)
        if v is None:
            continue
        total += v * o.proportion
        used.append(_contribution(o, v))
    return FieldResult(total, tuple(used))


def weighted_average_proportional(
    column: str,
    overlaps: Iterable[WeekOverlap],
    lookup: RecordLookup,
) -> FieldResult:
    """Average weekly rates weighted by each week's share of the month.

    Only weeks carrying a value enter the denominator; with no such week the
    result is 0.0.
    """
    weighted = 0.0
    weight = 0.0
    used: list[WeekContribution] = []
    for o in overlaps:
        v = _week_value(lookup, o, column)
        if v is None:
            continue
        weighted += v * o.proportion
        weight += o.proportion
        used.append(_contribution(o, v))
    if weight == 0:
        return FieldResult(0.0, ())
    return FieldResult(weighted / weight, tuple(used))


def _first_positive_in(
    column: str,
    ordered: Sequence[WeekOverlap],
    lookup: RecordLookup,
) -> FieldResult:
    for o in ordered:
        v = _week_value(lookup, o, column)
        if v is not None and v > 0:
            return FieldResult(v, (_contribution(o, v),))
    return FieldResult(None, ())


def first_positive(
    column: str,
    overlaps: Iterable[WeekOverlap],
    lookup: RecordLookup,
) -> FieldResult:
    """Return the chronologically first strictly positive reading, or None.

    Zero readings are treated as missing counts, not as empty stock.
    """
    return _first_positive_in(column, sorted(overlaps, key=lambda o: o.key), lookup)


def last_positive(
    column: str,
    overlaps: Iterable[WeekOverlap],
    lookup: RecordLookup,
) -> FieldResult:
    """Return the chronologically last strictly positive reading, or None."""
    return _first_positive_in(
        column, sorted(overlaps, key=lambda o: o.key, reverse=True), lookup
    )


def round_value(value: float | None, ndigits: int | None) -> float | None:
    """Round a monthly value; None and unrounded fields pass through."""
    if value is None or ndigits is None:
        return value
    return float(round(value, ndigits))
