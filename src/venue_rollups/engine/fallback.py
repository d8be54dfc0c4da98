"""Stock field resolution with a bounded look-back into prior months.

Stock fields (inventory balances) are point-in-time readings, so a month
takes the first (opening) or last (closing) strictly positive weekly reading.
When the month has none, the value is inherited:

- opening: the prior month's closing balance;
- closing: the same month's opening balance, then the prior month's closing
  balance.

A prior month contributes only its last strictly positive closing reading;
its opening readings are never inherited. Each step into a prior month
spends one hop. With no hops left the chain stops and the field resolves to
None.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from typing import Callable

from venue_rollups.engine.aggregate import RecordLookup, first_positive, last_positive
from venue_rollups.models import WeekContribution, WeekOverlap, WeeklyRecord
from venue_rollups.periods.iso_weeks import previous_month
from venue_rollups.policies.field_policy import AggregationKind, FieldPolicy, PolicyTable

log = logging.getLogger(__name__)

SAME_MONTH_OPENING = "same_month_opening"
PRIOR_MONTH_CLOSING = "prior_month_closing"


@dataclass
class MonthSlice:
    """Overlaps and fetched records of one entity for one month.

    Attributes:
        month: Calendar month.
        year: Calendar year.
        overlaps: ISO weeks of the month with their proportions.
        records: Per source, records keyed by `(iso_year, week)`.
    """
    month: int
    year: int
    overlaps: list[WeekOverlap]
    records: dict[str, dict[tuple[int, int], WeeklyRecord]] = field(default_factory=dict)

    @property
    def month_key(self) -> str:
        return f"{self.year}-{self.month:02d}"

    @property
    def has_data(self) -> bool:
        return any(self.records.values())

    def lookup(self, source: str) -> RecordLookup:
        return self.records.get(source, {})


MonthLoader = Callable[[int, int], MonthSlice]


@dataclass(frozen=True)
class StockResolution:
    """Resolved stock value and where it came from."""
    value: float | None
    contributions: tuple[WeekContribution, ...]
    fallback: str | None
    reference_month: str


class FallbackChainResolver:
    """Resolve OPENING_STOCK / CLOSING_STOCK fields of a policy table.

    Prior months are loaded on first use through `month_loader` and kept for
    the lifetime of the resolver, so one rollup fetches each prior month at
    most once.

    Args:
        table: Policy table the stock fields belong to.
        month_loader: Callable `(month, year) -> MonthSlice` for the entity.
        max_hops: How many prior months a field may inherit from.
    """

    def __init__(self, table: PolicyTable, month_loader: MonthLoader, max_hops: int = 1) -> None:
        if max_hops < 0:
            raise ValueError(f"max_hops must be >= 0, got {max_hops}")
        self.table = table
        self.month_loader = month_loader
        self.max_hops = max_hops
        self._months: dict[tuple[int, int], MonthSlice] = {}

    def prime(self, month_slice: MonthSlice) -> None:
        """Register an already fetched month so it is not loaded again."""
        self._months[(month_slice.month, month_slice.year)] = month_slice

    def _prior(self, current: MonthSlice) -> MonthSlice:
        key = previous_month(current.month, current.year)
        if key not in self._months:
            log.debug("Loading %d-%02d for stock fallback", key[1], key[0])
            self._months[key] = self.month_loader(*key)
        return self._months[key]

    def resolve(self, policy: FieldPolicy, current: MonthSlice) -> StockResolution:
        """Resolve a stock field for `current` using the full hop budget."""
        if policy.kind is AggregationKind.OPENING_STOCK:
            return self._opening(policy, current, self.max_hops)
        if policy.kind is AggregationKind.CLOSING_STOCK:
            return self._closing(policy, current, self.max_hops)
        raise ValueError(f"{policy.name!r} is not a stock field ({policy.kind.value})")

    def _scan(self, policy: FieldPolicy, month: MonthSlice, closing: bool) -> StockResolution:
        lookup = month.lookup(self.table.source_of(policy))
        scan = last_positive if closing else first_positive
        r = scan(policy.column, month.overlaps, lookup)
        return StockResolution(r.value, r.contributions, None, month.month_key)

    def _prior_closing(self, closing: FieldPolicy, month: MonthSlice, hops: int) -> StockResolution | None:
        # only the closing column is read once the chain leaves `month`
        while hops > 0:
            month = self._prior(month)
            found = self._scan(closing, month, closing=True)
            if found.value is not None:
                return replace(found, fallback=PRIOR_MONTH_CLOSING)
            hops -= 1
        return None

    def _opening(self, policy: FieldPolicy, month: MonthSlice, hops: int) -> StockResolution:
        found = self._scan(policy, month, closing=False)
        if found.value is not None:
            return found

        inherited = self._prior_closing(self.table[policy.paired_field or ""], month, hops)
        if inherited is not None:
            return inherited

        return StockResolution(None, (), None, month.month_key)

    def _closing(self, policy: FieldPolicy, month: MonthSlice, hops: int) -> StockResolution:
        found = self._scan(policy, month, closing=True)
        if found.value is not None:
            return found

        # stock assumed unchanged through the month
        opening = self.table[policy.paired_field or ""]
        found = self._scan(opening, month, closing=False)
        if found.value is not None:
            return replace(found, fallback=SAME_MONTH_OPENING)

        inherited = self._prior_closing(policy, month, hops)
        if inherited is not None:
            return inherited

        return StockResolution(None, (), None, month.month_key)
