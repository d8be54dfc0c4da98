"""Build one `MonthlyRollup` per (entity, month, year) from weekly records.

Flow:
1. validate the request (fails before any I/O);
2. compute the month's week overlaps;
3. fetch the month's records, one read per (source, ISO year);
4. apply each field's policy in table order;
5. fetch the prior month only if a stock field needs the fallback.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping, cast

from dask import compute, delayed  # type: ignore[attr-defined]

from venue_rollups.engine.aggregate import (
    FieldResult,
    round_value,
    sum_proportional,
    weighted_average_proportional,
)
from venue_rollups.engine.fallback import FallbackChainResolver, MonthSlice
from venue_rollups.models import FieldProvenance, MonthlyRollup, RollupRequest, WeeklyRecord
from venue_rollups.periods.iso_weeks import month_bounds, previous_month
from venue_rollups.periods.overlap import week_overlaps, weeks_by_iso_year
from venue_rollups.policies.field_policy import AggregationKind, PolicyTable
from venue_rollups.store.base import WeeklyRecordStore

log = logging.getLogger(__name__)

_FLOW_AGGREGATORS = {
    AggregationKind.SUM_PROPORTIONAL: sum_proportional,
    AggregationKind.WEIGHTED_AVERAGE_PROPORTIONAL: weighted_average_proportional,
}


class MonthlyRollupAssembler:
    """Compute monthly rollups for one report.

    Args:
        table: Policy table describing the report's fields.
        stores: Weekly record store per source named in the table.
        max_fallback_hops: Prior months a stock field may inherit from.
        prefetch_prior_month: Fetch the prior month together with the
            requested one (concurrently) instead of on demand.

    Raises:
        ValueError: if a source of the table has no store.
    """

    def __init__(
        self,
        table: PolicyTable,
        stores: Mapping[str, WeeklyRecordStore],
        max_fallback_hops: int = 1,
        prefetch_prior_month: bool = False,
    ) -> None:
        missing = [s for s in table.sources if s not in stores]
        if missing:
            raise ValueError(f"{table.report}: no store for source(s) {', '.join(missing)}")
        if max_fallback_hops < 0:
            raise ValueError(f"max_fallback_hops must be >= 0, got {max_fallback_hops}")
        self.table = table
        self.stores = dict(stores)
        self.max_fallback_hops = max_fallback_hops
        self.prefetch_prior_month = prefetch_prior_month

    def load_month(self, entity_id: int, month: int, year: int) -> MonthSlice:
        """Fetch every source's records for the ISO weeks of a month.

        Months around New Year touch two ISO years and cost two reads per
        source; all other months cost one.
        """
        overlaps = week_overlaps(month, year)
        wanted = {o.key for o in overlaps}
        grouped = weeks_by_iso_year(overlaps)

        records: dict[str, dict[tuple[int, int], WeeklyRecord]] = {}
        for source in self.table.sources:
            store = self.stores[source]
            by_key: dict[tuple[int, int], WeeklyRecord] = {}
            for iso_year, weeks in sorted(grouped.items()):
                for rec in store.get_weekly_records(entity_id, iso_year, weeks):
                    key = (rec.iso_year, rec.week)
                    if key not in wanted:
                        continue
                    if key in by_key:
                        log.warning(
                            "Duplicate %s record for entity=%d %d-S%d; keeping the last one",
                            source,
                            entity_id,
                            key[0],
                            key[1],
                        )
                    by_key[key] = rec
            records[source] = by_key

        log.debug(
            "Loaded %d-%02d for entity=%d: %s",
            year,
            month,
            entity_id,
            {s: len(r) for s, r in records.items()},
        )
        return MonthSlice(month=month, year=year, overlaps=overlaps, records=records)

    def _load_with_prior(self, entity_id: int, month: int, year: int) -> tuple[MonthSlice, MonthSlice]:
        prior_month, prior_year = previous_month(month, year)
        tasks = [
            delayed(self.load_month)(entity_id, month, year),
            delayed(self.load_month)(entity_id, prior_month, prior_year),
        ]
        current, prior = cast(Any, compute)(*tasks, scheduler="threads")
        return current, prior

    def build(self, entity_id: int, month: int, year: int) -> MonthlyRollup:
        """Return the rollup of `entity_id` for a calendar month.

        A month without any weekly record is not an error: flows come back
        as 0, stocks as None and `has_data` is False.

        Raises:
            pydantic.ValidationError: on a non-integer or out-of-range
                entity/month/year.
        """
        req = RollupRequest(entity_id=entity_id, month=month, year=year)

        if self.prefetch_prior_month and self.max_fallback_hops > 0 and self.table.has_stock_fields:
            current, prior = self._load_with_prior(req.entity_id, req.month, req.year)
        else:
            current, prior = self.load_month(req.entity_id, req.month, req.year), None

        resolver = FallbackChainResolver(
            self.table,
            lambda m, y: self.load_month(req.entity_id, m, y),
            max_hops=self.max_fallback_hops,
        )
        if prior is not None:
            resolver.prime(prior)

        values: dict[str, float | None] = {}
        provenance: dict[str, FieldProvenance] = {}
        for policy in self.table:
            if policy.kind.is_stock:
                stock = resolver.resolve(policy, current)
                value = stock.value
                prov = FieldProvenance(
                    field=policy.name,
                    kind=policy.kind.value,
                    contributions=list(stock.contributions),
                    fallback=stock.fallback,
                    reference_month=stock.reference_month,
                )
            else:
                aggregate = _FLOW_AGGREGATORS[policy.kind]
                result: FieldResult = aggregate(
                    policy.column,
                    current.overlaps,
                    current.lookup(self.table.source_of(policy)),
                )
                value = result.value
                prov = FieldProvenance(
                    field=policy.name,
                    kind=policy.kind.value,
                    contributions=list(result.contributions),
                    reference_month=current.month_key,
                )
            values[policy.name] = round_value(value, policy.ndigits)
            provenance[policy.name] = prov

        first, last = month_bounds(req.month, req.year)
        rollup = MonthlyRollup(
            entity_id=req.entity_id,
            report=self.table.report,
            month=req.month,
            year=req.year,
            period_start=first,
            period_end=last,
            values=values,
            weeks=current.overlaps,
            week_labels=[o.label for o in current.overlaps],
            provenance=provenance,
            has_data=current.has_data,
        )
        if not rollup.has_data:
            log.info(
                "No weekly %s data for entity=%d in %s",
                self.table.report,
                req.entity_id,
                rollup.month_key,
            )
        return rollup
