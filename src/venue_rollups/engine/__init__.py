"""Monthly rollup engine: aggregation policies, stock fallback and assembly."""

from venue_rollups.engine.aggregate import (
    FieldResult,
    first_positive,
    last_positive,
    round_value,
    sum_proportional,
    weighted_average_proportional,
)
from venue_rollups.engine.assembler import MonthlyRollupAssembler
from venue_rollups.engine.fallback import FallbackChainResolver, MonthSlice, StockResolution

__all__ = [
    "FieldResult",
    "first_positive",
    "last_positive",
    "round_value",
    "sum_proportional",
    "weighted_average_proportional",
    "MonthlyRollupAssembler",
    "FallbackChainResolver",
    "MonthSlice",
    "StockResolution",
]
