"""Per-report field policy tables."""

from venue_rollups.policies.field_policy import (
    AggregationKind,
    FieldPolicy,
    PolicyTable,
    flow,
    rate,
    stock_pair,
)
from venue_rollups.policies.tables import (
    COST_POLICIES,
    PERFORMANCE_POLICIES,
    POLICY_TABLES,
    SOURCE_WEEK_FIELDS,
    get_policy_table,
)

__all__ = [
    "AggregationKind",
    "FieldPolicy",
    "PolicyTable",
    "flow",
    "rate",
    "stock_pair",
    "COST_POLICIES",
    "PERFORMANCE_POLICIES",
    "POLICY_TABLES",
    "SOURCE_WEEK_FIELDS",
    "get_policy_table",
]
