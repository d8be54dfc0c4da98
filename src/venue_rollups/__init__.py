"""venue_rollups package.

Reconciles ISO-8601 weekly venue metrics (cost of goods, performance,
marketing) into calendar-month rollups.

Architecture:
- periods: ISO week resolution and month/week overlap proportions
- policies: declarative per-field aggregation tables, one per report
- engine: aggregation policies, stock fallback chain and the assembler
- store: weekly record accessors (MongoDB in production)
- export/batch: many-month rollups, pandas frames and Gold upserts
"""

__all__ = ["__version__"]
__version__ = "0.1.0"
