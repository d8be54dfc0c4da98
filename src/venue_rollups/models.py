"""Pydantic models for weekly inputs and monthly rollup outputs.

`WeeklyRecord` is what the record stores hand to the engine; `MonthlyRollup`
is what the engine hands back. `WeekOverlap` and the provenance models are
derived values and are never persisted by the engine itself.
"""

from __future__ import annotations

import logging
import math
from datetime import date
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, StrictInt, computed_field, field_validator

log = logging.getLogger(__name__)


def coerce_metric(value: Any) -> float | None:
    """Convert a stored metric to float.

    Numbers and numeric strings are accepted; `None`, NaN and anything that
    does not parse become `None` (a missing reading).
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        out = float(value)
    else:
        try:
            out = float(str(value).strip())
        except ValueError:
            log.warning("Ignoring non-numeric metric value %r", value)
            return None
    return None if math.isnan(out) else out


class WeeklyRecord(BaseModel):
    """One stored row of weekly metrics for an entity (venue)."""
    model_config = ConfigDict(extra="forbid", frozen=True)
    entity_id: int
    iso_year: int
    week: int = Field(..., ge=1, le=53)
    values: dict[str, float | None] = Field(default_factory=dict)

    @field_validator("values", mode="before")
    @classmethod
    def _coerce_values(cls, raw: dict[str, Any]) -> dict[str, float | None]:
        return {str(k): coerce_metric(v) for k, v in dict(raw).items()}

    def get(self, field: str) -> float | None:
        """Return the value for `field`, or None when the column is absent."""
        return self.values.get(field)


class WeekOverlap(BaseModel):
    """An ISO week and how much of it falls inside a requested month.

    Attributes:
        iso_year: ISO year of the week (may differ from the calendar year).
        week: ISO week number.
        days_in_month: Days of the week inside the month (1-7).
        proportion: `days_in_month / 7`.
    """
    model_config = ConfigDict(extra="forbid", frozen=True)
    iso_year: int
    week: int = Field(..., ge=1, le=53)
    days_in_month: int = Field(..., ge=1, le=7)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def proportion(self) -> float:
        return self.days_in_month / 7

    @property
    def key(self) -> tuple[int, int]:
        return (self.iso_year, self.week)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def label(self) -> str:
        return f"{self.iso_year}-S{self.week} ({round(self.proportion * 100)}%)"


class WeekContribution(BaseModel):
    """A week whose value fed into a field's monthly result."""
    model_config = ConfigDict(extra="forbid", frozen=True)
    iso_year: int
    week: int
    proportion: float
    value: float | None


class FieldProvenance(BaseModel):
    """Audit trail for one resolved field.

    Attributes:
        field: Output field name.
        kind: Aggregation kind applied.
        contributions: Weeks that fed the value.
        fallback: Fallback step that produced a stock value, if any
            (`"same_month_opening"` or `"prior_month_closing"`).
        reference_month: `YYYY-MM` of the month whose data was used.
    """
    model_config = ConfigDict(extra="forbid")
    field: str
    kind: str
    contributions: list[WeekContribution] = Field(default_factory=list)
    fallback: str | None = None
    reference_month: str


class RollupRequest(BaseModel):
    """Validated request parameters; wrong types or ranges fail fast."""
    model_config = ConfigDict(extra="forbid", frozen=True)
    entity_id: StrictInt
    month: StrictInt = Field(..., ge=1, le=12)
    year: StrictInt = Field(..., ge=1000, le=9999)


class MonthlyRollup(BaseModel):
    """Monthly view over an entity's weekly records for one report.

    Stock fields are `None` when no usable reading exists, so callers can tell
    "unknown" apart from a real zero. Flow fields default to 0.
    """
    model_config = ConfigDict(extra="forbid")
    entity_id: int
    report: str
    month: int = Field(..., ge=1, le=12)
    year: int
    period_start: date
    period_end: date
    values: dict[str, float | None]
    weeks: list[WeekOverlap]
    week_labels: list[str]
    provenance: dict[str, FieldProvenance]
    has_data: bool

    @property
    def month_key(self) -> str:
        return f"{self.year}-{self.month:02d}"

    def week_triples(self) -> list[tuple[int, int, float]]:
        """Return the `(iso_year, week, proportion)` triples of the month."""
        return [(w.iso_year, w.week, w.proportion) for w in self.weeks]
