"""Declarative per-field aggregation policies.

A report is described by a `PolicyTable`: an ordered list of `FieldPolicy`
entries, each naming how one output field is derived from the weekly rows.
Tables are validated on construction so a broken pairing fails at import
time instead of producing a silent `None` in a report.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterator


class AggregationKind(str, Enum):
    """How a weekly field is folded into a month."""
    SUM_PROPORTIONAL = "sum_proportional"
    WEIGHTED_AVERAGE_PROPORTIONAL = "weighted_average_proportional"
    OPENING_STOCK = "opening_stock"
    CLOSING_STOCK = "closing_stock"

    @property
    def is_stock(self) -> bool:
        return self in (AggregationKind.OPENING_STOCK, AggregationKind.CLOSING_STOCK)


_COMPLEMENT = {
    AggregationKind.OPENING_STOCK: AggregationKind.CLOSING_STOCK,
    AggregationKind.CLOSING_STOCK: AggregationKind.OPENING_STOCK,
}


@dataclass(frozen=True)
class FieldPolicy:
    """Aggregation rule for one output field.

    Attributes:
        name: Output field name.
        kind: Aggregation kind.
        paired_field: Complementary stock field (stock kinds only).
        source: Weekly collection holding the column; None means the
            table's primary source.
        source_field: Column name in the weekly rows when it differs from
            `name`.
        ndigits: Round the monthly value to this many decimals.
    """
    name: str
    kind: AggregationKind
    paired_field: str | None = None
    source: str | None = None
    source_field: str | None = None
    ndigits: int | None = None

    @property
    def column(self) -> str:
        return self.source_field or self.name


def flow(name: str, **kwargs: Any) -> FieldPolicy:
    """Shorthand for a SUM_PROPORTIONAL field."""
    return FieldPolicy(name, AggregationKind.SUM_PROPORTIONAL, **kwargs)


def rate(name: str, **kwargs: Any) -> FieldPolicy:
    """Shorthand for a WEIGHTED_AVERAGE_PROPORTIONAL field."""
    return FieldPolicy(name, AggregationKind.WEIGHTED_AVERAGE_PROPORTIONAL, **kwargs)


def stock_pair(opening: str, closing: str, **kwargs: Any) -> tuple[FieldPolicy, FieldPolicy]:
    """Return a mutually paired OPENING_STOCK / CLOSING_STOCK couple."""
    return (
        FieldPolicy(opening, AggregationKind.OPENING_STOCK, paired_field=closing, **kwargs),
        FieldPolicy(closing, AggregationKind.CLOSING_STOCK, paired_field=opening, **kwargs),
    )


@dataclass(frozen=True)
class PolicyTable:
    """Ordered field policies for one report.

    Attributes:
        report: Report name (also used in Gold collection names).
        primary_source: Weekly collection used by fields without a source.
        fields: Field policies in output order.
    """
    report: str
    primary_source: str
    fields: tuple[FieldPolicy, ...]
    _by_name: dict[str, FieldPolicy] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        by_name: dict[str, FieldPolicy] = {}
        for p in self.fields:
            if p.name in by_name:
                raise ValueError(f"{self.report}: duplicate field {p.name!r}")
            by_name[p.name] = p
        object.__setattr__(self, "_by_name", by_name)

        for p in self.fields:
            if not p.kind.is_stock:
                if p.paired_field is not None:
                    raise ValueError(
                        f"{self.report}: {p.kind.value} field {p.name!r} cannot be paired"
                    )
                continue
            if p.paired_field is None:
                raise ValueError(f"{self.report}: stock field {p.name!r} needs a pair")
            pair = by_name.get(p.paired_field)
            if pair is None:
                raise ValueError(
                    f"{self.report}: {p.name!r} is paired with unknown field {p.paired_field!r}"
                )
            if pair.kind is not _COMPLEMENT[p.kind] or pair.paired_field != p.name:
                raise ValueError(
                    f"{self.report}: {p.name!r} and {pair.name!r} are not a mutual "
                    "opening/closing pair"
                )
            if self.source_of(p) != self.source_of(pair):
                raise ValueError(
                    f"{self.report}: {p.name!r} and {pair.name!r} read different sources"
                )

    def __getitem__(self, name: str) -> FieldPolicy:
        return self._by_name[name]

    def __iter__(self) -> Iterator[FieldPolicy]:
        return iter(self.fields)

    def __len__(self) -> int:
        return len(self.fields)

    def source_of(self, policy: FieldPolicy) -> str:
        return policy.source or self.primary_source

    @property
    def sources(self) -> list[str]:
        """Distinct sources, primary first."""
        out = [self.primary_source]
        for p in self.fields:
            s = self.source_of(p)
            if s not in out:
                out.append(s)
        return out

    @property
    def has_stock_fields(self) -> bool:
        return any(p.kind.is_stock for p in self.fields)

    @property
    def columns_by_source(self) -> dict[str, list[str]]:
        """Weekly columns each source must provide, in table order."""
        out: dict[str, list[str]] = {s: [] for s in self.sources}
        for p in self.fields:
            cols = out[self.source_of(p)]
            if p.column not in cols:
                cols.append(p.column)
        return out
