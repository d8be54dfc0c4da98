from __future__ import annotations

from typing import Any, Iterable

import pytest

from venue_rollups.models import WeeklyRecord
from venue_rollups.policies.field_policy import PolicyTable, flow, rate, stock_pair


class FakeStore:
    """In-memory weekly store that records every read."""

    def __init__(self, rows: Iterable[WeeklyRecord] = (), error: Exception | None = None) -> None:
        self.rows = list(rows)
        self.error = error
        self.calls: list[tuple[int, int, frozenset[int]]] = []

    def add(self, entity_id: int, iso_year: int, week: int, **values: Any) -> None:
        self.rows.append(
            WeeklyRecord(entity_id=entity_id, iso_year=iso_year, week=week, values=values)
        )

    def get_weekly_records(
        self, entity_id: int, iso_year: int, week_numbers: Iterable[int]
    ) -> list[WeeklyRecord]:
        weeks = frozenset(week_numbers)
        self.calls.append((entity_id, iso_year, weeks))
        if self.error is not None:
            raise self.error
        return [
            r
            for r in self.rows
            if r.entity_id == entity_id and r.iso_year == iso_year and r.week in weeks
        ]

    def years_read(self) -> set[int]:
        return {y for _, y, _ in self.calls}


class FakeCursorCollection:
    """Minimal stand-in for a pymongo Collection."""

    def __init__(self, name: str, docs: Iterable[dict[str, Any]] = ()) -> None:
        self.name = name
        self.docs = list(docs)
        self.queries: list[dict[str, Any]] = []
        self.projections: list[dict[str, Any] | None] = []
        self.bulk_ops: list[Any] = []

    def find(self, query: dict[str, Any], projection: dict[str, Any] | None = None) -> list[dict[str, Any]]:
        self.queries.append(query)
        self.projections.append(projection)
        out = []
        for d in self.docs:
            ok = True
            for k, cond in query.items():
                if isinstance(cond, dict) and "$in" in cond:
                    ok = ok and d.get(k) in cond["$in"]
                else:
                    ok = ok and d.get(k) == cond
            if ok:
                out.append({k: v for k, v in d.items() if k != "_id"})
        return out

    def bulk_write(self, ops: list[Any], ordered: bool = True) -> None:
        self.bulk_ops.extend(ops)


@pytest.fixture
def stock_table() -> PolicyTable:
    return PolicyTable(
        report="test",
        primary_source="weekly",
        fields=(
            flow("revenue"),
            rate("margin_pct"),
            *stock_pair("stock_start", "stock_end"),
        ),
    )


@pytest.fixture
def store() -> FakeStore:
    return FakeStore()
