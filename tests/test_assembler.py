from __future__ import annotations

import logging

import pytest
from pydantic import ValidationError

from conftest import FakeStore
from venue_rollups.engine.assembler import MonthlyRollupAssembler
from venue_rollups.policies.field_policy import PolicyTable, flow, rate


def _feb_revenue(store: FakeStore) -> None:
    for week, revenue in {5: 700, 6: 1400, 7: 1400, 8: 1400, 9: 700}.items():
        store.add(3, 2024, week, revenue=revenue, margin_pct=30, stock_start=0, stock_end=0)


def test_february_rollup_values_and_labels(stock_table: PolicyTable, store: FakeStore) -> None:
    _feb_revenue(store)
    store.rows = [r for r in store.rows if r.week != 8]
    store.add(3, 2024, 8, revenue=1400, margin_pct=30, stock_start=150, stock_end=0)

    rollup = MonthlyRollupAssembler(stock_table, {"weekly": store}).build(3, 2, 2024)

    assert rollup.values["revenue"] == pytest.approx(5000)
    assert rollup.values["margin_pct"] == pytest.approx(30)
    assert rollup.values["stock_start"] == 150
    # no closing reading; inherits this month's opening balance
    assert rollup.values["stock_end"] == 150
    assert rollup.has_data is True
    assert rollup.month_key == "2024-02"
    assert str(rollup.period_start) == "2024-02-01"
    assert str(rollup.period_end) == "2024-02-29"
    assert rollup.week_labels[0] == "2024-S5 (57%)"
    assert rollup.week_triples()[1] == (2024, 6, 1.0)
    assert len(rollup.provenance["revenue"].contributions) == 5
    # stock fields resolved in-month: no prior-month read
    assert len(store.calls) == 1


def test_closing_stock_takes_last_positive_week(stock_table: PolicyTable, store: FakeStore) -> None:
    store.add(5, 2024, 10, stock_start=100, stock_end=100)
    store.add(5, 2024, 11, stock_end=110)
    store.add(5, 2024, 12, stock_end=0)
    rollup = MonthlyRollupAssembler(stock_table, {"weekly": store}).build(5, 3, 2024)

    assert rollup.values["stock_start"] == 100
    assert rollup.values["stock_end"] == 110
    assert rollup.provenance["stock_end"].fallback is None


def test_total_gap_yields_defaults(stock_table: PolicyTable, store: FakeStore) -> None:
    rollup = MonthlyRollupAssembler(stock_table, {"weekly": store}).build(9, 6, 2024)

    assert rollup.has_data is False
    assert rollup.values == {
        "revenue": 0.0,
        "margin_pct": 0.0,
        "stock_start": None,
        "stock_end": None,
    }
    assert sum(w.days_in_month for w in rollup.weeks) == 30


@pytest.mark.parametrize(
    "entity_id, month, year",
    [(3, 13, 2024), (3, 0, 2024), (3, 2, "2024"), (3, 2, 24), (3, 2.0, 2024), ("3", 2, 2024)],
)
def test_invalid_request_fails_before_any_read(
    stock_table: PolicyTable, store: FakeStore, entity_id: object, month: object, year: object
) -> None:
    assembler = MonthlyRollupAssembler(stock_table, {"weekly": store})
    with pytest.raises(ValidationError):
        assembler.build(entity_id, month, year)  # type: ignore[arg-type]
    assert store.calls == []


def test_store_errors_propagate(stock_table: PolicyTable) -> None:
    failing = FakeStore(error=ConnectionError("store down"))
    with pytest.raises(ConnectionError, match="store down"):
        MonthlyRollupAssembler(stock_table, {"weekly": failing}).build(1, 2, 2024)
    assert len(failing.calls) == 1


def test_missing_store_for_source_is_rejected(stock_table: PolicyTable) -> None:
    with pytest.raises(ValueError, match="weekly"):
        MonthlyRollupAssembler(stock_table, {"other": FakeStore()})


def test_january_reads_each_iso_year_once(store: FakeStore) -> None:
    table = PolicyTable(report="flows", primary_source="weekly", fields=(flow("revenue"),))
    store.add(1, 2020, 53, revenue=70)
    store.add(1, 2021, 1, revenue=7)

    rollup = MonthlyRollupAssembler(table, {"weekly": store}).build(1, 1, 2021)

    assert rollup.values["revenue"] == pytest.approx(70 * 3 / 7 + 7)
    assert sorted(y for _, y, _ in store.calls) == [2020, 2021]


def test_fields_read_their_own_source() -> None:
    table = PolicyTable(
        report="mixed",
        primary_source="weekly",
        fields=(
            flow("customers", ndigits=0),
            flow("clicks", source="mkt"),
            rate("cpc", source="mkt", source_field="cpc_raw", ndigits=2),
        ),
    )
    weekly, mkt = FakeStore(), FakeStore()
    for week in range(5, 10):
        weekly.add(2, 2024, week, customers=10, clicks=999)
        mkt.add(2, 2024, week, clicks=7, cpc_raw=1.234)

    rollup = MonthlyRollupAssembler(table, {"weekly": weekly, "mkt": mkt}).build(2, 2, 2024)

    assert rollup.values["customers"] == 41.0
    assert rollup.values["clicks"] == pytest.approx(29)
    assert rollup.values["cpc"] == 1.23


def test_duplicate_weekly_records_keep_the_last(
    stock_table: PolicyTable, store: FakeStore, caplog: pytest.LogCaptureFixture
) -> None:
    store.add(4, 2024, 6, revenue=100)
    store.add(4, 2024, 6, revenue=200)

    with caplog.at_level(logging.WARNING):
        rollup = MonthlyRollupAssembler(stock_table, {"weekly": store}).build(4, 2, 2024)

    assert rollup.values["revenue"] == pytest.approx(200)
    assert "Duplicate" in caplog.text


def test_prefetch_reads_both_months_and_matches_lazy(stock_table: PolicyTable, store: FakeStore) -> None:
    store.add(7, 2024, 8, stock_end=120)
    store.add(7, 2024, 11, revenue=700)

    lazy = MonthlyRollupAssembler(stock_table, {"weekly": store}).build(7, 3, 2024)
    lazy_calls = len(store.calls)
    store.calls.clear()
    eager = MonthlyRollupAssembler(
        stock_table, {"weekly": store}, prefetch_prior_month=True
    ).build(7, 3, 2024)

    assert eager.values == lazy.values
    assert len(store.calls) == lazy_calls == 2


def test_prefetch_is_skipped_for_tables_without_stock(store: FakeStore) -> None:
    table = PolicyTable(report="flows", primary_source="weekly", fields=(flow("revenue"),))
    MonthlyRollupAssembler(table, {"weekly": store}, prefetch_prior_month=True).build(1, 3, 2024)
    assert len(store.calls) == 1


def test_prefetch_is_skipped_without_fallback_hops(stock_table: PolicyTable, store: FakeStore) -> None:
    store.add(7, 2024, 8, stock_end=120)
    rollup = MonthlyRollupAssembler(
        stock_table, {"weekly": store}, max_fallback_hops=0, prefetch_prior_month=True
    ).build(7, 3, 2024)

    assert rollup.values["stock_start"] is None
    assert len(store.calls) == 1
