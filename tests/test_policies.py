from __future__ import annotations

import pytest

from venue_rollups.policies.field_policy import AggregationKind, FieldPolicy, PolicyTable, flow, rate, stock_pair
from venue_rollups.policies.tables import (
    COST_POLICIES,
    DESEMPENHO_SOURCE,
    MARKETING_SOURCE,
    PERFORMANCE_POLICIES,
    SOURCE_WEEK_FIELDS,
    get_policy_table,
)


def test_cost_table_pairs_every_stock_field() -> None:
    stocks = [p for p in COST_POLICIES if p.kind.is_stock]
    assert len(stocks) == 10
    assert COST_POLICIES["estoque_inicial"].paired_field == "estoque_final"
    assert COST_POLICIES["estoque_final"].kind is AggregationKind.CLOSING_STOCK
    assert COST_POLICIES["cmv_limpo_percentual"].kind is AggregationKind.WEIGHTED_AVERAGE_PROPORTIONAL
    assert COST_POLICIES.sources == ["cmv_semanal"]


def test_performance_table_reads_marketing_source() -> None:
    assert PERFORMANCE_POLICIES.sources == ["desempenho_semanal", "marketing_semanal"]
    cpc = PERFORMANCE_POLICIES["m_custo_por_clique"]
    assert cpc.column == "m_cpc"
    assert PERFORMANCE_POLICIES.source_of(cpc) == "marketing_semanal"
    assert PERFORMANCE_POLICIES["nps_geral"].ndigits == 0
    assert PERFORMANCE_POLICIES.has_stock_fields is False
    assert set(PERFORMANCE_POLICIES.sources) <= set(SOURCE_WEEK_FIELDS)


def test_get_policy_table() -> None:
    assert get_policy_table("cmv") is COST_POLICIES
    with pytest.raises(KeyError, match="desempenho"):
        get_policy_table("nope")


@pytest.mark.parametrize(
    "fields",
    [
        (flow("a"), flow("a")),
        (FieldPolicy("s", AggregationKind.OPENING_STOCK),),
        (FieldPolicy("s", AggregationKind.OPENING_STOCK, paired_field="missing"),),
        (
            FieldPolicy("s", AggregationKind.OPENING_STOCK, paired_field="e"),
            FieldPolicy("e", AggregationKind.OPENING_STOCK, paired_field="s"),
        ),
        (
            FieldPolicy("s", AggregationKind.OPENING_STOCK, paired_field="e"),
            flow("e"),
        ),
        (
            FieldPolicy("s", AggregationKind.OPENING_STOCK, paired_field="e"),
            FieldPolicy("e", AggregationKind.CLOSING_STOCK, paired_field="s", source="other"),
        ),
        (FieldPolicy("r", AggregationKind.SUM_PROPORTIONAL, paired_field="x"), rate("x")),
    ],
)
def test_malformed_tables_are_rejected(fields: tuple[FieldPolicy, ...]) -> None:
    with pytest.raises(ValueError):
        PolicyTable(report="bad", primary_source="weekly", fields=fields)


def test_stock_pair_helper_builds_mutual_pair() -> None:
    opening, closing = stock_pair("stock_start", "stock_end", source="inv")
    table = PolicyTable(report="ok", primary_source="weekly", fields=(opening, closing))
    assert table.sources == ["weekly", "inv"]
    assert len(table) == 2


def test_columns_by_source_uses_stored_column_names() -> None:
    cols = PERFORMANCE_POLICIES.columns_by_source
    assert list(cols) == [DESEMPENHO_SOURCE, MARKETING_SOURCE]
    assert "m_cpc" in cols[MARKETING_SOURCE]
    assert "m_custo_por_clique" not in cols[MARKETING_SOURCE]
    assert "reservas_totais" in cols[DESEMPENHO_SOURCE]
