"""Policy tables for the monthly reports.

`cmv` is the cost-of-goods report built from `cmv_semanal`. `desempenho` is
the performance report built from `desempenho_semanal` with the marketing
metrics read from `marketing_semanal`.
"""

from __future__ import annotations

from typing import Any

from venue_rollups.policies.field_policy import FieldPolicy, PolicyTable, flow, rate, stock_pair

CMV_SOURCE = "cmv_semanal"
DESEMPENHO_SOURCE = "desempenho_semanal"
MARKETING_SOURCE = "marketing_semanal"

# Week column per weekly collection; the year column is `ano` everywhere.
SOURCE_WEEK_FIELDS = {
    CMV_SOURCE: "semana",
    DESEMPENHO_SOURCE: "numero_semana",
    MARKETING_SOURCE: "semana",
}


COST_POLICIES = PolicyTable(
    report="cmv",
    primary_source=CMV_SOURCE,
    fields=(
        # sales
        flow("vendas_brutas"),
        flow("vendas_liquidas"),
        flow("faturamento_cmvivel"),
        # stock
        *stock_pair("estoque_inicial", "estoque_final"),
        *stock_pair("estoque_inicial_cozinha", "estoque_final_cozinha"),
        *stock_pair("estoque_inicial_bebidas", "estoque_final_bebidas"),
        *stock_pair("estoque_inicial_drinks", "estoque_final_drinks"),
        # purchases
        flow("compras_periodo"),
        flow("compras_custo_comida"),
        flow("compras_custo_bebidas"),
        flow("compras_custo_drinks"),
        flow("compras_custo_outros"),
        # internal consumption
        flow("consumo_socios"),
        flow("consumo_beneficios"),
        flow("consumo_adm"),
        flow("consumo_rh"),
        flow("consumo_artista"),
        flow("outros_ajustes"),
        flow("total_consumo_socios"),
        flow("mesa_beneficios_cliente"),
        flow("mesa_banda_dj"),
        flow("chegadeira"),
        flow("mesa_adm_casa"),
        flow("mesa_rh"),
        # bonuses
        flow("ajuste_bonificacoes"),
        flow("bonificacao_contrato_anual"),
        flow("bonificacao_cashback_mensal"),
        flow("cmv_real"),
        # staff meals
        *stock_pair("estoque_inicial_funcionarios", "estoque_final_funcionarios"),
        flow("compras_alimentacao"),
        flow("cma_total"),
        # percentages
        rate("cmv_limpo_percentual"),
        rate("cmv_teorico_percentual"),
        rate("gap"),
    ),
)


def _mkt_flow(name: str, **kwargs: Any) -> FieldPolicy:
    return flow(name, source=MARKETING_SOURCE, **kwargs)


def _mkt_rate(name: str, **kwargs: Any) -> FieldPolicy:
    return rate(name, source=MARKETING_SOURCE, **kwargs)


PERFORMANCE_POLICIES = PolicyTable(
    report="desempenho",
    primary_source=DESEMPENHO_SOURCE,
    fields=(
        # cost
        flow("cmv_rs"),
        rate("cmv_limpo"),
        rate("cmv_global_real"),
        rate("cmv_teorico"),
        rate("cmo"),
        flow("cmo_custo"),
        rate("custo_atracao_faturamento"),
        # customers
        flow("clientes_ativos", ndigits=0),
        flow("clientes_30d", ndigits=0),
        flow("clientes_60d", ndigits=0),
        flow("clientes_90d", ndigits=0),
        # reservations
        flow("reservas_totais_semanal", source_field="reservas_totais", ndigits=0),
        flow("reservas_presentes_semanal", source_field="reservas_presentes", ndigits=0),
        flow("pessoas_reservas_totais", ndigits=0),
        flow("pessoas_reservas_presentes", ndigits=0),
        # retention
        rate("retencao_1m"),
        rate("retencao_2m"),
        rate("perc_clientes_novos"),
        # quality
        flow("avaliacoes_5_google_trip", ndigits=0),
        rate("media_avaliacoes_google", ndigits=2),
        rate("nps_geral", ndigits=0),
        rate("nps_reservas", ndigits=0),
        rate("nota_felicidade_equipe", ndigits=2),
        rate("perc_happy_hour"),
        # financial cockpit
        flow("imposto"),
        flow("comissao"),
        flow("cmv"),
        flow("freelas"),
        flow("cmo_fixo_simulacao"),
        flow("alimentacao"),
        flow("pro_labore"),
        flow("rh_estorno_outros_operacao"),
        flow("materiais"),
        flow("manutencao"),
        flow("atracoes_eventos"),
        flow("utensilios"),
        # stockout and production
        flow("stockout_comidas", ndigits=0),
        flow("stockout_drinks", ndigits=0),
        flow("stockout_bar", ndigits=0),
        rate("stockout_bar_perc", ndigits=1),
        rate("stockout_comidas_perc", ndigits=1),
        rate("stockout_drinks_perc", ndigits=1),
        flow("qtde_itens_bar"),
        flow("atrasos_bar"),
        flow("qtde_itens_cozinha"),
        flow("atrasos_cozinha"),
        # extra sales
        flow("venda_balcao"),
        flow("couvert_atracoes"),
        flow("qui_sab_dom"),
        # organic marketing
        _mkt_flow("o_num_posts"),
        _mkt_flow("o_alcance"),
        _mkt_flow("o_interacao"),
        _mkt_flow("o_compartilhamento"),
        _mkt_rate("o_engajamento"),
        _mkt_flow("o_num_stories"),
        _mkt_flow("o_visu_stories"),
        # paid marketing: Meta
        _mkt_flow("m_valor_investido"),
        _mkt_flow("m_alcance"),
        _mkt_rate("m_frequencia"),
        _mkt_rate("m_cpm"),
        _mkt_flow("m_cliques"),
        _mkt_rate("m_ctr"),
        _mkt_rate("m_custo_por_clique", source_field="m_cpc"),
        _mkt_flow("m_conversas_iniciadas"),
        # Google Ads
        _mkt_flow("g_valor_investido"),
        _mkt_flow("g_impressoes"),
        _mkt_flow("g_cliques"),
        _mkt_rate("g_ctr"),
        _mkt_flow("g_solicitacoes_rotas"),
        # Google Business Profile
        _mkt_flow("gmn_total_acoes"),
        _mkt_flow("gmn_total_visualizacoes"),
        _mkt_flow("gmn_solicitacoes_rotas"),
    ),
)


POLICY_TABLES = {t.report: t for t in (COST_POLICIES, PERFORMANCE_POLICIES)}


def get_policy_table(report: str) -> PolicyTable:
    """Return the policy table registered under `report`.

    Raises:
        KeyError: if no table is registered with that name.
    """
    try:
        return POLICY_TABLES[report]
    except KeyError:
        known = ", ".join(sorted(POLICY_TABLES))
        raise KeyError(f"Unknown report {report!r}; known reports: {known}") from None
