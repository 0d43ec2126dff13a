# frigorifico/usecases/relatorios.py
"""
Relatórios somente leitura:
- recebíveis (vendas pendentes, com atraso na data de referência)
- contas a pagar em aberto
- estoque por faixa de maturação
- resultado por venda (receita, custo da carne, extras, lucro)

Cada relatório devolve ``(colunas, linhas, mensagem)`` para exibição tabular.
"""

from __future__ import annotations

from collections import OrderedDict
from typing import Dict, List, Optional, Tuple

from frigorifico.config import DB_PATH
from frigorifico.domain.formulas import (
    DataLike, dias_em_atraso, dias_em_camara, lote_de_id_completo, to_date, to_iso,
)
from frigorifico.domain.models import (
    CANCELADO, ESTORNADO, PAGO, Lote,
)
from frigorifico.domain.policies import (
    ALERTA, ATENCAO, BLOQUEADO, PRONTO, RESFRIAMENTO, classificar_idade,
)
from frigorifico.infra.logger import log_system_event
from frigorifico.infra.repositories import Repositorios
from frigorifico.usecases.parametros import carregar_parametros

Relatorio = Tuple[List[str], List[list], Optional[str]]


# ----------------------
# 1) Recebíveis
# ----------------------

def relatorio_recebiveis(hoje: DataLike, id_cliente: Optional[str] = None, db_path: str = DB_PATH) -> Relatorio:
    """Vendas com saldo devedor, vencidas primeiro."""
    repos = Repositorios(db_path)
    vendas = [
        v for v in repos.vendas.list(id_cliente=id_cliente, incluir_estornadas=False)
        if v.status_pagamento != PAGO and v.saldo_devedor > 0
    ]
    vendas.sort(key=lambda v: (v.data_vencimento, v.id_venda))
    columns = ["Venda", "Cliente", "Item", "Vencimento", "Total", "Pago", "Saldo", "Dias atraso"]
    rows = [
        [
            v.id_venda,
            v.nome_cliente or v.id_cliente,
            v.id_completo,
            v.data_vencimento,
            round(v.valor_total, 2),
            round(v.valor_pago_efetivo, 2),
            round(v.saldo_devedor, 2),
            dias_em_atraso(v.data_vencimento, hoje),
        ]
        for v in vendas
    ]
    log_system_event("relatorio_recebiveis", {"linhas": len(rows)})
    msg = None if rows else "Nenhum recebível em aberto."
    return columns, rows, msg


# ----------------------
# 2) Contas a pagar
# ----------------------

def relatorio_pagaveis(hoje: DataLike, db_path: str = DB_PATH) -> Relatorio:
    repos = Repositorios(db_path)
    contas = [
        c for c in repos.contas.list()
        if c.status not in (PAGO, ESTORNADO, CANCELADO)
    ]
    columns = ["Conta", "Descrição", "Lote", "Vencimento", "Valor", "Pago", "Saldo", "Status", "Dias atraso"]
    rows = [
        [
            c.id,
            c.descricao,
            c.id_lote or "",
            c.data_vencimento,
            round(c.valor, 2),
            round(c.valor_pago_efetivo, 2),
            round(c.saldo, 2),
            c.status,
            dias_em_atraso(c.data_vencimento, hoje),
        ]
        for c in contas
    ]
    log_system_event("relatorio_pagaveis", {"linhas": len(rows)})
    msg = None if rows else "Nenhuma conta a pagar em aberto."
    return columns, rows, msg


# ----------------------
# 3) Estoque por maturação
# ----------------------

def relatorio_estoque(hoje: DataLike, db_path: str = DB_PATH) -> Relatorio:
    """Peças disponíveis por faixa de maturação, inclusive as bloqueadas."""
    repos = Repositorios(db_path)
    cfg = carregar_parametros(db_path)
    faixas: "OrderedDict[str, Dict[str, float]]" = OrderedDict(
        (f, {"pecas": 0, "kg": 0.0}) for f in (RESFRIAMENTO, PRONTO, ALERTA, ATENCAO, BLOQUEADO)
    )
    for p in repos.pecas.disponiveis():
        faixa = classificar_idade(dias_em_camara(p.data_entrada, hoje), cfg.dias_bloqueio)
        faixas[faixa]["pecas"] += 1
        faixas[faixa]["kg"] += float(p.peso_entrada)
    columns = ["Maturação", "Peças", "Kg", "Vendável"]
    rows = [
        [faixa, int(v["pecas"]), round(v["kg"], 3), "NÃO" if faixa == BLOQUEADO else "SIM"]
        for faixa, v in faixas.items()
    ]
    bloqueadas = int(faixas[BLOQUEADO]["pecas"])
    if bloqueadas:
        log_system_event("relatorio_estoque_bloqueadas", {"pecas": bloqueadas}, level="warning")
    total = sum(int(v["pecas"]) for v in faixas.values())
    msg = None if total else "Nenhuma peça em estoque."
    return columns, rows, msg


# ----------------------
# 4) Resultado por venda
# ----------------------

def relatorio_resultado(
    desde: Optional[DataLike] = None,
    ate: Optional[DataLike] = None,
    db_path: str = DB_PATH,
) -> Relatorio:
    """Lucro por venda ativa: receita − peso de saída × custo/kg do lote − extras."""
    repos = Repositorios(db_path)
    lotes: Dict[str, Lote] = {l.id_lote: l for l in repos.lotes.list()}
    inicio = to_date(desde) if desde is not None else None
    fim = to_date(ate) if ate is not None else None

    columns = ["Venda", "Data", "Item", "Kg saída", "Receita", "Custo carne", "Extras", "Lucro", "Quebra kg"]
    rows: List[list] = []
    totais = {"receita": 0.0, "custo": 0.0, "extras": 0.0, "lucro": 0.0}
    for v in repos.vendas.list(incluir_estornadas=False):
        d = to_date(v.data_venda)
        if (inicio and d < inicio) or (fim and d > fim):
            continue
        lote = lotes.get(lote_de_id_completo(v.id_completo))
        custo_kg = lote.custo_real_kg if lote is not None else 0.0
        receita = float(v.peso_real_saida) * float(v.preco_venda_kg)
        custo = float(v.peso_real_saida) * custo_kg
        extras = float(v.custo_extras_total or 0)
        lucro = receita - custo - extras
        totais["receita"] += receita
        totais["custo"] += custo
        totais["extras"] += extras
        totais["lucro"] += lucro
        rows.append([
            v.id_venda, to_iso(d), v.id_completo, v.peso_real_saida,
            round(receita, 2), round(custo, 2), round(extras, 2), round(lucro, 2), v.quebra_kg,
        ])
    if not rows:
        return columns, rows, "Nenhuma venda no período."
    msg = (
        f"Receita {totais['receita']:.2f} | Custo {totais['custo']:.2f} | "
        f"Extras {totais['extras']:.2f} | Lucro {totais['lucro']:.2f}"
    )
    log_system_event("relatorio_resultado", {"vendas": len(rows), **{k: round(x, 2) for k, x in totais.items()}})
    return columns, rows, msg
