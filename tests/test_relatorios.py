from math import isclose
from pathlib import Path

import pytest

from frigorifico.domain.models import PecaRascunho
from frigorifico.infra.migrations import apply_migrations
from frigorifico.infra.views import create_views
from frigorifico.usecases.credito import cadastrar_cliente
from frigorifico.usecases.estorno import estornar_venda
from frigorifico.usecases.financeiro import criar_conta_pagar
from frigorifico.usecases.lotes import confirmar_lote, rascunho_lote
from frigorifico.usecases.relatorios import (
    relatorio_estoque,
    relatorio_pagaveis,
    relatorio_recebiveis,
    relatorio_resultado,
)
from frigorifico.usecases.vendas import alocar_venda, aplicar_pagamento

LOTE = "FAZV-0203-01"


@pytest.fixture
def db(tmp_path: Path) -> str:
    db = str(tmp_path / "relatorios.sqlite")
    apply_migrations(db)
    create_views(db)
    r = rascunho_lote(
        "Fazenda Boa Vista", "2026-03-02",
        peso_total_romaneio=1000, valor_compra_total=18000, frete=500, gastos_extras=200,
        forma_pagamento="PRAZO", valor_entrada=700, prazo_dias=15,
    )
    pecas = [
        PecaRascunho(1, "BANDA_A", 120), PecaRascunho(1, "BANDA_B", 118),
        PecaRascunho(2, "INTEIRO", 250),
        PecaRascunho(3, "INTEIRO", 245),
    ]
    assert confirmar_lote(r, pecas, db_path=db).ok
    assert cadastrar_cliente("C1", "Açougue Central", 20000, db_path=db).ok
    return db


def test_recebiveis_com_atraso(db):
    venda = alocar_venda(
        [f"{LOTE}-001-BANDA_A", f"{LOTE}-001-BANDA_B"], "C1", 25, 233, "2026-03-05",
        prazo_dias=10, db_path=db,
    ).valor
    aplicar_pagamento(venda.id_venda, 3000, "2026-03-06", desconto=200, db_path=db)

    cols, rows, msg = relatorio_recebiveis("2026-03-20", db_path=db)
    assert msg is None
    assert len(rows) == 1
    linha = dict(zip(cols, rows[0]))
    assert linha["Venda"] == venda.id_venda
    assert linha["Cliente"] == "Açougue Central"
    assert linha["Saldo"] == 2625.0
    assert linha["Dias atraso"] == 5

    estornar_venda(venda.id_venda, "2026-03-07", db_path=db)
    _, rows, msg = relatorio_recebiveis("2026-03-20", db_path=db)
    assert rows == []
    assert msg


def test_pagaveis_em_aberto(db):
    criar_conta_pagar("Energia", 900, "2026-03-25", db_path=db)
    cols, rows, _ = relatorio_pagaveis("2026-03-20", db_path=db)
    por_conta = {r[0]: dict(zip(cols, r)) for r in rows}
    compra = por_conta[f"PAY-LOTE-{LOTE}"]
    assert compra["Status"] == "PARCIAL"
    assert compra["Saldo"] == 18000.0
    assert compra["Dias atraso"] == 3
    assert len(por_conta) == 2


def test_estoque_por_maturacao(db):
    cols, rows, msg = relatorio_estoque("2026-03-10", db_path=db)
    assert msg is None
    faixas = {r[0]: dict(zip(cols, r)) for r in rows}
    assert faixas["ATENCAO"]["Peças"] == 4
    assert isclose(faixas["ATENCAO"]["Kg"], 733.0)
    assert faixas["PRONTO"]["Peças"] == 0

    _, rows, _ = relatorio_estoque("2026-03-20", db_path=db)
    faixas = {r[0]: r for r in rows}
    assert faixas["BLOQUEADO"][1] == 4
    assert faixas["BLOQUEADO"][3] == "NÃO"


def test_resultado_por_venda(db):
    alocar_venda([f"{LOTE}-002-INTEIRO"], "C1", 25, 245, "2026-03-05", custo_extras=30, db_path=db)
    alocar_venda([f"{LOTE}-003-INTEIRO"], "C1", 25, 240, "2026-03-07", db_path=db)

    cols, rows, msg = relatorio_resultado(desde="2026-03-01", ate="2026-03-06", db_path=db)
    assert len(rows) == 1
    linha = dict(zip(cols, rows[0]))
    # custo/kg do lote = 18.70
    assert linha["Receita"] == 6125.0
    assert linha["Custo carne"] == 4581.5
    assert linha["Extras"] == 30.0
    assert linha["Lucro"] == 1513.5
    assert linha["Quebra kg"] == 5.0
    assert "Lucro 1513.50" in msg

    _, rows, _ = relatorio_resultado(db_path=db)
    assert len(rows) == 2
    _, rows, msg = relatorio_resultado(desde="2027-01-01", db_path=db)
    assert rows == [] and msg
