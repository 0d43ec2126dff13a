from math import isclose
from pathlib import Path

import pytest

from frigorifico.domain.models import PecaRascunho
from frigorifico.infra.migrations import apply_migrations
from frigorifico.infra.repositories import Repositorios
from frigorifico.infra.views import create_views
from frigorifico.usecases.credito import cadastrar_cliente, saldo_devedor
from frigorifico.usecases.financeiro import saldo_caixa
from frigorifico.usecases.lotes import confirmar_lote, rascunho_lote
from frigorifico.usecases.vendas import (
    alocar_venda,
    aplicar_pagamento,
    receber_cliente,
    registrar_expedicao,
)

LOTE = "FAZV-0203-01"
A1 = f"{LOTE}-001-BANDA_A"
B1 = f"{LOTE}-001-BANDA_B"
I2 = f"{LOTE}-002-INTEIRO"
A3 = f"{LOTE}-003-BANDA_A"
B3 = f"{LOTE}-003-BANDA_B"


@pytest.fixture
def db(tmp_path: Path) -> str:
    db = str(tmp_path / "vendas.sqlite")
    apply_migrations(db)
    create_views(db)
    r = rascunho_lote(
        "Fazenda Boa Vista", "2026-03-02",
        peso_total_romaneio=1000, valor_compra_total=18000, frete=500, gastos_extras=200,
        forma_pagamento="PRAZO",
    )
    pecas = [
        PecaRascunho(1, "BANDA_A", 120), PecaRascunho(1, "BANDA_B", 118),
        PecaRascunho(2, "INTEIRO", 250),
        PecaRascunho(3, "BANDA_A", 110), PecaRascunho(3, "BANDA_B", 109),
    ]
    assert confirmar_lote(r, pecas, db_path=db).ok
    assert cadastrar_cliente("C1", "Açougue Central", 20000, db_path=db).ok
    return db


def test_venda_de_carcaca_em_bandas_e_pagamento_parcial(db):
    res = alocar_venda([A1, B1], "C1", 25, 233, "2026-03-05", db_path=db)
    assert res.ok, res.erro
    venda = res.valor
    assert venda.id_completo == f"{LOTE}-001-INTEIRO"
    assert venda.peso_entrada_total == 238.0
    assert venda.quebra_kg == 5.0
    assert isclose(venda.valor_total, 5825.0)
    assert venda.data_vencimento == "2026-04-04"
    assert venda.status_pagamento == "PENDENTE"

    repos = Repositorios(db)
    assert {p.status for p in repos.pecas.by_ids([A1, B1])} == {"VENDIDO"}

    res = aplicar_pagamento(venda.id_venda, 3000, desconto=200, metodo="PIX", data="2026-03-06", db_path=db)
    assert res.ok, res.erro
    venda = res.valor
    assert isclose(venda.valor_pago, 3200.0)
    assert isclose(venda.saldo_devedor, 2625.0)
    assert venda.status_pagamento == "PENDENTE"

    lancamentos = repos.razao.by_referencia(venda.id_venda)
    assert sorted((t.tipo, t.categoria, t.valor) for t in lancamentos) == [
        ("ENTRADA", "VENDA", 3000.0),
        ("SAIDA", "DESCONTO", 200.0),
    ]
    assert saldo_caixa(referencia_id=venda.id_venda, db_path=db) == 2800.0
    assert saldo_devedor("C1", db_path=db) == 2625.0


def test_quitacao_e_excesso(db):
    venda = alocar_venda([A1, B1], "C1", 25, 233, "2026-03-05", db_path=db).valor
    assert aplicar_pagamento(venda.id_venda, 3000, "2026-03-06", desconto=200, db_path=db).ok

    res = aplicar_pagamento(venda.id_venda, 3000, "2026-03-07", db_path=db)
    assert not res.ok
    assert type(res.erro).__name__ == "OverpaymentError"

    res = aplicar_pagamento(venda.id_venda, 2625, "2026-03-07", db_path=db)
    assert res.ok
    assert res.valor.status_pagamento == "PAGO"
    assert saldo_devedor("C1", db_path=db) == 0.0


def test_pagamento_vazio_ou_negativo(db):
    venda = alocar_venda([I2], "C1", 20, 245, "2026-03-05", db_path=db).valor
    assert isinstance(aplicar_pagamento(venda.id_venda, 0, "2026-03-06", db_path=db).erro, Exception)
    assert not aplicar_pagamento(venda.id_venda, -10, "2026-03-06", db_path=db).ok
    assert not aplicar_pagamento(venda.id_venda, 10, "2026-03-06", metodo="FIADO", db_path=db).ok


def test_peso_de_saida_acima_da_tolerancia(db):
    res = alocar_venda([A1, B1], "C1", 25, 250, "2026-03-05", db_path=db)
    assert not res.ok
    assert type(res.erro).__name__ == "ValidationError"
    assert not alocar_venda([A1, B1], "C1", 25, 0, "2026-03-05", db_path=db).ok
    # dentro dos 5%
    assert alocar_venda([A1, B1], "C1", 25, 249, "2026-03-05", db_path=db).ok


def test_pecas_de_carcacas_diferentes_na_mesma_venda(db):
    res = alocar_venda([A1, I2], "C1", 25, 300, "2026-03-05", db_path=db)
    assert not res.ok
    assert Repositorios(db).pecas.get(A1).status == "DISPONIVEL"


def test_peca_ja_vendida_ou_inexistente(db):
    assert alocar_venda([I2], "C1", 20, 245, "2026-03-05", db_path=db).ok
    res = alocar_venda([I2], "C1", 20, 245, "2026-03-05", db_path=db)
    assert type(res.erro).__name__ == "DomainRuleError"
    res = alocar_venda([f"{LOTE}-009-INTEIRO"], "C1", 20, 245, "2026-03-05", db_path=db)
    assert type(res.erro).__name__ == "NotFoundError"
    res = alocar_venda([A3], "NINGUEM", 20, 100, "2026-03-05", db_path=db)
    assert type(res.erro).__name__ == "NotFoundError"


def test_idade_bloqueia_e_avisa(db):
    res = alocar_venda([I2], "C1", 20, 245, "2026-03-14", db_path=db)
    assert not res.ok
    assert type(res.erro).__name__ == "StaleInventoryError"
    assert Repositorios(db).pecas.get(I2).status == "DISPONIVEL"

    res = alocar_venda([I2], "C1", 20, 245, "2026-03-11", db_path=db)
    assert res.ok
    assert len(res.avisos) == 1
    assert I2 in res.avisos[0]


def test_banda_avulsa(db):
    res = alocar_venda([A3], "C1", 22, 108, "2026-03-05", prazo_dias=7, db_path=db)
    assert res.ok
    assert res.valor.id_completo == A3
    assert res.valor.data_vencimento == "2026-03-12"
    assert Repositorios(db).pecas.get(B3).status == "DISPONIVEL"


def test_expedicao_divide_extras_por_carcaca(db):
    res = registrar_expedicao(
        {A1: None, B1: None, I2: 245},
        "C1", 20, "2026-03-05", custo_extras=100, db_path=db,
    )
    assert res.ok, res.erro
    v1, v2 = res.valor
    assert v1.id_completo == f"{LOTE}-001-INTEIRO"
    assert v1.peso_real_saida == 238.0
    assert v1.quebra_kg == 0.0
    assert v1.custo_extras_total == 50.0
    assert v2.id_completo == I2
    assert v2.peso_real_saida == 245.0
    assert isclose(v2.valor_total, 245 * 20 + 50)
    assert len(Repositorios(db).vendas.list(id_cliente="C1")) == 2


def test_expedicao_falha_inteira_se_uma_peca_nao_sai(db):
    assert alocar_venda([I2], "C1", 20, 245, "2026-03-05", db_path=db).ok
    res = registrar_expedicao({A1: None, B1: None, I2: None}, "C1", 20, "2026-03-05", db_path=db)
    assert not res.ok
    repos = Repositorios(db)
    assert repos.pecas.get(A1).status == "DISPONIVEL"
    assert len(repos.vendas.list()) == 1


def test_recebimento_do_cliente_fifo(db):
    v1 = alocar_venda([I2], "C1", 20, 245, "2026-03-05", db_path=db).valor     # 4900
    v2 = alocar_venda([A3, B3], "C1", 20, 215, "2026-03-06", db_path=db).valor  # 4300

    res = receber_cliente("C1", 10000, "2026-03-10", db_path=db)
    assert not res.ok
    assert type(res.erro).__name__ == "OverpaymentError"

    res = receber_cliente("C1", 6000, metodo="PIX", data="2026-03-10", db_path=db)
    assert res.ok, res.erro
    assert [v.id_venda for v in res.valor] == [v1.id_venda, v2.id_venda]

    repos = Repositorios(db)
    assert repos.vendas.get(v1.id_venda).status_pagamento == "PAGO"
    assert isclose(repos.vendas.get(v2.id_venda).valor_pago, 1100.0)
    assert saldo_devedor("C1", db_path=db) == 3200.0


def test_datas_e_prazos_malformados_viram_validation_error(db):
    res = alocar_venda([I2], "C1", 20, 245, "05/03/2026", db_path=db)
    assert not res.ok
    assert type(res.erro).__name__ == "ValidationError"

    for prazo in ("abc", -1, 2.5):
        res = alocar_venda([I2], "C1", 20, 245, "2026-03-05", prazo_dias=prazo, db_path=db)
        assert not res.ok
        assert type(res.erro).__name__ == "ValidationError"
    res = registrar_expedicao({I2: None}, "C1", 20, "2026-03-05", prazo_dias="trinta", db_path=db)
    assert type(res.erro).__name__ == "ValidationError"

    # nada foi gravado pelas tentativas
    repos = Repositorios(db)
    assert repos.pecas.get(I2).status == "DISPONIVEL"
    assert repos.vendas.list() == []

    venda = alocar_venda([I2], "C1", 20, 245, "2026-03-05", db_path=db).valor
    n = repos.razao.count()
    res = aplicar_pagamento(venda.id_venda, 100, "ontem", db_path=db)
    assert type(res.erro).__name__ == "ValidationError"
    res = receber_cliente("C1", 100, "2026-13-01", db_path=db)
    assert type(res.erro).__name__ == "ValidationError"
    assert repos.razao.count() == n
