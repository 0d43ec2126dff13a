import sqlite3
from pathlib import Path

import pytest

from frigorifico.domain.errors import ValidationError
from frigorifico.domain.models import Transacao
from frigorifico.domain import razao
from frigorifico.infra.db import connect
from frigorifico.infra.migrations import apply_migrations
from frigorifico.infra.repositories import Repositorios
from frigorifico.infra.views import create_views
from frigorifico.usecases.financeiro import (
    cancelar_conta,
    criar_conta_pagar,
    estornar_transacao_razao,
    extrato,
    pagar_conta,
    registrar_transacao,
    saldo_caixa,
)


@pytest.fixture
def db(tmp_path: Path) -> str:
    db = str(tmp_path / "financeiro.sqlite")
    apply_migrations(db)
    create_views(db)
    return db


def _t(id, tipo, valor, categoria="OPERACIONAL", data="2026-03-01", **kw):
    return Transacao(id=id, data=data, descricao=id, tipo=tipo, categoria=categoria, valor=valor, **kw)


def test_saldo_puro_ignora_estornos_estornadas_e_orfas():
    ts = [
        _t("T1", "ENTRADA", 1000),
        _t("T2", "SAIDA", 300),
        _t("T3", "ENTRADA", 300, categoria="ESTORNO", estorno_de="T2"),
        _t("T4", "ENTRADA", 99, referencia_id="VENDA-APAGADA"),
        _t("T5", "SAIDA", 10, data="2026-03-05"),
    ]
    assert razao.saldo(ts) == 1000 + 99 - 10
    assert razao.saldo(ts, referencias=set()) == 1000 - 10
    assert razao.saldo(ts, referencias=set(), ate="2026-03-04") == 1000
    assert razao.saldo(ts, referencias=set(), desde="2026-03-02") == -10
    assert razao.saldo(ts, tipo="SAIDA") == -10
    estornados = razao.ids_estornados(ts)
    assert razao.situacao(ts[1], estornados) == razao.ESTORNADA
    assert razao.situacao(ts[2], estornados) == razao.ESTORNO
    assert razao.situacao(ts[3], estornados, set()) == razao.ORFA


def test_saldo_na_data_de_corte_nao_muda_com_estorno_posterior():
    ts = [
        _t("T1", "ENTRADA", 1000),
        _t("T2", "SAIDA", 300, data="2026-03-02"),
    ]
    antes = razao.saldo(ts, ate="2026-03-05")
    assert antes == 700
    ts.append(_t("T3", "ENTRADA", 300, categoria="ESTORNO", data="2026-03-10", estorno_de="T2"))
    assert razao.saldo(ts, ate="2026-03-05") == antes
    assert razao.saldo(ts, ate="2026-03-10") == 1000
    assert razao.saldo(ts) == 1000
    assert razao.ids_estornados(ts, ate="2026-03-09") == set()
    assert [t.id for t in razao.transacoes_validas(ts, ate="2026-03-09")] == ["T1", "T2"]


def test_lancamento_manual_e_saldo(db):
    assert registrar_transacao("ENTRADA", "OUTROS", 1500, "2026-03-01", "Aporte", db_path=db).ok
    assert registrar_transacao("SAIDA", "ESTRUTURA", 400, "2026-03-02", "Aluguel", db_path=db).ok
    assert saldo_caixa(db_path=db) == 1100.0
    assert saldo_caixa(ate="2026-03-01", db_path=db) == 1500.0
    assert saldo_caixa(categoria="ESTRUTURA", db_path=db) == -400.0


def test_lancamento_invalido(db):
    assert not registrar_transacao("ENTRADA", "OUTROS", 0, "2026-03-01", db_path=db).ok
    assert not registrar_transacao("ENTRADA", "OUTROS", -5, "2026-03-01", db_path=db).ok
    assert not registrar_transacao("CREDITO", "OUTROS", 5, "2026-03-01", db_path=db).ok
    assert not registrar_transacao("SAIDA", "ESTORNO", 5, "2026-03-01", db_path=db).ok
    assert not registrar_transacao("SAIDA", "LAZER", 5, "2026-03-01", db_path=db).ok
    res = registrar_transacao("ENTRADA", "VENDA", 5, "2026-03-01", referencia_id="V-NAO-EXISTE", db_path=db)
    assert type(res.erro).__name__ == "NotFoundError"
    assert Repositorios(db).razao.count() == 0


def test_estorno_de_razao_uma_unica_vez(db):
    t = registrar_transacao("SAIDA", "INSUMOS", 250, "2026-03-01", db_path=db).valor
    res = estornar_transacao_razao(t.id, "2026-03-02", db_path=db)
    assert res.ok
    inversa = res.valor
    assert (inversa.tipo, inversa.categoria, inversa.valor, inversa.estorno_de) == ("ENTRADA", "ESTORNO", 250, t.id)
    assert saldo_caixa(db_path=db) == 0.0

    res = estornar_transacao_razao(t.id, "2026-03-03", db_path=db)
    assert not res.ok
    assert type(res.erro).__name__ == "AlreadyReversedError"

    # estorno de estorno não existe
    assert not estornar_transacao_razao(inversa.id, "2026-03-03", db_path=db).ok
    assert type(estornar_transacao_razao("T-X", "2026-03-03", db_path=db).erro).__name__ == "NotFoundError"

    situacoes = {l.transacao.id: l.situacao for l in extrato(db_path=db)}
    assert situacoes == {t.id: razao.ESTORNADA, inversa.id: razao.ESTORNO}


def test_transacao_e_append_only(db):
    t = registrar_transacao("ENTRADA", "OUTROS", 100, "2026-03-01", db_path=db).valor
    with pytest.raises(sqlite3.DatabaseError):
        with connect(db) as c:
            c.execute("UPDATE transacao SET valor = 1 WHERE id = ?", (t.id,))
    with pytest.raises(sqlite3.DatabaseError):
        with connect(db) as c:
            c.execute("DELETE FROM transacao WHERE id = ?", (t.id,))
    assert Repositorios(db).razao.get(t.id).valor == 100


def test_view_de_transacoes_validas_bate_com_o_saldo(db):
    registrar_transacao("ENTRADA", "OUTROS", 1500, "2026-03-01", db_path=db)
    t = registrar_transacao("SAIDA", "INSUMOS", 250, "2026-03-01", db_path=db).valor
    registrar_transacao("SAIDA", "ESTRUTURA", 400, "2026-03-02", db_path=db)
    estornar_transacao_razao(t.id, "2026-03-02", db_path=db)
    with connect(db) as c:
        row = c.execute(
            "SELECT COALESCE(SUM(CASE WHEN tipo = 'ENTRADA' THEN valor ELSE -valor END), 0) "
            "FROM vw_transacoes_validas"
        ).fetchone()
    assert round(row[0], 2) == saldo_caixa(db_path=db) == 1100.0


def test_conta_a_pagar_parcial_e_quitada(db):
    conta = criar_conta_pagar("Energia março", 900, "2026-03-20", categoria="ESTRUTURA", db_path=db).valor
    assert conta.id.startswith("PAY-")
    assert conta.status == "PENDENTE"

    res = pagar_conta(conta.id, 400, "2026-03-10", metodo="PIX", db_path=db)
    assert res.ok
    assert res.valor.status == "PARCIAL"

    res = pagar_conta(conta.id, 600, "2026-03-12", db_path=db)
    assert type(res.erro).__name__ == "OverpaymentError"

    res = pagar_conta(conta.id, 500, "2026-03-15", db_path=db)
    assert res.valor.status == "PAGO"
    assert res.valor.data_pagamento == "2026-03-15"
    assert saldo_caixa(db_path=db) == -900.0
    assert saldo_caixa(categoria="ESTRUTURA", db_path=db) == -900.0


def test_cancelar_conta(db):
    livre = criar_conta_pagar("Manutenção", 300, "2026-03-20", db_path=db).valor
    res = cancelar_conta(livre.id, db_path=db)
    assert res.valor.status == "CANCELADO"
    assert cancelar_conta(livre.id, db_path=db).ok
    assert not pagar_conta(livre.id, 10, "2026-03-10", db_path=db).ok

    paga = criar_conta_pagar("Insumos", 300, "2026-03-20", categoria="INSUMOS", db_path=db).valor
    pagar_conta(paga.id, 100, "2026-03-10", db_path=db)
    res = cancelar_conta(paga.id, db_path=db)
    assert type(res.erro).__name__ == "DomainRuleError"
    assert not criar_conta_pagar("x", 10, "2026-03-20", categoria="ESTORNO", db_path=db).ok


def test_saldo_historico_estavel_apos_estorno(db):
    registrar_transacao("ENTRADA", "OUTROS", 1500, "2026-03-01", "Aporte", db_path=db)
    t = registrar_transacao("SAIDA", "INSUMOS", 250, "2026-03-02", db_path=db).valor
    fechamento = saldo_caixa(ate="2026-03-05", db_path=db)
    assert fechamento == 1250.0

    assert estornar_transacao_razao(t.id, "2026-03-10", db_path=db).ok
    assert saldo_caixa(ate="2026-03-05", db_path=db) == fechamento
    assert saldo_caixa(db_path=db) == 1500.0


def test_estorno_de_razao_recusa_pagamento_de_conta(db):
    conta = criar_conta_pagar("Energia março", 900, "2026-03-20", categoria="ESTRUTURA", db_path=db).valor
    pagar_conta(conta.id, 900, "2026-03-10", db_path=db)
    pagamento = Repositorios(db).razao.by_referencia(conta.id)[0]

    res = estornar_transacao_razao(pagamento.id, "2026-03-11", db_path=db)
    assert not res.ok
    assert type(res.erro).__name__ == "DomainRuleError"
    assert Repositorios(db).razao.count() == 1
    assert Repositorios(db).contas.get(conta.id).status == "PAGO"


def test_datas_malformadas(db):
    conta = criar_conta_pagar("Energia março", 900, "2026-03-20", categoria="ESTRUTURA", db_path=db).valor
    assert type(pagar_conta(conta.id, 100, "10/03/2026", db_path=db).erro).__name__ == "ValidationError"
    assert type(registrar_transacao("ENTRADA", "OUTROS", 5, "ontem", db_path=db).erro).__name__ == "ValidationError"
    with pytest.raises(ValidationError):
        saldo_caixa(ate="31/03/2026", db_path=db)
    assert Repositorios(db).razao.count() == 0
