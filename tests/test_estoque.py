from pathlib import Path

from frigorifico.domain.models import PecaRascunho
from frigorifico.infra.migrations import apply_migrations
from frigorifico.infra.views import create_views
from frigorifico.usecases.estoque import listar_vendaveis, resumo_lote
from frigorifico.usecases.estorno import estornar_lote
from frigorifico.usecases.lotes import confirmar_lote, rascunho_lote
from frigorifico.usecases.parametros import definir_parametro


def _db(tmp_path: Path) -> str:
    db = str(tmp_path / "estoque.sqlite")
    apply_migrations(db)
    create_views(db)
    return db


def _lote(db, fornecedor, data, pecas, peso_romaneio=500.0):
    r = rascunho_lote(fornecedor, data, peso_total_romaneio=peso_romaneio, valor_compra_total=9000)
    res = confirmar_lote(r, pecas, db_path=db)
    assert res.ok, res.erro
    return res.valor.id_lote


def test_vendaveis_mais_antigas_primeiro_sem_bloqueadas(tmp_path: Path):
    db = _db(tmp_path)
    velho = _lote(db, "Fazenda Velha", "2026-03-01", [PecaRascunho(1, "INTEIRO", 240)])
    medio = _lote(db, "Fazenda Media", "2026-03-10", [PecaRascunho(1, "BANDA_B", 118), PecaRascunho(1, "BANDA_A", 120)])
    novo = _lote(db, "Fazenda Nova", "2026-03-19", [PecaRascunho(1, "INTEIRO", 250)])

    pecas = listar_vendaveis("2026-03-20", db_path=db)
    # o lote de 01/03 tem 19 dias: bloqueado
    assert velho not in {p.id_lote for p in pecas}
    assert [p.id_completo for p in pecas] == [
        f"{medio}-001-BANDA_A",
        f"{medio}-001-BANDA_B",
        f"{novo}-001-INTEIRO",
    ]
    assert [p.maturacao for p in pecas] == ["ATENCAO", "ATENCAO", "RESFRIAMENTO"]
    assert pecas[0].alerta and not pecas[2].alerta
    assert pecas[0].dias == 10

    so_um = listar_vendaveis("2026-03-20", id_lote=novo, db_path=db)
    assert [p.id_lote for p in so_um] == [novo]


def test_dias_bloqueio_vem_dos_parametros(tmp_path: Path):
    db = _db(tmp_path)
    _lote(db, "Fazenda Media", "2026-03-10", [PecaRascunho(1, "INTEIRO", 240)])
    assert len(listar_vendaveis("2026-03-20", db_path=db)) == 1
    definir_parametro("dias_bloqueio", "10", db_path=db)
    assert listar_vendaveis("2026-03-20", db_path=db) == []


def test_lote_estornado_sai_do_estoque(tmp_path: Path):
    db = _db(tmp_path)
    id_lote = _lote(db, "Fazenda Media", "2026-03-10", [PecaRascunho(1, "INTEIRO", 240)])
    assert estornar_lote(id_lote, "2026-03-11", db_path=db).ok
    assert listar_vendaveis("2026-03-11", db_path=db) == []


def test_resumo_lote_confere_pesagem(tmp_path: Path):
    db = _db(tmp_path)
    id_lote = _lote(
        db, "Fazenda Boa Vista", "2026-03-02",
        [
            PecaRascunho(1, "BANDA_A", 120), PecaRascunho(1, "BANDA_B", 118),
            PecaRascunho(2, "INTEIRO", 250),
        ],
        peso_romaneio=500.0,
    )
    res = resumo_lote(id_lote, db_path=db)
    assert res.ok
    r = res.valor
    assert r.peso_pesado == 485.0
    assert r.diferenca == -15.0
    assert r.percentual == -3.0
    assert r.pecas == 3
    assert r.sequencias == 2
    assert r.desconto_total == 3.0
    assert r.custo_real_kg == 18.0

    assert not resumo_lote("XXX-0101-01", db_path=db).ok
