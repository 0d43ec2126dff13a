from pathlib import Path

import pytest

from frigorifico.config import DEFAULTS
from frigorifico.domain.errors import ValidationError
from frigorifico.infra.migrations import apply_migrations
from frigorifico.infra.repositories import ParamsRepo
from frigorifico.usecases.parametros import carregar_parametros, definir_parametro, listar_parametros


@pytest.fixture
def db(tmp_path: Path) -> str:
    db = str(tmp_path / "params.sqlite")
    apply_migrations(db)
    return db


def test_parametro_gravado_sobrepoe_default(db):
    definir_parametro("prazo_venda_dias", "21", db_path=db)
    definir_parametro("tolerancia_peso", "0.08", db_path=db)
    cfg = carregar_parametros(db)
    assert cfg.prazo_venda_dias == 21
    assert cfg.tolerancia_peso == 0.08
    assert cfg.dias_bloqueio == DEFAULTS.dias_bloqueio
    assert listar_parametros(db)["prazo_venda_dias"] == 21


@pytest.mark.parametrize(
    "chave, valor",
    [
        ("dias_bloqueio", "-1"),
        ("dias_bloqueio", "0"),
        ("dias_bloqueio", "2.5"),
        ("epsilon", "-0.01"),
        ("epsilon", "0"),
        ("volume_parceiro", "0"),
        ("tolerancia_peso", "-0.05"),
        ("desconto_carcaca_kg", "-3"),
        ("prazo_venda_dias", "-30"),
        ("prazo_compra_dias", "nan"),
        ("tolerancia_peso", "inf"),
        ("epsilon", "um centavo"),
        ("nivel_servico", "0.95"),
    ],
)
def test_parametro_invalido_nao_e_gravado(db, chave, valor):
    with pytest.raises(ValidationError):
        definir_parametro(chave, valor, db_path=db)
    assert ParamsRepo(db).get(chave) is None


def test_zero_aceito_onde_faz_sentido(db):
    definir_parametro("tolerancia_peso", "0", db_path=db)
    definir_parametro("desconto_carcaca_kg", "0", db_path=db)
    definir_parametro("prazo_compra_dias", "0", db_path=db)
    cfg = carregar_parametros(db)
    assert (cfg.tolerancia_peso, cfg.desconto_carcaca_kg, cfg.prazo_compra_dias) == (0.0, 0.0, 0)
