"""
Testes do loader da planilha de pesagem (romaneio).

As planilhas são gravadas com pandas num diretório temporário e lidas de
volta pelo loader, como acontece com a exportação da balança.
"""

from pathlib import Path

import pandas as pd
import pytest

from frigorifico.adapters.romaneio_loader import _normalize_columns, load_pecas_from_xlsx
from frigorifico.domain.errors import ValidationError


def _xlsx(tmp_path: Path, dados: dict, nome: str = "romaneio.xlsx") -> str:
    path = tmp_path / nome
    pd.DataFrame(dados).to_excel(path, index=False)
    return str(path)


def test_normalize_columns_sinonimos():
    df = pd.DataFrame({"Nº": [1], "Banda": ["A"], "Peso (kg)": ["120,5"]})
    cols = list(_normalize_columns(df).columns)
    assert "tipo" in cols
    assert "peso" in cols


def test_load_com_sequencia_tipo_e_peso(tmp_path: Path):
    path = _xlsx(tmp_path, {
        "Sequência": [1, 1, 2],
        "Tipo": ["A", "B", "Inteiro"],
        "Peso": ["120,5 kg", "118", 250.25],
    })
    pecas = load_pecas_from_xlsx(path)
    assert [(p.sequencia, p.tipo, p.peso) for p in pecas] == [
        (1, "BANDA_A", 120.5),
        (1, "BANDA_B", 118.0),
        (2, "INTEIRO", 250.25),
    ]


def test_load_sem_sequencia_numera_como_a_pesagem(tmp_path: Path):
    path = _xlsx(tmp_path, {
        "Tipo": ["A", "B", "A", "B", "inteiro", "A"],
        "Peso": [120, 118, 110, 109, 240, 100],
    })
    pecas = load_pecas_from_xlsx(path)
    assert [(p.sequencia, p.tipo) for p in pecas] == [
        (1, "BANDA_A"), (1, "BANDA_B"),
        (2, "BANDA_A"), (2, "BANDA_B"),
        (3, "INTEIRO"),
        (4, "BANDA_A"),
    ]


def test_load_sem_tipo_assume_inteiro_e_ignora_linhas_sem_peso(tmp_path: Path):
    path = _xlsx(tmp_path, {"Peso": [240.0, None, 236.5]})
    pecas = load_pecas_from_xlsx(path)
    assert [(p.sequencia, p.tipo, p.peso) for p in pecas] == [
        (1, "INTEIRO", 240.0),
        (2, "INTEIRO", 236.5),
    ]


def test_tipo_ilegivel_informa_a_linha(tmp_path: Path):
    path = _xlsx(tmp_path, {"Tipo": ["A", "dianteiro"], "Peso": [120, 118]})
    with pytest.raises(ValidationError) as exc:
        load_pecas_from_xlsx(path)
    assert exc.value.detalhes["linha"] == 3


def test_planilha_sem_coluna_de_peso(tmp_path: Path):
    path = _xlsx(tmp_path, {"Tipo": ["A"], "Observação": ["x"]})
    with pytest.raises(ValidationError):
        load_pecas_from_xlsx(path)
