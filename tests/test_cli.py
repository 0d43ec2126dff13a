import json
from pathlib import Path

import pandas as pd
from typer.testing import CliRunner

from frigorifico.adapters.cli import app
from frigorifico.infra.repositories import Repositorios

runner = CliRunner()


def _migrate(tmp_path: Path) -> str:
    db_path = str(tmp_path / "frigorifico_test.sqlite")
    result = runner.invoke(app, ["migrate", "--db", db_path])
    assert result.exit_code == 0, result.output
    return db_path


def _romaneio(tmp_path: Path) -> str:
    path = tmp_path / "romaneio.xlsx"
    pd.DataFrame({
        "Seq": [1, 1, 2],
        "Tipo": ["A", "B", "Inteiro"],
        "Peso (kg)": [120, 118, 250],
    }).to_excel(path, index=False)
    return str(path)


def test_cli_migrate_and_params_show(tmp_path: Path):
    db_path = _migrate(tmp_path)
    result = runner.invoke(app, ["params", "show", "--db", db_path])
    assert result.exit_code == 0, result.output
    data = json.loads(result.stdout)
    assert data["dias_bloqueio"] == 12
    assert data["desconto_carcaca_kg"] == 3.0
    assert "_defaults" in data


def test_cli_params_set_and_get(tmp_path: Path):
    db_path = _migrate(tmp_path)
    result = runner.invoke(app, ["params", "set", "prazo_venda_dias", "21", "--db", db_path])
    assert result.exit_code == 0, result.output

    result = runner.invoke(app, ["params", "get", "prazo_venda_dias", "--db", db_path])
    assert result.exit_code == 0
    assert result.stdout.strip() == "21"

    result = runner.invoke(app, ["params", "set", "nivel_servico", "0.95", "--db", db_path])
    assert result.exit_code == 1


def test_cli_fluxo_lote_venda_pagamento(tmp_path: Path):
    db_path = _migrate(tmp_path)
    result = runner.invoke(app, ["cliente", "cadastrar", "C1", "Açougue Central", "--limite", "20000", "--db", db_path])
    assert result.exit_code == 0, result.output

    result = runner.invoke(app, [
        "lote", "importar", _romaneio(tmp_path),
        "--fornecedor", "Fazenda Boa Vista",
        "--data", "2026-03-02",
        "--peso-romaneio", "1000",
        "--valor-compra", "18000",
        "--frete", "500",
        "--gastos-extras", "200",
        "--db", db_path,
    ])
    assert result.exit_code == 0, result.output
    assert "Lote FAZV-0203-01 confirmado com 3 peças" in result.stdout

    result = runner.invoke(app, ["estoque", "listar", "--hoje", "2026-03-05", "--db", db_path])
    assert result.exit_code == 0, result.output

    result = runner.invoke(app, [
        "venda", "registrar", "FAZV-0203-01-001-BANDA_A", "FAZV-0203-01-001-BANDA_B",
        "--cliente", "C1", "--preco", "25", "--peso-saida", "233", "--data", "2026-03-05",
        "--db", db_path,
    ])
    assert result.exit_code == 0, result.output
    assert "5825.00" in result.stdout

    id_venda = Repositorios(db_path).vendas.list()[0].id_venda
    result = runner.invoke(app, [
        "venda", "pagar", id_venda, "--valor", "3000", "--desconto", "200", "--db", db_path,
    ])
    assert result.exit_code == 0, result.output
    assert "saldo 2625.00" in result.stdout

    result = runner.invoke(app, ["financeiro", "saldo", "--db", db_path])
    assert result.exit_code == 0
    assert result.stdout.strip() == "-15900.00"

    for rel in ("recebiveis", "pagaveis", "estoque", "resultado"):
        result = runner.invoke(app, ["rel", rel, "--db", db_path])
        assert result.exit_code == 0, result.output

    result = runner.invoke(app, ["lote", "estornar", "FAZV-0203-01", "--db", db_path])
    assert result.exit_code == 0, result.output
    assert "1 vendas" in result.stdout

    result = runner.invoke(app, ["financeiro", "saldo", "--db", db_path])
    assert result.stdout.strip() == "0.00"


def test_cli_erro_sai_com_codigo_1(tmp_path: Path):
    db_path = _migrate(tmp_path)
    result = runner.invoke(app, ["venda", "pagar", "V-NAO-EXISTE", "--valor", "10", "--db", db_path])
    assert result.exit_code == 1
    assert "Venda não encontrada" in result.stdout

    result = runner.invoke(app, ["lote", "resumo", "XXX-0101-01", "--db", db_path])
    assert result.exit_code == 1


def test_cli_lancamento_manual_e_extrato(tmp_path: Path):
    db_path = _migrate(tmp_path)
    result = runner.invoke(app, [
        "financeiro", "lancar", "SAIDA", "250", "--categoria", "insumos",
        "--data", "2026-03-01", "--db", db_path,
    ])
    assert result.exit_code == 0, result.output
    result = runner.invoke(app, ["financeiro", "saldo", "--db", db_path])
    assert result.stdout.strip() == "-250.00"

    id_t = Repositorios(db_path).razao.list()[0].id
    result = runner.invoke(app, ["financeiro", "estornar", id_t, "--db", db_path])
    assert result.exit_code == 0, result.output
    result = runner.invoke(app, ["financeiro", "estornar", id_t, "--db", db_path])
    assert "já estava estornada" in result.stdout

    result = runner.invoke(app, ["financeiro", "extrato", "--db", db_path])
    assert result.exit_code == 0, result.output


def test_cli_params_recusa_valor_fora_da_faixa(tmp_path: Path):
    db_path = _migrate(tmp_path)
    result = runner.invoke(app, ["params", "set", "epsilon", "0", "--db", db_path])
    assert result.exit_code == 1
    assert "positivo" in result.stdout
    result = runner.invoke(app, ["params", "get", "epsilon", "--db", db_path])
    assert result.stdout.strip() == "(None)"


def test_cli_fornecedor_cadastrado_e_usado_no_lote(tmp_path: Path):
    db_path = _migrate(tmp_path)
    result = runner.invoke(app, [
        "fornecedor", "cadastrar", "F01", "Fazenda Boa Vista", "--cidade", "Uberaba", "--db", db_path,
    ])
    assert result.exit_code == 0, result.output
    assert "Fornecedor F01 cadastrado (ATIVO)" in result.stdout

    result = runner.invoke(app, [
        "lote", "importar", _romaneio(tmp_path),
        "--fornecedor", "F01",
        "--data", "2026-03-02",
        "--peso-romaneio", "1000",
        "--valor-compra", "18000",
        "--db", db_path,
    ])
    assert result.exit_code == 0, result.output
    assert "Lote FAZV-0203-01 confirmado" in result.stdout
    assert Repositorios(db_path).lotes.get("FAZV-0203-01").fornecedor == "Fazenda Boa Vista"


def test_cli_data_malformada_sai_com_codigo_1(tmp_path: Path):
    db_path = _migrate(tmp_path)
    result = runner.invoke(app, ["financeiro", "saldo", "--ate", "31/03/2026", "--db", db_path])
    assert result.exit_code == 1
    assert "Data inválida" in result.stdout

    result = runner.invoke(app, ["estoque", "listar", "--hoje", "amanhã", "--db", db_path])
    assert result.exit_code == 1
