from pathlib import Path

from typer.testing import CliRunner

from frigorifico.adapters.cli import app
from frigorifico.infra import logger


def _redirecionar(monkeypatch, tmp_path: Path, tipo: str, attr: str):
    arquivo = tmp_path / f"{tipo}.log"
    novo = logger.setup_logger(f"frigorifico.test.{tipo}", str(arquivo))
    monkeypatch.setattr(logger, attr, novo)
    monkeypatch.setitem(logger.LOG_FILES, tipo, arquivo)
    return arquivo


def test_logging_desligado_nao_escreve(monkeypatch, tmp_path: Path):
    monkeypatch.setattr(logger, "ENABLE_LOGGING", False)
    monkeypatch.setattr(logger, "ENABLE_OUTPUT", False)
    arquivo = _redirecionar(monkeypatch, tmp_path, "system", "system_logger")

    logger.log_system_event("teste", {"x": 1})
    assert not arquivo.exists()
    assert logger.get_log_summary("system") is None


def test_logging_ligado_grava_e_resume(monkeypatch, tmp_path: Path):
    monkeypatch.setattr(logger, "ENABLE_LOGGING", True)
    _redirecionar(monkeypatch, tmp_path, "system", "system_logger")
    _redirecionar(monkeypatch, tmp_path, "transactions", "transaction_logger")

    logger.log_system_event("inicio", {"teste": "logging"})
    logger.log_file_operation("import_romaneio", "pesagem.xlsx", rows_processed=3)
    logger.log_transaction("aplicar_pagamento", {"id_venda": "V-1"}, result="ok")
    logger.log_transaction("aplicar_pagamento", {"id_venda": "V-1"}, error="excede", level="warning")

    resumo = logger.get_log_summary("system", lines=10)
    assert "SYSTEM_EVENT: inicio" in resumo
    assert "FILE_IMPORT_ROMANEIO" in resumo

    resumo = logger.get_log_summary("transactions", lines=1)
    assert "WARNING" in resumo
    assert "TRANSACTION_FAILED: aplicar_pagamento - excede" in resumo

    assert "não encontrado" in logger.get_log_summary("vendas_inexistente")


def test_cli_logs_com_logging_desligado(monkeypatch):
    monkeypatch.setattr(logger, "ENABLE_LOGGING", False)
    monkeypatch.setattr(logger, "ENABLE_OUTPUT", False)
    result = CliRunner().invoke(app, ["logs", "system"])
    assert result.exit_code == 0
    assert "Logging desligado" in result.stdout
