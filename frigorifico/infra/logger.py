# frigorifico/infra/logger.py
"""
Sistema de logging das operações do núcleo.

Este módulo configura e fornece loggers para registrar todas as operações
críticas: confirmação e estorno de lotes, vendas, pagamentos, lançamentos
no razão e operações no banco de dados.
"""

import logging
import os
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional


# Flag global para habilitar/desabilitar logging
ENABLE_LOGGING = os.environ.get("FRIGORIFICO_LOGGING", "0") == "1"
# Flag global para habilitar/desabilitar prints/output
ENABLE_OUTPUT = os.environ.get("FRIGORIFICO_OUTPUT", "0") == "1"


def print_system(*args, **kwargs):
    """Print controlado pelo ENABLE_OUTPUT."""
    if ENABLE_OUTPUT:
        print(*args, **kwargs)


# Configuração base dos loggers
LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'


def setup_logger(name: str, log_file: str, level: int = logging.INFO) -> logging.Logger:
    """
    Configura um logger específico com arquivo de saída.

    Args:
        name: Nome do logger
        log_file: Caminho do arquivo de log
        level: Nível de logging (DEBUG, INFO, WARNING, ERROR, CRITICAL)

    Returns:
        Logger configurado
    """
    log_path = Path(log_file)
    log_path.parent.mkdir(parents=True, exist_ok=True)

    logger = logging.getLogger(name)
    logger.setLevel(level)
    logger.propagate = False

    # Remove handlers de uma configuração anterior
    while logger.handlers:
        logger.removeHandler(logger.handlers[0])

    # delay=True: o arquivo só é criado na primeira mensagem
    file_handler = logging.FileHandler(log_file, encoding='utf-8', delay=True)
    file_handler.setLevel(level)
    file_handler.setFormatter(logging.Formatter(LOG_FORMAT, DATE_FORMAT))
    logger.addHandler(file_handler)

    return logger


# Diretório base para logs
BASE_DIR = Path(__file__).parent.parent
LOGS_DIR = Path(os.environ.get("FRIGORIFICO_LOGS_DIR", str(BASE_DIR / "logs")))

LOG_FILES = {
    "transactions": LOGS_DIR / "transactions.log",
    "lotes": LOGS_DIR / "lotes.log",
    "vendas": LOGS_DIR / "vendas.log",
    "financeiro": LOGS_DIR / "financeiro.log",
    "database": LOGS_DIR / "database.log",
    "system": LOGS_DIR / "system.log",
}

# Loggers específicos para cada operação
transaction_logger = setup_logger('frigorifico.transactions', str(LOG_FILES["transactions"]))
lote_logger = setup_logger('frigorifico.lotes', str(LOG_FILES["lotes"]))
venda_logger = setup_logger('frigorifico.vendas', str(LOG_FILES["vendas"]))
financeiro_logger = setup_logger('frigorifico.financeiro', str(LOG_FILES["financeiro"]))
database_logger = setup_logger('frigorifico.database', str(LOG_FILES["database"]))
system_logger = setup_logger('frigorifico.system', str(LOG_FILES["system"]))


def log_transaction(
    operation: str,
    data: Dict[str, Any],
    result: Optional[Any] = None,
    error: Optional[str] = None,
    level: str = "error",
) -> None:
    """
    Registra uma operação completa no log.

    Args:
        operation: Nome da operação (confirmar_lote, aplicar_pagamento, ...)
        data: Argumentos da operação
        result: Resultado da operação (opcional)
        error: Mensagem de erro (opcional)
        level: Nível usado quando há erro ("warning" para regra de negócio)
    """
    if not (ENABLE_LOGGING or ENABLE_OUTPUT):
        return
    if error:
        log_method = getattr(transaction_logger, level.lower(), transaction_logger.error)
        log_method(f"TRANSACTION_FAILED: {operation} - {error} - Data: {data}")
    else:
        transaction_logger.info(f"TRANSACTION_SUCCESS: {operation} - Result: {result} - Data: {data}")


def log_lote(action: str, id_lote: str, **kwargs) -> None:
    """
    Log específico para o ciclo de vida do lote.

    Args:
        action: Ação realizada (confirmar, editar, adicionar_pecas, estornar)
        id_lote: Identificador do lote
        **kwargs: Dados adicionais
    """
    if not (ENABLE_LOGGING or ENABLE_OUTPUT):
        return
    log_data = {"action": action, "id_lote": id_lote, **kwargs}
    lote_logger.info(f"LOTE_{action.upper()}: {log_data}")


def log_venda(action: str, id_venda: str, **kwargs) -> None:
    """Log específico para vendas (registrar, pagar, estornar)."""
    if not (ENABLE_LOGGING or ENABLE_OUTPUT):
        return
    log_data = {"action": action, "id_venda": id_venda, **kwargs}
    venda_logger.info(f"VENDA_{action.upper()}: {log_data}")


def log_financeiro(action: str, referencia: Optional[str], valor: float = 0.0, **kwargs) -> None:
    """Log de movimentos do razão e de contas a pagar."""
    if not (ENABLE_LOGGING or ENABLE_OUTPUT):
        return
    log_data = {"action": action, "referencia": referencia, "valor": valor, **kwargs}
    financeiro_logger.info(f"FIN_{action.upper()}: {log_data}")


def log_database_operation(table: str, operation: str, affected_rows: int = 0, **kwargs) -> None:
    """
    Log específico para operações no banco de dados.

    Args:
        table: Nome da tabela
        operation: Operação SQL (INSERT, UPDATE, MIGRATE)
        affected_rows: Número de linhas afetadas
        **kwargs: Dados adicionais
    """
    if not (ENABLE_LOGGING or ENABLE_OUTPUT):
        return
    log_data = {"table": table, "operation": operation, "affected_rows": affected_rows, **kwargs}
    database_logger.info(f"DB_{operation}: {log_data}")


def log_system_event(event: str, details: Dict[str, Any] = None, level: str = "info") -> None:
    """
    Log para eventos do sistema.

    Args:
        event: Descrição do evento
        details: Detalhes adicionais (opcional)
        level: Nível do log (info, warning, error)
    """
    if not (ENABLE_LOGGING or ENABLE_OUTPUT):
        return
    log_data = {"event": event, "details": details or {}, "at": datetime.now().isoformat(timespec="seconds")}
    log_method = getattr(system_logger, level.lower(), system_logger.info)
    log_method(f"SYSTEM_EVENT: {event} - {log_data}")


def log_file_operation(operation: str, file_path: str, rows_processed: int = 0, **kwargs) -> None:
    """Log para operações de arquivo (importação de romaneio)."""
    if not (ENABLE_LOGGING or ENABLE_OUTPUT):
        return
    log_data = {"operation": operation, "file_path": file_path, "rows_processed": rows_processed, **kwargs}
    system_logger.info(f"FILE_{operation.upper()}: {log_data}")


def get_log_summary(log_type: str = "transactions", lines: int = 100) -> Optional[str]:
    """
    Obtém um resumo dos logs recentes.

    Args:
        log_type: Tipo de log (transactions, lotes, vendas, financeiro, database, system)
        lines: Número de linhas a retornar

    Returns:
        Conteúdo do log como string, ou None com o logging desligado
    """
    if not (ENABLE_LOGGING or ENABLE_OUTPUT):
        return None

    log_file = LOG_FILES.get(log_type)
    if not log_file or not log_file.exists():
        return f"Log {log_type} não encontrado."

    try:
        with open(log_file, 'r', encoding='utf-8') as f:
            all_lines = f.readlines()
    except OSError as e:
        return f"Erro ao ler log {log_type}: {e}"
    return ''.join(all_lines[-lines:])
