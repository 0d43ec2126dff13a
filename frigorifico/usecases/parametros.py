# frigorifico/usecases/parametros.py
"""
Parâmetros de execução: tabela ``params`` com fallback para ``DEFAULTS``.
"""

from __future__ import annotations

import math
import sqlite3
from dataclasses import asdict, fields, replace
from typing import Dict, Optional

from frigorifico.config import DB_PATH, DEFAULTS, DefaultConfig
from frigorifico.domain.errors import ValidationError
from frigorifico.infra.logger import log_database_operation
from frigorifico.infra.repositories import ParamsRepo

# Zero não faz sentido como tolerância monetária, janela de bloqueio ou volume de tier.
_POSITIVOS = {"epsilon", "dias_bloqueio", "volume_parceiro"}


def carregar_parametros(db_path: str = DB_PATH, conn: Optional[sqlite3.Connection] = None) -> DefaultConfig:
    """Valores efetivos: o que estiver gravado em ``params`` sobrepõe ``DEFAULTS``."""
    repo = ParamsRepo(db_path, conn)
    valores = {}
    for f in fields(DefaultConfig):
        padrao = getattr(DEFAULTS, f.name)
        if isinstance(padrao, int) and not isinstance(padrao, bool):
            valores[f.name] = repo.get_int(f.name, padrao)
        else:
            valores[f.name] = repo.get_float(f.name, padrao)
    return replace(DEFAULTS, **valores)


def definir_parametro(chave: str, valor: str, db_path: str = DB_PATH) -> None:
    nomes = {f.name for f in fields(DefaultConfig)}
    if chave not in nomes:
        raise ValidationError(f"Parâmetro desconhecido: {chave}", chave=chave)
    try:
        numero = float(valor)
    except ValueError:
        raise ValidationError(f"Valor numérico inválido para {chave}: {valor!r}", chave=chave)
    if not math.isfinite(numero):
        raise ValidationError(f"Valor numérico inválido para {chave}: {valor!r}", chave=chave)
    if isinstance(getattr(DEFAULTS, chave), int) and not numero.is_integer():
        raise ValidationError(f"{chave} deve ser inteiro: {valor!r}", chave=chave)
    if numero < 0 or (numero == 0 and chave in _POSITIVOS):
        limite = "positivo" if chave in _POSITIVOS else "não negativo"
        raise ValidationError(f"{chave} deve ser {limite}: {valor!r}", chave=chave, valor=numero)
    ParamsRepo(db_path).set_many([(chave, valor)])
    log_database_operation("params", "UPSERT", 1, chave=chave, valor=valor)


def listar_parametros(db_path: str = DB_PATH) -> Dict[str, float]:
    return asdict(carregar_parametros(db_path))
