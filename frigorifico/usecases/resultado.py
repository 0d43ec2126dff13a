# frigorifico/usecases/resultado.py
"""
Contrato das operações públicas: ``Resultado(ok, valor, erro, avisos)``.

As funções internas levantam erros tipados; o decorador ``operacao``
converte esses erros em ``Resultado(ok=False)`` e registra no log.
Falhas do SQLite durante uma operação atômica viram ``AtomicityFailure``
(a transação já foi desfeita por ``infra.db.connect``).
"""

from __future__ import annotations

import functools
import sqlite3
from dataclasses import dataclass, field
from typing import Any, Callable, Generic, List, Optional, TypeVar

from frigorifico.domain.errors import (
    AtomicityFailure, ConsistencyError, ErroDominio,
)
from frigorifico.infra.logger import log_system_event, log_transaction

T = TypeVar("T")


@dataclass
class Resultado(Generic[T]):
    ok: bool
    valor: Optional[T] = None
    erro: Optional[ErroDominio] = None
    avisos: List[str] = field(default_factory=list)

    @classmethod
    def sucesso(cls, valor: T = None, avisos: Optional[List[str]] = None) -> "Resultado[T]":
        return cls(ok=True, valor=valor, avisos=list(avisos or []))

    @classmethod
    def falha(cls, erro: ErroDominio) -> "Resultado[T]":
        return cls(ok=False, erro=erro)


def _nivel(erro: ErroDominio) -> str:
    if isinstance(erro, (ConsistencyError, AtomicityFailure)):
        return "error"
    return "warning"


def operacao(nome: str) -> Callable[[Callable[..., Any]], Callable[..., Resultado]]:
    """Envolve uma operação pública: valor → Resultado, erro tipado → Resultado(ok=False).

    A função decorada pode devolver um ``Resultado`` pronto (para anexar
    avisos); qualquer outro valor é embrulhado em ``Resultado.sucesso``.
    """

    def deco(fn: Callable[..., Any]) -> Callable[..., Resultado]:
        @functools.wraps(fn)
        def wrapper(*args, **kwargs) -> Resultado:
            dados = {"args": args, **{k: v for k, v in kwargs.items() if k != "db_path"}}
            try:
                out = fn(*args, **kwargs)
            except ErroDominio as e:
                log_transaction(nome, dados, error=f"{type(e).__name__}: {e.mensagem}", level=_nivel(e))
                return Resultado.falha(e)
            except sqlite3.Error as e:
                falha = AtomicityFailure(f"Falha de armazenamento em {nome}: {e}", operacao=nome)
                log_transaction(nome, dados, error=falha.mensagem, level="error")
                log_system_event(f"{nome}_rollback", {"error": str(e)}, level="error")
                return Resultado.falha(falha)
            res = out if isinstance(out, Resultado) else Resultado.sucesso(out)
            log_transaction(nome, dados, result=res.valor)
            return res

        return wrapper

    return deco
