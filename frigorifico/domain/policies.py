"""
Políticas de negócio: maturação em câmara, status financeiros e regras de edição.

As funções aqui são puras e recebem a data de referência (``hoje``)
explicitamente quando precisam dela.
"""

from __future__ import annotations

from typing import Iterable, Optional, Set

from frigorifico.config import DEFAULTS
from frigorifico.domain.models import (
    BANDA_A, BANDA_B, INTEIRO, PAGO, PARCIAL, PENDENTE, PecaRascunho,
)

RESFRIAMENTO = "RESFRIAMENTO"
PRONTO = "PRONTO"
ALERTA = "ALERTA"
ATENCAO = "ATENCAO"
BLOQUEADO = "BLOQUEADO"

# Campos de um lote FECHADO que ainda podem ser corrigidos sem estorno
CAMPOS_EDITAVEIS_FECHADO: Set[str] = {"fornecedor", "data_recebimento"}
CAMPOS_FINANCEIROS: Set[str] = {
    "peso_total_romaneio", "valor_compra_total", "frete", "gastos_extras",
    "forma_pagamento", "valor_entrada", "prazo_dias",
}


def classificar_idade(dias: int, dias_bloqueio: int = DEFAULTS.dias_bloqueio) -> str:
    """Classifica a maturação de uma peça pelos dias em câmara.

    Regras:
        - 0–1   → ``'RESFRIAMENTO'``
        - 2–4   → ``'PRONTO'`` (ápice)
        - 5–7   → ``'ALERTA'``
        - 8–11  → ``'ATENCAO'`` (vende, mas com aviso)
        - 12+   → ``'BLOQUEADO'`` (não pode sair)

    Args:
        dias: Dias corridos desde a entrada na câmara.
        dias_bloqueio: Limite sanitário a partir do qual a peça é bloqueada.

    Returns:
        A classificação de maturação.
    """
    d = max(0, int(dias))
    if d >= dias_bloqueio:
        return BLOQUEADO
    if d <= 1:
        return RESFRIAMENTO
    if d <= 4:
        return PRONTO
    if d <= 7:
        return ALERTA
    return ATENCAO


def status_venda(valor_total: float, valor_pago_efetivo: float, epsilon: float = DEFAULTS.epsilon) -> str:
    """``'PAGO'`` quando o valor pago cobre o total (com tolerância), senão ``'PENDENTE'``."""
    return PAGO if valor_pago_efetivo >= valor_total - epsilon else PENDENTE


def status_conta(valor: float, valor_pago_efetivo: float, epsilon: float = DEFAULTS.epsilon) -> str:
    """Status de uma conta a pagar a partir do que já foi pago."""
    if valor_pago_efetivo >= valor - epsilon:
        return PAGO
    if valor_pago_efetivo > epsilon:
        return PARCIAL
    return PENDENTE


def campos_bloqueados(alteracoes: Iterable[str]) -> Set[str]:
    """Campos de ``alteracoes`` que não podem mudar num lote FECHADO."""
    return {c for c in alteracoes if c not in CAMPOS_EDITAVEIS_FECHADO}


def proxima_peca(ultima: Optional[PecaRascunho]) -> PecaRascunho:
    """Sugere sequência/tipo da próxima pesagem (peso vem zerado).

    INTEIRO → próxima sequência, INTEIRO; BANDA_A → mesma sequência, BANDA_B;
    BANDA_B → próxima sequência, BANDA_A.
    """
    if ultima is None:
        return PecaRascunho(sequencia=1, tipo=BANDA_A, peso=0.0)
    if ultima.tipo == INTEIRO:
        return PecaRascunho(sequencia=ultima.sequencia + 1, tipo=INTEIRO, peso=0.0)
    if ultima.tipo == BANDA_A:
        return PecaRascunho(sequencia=ultima.sequencia, tipo=BANDA_B, peso=0.0)
    return PecaRascunho(sequencia=ultima.sequencia + 1, tipo=BANDA_A, peso=0.0)
