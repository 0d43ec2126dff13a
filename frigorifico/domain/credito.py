"""
Avaliação de risco de crédito do cliente.

Nada aqui é persistido: o tier é recalculado a cada consulta a partir das
vendas do cliente e da data de referência.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List

from frigorifico.config import DEFAULTS
from frigorifico.domain.formulas import DataLike, dias_em_atraso, to_date
from frigorifico.domain.models import ESTORNADO, PENDENTE, Cliente, Venda

TIERS = ("AAA", "A", "B", "C", "F")


@dataclass(frozen=True)
class AvaliacaoCredito:
    tier: str
    estrelas: int
    motivo: str
    saldo_devedor: float
    uso_limite: float
    dias_atraso: int


def vendas_ativas(cliente: Cliente, vendas: Iterable[Venda]) -> List[Venda]:
    return [
        v for v in vendas
        if v.id_cliente == cliente.id_ferro and v.status_pagamento != ESTORNADO
    ]


def saldo_devedor_cliente(cliente: Cliente, vendas: Iterable[Venda]) -> float:
    """Soma do saldo devedor das vendas pendentes do cliente."""
    return sum(v.saldo_devedor for v in vendas_ativas(cliente, vendas) if v.status_pagamento == PENDENTE)


def avaliar_credito(
    cliente: Cliente,
    vendas: Iterable[Venda],
    hoje: DataLike,
    volume_parceiro: float = DEFAULTS.volume_parceiro,
) -> AvaliacaoCredito:
    """Escada de regras, avaliada em ordem (regras posteriores podem rebaixar):

    1. recebível vencido            → -2 estrelas, tier C
    2. uso do limite > 80%          → -1 estrela, AAA vira A
    3. saldo acima do limite        → -2 estrelas, tier C
    4. atraso máximo > 10 dias      → 1 estrela, tier F (bloqueio)
    5. volume > ``volume_parceiro`` sem atraso e uso < 60% → AAA, 5 estrelas
    """
    ref = to_date(hoje)
    ativas = vendas_ativas(cliente, vendas)
    pendentes = [v for v in ativas if v.status_pagamento == PENDENTE]
    vencidas = [v for v in pendentes if to_date(v.data_vencimento) < ref]

    volume = sum(float(v.peso_real_saida) * float(v.preco_venda_kg) for v in ativas)
    saldo = sum(v.saldo_devedor for v in pendentes)
    limite = float(cliente.limite_credito or 0.0)
    uso = saldo / limite if limite > 0 else 0.0

    estrelas = 5
    tier = "AAA"
    motivo = "Cliente Exemplar"

    if vencidas:
        estrelas -= 2
        tier = "C"
        motivo = "Faturas em Atraso"

    if uso > 0.8:
        estrelas -= 1
        if tier == "AAA":
            tier = "A"
        motivo = "Limite Próximo ao Fim"

    if limite > 0 and saldo > limite:
        estrelas -= 2
        tier = "C"
        motivo = "Limite Excedido"

    atraso = max((dias_em_atraso(v.data_vencimento, ref) for v in vencidas), default=0)
    if atraso > 10:
        estrelas = 1
        tier = "F"
        motivo = "Risco Iminente (atraso acima de 10 dias)"

    if volume > volume_parceiro and not vencidas and uso < 0.6:
        tier = "AAA"
        estrelas = 5
        motivo = "Parceiro Estratégico"

    return AvaliacaoCredito(
        tier=tier,
        estrelas=max(1, min(5, estrelas)),
        motivo=motivo,
        saldo_devedor=saldo,
        uso_limite=uso,
        dias_atraso=atraso,
    )
