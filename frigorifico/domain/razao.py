"""
Dobra pura sobre o razão: quais transações contam e quanto há em caixa.

Uma transação conta para o saldo quando:
- não é ela mesma um estorno (categoria ``ESTORNO``);
- não foi estornada (nenhuma outra aponta para ela em ``estorno_de``);
- não é órfã (``referencia_id`` vazio ou presente em ``referencias``).

O par original + estorno soma zero, então excluir os dois dá o mesmo
saldo que somá-los; excluir deixa o extrato mais legível.

Com ``ate``, o saldo é o da data de corte: um estorno lançado depois de
``ate`` ainda não existia, então a transação original continua valendo.
Lançar algo hoje nunca muda o saldo de um dia passado.
"""

from __future__ import annotations

from typing import AbstractSet, Iterable, List, Optional, Set

from frigorifico.domain.formulas import DataLike, to_iso
from frigorifico.domain.models import CAT_ESTORNO, Transacao

VALIDA = "VALIDA"
ESTORNADA = "ESTORNADA"
ESTORNO = "ESTORNO"
ORFA = "ORFA"


def ids_estornados(transacoes: Iterable[Transacao], ate: Optional[DataLike] = None) -> Set[str]:
    limite = to_iso(ate) if ate is not None else None
    return {
        t.estorno_de for t in transacoes
        if t.estorno_de and (limite is None or to_iso(t.data) <= limite)
    }


def situacao(
    t: Transacao,
    estornados: AbstractSet[str],
    referencias: Optional[AbstractSet[str]] = None,
) -> str:
    if t.categoria == CAT_ESTORNO or t.estorno_de:
        return ESTORNO
    if t.id in estornados:
        return ESTORNADA
    if referencias is not None and t.referencia_id and t.referencia_id not in referencias:
        return ORFA
    return VALIDA


def transacoes_validas(
    transacoes: Iterable[Transacao],
    referencias: Optional[AbstractSet[str]] = None,
    ate: Optional[DataLike] = None,
) -> List[Transacao]:
    todas = list(transacoes)
    estornados = ids_estornados(todas, ate)
    return [t for t in todas if situacao(t, estornados, referencias) == VALIDA]


def saldo(
    transacoes: Iterable[Transacao],
    referencias: Optional[AbstractSet[str]] = None,
    ate: Optional[DataLike] = None,
    desde: Optional[DataLike] = None,
    categoria: Optional[str] = None,
    tipo: Optional[str] = None,
    referencia_id: Optional[str] = None,
) -> float:
    """Σ ENTRADA − Σ SAIDA das transações válidas que passam nos filtros."""
    limite_sup = to_iso(ate) if ate is not None else None
    limite_inf = to_iso(desde) if desde is not None else None
    total = 0.0
    for t in transacoes_validas(transacoes, referencias, ate):
        data = to_iso(t.data)
        if limite_sup is not None and data > limite_sup:
            continue
        if limite_inf is not None and data < limite_inf:
            continue
        if categoria is not None and t.categoria != categoria:
            continue
        if tipo is not None and t.tipo != tipo:
            continue
        if referencia_id is not None and t.referencia_id != referencia_id:
            continue
        total += t.valor_assinado
    return round(total, 2)
