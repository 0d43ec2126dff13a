"""
Pure formulas for batch costing, carcass weight reconciliation and sale totals.

Every function here depends solely on its inputs: no database access, no
wall clock. Dates are accepted either as ``datetime.date`` or as ISO
strings (``YYYY-MM-DD``) because that is how they are persisted.
"""

from __future__ import annotations

import math
import re
import unicodedata
from collections import OrderedDict
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Iterable, List, Optional, Sequence, Tuple, Union

from frigorifico.domain.errors import ValidationError

DataLike = Union[date, datetime, str]

DESCONTO_CARCACA_KG = 3.0


def to_date(val: DataLike) -> date:
    """Normalize a date-ish value to ``datetime.date``."""
    if isinstance(val, datetime):
        return val.date()
    if isinstance(val, date):
        return val
    s = str(val).strip()
    try:
        return date.fromisoformat(s[:10])
    except ValueError:
        raise ValidationError(f"Data inválida: {val!r}", valor=val)


def to_iso(val: DataLike) -> str:
    return to_date(val).isoformat()


def to_dias(val, campo: str = "prazo_dias") -> int:
    """Whole, non-negative number of days; raises ``ValidationError`` otherwise."""
    if isinstance(val, bool):
        raise ValidationError(f"{campo} inválido: {val!r}", campo=campo)
    try:
        dias = float(str(val).strip().replace(",", "."))
    except ValueError:
        raise ValidationError(f"{campo} inválido: {val!r}", campo=campo)
    if not math.isfinite(dias) or dias != int(dias) or dias < 0:
        raise ValidationError(f"{campo} deve ser um inteiro não negativo: {val!r}", campo=campo)
    return int(dias)


def add_dias(val: DataLike, dias: int) -> str:
    return (to_date(val) + timedelta(days=to_dias(dias))).isoformat()


def custo_real_kg(
    valor_compra: Optional[float],
    frete: Optional[float],
    extras: Optional[float],
    peso_romaneio: Optional[float],
) -> float:
    """Compute the real cost per kilogram of a batch.

    Parameters
    ----------
    valor_compra, frete, extras:
        Acquisition cost components. ``None`` counts as zero.
    peso_romaneio:
        Declared gross weight of the batch.

    Returns
    -------
    float
        ``(valor_compra + frete + extras) / peso_romaneio``, or ``0.0`` when
        the weight is zero or unknown (normal while the batch is a draft).
    """
    peso = float(peso_romaneio or 0.0)
    if peso == 0:
        return 0.0
    total = float(valor_compra or 0.0) + float(frete or 0.0) + float(extras or 0.0)
    return total / peso


@dataclass(frozen=True)
class ReconciliacaoSequencia:
    peso_total: float
    desconto_aplicado: float


def reconciliar_sequencia(pecas: Iterable, desconto_kg: float = DESCONTO_CARCACA_KG) -> ReconciliacaoSequencia:
    """Physical weight of one animal (all parts sharing a sequence number).

    - INTEIRO present: its own weight; any BANDA of the same sequence is
      ignored for the total.
    - BANDA_A and BANDA_B present: ``A + B - desconto_kg``.
    - a single BANDA: its own weight, no discount.

    ``pecas`` only needs ``tipo`` and ``peso_entrada`` attributes.
    """
    peso_inteiro = 0.0
    peso_a = 0.0
    peso_b = 0.0
    for p in pecas:
        peso = float(p.peso_entrada or 0.0)
        if p.tipo == "INTEIRO" and peso_inteiro <= 0:
            peso_inteiro = peso
        elif p.tipo == "BANDA_A":
            peso_a += peso
        elif p.tipo == "BANDA_B":
            peso_b += peso

    if peso_inteiro > 0:
        return ReconciliacaoSequencia(peso_inteiro, 0.0)
    desconto = float(desconto_kg) if (peso_a > 0 and peso_b > 0) else 0.0
    return ReconciliacaoSequencia(peso_a + peso_b - desconto, desconto)


def agrupar_por_sequencia(pecas: Iterable) -> "OrderedDict[Tuple[str, int], List]":
    """Group parts by ``(id_lote, sequencia)`` keeping first-seen order."""
    grupos: "OrderedDict[Tuple[str, int], List]" = OrderedDict()
    for p in pecas:
        grupos.setdefault((p.id_lote, int(p.sequencia)), []).append(p)
    return grupos


def peso_total_pesado(pecas: Iterable, desconto_kg: float = DESCONTO_CARCACA_KG) -> float:
    """Sum of the reconciled weight of every sequence."""
    return sum(
        reconciliar_sequencia(grupo, desconto_kg).peso_total
        for grupo in agrupar_por_sequencia(pecas).values()
    )


def dias_em_camara(data_entrada: DataLike, hoje: DataLike) -> int:
    """Whole calendar days since entry. Never negative."""
    dias = (to_date(hoje) - to_date(data_entrada)).days
    return max(0, dias)


def dias_em_atraso(data_vencimento: DataLike, hoje: DataLike) -> int:
    """Days past due; 0 when not yet due."""
    return max(0, (to_date(hoje) - to_date(data_vencimento)).days)


def valor_total_venda(peso_saida: float, preco_kg: float, extras: float = 0.0) -> float:
    """Amount due for a sale: exit weight times price plus extra costs."""
    return float(peso_saida or 0.0) * float(preco_kg or 0.0) + float(extras or 0.0)


def quebra_kg(peso_entrada: float, peso_saida: float) -> float:
    """Breakage: weight lost between cold-storage entry and exit weighing."""
    return float(peso_entrada or 0.0) - float(peso_saida or 0.0)


def dividir_igualmente(valor: float, partes: int) -> List[float]:
    """Split ``valor`` in ``partes`` cents-exact shares (remainder on the last)."""
    if partes <= 0:
        return []
    cota = round(float(valor) / partes, 2)
    cotas = [cota] * partes
    cotas[-1] = round(float(valor) - cota * (partes - 1), 2)
    return cotas


# ---------------------------
# Identificadores
# ---------------------------

def montar_id_completo(id_lote: str, sequencia: int, tipo: str) -> str:
    return f"{id_lote}-{int(sequencia):03d}-{tipo}"


def lote_de_id_completo(id_completo: str) -> Optional[str]:
    """Batch id of an item id: its first three hyphen-delimited segments."""
    if not id_completo:
        return None
    parts = str(id_completo).split("-")
    if len(parts) < 3:
        return None
    return "-".join(parts[:3])


def sigla_fornecedor(nome: Optional[str]) -> str:
    """Supplier prefix: 3 letters of the first name + initial of the last one."""
    if not nome:
        return "LOTE"
    ascii_nome = unicodedata.normalize("NFKD", str(nome)).encode("ascii", "ignore").decode("ascii")
    partes = [p for p in re.sub(r"[^A-Za-z0-9 ]+", " ", ascii_nome).upper().split() if p]
    if not partes:
        return "LOTE"
    primeiro = partes[0]
    tres = primeiro[:3] if len(primeiro) >= 3 else primeiro.ljust(3, "X")
    inicial = partes[-1][0] if len(partes) > 1 else ""
    return f"{tres}{inicial}"


def gerar_id_lote(
    fornecedor: Optional[str],
    data_recebimento: DataLike,
    existentes: Sequence[str] = (),
    sequencia: Optional[int] = None,
) -> str:
    """Human-readable batch id: ``{SIGLA}-{DDMM}-{NN}``.

    Without an explicit ``sequencia`` the next free number for the same
    prefix is used.
    """
    d = to_date(data_recebimento)
    prefixo = f"{sigla_fornecedor(fornecedor)}-{d.day:02d}{d.month:02d}-"
    if sequencia is None:
        maior = 0
        for id_lote in existentes:
            if not id_lote or not id_lote.startswith(prefixo):
                continue
            try:
                maior = max(maior, int(id_lote.split("-")[-1]))
            except ValueError:
                continue
        sequencia = maior + 1
    return f"{prefixo}{int(sequencia):02d}"
