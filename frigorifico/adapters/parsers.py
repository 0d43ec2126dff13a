"""
Utilidades de parsing para valores digitados ou vindos de planilhas.

Este módulo interpreta as strings típicas do romaneio e da balança:
pesos com unidade ("120,5 kg"), valores em reais no formato brasileiro
("R$ 1.234,56") e o tipo da peça ("A", "Banda B", "inteiro").
"""

from __future__ import annotations

import re
import unicodedata
from typing import Optional, Tuple

from frigorifico.domain.models import BANDA_A, BANDA_B, INTEIRO

_NUM_RE = re.compile(r"[-+]?\d[\d.,]*")


def _numero_br(s: str) -> Optional[float]:
    """Converte número com separadores brasileiros ou americanos em float.

    Com vírgula e ponto, o último separador é o decimal ("1.234,5" e
    "1,234.5" → 1234.5). Só com vírgula, a vírgula é decimal. Só com
    pontos, mais de um ponto (ou exatamente três dígitos depois dele)
    indica milhar.
    """
    s = s.strip()
    if not s:
        return None
    if "," in s and "." in s:
        if s.rfind(",") > s.rfind("."):
            s = s.replace(".", "").replace(",", ".")
        else:
            s = s.replace(",", "")
    elif "," in s:
        s = s.replace(",", ".")
    elif s.count(".") > 1 or re.fullmatch(r"[-+]?\d{1,3}\.\d{3}", s):
        s = s.replace(".", "")
    try:
        return float(s)
    except ValueError:
        return None


def parse_peso_raw(txt) -> Tuple[Optional[float], Optional[str]]:
    """Interpreta um peso com unidade opcional.

    Exemplos:
        "120,5 kg" → (120.5, "KG")
        "118"      → (118.0, "KG")
        "1.020 KG" → (1020.0, "KG")
        "500 g"    → (0.5, "KG")

    Returns:
        Uma tupla (peso_em_kg, "KG"); (None, None) quando não há número.
    """
    if txt is None:
        return None, None
    if isinstance(txt, (int, float)):
        return float(txt), "KG"
    s = str(txt).strip()
    m = _NUM_RE.search(s)
    if not m:
        return None, None
    num = _numero_br(m.group(0))
    if num is None:
        return None, None
    unidade = s[m.end():].strip().upper() or "KG"
    if unidade.startswith("G") or unidade.startswith("GR"):
        return num / 1000.0, "KG"
    return num, "KG"


def parse_valor_brl(txt) -> Optional[float]:
    """Valor monetário: "R$ 1.234,56" → 1234.56; vazio → None."""
    if txt is None:
        return None
    if isinstance(txt, (int, float)):
        return float(txt)
    s = str(txt).replace("R$", "").replace("\xa0", " ").strip()
    m = _NUM_RE.search(s)
    if not m:
        return None
    return _numero_br(m.group(0))


def _sem_acento(s: str) -> str:
    return unicodedata.normalize("NFKD", s).encode("ascii", "ignore").decode("ascii")


def parse_tipo_peca(txt) -> Optional[str]:
    """Tipo da peça a partir do que foi digitado.

        "A", "banda a", "BANDA_A" → BANDA_A
        "B", "Banda B"            → BANDA_B
        "inteiro", "I", "carcaça" → INTEIRO
    """
    if txt is None:
        return None
    s = re.sub(r"[^A-Z]+", " ", _sem_acento(str(txt)).upper()).strip()
    if not s:
        return None
    if s in ("A", "BANDA A", "BA") or (s.startswith("BANDA") and s.endswith(" A")):
        return BANDA_A
    if s in ("B", "BANDA B", "BB") or (s.startswith("BANDA") and s.endswith(" B")):
        return BANDA_B
    if s in ("I", "INTEIRO", "INTEIRA", "CARCACA", "CARCACA INTEIRA"):
        return INTEIRO
    return None
