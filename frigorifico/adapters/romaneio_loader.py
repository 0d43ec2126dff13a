# frigorifico/adapters/romaneio_loader.py
"""
Loader da planilha de pesagem (romaneio) em XLSX.

Essas funções:
- leem a planilha usando pandas;
- normalizam cabeçalhos (acentos, variações, sinônimos);
- devolvem as peças como ``PecaRascunho`` prontas para ``confirmar_lote``.

Colunas reconhecidas: sequência, tipo (A/B/inteiro) e peso. Sem coluna de
sequência, a numeração segue a mesma regra da pesagem manual
(banda B segue a A no mesmo animal); sem coluna de tipo, cada linha é uma carcaça inteira.
"""

from __future__ import annotations

import re
from typing import Any, List, Optional

import pandas as pd

from frigorifico.adapters.parsers import parse_peso_raw, parse_tipo_peca
from frigorifico.domain.errors import ValidationError
from frigorifico.domain.models import BANDA_A, BANDA_B, INTEIRO, PecaRascunho


# ---------------------------
# utilitários de normalização
# ---------------------------

def _slug(s: str) -> str:
    """Normaliza cabeçalhos: minúsculas, sem acentos, sem não-alfanumérico."""
    if s is None:
        return ""
    s = str(s).strip().lower()
    acentos = dict(zip("áàâãäéèêëíìîïóòôõöúùûüç", "aaaaaeeeeiiiiooooouuuuc"))
    s = "".join(acentos.get(ch, ch) for ch in s)
    s = re.sub(r"[^a-z0-9]+", " ", s)
    return re.sub(r"\s+", " ", s).strip()


def _safe_get(row, key):
    """Valor da linha ou None (tratando os NA do pandas)."""
    val = row.get(key)
    if val is None or pd.isna(val):
        return None
    return val


def _normalize_columns(df: pd.DataFrame) -> pd.DataFrame:
    """Renomeia colunas com base em sinônimos/variações."""
    aliases = {
        "sequencia": "sequencia",
        "seq": "sequencia",
        "n": "sequencia",
        "numero": "sequencia",
        "animal": "sequencia",

        "tipo": "tipo",
        "banda": "tipo",
        "lado": "tipo",
        "peca": "tipo",

        "peso": "peso",
        "peso kg": "peso",
        "kg": "peso",
        "peso entrada": "peso",
        "peso de entrada": "peso",
    }
    new_cols = {col: aliases.get(_slug(col), _slug(col)) for col in df.columns}
    return df.rename(columns=new_cols)


def _to_int(val: Any) -> Optional[int]:
    if val is None:
        return None
    try:
        return int(float(str(val).replace(",", ".")))
    except ValueError:
        return None


# ---------------------------
# loader público (XLSX)
# ---------------------------

def load_pecas_from_xlsx(path: str, sheet_name: Any = 0) -> List[PecaRascunho]:
    """Lê a planilha de pesagem e devolve as peças na ordem das linhas.

    Linhas sem peso são ignoradas (linhas de total, rodapé). Um tipo
    ilegível levanta ``ValidationError`` com o número da linha.
    """
    df = pd.read_excel(path, sheet_name=sheet_name)
    df = _normalize_columns(df)
    if "peso" not in df.columns:
        raise ValidationError(f"Planilha sem coluna de peso: {path}", colunas=list(df.columns))

    tem_seq = "sequencia" in df.columns
    tem_tipo = "tipo" in df.columns
    out: List[PecaRascunho] = []
    for idx, row in df.iterrows():
        peso, _ = parse_peso_raw(_safe_get(row, "peso"))
        if peso is None:
            continue
        linha = int(idx) + 2  # cabeçalho na linha 1

        tipo = INTEIRO
        if tem_tipo:
            bruto = _safe_get(row, "tipo")
            tipo = parse_tipo_peca(bruto) if bruto is not None else None
            if tipo is None:
                raise ValidationError(f"Tipo de peça ilegível na linha {linha}: {bruto!r}", linha=linha)

        seq = _to_int(_safe_get(row, "sequencia")) if tem_seq else None
        if seq is None:
            # banda B logo depois da A é o mesmo animal; o resto abre novo animal
            if not out:
                seq = 1
            elif out[-1].tipo == BANDA_A and tipo == BANDA_B:
                seq = out[-1].sequencia
            else:
                seq = out[-1].sequencia + 1
        out.append(PecaRascunho(sequencia=seq, tipo=tipo, peso=peso))
    return out
