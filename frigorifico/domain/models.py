# frigorifico/domain/models.py
"""
Modelos (dataclasses) do domínio.

Observação importante:
- Os repositórios aceitam dicionários ou dataclasses e devolvem dataclasses.
- Valores derivados (custo por kg, saldo devedor, tier de crédito) nunca são
  colunas: são propriedades recalculadas a partir das entradas.
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from typing import Any, List, Mapping, Optional

from frigorifico.domain.formulas import custo_real_kg, valor_total_venda


# Status e tipos (strings persistidas)
LOTE_ABERTO = "ABERTO"
LOTE_FECHADO = "FECHADO"
LOTE_ESTORNADO = "ESTORNADO"

INTEIRO = "INTEIRO"
BANDA_A = "BANDA_A"
BANDA_B = "BANDA_B"
TIPOS_PECA = (INTEIRO, BANDA_A, BANDA_B)

DISPONIVEL = "DISPONIVEL"
VENDIDO = "VENDIDO"
ESTORNADO = "ESTORNADO"

PENDENTE = "PENDENTE"
PARCIAL = "PARCIAL"
PAGO = "PAGO"
CANCELADO = "CANCELADO"

ENTRADA = "ENTRADA"
SAIDA = "SAIDA"

CAT_VENDA = "VENDA"
CAT_COMPRA_GADO = "COMPRA_GADO"
CAT_DESCONTO = "DESCONTO"
CAT_ESTORNO = "ESTORNO"
CAT_OPERACIONAL = "OPERACIONAL"
CATEGORIAS = (
    CAT_VENDA, CAT_COMPRA_GADO, CAT_DESCONTO, CAT_ESTORNO, CAT_OPERACIONAL,
    "ADMINISTRATIVO", "ESTRUTURA", "FUNCIONARIOS", "INSUMOS", "MANUTENCAO",
    "IMPOSTOS", "OUTROS",
)

VISTA = "VISTA"
PRAZO = "PRAZO"

METODOS_PAGAMENTO = ("DINHEIRO", "PIX", "CHEQUE", "BOLETO", "TRANSFERENCIA", "OUTROS")


def _from_mapping(cls, row: Mapping[str, Any]):
    keys = row.keys()
    nomes = {f.name for f in fields(cls)}
    return cls(**{k: row[k] for k in keys if k in nomes})


@dataclass
class Lote:
    """Lote de gado comprado (romaneio)."""
    id_lote: str
    fornecedor: str
    data_recebimento: str
    peso_total_romaneio: float
    valor_compra_total: float = 0.0
    frete: float = 0.0
    gastos_extras: float = 0.0
    forma_pagamento: str = VISTA
    valor_entrada: float = 0.0
    prazo_dias: Optional[int] = None
    status: str = LOTE_ABERTO
    data_estorno: Optional[str] = None

    @property
    def custo_total(self) -> float:
        return float(self.valor_compra_total or 0) + float(self.frete or 0) + float(self.gastos_extras or 0)

    @property
    def custo_real_kg(self) -> float:
        return custo_real_kg(self.valor_compra_total, self.frete, self.gastos_extras, self.peso_total_romaneio)

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "Lote":
        return _from_mapping(cls, row)


@dataclass
class Peca:
    """Peça de carcaça em câmara fria (inteiro ou banda)."""
    id_completo: str
    id_lote: str
    sequencia: int
    tipo: str
    peso_entrada: float
    data_entrada: str
    status: str = DISPONIVEL

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "Peca":
        return _from_mapping(cls, row)


@dataclass
class PecaRascunho:
    """Peça pesada durante o rascunho do lote, ainda sem id."""
    sequencia: int
    tipo: str
    peso: float


@dataclass
class Venda:
    id_venda: str
    id_cliente: str
    id_completo: str
    peso_real_saida: float
    preco_venda_kg: float
    data_venda: str
    data_vencimento: str
    nome_cliente: Optional[str] = None
    peso_entrada_total: float = 0.0
    quebra_kg: float = 0.0
    custo_extras_total: float = 0.0
    valor_pago: float = 0.0
    valor_estornado: float = 0.0
    prazo_dias: int = 30
    forma_pagamento: str = "OUTROS"
    status_pagamento: str = PENDENTE
    data_estorno: Optional[str] = None
    itens: List[str] = field(default_factory=list)

    @property
    def valor_total(self) -> float:
        return valor_total_venda(self.peso_real_saida, self.preco_venda_kg, self.custo_extras_total)

    @property
    def valor_pago_efetivo(self) -> float:
        return float(self.valor_pago or 0) - float(self.valor_estornado or 0)

    @property
    def saldo_devedor(self) -> float:
        return max(0.0, self.valor_total - self.valor_pago_efetivo)

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "Venda":
        return _from_mapping(cls, row)


@dataclass
class Transacao:
    id: str
    data: str
    descricao: str
    tipo: str
    categoria: str
    valor: float
    referencia_id: Optional[str] = None
    metodo_pagamento: Optional[str] = None
    estorno_de: Optional[str] = None
    criado_em: Optional[str] = None

    @property
    def valor_assinado(self) -> float:
        return float(self.valor) if self.tipo == ENTRADA else -float(self.valor)

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "Transacao":
        return _from_mapping(cls, row)


@dataclass
class ContaPagar:
    id: str
    descricao: str
    valor: float
    data_vencimento: str
    categoria: str = "OUTROS"
    id_lote: Optional[str] = None
    fornecedor_id: Optional[str] = None
    valor_pago: float = 0.0
    valor_estornado: float = 0.0
    data_pagamento: Optional[str] = None
    status: str = PENDENTE
    observacoes: Optional[str] = None

    @property
    def valor_pago_efetivo(self) -> float:
        return float(self.valor_pago or 0) - float(self.valor_estornado or 0)

    @property
    def saldo(self) -> float:
        return max(0.0, float(self.valor) - self.valor_pago_efetivo)

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "ContaPagar":
        return _from_mapping(cls, row)


@dataclass
class Cliente:
    id_ferro: str
    nome_social: str
    limite_credito: float = 0.0
    whatsapp: Optional[str] = None
    cpf_cnpj: Optional[str] = None
    cidade: Optional[str] = None
    status: str = "ATIVO"

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "Cliente":
        return _from_mapping(cls, row)


@dataclass
class Fornecedor:
    id: str
    nome_fantasia: str
    cpf_cnpj: Optional[str] = None
    telefone: Optional[str] = None
    cidade: Optional[str] = None
    status: str = "ATIVO"

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "Fornecedor":
        return _from_mapping(cls, row)
