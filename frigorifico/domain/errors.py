# frigorifico/domain/errors.py
"""
Erros tipados do núcleo.

Quatro famílias:
- ValidationError:  entrada malformada; nada foi gravado.
- DomainRuleError:  regra de negócio violada; operação abortada sem efeito parcial.
- ConsistencyError: estado inconsistente ou desatualizado do chamador (ex.: estorno duplo).
- AtomicityFailure: falha do armazenamento no meio de uma operação atômica;
  a transação foi desfeita e a mesma operação pode ser repetida.
"""

from __future__ import annotations

from typing import Any, Dict


class ErroDominio(Exception):
    """Base de todos os erros tipados."""

    categoria = "DOMINIO"

    def __init__(self, mensagem: str, **detalhes: Any):
        super().__init__(mensagem)
        self.mensagem = mensagem
        self.detalhes: Dict[str, Any] = detalhes


class ValidationError(ErroDominio):
    categoria = "VALIDACAO"


class DomainRuleError(ErroDominio):
    categoria = "REGRA_NEGOCIO"


class StaleInventoryError(DomainRuleError):
    """Peça com tempo de câmara bloqueado (12+ dias)."""


class OverpaymentError(DomainRuleError):
    """Pagamento + desconto acima do saldo devedor."""


class EmptyBatchError(DomainRuleError):
    """Lote confirmado sem nenhuma peça."""


class ImmutableBatchError(DomainRuleError):
    """Alteração de campo financeiro em lote fechado ou estornado."""


class ConsistencyError(ErroDominio):
    categoria = "CONSISTENCIA"


class AlreadyReversedError(ConsistencyError):
    """Transação já estornada."""


class NotFoundError(ConsistencyError):
    """Entidade referenciada não existe."""


class AtomicityFailure(ErroDominio):
    categoria = "ATOMICIDADE"
