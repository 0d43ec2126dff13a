# frigorifico/usecases/estorno.py
"""
UC: Estorno em cascata.

- estornar_lote():       vendas do lote → contas do lote → demais lançamentos → peças → lote
- estornar_venda():      lançamentos da venda → peças de volta ao estoque → venda
- estornar_conta():      pagamentos da conta → conta
- estornar_transacao():  uma transação avulsa, ou um pagamento de conta avulsa (reabre a conta)

Garantias:
- Cada chamada roda numa única transação SQLite (BEGIN IMMEDIATE): ou a
  cascata inteira é gravada ou nada é.
- Cada passo é idempotente: estornar algo já ESTORNADO é sucesso sem efeito,
  e lançamentos já estornados são pulados. Repetir a chamada converge.
- Nada é apagado: o razão recebe lançamentos inversos (categoria ESTORNO) e
  as entidades mudam de status.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional

from frigorifico.config import DB_PATH, DefaultConfig
from frigorifico.domain.errors import DomainRuleError, NotFoundError
from frigorifico.domain.formulas import DataLike, lote_de_id_completo, to_iso
from frigorifico.domain.models import (
    CAT_DESCONTO, CAT_VENDA, DISPONIVEL, ESTORNADO, LOTE_ESTORNADO, LOTE_FECHADO,
    SAIDA, VENDIDO, ContaPagar, Peca, Transacao, Venda,
)
from frigorifico.domain.policies import status_conta
from frigorifico.infra.db import connect
from frigorifico.infra.logger import log_financeiro, log_lote, log_system_event, log_venda
from frigorifico.infra.repositories import Repositorios
from frigorifico.usecases.financeiro import estornar, estornar_pendentes, pagamento_de
from frigorifico.usecases.parametros import carregar_parametros
from frigorifico.usecases.resultado import operacao


@dataclass
class ResumoEstorno:
    entidade: str
    id: str
    ja_estornado: bool = False
    transacoes: List[str] = field(default_factory=list)
    vendas: List[str] = field(default_factory=list)
    contas: List[str] = field(default_factory=list)
    pecas: int = 0


# ----------------------
# Passos (rodam dentro da transação do chamador)
# ----------------------

def _pagamentos_venda(originais: List[Transacao]) -> float:
    return sum(float(t.valor) for t in originais if t.categoria in (CAT_VENDA, CAT_DESCONTO))


def _pagamentos_conta(conta: ContaPagar, originais: List[Transacao]) -> float:
    return sum(float(t.valor) for t in originais if t.tipo == SAIDA and t.categoria == conta.categoria)


def _pecas_da_venda(repos: Repositorios, venda: Venda) -> List[Peca]:
    if venda.itens:
        return repos.pecas.by_ids(venda.itens)
    # venda sem itens registrados: resolve pelo id do item vendido
    peca = repos.pecas.get(venda.id_completo)
    if peca is not None:
        return [peca]
    id_lote = lote_de_id_completo(venda.id_completo)
    partes = venda.id_completo.split("-")
    if not id_lote or len(partes) < 4:
        return []
    try:
        seq = int(partes[3])
    except ValueError:
        return []
    return [p for p in repos.pecas.by_lote(id_lote) if p.sequencia == seq and p.status == VENDIDO]


def _estornar_venda(
    repos: Repositorios,
    venda: Venda,
    data: str,
    resumo: ResumoEstorno,
    lote_em_estorno: Optional[str] = None,
) -> None:
    if venda.status_pagamento == ESTORNADO:
        return
    originais = estornar_pendentes(repos, venda.id_venda, data)
    resumo.transacoes.extend(t.id for t in originais)
    venda.valor_estornado = round(float(venda.valor_estornado or 0) + _pagamentos_venda(originais), 2)
    repos.vendas.update_pagamento(venda.id_venda, venda.valor_pago, venda.valor_estornado, ESTORNADO)
    repos.vendas.set_estornada(venda.id_venda, data)
    venda.status_pagamento = ESTORNADO

    # peças voltam ao estoque, exceto se o lote está (ou está sendo) estornado
    vendidas = [p for p in _pecas_da_venda(repos, venda) if p.status == VENDIDO]
    por_lote = {}
    for p in vendidas:
        por_lote.setdefault(p.id_lote, []).append(p.id_completo)
    for id_lote, ids in por_lote.items():
        lote = repos.lotes.get(id_lote)
        volta_ao_estoque = (
            id_lote != lote_em_estorno and lote is not None and lote.status == LOTE_FECHADO
        )
        resumo.pecas += repos.pecas.set_status(ids, DISPONIVEL if volta_ao_estoque else ESTORNADO)

    resumo.vendas.append(venda.id_venda)
    repos.auditoria.registrar(
        "ESTORNO", "SALE", venda.id_venda,
        {"transacoes": [t.id for t in originais], "valor_estornado": venda.valor_estornado},
    )
    log_venda("estornar", venda.id_venda, transacoes=len(originais), pecas=len(vendidas))


def _estornar_conta(repos: Repositorios, conta: ContaPagar, data: str, resumo: ResumoEstorno) -> None:
    if conta.status == ESTORNADO:
        return
    originais = estornar_pendentes(repos, conta.id, data)
    resumo.transacoes.extend(t.id for t in originais)
    conta.valor_estornado = round(float(conta.valor_estornado or 0) + _pagamentos_conta(conta, originais), 2)
    repos.contas.update_pagamento(conta.id, conta.valor_pago, conta.valor_estornado, ESTORNADO, conta.data_pagamento)
    conta.status = ESTORNADO
    resumo.contas.append(conta.id)
    repos.auditoria.registrar(
        "ESTORNO", "PAYABLE", conta.id,
        {"transacoes": [t.id for t in originais], "valor_estornado": conta.valor_estornado},
    )
    log_financeiro("estornar_conta", conta.id, conta.valor_estornado, transacoes=len(originais))


# ----------------------
# Operações públicas
# ----------------------

@operacao("estornar_lote")
def estornar_lote(id_lote: str, data: DataLike, db_path: str = DB_PATH) -> ResumoEstorno:
    """Estorna o lote e tudo que depende dele.

    Ordem: vendas (sem devolver peças ao estoque), contas a pagar do lote,
    outros lançamentos que referenciam o lote, todas as peças, o lote.
    """
    quando = to_iso(data)
    resumo = ResumoEstorno("BATCH", id_lote)
    log_system_event("estornar_lote_start", {"id_lote": id_lote})
    with connect(db_path, immediate=True) as conn:
        repos = Repositorios(db_path, conn)
        lote = repos.lotes.get(id_lote)
        if lote is None:
            raise NotFoundError(f"Lote não encontrado: {id_lote}", id_lote=id_lote)
        if lote.status == LOTE_ESTORNADO:
            resumo.ja_estornado = True
            return resumo

        for venda in repos.vendas.by_lote(id_lote):
            _estornar_venda(repos, venda, quando, resumo, lote_em_estorno=id_lote)

        for conta in repos.contas.by_lote(id_lote):
            _estornar_conta(repos, conta, quando, resumo)

        resumo.transacoes.extend(t.id for t in estornar_pendentes(repos, id_lote, quando))

        ids = [p.id_completo for p in repos.pecas.by_lote(id_lote) if p.status != ESTORNADO]
        resumo.pecas += repos.pecas.set_status(ids, ESTORNADO)

        repos.lotes.set_status(id_lote, LOTE_ESTORNADO, quando)
        repos.auditoria.registrar(
            "ESTORNO", "BATCH", id_lote,
            {"vendas": resumo.vendas, "contas": resumo.contas, "transacoes": len(resumo.transacoes)},
        )

    log_lote("estornar", id_lote, vendas=len(resumo.vendas), transacoes=len(resumo.transacoes), pecas=resumo.pecas)
    return resumo


@operacao("estornar_venda")
def estornar_venda(id_venda: str, data: DataLike, db_path: str = DB_PATH) -> ResumoEstorno:
    """Estorna os lançamentos da venda e devolve as peças ao estoque."""
    quando = to_iso(data)
    resumo = ResumoEstorno("SALE", id_venda)
    with connect(db_path, immediate=True) as conn:
        repos = Repositorios(db_path, conn)
        venda = repos.vendas.get(id_venda)
        if venda is None:
            raise NotFoundError(f"Venda não encontrada: {id_venda}", id_venda=id_venda)
        if venda.status_pagamento == ESTORNADO:
            resumo.ja_estornado = True
            return resumo
        _estornar_venda(repos, venda, quando, resumo)
    return resumo


@operacao("estornar_conta")
def estornar_conta(id_conta: str, data: DataLike, db_path: str = DB_PATH) -> ResumoEstorno:
    """Estorna os pagamentos de uma conta avulsa.

    A conta de compra de um lote ativo só sai junto com o lote (``estornar_lote``).
    """
    quando = to_iso(data)
    resumo = ResumoEstorno("PAYABLE", id_conta)
    with connect(db_path, immediate=True) as conn:
        repos = Repositorios(db_path, conn)
        conta = repos.contas.get(id_conta)
        if conta is None:
            raise NotFoundError(f"Conta não encontrada: {id_conta}", id=id_conta)
        if conta.status == ESTORNADO:
            resumo.ja_estornado = True
            return resumo
        _exigir_conta_avulsa(repos, conta)
        _estornar_conta(repos, conta, quando, resumo)
    return resumo


def _exigir_conta_avulsa(repos: Repositorios, conta: ContaPagar) -> None:
    if conta.id_lote:
        lote = repos.lotes.get(conta.id_lote)
        if lote is not None and lote.status != LOTE_ESTORNADO:
            raise DomainRuleError(
                f"Conta {conta.id} é a compra do lote {conta.id_lote}; estorne o lote",
                id=conta.id, id_lote=conta.id_lote,
            )


def _reabrir_conta(repos: Repositorios, conta: ContaPagar, t: Transacao, cfg: DefaultConfig) -> None:
    conta.valor_estornado = round(float(conta.valor_estornado or 0) + float(t.valor), 2)
    status = status_conta(conta.valor, conta.valor_pago_efetivo, cfg.epsilon)
    repos.contas.update_pagamento(conta.id, conta.valor_pago, conta.valor_estornado, status, conta.data_pagamento)


@operacao("estornar_transacao")
def estornar_transacao(id_transacao: str, data: DataLike, db_path: str = DB_PATH) -> ResumoEstorno:
    """Estorna uma transação; se for pagamento de conta avulsa, reabre a conta.

    Pagamentos de venda só saem com a venda inteira (``estornar_venda``),
    e pagamentos da compra de um lote ativo só com o lote. Diferente de
    ``estornar_transacao_razao``, repetir a chamada é sucesso sem efeito.
    """
    quando = to_iso(data)
    resumo = ResumoEstorno("TRANSACTION", id_transacao)
    with connect(db_path, immediate=True) as conn:
        repos = Repositorios(db_path, conn)
        t = repos.razao.get(id_transacao)
        if t is None:
            raise NotFoundError(f"Transação não encontrada: {id_transacao}", id=id_transacao)
        if repos.razao.estorno_de(id_transacao) is not None:
            resumo.ja_estornado = True
            return resumo
        dono = pagamento_de(repos, t)
        if isinstance(dono, Venda):
            raise DomainRuleError(
                f"Transação {t.id} é pagamento da venda {dono.id_venda}; estorne a venda",
                id=t.id, id_venda=dono.id_venda,
            )
        if dono is not None:
            _exigir_conta_avulsa(repos, dono)
        estornar(repos, t, quando)
        resumo.transacoes.append(t.id)
        if dono is not None:
            _reabrir_conta(repos, dono, t, carregar_parametros(db_path, conn))
            resumo.contas.append(dono.id)
            repos.auditoria.registrar("UPDATE", "TRANSACTION", t.id, {"dono": dono.id})
    log_financeiro("estornar_transacao", t.referencia_id, t.valor, id=t.id)
    return resumo
