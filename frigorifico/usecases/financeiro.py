# frigorifico/usecases/financeiro.py
"""
UC: Razão e contas a pagar.

- registrar_transacao():      lançamento manual (despesas operacionais etc.)
- saldo_caixa():              saldo recalculado a partir do razão
- extrato():                  transações com a situação de cada uma
- estornar_transacao_razao(): estorno puro de uma transação do razão
- criar_conta_pagar() / pagar_conta() / cancelar_conta()

O razão é append-only: ``TransacaoRepo.append`` é o único ponto de escrita
e os triggers do schema recusam UPDATE/DELETE.
"""

from __future__ import annotations

import sqlite3
from dataclasses import dataclass
from typing import List, Optional, Union
from uuid import uuid4

from frigorifico.config import DB_PATH, DefaultConfig
from frigorifico.domain import razao
from frigorifico.domain.errors import (
    AlreadyReversedError, ConsistencyError, DomainRuleError, NotFoundError,
    OverpaymentError, ValidationError,
)
from frigorifico.domain.formulas import DataLike, to_iso
from frigorifico.domain.models import (
    CANCELADO, CAT_DESCONTO, CAT_ESTORNO, CAT_VENDA, CATEGORIAS, ENTRADA, ESTORNADO,
    PENDENTE, SAIDA, ContaPagar, Transacao, Venda,
)
from frigorifico.domain.policies import status_conta
from frigorifico.infra.db import connect
from frigorifico.infra.logger import log_database_operation, log_financeiro
from frigorifico.infra.repositories import Repositorios, TransacaoRepo
from frigorifico.usecases.parametros import carregar_parametros
from frigorifico.usecases.resultado import operacao


# ----------------------
# util
# ----------------------

def novo_id(prefixo: str) -> str:
    return f"{prefixo}-{uuid4().hex[:12].upper()}"


def _validar_valor(valor: float, campo: str = "valor") -> float:
    try:
        v = float(valor)
    except (TypeError, ValueError):
        raise ValidationError(f"{campo} inválido: {valor!r}", campo=campo)
    if v <= 0:
        raise ValidationError(f"{campo} deve ser maior que zero", campo=campo, valor=v)
    return v


# ----------------------
# Primitivas (rodam dentro da transação do chamador)
# ----------------------

def lancar(
    repos: Repositorios,
    tipo: str,
    categoria: str,
    valor: float,
    data: str,
    descricao: str,
    referencia_id: Optional[str] = None,
    metodo_pagamento: Optional[str] = None,
    estorno_de: Optional[str] = None,
) -> Transacao:
    """Anexa uma transação ao razão e registra a auditoria."""
    t = Transacao(
        id=novo_id("TR"),
        data=to_iso(data),
        descricao=descricao,
        tipo=tipo,
        categoria=categoria,
        valor=round(float(valor), 2),
        referencia_id=referencia_id,
        metodo_pagamento=metodo_pagamento,
        estorno_de=estorno_de,
    )
    repos.razao.append(t)
    repos.auditoria.registrar(
        "ESTORNO" if estorno_de else "CREATE",
        "TRANSACTION",
        t.id,
        {"tipo": tipo, "categoria": categoria, "valor": t.valor, "referencia_id": referencia_id},
    )
    log_financeiro("lancar", referencia_id, t.valor, tipo=tipo, categoria=categoria, id=t.id)
    return t


def estornar(repos: Repositorios, t: Transacao, data: str) -> Transacao:
    """Anexa a transação inversa de ``t``; o original fica intacto."""
    if t.categoria == CAT_ESTORNO or t.estorno_de:
        raise ConsistencyError(f"Transação {t.id} já é um estorno", id=t.id)
    if repos.razao.estorno_de(t.id) is not None:
        raise AlreadyReversedError(f"Transação {t.id} já foi estornada", id=t.id)
    return lancar(
        repos,
        tipo=SAIDA if t.tipo == ENTRADA else ENTRADA,
        categoria=CAT_ESTORNO,
        valor=t.valor,
        data=data,
        descricao=f"Estorno: {t.descricao or t.id}",
        referencia_id=t.referencia_id,
        metodo_pagamento=t.metodo_pagamento,
        estorno_de=t.id,
    )


def pagamento_de(repos: Repositorios, t: Transacao) -> Optional[Union[Venda, ContaPagar]]:
    """Venda ou conta ativa cujo valor pago inclui ``t``; ``None`` se não houver."""
    if not t.referencia_id:
        return None
    venda = repos.vendas.get(t.referencia_id)
    if venda is not None:
        ativa = venda.status_pagamento != ESTORNADO
        return venda if ativa and t.categoria in (CAT_VENDA, CAT_DESCONTO) else None
    conta = repos.contas.get(t.referencia_id)
    if conta is not None and conta.status != ESTORNADO and t.tipo == SAIDA and t.categoria == conta.categoria:
        return conta
    return None


def estornar_pendentes(repos: Repositorios, referencia_id: str, data: str) -> List[Transacao]:
    """Estorna toda transação ainda não estornada que aponta para ``referencia_id``.

    Idempotente: transações já estornadas e os próprios estornos são ignorados.
    Devolve as transações originais que foram estornadas agora.
    """
    estornados = repos.razao.ids_estornados()
    originais = [
        t for t in repos.razao.by_referencia(referencia_id)
        if razao.situacao(t, estornados) == razao.VALIDA
    ]
    for t in originais:
        estornar(repos, t, data)
    return originais


def registrar_pagamento_conta(
    repos: Repositorios,
    conta: ContaPagar,
    valor: float,
    metodo: Optional[str],
    data: str,
    cfg: DefaultConfig,
) -> ContaPagar:
    if conta.status in (ESTORNADO, CANCELADO):
        raise ConsistencyError(f"Conta {conta.id} está {conta.status}", id=conta.id)
    valor = _validar_valor(valor)
    if valor > conta.saldo + cfg.epsilon:
        raise OverpaymentError(
            f"Pagamento de {valor:.2f} excede o saldo da conta ({conta.saldo:.2f})",
            id=conta.id, valor=valor, saldo=conta.saldo,
        )
    lancar(
        repos, SAIDA, conta.categoria, valor, data,
        f"Pagamento: {conta.descricao}", referencia_id=conta.id, metodo_pagamento=metodo,
    )
    conta.valor_pago = round(float(conta.valor_pago or 0) + valor, 2)
    conta.status = status_conta(conta.valor, conta.valor_pago_efetivo, cfg.epsilon)
    conta.data_pagamento = to_iso(data)
    repos.contas.update_pagamento(conta.id, conta.valor_pago, conta.valor_estornado, conta.status, conta.data_pagamento)
    repos.auditoria.registrar("UPDATE", "PAYABLE", conta.id, {"pago": valor, "status": conta.status})
    return conta


# ----------------------
# Operações públicas
# ----------------------

@operacao("registrar_transacao")
def registrar_transacao(
    tipo: str,
    categoria: str,
    valor: float,
    data: DataLike,
    descricao: str = "",
    referencia_id: Optional[str] = None,
    metodo_pagamento: Optional[str] = None,
    db_path: str = DB_PATH,
) -> Transacao:
    """Lançamento manual no razão."""
    if tipo not in (ENTRADA, SAIDA):
        raise ValidationError(f"Tipo inválido: {tipo}", tipo=tipo)
    if categoria == CAT_ESTORNO:
        raise ValidationError("Estornos só são gerados pelo estorno de uma transação")
    if categoria not in CATEGORIAS:
        raise ValidationError(f"Categoria inválida: {categoria}", categoria=categoria)
    valor = _validar_valor(valor)
    with connect(db_path, immediate=True) as conn:
        repos = Repositorios(db_path, conn)
        if referencia_id and referencia_id not in repos.razao.referencias_conhecidas():
            raise NotFoundError(f"Referência inexistente: {referencia_id}", referencia_id=referencia_id)
        t = lancar(repos, tipo, categoria, valor, to_iso(data), descricao, referencia_id, metodo_pagamento)
    log_database_operation("transacao", "INSERT", 1, id=t.id)
    return t


def saldo_caixa(
    ate: Optional[DataLike] = None,
    desde: Optional[DataLike] = None,
    categoria: Optional[str] = None,
    tipo: Optional[str] = None,
    referencia_id: Optional[str] = None,
    db_path: str = DB_PATH,
) -> float:
    """Saldo de caixa recalculado (nunca armazenado)."""
    repo = TransacaoRepo(db_path)
    return razao.saldo(
        repo.list(),
        repo.referencias_conhecidas(),
        ate=ate, desde=desde, categoria=categoria, tipo=tipo, referencia_id=referencia_id,
    )


@dataclass
class LinhaExtrato:
    transacao: Transacao
    situacao: str


def extrato(
    desde: Optional[DataLike] = None,
    ate: Optional[DataLike] = None,
    categoria: Optional[str] = None,
    tipo: Optional[str] = None,
    referencia_id: Optional[str] = None,
    db_path: str = DB_PATH,
) -> List[LinhaExtrato]:
    """Transações do período (inclusive estornadas), com a situação de cada uma."""
    repo = TransacaoRepo(db_path)
    estornados = repo.ids_estornados()
    referencias = repo.referencias_conhecidas()
    linhas = repo.list(
        desde=to_iso(desde) if desde is not None else None,
        ate=to_iso(ate) if ate is not None else None,
        categoria=categoria, tipo=tipo, referencia_id=referencia_id,
    )
    return [LinhaExtrato(t, razao.situacao(t, estornados, referencias)) for t in linhas]


@operacao("estornar_transacao_razao")
def estornar_transacao_razao(id_transacao: str, data: DataLike, db_path: str = DB_PATH) -> Transacao:
    """Estorno puro de razão: anexa a inversa e mais nada.

    Um segundo estorno da mesma transação falha com ``AlreadyReversedError``
    (também garantido pelo índice único em ``transacao.estorno_de``).
    Pagamentos de vendas e contas ativas não passam por aqui: o estorno
    precisa atualizar o valor pago do dono (ver ``usecases.estorno``).
    """
    quando = to_iso(data)
    try:
        with connect(db_path, immediate=True) as conn:
            repos = Repositorios(db_path, conn)
            t = repos.razao.get(id_transacao)
            if t is None:
                raise NotFoundError(f"Transação não encontrada: {id_transacao}", id=id_transacao)
            dono = pagamento_de(repos, t)
            if dono is not None:
                raise DomainRuleError(
                    f"Transação {id_transacao} é pagamento de {getattr(dono, 'id_venda', None) or dono.id}",
                    id=id_transacao,
                )
            inversa = estornar(repos, t, quando)
    except sqlite3.IntegrityError as e:
        raise AlreadyReversedError(f"Transação {id_transacao} já foi estornada", id=id_transacao) from e
    return inversa


@operacao("criar_conta_pagar")
def criar_conta_pagar(
    descricao: str,
    valor: float,
    data_vencimento: DataLike,
    categoria: str = "OUTROS",
    fornecedor_id: Optional[str] = None,
    observacoes: Optional[str] = None,
    db_path: str = DB_PATH,
) -> ContaPagar:
    if categoria not in CATEGORIAS or categoria == CAT_ESTORNO:
        raise ValidationError(f"Categoria inválida: {categoria}", categoria=categoria)
    conta = ContaPagar(
        id=novo_id("PAY"),
        descricao=descricao,
        valor=round(_validar_valor(valor), 2),
        data_vencimento=to_iso(data_vencimento),
        categoria=categoria,
        fornecedor_id=fornecedor_id,
        observacoes=observacoes,
        status=PENDENTE,
    )
    with connect(db_path, immediate=True) as conn:
        repos = Repositorios(db_path, conn)
        repos.contas.insert(conta)
        repos.auditoria.registrar("CREATE", "PAYABLE", conta.id, {"valor": conta.valor})
    log_financeiro("criar_conta", conta.id, conta.valor)
    return conta


@operacao("pagar_conta")
def pagar_conta(
    id_conta: str,
    valor: float,
    data: DataLike,
    metodo: Optional[str] = None,
    db_path: str = DB_PATH,
) -> ContaPagar:
    """Pagamento (parcial ou total) de uma conta a pagar."""
    quando = to_iso(data)
    with connect(db_path, immediate=True) as conn:
        repos = Repositorios(db_path, conn)
        conta = repos.contas.get(id_conta)
        if conta is None:
            raise NotFoundError(f"Conta não encontrada: {id_conta}", id=id_conta)
        cfg = carregar_parametros(db_path, conn)
        conta = registrar_pagamento_conta(repos, conta, valor, metodo, quando, cfg)
    log_financeiro("pagar_conta", id_conta, float(valor), status=conta.status)
    return conta


@operacao("cancelar_conta")
def cancelar_conta(id_conta: str, db_path: str = DB_PATH) -> ContaPagar:
    """Cancela uma conta que ainda não recebeu pagamento."""
    with connect(db_path, immediate=True) as conn:
        repos = Repositorios(db_path, conn)
        conta = repos.contas.get(id_conta)
        if conta is None:
            raise NotFoundError(f"Conta não encontrada: {id_conta}", id=id_conta)
        if conta.status == CANCELADO:
            return conta
        if conta.status != PENDENTE or conta.valor_pago_efetivo > 0:
            raise DomainRuleError(
                f"Conta {id_conta} já tem pagamentos ({conta.status}); use o estorno",
                id=id_conta, status=conta.status,
            )
        repos.contas.set_status(id_conta, CANCELADO)
        repos.auditoria.registrar("UPDATE", "PAYABLE", id_conta, {"status": CANCELADO})
        conta.status = CANCELADO
    log_financeiro("cancelar_conta", id_conta, conta.valor)
    return conta
