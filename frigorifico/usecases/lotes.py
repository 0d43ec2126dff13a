# frigorifico/usecases/lotes.py
"""
UC: Ciclo de vida do lote (rascunho → confirmação).

- cadastrar_fornecedor(): cadastro consultado na confirmação do lote
- novo_id_lote():     próximo id livre ``SIGLA-DDMM-NN`` para o fornecedor/data
- rascunho_lote():    monta um Lote ABERTO em memória (nada é gravado)
- editar_rascunho():  altera qualquer campo enquanto ABERTO
- proxima_peca():     sugestão de sequência/tipo para a próxima pesagem
- confirmar_lote():   grava lote + peças + conta a pagar numa única transação
- editar_lote():      correções permitidas num lote FECHADO e inclusão de peças

Obs.:
- O rascunho só existe do lado do chamador; o banco nunca vê um lote ABERTO.
- Campos financeiros de um lote FECHADO são imutáveis: a correção é
  estornar o lote e confirmar outro.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Any, Dict, Iterable, List, Optional, Sequence

from frigorifico.config import DB_PATH, DefaultConfig
from frigorifico.domain.errors import (
    ConsistencyError, DomainRuleError, EmptyBatchError, ImmutableBatchError, NotFoundError, ValidationError,
)
from frigorifico.domain.formulas import (
    DataLike, add_dias, gerar_id_lote, montar_id_completo, to_dias, to_iso,
)
from frigorifico.domain.models import (
    CAT_COMPRA_GADO, DISPONIVEL, LOTE_ABERTO, LOTE_ESTORNADO, LOTE_FECHADO,
    PARCIAL, PENDENTE, PRAZO, TIPOS_PECA, VISTA, ContaPagar, Fornecedor, Lote, Peca, PecaRascunho,
)
from frigorifico.domain.policies import campos_bloqueados
from frigorifico.domain.policies import proxima_peca as _proxima_peca
from frigorifico.infra.db import connect
from frigorifico.infra.logger import log_database_operation, log_lote, log_system_event, print_system
from frigorifico.infra.repositories import Repositorios
from frigorifico.usecases.financeiro import registrar_pagamento_conta
from frigorifico.usecases.parametros import carregar_parametros
from frigorifico.usecases.resultado import operacao

_CAMPOS_NUMERICOS = ("peso_total_romaneio", "valor_compra_total", "frete", "gastos_extras", "valor_entrada")


# ----------------------
# Rascunho (puro)
# ----------------------

def _validar_rascunho(lote: Lote) -> Lote:
    if not str(lote.id_lote or "").strip():
        raise ValidationError("Lote sem identificador")
    if len(str(lote.id_lote).split("-")) != 3:
        raise ValidationError(
            f"Id de lote deve ter três segmentos separados por hífen: {lote.id_lote}",
            id_lote=lote.id_lote,
        )
    for campo in _CAMPOS_NUMERICOS:
        valor = getattr(lote, campo)
        try:
            valor = float(valor or 0.0)
        except (TypeError, ValueError):
            raise ValidationError(f"{campo} inválido: {getattr(lote, campo)!r}", campo=campo)
        if valor < 0:
            raise ValidationError(f"{campo} não pode ser negativo", campo=campo, valor=valor)
        setattr(lote, campo, valor)
    if lote.forma_pagamento not in (VISTA, PRAZO):
        raise ValidationError(f"Forma de pagamento inválida: {lote.forma_pagamento}")
    if lote.prazo_dias is not None:
        lote.prazo_dias = to_dias(lote.prazo_dias)
    lote.data_recebimento = to_iso(lote.data_recebimento)
    return lote


def rascunho_lote(
    fornecedor: str,
    data_recebimento: DataLike,
    peso_total_romaneio: float = 0.0,
    valor_compra_total: float = 0.0,
    frete: float = 0.0,
    gastos_extras: float = 0.0,
    forma_pagamento: str = VISTA,
    valor_entrada: float = 0.0,
    prazo_dias: Optional[int] = None,
    id_lote: Optional[str] = None,
    existentes: Sequence[str] = (),
) -> Lote:
    """Monta um lote ABERTO. Peso zerado é aceito no rascunho (custo/kg = 0)."""
    lote = Lote(
        id_lote=id_lote or gerar_id_lote(fornecedor, data_recebimento, existentes),
        fornecedor=fornecedor,
        data_recebimento=data_recebimento,
        peso_total_romaneio=peso_total_romaneio,
        valor_compra_total=valor_compra_total,
        frete=frete,
        gastos_extras=gastos_extras,
        forma_pagamento=forma_pagamento,
        valor_entrada=valor_entrada,
        prazo_dias=prazo_dias,
        status=LOTE_ABERTO,
    )
    return _validar_rascunho(lote)


def editar_rascunho(rascunho: Lote, **alteracoes: Any) -> Lote:
    if rascunho.status != LOTE_ABERTO:
        raise ImmutableBatchError(
            f"Lote {rascunho.id_lote} está {rascunho.status}; use editar_lote",
            id_lote=rascunho.id_lote,
        )
    invalidos = (set(alteracoes) - set(rascunho.__dataclass_fields__)) | ({"status"} & set(alteracoes))
    if invalidos:
        raise ValidationError(f"Campos não editáveis: {sorted(invalidos)}", campos=sorted(invalidos))
    return _validar_rascunho(replace(rascunho, **alteracoes))


def proxima_peca(ultima: Optional[PecaRascunho]) -> PecaRascunho:
    """Próxima pesagem sugerida depois de ``ultima`` (peso zerado)."""
    return _proxima_peca(ultima)


def novo_id_lote(fornecedor: str, data_recebimento: DataLike, db_path: str = DB_PATH) -> str:
    """Id livre para o lote; a sigla sai do nome cadastrado quando ``fornecedor`` é um id."""
    repos = Repositorios(db_path)
    cadastro = repos.fornecedores.resolver(fornecedor)
    nome = cadastro.nome_fantasia if cadastro else fornecedor
    return gerar_id_lote(nome, data_recebimento, repos.lotes.ids())


@operacao("cadastrar_fornecedor")
def cadastrar_fornecedor(
    id_fornecedor: str,
    nome_fantasia: str,
    cpf_cnpj: Optional[str] = None,
    telefone: Optional[str] = None,
    cidade: Optional[str] = None,
    status: str = "ATIVO",
    db_path: str = DB_PATH,
) -> Fornecedor:
    if not str(id_fornecedor or "").strip() or not str(nome_fantasia or "").strip():
        raise ValidationError("Fornecedor precisa de id e nome fantasia")
    if status not in ("ATIVO", "INATIVO"):
        raise ValidationError(f"Status de fornecedor inválido: {status}", status=status)
    fornecedor = Fornecedor(
        id=id_fornecedor.strip(), nome_fantasia=nome_fantasia.strip(),
        cpf_cnpj=cpf_cnpj, telefone=telefone, cidade=cidade, status=status,
    )
    with connect(db_path, immediate=True) as conn:
        repos = Repositorios(db_path, conn)
        repos.fornecedores.upsert([fornecedor])
        repos.auditoria.registrar("UPSERT", "SUPPLIER", fornecedor.id, {"nome": fornecedor.nome_fantasia})
    log_database_operation("fornecedor", "UPSERT", 1, id=fornecedor.id)
    return fornecedor


# ----------------------
# Confirmação
# ----------------------

def _montar_pecas(lote: Lote, pecas: Iterable[PecaRascunho], existentes: Iterable[str] = ()) -> List[Peca]:
    out: List[Peca] = []
    vistos = set(existentes)
    for p in pecas:
        if p.tipo not in TIPOS_PECA:
            raise ValidationError(f"Tipo de peça inválido: {p.tipo}", tipo=p.tipo)
        try:
            seq = int(p.sequencia)
            peso = float(p.peso)
        except (TypeError, ValueError):
            raise ValidationError(f"Peça malformada: {p!r}")
        if seq < 1:
            raise ValidationError(f"Sequência inválida: {seq}", sequencia=seq)
        if peso <= 0:
            raise ValidationError(
                f"Peso zerado ou negativo na sequência {seq} ({p.tipo})",
                sequencia=seq, tipo=p.tipo, peso=peso,
            )
        id_completo = montar_id_completo(lote.id_lote, seq, p.tipo)
        if id_completo in vistos:
            raise ValidationError(f"Peça duplicada: {id_completo}", id_completo=id_completo)
        vistos.add(id_completo)
        out.append(Peca(
            id_completo=id_completo,
            id_lote=lote.id_lote,
            sequencia=seq,
            tipo=p.tipo,
            peso_entrada=round(peso, 3),
            data_entrada=lote.data_recebimento,
            status=DISPONIVEL,
        ))
    return out


def _registrar_compra(
    repos: Repositorios,
    lote: Lote,
    metodo: str,
    cfg: DefaultConfig,
    fornecedor: Optional[Fornecedor] = None,
) -> Optional[ContaPagar]:
    """Conta a pagar ``PAY-LOTE-{id}`` do custo total do lote.

    VISTA: quitada na hora. PRAZO: vence em data_recebimento + prazo_dias,
    com a entrada (se houver) lançada como primeiro pagamento.
    """
    custo = round(lote.custo_total, 2)
    if custo <= 0:
        return None
    prazo = 0 if lote.forma_pagamento == VISTA else int(
        lote.prazo_dias if lote.prazo_dias is not None else cfg.prazo_compra_dias
    )
    conta = ContaPagar(
        id=f"PAY-LOTE-{lote.id_lote}",
        descricao=f"Compra Lote {lote.id_lote} - {lote.fornecedor}",
        valor=custo,
        data_vencimento=add_dias(lote.data_recebimento, prazo),
        categoria=CAT_COMPRA_GADO,
        id_lote=lote.id_lote,
        fornecedor_id=fornecedor.id if fornecedor else None,
        status=PENDENTE,
        observacoes=f"Compra {lote.forma_pagamento}"
        + (f" (entrada: {lote.valor_entrada:.2f})" if lote.forma_pagamento == PRAZO and lote.valor_entrada else ""),
    )
    repos.contas.insert(conta)
    repos.auditoria.registrar("CREATE", "PAYABLE", conta.id, {"valor": custo, "id_lote": lote.id_lote})

    if lote.forma_pagamento == VISTA:
        registrar_pagamento_conta(repos, conta, custo, metodo, lote.data_recebimento, cfg)
    elif lote.valor_entrada > 0:
        registrar_pagamento_conta(repos, conta, lote.valor_entrada, metodo, lote.data_recebimento, cfg)
    return conta


@operacao("confirmar_lote")
def confirmar_lote(
    rascunho: Lote,
    pecas: Sequence[PecaRascunho],
    metodo_pagamento: str = "OUTROS",
    db_path: str = DB_PATH,
) -> Lote:
    """Confirma o rascunho: tudo ou nada.

    Valida antes de qualquer escrita; depois grava, numa única transação
    SQLite, o lote FECHADO, todas as peças DISPONIVEL e a conta a pagar
    da compra (com seus pagamentos).
    """
    if rascunho.status != LOTE_ABERTO:
        raise ImmutableBatchError(f"Lote {rascunho.id_lote} não está ABERTO", id_lote=rascunho.id_lote)
    lote = _validar_rascunho(replace(rascunho))
    if lote.peso_total_romaneio <= 0:
        raise ValidationError("Peso total do romaneio deve ser maior que zero", id_lote=lote.id_lote)
    pecas = list(pecas)
    if not pecas:
        raise EmptyBatchError(f"Lote {lote.id_lote} sem peças", id_lote=lote.id_lote)
    novas = _montar_pecas(lote, pecas)
    if lote.forma_pagamento == PRAZO and lote.valor_entrada > lote.custo_total + 0.01:
        raise ValidationError(
            "Entrada maior que o custo total do lote",
            valor_entrada=lote.valor_entrada, custo_total=lote.custo_total,
        )

    log_system_event("confirmar_lote_start", {"id_lote": lote.id_lote, "pecas": len(novas)})
    with connect(db_path, immediate=True) as conn:
        repos = Repositorios(db_path, conn)
        if repos.lotes.get(lote.id_lote) is not None:
            raise ConsistencyError(f"Lote {lote.id_lote} já existe", id_lote=lote.id_lote)
        cadastro = repos.fornecedores.resolver(lote.fornecedor)
        if cadastro is not None:
            if cadastro.status != "ATIVO":
                raise DomainRuleError(
                    f"Fornecedor {cadastro.id} está {cadastro.status}", fornecedor=cadastro.id,
                )
            lote.fornecedor = cadastro.nome_fantasia
        cfg = carregar_parametros(db_path, conn)
        lote.status = LOTE_FECHADO
        repos.lotes.insert(lote)
        repos.pecas.insert_many(novas)
        conta = _registrar_compra(repos, lote, metodo_pagamento, cfg, cadastro)
        repos.auditoria.registrar(
            "CREATE", "BATCH", lote.id_lote,
            {"pecas": len(novas), "custo_total": lote.custo_total, "conta": conta.id if conta else None},
        )

    log_database_operation("lote", "INSERT", 1, id_lote=lote.id_lote)
    log_database_operation("peca", "INSERT_MANY", len(novas), id_lote=lote.id_lote)
    log_lote("confirmar", lote.id_lote, pecas=len(novas), custo_real_kg=round(lote.custo_real_kg, 4))
    print_system(f">> Lote {lote.id_lote} gravado com {len(novas)} peças.")
    return lote


@operacao("editar_lote")
def editar_lote(
    id_lote: str,
    alteracoes: Optional[Dict[str, Any]] = None,
    novas_pecas: Sequence[PecaRascunho] = (),
    db_path: str = DB_PATH,
) -> Lote:
    """Correções num lote FECHADO.

    Só ``fornecedor`` e ``data_recebimento`` podem mudar; campos financeiros
    levantam ``ImmutableBatchError``. Peças novas entram DISPONIVEL com as
    mesmas validações da confirmação.
    """
    alteracoes = dict(alteracoes or {})
    with connect(db_path, immediate=True) as conn:
        repos = Repositorios(db_path, conn)
        lote = repos.lotes.get(id_lote)
        if lote is None:
            raise NotFoundError(f"Lote não encontrado: {id_lote}", id_lote=id_lote)
        if lote.status == LOTE_ESTORNADO:
            raise ImmutableBatchError(f"Lote {id_lote} está ESTORNADO", id_lote=id_lote)
        bloqueados = campos_bloqueados(alteracoes)
        if bloqueados:
            raise ImmutableBatchError(
                f"Campos imutáveis em lote FECHADO: {sorted(bloqueados)}",
                id_lote=id_lote, campos=sorted(bloqueados),
            )

        if "data_recebimento" in alteracoes:
            nova_data = to_iso(alteracoes["data_recebimento"])
            alteracoes["data_recebimento"] = nova_data
            repos.pecas.update_data_entrada(id_lote, nova_data)
            prazo = 0 if lote.forma_pagamento == VISTA else int(
                lote.prazo_dias if lote.prazo_dias is not None
                else carregar_parametros(db_path, conn).prazo_compra_dias
            )
            for conta in repos.contas.by_lote(id_lote):
                if conta.status in (PENDENTE, PARCIAL):
                    repos.contas.update_vencimento(conta.id, add_dias(nova_data, prazo))
        if alteracoes:
            repos.lotes.update_campos(id_lote, alteracoes)
            for k, v in alteracoes.items():
                setattr(lote, k, v)

        pecas = list(novas_pecas)
        if pecas:
            existentes = [p.id_completo for p in repos.pecas.by_lote(id_lote)]
            repos.pecas.insert_many(_montar_pecas(lote, pecas, existentes))

        repos.auditoria.registrar(
            "UPDATE", "BATCH", id_lote, {"alteracoes": alteracoes, "novas_pecas": len(pecas)},
        )

    log_lote("editar", id_lote, alteracoes=alteracoes, novas_pecas=len(pecas))
    return lote
