# frigorifico/usecases/vendas.py
"""
UC: Vendas e recebimentos.

- alocar_venda():        uma venda a partir de peças da mesma carcaça
- registrar_expedicao(): várias peças de uma vez, uma venda por carcaça
- aplicar_pagamento():   recebimento parcial/total com desconto opcional
- receber_cliente():     recebimento distribuído nas vendas pendentes (mais antigas primeiro)

Regras:
- Só sai peça DISPONIVEL de lote FECHADO e com menos de ``dias_bloqueio``
  dias de câmara na data da venda.
- ``valor_pago`` só cresce; recebido + desconto nunca passa do saldo devedor.
- O desconto é dinheiro saindo (SAIDA/DESCONTO), o recebido é ENTRADA/VENDA.
"""

from __future__ import annotations

from typing import Dict, List, Optional, Sequence

from frigorifico.config import DB_PATH, DefaultConfig
from frigorifico.domain.errors import (
    ConsistencyError, DomainRuleError, NotFoundError, OverpaymentError,
    StaleInventoryError, ValidationError,
)
from frigorifico.domain.formulas import (
    DataLike, add_dias, agrupar_por_sequencia, dias_em_camara, dividir_igualmente,
    montar_id_completo, quebra_kg, to_dias, to_iso,
)
from frigorifico.domain.models import (
    CAT_DESCONTO, CAT_VENDA, DISPONIVEL, ENTRADA, ESTORNADO, INTEIRO, LOTE_FECHADO,
    METODOS_PAGAMENTO, PAGO, PENDENTE, SAIDA, VENDIDO, Cliente, Peca, Venda,
)
from frigorifico.domain.policies import ATENCAO, BLOQUEADO, classificar_idade, status_venda
from frigorifico.infra.db import connect
from frigorifico.infra.logger import log_database_operation, log_venda
from frigorifico.infra.repositories import Repositorios
from frigorifico.usecases.financeiro import lancar, novo_id
from frigorifico.usecases.parametros import carregar_parametros
from frigorifico.usecases.resultado import Resultado, operacao


# ----------------------
# util
# ----------------------

def _numero(valor, campo: str, minimo_exclusivo: Optional[float] = None) -> float:
    try:
        v = float(valor if valor is not None else 0.0)
    except (TypeError, ValueError):
        raise ValidationError(f"{campo} inválido: {valor!r}", campo=campo)
    if v < 0:
        raise ValidationError(f"{campo} não pode ser negativo", campo=campo, valor=v)
    if minimo_exclusivo is not None and v <= minimo_exclusivo:
        raise ValidationError(f"{campo} deve ser maior que {minimo_exclusivo:g}", campo=campo, valor=v)
    return v


def _cliente(repos: Repositorios, id_cliente: str) -> Cliente:
    cliente = repos.clientes.get(id_cliente)
    if cliente is None:
        raise NotFoundError(f"Cliente não encontrado: {id_cliente}", id_cliente=id_cliente)
    return cliente


def _carregar_pecas(repos: Repositorios, ids: Sequence[str]) -> List[Peca]:
    ids = [str(i).strip() for i in ids]
    if not ids:
        raise ValidationError("Nenhuma peça informada")
    if len(set(ids)) != len(ids):
        raise ValidationError("Peça repetida na mesma venda", ids=ids)
    pecas = repos.pecas.by_ids(ids)
    faltando = sorted(set(ids) - {p.id_completo for p in pecas})
    if faltando:
        raise NotFoundError(f"Peças não encontradas: {faltando}", ids=faltando)
    return pecas


def _verificar_saida(repos: Repositorios, pecas: Sequence[Peca], data_venda: str, cfg: DefaultConfig) -> List[str]:
    """Levanta erro para peça que não pode sair; devolve avisos de maturação."""
    avisos: List[str] = []
    status_lotes: Dict[str, Optional[str]] = {}
    for p in pecas:
        if p.id_lote not in status_lotes:
            lote = repos.lotes.get(p.id_lote)
            status_lotes[p.id_lote] = lote.status if lote else None
        if status_lotes[p.id_lote] != LOTE_FECHADO:
            raise DomainRuleError(
                f"Lote {p.id_lote} não está FECHADO ({status_lotes[p.id_lote]})",
                id_lote=p.id_lote,
            )
        if p.status != DISPONIVEL:
            raise DomainRuleError(f"Peça {p.id_completo} não está disponível ({p.status})", id_completo=p.id_completo)
        dias = dias_em_camara(p.data_entrada, data_venda)
        maturacao = classificar_idade(dias, cfg.dias_bloqueio)
        if maturacao == BLOQUEADO:
            raise StaleInventoryError(
                f"Peça {p.id_completo} com {dias} dias de câmara: saída bloqueada",
                id_completo=p.id_completo, dias=dias,
            )
        if maturacao == ATENCAO:
            avisos.append(f"Peça {p.id_completo} com {dias} dias de câmara: priorizar a saída")
    return avisos


def _id_item(pecas: Sequence[Peca]) -> str:
    """Item vendido: a própria peça, ou ``LOTE-SEQ-INTEIRO`` para a carcaça montada."""
    inteiros = [p for p in pecas if p.tipo == INTEIRO]
    if inteiros:
        return inteiros[0].id_completo
    if len(pecas) == 1:
        return pecas[0].id_completo
    return montar_id_completo(pecas[0].id_lote, pecas[0].sequencia, INTEIRO)


def _criar_venda(
    repos: Repositorios,
    pecas: Sequence[Peca],
    cliente: Cliente,
    preco_kg: float,
    peso_saida: float,
    data_venda: str,
    custo_extras: float,
    prazo_dias: Optional[int],
    forma_pagamento: str,
    cfg: DefaultConfig,
) -> Venda:
    grupos = agrupar_por_sequencia(pecas)
    if len(grupos) != 1:
        raise ValidationError(
            "Peças de carcaças diferentes na mesma venda; use registrar_expedicao",
            ids=[p.id_completo for p in pecas],
        )
    peso_entrada = sum(float(p.peso_entrada) for p in pecas)
    if peso_saida <= 0 or peso_saida > peso_entrada * (1 + cfg.tolerancia_peso):
        raise ValidationError(
            f"Peso de saída {peso_saida:.3f} kg fora do limite (entrada {peso_entrada:.3f} kg)",
            peso_saida=peso_saida, peso_entrada=peso_entrada,
        )
    prazo = prazo_dias if prazo_dias is not None else cfg.prazo_venda_dias
    venda = Venda(
        id_venda=novo_id("V"),
        id_cliente=cliente.id_ferro,
        nome_cliente=cliente.nome_social,
        id_completo=_id_item(pecas),
        peso_entrada_total=round(peso_entrada, 3),
        peso_real_saida=round(peso_saida, 3),
        quebra_kg=round(quebra_kg(peso_entrada, peso_saida), 3),
        preco_venda_kg=preco_kg,
        custo_extras_total=round(custo_extras, 2),
        data_venda=data_venda,
        prazo_dias=prazo,
        data_vencimento=add_dias(data_venda, prazo),
        forma_pagamento=forma_pagamento,
        status_pagamento=PENDENTE,
        itens=[p.id_completo for p in pecas],
    )
    repos.vendas.insert(venda, pecas)
    repos.pecas.set_status(venda.itens, VENDIDO)
    repos.auditoria.registrar(
        "CREATE", "SALE", venda.id_venda,
        {"itens": venda.itens, "valor_total": round(venda.valor_total, 2), "cliente": cliente.id_ferro},
    )
    log_venda("registrar", venda.id_venda, id_completo=venda.id_completo, valor_total=round(venda.valor_total, 2))
    return venda


def _validar_forma(forma_pagamento: str) -> str:
    if forma_pagamento not in METODOS_PAGAMENTO:
        raise ValidationError(f"Forma de pagamento inválida: {forma_pagamento}", forma=forma_pagamento)
    return forma_pagamento


# ----------------------
# Alocação
# ----------------------

@operacao("alocar_venda")
def alocar_venda(
    ids_pecas: Sequence[str],
    id_cliente: str,
    preco_kg: float,
    peso_saida: float,
    data_venda: DataLike,
    custo_extras: float = 0.0,
    prazo_dias: Optional[int] = None,
    forma_pagamento: str = "OUTROS",
    db_path: str = DB_PATH,
) -> Resultado[Venda]:
    """Vende uma carcaça (inteiro, banda avulsa, ou bandas A+B juntas).

    A venda nasce PENDENTE; as peças passam a VENDIDO na mesma transação.
    """
    preco = _numero(preco_kg, "preco_kg", minimo_exclusivo=0)
    extras = _numero(custo_extras, "custo_extras")
    saida = _numero(peso_saida, "peso_saida")
    forma = _validar_forma(forma_pagamento)
    data = to_iso(data_venda)
    prazo = to_dias(prazo_dias) if prazo_dias is not None else None
    with connect(db_path, immediate=True) as conn:
        repos = Repositorios(db_path, conn)
        cfg = carregar_parametros(db_path, conn)
        cliente = _cliente(repos, id_cliente)
        pecas = _carregar_pecas(repos, ids_pecas)
        avisos = _verificar_saida(repos, pecas, data, cfg)
        venda = _criar_venda(repos, pecas, cliente, preco, saida, data, extras, prazo, forma, cfg)
    log_database_operation("venda", "INSERT", 1, id_venda=venda.id_venda)
    return Resultado.sucesso(venda, avisos)


@operacao("registrar_expedicao")
def registrar_expedicao(
    pesos_saida: Dict[str, Optional[float]],
    id_cliente: str,
    preco_kg: float,
    data_venda: DataLike,
    custo_extras: float = 0.0,
    prazo_dias: Optional[int] = None,
    forma_pagamento: str = "OUTROS",
    db_path: str = DB_PATH,
) -> Resultado[List[Venda]]:
    """Expedição de várias peças: uma venda por (lote, sequência).

    ``pesos_saida`` mapeia id da peça → peso de saída (``None`` usa o peso
    de entrada). ``custo_extras`` é dividido igualmente entre as carcaças.
    """
    preco = _numero(preco_kg, "preco_kg", minimo_exclusivo=0)
    extras = _numero(custo_extras, "custo_extras")
    forma = _validar_forma(forma_pagamento)
    data = to_iso(data_venda)
    prazo = to_dias(prazo_dias) if prazo_dias is not None else None
    with connect(db_path, immediate=True) as conn:
        repos = Repositorios(db_path, conn)
        cfg = carregar_parametros(db_path, conn)
        cliente = _cliente(repos, id_cliente)
        pecas = _carregar_pecas(repos, list(pesos_saida))
        avisos = _verificar_saida(repos, pecas, data, cfg)
        grupos = agrupar_por_sequencia(pecas)
        cotas = dividir_igualmente(extras, len(grupos))
        vendas: List[Venda] = []
        for grupo, cota in zip(grupos.values(), cotas):
            saida = sum(
                _numero(pesos_saida[p.id_completo], f"peso_saida[{p.id_completo}]")
                if pesos_saida[p.id_completo] is not None else float(p.peso_entrada)
                for p in grupo
            )
            vendas.append(_criar_venda(repos, grupo, cliente, preco, saida, data, cota, prazo, forma, cfg))
    log_database_operation("venda", "INSERT_MANY", len(vendas), cliente=id_cliente)
    return Resultado.sucesso(vendas, avisos)


# ----------------------
# Recebimentos
# ----------------------

def _aplicar(
    repos: Repositorios,
    venda: Venda,
    valor_recebido: float,
    desconto: float,
    metodo: str,
    data: str,
    motivo_desconto: Optional[str],
    cfg: DefaultConfig,
) -> Venda:
    if venda.status_pagamento == ESTORNADO:
        raise ConsistencyError(f"Venda {venda.id_venda} está ESTORNADA", id_venda=venda.id_venda)
    if valor_recebido <= 0 and desconto <= 0:
        raise ValidationError("Informe um valor recebido ou um desconto", id_venda=venda.id_venda)
    saldo = venda.saldo_devedor
    if valor_recebido + desconto > saldo + cfg.epsilon:
        raise OverpaymentError(
            f"Recebido + desconto ({valor_recebido + desconto:.2f}) excede o saldo devedor ({saldo:.2f})",
            id_venda=venda.id_venda, saldo=saldo,
        )

    if valor_recebido > 0:
        lancar(
            repos, ENTRADA, CAT_VENDA, valor_recebido, data,
            f"Recebimento venda {venda.id_venda} - {venda.nome_cliente or venda.id_cliente}",
            referencia_id=venda.id_venda, metodo_pagamento=metodo,
        )
    if desconto > 0:
        lancar(
            repos, SAIDA, CAT_DESCONTO, desconto, data,
            f"Desconto venda {venda.id_venda}" + (f" - {motivo_desconto}" if motivo_desconto else ""),
            referencia_id=venda.id_venda, metodo_pagamento=metodo,
        )

    venda.valor_pago = round(float(venda.valor_pago or 0) + valor_recebido + desconto, 2)
    venda.status_pagamento = status_venda(venda.valor_total, venda.valor_pago_efetivo, cfg.epsilon)
    repos.vendas.update_pagamento(venda.id_venda, venda.valor_pago, venda.valor_estornado, venda.status_pagamento)
    repos.auditoria.registrar(
        "UPDATE", "SALE", venda.id_venda,
        {"recebido": valor_recebido, "desconto": desconto, "status": venda.status_pagamento},
    )
    log_venda("pagar", venda.id_venda, recebido=valor_recebido, desconto=desconto, status=venda.status_pagamento)
    return venda


@operacao("aplicar_pagamento")
def aplicar_pagamento(
    id_venda: str,
    valor_recebido: float,
    data: DataLike,
    desconto: float = 0.0,
    metodo: str = "DINHEIRO",
    motivo_desconto: Optional[str] = None,
    db_path: str = DB_PATH,
) -> Venda:
    """Recebimento de uma venda.

    ``valor_pago`` aumenta em ``valor_recebido + desconto``; a venda fica PAGO
    quando o pago cobre o total (tolerância ``epsilon``).
    """
    recebido = _numero(valor_recebido, "valor_recebido")
    desc = _numero(desconto, "desconto")
    _validar_forma(metodo)
    quando = to_iso(data)
    with connect(db_path, immediate=True) as conn:
        repos = Repositorios(db_path, conn)
        venda = repos.vendas.get(id_venda)
        if venda is None:
            raise NotFoundError(f"Venda não encontrada: {id_venda}", id_venda=id_venda)
        cfg = carregar_parametros(db_path, conn)
        venda = _aplicar(repos, venda, recebido, desc, metodo, quando, motivo_desconto, cfg)
    return venda


@operacao("receber_cliente")
def receber_cliente(
    id_cliente: str,
    valor: float,
    data: DataLike,
    metodo: str = "DINHEIRO",
    db_path: str = DB_PATH,
) -> List[Venda]:
    """Distribui um recebimento nas vendas pendentes do cliente, mais antigas primeiro."""
    total = _numero(valor, "valor", minimo_exclusivo=0)
    _validar_forma(metodo)
    quando = to_iso(data)
    with connect(db_path, immediate=True) as conn:
        repos = Repositorios(db_path, conn)
        cfg = carregar_parametros(db_path, conn)
        _cliente(repos, id_cliente)
        pendentes = [
            v for v in repos.vendas.list(id_cliente=id_cliente, incluir_estornadas=False)
            if v.status_pagamento != PAGO and v.saldo_devedor > cfg.epsilon
        ]
        pendentes.sort(key=lambda v: (v.data_venda, v.data_vencimento, v.id_venda))
        divida = sum(v.saldo_devedor for v in pendentes)
        if total > divida + cfg.epsilon:
            raise OverpaymentError(
                f"Recebimento de {total:.2f} excede a dívida do cliente ({divida:.2f})",
                id_cliente=id_cliente, divida=divida,
            )
        restante = total
        atualizadas: List[Venda] = []
        for v in pendentes:
            if restante <= cfg.epsilon:
                break
            parcela = round(min(restante, v.saldo_devedor), 2)
            atualizadas.append(_aplicar(repos, v, parcela, 0.0, metodo, quando, None, cfg))
            restante = round(restante - parcela, 2)
    return atualizadas
