# frigorifico/usecases/credito.py
"""
UC: Risco de crédito e cadastro de clientes.

O tier nunca é gravado: cada consulta recarrega as vendas do cliente e
reaplica a escada de regras de ``domain.credito`` na data informada.
"""

from __future__ import annotations

from typing import List, Optional, Tuple

from frigorifico.config import DB_PATH
from frigorifico.domain.credito import AvaliacaoCredito, saldo_devedor_cliente
from frigorifico.domain.credito import avaliar_credito as _avaliar
from frigorifico.domain.errors import NotFoundError, ValidationError
from frigorifico.domain.formulas import DataLike
from frigorifico.domain.models import Cliente
from frigorifico.infra.logger import log_database_operation
from frigorifico.infra.repositories import Repositorios
from frigorifico.usecases.parametros import carregar_parametros
from frigorifico.usecases.resultado import operacao


@operacao("cadastrar_cliente")
def cadastrar_cliente(
    id_ferro: str,
    nome_social: str,
    limite_credito: float = 0.0,
    whatsapp: Optional[str] = None,
    cpf_cnpj: Optional[str] = None,
    cidade: Optional[str] = None,
    db_path: str = DB_PATH,
) -> Cliente:
    if not str(id_ferro or "").strip() or not str(nome_social or "").strip():
        raise ValidationError("Cliente precisa de id_ferro e nome_social")
    if float(limite_credito or 0) < 0:
        raise ValidationError("limite_credito não pode ser negativo")
    cliente = Cliente(
        id_ferro=str(id_ferro).strip(),
        nome_social=str(nome_social).strip(),
        limite_credito=float(limite_credito or 0),
        whatsapp=whatsapp,
        cpf_cnpj=cpf_cnpj,
        cidade=cidade,
    )
    Repositorios(db_path).clientes.upsert([cliente])
    log_database_operation("cliente", "UPSERT", 1, id_ferro=cliente.id_ferro)
    return cliente


@operacao("avaliar_credito")
def avaliar_credito(id_cliente: str, hoje: DataLike, db_path: str = DB_PATH) -> AvaliacaoCredito:
    repos = Repositorios(db_path)
    cliente = repos.clientes.get(id_cliente)
    if cliente is None:
        raise NotFoundError(f"Cliente não encontrado: {id_cliente}", id_cliente=id_cliente)
    cfg = carregar_parametros(db_path)
    return _avaliar(cliente, repos.vendas.list(id_cliente=id_cliente), hoje, cfg.volume_parceiro)


def saldo_devedor(id_cliente: str, db_path: str = DB_PATH) -> float:
    """Quanto o cliente deve hoje (vendas pendentes, sem as estornadas)."""
    repos = Repositorios(db_path)
    cliente = repos.clientes.get(id_cliente)
    if cliente is None:
        return 0.0
    return round(saldo_devedor_cliente(cliente, repos.vendas.list(id_cliente=id_cliente)), 2)


def avaliar_carteira(hoje: DataLike, db_path: str = DB_PATH) -> List[Tuple[Cliente, AvaliacaoCredito]]:
    """Avaliação de todos os clientes cadastrados."""
    repos = Repositorios(db_path)
    cfg = carregar_parametros(db_path)
    vendas = repos.vendas.list()
    return [(c, _avaliar(c, vendas, hoje, cfg.volume_parceiro)) for c in repos.clientes.list()]
