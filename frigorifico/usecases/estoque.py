# frigorifico/usecases/estoque.py
"""
UC: Consultas de estoque em câmara.

- listar_vendaveis(hoje): peças que podem sair, mais antigas primeiro (FIFO)
- resumo_lote(id_lote):   total pesado (com desconto de carcaça) x romaneio
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional

from frigorifico.config import DB_PATH
from frigorifico.domain.errors import NotFoundError
from frigorifico.domain.formulas import (
    DataLike, agrupar_por_sequencia, dias_em_camara, reconciliar_sequencia,
)
from frigorifico.domain.models import ESTORNADO, LOTE_ESTORNADO
from frigorifico.domain.policies import ATENCAO, BLOQUEADO, classificar_idade
from frigorifico.infra.logger import log_system_event
from frigorifico.infra.repositories import Repositorios
from frigorifico.usecases.parametros import carregar_parametros
from frigorifico.usecases.resultado import operacao


@dataclass
class PecaVendavel:
    id_completo: str
    id_lote: str
    sequencia: int
    tipo: str
    peso_entrada: float
    data_entrada: str
    dias: int
    maturacao: str
    alerta: bool


def listar_vendaveis(hoje: DataLike, id_lote: Optional[str] = None, db_path: str = DB_PATH) -> List[PecaVendavel]:
    """Peças DISPONIVEL de lotes FECHADO, sem as bloqueadas por idade.

    Ordem: entrada mais antiga primeiro, desempate pelo id.
    """
    repos = Repositorios(db_path)
    cfg = carregar_parametros(db_path)
    out: List[PecaVendavel] = []
    for p in repos.pecas.disponiveis(id_lote):
        dias = dias_em_camara(p.data_entrada, hoje)
        maturacao = classificar_idade(dias, cfg.dias_bloqueio)
        if maturacao == BLOQUEADO:
            continue
        out.append(PecaVendavel(
            id_completo=p.id_completo,
            id_lote=p.id_lote,
            sequencia=p.sequencia,
            tipo=p.tipo,
            peso_entrada=p.peso_entrada,
            data_entrada=p.data_entrada,
            dias=dias,
            maturacao=maturacao,
            alerta=maturacao == ATENCAO,
        ))
    out.sort(key=lambda x: (x.data_entrada, x.id_completo))
    return out


@dataclass
class ResumoLote:
    id_lote: str
    status: str
    peso_pesado: float
    peso_romaneio: float
    diferenca: float
    percentual: float
    pecas: int
    sequencias: int
    desconto_total: float
    custo_real_kg: float


@operacao("resumo_lote")
def resumo_lote(id_lote: str, db_path: str = DB_PATH) -> ResumoLote:
    """Conferência da pesagem contra o peso declarado no romaneio.

    ``diferenca = peso_pesado - peso_romaneio``; peças estornadas só entram
    quando o lote inteiro foi estornado.
    """
    repos = Repositorios(db_path)
    lote = repos.lotes.get(id_lote)
    if lote is None:
        raise NotFoundError(f"Lote não encontrado: {id_lote}", id_lote=id_lote)
    cfg = carregar_parametros(db_path)
    pecas = repos.pecas.by_lote(id_lote)
    if lote.status != LOTE_ESTORNADO:
        pecas = [p for p in pecas if p.status != ESTORNADO]

    grupos = agrupar_por_sequencia(pecas)
    peso_pesado = 0.0
    desconto = 0.0
    for grupo in grupos.values():
        r = reconciliar_sequencia(grupo, cfg.desconto_carcaca_kg)
        peso_pesado += r.peso_total
        desconto += r.desconto_aplicado

    romaneio = float(lote.peso_total_romaneio or 0.0)
    diferenca = peso_pesado - romaneio
    percentual = (diferenca / romaneio * 100.0) if romaneio else 0.0
    log_system_event("resumo_lote", {"id_lote": id_lote, "peso_pesado": peso_pesado})
    return ResumoLote(
        id_lote=id_lote,
        status=lote.status,
        peso_pesado=round(peso_pesado, 3),
        peso_romaneio=romaneio,
        diferenca=round(diferenca, 3),
        percentual=round(percentual, 2),
        pecas=len(pecas),
        sequencias=len(grupos),
        desconto_total=desconto,
        custo_real_kg=lote.custo_real_kg,
    )
