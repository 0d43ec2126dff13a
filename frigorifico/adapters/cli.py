# frigorifico/adapters/cli.py
"""
CLI do núcleo de conciliação (Typer).

Comandos principais:
- migrate                          -> aplica migrações e cria views
- params set/get/show              -> gerencia parâmetros globais
- lote importar/editar/resumo/estornar
- estoque listar                   -> peças vendáveis (FIFO)
- venda registrar/pagar/estornar
- financeiro saldo/lancar/extrato/estornar
- conta criar/pagar/cancelar/estornar
- cliente cadastrar/avaliar/receber
- rel recebiveis/pagaveis/estoque/resultado
"""

from __future__ import annotations

import json
from dataclasses import asdict, is_dataclass
from datetime import date
from typing import Any, Dict, List, Optional, Sequence

import typer
from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from frigorifico.config import DB_PATH, DEFAULTS
from frigorifico.domain.errors import ErroDominio
from frigorifico.domain.models import VISTA
from frigorifico.infra.logger import get_log_summary, log_file_operation
from frigorifico.infra.migrations import apply_migrations
from frigorifico.infra.repositories import ParamsRepo
from frigorifico.infra.views import create_views
from frigorifico.usecases.credito import avaliar_carteira, avaliar_credito, cadastrar_cliente, saldo_devedor
from frigorifico.usecases.estoque import listar_vendaveis, resumo_lote
from frigorifico.usecases.estorno import estornar_conta, estornar_lote, estornar_transacao, estornar_venda
from frigorifico.usecases.financeiro import (
    cancelar_conta, criar_conta_pagar, extrato, pagar_conta, registrar_transacao, saldo_caixa,
)
from frigorifico.usecases.lotes import (
    cadastrar_fornecedor, confirmar_lote, editar_lote, novo_id_lote, rascunho_lote,
)
from frigorifico.usecases.parametros import definir_parametro, listar_parametros
from frigorifico.usecases.relatorios import (
    relatorio_estoque, relatorio_pagaveis, relatorio_recebiveis, relatorio_resultado,
)
from frigorifico.usecases.resultado import Resultado
from frigorifico.usecases.vendas import alocar_venda, aplicar_pagamento, receber_cliente, registrar_expedicao


app = typer.Typer(help="Frigorífico: conciliação estoque → razão")
console = Console()


# -----------------------
# util
# -----------------------

def _print_json(obj) -> None:
    typer.echo(json.dumps(obj, ensure_ascii=False, indent=2, default=str))


def _fmt(val: Any) -> str:
    if isinstance(val, float):
        return f"{val:,.2f}".replace(",", "X").replace(".", ",").replace("X", ".")
    if val is None:
        return ""
    return str(val)


def _hoje(valor: Optional[str]) -> str:
    return valor or date.today().isoformat()


def _falhar(erro: ErroDominio) -> None:
    console.print(f"[bold red]Erro ({erro.categoria}):[/] {erro.mensagem}")
    raise typer.Exit(code=1)


def _ok(res: Resultado) -> Any:
    """Valor do Resultado; em caso de falha imprime o erro e sai com código 1."""
    if not res.ok:
        _falhar(res.erro)
    for aviso in res.avisos:
        console.print(f"[bold yellow]Aviso:[/] {aviso}")
    return res.valor


def _display_rows(columns: Sequence[str], rows: List[list], title: str, msg: Optional[str] = None) -> None:
    """Tabela Rich a partir de (colunas, linhas); a mensagem vai como rodapé."""
    if not rows:
        console.print(Panel(msg or "Nenhum dado encontrado", title=title, border_style="yellow"))
        return
    table = Table(title=title, box=box.ROUNDED)
    for i, col in enumerate(columns):
        numerica = all(isinstance(r[i], (int, float)) and not isinstance(r[i], bool) for r in rows)
        table.add_column(col, justify="right" if numerica else "left")
    for r in rows:
        table.add_row(*[_fmt(v) for v in r])
    console.print(table)
    if msg:
        console.print(f"[dim]{msg}[/dim]")


def _display_campos(obj: Any, title: str) -> None:
    dados: Dict[str, Any] = asdict(obj) if is_dataclass(obj) else dict(obj)
    table = Table(title=title, box=box.ROUNDED)
    table.add_column("Campo")
    table.add_column("Valor")
    for chave, valor in dados.items():
        if isinstance(valor, list):
            valor = ", ".join(str(v) for v in valor) or "-"
        table.add_row(chave, _fmt(valor))
    console.print(table)


# -----------------------
# comandos de infra
# -----------------------

@app.command("migrate")
def cmd_migrate(db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite")):
    """Aplica migrações e recria as views auxiliares."""
    apply_migrations(db_path)
    create_views(db_path)
    typer.echo(f">> Migrações aplicadas e views criadas em: {db_path}")


params_app = typer.Typer(help="Gerenciar parâmetros globais (tolerâncias, prazos, bloqueio).")
app.add_typer(params_app, name="params")


@params_app.command("set")
def cmd_params_set(
    chave: str = typer.Argument(..., help="Ex.: dias_bloqueio | prazo_venda_dias | epsilon"),
    valor: str = typer.Argument(..., help="Valor numérico"),
    db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite"),
):
    """Define um parâmetro global."""
    try:
        definir_parametro(chave, valor, db_path=db_path)
    except ErroDominio as e:
        _falhar(e)
    typer.echo(">> Parâmetro atualizado.")


@params_app.command("get")
def cmd_params_get(
    chave: str = typer.Argument(..., help="Nome do parâmetro"),
    db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite"),
):
    """Mostra o valor gravado de um parâmetro."""
    val = ParamsRepo(db_path).get(chave)
    typer.echo("(None)" if val is None else val)


@params_app.command("show")
def cmd_params_show(db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite")):
    """Exibe os parâmetros efetivos (com fallback para defaults) em JSON."""
    out: Dict[str, Any] = dict(listar_parametros(db_path))
    out["_defaults"] = asdict(DEFAULTS)
    out["_db"] = db_path
    _print_json(out)


# -----------------------
# lotes
# -----------------------

lote_app = typer.Typer(help="Ciclo de vida do lote (romaneio).")
app.add_typer(lote_app, name="lote")


@lote_app.command("importar")
def cmd_lote_importar(
    planilha: str = typer.Argument(..., help="XLSX da pesagem (sequência, tipo, peso)"),
    fornecedor: str = typer.Option(..., help="Nome ou id do fornecedor cadastrado"),
    data: Optional[str] = typer.Option(None, help="Data de recebimento (YYYY-MM-DD); padrão hoje"),
    peso_romaneio: float = typer.Option(..., help="Peso total declarado no romaneio (kg)"),
    valor_compra: float = typer.Option(0.0, help="Valor total da compra"),
    frete: float = typer.Option(0.0),
    gastos_extras: float = typer.Option(0.0),
    forma: str = typer.Option(VISTA, help="VISTA | PRAZO"),
    entrada: float = typer.Option(0.0, help="Entrada paga na compra a prazo"),
    prazo: Optional[int] = typer.Option(None, help="Prazo da compra em dias"),
    metodo: str = typer.Option("OUTROS", help="Meio do pagamento da compra"),
    sheet: str = typer.Option("0", help="Aba da planilha (índice ou nome)"),
    db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite"),
):
    """Monta o rascunho a partir da planilha e confirma o lote."""
    from frigorifico.adapters.romaneio_loader import load_pecas_from_xlsx

    quando = _hoje(data)
    try:
        pecas = load_pecas_from_xlsx(planilha, sheet_name=int(sheet) if sheet.isdigit() else sheet)
        log_file_operation("import_romaneio", planilha, len(pecas))
        rascunho = rascunho_lote(
            fornecedor=fornecedor,
            data_recebimento=quando,
            peso_total_romaneio=peso_romaneio,
            valor_compra_total=valor_compra,
            frete=frete,
            gastos_extras=gastos_extras,
            forma_pagamento=forma.upper(),
            valor_entrada=entrada,
            prazo_dias=prazo,
            id_lote=novo_id_lote(fornecedor, quando, db_path=db_path),
        )
    except ErroDominio as e:
        _falhar(e)
    lote = _ok(confirmar_lote(rascunho, pecas, metodo_pagamento=metodo, db_path=db_path))
    typer.echo(f">> Lote {lote.id_lote} confirmado com {len(pecas)} peças.")
    _display_campos(lote, title=f"Lote {lote.id_lote}")


@lote_app.command("editar")
def cmd_lote_editar(
    id_lote: str = typer.Argument(...),
    fornecedor: Optional[str] = typer.Option(None),
    data: Optional[str] = typer.Option(None, help="Nova data de recebimento"),
    pecas_xlsx: Optional[str] = typer.Option(None, help="XLSX com peças a incluir"),
    db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite"),
):
    """Corrige fornecedor/data ou inclui peças num lote confirmado."""
    alteracoes: Dict[str, Any] = {}
    if fornecedor is not None:
        alteracoes["fornecedor"] = fornecedor
    if data is not None:
        alteracoes["data_recebimento"] = data
    novas = []
    if pecas_xlsx:
        from frigorifico.adapters.romaneio_loader import load_pecas_from_xlsx
        try:
            novas = load_pecas_from_xlsx(pecas_xlsx)
        except ErroDominio as e:
            _falhar(e)
        log_file_operation("import_pecas", pecas_xlsx, len(novas), id_lote=id_lote)
    if not alteracoes and not novas:
        typer.echo("Nada a alterar. Informe --fornecedor, --data ou --pecas-xlsx.")
        raise typer.Exit(code=1)
    lote = _ok(editar_lote(id_lote, alteracoes, novas, db_path=db_path))
    typer.echo(f">> Lote {lote.id_lote} atualizado.")


@lote_app.command("resumo")
def cmd_lote_resumo(id_lote: str = typer.Argument(...), db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite")):
    """Pesagem conferida contra o romaneio."""
    resumo = _ok(resumo_lote(id_lote, db_path=db_path))
    _display_campos(resumo, title=f"Resumo do lote {id_lote}")


@lote_app.command("estornar")
def cmd_lote_estornar(
    id_lote: str = typer.Argument(...),
    data: Optional[str] = typer.Option(None),
    db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite"),
):
    """Estorna o lote em cascata (vendas, contas, lançamentos, peças)."""
    resumo = _ok(estornar_lote(id_lote, _hoje(data), db_path=db_path))
    if resumo.ja_estornado:
        typer.echo(f">> Lote {id_lote} já estava estornado.")
        return
    typer.echo(
        f">> Lote {id_lote} estornado: {len(resumo.vendas)} vendas, "
        f"{len(resumo.transacoes)} lançamentos, {resumo.pecas} peças."
    )


# -----------------------
# fornecedores
# -----------------------

fornecedor_app = typer.Typer(help="Cadastro de fornecedores.")
app.add_typer(fornecedor_app, name="fornecedor")


@fornecedor_app.command("cadastrar")
def cmd_fornecedor_cadastrar(
    id_fornecedor: str = typer.Argument(...),
    nome: str = typer.Argument(..., help="Nome fantasia"),
    cpf_cnpj: Optional[str] = typer.Option(None, "--cpf-cnpj"),
    telefone: Optional[str] = typer.Option(None),
    cidade: Optional[str] = typer.Option(None),
    inativo: bool = typer.Option(False, "--inativo", help="Bloqueia novos lotes deste fornecedor"),
    db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite"),
):
    """Cadastra ou atualiza um fornecedor."""
    fornecedor = _ok(cadastrar_fornecedor(
        id_fornecedor, nome, cpf_cnpj=cpf_cnpj, telefone=telefone, cidade=cidade,
        status="INATIVO" if inativo else "ATIVO", db_path=db_path,
    ))
    typer.echo(f">> Fornecedor {fornecedor.id} cadastrado ({fornecedor.status}).")


# -----------------------
# estoque
# -----------------------

estoque_app = typer.Typer(help="Câmara fria.")
app.add_typer(estoque_app, name="estoque")


@estoque_app.command("listar")
def cmd_estoque_listar(
    hoje: Optional[str] = typer.Option(None, help="Data de referência (padrão hoje)"),
    id_lote: Optional[str] = typer.Option(None, "--lote"),
    db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite"),
):
    """Peças vendáveis, mais antigas primeiro."""
    try:
        pecas = listar_vendaveis(_hoje(hoje), id_lote=id_lote, db_path=db_path)
    except ErroDominio as e:
        _falhar(e)
    columns = ["Peça", "Tipo", "Kg", "Entrada", "Dias", "Maturação"]
    rows = [
        [p.id_completo, p.tipo, float(p.peso_entrada), p.data_entrada, p.dias,
         f"[bold yellow]{p.maturacao}[/]" if p.alerta else p.maturacao]
        for p in pecas
    ]
    _display_rows(columns, rows, title="Estoque vendável", msg=f"{len(rows)} peças")


# -----------------------
# vendas
# -----------------------

venda_app = typer.Typer(help="Vendas e recebimentos.")
app.add_typer(venda_app, name="venda")


@venda_app.command("registrar")
def cmd_venda_registrar(
    pecas: List[str] = typer.Argument(..., help="Ids das peças"),
    cliente: str = typer.Option(..., help="id_ferro do cliente"),
    preco: float = typer.Option(..., help="Preço por kg"),
    peso_saida: Optional[float] = typer.Option(
        None, help="Peso de saída da carcaça; sem ele, uma venda por carcaça com o peso de entrada",
    ),
    data: Optional[str] = typer.Option(None),
    extras: float = typer.Option(0.0, help="Custos extras (frete, embalagem)"),
    prazo: Optional[int] = typer.Option(None, help="Prazo em dias"),
    forma: str = typer.Option("OUTROS"),
    db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite"),
):
    """Registra a venda de uma carcaça ou a expedição de várias."""
    quando = _hoje(data)
    if peso_saida is not None:
        vendas = [_ok(alocar_venda(
            pecas, cliente, preco, peso_saida, quando,
            custo_extras=extras, prazo_dias=prazo, forma_pagamento=forma, db_path=db_path,
        ))]
    else:
        vendas = _ok(registrar_expedicao(
            {p: None for p in pecas}, cliente, preco, quando,
            custo_extras=extras, prazo_dias=prazo, forma_pagamento=forma, db_path=db_path,
        ))
    for v in vendas:
        typer.echo(f">> Venda {v.id_venda} registrada ({v.id_completo}): {v.valor_total:.2f}")


@venda_app.command("pagar")
def cmd_venda_pagar(
    id_venda: str = typer.Argument(...),
    valor: float = typer.Option(0.0, help="Valor recebido"),
    desconto: float = typer.Option(0.0, help="Desconto concedido"),
    motivo: Optional[str] = typer.Option(None, help="Motivo do desconto"),
    metodo: str = typer.Option("DINHEIRO"),
    data: Optional[str] = typer.Option(None),
    db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite"),
):
    """Aplica um pagamento (e/ou desconto) a uma venda."""
    venda = _ok(aplicar_pagamento(
        id_venda, valor, _hoje(data), desconto=desconto, metodo=metodo,
        motivo_desconto=motivo, db_path=db_path,
    ))
    typer.echo(f">> Venda {venda.id_venda}: {venda.status_pagamento}, saldo {venda.saldo_devedor:.2f}")


@venda_app.command("estornar")
def cmd_venda_estornar(
    id_venda: str = typer.Argument(...),
    data: Optional[str] = typer.Option(None),
    db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite"),
):
    """Estorna a venda e devolve as peças ao estoque."""
    resumo = _ok(estornar_venda(id_venda, _hoje(data), db_path=db_path))
    if resumo.ja_estornado:
        typer.echo(f">> Venda {id_venda} já estava estornada.")
        return
    typer.echo(f">> Venda {id_venda} estornada: {len(resumo.transacoes)} lançamentos, {resumo.pecas} peças.")


# -----------------------
# financeiro
# -----------------------

fin_app = typer.Typer(help="Razão de caixa.")
app.add_typer(fin_app, name="financeiro")


@fin_app.command("saldo")
def cmd_fin_saldo(
    ate: Optional[str] = typer.Option(None),
    desde: Optional[str] = typer.Option(None),
    categoria: Optional[str] = typer.Option(None),
    db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite"),
):
    """Saldo de caixa recalculado a partir das transações válidas."""
    try:
        saldo = saldo_caixa(ate=ate, desde=desde, categoria=categoria, db_path=db_path)
    except ErroDominio as e:
        _falhar(e)
    typer.echo(f"{saldo:.2f}")


@fin_app.command("lancar")
def cmd_fin_lancar(
    tipo: str = typer.Argument(..., help="ENTRADA | SAIDA"),
    valor: float = typer.Argument(...),
    categoria: str = typer.Option("OPERACIONAL"),
    descricao: str = typer.Option(""),
    data: Optional[str] = typer.Option(None),
    referencia: Optional[str] = typer.Option(None, help="Id da venda/lote/conta relacionada"),
    metodo: Optional[str] = typer.Option(None),
    db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite"),
):
    """Lançamento manual no razão."""
    t = _ok(registrar_transacao(
        tipo.upper(), categoria.upper(), valor, _hoje(data),
        descricao=descricao, referencia_id=referencia, metodo_pagamento=metodo, db_path=db_path,
    ))
    typer.echo(f">> Transação {t.id} registrada.")


@fin_app.command("extrato")
def cmd_fin_extrato(
    desde: Optional[str] = typer.Option(None),
    ate: Optional[str] = typer.Option(None),
    categoria: Optional[str] = typer.Option(None),
    referencia: Optional[str] = typer.Option(None),
    db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite"),
):
    """Transações do período com a situação de cada uma."""
    try:
        linhas = extrato(desde=desde, ate=ate, categoria=categoria, referencia_id=referencia, db_path=db_path)
    except ErroDominio as e:
        _falhar(e)
    columns = ["Data", "Id", "Tipo", "Categoria", "Valor", "Referência", "Situação"]
    rows = [
        [l.transacao.data, l.transacao.id, l.transacao.tipo, l.transacao.categoria,
         float(l.transacao.valor), l.transacao.referencia_id or "", l.situacao]
        for l in linhas
    ]
    _display_rows(columns, rows, title="Extrato", msg=None if rows else "Nenhuma transação no período.")


@fin_app.command("estornar")
def cmd_fin_estornar(
    id_transacao: str = typer.Argument(...),
    data: Optional[str] = typer.Option(None),
    db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite"),
):
    """Estorna uma transação avulsa ou um pagamento de conta avulsa."""
    resumo = _ok(estornar_transacao(id_transacao, _hoje(data), db_path=db_path))
    if resumo.ja_estornado:
        typer.echo(f">> Transação {id_transacao} já estava estornada.")
        return
    typer.echo(f">> Transação {id_transacao} estornada.")


# -----------------------
# contas a pagar
# -----------------------

conta_app = typer.Typer(help="Contas a pagar.")
app.add_typer(conta_app, name="conta")


@conta_app.command("criar")
def cmd_conta_criar(
    descricao: str = typer.Argument(...),
    valor: float = typer.Argument(...),
    vencimento: str = typer.Option(..., help="YYYY-MM-DD"),
    categoria: str = typer.Option("OUTROS"),
    db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite"),
):
    """Cria uma conta a pagar avulsa."""
    conta = _ok(criar_conta_pagar(descricao, valor, vencimento, categoria=categoria.upper(), db_path=db_path))
    typer.echo(f">> Conta {conta.id} criada.")


@conta_app.command("pagar")
def cmd_conta_pagar(
    id_conta: str = typer.Argument(...),
    valor: float = typer.Argument(...),
    metodo: Optional[str] = typer.Option(None),
    data: Optional[str] = typer.Option(None),
    db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite"),
):
    """Paga (parcial ou totalmente) uma conta."""
    conta = _ok(pagar_conta(id_conta, valor, _hoje(data), metodo=metodo, db_path=db_path))
    typer.echo(f">> Conta {conta.id}: {conta.status}, saldo {conta.saldo:.2f}")


@conta_app.command("cancelar")
def cmd_conta_cancelar(id_conta: str = typer.Argument(...), db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite")):
    """Cancela uma conta ainda sem pagamentos."""
    conta = _ok(cancelar_conta(id_conta, db_path=db_path))
    typer.echo(f">> Conta {conta.id}: {conta.status}")


@conta_app.command("estornar")
def cmd_conta_estornar(
    id_conta: str = typer.Argument(...),
    data: Optional[str] = typer.Option(None),
    db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite"),
):
    """Estorna os pagamentos de uma conta avulsa."""
    resumo = _ok(estornar_conta(id_conta, _hoje(data), db_path=db_path))
    if resumo.ja_estornado:
        typer.echo(f">> Conta {id_conta} já estava estornada.")
        return
    typer.echo(f">> Conta {id_conta} estornada: {len(resumo.transacoes)} lançamentos.")


# -----------------------
# clientes
# -----------------------

cliente_app = typer.Typer(help="Clientes e crédito.")
app.add_typer(cliente_app, name="cliente")


@cliente_app.command("cadastrar")
def cmd_cliente_cadastrar(
    id_ferro: str = typer.Argument(...),
    nome: str = typer.Argument(...),
    limite: float = typer.Option(0.0, help="Limite de crédito"),
    whatsapp: Optional[str] = typer.Option(None),
    cidade: Optional[str] = typer.Option(None),
    db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite"),
):
    """Cadastra ou atualiza um cliente."""
    cliente = _ok(cadastrar_cliente(id_ferro, nome, limite, whatsapp=whatsapp, cidade=cidade, db_path=db_path))
    typer.echo(f">> Cliente {cliente.id_ferro} cadastrado.")


@cliente_app.command("avaliar")
def cmd_cliente_avaliar(
    id_cliente: Optional[str] = typer.Argument(None, help="Sem id, avalia a carteira inteira"),
    hoje: Optional[str] = typer.Option(None),
    db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite"),
):
    """Tier de crédito calculado na data de referência."""
    quando = _hoje(hoje)
    if id_cliente:
        av = _ok(avaliar_credito(id_cliente, quando, db_path=db_path))
        typer.echo(f">> {id_cliente}: tier {av.tier} ({av.motivo})")
        _display_campos(av, title=f"Crédito de {id_cliente}")
        return
    columns = ["Cliente", "Nome", "Tier", "Estrelas", "Saldo", "Uso limite", "Dias atraso", "Motivo"]
    rows = [
        [c.id_ferro, c.nome_social, av.tier, av.estrelas, round(av.saldo_devedor, 2),
         round(av.uso_limite, 2), av.dias_atraso, av.motivo]
        for c, av in avaliar_carteira(quando, db_path=db_path)
    ]
    _display_rows(columns, rows, title="Carteira de clientes", msg=None if rows else "Nenhum cliente cadastrado.")


@cliente_app.command("receber")
def cmd_cliente_receber(
    id_cliente: str = typer.Argument(...),
    valor: float = typer.Argument(...),
    metodo: str = typer.Option("DINHEIRO"),
    data: Optional[str] = typer.Option(None),
    db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite"),
):
    """Recebimento do cliente aplicado às vendas pendentes, mais antigas primeiro."""
    vendas = _ok(receber_cliente(id_cliente, valor, _hoje(data), metodo=metodo, db_path=db_path))
    typer.echo(
        f">> {len(vendas)} vendas atualizadas; saldo devedor {saldo_devedor(id_cliente, db_path=db_path):.2f}"
    )


# -----------------------
# relatórios
# -----------------------

rel_app = typer.Typer(help="Relatórios")
app.add_typer(rel_app, name="rel")


@rel_app.command("recebiveis")
def rel_recebiveis(
    hoje: Optional[str] = typer.Option(None),
    cliente: Optional[str] = typer.Option(None),
    db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite"),
):
    """Vendas com saldo devedor e dias de atraso."""
    cols, rows, msg = relatorio_recebiveis(_hoje(hoje), id_cliente=cliente, db_path=db_path)
    _display_rows(cols, rows, title="Recebíveis", msg=msg)


@rel_app.command("pagaveis")
def rel_pagaveis(hoje: Optional[str] = typer.Option(None), db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite")):
    """Contas a pagar em aberto."""
    cols, rows, msg = relatorio_pagaveis(_hoje(hoje), db_path=db_path)
    _display_rows(cols, rows, title="Contas a pagar", msg=msg)


@rel_app.command("estoque")
def rel_estoque(hoje: Optional[str] = typer.Option(None), db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite")):
    """Estoque por faixa de maturação."""
    cols, rows, msg = relatorio_estoque(_hoje(hoje), db_path=db_path)
    _display_rows(cols, rows, title="Estoque por maturação", msg=msg)


@rel_app.command("resultado")
def rel_resultado(
    desde: Optional[str] = typer.Option(None),
    ate: Optional[str] = typer.Option(None),
    db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite"),
):
    """Receita, custo da carne, extras e lucro por venda."""
    cols, rows, msg = relatorio_resultado(desde=desde, ate=ate, db_path=db_path)
    _display_rows(cols, rows, title="Resultado por venda", msg=msg)


@app.command("logs")
def cmd_logs(
    tipo: str = typer.Argument("transactions", help="transactions | lotes | vendas | financeiro | database | system"),
    linhas: int = typer.Option(50, help="Quantidade de linhas finais"),
):
    """Mostra o final de um arquivo de log (requer FRIGORIFICO_LOGGING=1)."""
    resumo = get_log_summary(tipo, lines=linhas)
    if resumo is None:
        typer.echo("Logging desligado. Defina FRIGORIFICO_LOGGING=1.")
        return
    typer.echo(resumo)


def main():
    app()


if __name__ == "__main__":
    main()
