# frigorifico/infra/migrations.py
"""
Migrações de schema usando PRAGMA user_version.

V1: tabelas base (lotes, peças, vendas, razão, contas a pagar, cadastros)
V2: colunas de estorno parcial (valor_estornado) e tabela de auditoria
"""

from __future__ import annotations

from typing import List
from .db import connect


SCHEMA_V1: List[str] = [
    # Parâmetros K/V
    """
    CREATE TABLE IF NOT EXISTS params (
        chave TEXT PRIMARY KEY,
        valor TEXT
    );
    """,
    # Cadastros (consultas somente leitura para o núcleo)
    """
    CREATE TABLE IF NOT EXISTS fornecedor (
        id TEXT PRIMARY KEY,
        nome_fantasia TEXT NOT NULL,
        cpf_cnpj TEXT,
        telefone TEXT,
        cidade TEXT,
        status TEXT DEFAULT 'ATIVO'
    );
    """,
    """
    CREATE TABLE IF NOT EXISTS cliente (
        id_ferro TEXT PRIMARY KEY,
        nome_social TEXT NOT NULL,
        limite_credito REAL DEFAULT 0,
        whatsapp TEXT,
        cpf_cnpj TEXT,
        cidade TEXT,
        status TEXT DEFAULT 'ATIVO'
    );
    """,
    # Lotes: só FECHADO/ESTORNADO chegam aqui (rascunho vive em memória).
    # custo_real_kg não é coluna: é recalculado a partir do custo total.
    """
    CREATE TABLE IF NOT EXISTS lote (
        id_lote TEXT PRIMARY KEY,
        fornecedor TEXT,
        data_recebimento TEXT NOT NULL,
        peso_total_romaneio REAL NOT NULL,
        valor_compra_total REAL DEFAULT 0,
        frete REAL DEFAULT 0,
        gastos_extras REAL DEFAULT 0,
        forma_pagamento TEXT DEFAULT 'VISTA',
        valor_entrada REAL DEFAULT 0,
        prazo_dias INTEGER,
        status TEXT NOT NULL,
        data_estorno TEXT
    );
    """,
    # Peças (id_completo = LOTE-SEQ-TIPO)
    """
    CREATE TABLE IF NOT EXISTS peca (
        id_completo TEXT PRIMARY KEY,
        id_lote TEXT NOT NULL,
        sequencia INTEGER NOT NULL,
        tipo TEXT NOT NULL,          -- 'INTEIRO' | 'BANDA_A' | 'BANDA_B'
        peso_entrada REAL NOT NULL,
        data_entrada TEXT NOT NULL,
        status TEXT NOT NULL,        -- 'DISPONIVEL' | 'VENDIDO' | 'ESTORNADO'
        FOREIGN KEY (id_lote) REFERENCES lote(id_lote)
    );
    """,
    # Vendas
    """
    CREATE TABLE IF NOT EXISTS venda (
        id_venda TEXT PRIMARY KEY,
        id_cliente TEXT NOT NULL,
        nome_cliente TEXT,
        id_completo TEXT NOT NULL,
        peso_entrada_total REAL,
        peso_real_saida REAL NOT NULL,
        quebra_kg REAL,
        preco_venda_kg REAL NOT NULL,
        custo_extras_total REAL DEFAULT 0,
        valor_pago REAL DEFAULT 0,
        data_venda TEXT NOT NULL,
        prazo_dias INTEGER,
        data_vencimento TEXT NOT NULL,
        forma_pagamento TEXT,
        status_pagamento TEXT NOT NULL,
        data_estorno TEXT,
        FOREIGN KEY (id_cliente) REFERENCES cliente(id_ferro)
    );
    """,
    # Peças consumidas por cada venda (banda A + B da mesma carcaça = 1 venda)
    """
    CREATE TABLE IF NOT EXISTS venda_item (
        id_venda TEXT NOT NULL,
        id_completo TEXT NOT NULL,
        peso_entrada REAL,
        PRIMARY KEY (id_venda, id_completo),
        FOREIGN KEY (id_venda) REFERENCES venda(id_venda),
        FOREIGN KEY (id_completo) REFERENCES peca(id_completo)
    );
    """,
    # Razão (append-only)
    """
    CREATE TABLE IF NOT EXISTS transacao (
        id TEXT PRIMARY KEY,
        data TEXT NOT NULL,
        descricao TEXT,
        tipo TEXT NOT NULL,          -- 'ENTRADA' | 'SAIDA'
        categoria TEXT NOT NULL,
        valor REAL NOT NULL CHECK (valor > 0),
        referencia_id TEXT,
        metodo_pagamento TEXT,
        estorno_de TEXT,
        criado_em TEXT,
        FOREIGN KEY (estorno_de) REFERENCES transacao(id)
    );
    """,
    # Uma transação só pode ser estornada uma vez
    """
    CREATE UNIQUE INDEX IF NOT EXISTS ux_transacao_estorno_de
        ON transacao(estorno_de) WHERE estorno_de IS NOT NULL;
    """,
    """
    CREATE TRIGGER IF NOT EXISTS trg_transacao_sem_update
    BEFORE UPDATE ON transacao
    BEGIN
        SELECT RAISE(ABORT, 'transacao e append-only');
    END;
    """,
    """
    CREATE TRIGGER IF NOT EXISTS trg_transacao_sem_delete
    BEFORE DELETE ON transacao
    BEGIN
        SELECT RAISE(ABORT, 'transacao e append-only');
    END;
    """,
    # Contas a pagar
    """
    CREATE TABLE IF NOT EXISTS conta_pagar (
        id TEXT PRIMARY KEY,
        descricao TEXT,
        categoria TEXT,
        id_lote TEXT,
        fornecedor_id TEXT,
        valor REAL NOT NULL,
        valor_pago REAL DEFAULT 0,
        data_vencimento TEXT NOT NULL,
        data_pagamento TEXT,
        status TEXT NOT NULL,
        observacoes TEXT,
        FOREIGN KEY (id_lote) REFERENCES lote(id_lote)
    );
    """,
]


def _ensure_column(conn, table: str, column: str, ddl: str) -> None:
    """Adiciona coluna se não existir."""
    cur = conn.execute(f"PRAGMA table_info({table});")
    cols = [r[1] for r in cur.fetchall()]  # r[1] é o nome da coluna
    if column not in cols:
        conn.execute(f"ALTER TABLE {table} ADD COLUMN {ddl};")


def _apply_v1(conn) -> None:
    for sql in SCHEMA_V1:
        conn.executescript(sql)


def _apply_v2(conn) -> None:
    # pagamentos estornados ficam separados de valor_pago (que só cresce)
    _ensure_column(conn, "venda", "valor_estornado", "valor_estornado REAL DEFAULT 0")
    _ensure_column(conn, "conta_pagar", "valor_estornado", "valor_estornado REAL DEFAULT 0")
    conn.executescript(
        """
        CREATE TABLE IF NOT EXISTS auditoria (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            timestamp TEXT NOT NULL,
            acao TEXT NOT NULL,          -- 'CREATE' | 'UPDATE' | 'ESTORNO'
            entidade TEXT NOT NULL,      -- 'BATCH' | 'STOCK' | 'SALE' | 'TRANSACTION' | 'PAYABLE'
            entidade_id TEXT,
            detalhes TEXT
        );
        """
    )


def apply_migrations(db_path: str) -> None:
    """Aplica migrações incrementais de acordo com PRAGMA user_version."""
    with connect(db_path) as conn:
        ver = conn.execute("PRAGMA user_version;").fetchone()[0] or 0

        if ver < 1:
            _apply_v1(conn)
            conn.execute("PRAGMA user_version = 1;")
            ver = 1

        if ver < 2:
            _apply_v2(conn)
            conn.execute("PRAGMA user_version = 2;")
            ver = 2
