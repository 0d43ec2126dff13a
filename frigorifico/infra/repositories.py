# frigorifico/infra/repositories.py
"""
Repositórios (DAO) para acesso e manipulação de dados no SQLite.

Classes:
- ParamsRepo
- LoteRepo
- PecaRepo
- VendaRepo
- TransacaoRepo (append-only)
- ContaPagarRepo
- ClienteRepo
- FornecedorRepo
- AuditoriaRepo
- Repositorios (todos os repositórios sobre a mesma conexão)

Todo repositório recebe ``db_path`` e, opcionalmente, ``conn``: com ``conn``
ele participa da transação da operação atômica em curso; sem ela, cada
chamada abre e confirma sua própria conexão.
"""

from __future__ import annotations

import json
import sqlite3
from dataclasses import asdict, is_dataclass
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Set, Tuple

from .db import reuse_or_connect
from frigorifico.domain.formulas import lote_de_id_completo
from frigorifico.domain.models import (
    Cliente, ContaPagar, Fornecedor, Lote, Peca, Transacao, Venda,
)


# -------------------------
# Helpers
# -------------------------

def _as_dict(row: Any) -> Dict[str, Any]:
    if isinstance(row, dict):
        return dict(row)
    if is_dataclass(row):
        return asdict(row)
    raise TypeError("row must be dict or dataclass")


def _placeholders(ids: List[str]) -> str:
    return ",".join("?" for _ in ids)


class _Repo:
    def __init__(self, db_path: str, conn: Optional[sqlite3.Connection] = None):
        self.db_path = db_path
        self.conn = conn

    def _conn(self):
        return reuse_or_connect(self.db_path, self.conn)


# -------------------------
# Params
# -------------------------

class ParamsRepo(_Repo):
    def set_many(self, items: Iterable[Tuple[str, str]]) -> None:
        with self._conn() as c:
            c.executemany(
                """
                INSERT INTO params (chave, valor)
                VALUES (?, ?)
                ON CONFLICT(chave) DO UPDATE SET valor=excluded.valor
                """,
                [(k, str(v)) for k, v in items],
            )

    def get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        with self._conn() as c:
            row = c.execute("SELECT valor FROM params WHERE chave = ?", (key,)).fetchone()
            return row[0] if row else default

    def get_float(self, key: str, default: float) -> float:
        v = self.get(key, None)
        if v is None:
            return default
        try:
            return float(v)
        except ValueError:
            return default

    def get_int(self, key: str, default: int) -> int:
        return int(self.get_float(key, default))


# -------------------------
# Lote
# -------------------------

_COLS_LOTE = (
    "id_lote", "fornecedor", "data_recebimento", "peso_total_romaneio",
    "valor_compra_total", "frete", "gastos_extras", "forma_pagamento",
    "valor_entrada", "prazo_dias", "status", "data_estorno",
)


class LoteRepo(_Repo):
    def insert(self, lote: Any) -> None:
        row = _as_dict(lote)
        payload = {k: row.get(k) for k in _COLS_LOTE}
        with self._conn() as c:
            c.execute(
                f"""
                INSERT INTO lote ({",".join(_COLS_LOTE)})
                VALUES ({",".join(":" + k for k in _COLS_LOTE)})
                """,
                payload,
            )

    def get(self, id_lote: str) -> Optional[Lote]:
        with self._conn() as c:
            row = c.execute("SELECT * FROM lote WHERE id_lote = ?", (id_lote,)).fetchone()
            return Lote.from_row(row) if row else None

    def list(self, status: Optional[str] = None) -> List[Lote]:
        sql = "SELECT * FROM lote"
        params: Tuple = ()
        if status:
            sql += " WHERE status = ?"
            params = (status,)
        sql += " ORDER BY data_recebimento, id_lote"
        with self._conn() as c:
            return [Lote.from_row(r) for r in c.execute(sql, params)]

    def ids(self) -> List[str]:
        with self._conn() as c:
            return [r[0] for r in c.execute("SELECT id_lote FROM lote")]

    def update_campos(self, id_lote: str, campos: Dict[str, Any]) -> None:
        campos = {k: v for k, v in campos.items() if k in _COLS_LOTE and k != "id_lote"}
        if not campos:
            return
        sets = ", ".join(f"{k} = :{k}" for k in campos)
        with self._conn() as c:
            c.execute(f"UPDATE lote SET {sets} WHERE id_lote = :id_lote", {**campos, "id_lote": id_lote})

    def set_status(self, id_lote: str, status: str, data_estorno: Optional[str] = None) -> None:
        with self._conn() as c:
            c.execute(
                "UPDATE lote SET status = ?, data_estorno = ? WHERE id_lote = ?",
                (status, data_estorno, id_lote),
            )


# -------------------------
# Peça
# -------------------------

class PecaRepo(_Repo):
    def insert_many(self, pecas: Iterable[Any]) -> None:
        rows = [_as_dict(p) for p in pecas]
        if not rows:
            return
        with self._conn() as c:
            c.executemany(
                """
                INSERT INTO peca
                    (id_completo, id_lote, sequencia, tipo, peso_entrada, data_entrada, status)
                VALUES
                    (:id_completo, :id_lote, :sequencia, :tipo, :peso_entrada, :data_entrada, :status)
                """,
                rows,
            )

    def get(self, id_completo: str) -> Optional[Peca]:
        with self._conn() as c:
            row = c.execute("SELECT * FROM peca WHERE id_completo = ?", (id_completo,)).fetchone()
            return Peca.from_row(row) if row else None

    def by_ids(self, ids: Iterable[str]) -> List[Peca]:
        ids = list(ids)
        if not ids:
            return []
        with self._conn() as c:
            cur = c.execute(f"SELECT * FROM peca WHERE id_completo IN ({_placeholders(ids)})", ids)
            por_id = {r["id_completo"]: Peca.from_row(r) for r in cur}
        return [por_id[i] for i in ids if i in por_id]

    def by_lote(self, id_lote: str) -> List[Peca]:
        with self._conn() as c:
            cur = c.execute(
                "SELECT * FROM peca WHERE id_lote = ? ORDER BY sequencia, tipo",
                (id_lote,),
            )
            return [Peca.from_row(r) for r in cur]

    def disponiveis(self, id_lote: Optional[str] = None) -> List[Peca]:
        """Peças DISPONIVEL de lotes FECHADO, mais antigas primeiro."""
        sql = "SELECT * FROM vw_estoque_disponivel"
        params: Tuple = ()
        if id_lote:
            sql += " WHERE id_lote = ?"
            params = (id_lote,)
        sql += " ORDER BY data_entrada, id_completo"
        with self._conn() as c:
            return [Peca.from_row(r) for r in c.execute(sql, params)]

    def set_status(self, ids: Iterable[str], status: str) -> int:
        ids = list(ids)
        if not ids:
            return 0
        with self._conn() as c:
            cur = c.execute(
                f"UPDATE peca SET status = ? WHERE id_completo IN ({_placeholders(ids)})",
                [status, *ids],
            )
            return cur.rowcount

    def update_data_entrada(self, id_lote: str, data_entrada: str) -> None:
        with self._conn() as c:
            c.execute("UPDATE peca SET data_entrada = ? WHERE id_lote = ?", (data_entrada, id_lote))


# -------------------------
# Venda
# -------------------------

_COLS_VENDA = (
    "id_venda", "id_cliente", "nome_cliente", "id_completo", "peso_entrada_total",
    "peso_real_saida", "quebra_kg", "preco_venda_kg", "custo_extras_total",
    "valor_pago", "valor_estornado", "data_venda", "prazo_dias", "data_vencimento",
    "forma_pagamento", "status_pagamento", "data_estorno",
)


class VendaRepo(_Repo):
    def insert(self, venda: Venda, pecas: Iterable[Peca]) -> None:
        row = _as_dict(venda)
        payload = {k: row.get(k) for k in _COLS_VENDA}
        with self._conn() as c:
            c.execute(
                f"""
                INSERT INTO venda ({",".join(_COLS_VENDA)})
                VALUES ({",".join(":" + k for k in _COLS_VENDA)})
                """,
                payload,
            )
            c.executemany(
                "INSERT INTO venda_item (id_venda, id_completo, peso_entrada) VALUES (?, ?, ?)",
                [(venda.id_venda, p.id_completo, p.peso_entrada) for p in pecas],
            )

    def _com_itens(self, c, rows) -> List[Venda]:
        vendas = [Venda.from_row(r) for r in rows]
        for v in vendas:
            v.itens = [
                r[0] for r in c.execute(
                    "SELECT id_completo FROM venda_item WHERE id_venda = ? ORDER BY id_completo",
                    (v.id_venda,),
                )
            ]
        return vendas

    def get(self, id_venda: str) -> Optional[Venda]:
        with self._conn() as c:
            rows = c.execute("SELECT * FROM venda WHERE id_venda = ?", (id_venda,)).fetchall()
            vendas = self._com_itens(c, rows)
            return vendas[0] if vendas else None

    def list(self, id_cliente: Optional[str] = None, incluir_estornadas: bool = True) -> List[Venda]:
        where: List[str] = []
        params: List[Any] = []
        if id_cliente:
            where.append("id_cliente = ?")
            params.append(id_cliente)
        if not incluir_estornadas:
            where.append("status_pagamento != 'ESTORNADO'")
        sql = "SELECT * FROM venda"
        if where:
            sql += " WHERE " + " AND ".join(where)
        sql += " ORDER BY data_venda, id_venda"
        with self._conn() as c:
            return self._com_itens(c, c.execute(sql, params).fetchall())

    def by_lote(self, id_lote: str) -> List[Venda]:
        """Vendas de um lote: pelos itens consumidos e pelo prefixo do id_completo."""
        with self._conn() as c:
            rows = c.execute(
                """
                SELECT DISTINCT v.*
                FROM venda v
                LEFT JOIN venda_item vi ON vi.id_venda = v.id_venda
                LEFT JOIN peca p        ON p.id_completo = vi.id_completo
                WHERE p.id_lote = ? OR v.id_completo LIKE ?
                ORDER BY v.data_venda, v.id_venda
                """,
                (id_lote, f"{id_lote}-%"),
            ).fetchall()
            vendas = self._com_itens(c, rows)
        return [
            v for v in vendas
            if lote_de_id_completo(v.id_completo) == id_lote
            or any(lote_de_id_completo(i) == id_lote for i in v.itens)
        ]

    def update_pagamento(self, id_venda: str, valor_pago: float, valor_estornado: float, status: str) -> None:
        with self._conn() as c:
            c.execute(
                """
                UPDATE venda
                SET valor_pago = ?, valor_estornado = ?, status_pagamento = ?
                WHERE id_venda = ?
                """,
                (valor_pago, valor_estornado, status, id_venda),
            )

    def set_estornada(self, id_venda: str, data_estorno: str) -> None:
        with self._conn() as c:
            c.execute(
                "UPDATE venda SET status_pagamento = 'ESTORNADO', data_estorno = ? WHERE id_venda = ?",
                (data_estorno, id_venda),
            )


# -------------------------
# Transação (razão append-only)
# -------------------------

class TransacaoRepo(_Repo):
    """Único ponto de escrita do razão: só existe ``append``."""

    def append(self, t: Transacao) -> Transacao:
        if not t.criado_em:
            t.criado_em = datetime.now().isoformat(timespec="seconds")
        with self._conn() as c:
            c.execute(
                """
                INSERT INTO transacao
                    (id, data, descricao, tipo, categoria, valor,
                     referencia_id, metodo_pagamento, estorno_de, criado_em)
                VALUES
                    (:id, :data, :descricao, :tipo, :categoria, :valor,
                     :referencia_id, :metodo_pagamento, :estorno_de, :criado_em)
                """,
                asdict(t),
            )
        return t

    def get(self, id_transacao: str) -> Optional[Transacao]:
        with self._conn() as c:
            row = c.execute("SELECT * FROM transacao WHERE id = ?", (id_transacao,)).fetchone()
            return Transacao.from_row(row) if row else None

    def list(
        self,
        desde: Optional[str] = None,
        ate: Optional[str] = None,
        categoria: Optional[str] = None,
        tipo: Optional[str] = None,
        referencia_id: Optional[str] = None,
    ) -> List[Transacao]:
        where: List[str] = []
        params: List[Any] = []
        for col, op, val in (
            ("data", ">=", desde),
            ("data", "<=", ate),
            ("categoria", "=", categoria),
            ("tipo", "=", tipo),
            ("referencia_id", "=", referencia_id),
        ):
            if val is not None:
                where.append(f"{col} {op} ?")
                params.append(val)
        sql = "SELECT * FROM transacao"
        if where:
            sql += " WHERE " + " AND ".join(where)
        # rowid preserva a ordem de inserção dentro do mesmo dia
        sql += " ORDER BY data, rowid"
        with self._conn() as c:
            return [Transacao.from_row(r) for r in c.execute(sql, params)]

    def by_referencia(self, referencia_id: str) -> List[Transacao]:
        return self.list(referencia_id=referencia_id)

    def estorno_de(self, id_transacao: str) -> Optional[Transacao]:
        with self._conn() as c:
            row = c.execute("SELECT * FROM transacao WHERE estorno_de = ?", (id_transacao,)).fetchone()
            return Transacao.from_row(row) if row else None

    def ids_estornados(self) -> Set[str]:
        with self._conn() as c:
            return {r[0] for r in c.execute("SELECT estorno_de FROM transacao WHERE estorno_de IS NOT NULL")}

    def referencias_conhecidas(self) -> Set[str]:
        """Ids de lotes, vendas e contas a pagar: referências que não são órfãs."""
        with self._conn() as c:
            cur = c.execute(
                """
                SELECT id_lote FROM lote
                UNION SELECT id_venda FROM venda
                UNION SELECT id FROM conta_pagar
                """
            )
            return {r[0] for r in cur}

    def count(self) -> int:
        with self._conn() as c:
            return int(c.execute("SELECT COUNT(*) FROM transacao").fetchone()[0])


# -------------------------
# Contas a pagar
# -------------------------

_COLS_CONTA = (
    "id", "descricao", "categoria", "id_lote", "fornecedor_id", "valor", "valor_pago",
    "valor_estornado", "data_vencimento", "data_pagamento", "status", "observacoes",
)


class ContaPagarRepo(_Repo):
    def insert(self, conta: Any) -> None:
        row = _as_dict(conta)
        payload = {k: row.get(k) for k in _COLS_CONTA}
        with self._conn() as c:
            c.execute(
                f"""
                INSERT INTO conta_pagar ({",".join(_COLS_CONTA)})
                VALUES ({",".join(":" + k for k in _COLS_CONTA)})
                """,
                payload,
            )

    def get(self, id_conta: str) -> Optional[ContaPagar]:
        with self._conn() as c:
            row = c.execute("SELECT * FROM conta_pagar WHERE id = ?", (id_conta,)).fetchone()
            return ContaPagar.from_row(row) if row else None

    def list(self, status: Optional[str] = None, id_lote: Optional[str] = None) -> List[ContaPagar]:
        where: List[str] = []
        params: List[Any] = []
        if status:
            where.append("status = ?")
            params.append(status)
        if id_lote:
            where.append("id_lote = ?")
            params.append(id_lote)
        sql = "SELECT * FROM conta_pagar"
        if where:
            sql += " WHERE " + " AND ".join(where)
        sql += " ORDER BY data_vencimento, id"
        with self._conn() as c:
            return [ContaPagar.from_row(r) for r in c.execute(sql, params)]

    def by_lote(self, id_lote: str) -> List[ContaPagar]:
        return self.list(id_lote=id_lote)

    def update_pagamento(
        self,
        id_conta: str,
        valor_pago: float,
        valor_estornado: float,
        status: str,
        data_pagamento: Optional[str],
    ) -> None:
        with self._conn() as c:
            c.execute(
                """
                UPDATE conta_pagar
                SET valor_pago = ?, valor_estornado = ?, status = ?, data_pagamento = ?
                WHERE id = ?
                """,
                (valor_pago, valor_estornado, status, data_pagamento, id_conta),
            )

    def set_status(self, id_conta: str, status: str) -> None:
        with self._conn() as c:
            c.execute("UPDATE conta_pagar SET status = ? WHERE id = ?", (status, id_conta))

    def update_vencimento(self, id_conta: str, data_vencimento: str) -> None:
        with self._conn() as c:
            c.execute("UPDATE conta_pagar SET data_vencimento = ? WHERE id = ?", (data_vencimento, id_conta))


# -------------------------
# Cadastros
# -------------------------

class ClienteRepo(_Repo):
    def upsert(self, rows: Iterable[Any]) -> None:
        rows = [_as_dict(r) for r in rows]
        with self._conn() as c:
            for r in rows:
                c.execute(
                    """
                    INSERT INTO cliente
                        (id_ferro, nome_social, limite_credito, whatsapp, cpf_cnpj, cidade, status)
                    VALUES
                        (:id_ferro, :nome_social, :limite_credito, :whatsapp, :cpf_cnpj, :cidade, :status)
                    ON CONFLICT(id_ferro) DO UPDATE SET
                        nome_social=excluded.nome_social,
                        limite_credito=excluded.limite_credito,
                        whatsapp=excluded.whatsapp,
                        cpf_cnpj=excluded.cpf_cnpj,
                        cidade=excluded.cidade,
                        status=excluded.status
                    """,
                    {
                        "id_ferro": r["id_ferro"],
                        "nome_social": r["nome_social"],
                        "limite_credito": r.get("limite_credito") or 0.0,
                        "whatsapp": r.get("whatsapp"),
                        "cpf_cnpj": r.get("cpf_cnpj"),
                        "cidade": r.get("cidade"),
                        "status": r.get("status") or "ATIVO",
                    },
                )

    def get(self, id_ferro: str) -> Optional[Cliente]:
        with self._conn() as c:
            row = c.execute("SELECT * FROM cliente WHERE id_ferro = ?", (id_ferro,)).fetchone()
            return Cliente.from_row(row) if row else None

    def list(self) -> List[Cliente]:
        with self._conn() as c:
            return [Cliente.from_row(r) for r in c.execute("SELECT * FROM cliente ORDER BY nome_social")]


class FornecedorRepo(_Repo):
    def upsert(self, rows: Iterable[Any]) -> None:
        rows = [_as_dict(r) for r in rows]
        with self._conn() as c:
            for r in rows:
                c.execute(
                    """
                    INSERT INTO fornecedor (id, nome_fantasia, cpf_cnpj, telefone, cidade, status)
                    VALUES (:id, :nome_fantasia, :cpf_cnpj, :telefone, :cidade, :status)
                    ON CONFLICT(id) DO UPDATE SET
                        nome_fantasia=excluded.nome_fantasia,
                        cpf_cnpj=excluded.cpf_cnpj,
                        telefone=excluded.telefone,
                        cidade=excluded.cidade,
                        status=excluded.status
                    """,
                    {
                        "id": r["id"],
                        "nome_fantasia": r["nome_fantasia"],
                        "cpf_cnpj": r.get("cpf_cnpj"),
                        "telefone": r.get("telefone"),
                        "cidade": r.get("cidade"),
                        "status": r.get("status") or "ATIVO",
                    },
                )

    def get(self, id_fornecedor: str) -> Optional[Fornecedor]:
        with self._conn() as c:
            row = c.execute("SELECT * FROM fornecedor WHERE id = ?", (id_fornecedor,)).fetchone()
            return Fornecedor.from_row(row) if row else None

    def by_nome(self, nome: str) -> Optional[Fornecedor]:
        with self._conn() as c:
            row = c.execute(
                "SELECT * FROM fornecedor WHERE UPPER(nome_fantasia) = UPPER(?)", (nome,)
            ).fetchone()
            return Fornecedor.from_row(row) if row else None

    def resolver(self, chave: str) -> Optional[Fornecedor]:
        """Fornecedor pelo id ou pelo nome fantasia."""
        return self.get(chave) or self.by_nome(chave)


# -------------------------
# Auditoria
# -------------------------

class AuditoriaRepo(_Repo):
    def registrar(self, acao: str, entidade: str, entidade_id: str, detalhes: Optional[Dict[str, Any]] = None) -> None:
        with self._conn() as c:
            c.execute(
                """
                INSERT INTO auditoria (timestamp, acao, entidade, entidade_id, detalhes)
                VALUES (?, ?, ?, ?, ?)
                """,
                (
                    datetime.now().isoformat(timespec="seconds"),
                    acao,
                    entidade,
                    entidade_id,
                    json.dumps(detalhes or {}, ensure_ascii=False, default=str),
                ),
            )

    def list(self, entidade: Optional[str] = None, entidade_id: Optional[str] = None) -> List[Dict[str, Any]]:
        where: List[str] = []
        params: List[Any] = []
        if entidade:
            where.append("entidade = ?")
            params.append(entidade)
        if entidade_id:
            where.append("entidade_id = ?")
            params.append(entidade_id)
        sql = "SELECT * FROM auditoria"
        if where:
            sql += " WHERE " + " AND ".join(where)
        sql += " ORDER BY id"
        with self._conn() as c:
            out = []
            for r in c.execute(sql, params):
                d = dict(r)
                d["detalhes"] = json.loads(d["detalhes"] or "{}")
                out.append(d)
            return out


# -------------------------
# Conjunto de repositórios
# -------------------------

class Repositorios:
    """Todos os repositórios compartilhando a mesma conexão (ou nenhuma)."""

    def __init__(self, db_path: str, conn: Optional[sqlite3.Connection] = None):
        self.db_path = db_path
        self.conn = conn
        self.params = ParamsRepo(db_path, conn)
        self.lotes = LoteRepo(db_path, conn)
        self.pecas = PecaRepo(db_path, conn)
        self.vendas = VendaRepo(db_path, conn)
        self.razao = TransacaoRepo(db_path, conn)
        self.contas = ContaPagarRepo(db_path, conn)
        self.clientes = ClienteRepo(db_path, conn)
        self.fornecedores = FornecedorRepo(db_path, conn)
        self.auditoria = AuditoriaRepo(db_path, conn)
