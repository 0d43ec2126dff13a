# frigorifico/infra/views.py
"""
Criação de views auxiliares para consultas frequentes.

Views criadas:
- vw_estoque_disponivel: peças DISPONIVEL de lotes FECHADO (sem regra de idade).
- vw_transacoes_validas: razão sem transações estornadas, estornos e órfãs.

Obs.:
- As views assumem que as migrações V1→V2 já foram aplicadas.
- Um conjunto de índices úteis também é criado, caso não existam.
"""

from __future__ import annotations

from .db import connect


def create_views(db_path: str) -> None:
    with connect(db_path) as c:
        # -----------------------
        # Views (drop + create)
        # -----------------------
        c.executescript(
            """
            ---------------------------
            -- Estoque disponível (a regra de maturação é aplicada em Python)
            ---------------------------
            DROP VIEW IF EXISTS vw_estoque_disponivel;
            CREATE VIEW vw_estoque_disponivel AS
            SELECT p.*
            FROM peca p
            JOIN lote l ON l.id_lote = p.id_lote
            WHERE p.status = 'DISPONIVEL' AND l.status = 'FECHADO';

            ---------------------------
            -- Transações que entram no saldo de caixa
            ---------------------------
            DROP VIEW IF EXISTS vw_transacoes_validas;
            CREATE VIEW vw_transacoes_validas AS
            SELECT t.*
            FROM transacao t
            WHERE t.categoria != 'ESTORNO'
              AND NOT EXISTS (SELECT 1 FROM transacao e WHERE e.estorno_de = t.id)
              AND (
                    t.referencia_id IS NULL OR t.referencia_id = ''
                    OR EXISTS (SELECT 1 FROM venda v       WHERE v.id_venda = t.referencia_id)
                    OR EXISTS (SELECT 1 FROM conta_pagar c WHERE c.id = t.referencia_id)
                    OR EXISTS (SELECT 1 FROM lote l        WHERE l.id_lote = t.referencia_id)
              );
            """
        )

        # --------------------------------
        # Índices úteis (IF NOT EXISTS)
        # --------------------------------
        c.executescript(
            """
            CREATE INDEX IF NOT EXISTS idx_peca_lote          ON peca(id_lote, sequencia);
            CREATE INDEX IF NOT EXISTS idx_peca_status        ON peca(status);
            CREATE INDEX IF NOT EXISTS idx_venda_cliente      ON venda(id_cliente);
            CREATE INDEX IF NOT EXISTS idx_venda_item_peca    ON venda_item(id_completo);
            CREATE INDEX IF NOT EXISTS idx_transacao_ref      ON transacao(referencia_id);
            CREATE INDEX IF NOT EXISTS idx_transacao_data     ON transacao(data);
            CREATE INDEX IF NOT EXISTS idx_conta_pagar_lote   ON conta_pagar(id_lote);
            CREATE INDEX IF NOT EXISTS idx_auditoria_entidade ON auditoria(entidade, entidade_id);
            """
        )
