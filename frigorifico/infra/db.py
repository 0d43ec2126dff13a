# frigorifico/infra/db.py
"""
Utilidades de conexão SQLite.
"""

from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from typing import Iterator, Optional


@contextmanager
def connect(db_path: str, immediate: bool = False) -> Iterator[sqlite3.Connection]:
    """
    Context manager para abrir conexão SQLite com:
    - foreign_keys ON
    - row_factory = sqlite3.Row
    - BEGIN IMMEDIATE opcional (serializa escritores desde o início)
    - commit ao sair (rollback em caso de exceção)
    """
    conn = sqlite3.connect(db_path, timeout=30)
    try:
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON;")
        if immediate:
            conn.execute("BEGIN IMMEDIATE;")
        yield conn
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


@contextmanager
def reuse_or_connect(db_path: str, conn: Optional[sqlite3.Connection]) -> Iterator[sqlite3.Connection]:
    """Usa a conexão da operação atômica em curso, ou abre uma própria."""
    if conn is not None:
        yield conn
        return
    with connect(db_path) as c:
        yield c
