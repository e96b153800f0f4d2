import logging
import sqlite3
from pathlib import Path
from typing import Any, List, Optional, Sequence, Tuple

from adapters.db.base import DBAdapter, bind_value, insert_statement, quote_identifier

log = logging.getLogger(__name__)

MEMORY = ":memory:"


class SQLiteAdapter(DBAdapter):
    name = "sqlite"
    dialect = "sqlite"

    def __init__(self, path: str):
        # resolve absolute path for file databases; keep ":memory:" as is
        self.path = path if path == MEMORY else str(Path(path).resolve())
        self._conn: Optional[sqlite3.Connection] = None
        log.info("SQLiteAdapter initialized with DB path: %s", self.path)

    def _connect(self) -> sqlite3.Connection:
        if self._conn is None:
            self._conn = sqlite3.connect(self.path, timeout=3)
            self._conn.execute("PRAGMA foreign_keys = ON;")
        return self._conn

    def close(self) -> None:
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    def ping(self) -> None:
        self._connect().execute("SELECT 1;").fetchone()

    def execute_script(self, sql: str) -> None:
        """Run DDL (used to create a schema in a fresh database)."""
        conn = self._connect()
        with conn:
            conn.executescript(sql)

    def insert_rows(
        self, table: str, columns: Sequence[str], rows: Sequence[Tuple[Any, ...]]
    ) -> int:
        if not rows:
            return 0
        sql = insert_statement(table, columns, 1, dialect=self.dialect, placeholder="?")
        params = [tuple(bind_value(v) for v in row) for row in rows]
        conn = self._connect()
        log.debug("Executing SQL: %s (x%d)", sql, len(params))
        # commits on success, rolls back the whole batch on error
        with conn:
            conn.executemany(sql, params)
        log.info("Inserted %d rows into %s", len(params), table)
        return len(params)

    def fetch_column_values(self, table: str, column: str, limit: int) -> List[Any]:
        sql = (
            f"SELECT {quote_identifier(column, self.dialect)} "
            f"FROM {quote_identifier(table, self.dialect)} LIMIT ?"
        )
        cur = self._connect().execute(sql, (limit,))
        return [r[0] for r in cur.fetchall()]
