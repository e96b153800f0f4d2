from adapters.db.base import DBAdapter
from adapters.db.postgres_adapter import PostgresAdapter
from adapters.db.sqlite_adapter import SQLiteAdapter

SQLITE_PREFIXES = ("sqlite://", "sqlite:")


def open_adapter(conn: str) -> DBAdapter:
    """
    Pick an adapter from a connection string.

    sqlite:PATH and sqlite://PATH open a SQLite file (sqlite:///abs/path for an
    absolute one). Anything else is handed to psycopg as a PostgreSQL DSN.
    """
    conn = (conn or "").strip()
    if not conn:
        raise ValueError("empty database connection string")
    for prefix in SQLITE_PREFIXES:
        if conn.startswith(prefix):
            path = conn[len(prefix) :]
            if not path:
                raise ValueError(f"missing SQLite path in {conn!r}")
            return SQLiteAdapter(path)
    return PostgresAdapter(conn)
