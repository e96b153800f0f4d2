import json
from typing import Any, List, Protocol, Sequence, Tuple

from sqlglot import exp


class DBAdapter(Protocol):
    """Abstract database adapter for seed inserts and reference lookups."""

    name: str
    dialect: str

    def insert_rows(
        self, table: str, columns: Sequence[str], rows: Sequence[Tuple[Any, ...]]
    ) -> int:
        """Insert all rows in one transaction and return the number inserted."""

    def fetch_column_values(self, table: str, column: str, limit: int) -> List[Any]:
        """Return up to `limit` existing values of table.column."""

    def ping(self) -> None:
        """Raise if the database cannot be reached."""


def quote_identifier(name: str, dialect: str) -> str:
    """Dialect-correct quoted identifier (embedded quotes are escaped)."""
    return exp.to_identifier(name, quoted=True).sql(dialect=dialect)


def bind_value(value: Any) -> Any:
    # nested JSON values have no column type to bind to; store them as text
    if isinstance(value, (dict, list)):
        return json.dumps(value)
    return value


def insert_statement(
    table: str, columns: Sequence[str], n_rows: int, *, dialect: str, placeholder: str
) -> str:
    """
    INSERT INTO "t" ("a", "b") VALUES (?, ?), (?, ?) ...

    A table with nothing but an auto-generated key has no columns to list;
    its statement inserts one row of defaults and is run once per row.
    """
    if not columns:
        return f"INSERT INTO {quote_identifier(table, dialect)} DEFAULT VALUES"
    cols = ", ".join(quote_identifier(c, dialect) for c in columns)
    group = "(" + ", ".join([placeholder] * len(columns)) + ")"
    values = ", ".join([group] * n_rows)
    return f"INSERT INTO {quote_identifier(table, dialect)} ({cols}) VALUES {values}"
