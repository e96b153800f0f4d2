from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterator, List, Optional, Tuple

from dbseed.errors.codes import ErrorCode
from dbseed.errors.exceptions import TableNotFoundError


class SemanticType(str, Enum):
    INTEGER = "integer"
    TEXT = "text"
    DECIMAL = "decimal"
    TIMESTAMP = "timestamp"
    BOOLEAN = "boolean"


@dataclass(frozen=True)
class ForeignKey:
    table: str
    column: str

    def __str__(self) -> str:
        return f"{self.table}.{self.column}"


@dataclass(frozen=True)
class Column:
    name: str
    type: SemanticType = SemanticType.TEXT
    not_null: bool = False
    unique: bool = False
    primary_key: bool = False
    allowed_values: Tuple[str, ...] = ()
    foreign_key: Optional[ForeignKey] = None
    raw_type: str = ""

    @property
    def is_auto_generated(self) -> bool:
        # integer primary keys are assumed to be server-assigned
        return self.primary_key and self.type == SemanticType.INTEGER


@dataclass(frozen=True)
class Table:
    name: str
    columns: Tuple[Column, ...] = ()

    def column(self, name: str) -> Optional[Column]:
        for c in self.columns:
            if c.name == name:
                return c
        return None

    @property
    def depends_on(self) -> List[str]:
        """Referenced table names, first-seen order, self-reference excluded."""
        out: List[str] = []
        for c in self.columns:
            fk = c.foreign_key
            if fk is None or fk.table == self.name or fk.table in out:
                continue
            out.append(fk.table)
        return out

    def non_auto_columns(self) -> List[Column]:
        return [c for c in self.columns if not c.is_auto_generated]

    def column_names(self) -> Tuple[str, ...]:
        return tuple(c.name for c in self.non_auto_columns())

    def foreign_key_columns(self) -> List[Column]:
        return [c for c in self.non_auto_columns() if c.foreign_key is not None]


@dataclass(frozen=True)
class SchemaWarning:
    code: ErrorCode
    message: str
    table: Optional[str] = None
    detail: Tuple[str, ...] = ()

    def __str__(self) -> str:
        return self.message


@dataclass(frozen=True)
class Schema:
    """
    Parsed tables plus their insert order.

    Built once by `build_schema`; never mutated afterwards.
    """

    tables: Tuple[Table, ...] = ()
    insert_order: Tuple[str, ...] = ()
    warnings: Tuple[SchemaWarning, ...] = ()
    cycles: Tuple[Tuple[str, ...], ...] = ()
    _index: Dict[str, Table] = field(
        default_factory=dict, repr=False, compare=False
    )

    def __post_init__(self) -> None:
        if not self._index:
            self._index.update({t.name: t for t in self.tables})

    def __len__(self) -> int:
        return len(self.tables)

    def __iter__(self) -> Iterator[Table]:
        return iter(self.tables)

    def __contains__(self, name: object) -> bool:
        return name in self._index

    def table(self, name: str) -> Optional[Table]:
        return self._index.get(name)

    def get(self, name: str) -> Table:
        t = self._index.get(name)
        if t is None:
            raise TableNotFoundError(name)
        return t

    def ordered_tables(self) -> List[Table]:
        return [self._index[n] for n in self.insert_order]

    def depends_on(self, name: str) -> List[str]:
        return self.get(name).depends_on

    def warnings_for(self, code: ErrorCode) -> List[SchemaWarning]:
        return [w for w in self.warnings if w.code == code]
