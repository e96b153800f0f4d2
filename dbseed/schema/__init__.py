"""Schema extraction: CREATE TABLE text -> Schema with an insert order."""

from .builder import build_schema, load_schema, parse_schema
from .normalize import normalize_sql, split_top_level
from .order import insert_order
from .type_map import normalize_type
from .types import Column, ForeignKey, Schema, SchemaWarning, SemanticType, Table

__all__ = [
    "build_schema",
    "load_schema",
    "parse_schema",
    "normalize_sql",
    "split_top_level",
    "insert_order",
    "normalize_type",
    "Column",
    "ForeignKey",
    "Schema",
    "SchemaWarning",
    "SemanticType",
    "Table",
]
