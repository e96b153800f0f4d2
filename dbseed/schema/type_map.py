from __future__ import annotations

from typing import Optional, Tuple

from dbseed.schema.types import SemanticType

# Ordered: the first matching prefix wins ("interval" must precede "int").
TYPE_RULES: Tuple[Tuple[str, SemanticType], ...] = (
    ("interval", SemanticType.TIMESTAMP),
    ("varchar", SemanticType.TEXT),
    ("nvarchar", SemanticType.TEXT),
    ("character", SemanticType.TEXT),
    ("char", SemanticType.TEXT),
    ("nchar", SemanticType.TEXT),
    ("text", SemanticType.TEXT),
    ("tinytext", SemanticType.TEXT),
    ("mediumtext", SemanticType.TEXT),
    ("longtext", SemanticType.TEXT),
    ("string", SemanticType.TEXT),
    ("clob", SemanticType.TEXT),
    ("citext", SemanticType.TEXT),
    ("uuid", SemanticType.TEXT),
    ("json", SemanticType.TEXT),
    ("enum", SemanticType.TEXT),
    ("int", SemanticType.INTEGER),
    ("smallint", SemanticType.INTEGER),
    ("bigint", SemanticType.INTEGER),
    ("tinyint", SemanticType.INTEGER),
    ("mediumint", SemanticType.INTEGER),
    ("serial", SemanticType.INTEGER),
    ("smallserial", SemanticType.INTEGER),
    ("bigserial", SemanticType.INTEGER),
    ("decimal", SemanticType.DECIMAL),
    ("numeric", SemanticType.DECIMAL),
    ("number", SemanticType.DECIMAL),
    ("real", SemanticType.DECIMAL),
    ("double", SemanticType.DECIMAL),
    ("float", SemanticType.DECIMAL),
    ("money", SemanticType.DECIMAL),
    ("timestamp", SemanticType.TIMESTAMP),
    ("datetime", SemanticType.TIMESTAMP),
    ("date", SemanticType.TIMESTAMP),
    ("time", SemanticType.TIMESTAMP),
    ("boolean", SemanticType.BOOLEAN),
    ("bool", SemanticType.BOOLEAN),
    ("bit", SemanticType.BOOLEAN),
)

DEFAULT_TYPE = SemanticType.TEXT


def match_type(raw: str | None) -> Optional[SemanticType]:
    """Semantic type for a recognized raw type, None when no rule matches."""
    t = (raw or "").strip().lower()
    t = t.split("(", 1)[0].strip()
    if not t:
        return None
    for prefix, semantic in TYPE_RULES:
        if t.startswith(prefix):
            return semantic
    return None


def normalize_type(raw: str | None) -> SemanticType:
    """
    Map a raw column type to one of the five semantic types.

    Matching is case-insensitive on the prefix of the type name; any size or
    precision suffix such as (10,2) is ignored. Unknown types map to text.
    """
    return match_type(raw) or DEFAULT_TYPE
