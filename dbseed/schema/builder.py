from __future__ import annotations

import logging
from dataclasses import replace
from pathlib import Path
from typing import Dict, List, Sequence

from dbseed.errors.codes import ErrorCode
from dbseed.schema.order import insert_order
from dbseed.schema.parse import ParsedTable, parse_tables
from dbseed.schema.types import Column, ForeignKey, Schema, SchemaWarning, Table

log = logging.getLogger(__name__)

# logged at INFO; every other warning code is logged at WARNING
_QUIET_CODES = {ErrorCode.SCHEMA_SKIPPED_CLAUSE}


def _resolve_reference(col: Column, names: Dict[str, str]) -> Column:
    """Point a foreign key at the declared spelling of its table name."""
    fk = col.foreign_key
    if fk is None or fk.table in names.values():
        return col
    canonical = names.get(fk.table.lower())
    if canonical is None:
        return col
    return replace(col, foreign_key=ForeignKey(canonical, fk.column))


def build_schema(parsed: Sequence[ParsedTable]) -> Schema:
    warnings: List[SchemaWarning] = []
    drafts: List[ParsedTable] = []
    seen: Dict[str, str] = {}

    for p in parsed:
        for code, message in p.issues:
            warnings.append(SchemaWarning(code, f"{p.name}: {message}", table=p.name))
        if p.truncated:
            warnings.append(
                SchemaWarning(
                    ErrorCode.SCHEMA_UNBALANCED_BODY,
                    f"{p.name}: unbalanced parentheses, body truncated at end of declaration",
                    table=p.name,
                )
            )
        if p.name.lower() in seen:
            warnings.append(
                SchemaWarning(
                    ErrorCode.SCHEMA_DUPLICATE_TABLE,
                    f"duplicate table {p.name!r} ignored; first declaration kept",
                    table=p.name,
                )
            )
            continue
        seen[p.name.lower()] = p.name
        drafts.append(p)

    tables: List[Table] = []
    for p in drafts:
        columns = tuple(_resolve_reference(c, seen) for c in p.columns)
        tables.append(Table(name=p.name, columns=columns))

    declared = set(seen.values())
    for t in tables:
        for c in t.columns:
            fk = c.foreign_key
            if fk is not None and fk.table not in declared:
                warnings.append(
                    SchemaWarning(
                        ErrorCode.SCHEMA_DANGLING_REFERENCE,
                        f"{t.name}.{c.name} references missing table {fk.table!r}",
                        table=t.name,
                        detail=(c.name, str(fk)),
                    )
                )

    result = insert_order(tables)
    for cycle in result.cycles:
        path = " -> ".join(cycle + (cycle[0],))
        warnings.append(
            SchemaWarning(
                ErrorCode.SCHEMA_DEPENDENCY_CYCLE,
                f"dependency cycle: {path}; insert order may violate foreign keys",
                table=cycle[0],
                detail=cycle,
            )
        )

    for w in warnings:
        level = logging.INFO if w.code in _QUIET_CODES else logging.WARNING
        log.log(level, "schema: %s", w.message)

    log.info("Parsed %d tables; insert order: %s", len(tables), ", ".join(result.order))
    return Schema(
        tables=tuple(tables),
        insert_order=result.order,
        warnings=tuple(warnings),
        cycles=result.cycles,
    )


def parse_schema(text: str | None) -> Schema:
    """Parse declarative SQL text into a Schema with its insert order."""
    return build_schema(parse_tables(text))


def load_schema(path: str | Path) -> Schema:
    return parse_schema(Path(path).read_text(encoding="utf-8"))
