from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field, replace
from typing import Any, List, Optional, Sequence, Tuple

from dbseed.errors.codes import ErrorCode
from dbseed.schema.lexer import Token, TokenKind, tokenize
from dbseed.schema.normalize import extract_paren_block, normalize_sql, split_top_level
from dbseed.schema.type_map import match_type, normalize_type
from dbseed.schema.types import Column, ForeignKey

log = logging.getLogger(__name__)

_IDENT = r"(?:\"[^\"]+\"|`[^`]+`|'[^']+'|\w+)"
_CREATE_TABLE_RE = re.compile(
    r"\bCREATE\s+(?:(?:GLOBAL|LOCAL)\s+)?(?:(?:TEMP|TEMPORARY|UNLOGGED)\s+)?TABLE\s+"
    rf"(?:IF\s+NOT\s+EXISTS\s+)?(?P<name>{_IDENT}(?:\s*\.\s*{_IDENT})*)\s*\(",
    re.IGNORECASE,
)

# words that extend a type name: "double precision", "int unsigned", ...
_TYPE_SUFFIX_WORDS = ("PRECISION", "VARYING", "UNSIGNED", "SIGNED", "ZEROFILL")
# words that start a column constraint (a typeless column such as `id PRIMARY KEY`)
_COLUMN_CONSTRAINT_WORDS = (
    "NOT",
    "NULL",
    "PRIMARY",
    "UNIQUE",
    "CHECK",
    "REFERENCES",
    "DEFAULT",
    "CONSTRAINT",
    "COLLATE",
    "GENERATED",
    "AUTO_INCREMENT",
    "AUTOINCREMENT",
)
_INDEX_WORDS = ("INDEX", "KEY", "FULLTEXT", "SPATIAL")
_IGNORED_LEADING_WORDS = ("EXCLUDE", "LIKE", "PERIOD")

DEFAULT_REFERENCED_COLUMN = "id"


@dataclass(frozen=True)
class Declaration:
    name: str
    body: str
    truncated: bool = False


@dataclass
class ParsedTable:
    """Mutable draft of one table while its clauses are applied."""

    name: str
    columns: List[Column] = field(default_factory=list)
    issues: List[Tuple[ErrorCode, str]] = field(default_factory=list)
    truncated: bool = False

    def index(self, name: str) -> int:
        key = name.lower()
        for i, c in enumerate(self.columns):
            if c.name.lower() == key:
                return i
        return -1

    def update(self, name: str, **changes: Any) -> bool:
        i = self.index(name)
        if i == -1:
            return False
        self.columns[i] = replace(self.columns[i], **changes)
        return True

    def note(self, code: ErrorCode, message: str) -> None:
        log.debug("%s: %s", self.name, message)
        self.issues.append((code, message))


def skip_unsupported(table: ParsedTable, what: str) -> None:
    """
    Unsupported or unmatched constructs are ignored, not fatal.

    The rest of the table is still extracted; the skip is recorded so callers
    can surface it as a warning.
    """
    table.note(ErrorCode.SCHEMA_SKIPPED_CLAUSE, what)


# ---------------------------------------------------------------------------
# Declaration splitter
# ---------------------------------------------------------------------------


def _last_name(text: str) -> str:
    names = [t for t in tokenize(text) if t.is_name]
    return names[-1].value if names else text.strip()


def split_declarations(normalized: str) -> List[Declaration]:
    """
    Locate every CREATE TABLE and isolate its parenthesized body.

    A declaration ends at the next CREATE TABLE or at end of text. An
    unbalanced body is returned up to that point and flagged as truncated.
    """
    matches = list(_CREATE_TABLE_RE.finditer(normalized or ""))
    out: List[Declaration] = []
    for i, m in enumerate(matches):
        end = matches[i + 1].start() if i + 1 < len(matches) else len(normalized)
        body, balanced = extract_paren_block(normalized[m.start() : end])
        out.append(
            Declaration(name=_last_name(m.group("name")), body=body, truncated=not balanced)
        )
    return out


# ---------------------------------------------------------------------------
# Token helpers
# ---------------------------------------------------------------------------


def _paren_group(tokens: Sequence[Token], i: int, source: str) -> Tuple[str, int]:
    """Inner text of the group opening at tokens[i] and the index after it."""
    depth = 0
    for j in range(i, len(tokens)):
        kind = tokens[j].kind
        if kind == TokenKind.LPAREN:
            depth += 1
        elif kind == TokenKind.RPAREN:
            depth -= 1
            if depth == 0:
                return source[tokens[i].end : tokens[j].pos], j + 1
    return source[tokens[i].end :], len(tokens)


def _name_list(text: str) -> List[str]:
    names: List[str] = []
    for part in split_top_level(text):
        found = [t for t in tokenize(part) if t.is_name]
        if found:
            names.append(found[0].value)
    return names


def _literal_list(text: str) -> Tuple[str, ...]:
    values: List[str] = []
    for part in split_top_level(text):
        quoted = [
            t for t in tokenize(part) if t.kind in (TokenKind.STRING, TokenKind.QUOTED)
        ]
        if quoted:
            values.append(quoted[0].value)
    return tuple(values)


def _qualified_name(tokens: Sequence[Token], i: int) -> Tuple[Optional[str], int]:
    """Read `name` or `schema.name`; returns the last part."""
    name = None
    n = len(tokens)
    while i < n and tokens[i].is_name:
        name = tokens[i].value
        i += 1
        if i < n and tokens[i].kind == TokenKind.DOT:
            i += 1
            continue
        break
    return name, i


def parse_enum_check(text: str) -> Optional[Tuple[str, Tuple[str, ...]]]:
    """Parse the inside of CHECK (...) as `<col> IN (<literals>)`."""
    tokens = tokenize(text)
    if not tokens:
        return None
    if tokens[0].kind == TokenKind.LPAREN:
        inner, nxt = _paren_group(tokens, 0, text)
        if nxt == len(tokens):
            return parse_enum_check(inner)

    n = len(tokens)
    col = None
    i = 0
    while i < n and tokens[i].is_name and not tokens[i].is_word("IN"):
        col = tokens[i].value
        i += 1
        if i < n and tokens[i].kind == TokenKind.DOT:
            i += 1
            continue
        break
    if col is None or i >= n or not tokens[i].is_word("IN"):
        return None
    i += 1
    if i >= n or tokens[i].kind != TokenKind.LPAREN:
        return None
    values_text, nxt = _paren_group(tokens, i, text)
    if nxt != n:
        return None
    values = _literal_list(values_text)
    if not values:
        return None
    return col, values


def _references(
    tokens: Sequence[Token], i: int, source: str
) -> Tuple[Optional[str], List[str], int]:
    """Parse `REFERENCES table [(cols)]` starting at the REFERENCES token."""
    table, i = _qualified_name(tokens, i + 1)
    cols: List[str] = []
    if i < len(tokens) and tokens[i].kind == TokenKind.LPAREN:
        text, i = _paren_group(tokens, i, source)
        cols = _name_list(text)
    return table, cols, i


# ---------------------------------------------------------------------------
# Column definitions
# ---------------------------------------------------------------------------


def _read_type(tokens: Sequence[Token], i: int, source: str) -> Tuple[str, int]:
    t = tokens[i]
    if t.kind != TokenKind.WORD or t.is_word(*_COLUMN_CONSTRAINT_WORDS):
        return "", i
    parts = [t.value]
    i += 1
    n = len(tokens)
    while i < n:
        t = tokens[i]
        if t.is_word(*_TYPE_SUFFIX_WORDS):
            parts.append(t.value)
            i += 1
        elif (
            t.is_word("WITH", "WITHOUT")
            and i + 2 < n
            and tokens[i + 1].is_word("TIME")
            and tokens[i + 2].is_word("ZONE")
        ):
            parts.extend(tok.value for tok in tokens[i : i + 3])
            i += 3
        elif t.kind == TokenKind.LPAREN:
            # size/precision is consumed but not used
            size, i = _paren_group(tokens, i, source)
            parts[-1] += f"({size.strip()})"
        elif t.kind == TokenKind.SYMBOL and t.text in ("[", "]"):
            i += 1
        else:
            break
    return " ".join(parts), i


def parse_column(tokens: Sequence[Token], source: str) -> Optional[Column]:
    """Parse `<name> <type>[(size)] [constraints...]`; None when not a column."""
    if not tokens or not tokens[0].is_name:
        return None
    name = tokens[0].value
    i = 1
    raw_type = ""
    if i < len(tokens):
        raw_type, i = _read_type(tokens, i, source)

    not_null = unique = primary_key = False
    allowed: Tuple[str, ...] = ()
    fk: Optional[ForeignKey] = None
    n = len(tokens)
    while i < n:
        t = tokens[i]
        nxt = tokens[i + 1] if i + 1 < n else None
        if t.kind == TokenKind.LPAREN:
            # DEFAULT (...), generated expressions and similar are opaque
            _, i = _paren_group(tokens, i, source)
            continue
        if t.is_word("NOT") and nxt is not None and nxt.is_word("NULL"):
            not_null = True
            i += 2
            continue
        if t.is_word("PRIMARY") and nxt is not None and nxt.is_word("KEY"):
            primary_key = True
            i += 2
            continue
        if t.is_word("UNIQUE"):
            unique = True
        elif t.is_word("CHECK") and nxt is not None and nxt.kind == TokenKind.LPAREN:
            text, i = _paren_group(tokens, i + 1, source)
            enum = parse_enum_check(text)
            if enum:
                allowed = enum[1]
            continue
        elif t.is_word("REFERENCES"):
            table, cols, i = _references(tokens, i, source)
            if table:
                fk = ForeignKey(table, cols[0] if cols else DEFAULT_REFERENCED_COLUMN)
            continue
        i += 1

    return Column(
        name=name,
        type=normalize_type(raw_type),
        not_null=not_null,
        unique=unique,
        primary_key=primary_key,
        allowed_values=allowed,
        foreign_key=fk,
        raw_type=raw_type,
    )


# ---------------------------------------------------------------------------
# Table-level constraints
# ---------------------------------------------------------------------------


def is_table_constraint(tokens: Sequence[Token]) -> bool:
    first = tokens[0]
    second = tokens[1] if len(tokens) > 1 else None
    if first.is_word("CONSTRAINT") or first.is_word(*_IGNORED_LEADING_WORDS):
        return True
    if first.is_word("PRIMARY", "FOREIGN"):
        return second is not None and second.is_word("KEY")
    if first.is_word("UNIQUE", "CHECK"):
        return second is None or second.kind == TokenKind.LPAREN or second.is_word(*_INDEX_WORDS)
    if first.is_word(*_INDEX_WORDS):
        if second is None or second.kind == TokenKind.LPAREN or second.is_word(*_INDEX_WORDS):
            return True
        third = tokens[2] if len(tokens) > 2 else None
        return (
            third is not None
            and third.kind == TokenKind.LPAREN
            and match_type(second.value) is None
        )
    return False


def _group_after(
    tokens: Sequence[Token], i: int, source: str
) -> Tuple[Optional[str], int]:
    """Skip words until the next '(' and return its inner text."""
    while i < len(tokens) and tokens[i].kind != TokenKind.LPAREN:
        if not tokens[i].is_name:
            return None, i
        i += 1
    if i >= len(tokens):
        return None, i
    return _paren_group(tokens, i, source)


def apply_table_constraint(
    table: ParsedTable, tokens: Sequence[Token], source: str
) -> bool:
    """Apply one table-level clause; False when its shape is unsupported."""
    i = 0
    if tokens[0].is_word("CONSTRAINT"):
        i = 2
    if i >= len(tokens):
        return False
    head = tokens[i]
    second = tokens[i + 1] if i + 1 < len(tokens) else None

    if head.is_word("PRIMARY") and second is not None and second.is_word("KEY"):
        text, _ = _group_after(tokens, i + 2, source)
        if text is None:
            return False
        for name in _name_list(text):
            if not table.update(name, primary_key=True):
                skip_unsupported(table, f"primary key column {name!r} not found")
        return True

    if head.is_word("FOREIGN") and second is not None and second.is_word("KEY"):
        text, j = _group_after(tokens, i + 2, source)
        if text is None or j >= len(tokens) or not tokens[j].is_word("REFERENCES"):
            return False
        target, target_cols, _ = _references(tokens, j, source)
        if not target:
            return False
        for k, name in enumerate(_name_list(text)):
            ref_col = target_cols[k] if k < len(target_cols) else DEFAULT_REFERENCED_COLUMN
            if not table.update(name, foreign_key=ForeignKey(target, ref_col)):
                skip_unsupported(table, f"foreign key column {name!r} not found")
        return True

    if head.is_word("UNIQUE"):
        text, _ = _group_after(tokens, i + 1, source)
        if text is None:
            return False
        names = _name_list(text)
        if len(names) == 1:
            if not table.update(names[0], unique=True):
                skip_unsupported(table, f"unique column {names[0]!r} not found")
        else:
            skip_unsupported(table, f"composite unique ({', '.join(names)}) ignored")
        return True

    if head.is_word("CHECK") and second is not None and second.kind == TokenKind.LPAREN:
        text, _ = _paren_group(tokens, i + 1, source)
        enum = parse_enum_check(text)
        if enum is None:
            # only simple enumerations are understood
            return False
        col, values = enum
        if not table.update(col, allowed_values=values):
            skip_unsupported(table, f"check column {col!r} not found")
        return True

    return False


# ---------------------------------------------------------------------------
# Entry points
# ---------------------------------------------------------------------------


def parse_declaration(decl: Declaration) -> ParsedTable:
    table = ParsedTable(name=decl.name, truncated=decl.truncated)
    for clause in split_top_level(decl.body):
        tokens = tokenize(clause)
        if not tokens:
            continue
        if is_table_constraint(tokens):
            if not apply_table_constraint(table, tokens, clause):
                skip_unsupported(table, f"unsupported clause skipped: {clause[:80]}")
            continue
        col = parse_column(tokens, clause)
        if col is None:
            skip_unsupported(table, f"unrecognized clause skipped: {clause[:80]}")
            continue
        if table.index(col.name) != -1:
            table.note(
                ErrorCode.SCHEMA_DUPLICATE_COLUMN,
                f"duplicate column {col.name!r} ignored",
            )
            continue
        table.columns.append(col)
    return table


def parse_tables(text: str | None) -> List[ParsedTable]:
    """Normalize, split and parse every CREATE TABLE in `text`."""
    normalized = normalize_sql(text)
    return [parse_declaration(d) for d in split_declarations(normalized)]
