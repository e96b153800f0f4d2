"""Terminal output for the CLI: status lines on stderr, row tables on stdout."""

from __future__ import annotations

import sys
from typing import Any, List, Mapping, Sequence, TextIO

CELL_CHARS = 30
MAX_WIDTH = 40


def _line(mark: str, msg: str, stream: TextIO | None) -> None:
    print(f"  {mark} {msg}", file=stream or sys.stderr)


def ok(msg: str, stream: TextIO | None = None) -> None:
    _line("✓", msg, stream)


def warn(msg: str, stream: TextIO | None = None) -> None:
    _line("⚠", msg, stream)


def err(msg: str, stream: TextIO | None = None) -> None:
    _line("✗", msg, stream)


def _cell(value: Any) -> str:
    s = "NULL" if value is None else str(value)
    if len(s) > CELL_CHARS:
        s = s[: CELL_CHARS - 3] + "..."
    return s


def render_table(columns: Sequence[str], rows: Sequence[Mapping[str, Any]]) -> str:
    """ASCII table of `rows`; long cells are cut to 30 characters."""
    if not rows or not columns:
        return ""
    cells: List[List[str]] = [[_cell(r.get(c)) for c in columns] for r in rows]
    widths = [
        min(MAX_WIDTH, max([len(c)] + [len(row[i]) for row in cells]))
        for i, c in enumerate(columns)
    ]
    sep = "+" + "+".join("-" * (w + 2) for w in widths) + "+"

    def fmt(values: Sequence[str]) -> str:
        return "|" + "|".join(f" {v[:w].ljust(w)} " for v, w in zip(values, widths)) + "|"

    lines = [sep, fmt(list(columns)), sep]
    lines.extend(fmt(row) for row in cells)
    lines.append(sep)
    return "\n".join(lines)
