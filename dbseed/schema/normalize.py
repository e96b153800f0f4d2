from __future__ import annotations

import re
from typing import Iterator, List, Tuple

_QUOTES = ("'", '"', "`")
_BLOCK_COMMENT_RE = re.compile(r"/\*.*?\*/", re.DOTALL)


def iter_unquoted(text: str) -> Iterator[Tuple[int, str]]:
    """
    Yield (index, char) for every character outside a quoted literal.

    Quotes are ', " and `; a doubled quote inside a literal is an escape.
    An unterminated literal swallows the rest of the text.
    """
    quote = ""
    i, n = 0, len(text)
    while i < n:
        ch = text[i]
        if quote:
            if ch == quote:
                if i + 1 < n and text[i + 1] == quote:
                    i += 2
                    continue
                quote = ""
            i += 1
            continue
        if ch in _QUOTES:
            quote = ch
        else:
            yield i, ch
        i += 1


def split_top_level(text: str, sep: str = ",") -> List[str]:
    """
    Split on `sep` where it is not nested inside parentheses or quotes.

    Parts are stripped; empty parts are dropped.
    """
    parts: List[str] = []
    depth = 0
    start = 0
    for i, ch in iter_unquoted(text):
        if ch == "(":
            depth += 1
        elif ch == ")":
            depth -= 1
        elif ch == sep and depth == 0:
            parts.append(text[start:i])
            start = i + 1
    parts.append(text[start:])
    return [p.strip() for p in parts if p.strip()]


def extract_paren_block(text: str) -> Tuple[str, bool]:
    """
    Return (body, balanced) for the first parenthesized block in `text`.

    The body excludes the outer parentheses. When the block never closes the
    remainder after the opening parenthesis is returned with balanced=False.
    """
    start = -1
    depth = 0
    for i, ch in iter_unquoted(text):
        if ch == "(":
            if start == -1:
                start = i
            depth += 1
        elif ch == ")" and start != -1:
            depth -= 1
            if depth == 0:
                return text[start + 1 : i], True
    if start == -1:
        return "", False
    return text[start + 1 :], False


def _strip_line_comment(line: str) -> str:
    for i, ch in iter_unquoted(line):
        if ch == "-" and i > 0 and line[i - 1] == "-":
            return line[: i - 1]
    return line


def normalize_sql(text: str | None) -> str:
    """
    Collapse declarative SQL into one logical line.

    Comment-only and blank lines are dropped, trailing `--` comments and
    /* block */ comments are removed, and the remaining lines are joined by
    single spaces.
    """
    if not text:
        return ""
    text = _BLOCK_COMMENT_RE.sub(" ", text)
    lines: List[str] = []
    for raw in text.splitlines():
        line = raw.strip()
        if not line or line.startswith("--"):
            continue
        line = _strip_line_comment(line).strip()
        if line:
            lines.append(line)
    return " ".join(lines)
