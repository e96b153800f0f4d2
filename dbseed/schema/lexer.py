from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import List


class TokenKind(str, Enum):
    WORD = "word"  # bare identifier or keyword
    QUOTED = "quoted"  # "identifier" or `identifier`
    STRING = "string"  # 'literal'
    NUMBER = "number"
    LPAREN = "lparen"
    RPAREN = "rparen"
    COMMA = "comma"
    DOT = "dot"
    SYMBOL = "symbol"


_TOKEN_RE = re.compile(
    r"""
      (?P<ws>\s+)
    | (?P<string>'(?:[^']|'')*'?)
    | (?P<quoted>"(?:[^"]|"")*"?|`[^`]*`?)
    | (?P<number>\d+(?:\.\d+)?)
    | (?P<word>[A-Za-z_][A-Za-z0-9_$]*)
    | (?P<lparen>\()
    | (?P<rparen>\))
    | (?P<comma>,)
    | (?P<dot>\.)
    | (?P<symbol>\S)
    """,
    re.VERBOSE,
)


@dataclass(frozen=True)
class Token:
    kind: TokenKind
    text: str
    value: str
    pos: int = 0

    @property
    def end(self) -> int:
        return self.pos + len(self.text)

    def is_word(self, *words: str) -> bool:
        return self.kind == TokenKind.WORD and self.value.upper() in words

    @property
    def is_name(self) -> bool:
        """Usable as an identifier (bare or quoted)."""
        return self.kind in (TokenKind.WORD, TokenKind.QUOTED, TokenKind.STRING)


def _unquote(text: str) -> str:
    q = text[0]
    inner = text[1:-1] if len(text) > 1 and text.endswith(q) else text[1:]
    return inner if q == "`" else inner.replace(q * 2, q)


def tokenize(text: str) -> List[Token]:
    """Split one declarative clause into tokens; whitespace is dropped."""
    tokens: List[Token] = []
    for m in _TOKEN_RE.finditer(text or ""):
        kind = m.lastgroup
        raw = m.group()
        if kind == "ws":
            continue
        if kind in ("string", "quoted"):
            value = _unquote(raw)
        else:
            value = raw
        tokens.append(Token(TokenKind(kind), raw, value, m.start()))
    return tokens
