from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List


# NOTE:
# These are *prompt contracts* for the row generator. The builder renders
# GeneratorPromptInput; the model answers with a JSON array of records.


class Style(str, Enum):
    REALISTIC = "realistic"
    MINIMAL = "minimal"
    EDGE_CASES = "edge-cases"

    @classmethod
    def parse(cls, value: "str | Style") -> "Style":
        try:
            return cls(value)
        except ValueError:
            allowed = ", ".join(s.value for s in cls)
            raise ValueError(f"unknown style {value!r} (expected one of: {allowed})")


@dataclass(frozen=True)
class GeneratorPromptInput:
    table: str
    rows: int
    style: Style = Style.REALISTIC
    # column name -> existing values of the referenced column
    reference_values: Dict[str, List[Any]] = field(default_factory=dict)
