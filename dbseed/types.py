from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional, Tuple

from dbseed.errors.codes import ErrorCode


# =====================
# Tracing / Observability
# =====================


@dataclass(frozen=True)
class StageTrace:
    stage: str
    duration_ms: float
    summary: str = ""
    notes: Optional[Dict[str, Any]] = None

    # Optional observability fields
    token_in: Optional[int] = None
    token_out: Optional[int] = None
    cost_usd: Optional[float] = None

    # Enriched / debug-only fields
    table: Optional[str] = None
    row_count: Optional[int] = None
    repairs: Optional[List[str]] = None
    skipped: bool = False


# =====================
# Stage-level contract
# =====================


@dataclass(frozen=True)
class StageResult:
    ok: bool

    data: Optional[Any] = None
    trace: Optional[StageTrace] = None

    # Human-readable error messages (debug / UI only)
    error: Optional[List[str]] = None

    # === Contract-level semantics ===
    error_code: Optional[ErrorCode] = None
    retryable: Optional[bool] = None

    # Free-form notes (internal use)
    notes: Optional[Dict[str, Any]] = None


# =====================
# Generated rows
# =====================


@dataclass(frozen=True)
class RecordCollection:
    """
    Rows recovered for one table, ready for a parameterized multi-row insert.

    `columns` is the originating table's non-auto column order; `rows` keeps
    the decoded mappings untouched (no coercion).
    """

    table: str
    columns: Tuple[str, ...]
    rows: List[Dict[str, Any]] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.rows)

    def values(self) -> Iterator[Tuple[Any, ...]]:
        """One tuple per row in column order; missing keys become None."""
        for row in self.rows:
            yield tuple(row.get(c) for c in self.columns)

    def batches(self, size: int) -> Iterator["RecordCollection"]:
        if size <= 0:
            raise ValueError("batch size must be positive")
        for i in range(0, len(self.rows), size):
            yield RecordCollection(
                table=self.table, columns=self.columns, rows=self.rows[i : i + size]
            )
