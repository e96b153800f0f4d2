from __future__ import annotations

import json
import time
from typing import Any, Dict, List, Mapping, Optional, Sequence, Set, Tuple

from dbseed.errors.codes import ErrorCode
from dbseed.errors.mapper import is_retryable
from dbseed.schema.types import Column, Table
from dbseed.types import RecordCollection, StageResult, StageTrace

# (row number counted from 1, message)
Violation = Tuple[int, str]


def _key(value: Any) -> str:
    return json.dumps(value, sort_keys=True, default=str)


class Validator:
    """
    Check generated rows against the table's declared constraints.

    Checks NOT NULL, allowed values, uniqueness within the collection and,
    when a pool of existing values is known, foreign-key membership. Messages
    read "row N: ...".

    With `drop_invalid=True` offending rows are removed and the stage only
    fails when no row survives; otherwise any violation fails the stage.
    """

    name = "validator"

    def __init__(self, *, drop_invalid: bool = False) -> None:
        self.drop_invalid = drop_invalid

    def violations(
        self,
        table: Table,
        records: RecordCollection,
        reference_values: Optional[Mapping[str, Sequence[Any]]] = None,
    ) -> List[Violation]:
        refs = reference_values or {}
        pools: Dict[str, Set[str]] = {
            col: {str(v) for v in values} for col, values in refs.items() if values
        }
        seen: Dict[str, Set[str]] = {}
        out: List[Violation] = []

        for n, row in enumerate(records.rows, start=1):
            for col in table.non_auto_columns():
                out.extend((n, msg) for msg in self._check_value(col, row, pools, seen))
        return out

    def check(
        self,
        table: Table,
        records: RecordCollection,
        reference_values: Optional[Mapping[str, Sequence[Any]]] = None,
    ) -> List[str]:
        return [
            f"row {n}: {msg}"
            for n, msg in self.violations(table, records, reference_values)
        ]

    @staticmethod
    def _check_value(
        col: Column,
        row: Mapping[str, Any],
        pools: Mapping[str, Set[str]],
        seen: Dict[str, Set[str]],
    ) -> List[str]:
        value = row.get(col.name)
        if value is None:
            if col.not_null or col.primary_key:
                return [f"{col.name} is required but missing or null"]
            return []

        out: List[str] = []
        if col.allowed_values and str(value) not in col.allowed_values:
            out.append(
                f"{col.name}={value!r} not in allowed values {list(col.allowed_values)}"
            )
        if col.unique or col.primary_key:
            bucket = seen.setdefault(col.name, set())
            k = _key(value)
            if k in bucket:
                out.append(f"{col.name}={value!r} is duplicated")
            bucket.add(k)
        pool = pools.get(col.name)
        if col.foreign_key is not None and pool and str(value) not in pool:
            out.append(f"{col.name}={value!r} not found in {col.foreign_key}")
        return out

    def run(
        self,
        *,
        table: Table,
        records: RecordCollection,
        reference_values: Optional[Mapping[str, Sequence[Any]]] = None,
    ) -> StageResult:
        t0 = time.perf_counter()
        found = self.violations(table, records, reference_values)
        problems = [f"row {n}: {msg}" for n, msg in found]

        kept = records
        if self.drop_invalid and found:
            bad = {n for n, _ in found}
            kept = RecordCollection(
                table=records.table,
                columns=records.columns,
                rows=[r for n, r in enumerate(records.rows, start=1) if n not in bad],
            )

        ok = not problems or (self.drop_invalid and len(kept) > 0)
        rejected = len(records) - len(kept)
        trace = StageTrace(
            stage=self.name,
            duration_ms=(time.perf_counter() - t0) * 1000.0,
            summary="ok" if not problems else f"{len(problems)} violations",
            notes={"rejected": rejected, "violations": problems} if problems else None,
            table=table.name,
            row_count=len(kept),
        )
        if ok:
            return StageResult(ok=True, data=kept, trace=trace)
        code = ErrorCode.VALIDATION_FAILED
        return StageResult(
            ok=False,
            data=kept,
            trace=trace,
            error=problems,
            error_code=code,
            retryable=is_retryable(code),
        )
