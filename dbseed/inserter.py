from __future__ import annotations

import logging
import time

from adapters.db.base import DBAdapter
from dbseed.errors.codes import ErrorCode
from dbseed.errors.mapper import is_retryable
from dbseed.types import RecordCollection, StageResult, StageTrace

log = logging.getLogger(__name__)

DEFAULT_BATCH_SIZE = 500


class Inserter:
    name = "inserter"

    def __init__(self, db: DBAdapter, *, batch_size: int = DEFAULT_BATCH_SIZE):
        if batch_size <= 0:
            raise ValueError("batch_size must be positive")
        self.db = db
        self.batch_size = batch_size

    def run(self, records: RecordCollection) -> StageResult:
        t0 = time.perf_counter()
        inserted = 0
        batches = 0
        for batch in records.batches(self.batch_size):
            try:
                inserted += self.db.insert_rows(
                    batch.table, batch.columns, list(batch.values())
                )
            except Exception as e:
                # earlier batches are already committed
                code = ErrorCode.DB_INSERT_FAILED
                trace = StageTrace(
                    stage=self.name,
                    duration_ms=(time.perf_counter() - t0) * 1000,
                    summary="failed",
                    notes={
                        "error": str(e),
                        "error_type": type(e).__name__,
                        "batch": batches + 1,
                    },
                    table=records.table,
                    row_count=inserted,
                )
                return StageResult(
                    ok=False,
                    data={"inserted": inserted},
                    trace=trace,
                    error=[f"insert into {records.table} failed at batch {batches + 1}: {e}"],
                    error_code=code,
                    retryable=is_retryable(code),
                )
            batches += 1

        log.info("%s: inserted %d rows in %d batches", records.table, inserted, batches)
        trace = StageTrace(
            stage=self.name,
            duration_ms=(time.perf_counter() - t0) * 1000,
            summary="ok",
            notes={"batches": batches, "batch_size": self.batch_size},
            table=records.table,
            row_count=inserted,
        )
        return StageResult(ok=True, data={"inserted": inserted}, trace=trace)
