from __future__ import annotations

import logging
import time
import traceback
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from adapters.db.base import DBAdapter
from adapters.metrics.base import Metrics
from adapters.metrics.noop import NoOpMetrics
from dbseed.errors.codes import ErrorCode
from dbseed.generator import Generator
from dbseed.inserter import Inserter
from dbseed.prompts.contracts import Style
from dbseed.schema.types import Schema, SchemaWarning, Table
from dbseed.stubs import NoOpInserter, NoOpValidator
from dbseed.types import RecordCollection, StageResult
from dbseed.validator import Validator

log = logging.getLogger(__name__)

DEFAULT_REFERENCE_LIMIT = 1000


@dataclass(frozen=True)
class TableOutcome:
    table: str
    ok: bool
    generated: int = 0
    inserted: int = 0
    rejected: int = 0
    repairs: Tuple[str, ...] = ()
    records: Optional[RecordCollection] = None
    traces: List[dict] = field(default_factory=list)

    error: Optional[List[str]] = None
    error_code: Optional[ErrorCode] = None
    retryable: Optional[bool] = None


@dataclass(frozen=True)
class SeedReport:
    ok: bool
    outcomes: List[TableOutcome]
    insert_order: Tuple[str, ...]
    warnings: Tuple[SchemaWarning, ...] = ()
    dry_run: bool = False
    duration_ms: float = 0.0

    @property
    def status(self) -> str:
        if self.ok:
            return "ok"
        if any(o.ok for o in self.outcomes):
            return "partial"
        return "error"

    @property
    def failed(self) -> List[TableOutcome]:
        return [o for o in self.outcomes if not o.ok]

    @property
    def total_generated(self) -> int:
        return sum(o.generated for o in self.outcomes)

    @property
    def total_inserted(self) -> int:
        return sum(o.inserted for o in self.outcomes)


ProgressCallback = Callable[[TableOutcome], None]


class SeedPipeline:
    """
    Seed pipeline, one table at a time in insert order:
      references → generator → validator → inserter.

    A failing table is reported and the run moves on to the next one.
    """

    def __init__(
        self,
        *,
        schema: Schema,
        generator: Generator,
        validator: Optional[Validator] = None,
        db: Optional[DBAdapter] = None,
        inserter: Optional[Inserter] = None,
        metrics: Metrics | None = None,
        style: "Style | str" = Style.REALISTIC,
        reference_limit: int = DEFAULT_REFERENCE_LIMIT,
        on_progress: Optional[ProgressCallback] = None,
    ):
        self.schema = schema
        self.generator = generator
        self.validator = validator or NoOpValidator()
        self.db = db
        if inserter is None and db is not None:
            inserter = Inserter(db)
        self.inserter = inserter
        self.metrics: Metrics = metrics or NoOpMetrics()
        self.style = Style.parse(style)
        self.reference_limit = reference_limit
        self.on_progress = on_progress
        # rows produced during this pipeline's lifetime, by table
        self._generated: Dict[str, RecordCollection] = {}

    # ---------------------------- helpers ----------------------------
    @staticmethod
    def _safe_stage(fn, **kwargs) -> StageResult:
        try:
            r = fn(**kwargs)
            if isinstance(r, StageResult):
                return r
            return StageResult(ok=True, data=r, trace=None)
        except Exception as e:
            tb = traceback.format_exc()
            return StageResult(
                ok=False,
                error=[f"{e}", tb],
                error_code=ErrorCode.PIPELINE_CRASH,
                retryable=False,
            )

    def _run_stage(
        self, stage_name: str, fn, traces: List[dict], **kwargs
    ) -> StageResult:
        t0 = time.perf_counter()
        r = self._safe_stage(fn, **kwargs)
        dt = (time.perf_counter() - t0) * 1000.0

        self.metrics.observe_stage_duration_ms(stage=stage_name, dt_ms=dt)
        self.metrics.inc_stage_call(stage=stage_name, ok=r.ok)
        if not r.ok and r.error_code is not None:
            self.metrics.inc_stage_error(stage=stage_name, error_code=r.error_code.value)

        if r.trace is not None:
            traces.append(r.trace.__dict__)
        else:
            traces.append(
                {
                    "stage": stage_name,
                    "duration_ms": dt,
                    "summary": "ok" if r.ok else "failed",
                    "notes": {},
                }
            )
        return r

    def _select(self, tables: Optional[Sequence[str]]) -> List[Table]:
        if not tables:
            return self.schema.ordered_tables()
        wanted = {self.schema.get(name).name for name in tables}
        return [t for t in self.schema.ordered_tables() if t.name in wanted]

    def reference_values(self, table: Table, *, dry_run: bool = False) -> Dict[str, List[Any]]:
        """
        Known values for each foreign-key column of `table`.

        Read from the database when one is attached; in a dry run, from rows
        generated earlier in this pipeline instead.
        """
        out: Dict[str, List[Any]] = {}
        for col in table.foreign_key_columns():
            fk = col.foreign_key
            if fk is None:
                continue
            values: List[Any] = []
            if self.db is not None and not dry_run:
                try:
                    values = self.db.fetch_column_values(
                        fk.table, fk.column, self.reference_limit
                    )
                except Exception as e:
                    log.warning("could not read %s values for %s: %s", fk, table.name, e)
            if not values and fk.table in self._generated:
                prior = self._generated[fk.table]
                values = [
                    r[fk.column] for r in prior.rows if r.get(fk.column) is not None
                ][: self.reference_limit]
            if values:
                out[col.name] = values
        return out

    def _finish(self, outcome: TableOutcome) -> TableOutcome:
        if outcome.ok:
            log.info(
                "%s: generated=%d inserted=%d", outcome.table, outcome.generated, outcome.inserted
            )
        else:
            log.warning(
                "%s failed (%s): %s",
                outcome.table,
                outcome.error_code.value if outcome.error_code else "unknown",
                (outcome.error or [""])[0],
            )
        if self.on_progress is not None:
            self.on_progress(outcome)
        return outcome

    @staticmethod
    def _failed(table: Table, r: StageResult, traces: List[dict], **counts) -> TableOutcome:
        return TableOutcome(
            table=table.name,
            ok=False,
            traces=traces,
            error=r.error,
            error_code=r.error_code,
            retryable=r.retryable,
            **counts,
        )

    # ---------------------------- per table ----------------------------
    def run_table(
        self,
        name: str,
        rows: int,
        *,
        dry_run: bool = False,
        validator: Optional[Validator] = None,
    ) -> TableOutcome:
        """Generate, check and insert rows for a single table."""
        table = self.schema.get(name)
        traces: List[dict] = []
        refs = self.reference_values(table, dry_run=dry_run)

        # --- 1) generator ---
        r_gen = self._run_stage(
            "generator",
            self.generator.run,
            traces,
            table=table,
            rows=rows,
            style=self.style,
            reference_values=refs,
        )
        if not r_gen.ok:
            return self._finish(self._failed(table, r_gen, traces))
        records: RecordCollection = r_gen.data
        repairs = tuple((r_gen.trace.repairs or []) if r_gen.trace else [])
        for kind in repairs:
            self.metrics.inc_recovery_repair(kind=kind)
        self.metrics.add_rows(table=table.name, outcome="generated", count=len(records))

        # --- 2) validator ---
        check = validator or self.validator
        r_val = self._run_stage(
            "validator",
            check.run,
            traces,
            table=table,
            records=records,
            reference_values=refs,
        )
        kept: RecordCollection = r_val.data if r_val.data is not None else records
        rejected = len(records) - len(kept)
        if rejected:
            self.metrics.add_rows(table=table.name, outcome="rejected", count=rejected)
        if not r_val.ok:
            return self._finish(
                self._failed(
                    table,
                    r_val,
                    traces,
                    generated=len(records),
                    rejected=rejected,
                    repairs=repairs,
                    records=records,
                )
            )

        # --- 3) inserter ---
        inserter = NoOpInserter() if dry_run or self.inserter is None else self.inserter
        r_ins = self._run_stage("inserter", inserter.run, traces, records=kept)
        inserted = int((r_ins.data or {}).get("inserted", 0))
        if inserted:
            self.metrics.add_rows(table=table.name, outcome="inserted", count=inserted)
        if not r_ins.ok:
            return self._finish(
                self._failed(
                    table,
                    r_ins,
                    traces,
                    generated=len(records),
                    inserted=inserted,
                    rejected=rejected,
                    repairs=repairs,
                    records=kept,
                )
            )

        self._generated[table.name] = kept
        return self._finish(
            TableOutcome(
                table=table.name,
                ok=True,
                generated=len(records),
                inserted=inserted,
                rejected=rejected,
                repairs=repairs,
                records=kept,
                traces=traces,
            )
        )

    # ---------------------------- whole schema ----------------------------
    def run(
        self,
        rows: int,
        tables: Optional[Sequence[str]] = None,
        dry_run: bool = False,
    ) -> SeedReport:
        return self._run_all(rows, tables, dry_run=dry_run, validator=None)

    def validate(self, rows: int, tables: Optional[Sequence[str]] = None) -> SeedReport:
        """Generate sample rows and check them strictly; nothing is inserted."""
        return self._run_all(rows, tables, dry_run=True, validator=Validator())

    def _run_all(
        self,
        rows: int,
        tables: Optional[Sequence[str]],
        *,
        dry_run: bool,
        validator: Optional[Validator],
    ) -> SeedReport:
        t0 = time.perf_counter()
        selected = self._select(tables)
        outcomes = [
            self.run_table(t.name, rows, dry_run=dry_run, validator=validator)
            for t in selected
        ]
        report = SeedReport(
            ok=all(o.ok for o in outcomes),
            outcomes=outcomes,
            insert_order=tuple(t.name for t in selected),
            warnings=self.schema.warnings,
            dry_run=dry_run,
            duration_ms=(time.perf_counter() - t0) * 1000.0,
        )
        self.metrics.inc_seed_run(status=report.status)  # type: ignore[arg-type]
        return report
