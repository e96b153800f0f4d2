from __future__ import annotations

import logging
import time
from typing import Any, Dict, List, Optional

from adapters.llm.base import LLMProvider
from dbseed.errors.codes import ErrorCode
from dbseed.errors.exceptions import RecoveryError, preview
from dbseed.errors.mapper import is_retryable
from dbseed.prompts.builder import build_prompt
from dbseed.prompts.contracts import Style
from dbseed.recovery import THINK_CLOSE, THINK_OPEN, recover_records
from dbseed.schema.types import Table
from dbseed.types import RecordCollection, StageResult, StageTrace

log = logging.getLogger(__name__)


class Generator:
    name = "generator"

    def __init__(
        self,
        llm: LLMProvider,
        *,
        think_open: str = THINK_OPEN,
        think_close: str = THINK_CLOSE,
    ) -> None:
        self.llm = llm
        self.think_open = think_open
        self.think_close = think_close

    def _fail(
        self, t0: float, table: Table, code: ErrorCode, message: str
    ) -> StageResult:
        trace = StageTrace(
            stage=self.name,
            duration_ms=(time.perf_counter() - t0) * 1000.0,
            summary="failed",
            table=table.name,
        )
        return StageResult(
            ok=False,
            trace=trace,
            error=[message],
            error_code=code,
            retryable=is_retryable(code),
        )

    def run(
        self,
        *,
        table: Table,
        rows: int,
        style: "Style | str" = Style.REALISTIC,
        reference_values: Optional[Dict[str, List[Any]]] = None,
    ) -> StageResult:
        t0 = time.perf_counter()
        prompt = build_prompt(table, rows, style, reference_values)

        try:
            res = self.llm.generate_rows(prompt=prompt)
        except TimeoutError as e:
            return self._fail(t0, table, ErrorCode.LLM_TIMEOUT, f"Generator timed out: {e}")
        except ConnectionError as e:
            return self._fail(
                t0, table, ErrorCode.LLM_UNAVAILABLE, f"Generator failed: {e}"
            )
        except Exception as e:
            # Provider errors or unexpected runtime issues.
            return self._fail(t0, table, ErrorCode.LLM_BAD_OUTPUT, f"Generator failed: {e}")

        # Contract: expect a 4-tuple (text, token_in, token_out, cost_usd)
        if not isinstance(res, tuple) or len(res) != 4:
            return self._fail(
                t0,
                table,
                ErrorCode.LLM_BAD_OUTPUT,
                "Generator contract violation: expected 4-tuple (text, t_in, t_out, cost)",
            )
        text, t_in, t_out, cost = res
        log.debug("raw output for %s: %s", table.name, preview(text))

        try:
            recovered = recover_records(
                text, open_marker=self.think_open, close_marker=self.think_close
            )
        except RecoveryError as e:
            return self._fail(t0, table, e.code, f"{table.name}: {e}")

        records = RecordCollection(
            table=table.name, columns=table.column_names(), rows=recovered.records
        )
        if len(records) != rows:
            log.info(
                "%s: requested %d rows, model returned %d", table.name, rows, len(records)
            )
        trace = StageTrace(
            stage=self.name,
            duration_ms=(time.perf_counter() - t0) * 1000.0,
            summary="ok",
            notes={"requested": rows, "prompt_length": len(prompt)},
            token_in=t_in,
            token_out=t_out,
            cost_usd=cost,
            table=table.name,
            row_count=len(records),
            repairs=list(recovered.repairs),
        )
        return StageResult(ok=True, data=records, trace=trace)
