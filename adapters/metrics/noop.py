from __future__ import annotations

from adapters.metrics.base import Metrics, RowOutcome, SeedStatus


class NoOpMetrics(Metrics):
    def observe_stage_duration_ms(self, *, stage: str, dt_ms: float) -> None:
        return

    def inc_seed_run(self, *, status: SeedStatus) -> None:
        return

    def inc_stage_call(self, *, stage: str, ok: bool) -> None:
        return

    def inc_stage_error(self, *, stage: str, error_code: str) -> None:
        return

    def inc_recovery_repair(self, *, kind: str) -> None:
        return

    def add_rows(self, *, table: str, outcome: RowOutcome, count: int) -> None:
        return
