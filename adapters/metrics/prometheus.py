from __future__ import annotations

from prometheus_client import Counter, Histogram

from adapters.metrics.base import Metrics, RowOutcome, SeedStatus
from dbseed.prom import REGISTRY

# -----------------------------------------------------------------------------
# Stage-level metrics
# -----------------------------------------------------------------------------
stage_duration_ms = Histogram(
    "dbseed_stage_duration_ms",
    "Duration (ms) of each seed stage",
    ["stage"],  # generator|validator|inserter|references
    buckets=(1, 5, 10, 50, 100, 500, 1000, 5000, 10000, 30000, 60000, 120000),
    registry=REGISTRY,
)

stage_calls_total = Counter(
    "dbseed_stage_calls_total",
    "Count of stage calls labeled by stage and ok",
    ["stage", "ok"],
    registry=REGISTRY,
)

stage_errors_total = Counter(
    "dbseed_stage_errors_total",
    "Count of stage errors labeled by stage and error_code",
    ["stage", "error_code"],
    registry=REGISTRY,
)

# -----------------------------------------------------------------------------
# Recovery / row metrics
# -----------------------------------------------------------------------------
recovery_repairs_total = Counter(
    "dbseed_recovery_repairs_total",
    "Repairs applied while recovering model output",
    ["kind"],  # trailing_separator|truncated_tail
    registry=REGISTRY,
)

rows_total = Counter(
    "dbseed_rows_total",
    "Rows per table labeled by outcome",
    ["table", "outcome"],
    registry=REGISTRY,
)

# -----------------------------------------------------------------------------
# Run-level metrics
# -----------------------------------------------------------------------------
seed_runs_total = Counter(
    "dbseed_seed_runs_total",
    "Total number of seed runs",
    ["status"],
    registry=REGISTRY,
)


class PrometheusMetrics(Metrics):
    def observe_stage_duration_ms(self, *, stage: str, dt_ms: float) -> None:
        stage_duration_ms.labels(stage=stage).observe(float(dt_ms))

    def inc_seed_run(self, *, status: SeedStatus) -> None:
        seed_runs_total.labels(status=status).inc()

    def inc_stage_call(self, *, stage: str, ok: bool) -> None:
        stage_calls_total.labels(stage=stage, ok=("true" if ok else "false")).inc()

    def inc_stage_error(self, *, stage: str, error_code: str) -> None:
        stage_errors_total.labels(stage=stage, error_code=str(error_code)).inc()

    def inc_recovery_repair(self, *, kind: str) -> None:
        recovery_repairs_total.labels(kind=kind).inc()

    def add_rows(self, *, table: str, outcome: RowOutcome, count: int) -> None:
        rows_total.labels(table=table, outcome=outcome).inc(count)


# -----------------------------------------------------------------------------
# Label priming to keep the exported series stable
# -----------------------------------------------------------------------------
for status in ("ok", "partial", "error"):
    seed_runs_total.labels(status=status).inc(0)

for stage in ("generator", "validator", "inserter"):
    for ok in ("true", "false"):
        stage_calls_total.labels(stage=stage, ok=ok).inc(0)

for kind in ("trailing_separator", "truncated_tail"):
    recovery_repairs_total.labels(kind=kind).inc(0)
