"""
dbseed command line.

    dbseed order schema.sql
    dbseed preview schema.sql --table users --rows 5
    dbseed seed schema.sql --db sqlite:seed.db --rows 50
    dbseed validate schema.sql --rows 10
    dbseed version
"""

from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import replace
from importlib.metadata import PackageNotFoundError, version
from typing import List, Optional, Sequence

from prometheus_client import write_to_textfile

from adapters.metrics.base import Metrics
from adapters.metrics.noop import NoOpMetrics
from adapters.metrics.prometheus import PrometheusMetrics
from app import reporter
from dbseed.errors.codes import ErrorCode
from dbseed.errors.exceptions import TableNotFoundError
from dbseed.errors.mapper import map_error
from dbseed.pipeline import SeedPipeline, SeedReport, TableOutcome
from dbseed.pipeline_factory import SeedConfig, build_pipeline, load_seed_config
from dbseed.prom import REGISTRY
from dbseed.prompts.contracts import Style
from dbseed.schema.builder import load_schema
from dbseed.schema.types import Schema

PREVIEW_ROWS = 5
VALIDATE_ROWS = 10


def _version() -> str:
    try:
        return version("dbseed")
    except PackageNotFoundError:
        return "dev"


def _split_tables(raw: Optional[str]) -> Optional[List[str]]:
    if not raw:
        return None
    return [t.strip() for t in raw.split(",") if t.strip()]


def _print_warnings(schema: Schema) -> None:
    for w in schema.warnings:
        reporter.warn(w.message)


def _exit_code(report: SeedReport) -> int:
    if report.ok:
        return 0
    first = report.failed[0]
    return map_error(first.error_code)[0]


def _on_progress(outcome: TableOutcome) -> None:
    if outcome.ok:
        repaired = f" (repaired: {', '.join(outcome.repairs)})" if outcome.repairs else ""
        rejected = f", {outcome.rejected} rejected" if outcome.rejected else ""
        reporter.ok(
            f"{outcome.table}: {outcome.generated} generated, "
            f"{outcome.inserted} inserted{rejected}{repaired}"
        )
    else:
        code = outcome.error_code.value if outcome.error_code else "error"
        reporter.err(f"{outcome.table}: [{code}] {(outcome.error or [''])[0]}")
        for extra in (outcome.error or [])[1:6]:
            if not extra.startswith("Traceback"):
                reporter.err(f"    {extra}")


def _config(args: argparse.Namespace) -> SeedConfig:
    config = load_seed_config(args.config)
    overrides = {}
    if args.model:
        overrides["model"] = args.model
    if args.llm_url:
        overrides["llm_base_url"] = args.llm_url
    if getattr(args, "style", None):
        overrides["style"] = Style.parse(args.style)
    if getattr(args, "db", None):
        overrides["db"] = args.db
    if getattr(args, "batch_size", None):
        overrides["batch_size"] = args.batch_size
    return replace(config, **overrides) if overrides else config


def _llm_unreachable(pipeline: SeedPipeline) -> Optional[int]:
    """Ping the model endpoint once; the exit code when it is down."""
    try:
        pipeline.generator.llm.ping()
    except Exception as e:
        reporter.err(f"cannot reach LLM: {e}")
        return map_error(ErrorCode.LLM_UNAVAILABLE)[0]
    return None


# ------------------------------ commands ------------------------------ #
def cmd_order(args: argparse.Namespace, metrics: Metrics) -> int:
    schema = load_schema(args.schema)
    for i, name in enumerate(schema.insert_order, start=1):
        deps = schema.depends_on(name)
        suffix = f"  (after {', '.join(deps)})" if deps else ""
        print(f"{i:>3}. {name}{suffix}")
    _print_warnings(schema)
    return 0


def cmd_preview(args: argparse.Namespace, metrics: Metrics) -> int:
    schema = load_schema(args.schema)
    table = schema.get(args.table)
    pipeline = build_pipeline(schema, _config(args), metrics=metrics)
    code = _llm_unreachable(pipeline)
    if code is not None:
        return code
    outcome = pipeline.run_table(table.name, args.rows, dry_run=True)
    if not outcome.ok:
        _on_progress(outcome)
        return map_error(outcome.error_code)[0]
    records = outcome.records
    if records is None or not len(records):
        reporter.warn(f"{table.name}: model returned no rows")
        return 0
    print(reporter.render_table(records.columns, records.rows))
    return 0


def cmd_seed(args: argparse.Namespace, metrics: Metrics) -> int:
    schema = load_schema(args.schema)
    _print_warnings(schema)
    config = _config(args)
    if not config.db and not args.dry_run:
        reporter.err("no database given: pass --db, set DBSEED_DB, or use --dry-run")
        return 2
    rows = args.rows or config.rows
    pipeline = build_pipeline(
        schema,
        replace(config, db="") if args.dry_run else config,
        metrics=metrics,
        on_progress=_on_progress,
    )
    if pipeline.db is not None:
        try:
            pipeline.db.ping()
        except Exception as e:
            reporter.err(f"cannot reach database: {e}")
            return map_error(ErrorCode.DB_UNAVAILABLE)[0]
    code = _llm_unreachable(pipeline)
    if code is not None:
        return code
    report = pipeline.run(rows, tables=_split_tables(args.tables), dry_run=args.dry_run)
    verb = "would insert" if report.dry_run else "inserted"
    total = report.total_generated if report.dry_run else report.total_inserted
    print(
        f"{report.status}: {verb} {total} rows into "
        f"{len(report.outcomes) - len(report.failed)}/{len(report.outcomes)} tables "
        f"in {report.duration_ms / 1000.0:.1f}s"
    )
    return _exit_code(report)


def cmd_validate(args: argparse.Namespace, metrics: Metrics) -> int:
    schema = load_schema(args.schema)
    _print_warnings(schema)
    pipeline = build_pipeline(
        schema, replace(_config(args), db=""), metrics=metrics, on_progress=_on_progress
    )
    code = _llm_unreachable(pipeline)
    if code is not None:
        return code
    report = pipeline.validate(args.rows, tables=_split_tables(args.tables))
    print(f"{report.status}: {len(report.failed)} of {len(report.outcomes)} tables failed")
    return _exit_code(report)


def cmd_version(args: argparse.Namespace, metrics: Metrics) -> int:
    print(f"dbseed {_version()}")
    return 0


# ------------------------------ parser ------------------------------ #
def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="dbseed", description="Generate realistic seed data for a SQL schema"
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: WARNING)",
    )
    parser.add_argument("--config", default=None, help="YAML run configuration")
    parser.add_argument("--model", default=None, help="Override the model name")
    parser.add_argument("--llm-url", default=None, help="OpenAI-compatible base URL")
    parser.add_argument(
        "--metrics-file",
        default=None,
        help="Write Prometheus metrics to this textfile when done",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("order", help="Print the insert order and schema warnings")
    p.add_argument("schema", help="Path to a .sql file with CREATE TABLE statements")
    p.set_defaults(func=cmd_order)

    styles = [s.value for s in Style]

    p = sub.add_parser("preview", help="Generate rows for one table and print them")
    p.add_argument("schema")
    p.add_argument("--table", required=True)
    p.add_argument("--rows", type=int, default=PREVIEW_ROWS)
    p.add_argument("--style", choices=styles, default=None)
    p.set_defaults(func=cmd_preview)

    p = sub.add_parser("seed", help="Generate rows and insert them in dependency order")
    p.add_argument("schema")
    p.add_argument("--db", default=None, help="sqlite:PATH or a PostgreSQL DSN")
    p.add_argument("--rows", type=int, default=None, help="Rows per table")
    p.add_argument("--tables", default=None, help="Comma-separated subset of tables")
    p.add_argument("--style", choices=styles, default=None)
    p.add_argument("--batch-size", type=int, default=None)
    p.add_argument("--dry-run", action="store_true", help="Generate but do not insert")
    p.set_defaults(func=cmd_seed)

    p = sub.add_parser("validate", help="Generate sample rows and check constraints")
    p.add_argument("schema")
    p.add_argument("--rows", type=int, default=VALIDATE_ROWS)
    p.add_argument("--tables", default=None)
    p.add_argument("--style", choices=styles, default=None)
    p.set_defaults(func=cmd_validate)

    p = sub.add_parser("version", help="Print the version")
    p.set_defaults(func=cmd_version)

    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    rows = getattr(args, "rows", None)
    if rows is not None and rows <= 0:
        parser.error("--rows must be positive")

    metrics: Metrics = NoOpMetrics()
    if args.metrics_file:
        metrics = PrometheusMetrics()

    try:
        code = args.func(args, metrics)
    except FileNotFoundError as e:
        reporter.err(str(e))
        code = 2
    except TableNotFoundError as e:
        reporter.err(str(e))
        code = map_error(ErrorCode.TABLE_NOT_FOUND)[0]
    except ValueError as e:
        reporter.err(str(e))
        code = 2

    if args.metrics_file:
        write_to_textfile(args.metrics_file, REGISTRY)
    return code


if __name__ == "__main__":
    sys.exit(main())
