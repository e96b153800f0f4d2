from __future__ import annotations

from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Dict, Optional

import yaml  # type: ignore[import-untyped]

from adapters.db.base import DBAdapter
from adapters.db.factory import open_adapter
from adapters.llm.base import LLMProvider
from adapters.llm.openai_provider import OpenAIProvider
from adapters.metrics.base import Metrics
from app.settings import Settings, get_settings
from dbseed.generator import Generator
from dbseed.inserter import Inserter
from dbseed.pipeline import ProgressCallback, SeedPipeline
from dbseed.prompts.contracts import Style
from dbseed.schema.types import Schema
from dbseed.validator import Validator


@dataclass(frozen=True)
class SeedConfig:
    """Effective run configuration: environment defaults, then the YAML file."""

    llm_base_url: str
    llm_api_key: str
    model: str
    llm_timeout_sec: float
    temperature: float
    style: Style
    rows: int
    think_open: str
    think_close: str
    db: str
    batch_size: int
    reference_limit: int
    drop_invalid: bool = True


# ------------------------------ helpers ------------------------------ #
def _section(cfg: Dict[str, Any], name: str) -> Dict[str, Any]:
    value = cfg.get(name) or {}
    if not isinstance(value, dict):
        raise ValueError(f"Config section {name!r} must be a mapping")
    return value


def _positive_int(value: Any, *, name: str) -> int:
    try:
        n = int(value)
    except (TypeError, ValueError):
        raise ValueError(f"Config {name} must be an integer, got {value!r}")
    if n <= 0:
        raise ValueError(f"Config {name} must be positive, got {n}")
    return n


def config_from_settings(settings: Settings) -> SeedConfig:
    return SeedConfig(
        llm_base_url=settings.llm_base_url,
        llm_api_key=settings.llm_api_key,
        model=settings.model,
        llm_timeout_sec=settings.llm_timeout_sec,
        temperature=0.7,
        style=Style.parse(settings.style),
        rows=_positive_int(settings.rows, name="rows"),
        think_open=settings.think_open,
        think_close=settings.think_close,
        db=settings.db,
        batch_size=_positive_int(settings.batch_size, name="batch_size"),
        reference_limit=_positive_int(settings.reference_limit, name="reference_limit"),
    )


def load_seed_config(
    path: Optional[str] = None, settings: Optional[Settings] = None
) -> SeedConfig:
    """
    Layer a YAML run file over the environment settings.

    A missing file at the default location is not an error; an explicitly
    named one must exist.
    """
    settings = settings or get_settings()
    base = config_from_settings(settings)
    cfg_path = Path(path or settings.seed_config_path)
    if not cfg_path.exists():
        if path:
            raise FileNotFoundError(f"config file not found: {cfg_path}")
        return base

    with open(cfg_path, "r", encoding="utf-8") as fh:
        cfg: Dict[str, Any] = yaml.safe_load(fh) or {}
    if not isinstance(cfg, dict):
        raise ValueError(f"Config {cfg_path} must be a mapping")

    llm = _section(cfg, "llm")
    gen = _section(cfg, "generation")
    db = _section(cfg, "database")
    val = _section(cfg, "validation")

    return replace(
        base,
        llm_base_url=llm.get("base_url", base.llm_base_url),
        model=llm.get("model", base.model),
        llm_timeout_sec=float(llm.get("timeout_sec", base.llm_timeout_sec)),
        temperature=float(llm.get("temperature", base.temperature)),
        style=Style.parse(gen.get("style", base.style)),
        rows=_positive_int(gen.get("rows", base.rows), name="generation.rows"),
        think_open=gen.get("think_open", base.think_open),
        think_close=gen.get("think_close", base.think_close),
        db=db.get("dsn") or base.db,
        batch_size=_positive_int(
            db.get("batch_size", base.batch_size), name="database.batch_size"
        ),
        reference_limit=_positive_int(
            db.get("reference_limit", base.reference_limit),
            name="database.reference_limit",
        ),
        drop_invalid=bool(val.get("drop_invalid", base.drop_invalid)),
    )


def build_llm(config: SeedConfig) -> LLMProvider:
    return OpenAIProvider(
        base_url=config.llm_base_url,
        api_key=config.llm_api_key,
        model=config.model,
        timeout=config.llm_timeout_sec,
        temperature=config.temperature,
    )


# ------------------------------ factory ------------------------------ #
def build_pipeline(
    schema: Schema,
    config: SeedConfig,
    *,
    llm: Optional[LLMProvider] = None,
    db: Optional[DBAdapter] = None,
    metrics: Optional[Metrics] = None,
    on_progress: Optional[ProgressCallback] = None,
) -> SeedPipeline:
    """
    Wire a SeedPipeline (dependency-injected).

    `llm` and `db` default to the configured endpoint and connection string;
    without either a connection string or `db`, the pipeline can only dry-run.
    """
    if db is None and config.db:
        db = open_adapter(config.db)
    generator = Generator(
        llm or build_llm(config),
        think_open=config.think_open,
        think_close=config.think_close,
    )
    inserter = Inserter(db, batch_size=config.batch_size) if db is not None else None
    return SeedPipeline(
        schema=schema,
        generator=generator,
        validator=Validator(drop_invalid=config.drop_invalid),
        db=db,
        inserter=inserter,
        metrics=metrics,
        style=config.style,
        reference_limit=config.reference_limit,
        on_progress=on_progress,
    )


def pipeline_from_config(
    path: Optional[str], schema: Schema, **kwargs: Any
) -> SeedPipeline:
    """Build a SeedPipeline from a YAML run file layered over the environment."""
    return build_pipeline(schema, load_seed_config(path), **kwargs)
