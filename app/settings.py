from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv

from adapters.llm.openai_provider import (
    DEFAULT_API_KEY,
    DEFAULT_BASE_URL,
    DEFAULT_MODEL,
    DEFAULT_TIMEOUT_SEC,
)
from dbseed.inserter import DEFAULT_BATCH_SIZE
from dbseed.pipeline import DEFAULT_REFERENCE_LIMIT
from dbseed.recovery import THINK_CLOSE, THINK_OPEN

# Resolve repo root from this file's location:
# app/settings.py → parent = app/ → parent = repo root
REPO_ROOT = Path(__file__).resolve().parents[1]

# Run config shipped with the repo
DEFAULT_SEED_CONFIG = REPO_ROOT / "configs" / "seed.yaml"


@dataclass
class Settings:
    """
    Centralized application configuration.

    Does NOT depend on pydantic. Values are loaded from environment
    variables (and a .env file, if present) via Settings.from_env().
    """

    # --- LLM endpoint ---
    llm_base_url: str = DEFAULT_BASE_URL
    llm_api_key: str = DEFAULT_API_KEY
    model: str = DEFAULT_MODEL
    llm_timeout_sec: float = DEFAULT_TIMEOUT_SEC

    # --- Generation ---
    style: str = "realistic"
    rows: int = 100
    think_open: str = THINK_OPEN
    think_close: str = THINK_CLOSE

    # --- Database ---
    db: str = ""
    batch_size: int = DEFAULT_BATCH_SIZE
    reference_limit: int = DEFAULT_REFERENCE_LIMIT

    # --- Run config ---
    seed_config_path: str = str(DEFAULT_SEED_CONFIG)

    @classmethod
    def from_env(cls) -> "Settings":
        """
        Build Settings from environment variables with sane fallbacks.

        Malformed numbers fall back to the defaults. DBSEED_CONFIG may be
        relative; it is resolved against REPO_ROOT.
        """
        load_dotenv()

        def getenv_int(name: str, default: int) -> int:
            raw = os.getenv(name)
            if raw is None or raw.strip() == "":
                return default
            try:
                return int(raw)
            except ValueError:
                return default

        def getenv_float(name: str, default: float) -> float:
            raw = os.getenv(name)
            if raw is None or raw.strip() == "":
                return default
            try:
                return float(raw)
            except ValueError:
                return default

        raw_cfg = os.getenv("DBSEED_CONFIG", "").strip()
        if raw_cfg:
            cfg_candidate = Path(raw_cfg)
            if not cfg_candidate.is_absolute():
                cfg_candidate = REPO_ROOT / raw_cfg
        else:
            cfg_candidate = DEFAULT_SEED_CONFIG

        return cls(
            llm_base_url=os.getenv("DBSEED_LLM_BASE_URL", cls.llm_base_url),
            llm_api_key=os.getenv("DBSEED_LLM_API_KEY", cls.llm_api_key),
            model=os.getenv("DBSEED_MODEL", cls.model),
            llm_timeout_sec=getenv_float("DBSEED_LLM_TIMEOUT_SEC", cls.llm_timeout_sec),
            style=os.getenv("DBSEED_STYLE", cls.style),
            rows=getenv_int("DBSEED_ROWS", cls.rows),
            think_open=os.getenv("DBSEED_THINK_OPEN", cls.think_open),
            think_close=os.getenv("DBSEED_THINK_CLOSE", cls.think_close),
            db=os.getenv("DBSEED_DB", cls.db),
            batch_size=getenv_int("DBSEED_BATCH_SIZE", cls.batch_size),
            reference_limit=getenv_int("DBSEED_REF_LIMIT", cls.reference_limit),
            seed_config_path=str(cfg_candidate),
        )


@lru_cache()
def get_settings() -> Settings:
    return Settings.from_env()
