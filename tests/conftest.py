import os
from pathlib import Path

import pytest

from app.settings import get_settings
from dbseed.schema.builder import parse_schema
from tests.fakes import SHOP_SQL, ScriptedLLM

ROOT = Path(__file__).resolve().parents[1]
ECOMMERCE_SQL = ROOT / "data" / "ecommerce.sql"


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch, tmp_path):
    """Keep DBSEED_* variables and a stray .env out of every test."""
    for key in list(os.environ):
        if key.startswith("DBSEED_"):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("DBSEED_CONFIG", str(tmp_path / "missing-seed.yaml"))
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def ecommerce_sql() -> str:
    return ECOMMERCE_SQL.read_text(encoding="utf-8")


@pytest.fixture
def shop_schema():
    return parse_schema(SHOP_SQL)


@pytest.fixture
def scripted_llm():
    return ScriptedLLM
