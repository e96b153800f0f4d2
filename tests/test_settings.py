from app.settings import DEFAULT_SEED_CONFIG, REPO_ROOT, Settings, get_settings


def test_defaults_without_environment(monkeypatch):
    monkeypatch.delenv("DBSEED_CONFIG")
    s = Settings.from_env()
    assert s.rows == 100
    assert s.db == ""
    assert s.style == "realistic"
    assert s.seed_config_path == str(DEFAULT_SEED_CONFIG)


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("DBSEED_ROWS", "25")
    monkeypatch.setenv("DBSEED_DB", "sqlite:dev.db")
    monkeypatch.setenv("DBSEED_MODEL", "mistral")
    monkeypatch.setenv("DBSEED_LLM_TIMEOUT_SEC", "30.5")
    monkeypatch.setenv("DBSEED_STYLE", "minimal")
    s = Settings.from_env()
    assert (s.rows, s.db, s.model, s.llm_timeout_sec, s.style) == (
        25,
        "sqlite:dev.db",
        "mistral",
        30.5,
        "minimal",
    )


def test_malformed_numbers_fall_back(monkeypatch):
    monkeypatch.setenv("DBSEED_ROWS", "lots")
    monkeypatch.setenv("DBSEED_BATCH_SIZE", " ")
    monkeypatch.setenv("DBSEED_LLM_TIMEOUT_SEC", "soon")
    s = Settings.from_env()
    assert s.rows == Settings.rows
    assert s.batch_size == Settings.batch_size
    assert s.llm_timeout_sec == Settings.llm_timeout_sec


def test_relative_config_path_is_resolved_against_repo(monkeypatch):
    monkeypatch.setenv("DBSEED_CONFIG", "configs/other.yaml")
    assert Settings.from_env().seed_config_path == str(REPO_ROOT / "configs" / "other.yaml")


def test_get_settings_is_cached():
    assert get_settings() is get_settings()
