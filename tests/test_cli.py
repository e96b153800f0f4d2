import json

import pytest

import dbseed.pipeline_factory as factory
from adapters.db.sqlite_adapter import SQLiteAdapter
from app import cli, reporter
from tests.fakes import SHOP_SQL, ScriptedLLM

USERS = json.dumps(
    [{"email": "a@x.io", "role": "admin"}, {"email": "b@x.io", "role": "user"}]
)
ORDERS = json.dumps([{"user_id": 1, "total": 9.99}, {"user_id": 2, "total": 5}])


@pytest.fixture
def schema_file(tmp_path):
    path = tmp_path / "shop.sql"
    path.write_text(SHOP_SQL, encoding="utf-8")
    return str(path)


@pytest.fixture
def fake_llm(monkeypatch):
    llm = ScriptedLLM({"users": USERS, "orders": ORDERS})
    monkeypatch.setattr(factory, "build_llm", lambda config: llm)
    return llm


def test_order_prints_tables_with_dependencies(schema_file, capsys):
    assert cli.main(["order", schema_file]) == 0
    out = capsys.readouterr().out.splitlines()
    assert out[0].strip() == "1. users"
    assert out[1].strip() == "2. orders  (after users)"


def test_order_reports_schema_warnings(tmp_path, capsys):
    path = tmp_path / "cyc.sql"
    path.write_text(
        "CREATE TABLE a (b_id INT REFERENCES b(id));\n"
        "CREATE TABLE b (a_id INT REFERENCES a(id));\n",
        encoding="utf-8",
    )
    assert cli.main(["order", str(path)]) == 0
    assert "cycle" in capsys.readouterr().err.lower()


def test_missing_schema_file_exits_2(tmp_path, capsys):
    assert cli.main(["order", str(tmp_path / "nope.sql")]) == 2
    assert capsys.readouterr().err


def test_version(capsys):
    assert cli.main(["version"]) == 0
    assert capsys.readouterr().out.startswith("dbseed ")


def test_preview_prints_rows(schema_file, fake_llm, capsys):
    assert cli.main(["preview", schema_file, "--table", "users", "--rows", "2"]) == 0
    out = capsys.readouterr().out
    assert "a@x.io" in out and "| email" in out


def test_preview_unknown_table(schema_file, fake_llm, capsys):
    assert cli.main(["preview", schema_file, "--table", "ghosts"]) == 2
    assert "ghosts" in capsys.readouterr().err


def test_preview_reports_recovery_failure(schema_file, monkeypatch, capsys):
    llm = ScriptedLLM({"users": "Sure! Here you go."})
    monkeypatch.setattr(factory, "build_llm", lambda config: llm)
    assert cli.main(["preview", schema_file, "--table", "users"]) == 3
    assert "RECOVERY_NO_PAYLOAD" in capsys.readouterr().err


def test_seed_requires_a_database(schema_file, fake_llm, capsys):
    assert cli.main(["seed", schema_file]) == 2
    assert "--dry-run" in capsys.readouterr().err


def test_seed_dry_run(schema_file, fake_llm, capsys):
    assert cli.main(["seed", schema_file, "--rows", "2", "--dry-run"]) == 0
    assert "ok: would insert 4 rows into 2/2 tables" in capsys.readouterr().out


def test_seed_into_sqlite(schema_file, fake_llm, tmp_path, capsys):
    db_path = tmp_path / "seed.db"
    setup = SQLiteAdapter(str(db_path))
    setup.execute_script(SHOP_SQL)
    setup.close()

    code = cli.main(["seed", schema_file, "--db", f"sqlite:{db_path}", "--rows", "2"])
    captured = capsys.readouterr()
    assert code == 0
    assert "ok: inserted 4 rows into 2/2 tables" in captured.out
    assert "users: 2 generated, 2 inserted" in captured.err

    check = SQLiteAdapter(str(db_path))
    assert sorted(check.fetch_column_values("orders", "user_id", 10)) == [1, 2]
    check.close()


def test_seed_partial_failure_exit_code(schema_file, monkeypatch, tmp_path, capsys):
    llm = ScriptedLLM({"users": USERS, "orders": "I cannot help with that"})
    monkeypatch.setattr(factory, "build_llm", lambda config: llm)
    code = cli.main(["seed", schema_file, "--dry-run", "--rows", "2"])
    assert code == 3
    assert capsys.readouterr().out.startswith("partial:")


def test_validate_flags_bad_rows(schema_file, monkeypatch, capsys):
    bad = json.dumps([{"email": "a@x.io", "role": "owner"}])
    llm = ScriptedLLM({"users": bad, "orders": ORDERS})
    monkeypatch.setattr(factory, "build_llm", lambda config: llm)
    assert cli.main(["validate", schema_file, "--tables", "users"]) == 5
    captured = capsys.readouterr()
    assert "role='owner'" in captured.err
    assert "1 of 1 tables failed" in captured.out


def test_metrics_file_is_written(schema_file, fake_llm, tmp_path):
    metrics_path = tmp_path / "dbseed.prom"
    code = cli.main(
        ["--metrics-file", str(metrics_path), "seed", schema_file, "--dry-run", "--rows", "2"]
    )
    assert code == 0
    text = metrics_path.read_text(encoding="utf-8")
    assert "dbseed_seed_runs_total" in text
    assert "dbseed_stage_calls_total" in text


def test_rows_must_be_positive(schema_file):
    with pytest.raises(SystemExit):
        cli.main(["seed", schema_file, "--rows", "0", "--dry-run"])


def test_render_table_truncates_long_cells():
    out = reporter.render_table(("name", "bio"), [{"name": "Ann", "bio": "x" * 50}, {"name": None}])
    lines = out.splitlines()
    assert lines[0].startswith("+")
    assert "NULL" in out
    assert "x" * 27 + "..." in out
    assert "x" * 28 not in out
    assert reporter.render_table(("a",), []) == ""


class UnreachableLLM(ScriptedLLM):
    def ping(self):
        raise ConnectionError("cannot reach LLM at http://localhost:11434/v1")


@pytest.mark.parametrize(
    "argv",
    [
        ["preview", "{schema}", "--table", "users"],
        ["seed", "{schema}", "--dry-run"],
        ["validate", "{schema}"],
    ],
)
def test_unreachable_llm_fails_once_before_generating(schema_file, monkeypatch, capsys, argv):
    llm = UnreachableLLM({"users": USERS, "orders": ORDERS})
    monkeypatch.setattr(factory, "build_llm", lambda config: llm)
    code = cli.main([a.format(schema=schema_file) for a in argv])
    assert code == 4
    assert llm.prompts == []
    err = capsys.readouterr().err
    assert len([line for line in err.splitlines() if "cannot reach LLM" in line]) == 1
