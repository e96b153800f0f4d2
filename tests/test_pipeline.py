import json

import pytest

from adapters.db.sqlite_adapter import SQLiteAdapter
from adapters.metrics.noop import NoOpMetrics
from dbseed.errors.codes import ErrorCode
from dbseed.errors.exceptions import TableNotFoundError
from dbseed.generator import Generator
from dbseed.pipeline import SeedPipeline
from dbseed.schema.builder import parse_schema
from dbseed.validator import Validator
from tests.fakes import SHOP_SQL, ScriptedLLM

USERS = json.dumps(
    [{"email": "a@x.io", "role": "admin"}, {"email": "b@x.io", "role": "user"}]
)
ORDERS = json.dumps([{"user_id": 1, "total": 10.5}, {"user_id": 2, "total": 3}])


class RecordingMetrics(NoOpMetrics):
    def __init__(self):
        self.calls = []
        self.rows = []
        self.runs = []
        self.repairs = []

    def inc_stage_call(self, *, stage, ok):
        self.calls.append((stage, ok))

    def add_rows(self, *, table, outcome, count):
        self.rows.append((table, outcome, count))

    def inc_seed_run(self, *, status):
        self.runs.append(status)

    def inc_recovery_repair(self, *, kind):
        self.repairs.append(kind)


@pytest.fixture
def db(tmp_path):
    adapter = SQLiteAdapter(str(tmp_path / "shop.db"))
    adapter.execute_script(SHOP_SQL)
    yield adapter
    adapter.close()


def _pipeline(schema, llm, **kwargs):
    return SeedPipeline(schema=schema, generator=Generator(llm), **kwargs)


def test_seed_inserts_in_dependency_order_with_existing_ids(shop_schema, db):
    llm = ScriptedLLM({"users": USERS, "orders": ORDERS})
    report = _pipeline(shop_schema, llm, db=db).run(2)

    assert report.ok is True
    assert report.status == "ok"
    assert report.insert_order == ("users", "orders")
    assert [o.table for o in report.outcomes] == ["users", "orders"]
    assert report.total_inserted == 4
    # orders prompt carried the ids assigned to the inserted users
    assert "user_id MUST be one of these exact values: [1, 2]" in llm.prompts[1]
    assert sorted(db.fetch_column_values("orders", "user_id", 10)) == [1, 2]


def test_failing_table_does_not_stop_the_run(shop_schema):
    llm = ScriptedLLM({"users": "no rows for you", "orders": ORDERS})
    report = _pipeline(shop_schema, llm).run(2, dry_run=True)

    assert report.ok is False
    assert report.status == "partial"
    users, orders = report.outcomes
    assert users.ok is False
    assert users.error_code == ErrorCode.RECOVERY_NO_PAYLOAD
    assert users.retryable is True
    assert orders.ok is True
    assert orders.generated == 2
    assert report.failed == [users]


def test_insert_failure_is_reported_per_table(shop_schema, db):
    bad_orders = json.dumps([{"user_id": 99, "total": 1}])
    llm = ScriptedLLM({"users": USERS, "orders": bad_orders})
    report = _pipeline(shop_schema, llm, db=db).run(1)

    users, orders = report.outcomes
    assert users.ok and users.inserted == 2
    assert orders.ok is False
    assert orders.error_code == ErrorCode.DB_INSERT_FAILED
    assert orders.generated == 1 and orders.inserted == 0


def test_dry_run_uses_generated_rows_as_reference_pool():
    schema = parse_schema(
        """
        CREATE TABLE countries (code TEXT PRIMARY KEY, name TEXT);
        CREATE TABLE cities (id SERIAL PRIMARY KEY, country_code TEXT REFERENCES countries(code));
        """
    )
    llm = ScriptedLLM(
        {
            "countries": '[{"code": "FR", "name": "France"}, {"code": "DE", "name": "Germany"}]',
            "cities": '[{"country_code": "FR"}]',
        }
    )
    pipeline = _pipeline(schema, llm)
    report = pipeline.run(2, dry_run=True)

    assert report.ok and report.dry_run
    assert report.total_inserted == 0
    assert report.total_generated == 3
    assert "country_code MUST be one of these exact values: [FR, DE]" in llm.prompts[1]
    assert pipeline.reference_values(schema.get("cities"), dry_run=True) == {
        "country_code": ["FR", "DE"]
    }


def test_table_subset_follows_insert_order(shop_schema):
    llm = ScriptedLLM({"users": USERS, "orders": ORDERS})
    report = _pipeline(shop_schema, llm).run(2, tables=["orders", "users"], dry_run=True)
    assert report.insert_order == ("users", "orders")

    report = _pipeline(shop_schema, llm).run(2, tables=["orders"], dry_run=True)
    assert [o.table for o in report.outcomes] == ["orders"]


def test_unknown_table_raises(shop_schema):
    with pytest.raises(TableNotFoundError):
        _pipeline(shop_schema, ScriptedLLM()).run(1, tables=["ghosts"])
    with pytest.raises(TableNotFoundError):
        _pipeline(shop_schema, ScriptedLLM()).run_table("ghosts", 1)


def test_progress_callback_sees_every_table(shop_schema):
    seen = []
    llm = ScriptedLLM({"users": USERS, "orders": ORDERS})
    _pipeline(shop_schema, llm, on_progress=seen.append).run(2, dry_run=True)
    assert [(o.table, o.ok) for o in seen] == [("users", True), ("orders", True)]


def test_run_table_can_restart_a_single_table(shop_schema, db):
    llm = ScriptedLLM({"users": USERS})
    pipeline = _pipeline(shop_schema, llm, db=db)
    outcome = pipeline.run_table("users", 2)
    assert outcome.ok and outcome.inserted == 2
    assert outcome.records.rows[0]["email"] == "a@x.io"
    assert [t["stage"] for t in outcome.traces] == ["generator", "validator", "inserter"]


def test_validate_mode_is_strict_and_never_inserts(shop_schema, db):
    bad_users = json.dumps([{"email": "a@x.io", "role": "root"}])
    llm = ScriptedLLM({"users": bad_users, "orders": ORDERS})
    report = _pipeline(shop_schema, llm, db=db).validate(1)

    users = report.outcomes[0]
    assert users.ok is False
    assert users.error_code == ErrorCode.VALIDATION_FAILED
    assert users.error == ["row 1: role='root' not in allowed values ['admin', 'user']"]
    assert db.fetch_column_values("users", "email", 10) == []


def test_drop_invalid_validator_filters_before_insert(shop_schema, db):
    users = json.dumps(
        [{"email": "a@x.io", "role": "admin"}, {"email": "a@x.io", "role": "user"}]
    )
    llm = ScriptedLLM({"users": users})
    pipeline = _pipeline(shop_schema, llm, db=db, validator=Validator(drop_invalid=True))
    outcome = pipeline.run_table("users", 2)
    assert outcome.ok
    assert (outcome.generated, outcome.inserted, outcome.rejected) == (2, 1, 1)


def test_metrics_are_recorded(shop_schema, db):
    metrics = RecordingMetrics()
    truncated_users = '[{"email": "a@x.io", "role": "admin"}, {"email": "b'
    llm = ScriptedLLM({"users": truncated_users, "orders": "nope"})
    report = _pipeline(shop_schema, llm, db=db, metrics=metrics).run(2)

    assert report.status == "partial"
    assert metrics.runs == ["partial"]
    assert metrics.repairs == ["truncated_tail"]
    assert ("users", "generated", 1) in metrics.rows
    assert ("users", "inserted", 1) in metrics.rows
    assert ("generator", False) in metrics.calls


def test_unexpected_stage_crash_is_contained(shop_schema):
    class Exploding:
        def run(self, **kwargs):
            raise RuntimeError("kaboom")

    pipeline = SeedPipeline(schema=shop_schema, generator=Exploding())
    report = pipeline.run(1, dry_run=True)
    assert [o.error_code for o in report.outcomes] == [ErrorCode.PIPELINE_CRASH] * 2
    assert report.status == "error"
    assert "kaboom" in report.outcomes[0].error[0]


def test_unknown_style_is_rejected(shop_schema):
    with pytest.raises(ValueError):
        _pipeline(shop_schema, ScriptedLLM(), style="loud")
