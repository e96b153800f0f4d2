import pytest

from dbseed.errors.codes import ErrorCode
from dbseed.errors.exceptions import PREVIEW_CHARS, RecoveryError, TableNotFoundError, preview
from dbseed.errors.mapper import ERROR_MAP, is_retryable, map_error


def test_every_failure_code_is_mapped():
    failures = {c for c in ErrorCode if not c.value.startswith("SCHEMA_")}
    assert failures <= set(ERROR_MAP)


@pytest.mark.parametrize(
    "code, exit_code, retryable",
    [
        (ErrorCode.RECOVERY_NO_PAYLOAD, 3, True),
        (ErrorCode.LLM_UNAVAILABLE, 4, True),
        (ErrorCode.VALIDATION_FAILED, 5, True),
        (ErrorCode.DB_INSERT_FAILED, 6, False),
        (ErrorCode.PIPELINE_CRASH, 1, False),
    ],
)
def test_map_error(code, exit_code, retryable):
    assert map_error(code) == (exit_code, retryable)
    assert is_retryable(code) is retryable


def test_unknown_code_is_generic_failure():
    assert map_error(None) == (1, False)


def test_recovery_error_carries_code_and_preview():
    raw = "x" * (PREVIEW_CHARS + 50)
    e = RecoveryError(ErrorCode.RECOVERY_DECODE_FAILED, "bad json", raw)
    assert e.code is ErrorCode.RECOVERY_DECODE_FAILED
    assert e.preview == preview(raw)
    assert len(e.preview) <= PREVIEW_CHARS + 3
    assert str(e).startswith("bad json\nreceived: ")
    assert isinstance(e, ValueError)


def test_table_not_found_is_a_key_error():
    assert issubclass(TableNotFoundError, KeyError)
