from __future__ import annotations

from dbseed.errors.codes import ErrorCode

# code -> (process exit code, retryable)
ERROR_MAP = {
    ErrorCode.TABLE_NOT_FOUND: (2, False),
    ErrorCode.RECOVERY_NO_PAYLOAD: (3, True),
    ErrorCode.RECOVERY_DECODE_FAILED: (3, True),
    ErrorCode.LLM_TIMEOUT: (4, True),
    ErrorCode.LLM_BAD_OUTPUT: (3, True),
    ErrorCode.LLM_UNAVAILABLE: (4, True),
    ErrorCode.VALIDATION_FAILED: (5, True),
    ErrorCode.DB_INSERT_FAILED: (6, False),
    ErrorCode.DB_UNAVAILABLE: (6, True),
    ErrorCode.PIPELINE_CRASH: (1, False),
}


def map_error(code: ErrorCode | None) -> tuple[int, bool]:
    if code is None:
        return (1, False)
    return ERROR_MAP.get(code, (1, False))


def is_retryable(code: ErrorCode | None) -> bool:
    return map_error(code)[1]
