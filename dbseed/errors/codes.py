from enum import Enum


class ErrorCode(str, Enum):
    # --- Schema (non-fatal, surfaced as warnings) ---
    SCHEMA_DANGLING_REFERENCE = "SCHEMA_DANGLING_REFERENCE"
    SCHEMA_DEPENDENCY_CYCLE = "SCHEMA_DEPENDENCY_CYCLE"
    SCHEMA_DUPLICATE_TABLE = "SCHEMA_DUPLICATE_TABLE"
    SCHEMA_DUPLICATE_COLUMN = "SCHEMA_DUPLICATE_COLUMN"
    SCHEMA_SKIPPED_CLAUSE = "SCHEMA_SKIPPED_CLAUSE"
    SCHEMA_UNBALANCED_BODY = "SCHEMA_UNBALANCED_BODY"
    TABLE_NOT_FOUND = "TABLE_NOT_FOUND"

    # --- Recovery parser ---
    RECOVERY_NO_PAYLOAD = "RECOVERY_NO_PAYLOAD"
    RECOVERY_DECODE_FAILED = "RECOVERY_DECODE_FAILED"

    # --- LLM ---
    LLM_TIMEOUT = "LLM_TIMEOUT"
    LLM_BAD_OUTPUT = "LLM_BAD_OUTPUT"
    LLM_UNAVAILABLE = "LLM_UNAVAILABLE"

    # --- Validator ---
    VALIDATION_FAILED = "VALIDATION_FAILED"

    # --- Inserter / DB ---
    DB_INSERT_FAILED = "DB_INSERT_FAILED"
    DB_UNAVAILABLE = "DB_UNAVAILABLE"

    # --- Internal ---
    PIPELINE_CRASH = "PIPELINE_CRASH"
