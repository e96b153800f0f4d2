from __future__ import annotations

from dbseed.errors.codes import ErrorCode

PREVIEW_CHARS = 300


def preview(text: str, limit: int = PREVIEW_CHARS) -> str:
    """Bounded excerpt of untrusted text for error messages."""
    text = text or ""
    if len(text) > limit:
        return text[:limit] + "..."
    return text


class RecoveryError(ValueError):
    """No usable record collection could be recovered from model output."""

    def __init__(self, code: ErrorCode, message: str, received: str = "") -> None:
        self.code = code
        self.preview = preview(received)
        super().__init__(f"{message}\nreceived: {self.preview}")


class TableNotFoundError(KeyError):
    code = ErrorCode.TABLE_NOT_FOUND

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(name)

    def __str__(self) -> str:
        return f"table {self.name!r} not found in schema"
