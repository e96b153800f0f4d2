"""
Recover a JSON array of records from free-form model output.

Models wrap the payload in reasoning blocks, code fences and prose, and
sometimes stop mid-record. Recovery is best effort: trailing commas are
dropped and a truncated tail is cut back to the last complete record before
giving up.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

from dbseed.errors.codes import ErrorCode
from dbseed.errors.exceptions import RecoveryError

log = logging.getLogger(__name__)

THINK_OPEN = "<think>"
THINK_CLOSE = "</think>"

REPAIR_TRAILING_SEPARATOR = "trailing_separator"
REPAIR_TRUNCATED_TAIL = "truncated_tail"

_FENCE_RE = re.compile(r"```[A-Za-z0-9_+-]*")

Record = Dict[str, Any]


@dataclass(frozen=True)
class RecoveryResult:
    records: List[Record]
    repairs: Tuple[str, ...] = ()
    payload: str = ""


def strip_reasoning(
    text: str, open_marker: str = THINK_OPEN, close_marker: str = THINK_CLOSE
) -> str:
    """
    Remove a reasoning block.

    Everything up to the first close marker is dropped. An open marker that is
    still present afterwards is either closed later (drop through the close) or
    unterminated (drop from the open marker to the end).
    """
    text = (text or "").strip()
    idx = text.find(close_marker)
    if idx != -1:
        text = text[idx + len(close_marker) :].strip()
    idx = text.find(open_marker)
    if idx != -1:
        end = text.find(close_marker, idx + len(open_marker))
        if end != -1:
            text = text[end + len(close_marker) :].strip()
        else:
            text = text[:idx].strip()
    return text


def strip_code_fences(text: str) -> str:
    return _FENCE_RE.sub("", text).strip()


def _locate_payload(text: str) -> Tuple[int, str]:
    start = text.find("[")
    if start == -1:
        raise RecoveryError(
            ErrorCode.RECOVERY_NO_PAYLOAD, "no JSON array found in response", text
        )
    end = text.rfind("]")
    if end == -1:
        # no closing bracket at all: a truncated array, salvaged below
        return start, text[start:]
    if end < start:
        raise RecoveryError(
            ErrorCode.RECOVERY_NO_PAYLOAD, "no JSON array found in response", text
        )
    return start, text[start : end + 1]


def _decode(payload: str) -> Optional[List[Record]]:
    try:
        data = json.loads(payload)
    except json.JSONDecodeError:
        return None
    if not isinstance(data, list) or not all(isinstance(r, dict) for r in data):
        raise RecoveryError(
            ErrorCode.RECOVERY_DECODE_FAILED,
            "expected a JSON array of objects",
            payload,
        )
    return data


def strip_trailing_separators(text: str) -> str:
    """Drop commas that directly precede a closing ] or } (outside strings)."""
    out: List[str] = []
    pending = -1
    in_str = escaped = False
    for ch in text:
        if in_str:
            out.append(ch)
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_str = False
            continue
        if ch in "]}" and pending != -1:
            del out[pending]
            pending = -1
        elif ch == ",":
            pending = len(out)
        elif ch == '"' or not ch.isspace():
            pending = -1
        if ch == '"':
            in_str = True
        out.append(ch)
    return "".join(out)


def salvage_complete_records(text: str) -> Optional[str]:
    """
    Cut `text` (starting at '[') back to the last complete top-level object.

    If the array never closes, everything after the last complete object is
    the truncated tail. If it closes and the array up to that point decodes,
    that array is returned whole and anything after it is ignored; otherwise
    the final element is the suspect and is dropped. Returns None when no
    complete object survives.
    """
    boundaries: List[int] = []
    depth = 0
    close_idx = -1
    in_str = escaped = False
    for i, ch in enumerate(text):
        if in_str:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_str = False
            continue
        if ch == '"':
            in_str = True
        elif ch in "[{":
            depth += 1
        elif ch in "]}":
            depth -= 1
            if depth == 1 and ch == "}":
                boundaries.append(i)
            elif depth <= 0:
                close_idx = i
                break
    if close_idx != -1:
        whole = text[: close_idx + 1]
        try:
            json.loads(strip_trailing_separators(whole))
            return whole
        except json.JSONDecodeError:
            boundaries = boundaries[:-1]
    if not boundaries:
        return None
    return text[: boundaries[-1] + 1] + "]"


def recover_records(
    raw: str,
    *,
    open_marker: str = THINK_OPEN,
    close_marker: str = THINK_CLOSE,
) -> RecoveryResult:
    """
    Extract the record array from model output.

    Raises RecoveryError with RECOVERY_NO_PAYLOAD when no array is present and
    RECOVERY_DECODE_FAILED when the array cannot be decoded even after repair.
    """
    text = strip_reasoning(raw, open_marker, close_marker)
    text = strip_code_fences(text)
    start, payload = _locate_payload(text)

    repairs: List[str] = []
    records = _decode(payload)
    if records is None:
        records = _decode(strip_trailing_separators(payload))
        if records is not None:
            repairs.append(REPAIR_TRAILING_SEPARATOR)
    if records is None:
        salvaged = salvage_complete_records(text[start:])
        if salvaged is not None:
            records = _decode(strip_trailing_separators(salvaged))
            if records is not None:
                repairs.append(REPAIR_TRUNCATED_TAIL)
    if records is None:
        raise RecoveryError(
            ErrorCode.RECOVERY_DECODE_FAILED,
            "could not decode JSON array of records",
            payload,
        )

    if repairs:
        log.debug("recovered %d records after repairs: %s", len(records), repairs)
    return RecoveryResult(records=records, repairs=tuple(repairs), payload=payload)


def parse_records(
    raw: str,
    *,
    open_marker: str = THINK_OPEN,
    close_marker: str = THINK_CLOSE,
) -> List[Record]:
    """Convenience wrapper returning only the records."""
    return recover_records(raw, open_marker=open_marker, close_marker=close_marker).records
