"""
Value kinds flowing between nodes and the coercions executors apply.

Static node values and upstream results are open-ended JSON values. Rather
than coercing ad hoc inside every executor, each executor funnels its inputs
through the helpers below so the permissive rules live in one place.
"""

from __future__ import annotations

import json
import math
from enum import Enum
from typing import Any, Mapping

import base58

from .constants import RESULT_PREVIEW_LEN

ACCOUNT_ID_LENGTH = 32


class ValueKind(str, Enum):
    NULL = "null"
    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    ACCOUNT_ID = "publicKey"
    RECORD = "object"
    LIST = "array"


def kind_of(value: Any) -> ValueKind:
    """Classify a runtime value into its tagged kind."""
    if value is None:
        return ValueKind.NULL
    if isinstance(value, bool):
        return ValueKind.BOOLEAN
    if isinstance(value, (int, float)):
        return ValueKind.NUMBER
    if isinstance(value, str):
        return ValueKind.ACCOUNT_ID if is_account_id(value) else ValueKind.STRING
    if isinstance(value, Mapping):
        return ValueKind.RECORD
    if isinstance(value, (list, tuple)):
        return ValueKind.LIST
    raise TypeError(f"Unsupported value type: {type(value).__name__}")


def _normalize(number: float):
    if isinstance(number, float) and number.is_integer():
        return int(number)
    return number


def as_number(value: Any, default=0):
    """
    Permissive numeric coercion.

    Booleans become 0/1, numeric strings are parsed, and anything that does
    not yield a real number (None, records, garbage strings, NaN) falls back
    to ``default``.
    """
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return default if math.isnan(value) else _normalize(value)
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return default
        try:
            return int(text)
        except ValueError:
            pass
        try:
            parsed = float(text)
        except ValueError:
            return default
        return default if math.isnan(parsed) else _normalize(parsed)
    return default


def is_truthy(value: Any) -> bool:
    """Truthiness shared by the logic nodes: empty records and lists count as true."""
    if value is None or value is False:
        return False
    if isinstance(value, (int, float)):
        return value != 0 and not (isinstance(value, float) and math.isnan(value))
    if isinstance(value, str):
        return value != ""
    return True


def as_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        return str(_normalize(value))
    if isinstance(value, (Mapping, list, tuple)):
        return compact_dumps(value)
    return str(value)


def is_account_id(value: Any) -> bool:
    """True when ``value`` is a base58 string decoding to a 32-byte account key."""
    if not isinstance(value, str) or not value:
        return False
    try:
        decoded = base58.b58decode(value)
    except ValueError:
        return False
    return len(decoded) == ACCOUNT_ID_LENGTH


def compact_dumps(value: Any) -> str:
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False)


def format_result(result: Any) -> str:
    """Short single-line rendering of a node result for verbose logs."""
    if result is None:
        return "null"
    if isinstance(result, (Mapping, list, tuple)):
        text = json.dumps(result, separators=(",", ":"), ensure_ascii=False, default=str)
        if len(text) > RESULT_PREVIEW_LEN:
            return text[:RESULT_PREVIEW_LEN - 3] + "..."
        return text
    return as_text(result)
