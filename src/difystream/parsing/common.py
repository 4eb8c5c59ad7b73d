"""Common parsing utilities shared by the lexer, extractor and coordinator."""

from __future__ import annotations

import uuid
from typing import Any


def field(data: Any, key: str, default: Any = None) -> Any:
    if isinstance(data, dict):
        return data.get(key, default)
    return getattr(data, key, default)


def generate_id() -> str:
    return f"call_{uuid.uuid4().hex[:24]}"


def as_token_count(value: Any) -> int:
    if isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return 0
