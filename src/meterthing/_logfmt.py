"""Helpers for compact debug logging.

Readings can contain long octet strings and nested models. This module
turns them into short, log-friendly structures.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

from pydantic import BaseModel


def summarize_for_log(value: Any, *, max_string: int = 64, _depth: int = 0) -> Any:
    """Return a compact copy of *value* suitable for debug logs."""
    if _depth > 10:
        return "<max-depth>"

    if value is None:
        return None

    if isinstance(value, str):
        if len(value) > max_string:
            return f"{value[:max_string]}…<truncated>"
        return value

    if isinstance(value, (int, float, bool)):
        return value

    if isinstance(value, (bytes, bytearray)):
        return f"<bytes:{len(value)}b>"

    if isinstance(value, BaseModel):
        fields = {name: getattr(value, name) for name in type(value).model_fields}
        return summarize_for_log(fields, max_string=max_string, _depth=_depth + 1)

    if isinstance(value, Mapping):
        return {
            str(k): summarize_for_log(v, max_string=max_string, _depth=_depth + 1) for k, v in value.items()
        }

    if isinstance(value, Sequence):
        return [summarize_for_log(v, max_string=max_string, _depth=_depth + 1) for v in value]

    return repr(value)
