"""Normalization helpers.

Centralizes defensive parsing of provider documents.  Every reader accepts
anything (including ``None`` and wrong types) and either returns a clean
value or ``None``; callers substitute the documented default.
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from typing import Any


def safe_float(value: Any) -> float | None:
    if value is None or value == "" or isinstance(value, bool):
        return None
    try:
        result = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(result):
        return None
    return result


def safe_int(value: Any) -> int | None:
    parsed = safe_float(value)
    if parsed is None:
        return None
    return int(parsed)


def safe_str(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text if text else None


def safe_bool(value: Any) -> bool | None:
    """Interpret provider booleans, which arrive as bools, 0/1 or strings."""
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        normalized = value.strip().lower()
        if normalized in {"true", "1", "yes", "on"}:
            return True
        if normalized in {"false", "0", "no", "off"}:
            return False
        return None
    parsed = safe_int(value)
    if parsed is None:
        return None
    return parsed != 0


def sub_document(raw: Any, name: str) -> dict[str, Any]:
    """Return ``raw[name]`` when it is a mapping, else an empty dict."""
    if not isinstance(raw, Mapping):
        return {}
    nested = raw.get(name)
    if isinstance(nested, Mapping):
        return dict(nested)
    return {}


def float_or(value: Any, default: float) -> float:
    parsed = safe_float(value)
    return default if parsed is None else parsed


def str_or(value: Any, default: str) -> str:
    parsed = safe_str(value)
    return default if parsed is None else parsed


def bool_or(value: Any, default: bool) -> bool:
    parsed = safe_bool(value)
    return default if parsed is None else parsed


def round_half_up(value: float, ndigits: int = 0) -> float:
    """Round half away from zero.

    :func:`round` uses banker's rounding, which would turn ``0.5`` km into
    ``0`` km.  Distances are reported with the conventional rule instead.

    A non-finite input, or one that overflows once scaled, rounds to ``0``.
    """
    factor = 10**ndigits
    scaled = abs(value) * factor
    if not math.isfinite(scaled + 0.5):
        return 0.0
    rounded = math.floor(scaled + 0.5) / factor
    return math.copysign(rounded, value) if value else 0.0


def clamp(value: float, lower: float, upper: float) -> float:
    return max(lower, min(upper, value))
