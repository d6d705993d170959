"""Shared type coercion for the text-encoded columns.

Single source of truth for the "H:A" prediction format and for the points
column, which settlement writes as text. Parsing never raises: anything that
is not a clean integer falls back (points -> 0, prediction -> None).
"""
from __future__ import annotations

import math
from datetime import date, datetime
from typing import Any

from app.core.errors import BadRequestError

MIN_SCORE = 0
MAX_SCORE = 9


def parse_int(value: Any) -> int | None:
    if value is None:
        return None
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if math.isnan(value) or math.isinf(value):
            return None
        return int(value)
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            return int(text, 10)
        except ValueError:
            return None
    return None


def parse_points(value: Any) -> int:
    parsed = parse_int(value)
    return parsed if parsed is not None else 0


def format_prediction(home: int, away: int) -> str:
    return f"{home}:{away}"


def parse_prediction(value: Any) -> tuple[int, int] | None:
    """Parse a stored "H:A" string into (home, away).

    Returns None unless the text holds exactly two non-negative integers.
    """
    if not isinstance(value, str):
        return None
    parts = value.split(":")
    if len(parts) != 2:
        return None
    out: list[int] = []
    for part in parts:
        text = part.strip()
        if not (text.isascii() and text.isdigit()):
            return None
        out.append(int(text))
    return out[0], out[1]


def validate_score(value: Any, field: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise BadRequestError(f"{field} must be an integer")
    if value < MIN_SCORE or value > MAX_SCORE:
        raise BadRequestError(f"{field} must be between {MIN_SCORE} and {MAX_SCORE}")
    return value


def json_safe(value: Any) -> Any:
    """Make a value JSON-serializable (datetime -> ISO, NaN -> None)."""
    if value is None:
        return None
    if isinstance(value, dict):
        return {str(k): json_safe(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [json_safe(v) for v in value]
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, float):
        return value if math.isfinite(value) else None
    return value
