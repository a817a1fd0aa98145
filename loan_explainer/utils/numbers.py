"""Tolerant coercion utilities for partially populated input"""

import math
from typing import Any, Tuple


def as_float(value: Any, default: float = 0.0) -> float:
    """Coerce value to a finite float, falling back to default for None, NaN, inf or junk"""
    if isinstance(value, bool):
        return float(value)
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default
    return number if math.isfinite(number) else default


def as_int(value: Any, default: int = 0) -> int:
    """Coerce value to an int (truncating floats), falling back to default"""
    number = as_float(value, float(default))
    return int(number)


def non_negative(value: float) -> float:
    return max(value, 0.0)


def clamp(value: float, low: float, high: float) -> float:
    """Clamp value into [low, high]"""
    return max(low, min(high, value))


def as_sequence(value: Any) -> Tuple[Any, ...]:
    """Tuple of the items of a list or tuple; anything else is treated as empty"""
    if isinstance(value, (list, tuple)):
        return tuple(value)
    return ()
