"""Helpers for optional numeric values.

``None`` marks a missing, invalid or filtered-out measurement. Arithmetic on
readings goes through these helpers so that undefined inputs yield undefined
outputs without relying on NaN comparison rules.
"""

import math
from typing import Any, Optional


def parse_float(value: Any) -> Optional[float]:
    """Parse a cell into a float, returning None for blanks, text and NaN."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        result = float(value)
    else:
        text = str(value).strip()
        if not text:
            return None
        try:
            result = float(text)
        except ValueError:
            return None
    if math.isnan(result):
        return None
    return result


def to_nan(value: Optional[float]) -> float:
    """Map an optional value onto the float domain used by pandas/numpy."""
    return float('nan') if value is None else float(value)
