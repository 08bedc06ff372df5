"""Small numeric helpers shared by the image quality metrics."""

from __future__ import annotations

import math

import numpy as np


def _round_scaled(value: float, scale: float) -> int:
    sign = 1 if value > 0.0 else -1
    scaled = value * scale
    whole = math.trunc(scaled)
    return whole + sign if scaled - whole >= 0.5 else whole


def round_half_away(value: float) -> int:
    """Round a single-precision value to an integer.

    Positive values round half up. Negative values are truncated toward zero,
    because the fractional part of a negative number never reaches 0.5.
    """
    return _round_scaled(float(np.float32(value)), 1.0)


def cmp_float(a: float, b: float, digits: int) -> bool:
    """Return True if ``a`` and ``b`` agree after rounding to ``digits`` decimals."""
    scale = 10.0 ** digits
    left = float(np.float32(a))
    right = float(np.float32(b))
    return _round_scaled(left, scale) == _round_scaled(right, scale)


def matrix_equal(a, b, digits: int) -> bool:
    """Return True if every element of ``a`` matches ``b`` to ``digits`` decimals."""
    left = np.asarray(a, dtype=np.float32)
    right = np.asarray(b, dtype=np.float32)
    if left.size != right.size:
        raise ValueError(
            f"matrices differ in size: {left.size} vs. {right.size}"
        )
    return all(cmp_float(x, y, digits) for x, y in zip(left.flat, right.flat))