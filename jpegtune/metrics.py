"""Mean squared error and peak signal-to-noise ratio of 8-bit images."""

from __future__ import annotations

import math

import numpy as np

_PEAK_SQUARED = 255 * 255


def _pair(ref, cmp) -> tuple[np.ndarray, np.ndarray]:
    left = np.asarray(ref)
    right = np.asarray(cmp)
    if left.ndim != 2:
        raise ValueError("images must be 2-D arrays")
    if left.shape != right.shape:
        raise ValueError(f"image shapes differ: {left.shape} vs. {right.shape}")
    if left.size == 0:
        raise ValueError("images are empty")
    return left.astype(np.int64), right.astype(np.int64)


def mse(ref, cmp) -> float:
    """Mean squared error between two images of equal shape."""
    left, right = _pair(ref, cmp)
    total = int(np.sum((left - right) ** 2))
    return float(np.float32(total / left.size))


def psnr(ref, cmp) -> float:
    """Peak signal-to-noise ratio in dB; infinite for identical images."""
    error = mse(ref, cmp)
    if error == 0.0:
        return math.inf
    return float(np.float32(10.0 * math.log10(_PEAK_SQUARED / error)))