"""The SmallFry perceptual metric for comparing a JPEG with its original.

The score mixes a PSNR-derived term with an artefact term that measures how
strongly differences line up with the 8x8 block grid of JPEG.
"""

from __future__ import annotations

import math

import numpy as np

_PSNR_WEIGHT = 37.1891885161239
_AAE_WEIGHT = 78.5328607296973
_BLOCK = 8


def _as_luma(data, width: int, height: int) -> np.ndarray:
    if width <= 0 or height <= 0:
        raise ValueError(f"image dimensions must be positive, got {width}x{height}")
    if isinstance(data, (bytes, bytearray, memoryview)):
        pixels = np.frombuffer(bytes(data), dtype=np.uint8)
    else:
        pixels = np.asarray(data)
    if pixels.size != width * height:
        raise ValueError(
            f"expected {width * height} luma samples for {width}x{height}, got {pixels.size}"
        )
    return pixels.reshape(height, width).astype(np.int64)


def _psnr_factor(orig: np.ndarray, cmp: np.ndarray, peak: int) -> float:
    total = int(np.sum((orig - cmp) ** 2))
    if total == 0:
        ret = math.inf
    else:
        ret = 10.0 * math.log10(65025.0 / (total / orig.size))
    if peak > 128:
        ret /= 50.0
    else:
        ret /= 0.0016 * float(peak * peak) - (0.38 * float(peak) + 72.5)
    return max(min(ret, 1.0), 0.0)


def _edge_score(centre, across, before, after) -> tuple[float, int]:
    calc = np.abs(centre - across) / (np.abs(before - centre) + np.abs(across - after) + 0.0001)
    calc = calc * 2.0
    scores = np.where(calc > 5.0, 1.0, np.where(calc > 2.0, (calc - 2.0) / 3.0, 0.0))
    return float(np.sum(scores)), int(calc.size)


def _aae_factor(orig: np.ndarray, cmp: np.ndarray, peak: int) -> float:
    diff = np.abs(orig - cmp)
    height, width = diff.shape
    total = 0.0
    count = 0

    # Vertical block edges; the sample just past the last row reads as zero.
    cols = np.arange(_BLOCK - 1, width - 1, _BLOCK)
    if cols.size:
        flat = np.append(diff.ravel(), 0)
        idx = (np.arange(height) * width)[:, None] + cols[None, :]
        part, n = _edge_score(flat[idx], flat[idx + 1], flat[idx - 1], flat[idx + 2])
        total += part
        count += n

    # Horizontal block edges.
    rows = np.arange(_BLOCK - 1, height - 2, _BLOCK)
    if rows.size:
        part, n = _edge_score(diff[rows], diff[rows + 1], diff[rows - 1], diff[rows + 2])
        total += part
        count += n

    if count == 0:
        raise ValueError(f"image {width}x{height} is too small to contain any block edge")

    ret = 1.0 - total / count
    if peak > 128:
        cfmax = 0.65
    else:
        cfmax = 0.65 + 0.35 * ((128.0 - float(peak)) / 128.0)
    term = 1.0 if total == 0.0 else min(1.0, 0.25 + (1000.0 * count) / total)
    return ret * max(cfmax, term)


def smallfry_metric(original, compressed, width: int, height: int) -> float:
    """SmallFry score of ``compressed`` against ``original``.

    Both images are 8-bit luma planes of ``width`` x ``height`` samples,
    given as bytes or arrays. Higher scores mean closer to the original.
    """
    orig = _as_luma(original, width, height)
    cmp = _as_luma(compressed, width, height)
    peak = int(orig.max())
    p = _psnr_factor(orig, cmp, peak)
    a = _aae_factor(orig, cmp, peak)
    return p * _PSNR_WEIGHT + a * _AAE_WEIGHT