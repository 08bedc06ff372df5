"""Down-sampling of float images through a low-pass kernel."""

from __future__ import annotations

import numpy as np

from jpegtune.convolve import Kernel, _as_image, _filter_grid


def decimate(img, factor: int, kernel: Kernel | None) -> np.ndarray:
    """Low-pass filter and subsample ``img`` by ``factor``.

    The output is ``w // factor + (w & 1)`` wide and ``h // factor + (h & 1)``
    high. Without a kernel the pixels are sampled directly.
    """
    if factor < 1:
        raise ValueError(f"decimation factor must be at least 1, got {factor}")
    pixels = _as_image(img)
    h, w = pixels.shape
    sw = w // factor + (w & 1)
    sh = h // factor + (h & 1)
    ys = (np.arange(sh) * factor)[:, None]
    xs = (np.arange(sw) * factor)[None, :]
    if kernel is None:
        return pixels[ys, xs].copy()
    return _filter_grid(pixels, xs, ys, kernel, 1.0)