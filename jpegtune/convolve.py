"""Kernels, boundary handling and 2-D convolution over float images.

Images are two-dimensional arrays indexed as ``img[y, x]``. Boundary
handlers take integer coordinates (scalars or numpy arrays) and return the
pixel to use; for coordinates inside the image they return that pixel.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

import numpy as np

Boundary = Callable[..., object]


def symmetric(img, x, y, bnd_const=0.0):
    """Mirror coordinates that fall outside the image back into it."""
    h, w = np.shape(img)
    x = np.asarray(x)
    y = np.asarray(y)
    x = np.where(x < 0, -1 - x, np.where(x >= w, 2 * w - x - 1, x))
    y = np.where(y < 0, -1 - y, np.where(y >= h, 2 * h - y - 1, y))
    return np.asarray(img)[y, x]


def replicate(img, x, y, bnd_const=0.0):
    """Clamp coordinates to the nearest edge pixel."""
    h, w = np.shape(img)
    x = np.clip(np.asarray(x), 0, w - 1)
    y = np.clip(np.asarray(y), 0, h - 1)
    return np.asarray(img)[y, x]


def constant(img, x, y, bnd_const=0.0):
    """Clamp negative coordinates to zero; beyond the far edges return ``bnd_const``."""
    pixels = np.asarray(img)
    h, w = pixels.shape
    x = np.maximum(np.asarray(x), 0)
    y = np.maximum(np.asarray(y), 0)
    outside = (x >= w) | (y >= h)
    values = pixels[np.minimum(y, h - 1), np.minimum(x, w - 1)]
    return np.where(outside, pixels.dtype.type(bnd_const), values)


@dataclass
class Kernel:
    """A filter kernel together with its boundary handling."""

    weights: np.ndarray
    normalized: bool = False
    boundary: Boundary | None = symmetric
    bnd_const: float = 0.0

    def __post_init__(self) -> None:
        weights = np.asarray(self.weights, dtype=np.float32)
        if weights.ndim == 1:
            weights = weights.reshape(1, -1)
        if weights.ndim != 2 or weights.size == 0:
            raise ValueError("kernel weights must be a non-empty 2-D array")
        self.weights = weights

    def scale(self) -> float:
        """Factor applied to filtered sums: 1 if normalized, else 1/sum."""
        if self.normalized:
            return 1.0
        total = sum(map(float, self.weights.flat))
        if total != 0.0:
            return float(np.float32(1.0 / total))
        return 1.0


def _as_image(img) -> np.ndarray:
    pixels = np.asarray(img, dtype=np.float32)
    if pixels.ndim != 2:
        raise ValueError("image must be a 2-D array")
    return pixels


def _direct(img, x, y, bnd_const=0.0):
    h, w = img.shape
    if np.any((x < 0) | (x >= w) | (y < 0) | (y >= h)):
        raise ValueError("kernel reaches outside the image and has no boundary handler")
    return img[y, x]


def _offsets(kernel: Kernel):
    kh, kw = kernel.weights.shape
    vc, uc = kh // 2, kw // 2
    for kv, v in enumerate(range(-vc, kh - vc)):
        for ku, u in enumerate(range(-uc, kw - uc)):
            yield v, u, kernel.weights[kv, ku]


def _filter_grid(img: np.ndarray, xs, ys, kernel: Kernel, kscale: float) -> np.ndarray:
    xs, ys = np.broadcast_arrays(np.asarray(xs), np.asarray(ys))
    sample = kernel.boundary or _direct
    acc = np.zeros(xs.shape, dtype=np.float64)
    for v, u, weight in _offsets(kernel):
        values = np.asarray(sample(img, xs + u, ys + v, kernel.bnd_const), dtype=np.float32)
        acc += (values * weight).astype(np.float64)
    return (acc * kscale).astype(np.float32)


def convolve(img, kernel: Kernel) -> np.ndarray:
    """Apply ``kernel`` wherever it lies fully inside the image.

    The result is smaller than the input by the kernel size minus one in
    each dimension.
    """
    pixels = _as_image(img)
    h, w = pixels.shape
    kh, kw = kernel.weights.shape
    dst_h, dst_w = h - kh + 1, w - kw + 1
    if dst_h <= 0 or dst_w <= 0:
        raise ValueError(f"kernel {kw}x{kh} does not fit in image {w}x{h}")
    scale = kernel.scale()
    acc = np.zeros((dst_h, dst_w), dtype=np.float64)
    for kv in range(kh):
        for ku in range(kw):
            window = pixels[kv:kv + dst_h, ku:ku + dst_w]
            acc += (window * kernel.weights[kv, ku]).astype(np.float64)
    return (acc * scale).astype(np.float32)


def img_filter(img, kernel: Kernel | None) -> np.ndarray:
    """Filter every pixel of the image, using the kernel's boundary handler at the edges."""
    if kernel is None or kernel.boundary is None:
        raise ValueError("filtering needs a kernel with a boundary handler")
    pixels = _as_image(img)
    h, w = pixels.shape
    ys, xs = np.mgrid[0:h, 0:w]
    return _filter_grid(pixels, xs, ys, kernel, kernel.scale())


def filter_pixel(img, x: int, y: int, kernel: Kernel | None, kscale: float) -> float:
    """Filtered value of the single pixel at (x, y)."""
    pixels = _as_image(img)
    if kernel is None:
        return float(pixels[y, x])
    h, w = pixels.shape
    kh, kw = kernel.weights.shape
    uc, vc = kw // 2, kh // 2
    edge = x < uc or y < vc or x >= w - uc or y >= h - vc
    sample = kernel.boundary or _direct
    total = 0.0
    for v, u, weight in _offsets(kernel):
        if edge:
            pixel = np.float32(sample(pixels, np.asarray(x + u), np.asarray(y + v), kernel.bnd_const))
        else:
            pixel = pixels[y + v, x + u]
        total += float(pixel * weight)
    return float(np.float32(total * kscale))