"""Structural similarity (SSIM) of 8-bit images."""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from jpegtune.convolve import Kernel, convolve, symmetric
from jpegtune.decimate import decimate
from jpegtune.math_utils import round_half_away

GAUSSIAN_LEN = 11
SQUARE_LEN = 8
_GAUSSIAN_SIGMA = 1.5


def _make_gaussian() -> np.ndarray:
    offsets = np.arange(GAUSSIAN_LEN, dtype=np.float64) - GAUSSIAN_LEN // 2
    yy, xx = np.meshgrid(offsets, offsets, indexing="ij")
    weights = np.exp(-(xx ** 2 + yy ** 2) / (2.0 * _GAUSSIAN_SIGMA ** 2))
    return (weights / weights.sum()).astype(np.float32)


_GAUSSIAN = _make_gaussian()
_SQUARE = np.full((SQUARE_LEN, SQUARE_LEN), 1.0 / (SQUARE_LEN * SQUARE_LEN), dtype=np.float32)


def gaussian_window() -> Kernel:
    """The normalised 11x11 Gaussian window (sigma 1.5)."""
    return Kernel(_GAUSSIAN.copy(), normalized=True, boundary=symmetric)


def square_window() -> Kernel:
    """The normalised 8x8 box window."""
    return Kernel(_SQUARE.copy(), normalized=True, boundary=symmetric)


@dataclass(frozen=True)
class SsimArgs:
    """Tunable SSIM parameters.

    ``factor`` is the down-sampling factor; 0 selects it from the image size.
    """

    alpha: float = 1.0
    beta: float = 1.0
    gamma: float = 1.0
    dynamic_range: int = 255
    k1: float = 0.01
    k2: float = 0.03
    factor: int = 0


@dataclass
class SsimComponents:
    """Per-pixel luminance, contrast and structure terms."""

    luminance: np.ndarray
    contrast: np.ndarray
    structure: np.ndarray


class MeanAccumulator:
    """Collects the mean of luminance * contrast * structure."""

    def __init__(self) -> None:
        self.total = 0.0

    def add(self, components: SsimComponents) -> None:
        product = (
            np.asarray(components.luminance, dtype=np.float64)
            * np.asarray(components.contrast, dtype=np.float64)
            * np.asarray(components.structure, dtype=np.float64)
        )
        self.total += float(np.sum(product))

    def result(self, width: int, height: int) -> float:
        return float(np.float32(self.total / float(width * height)))


def _as_pair(ref, cmp) -> tuple[np.ndarray, np.ndarray]:
    left = np.asarray(ref, dtype=np.float32)
    right = np.asarray(cmp, dtype=np.float32)
    if left.ndim != 2:
        raise ValueError("images must be 2-D arrays")
    if left.shape != right.shape:
        raise ValueError(f"image shapes differ: {left.shape} vs. {right.shape}")
    if left.size == 0:
        raise ValueError("images are empty")
    return left, right


def _apply_exponent(result: np.ndarray, exponent: float) -> np.ndarray:
    if exponent == 1.0:
        return result
    sign = np.where(result < 0.0, -1.0, 1.0)
    return sign * np.power(np.abs(result), float(exponent))


def _luminance(mu1: np.ndarray, mu2: np.ndarray, c1: np.float32, alpha: float) -> np.ndarray:
    mu1_sq = mu1 * mu1
    mu2_sq = mu2 * mu2
    result = (2.0 * mu1.astype(np.float64) * mu2.astype(np.float64) + c1) / (
        (mu1_sq + mu2_sq + c1).astype(np.float64)
    )
    if c1 == 0:
        result = np.where((mu1_sq == 0) & (mu2_sq == 0), 1.0, result)
    return _apply_exponent(result, alpha)


def _contrast(root: np.ndarray, s1: np.ndarray, s2: np.ndarray, c2: np.float32, beta: float) -> np.ndarray:
    total = s1 + s2
    result = (2.0 * root + c2) / (total + c2).astype(np.float64)
    if c2 == 0:
        result = np.where(total == 0, 1.0, result)
    return _apply_exponent(result, beta)


def _structure(
    s12: np.ndarray, root: np.ndarray, s1: np.ndarray, s2: np.ndarray, c3: np.float32, gamma: float
) -> np.ndarray:
    result = (s12.astype(np.float64) + c3) / (root + c3)
    if c3 == 0:
        flat = root == 0
        both = flat & (s1 == 0) & (s2 == 0)
        one = flat & ~both & ((s1 == 0) | (s2 == 0))
        result = np.where(both, 1.0, np.where(one, 0.0, result))
    return _apply_exponent(result, gamma)


def compute_ssim(ref, cmp, window: Kernel, args: SsimArgs | None = None, accumulator=None) -> float:
    """SSIM of two float images under ``window``.

    Without ``args`` the classic formula is averaged directly. With ``args``
    the separate components are handed to ``accumulator`` and its result is
    returned.
    """
    ref_f, cmp_f = _as_pair(ref, cmp)
    alpha = beta = gamma = 1.0
    dynamic_range = 255
    k1, k2 = 0.01, 0.03
    if args is not None:
        if accumulator is None:
            raise ValueError("component SSIM needs an accumulator")
        alpha, beta, gamma = args.alpha, args.beta, args.gamma
        dynamic_range, k1, k2 = args.dynamic_range, args.k1, args.k2
    c1 = np.float32(k1 * dynamic_range) ** 2
    c2 = np.float32(k2 * dynamic_range) ** 2
    c3 = np.float32(c2 / np.float32(2.0))

    ref_mu = convolve(ref_f, window)
    cmp_mu = convolve(cmp_f, window)
    ref_sq = convolve(ref_f * ref_f, window) - ref_mu * ref_mu
    cmp_sq = convolve(cmp_f * cmp_f, window) - cmp_mu * cmp_mu
    both = convolve(ref_f * cmp_f, window) - ref_mu * cmp_mu
    height, width = both.shape

    if args is None:
        mu1 = ref_mu.astype(np.float64)
        mu2 = cmp_mu.astype(np.float64)
        numerator = (2.0 * mu1 * mu2 + c1) * (2.0 * both.astype(np.float64) + c2)
        denominator = (mu1 * mu1 + mu2 * mu2 + c1) * (
            ref_sq.astype(np.float64) + cmp_sq.astype(np.float64) + c2
        )
        total = float(np.sum(numerator / denominator))
        return float(np.float32(total / float(width * height)))

    s1 = np.maximum(ref_sq, np.float32(0.0))
    s2 = np.maximum(cmp_sq, np.float32(0.0))
    root = np.sqrt((s1 * s2).astype(np.float64))
    with np.errstate(divide="ignore", invalid="ignore"):
        components = SsimComponents(
            luminance=_luminance(ref_mu, cmp_mu, c1, alpha),
            contrast=_contrast(root, s1, s2, c2, beta),
            structure=_structure(both, root, s1, s2, c3, gamma),
        )
    accumulator.add(components)
    return accumulator.result(width, height)


def ssim(ref, cmp, gaussian: bool = True, args: SsimArgs | None = None) -> float:
    """Mean SSIM of two 8-bit images of equal shape.

    Large images are first down-sampled by roughly ``min(w, h) / 256``
    unless ``args.factor`` says otherwise.
    """
    ref_f, cmp_f = _as_pair(ref, cmp)
    height, width = ref_f.shape
    scale = max(1, round_half_away(min(width, height) / 256.0))
    accumulator = None
    if args is not None:
        if args.factor:
            scale = args.factor
        accumulator = MeanAccumulator()
    window = gaussian_window() if gaussian else square_window()

    if scale > 1:
        weight = np.float32(1.0 / (scale * scale))
        low_pass = Kernel(
            np.full((scale, scale), weight, dtype=np.float32),
            normalized=False,
            boundary=symmetric,
        )
        ref_f = decimate(ref_f, scale, low_pass)
        cmp_f = decimate(cmp_f, scale, low_pass)

    return compute_ssim(ref_f, cmp_f, window, args, accumulator)