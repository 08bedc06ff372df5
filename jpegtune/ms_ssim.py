"""Multi-scale structural similarity (MS-SSIM) of 8-bit images."""

from __future__ import annotations

import math
from collections.abc import Sequence
from dataclasses import dataclass

import numpy as np

from jpegtune.convolve import Kernel, symmetric
from jpegtune.decimate import decimate
from jpegtune.ssim import (
    GAUSSIAN_LEN,
    SsimArgs,
    SsimComponents,
    _as_pair,
    compute_ssim,
    gaussian_window,
    square_window,
)

DEFAULT_SCALES = 5
_LPF_LEN = 9

# 9/7 biorthogonal wavelet low-pass filter used between scales.
_LPF = np.array(
    [
        [0.000714, -0.000450, -0.002090, 0.007132, 0.016114, 0.007132, -0.002090, -0.000450, 0.000714],
        [-0.000450, 0.000283, 0.001316, -0.004490, -0.010146, -0.004490, 0.001316, 0.000283, -0.000450],
        [-0.002090, 0.001316, 0.006115, -0.020867, -0.047149, -0.020867, 0.006115, 0.001316, -0.002090],
        [0.007132, -0.004490, -0.020867, 0.071207, 0.160885, 0.071207, -0.020867, -0.004490, 0.007132],
        [0.016114, -0.010146, -0.047149, 0.160885, 0.363505, 0.160885, -0.047149, -0.010146, 0.016114],
        [0.007132, -0.004490, -0.020867, 0.071207, 0.160885, 0.071207, -0.020867, -0.004490, 0.007132],
        [-0.002090, 0.001316, 0.006115, -0.020867, -0.047149, -0.020867, 0.006115, 0.001316, -0.002090],
        [-0.000450, 0.000283, 0.001316, -0.004490, -0.010146, -0.004490, 0.001316, 0.000283, -0.000450],
        [0.000714, -0.000450, -0.002090, 0.007132, 0.016114, 0.007132, -0.002090, -0.000450, 0.000714],
    ],
    dtype=np.float32,
)

DEFAULT_ALPHAS = (0.0, 0.0, 0.0, 0.0, 0.1333)
DEFAULT_BETAS = (0.0448, 0.2856, 0.3001, 0.2363, 0.1333)
DEFAULT_GAMMAS = (0.0448, 0.2856, 0.3001, 0.2363, 0.1333)


@dataclass(frozen=True)
class MsSsimArgs:
    """MS-SSIM options.

    ``wang`` selects the original stabilisation constants instead of the
    Rouse/Hemami variant; ``gaussian`` chooses the 11x11 Gaussian window over
    the 8x8 box. Per-scale exponents default to the published weights.
    """

    wang: bool = False
    gaussian: bool = True
    scales: int = DEFAULT_SCALES
    alphas: Sequence[float] | None = None
    betas: Sequence[float] | None = None
    gammas: Sequence[float] | None = None


@dataclass
class ScaleAccumulator:
    """Sums the SSIM components of one scale and weights their means."""

    alpha: float
    beta: float
    gamma: float
    luminance: float = 0.0
    contrast: float = 0.0
    structure: float = 0.0

    def add(self, components: SsimComponents) -> None:
        self.luminance += float(np.sum(np.asarray(components.luminance, dtype=np.float64)))
        self.contrast += float(np.sum(np.asarray(components.contrast, dtype=np.float64)))
        self.structure += float(np.sum(np.asarray(components.structure, dtype=np.float64)))

    def result(self, width: int, height: int) -> float:
        size = float(width * height)
        with np.errstate(invalid="ignore"):
            lum = np.power(self.luminance / size, float(np.float32(self.alpha)))
            con = np.power(self.contrast / size, float(np.float32(self.beta)))
            struct = np.power(abs(self.structure / size), float(np.float32(self.gamma)))
        return float(np.float32(lum * con * struct))


def _weights(given: Sequence[float] | None, default: Sequence[float], scales: int, name: str):
    weights = tuple(default if given is None else given)
    if len(weights) < scales:
        raise ValueError(f"{name} has {len(weights)} entries, {scales} scales need one each")
    return weights


def ms_ssim(ref, cmp, args: MsSsimArgs | None = None) -> float:
    """MS-SSIM of two 8-bit images of equal shape.

    Raises ValueError if the image would shrink below the window size
    before the last scale.
    """
    opts = args if args is not None else MsSsimArgs()
    scales = opts.scales
    if scales < 1:
        raise ValueError(f"at least one scale is needed, got {scales}")
    alphas = _weights(opts.alphas, DEFAULT_ALPHAS, scales, "alphas")
    betas = _weights(opts.betas, DEFAULT_BETAS, scales, "betas")
    gammas = _weights(opts.gammas, DEFAULT_GAMMAS, scales, "gammas")

    ref_f, cmp_f = _as_pair(ref, cmp)
    height, width = ref_f.shape
    min_len = GAUSSIAN_LEN if opts.gaussian else _LPF_LEN
    cur_w, cur_h = width, height
    for _ in range(scales):
        if cur_w < min_len or cur_h < min_len:
            raise ValueError(f"image {width}x{height} is too small for {scales} scales")
        cur_w //= 2
        cur_h //= 2

    window = gaussian_window() if opts.gaussian else square_window()
    lpf = Kernel(_LPF, normalized=True, boundary=symmetric)

    ref_levels = [ref_f]
    cmp_levels = [cmp_f]
    for _ in range(1, scales):
        ref_levels.append(decimate(ref_levels[-1], 2, lpf))
        cmp_levels.append(decimate(cmp_levels[-1], 2, lpf))

    k1, k2 = (0.01, 0.03) if opts.wang else (0.0, 0.0)
    ssim_args = SsimArgs(alpha=1.0, beta=1.0, gamma=1.0, dynamic_range=255, k1=k1, k2=k2, factor=1)

    result = np.float32(1.0)
    for level, (ref_img, cmp_img) in enumerate(zip(ref_levels, cmp_levels)):
        accumulator = ScaleAccumulator(alphas[level], betas[level], gammas[level])
        value = compute_ssim(ref_img, cmp_img, window, ssim_args, accumulator)
        result = np.float32(result * np.float32(value))
        if math.isinf(result):
            break
    return float(result)