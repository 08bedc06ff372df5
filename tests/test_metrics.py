import math

import numpy as np
import pytest

from jpegtune.metrics import mse, psnr


@pytest.fixture
def gradient():
    return np.arange(64, dtype=np.uint8).reshape(8, 8) * 3


def test_mse_identical_is_zero(gradient):
    assert mse(gradient, gradient.copy()) == 0.0


def test_psnr_identical_is_infinite(gradient):
    assert psnr(gradient, gradient.copy()) == math.inf


def test_mse_full_range_difference():
    black = np.zeros((4, 4), dtype=np.uint8)
    white = np.full((4, 4), 255, dtype=np.uint8)
    assert mse(black, white) == 255.0 * 255.0
    assert psnr(black, white) == 0.0


def test_mse_is_symmetric(gradient):
    other = gradient[::-1].copy()
    assert mse(gradient, other) == mse(other, gradient)


def test_mse_uniform_offset(gradient):
    shifted = gradient + 4
    assert mse(gradient, shifted) == 16.0


def test_psnr_decreases_with_error(gradient):
    small = gradient.copy()
    small[0, 0] += 1
    large = gradient.copy()
    large[0, 0] += 50
    assert psnr(gradient, small) > psnr(gradient, large)


def test_strided_view(gradient):
    padded = np.zeros((8, 10), dtype=np.uint8)
    padded[:, :8] = gradient
    assert mse(padded[:, :8], gradient) == 0.0


def test_shape_mismatch():
    with pytest.raises(ValueError):
        mse(np.zeros((2, 2), dtype=np.uint8), np.zeros((2, 3), dtype=np.uint8))


def test_empty_images_rejected():
    with pytest.raises(ValueError):
        psnr(np.zeros((0, 0), dtype=np.uint8), np.zeros((0, 0), dtype=np.uint8))