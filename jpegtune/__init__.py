"""Image quality metrics (MSE, PSNR, SSIM, MS-SSIM, SmallFry) and JPEG/PPM helpers."""

__version__ = "2.2.0"

__all__ = [
    "convolve",
    "decimate",
    "math_utils",
    "metrics",
    "ms_ssim",
    "smallfry",
    "ssim",
    "util",
]