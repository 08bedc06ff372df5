[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "jpegtune"
version = "2.2.0"
description = "Image quality metrics (MSE, PSNR, SSIM, MS-SSIM, SmallFry) and JPEG/PPM helpers for tuning JPEG compression"
requires-python = ">=3.10"
keywords = ["jpeg", "ppm", "ssim", "ms-ssim", "psnr", "image quality", "compression"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Multimedia :: Graphics :: Graphics Conversion",
    "Topic :: Scientific/Engineering :: Image Processing",
]
dependencies = [
    "numpy",
    "pillow",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["jpegtune"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"
