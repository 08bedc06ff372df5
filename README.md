# jpegtune

Image quality metrics and JPEG/PPM helpers for working out how far a JPEG
can be recompressed before it visibly degrades.

## Installation

```
pip install jpegtune
```

To run the test suite:

```
pip install "jpegtune[test]"
pytest
```

## Modules

### `jpegtune.metrics`

- `mse(ref, cmp)`: mean squared error of two equally shaped 2-D arrays of
  8-bit samples.
- `psnr(ref, cmp)`: peak signal-to-noise ratio in dB. It returns `math.inf`
  for identical images.

Both raise `ValueError` if the images are not 2-D, differ in shape or are
empty.

### `jpegtune.ssim`

- `ssim(ref, cmp, gaussian=True, args=None)`: mean structural similarity. It
  uses the 11x11 Gaussian window (sigma 1.5) or, with `gaussian=False`, the
  8x8 box window. Large images are first downsampled by about
  `min(width, height) / 256`.
- `SsimArgs(alpha, beta, gamma, dynamic_range, k1, k2, factor)`: when given,
  SSIM is worked out from separate luminance, contrast and structure terms
  raised to the given exponents. `factor` sets the downsampling factor; 0
  means it is chosen from the image size.
- `compute_ssim(ref, cmp, window, args=None, accumulator=None)`: SSIM under
  an explicit window, without downsampling. With `args` it also needs an
  accumulator, such as `MeanAccumulator`, which receives `SsimComponents`.
- `gaussian_window()` and `square_window()`: the two windows as `Kernel`
  objects.

### `jpegtune.ms_ssim`

- `ms_ssim(ref, cmp, args=None)`: multi-scale SSIM. By default it uses the
  Rouse/Hemami form over 5 scales.
- `MsSsimArgs(wang, gaussian, scales, alphas, betas, gammas)`: `wang=True`
  uses the original stabilisation constants. `gaussian=False` selects the 8x8
  box window. Per-scale exponents default to 0.0448, 0.2856, 0.3001, 0.2363
  and 0.1333, with the luminance exponent applied only at the last scale.
- `ScaleAccumulator`: the per-scale accumulator that `ms_ssim` uses.

`ms_ssim` raises `ValueError` in these cases:

- the image would shrink below the window size before the last scale;
- fewer exponents are given than there are scales;
- `scales` is below 1.

### `jpegtune.smallfry`

- `smallfry_metric(original, compressed, width, height)`: the SmallFry score
  of a compressed 8-bit luma plane against its original. It combines a
  PSNR-derived factor with a factor that measures artefacts along the 8x8
  block grid. Planes may be given as bytes or arrays. A higher score means the
  image is closer to the original.
- It raises `ValueError` if the sizes do not match, or if the image is too
  small to contain any block edge.

### `jpegtune.util`

- `read_file(name)`: reads a whole file. `"-"` reads standard input.
- `check_jpeg_magic`, `check_ppm_magic`, `detect_filetype_from_buffer` and
  `detect_filetype`: identify the type of a buffer or file by its first two
  bytes, as a `FileType` (`UNKNOWN`, `AUTO`, `JPEG`, `PPM`).
- `decode_ppm(buf)`: decodes binary P6 PPM data with a maximum value of 255.
- `decode_jpeg(buf, pixel_format)`: decodes a JPEG to `PixelFormat.RGB` or
  `PixelFormat.GRAYSCALE`.
- `decode_file` and `decode_file_from_buffer`: decode by `FileType`. PPM
  output is always RGB, and any type other than JPEG or PPM raises an error.
- All decoders return a `DecodedImage` with `pixels` (bytes), `width` and
  `height`.
- Decoding problems raise `ImageFormatError`, a subclass of `ValueError`.
- `encode_jpeg(pixels, width, height, pixel_format, quality, progressive, optimize, subsample)`:
  encodes raw pixels with Pillow. Quality is clamped to 1..100.
  `Subsampling.CHROMA_444` turns off chroma subsampling for RGB input.
- `get_metadata(buf, comment=None)`: returns the APP1–APP15 and COM segments
  that come before the scan, up to 20 of them, joined into one bytes object.
  If `comment` is given and a COM segment starts with it, it returns `None`
  instead.

### `jpegtune.convolve`, `jpegtune.decimate`, `jpegtune.math_utils`

These hold the building blocks of the metrics:

- `Kernel(weights, normalized, boundary, bnd_const)` together with the
  boundary handlers `symmetric`, `replicate` and `constant`;
- `convolve`, for positions where the kernel lies fully inside the image;
- `img_filter`, which filters every pixel;
- `filter_pixel`;
- `decimate(img, factor, kernel)`;
- the rounding and comparison helpers `round_half_away`, `cmp_float` and
  `matrix_equal`.

## Example

```python
import numpy as np

from jpegtune.smallfry import smallfry_metric
from jpegtune.ssim import ssim
from jpegtune.util import FileType, PixelFormat, decode_file, decode_jpeg, encode_jpeg

original = decode_file("photo.jpg", FileType.JPEG, PixelFormat.GRAYSCALE)
encoded = encode_jpeg(original.pixels, original.width, original.height,
                      PixelFormat.GRAYSCALE, quality=70)
candidate = decode_jpeg(encoded, PixelFormat.GRAYSCALE)

shape = (original.height, original.width)
ref = np.frombuffer(original.pixels, dtype=np.uint8).reshape(shape)
cmp = np.frombuffer(candidate.pixels, dtype=np.uint8).reshape(shape)

print(ssim(ref, cmp))
print(smallfry_metric(original.pixels, candidate.pixels, original.width, original.height))
```

## What it does not do

`jpegtune` is a library only. It has no command-line programs. It does not
search for the best quality setting itself, and it does not compute
perceptual image hashes. Callers combine `encode_jpeg` and the metrics to do
that search themselves.