"""Reading, detecting, decoding and encoding JPEG and PPM images."""

from __future__ import annotations

import io
import re
import sys
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from PIL import Image

VERSION = "2.2.0"

_SOS = 0xFFDA
_DRI = 0xFFDD
_COM = 0xFFFE
_MAX_MARKERS = 20

_PPM_SIZE = re.compile(rb"\s*([-+]?\d+)(?!\d)\s*([-+]?\d+)")
_PPM_DEPTH = re.compile(rb"\s*([-+]?\d+)")


class ImageFormatError(ValueError):
    """Raised when image data cannot be decoded or is not supported."""


class FileType(Enum):
    UNKNOWN = 0
    AUTO = 1
    JPEG = 2
    PPM = 3


class Subsampling(Enum):
    """Chroma subsampling: the encoder default (4:2:0) or full 4:4:4."""

    DEFAULT = 0
    CHROMA_444 = 1


class PixelFormat(Enum):
    GRAYSCALE = "L"
    RGB = "RGB"

    @property
    def mode(self) -> str:
        return self.value

    @property
    def components(self) -> int:
        return 1 if self is PixelFormat.GRAYSCALE else 3


@dataclass(frozen=True)
class DecodedImage:
    """Interleaved 8-bit pixels, row by row, with their dimensions."""

    pixels: bytes
    width: int
    height: int


def read_file(name: str | Path) -> bytes:
    """Read a whole file; ``"-"`` reads standard input."""
    if str(name) == "-":
        return sys.stdin.buffer.read()
    return Path(name).read_bytes()


def check_jpeg_magic(buf: bytes) -> bool:
    return len(buf) >= 2 and buf[0] == 0xFF and buf[1] == 0xD8


def check_ppm_magic(buf: bytes) -> bool:
    return len(buf) >= 2 and buf[0] == ord("P") and buf[1] == ord("6")


def decode_jpeg(buf: bytes, pixel_format: PixelFormat = PixelFormat.RGB) -> DecodedImage:
    """Decode a JPEG into pixels of the given format."""
    try:
        with Image.open(io.BytesIO(bytes(buf))) as image:
            if image.format != "JPEG":
                raise ImageFormatError(f"not a JPEG image: {image.format}")
            if pixel_format is PixelFormat.GRAYSCALE:
                image.draft("L", image.size)
            image.load()
            converted = image if image.mode == pixel_format.mode else image.convert(pixel_format.mode)
            return DecodedImage(converted.tobytes(), converted.width, converted.height)
    except ImageFormatError:
        raise
    except (OSError, SyntaxError, ValueError, Image.DecompressionBombError) as exc:
        raise ImageFormatError(f"unable to decode JPEG: {exc}") from exc


def _next_line(buf: bytes, pos: int) -> int:
    found = buf.find(b"\n", pos)
    return len(buf) if found < 0 else found + 1


def decode_ppm(buf: bytes) -> DecodedImage:
    """Decode a binary (P6) PPM image with a maximum value of 255."""
    data = bytes(buf)
    if not check_ppm_magic(data):
        raise ImageFormatError("not a valid PPM format image!")

    pos = _next_line(data, 0)
    while pos < len(data) and data[pos] in b"#\n":
        pos = _next_line(data, pos)
    if pos >= len(data):
        raise ImageFormatError("not a valid PPM format image!")

    size = _PPM_SIZE.match(data, pos)
    if size is None:
        raise ImageFormatError("not a valid PPM format image!")
    width, height = int(size.group(1)), int(size.group(2))

    pos = _next_line(data, pos)
    if pos >= len(data):
        raise ImageFormatError("not a valid PPM format image!")

    depth_match = _PPM_DEPTH.match(data, pos)
    if depth_match is None:
        raise ImageFormatError("not a valid PPM format image!")
    depth = int(depth_match.group(1))
    if depth != 255:
        raise ImageFormatError(f"unsupported bit depth: {depth}")

    pos = _next_line(data, pos)
    if width < 0 or height < 0:
        raise ImageFormatError(f"invalid image dimensions: {width}x{height}")
    data_size = width * height * 3
    if pos + data_size != len(data):
        raise ImageFormatError(f"incorrect image size: {len(data)} vs. {pos + data_size}")
    return DecodedImage(data[pos:], width, height)


def encode_jpeg(
    pixels: bytes,
    width: int,
    height: int,
    pixel_format: PixelFormat = PixelFormat.RGB,
    quality: int = 75,
    progressive: bool = False,
    optimize: bool = False,
    subsample: Subsampling = Subsampling.DEFAULT,
) -> bytes:
    """Encode raw pixels as a JPEG. Quality is clamped to 1..100."""
    expected = width * height * pixel_format.components
    data = bytes(pixels)
    if width <= 0 or height <= 0:
        raise ValueError(f"image dimensions must be positive, got {width}x{height}")
    if len(data) != expected:
        raise ValueError(f"expected {expected} bytes of pixels, got {len(data)}")

    options = {
        "quality": max(1, min(100, int(quality))),
        "progressive": bool(progressive),
        "optimize": bool(optimize),
    }
    if pixel_format is PixelFormat.RGB and subsample is Subsampling.CHROMA_444:
        options["subsampling"] = 0

    image = Image.frombytes(pixel_format.mode, (width, height), data)
    out = io.BytesIO()
    image.save(out, format="JPEG", **options)
    return out.getvalue()


def detect_filetype_from_buffer(buf: bytes) -> FileType:
    if check_jpeg_magic(buf):
        return FileType.JPEG
    if check_ppm_magic(buf):
        return FileType.PPM
    return FileType.UNKNOWN


def detect_filetype(filename: str | Path) -> FileType:
    """Detect the type of a file from its leading bytes."""
    return detect_filetype_from_buffer(read_file(filename))


def decode_file_from_buffer(
    buf: bytes, filetype: FileType, pixel_format: PixelFormat = PixelFormat.RGB
) -> DecodedImage:
    """Decode a buffer of the given type. PPM data is always RGB."""
    if filetype is FileType.PPM:
        return decode_ppm(buf)
    if filetype is FileType.JPEG:
        return decode_jpeg(buf, pixel_format)
    raise ImageFormatError(f"cannot decode file type {filetype.name}")


def decode_file(
    filename: str | Path, filetype: FileType, pixel_format: PixelFormat = PixelFormat.RGB
) -> DecodedImage:
    """Read and decode an image file of the given type."""
    return decode_file_from_buffer(read_file(filename), filetype, pixel_format)


def get_metadata(buf: bytes, comment: str | bytes | None = None) -> bytes | None:
    """Collect the APP1-APP15 and COM segments that precede the image scan.

    At most 20 segments are kept. If ``comment`` is given and a COM segment
    starts with it, None is returned so callers can tell the file was
    already processed.
    """
    data = bytes(buf)
    needle = comment.encode() if isinstance(comment, str) else comment
    segments: list[bytes] = []
    pos = 0
    while pos < len(data) and len(segments) < _MAX_MARKERS:
        if pos + 1 >= len(data):
            break
        marker = int.from_bytes(data[pos:pos + 2], "big")
        if marker == _SOS:
            break
        if marker == _DRI:
            pos += 6
            continue
        if 0xFFD0 <= marker <= 0xFFD9:
            pos += 2
            continue
        if pos + 3 >= len(data):
            break
        size = int.from_bytes(data[pos + 2:pos + 4], "big")
        if 0xFFE1 <= marker <= 0xFFEF or marker == _COM:
            if marker == _COM and needle is not None and data[pos + 4:pos + 4 + len(needle)] == needle:
                return None
            segments.append(data[pos:pos + 2 + size])
        pos += 2 + size
    return b"".join(segments)