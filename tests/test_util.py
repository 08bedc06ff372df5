import io
import sys

import numpy as np
import pytest

from jpegtune.util import (
    DecodedImage,
    FileType,
    ImageFormatError,
    PixelFormat,
    Subsampling,
    check_jpeg_magic,
    check_ppm_magic,
    decode_file,
    decode_file_from_buffer,
    decode_jpeg,
    decode_ppm,
    detect_filetype,
    detect_filetype_from_buffer,
    encode_jpeg,
    get_metadata,
    read_file,
)

PPM_2X2 = b"P6\n2 2\n255\n\x01\x02\x03\x04\x05\x06\x07\x08\x09\x0a\x0b\x0c"


def _segment(marker: int, payload: bytes) -> bytes:
    return marker.to_bytes(2, "big") + (len(payload) + 2).to_bytes(2, "big") + payload


def test_decode_ppm_from_source_case():
    image = decode_ppm(PPM_2X2)
    assert len(PPM_2X2) == 23
    assert image.width == 2
    assert image.height == 2
    assert image.pixels[0] == 0x1
    assert image.pixels[11] == 0xC


def test_decode_ppm_skips_comments_and_blank_lines():
    image = decode_ppm(b"P6\n# made up\n\n1 1\n255\n\x07\x08\x09")
    assert image == DecodedImage(b"\x07\x08\x09", 1, 1)


def test_decode_ppm_rejects_bad_magic():
    with pytest.raises(ImageFormatError):
        decode_ppm(b"P5\n1 1\n255\n\x00")


def test_decode_ppm_rejects_other_depths():
    with pytest.raises(ImageFormatError, match="bit depth"):
        decode_ppm(b"P6\n1 1\n65535\n\x00\x00\x00\x00\x00\x00")


def test_decode_ppm_rejects_wrong_data_size():
    with pytest.raises(ImageFormatError, match="incorrect image size"):
        decode_ppm(b"P6\n2 2\n255\n\x01")


def test_decode_ppm_rejects_truncated_header():
    with pytest.raises(ImageFormatError):
        decode_ppm(b"P6\n")


def test_magic_checks():
    assert check_jpeg_magic(b"\xff\xd8\xff")
    assert not check_jpeg_magic(b"\xff")
    assert check_ppm_magic(b"P6")
    assert not check_ppm_magic(b"P3")


@pytest.mark.parametrize(
    "data, expected",
    [
        (b"\xff\xd8\xff\xe0", FileType.JPEG),
        (PPM_2X2, FileType.PPM),
        (b"GIF89a", FileType.UNKNOWN),
        (b"", FileType.UNKNOWN),
    ],
)
def test_detect_filetype_from_buffer(data, expected):
    assert detect_filetype_from_buffer(data) is expected


def test_grayscale_round_trip():
    pixels = bytes([128]) * (16 * 16)
    jpeg = encode_jpeg(pixels, 16, 16, PixelFormat.GRAYSCALE, quality=95)
    assert check_jpeg_magic(jpeg)
    image = decode_jpeg(jpeg, PixelFormat.GRAYSCALE)
    assert (image.width, image.height) == (16, 16)
    values = np.frombuffer(image.pixels, dtype=np.uint8)
    assert values.size == 256
    assert np.all(np.abs(values.astype(int) - 128) <= 2)


@pytest.mark.parametrize("subsample", [Subsampling.DEFAULT, Subsampling.CHROMA_444])
@pytest.mark.parametrize("progressive", [False, True])
def test_rgb_round_trip(subsample, progressive):
    pixels = bytes([200, 50, 30]) * (24 * 16)
    jpeg = encode_jpeg(pixels, 24, 16, PixelFormat.RGB, 90, progressive, True, subsample)
    image = decode_jpeg(jpeg, PixelFormat.RGB)
    assert (image.width, image.height) == (24, 16)
    values = np.frombuffer(image.pixels, dtype=np.uint8).reshape(16, 24, 3).astype(int)
    assert np.all(np.abs(values - [200, 50, 30]) <= 6)


def test_rgb_jpeg_decodes_to_grayscale():
    pixels = bytes([128, 128, 128]) * (16 * 16)
    jpeg = encode_jpeg(pixels, 16, 16, PixelFormat.RGB, quality=95)
    image = decode_jpeg(jpeg, PixelFormat.GRAYSCALE)
    values = np.frombuffer(image.pixels, dtype=np.uint8)
    assert values.size == 256
    assert np.all(np.abs(values.astype(int) - 128) <= 3)


def test_higher_quality_gives_larger_output():
    rng = np.random.default_rng(0)
    pixels = rng.integers(0, 256, size=64 * 64, dtype=np.uint8).tobytes()
    low = encode_jpeg(pixels, 64, 64, PixelFormat.GRAYSCALE, quality=10)
    high = encode_jpeg(pixels, 64, 64, PixelFormat.GRAYSCALE, quality=95)
    assert len(high) > len(low)


def test_encode_rejects_wrong_pixel_count():
    with pytest.raises(ValueError):
        encode_jpeg(b"\x00" * 10, 4, 4, PixelFormat.RGB)


def test_decode_jpeg_rejects_garbage():
    with pytest.raises(ImageFormatError):
        decode_jpeg(b"\xff\xd8 not really a jpeg")


def test_decode_file_from_buffer_dispatches():
    assert decode_file_from_buffer(PPM_2X2, FileType.PPM).width == 2
    with pytest.raises(ImageFormatError):
        decode_file_from_buffer(PPM_2X2, FileType.UNKNOWN)


def test_files_on_disk(tmp_path):
    path = tmp_path / "image.ppm"
    path.write_bytes(PPM_2X2)
    assert read_file(path) == PPM_2X2
    assert detect_filetype(path) is FileType.PPM
    image = decode_file(path, FileType.PPM)
    assert image.pixels == PPM_2X2[-12:]


def test_read_file_missing_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        read_file(tmp_path / "missing.jpg")


def test_read_file_from_stdin(monkeypatch):
    monkeypatch.setattr(sys, "stdin", io.TextIOWrapper(io.BytesIO(PPM_2X2)))
    assert read_file("-") == PPM_2X2


def test_get_metadata_keeps_app_and_comment_segments():
    app0 = _segment(0xFFE0, b"JFIF\x00" + b"\x00" * 9)
    app1 = _segment(0xFFE1, b"Exif\x00\x00")
    com = _segment(0xFFFE, b"hello")
    dqt = _segment(0xFFDB, b"\x00" * 4)
    sos = _segment(0xFFDA, b"\x00" * 4)
    buf = b"\xff\xd8" + app0 + app1 + dqt + com + sos + b"\x12\x34"
    assert get_metadata(buf) == app1 + com


def test_get_metadata_detects_comment():
    com = _segment(0xFFFE, b"Compressed by tool")
    buf = b"\xff\xd8" + com + _segment(0xFFDA, b"\x00")
    assert get_metadata(buf, "Compressed") is None
    assert get_metadata(buf, "Other") == com


def test_get_metadata_limits_to_twenty_segments():
    app1 = _segment(0xFFE1, b"data")
    buf = b"\xff\xd8" + app1 * 25 + _segment(0xFFDA, b"\x00")
    assert get_metadata(buf) == app1 * 20


def test_get_metadata_skips_restart_interval():
    dri = b"\xff\xdd\x00\x04\x00\x10"
    app2 = _segment(0xFFE2, b"icc")
    buf = b"\xff\xd8" + dri + app2 + _segment(0xFFDA, b"\x00")
    assert get_metadata(buf) == app2