import struct

import numpy as np
import pytest
from PIL import Image

from opgkit.imagedata import (
    ImageData,
    ImageError,
    ImageFormat,
    channel_count,
    channel_size,
    pixel_size,
    read_image,
    write_image_exr,
    write_image_png,
)


@pytest.mark.parametrize("fmt", list(ImageFormat))
def test_channel_count_matches_format_name(fmt):
    letters = fmt.name.split("_")[0]
    assert channel_count(fmt) == len(letters)


@pytest.mark.parametrize("fmt", list(ImageFormat))
def test_channel_size_matches_component_type(fmt):
    expected = struct.calcsize("f") if fmt.name.endswith("FLOAT") else struct.calcsize("B")
    assert channel_size(fmt) == expected


@pytest.mark.parametrize("fmt", list(ImageFormat))
def test_pixel_size_is_product(fmt):
    assert pixel_size(fmt) == channel_count(fmt) * channel_size(fmt)


def test_plain_int_format_accepted():
    assert channel_count(int(ImageFormat.RGBA_FLOAT)) == channel_count(ImageFormat.RGBA_FLOAT)


@pytest.mark.parametrize("func", [channel_count, channel_size, pixel_size])
def test_unknown_format_raises(func):
    with pytest.raises(ValueError):
        func(99)


@pytest.mark.parametrize(
    "fmt",
    [ImageFormat.R_UINT8, ImageFormat.RG_UINT8, ImageFormat.RGB_UINT8, ImageFormat.RGBA_UINT8],
)
def test_png_round_trip(tmp_path, fmt):
    width, height = 5, 3
    size = width * height * channel_count(fmt)
    data = bytes((i * 7) % 256 for i in range(size))
    path = tmp_path / "img.png"
    write_image_png(path, ImageData(data, width, height, fmt))
    image = read_image(path)
    assert image.format == fmt
    assert (image.width, image.height) == (width, height)
    assert image.data == data


def test_png_rejects_float_format(tmp_path):
    image = ImageData(bytes(12), 1, 1, ImageFormat.RGB_FLOAT)
    with pytest.raises(ImageError):
        write_image_png(tmp_path / "x.png", image)


def test_png_rejects_short_data(tmp_path):
    image = ImageData(bytes(5), 4, 4, ImageFormat.RGB_UINT8)
    with pytest.raises(ImageError):
        write_image_png(tmp_path / "x.png", image)


def test_exr_round_trip_gives_rgba_float(tmp_path):
    width, height = 4, 3
    rgb = (np.arange(width * height * 3, dtype=np.float32) * 0.5).reshape(height, width, 3)
    path = tmp_path / "img.exr"
    write_image_exr(path, ImageData(rgb.tobytes(), width, height, ImageFormat.RGB_FLOAT), True)
    image = read_image(path)
    assert image.format == ImageFormat.RGBA_FLOAT
    assert (image.width, image.height) == (width, height)
    pixels = np.frombuffer(image.data, dtype="<f4").reshape(height, width, 4)
    np.testing.assert_array_equal(pixels[..., :3], rgb)
    np.testing.assert_array_equal(pixels[..., 3], np.ones((height, width), dtype=np.float32))


def test_exr_full_precision_rgba(tmp_path):
    rng = np.random.default_rng(11)
    rgba = rng.random((2, 3, 4), dtype=np.float32)
    path = tmp_path / "full.exr"
    write_image_exr(path, ImageData(rgba.tobytes(), 3, 2, ImageFormat.RGBA_FLOAT), False)
    assert read_image(path).data == rgba.tobytes()


def test_exr_rejects_uint8_format(tmp_path):
    image = ImageData(bytes(3), 1, 1, ImageFormat.RGB_UINT8)
    with pytest.raises(ImageError):
        write_image_exr(tmp_path / "x.exr", image)


def test_palette_image_is_expanded_to_rgb(tmp_path):
    source = Image.new("RGB", (3, 2), (10, 20, 30)).convert("P")
    path = tmp_path / "pal.png"
    source.save(path)
    image = read_image(path)
    assert image.format == ImageFormat.RGB_UINT8
    assert image.data == source.convert("RGB").tobytes()


def test_read_garbage_raises(tmp_path):
    path = tmp_path / "junk.png"
    path.write_bytes(b"definitely not an image")
    with pytest.raises(ImageError):
        read_image(path)


def test_read_missing_raises(tmp_path):
    with pytest.raises(ImageError):
        read_image(tmp_path / "missing.png")