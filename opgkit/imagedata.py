"""Image containers, pixel formats and image file input/output."""

from __future__ import annotations

import os
from dataclasses import dataclass
from enum import IntEnum

import numpy as np
from PIL import Image

from opgkit.exr import ExrError, is_exr, read_exr, write_exr


class ImageError(RuntimeError):
    """Raised when an image cannot be read or written."""


class ImageFormat(IntEnum):
    R_UINT8 = 0
    RG_UINT8 = 1
    RGB_UINT8 = 2
    RGBA_UINT8 = 3
    RGB_FLOAT = 4
    RGBA_FLOAT = 5


@dataclass
class ImageData:
    """Raw pixel bytes together with their dimensions and format."""

    data: bytes
    width: int
    height: int
    format: ImageFormat


_CHANNEL_COUNTS = {
    ImageFormat.R_UINT8: 1,
    ImageFormat.RG_UINT8: 2,
    ImageFormat.RGB_UINT8: 3,
    ImageFormat.RGB_FLOAT: 3,
    ImageFormat.RGBA_UINT8: 4,
    ImageFormat.RGBA_FLOAT: 4,
}

_CHANNEL_SIZES = {
    ImageFormat.R_UINT8: 1,
    ImageFormat.RG_UINT8: 1,
    ImageFormat.RGB_UINT8: 1,
    ImageFormat.RGBA_UINT8: 1,
    ImageFormat.RGB_FLOAT: 4,
    ImageFormat.RGBA_FLOAT: 4,
}

_MODE_BY_COUNT = {1: "L", 2: "LA", 3: "RGB", 4: "RGBA"}
_FORMAT_BY_MODE = {
    "L": ImageFormat.R_UINT8,
    "LA": ImageFormat.RG_UINT8,
    "RGB": ImageFormat.RGB_UINT8,
    "RGBA": ImageFormat.RGBA_UINT8,
}


def _lookup(table, fmt, caller):
    try:
        return table[ImageFormat(fmt)]
    except (ValueError, KeyError) as exc:
        raise ValueError(f"{caller}: unrecognized image format") from exc


def channel_count(fmt) -> int:
    """Number of channels per pixel."""
    return _lookup(_CHANNEL_COUNTS, fmt, "channel_count")


def channel_size(fmt) -> int:
    """Size of one channel value in bytes."""
    return _lookup(_CHANNEL_SIZES, fmt, "channel_size")


def pixel_size(fmt) -> int:
    """Size of one pixel in bytes."""
    return channel_count(fmt) * channel_size(fmt)


def _to_ldr(im: Image.Image) -> Image.Image:
    mode = im.mode
    if mode in ("L", "1"):
        return im.convert("L")
    if mode in ("LA", "La"):
        return im.convert("LA")
    if mode == "RGB":
        return im
    if mode in ("RGBA", "RGBa"):
        return im.convert("RGBA")
    if mode in ("P", "PA"):
        return im.convert("RGBA" if mode == "PA" or "transparency" in im.info else "RGB")
    if mode.startswith("I"):
        values = np.clip(np.asarray(im).astype(np.int64) >> 8, 0, 255).astype(np.uint8)
        return Image.fromarray(values, mode="L")
    return im.convert("RGB")


def _read_ldr(filename) -> ImageData:
    try:
        with Image.open(filename) as im:
            im.load()
            ldr = _to_ldr(im)
            return ImageData(
                data=ldr.tobytes(),
                width=ldr.width,
                height=ldr.height,
                format=_FORMAT_BY_MODE[ldr.mode],
            )
    except (OSError, ValueError) as exc:
        raise ImageError("Failed to read LDR image!") from exc


def read_image(filename) -> ImageData:
    """Read an EXR image as RGBA float, or any other image as 8-bit data."""
    filename = os.fspath(filename)
    if is_exr(filename):
        try:
            pixels = read_exr(filename)
        except ExrError as exc:
            raise ImageError(str(exc)) from exc
        height, width, _ = pixels.shape
        return ImageData(
            data=pixels.astype("<f4").tobytes(),
            width=width,
            height=height,
            format=ImageFormat.RGBA_FLOAT,
        )
    return _read_ldr(filename)


def write_image_png(filename, image: ImageData) -> None:
    """Write an 8-bit image as PNG."""
    count = channel_count(image.format)
    if channel_size(image.format) != 1:
        raise ImageError("Only FORMAT_*_UINT8 can be written to PNG images right now!")
    try:
        im = Image.frombytes(_MODE_BY_COUNT[count], (image.width, image.height), bytes(image.data))
        im.save(filename, format="PNG")
    except (OSError, ValueError) as exc:
        raise ImageError("Failed to write png image!") from exc


def write_image_exr(filename, image: ImageData, half_precision: bool = True) -> None:
    """Write a float image as EXR."""
    if image.format not in (ImageFormat.RGB_FLOAT, ImageFormat.RGBA_FLOAT):
        raise ImageError("Only FORMAT_*_FLOAT can be written to EXR images right now!")
    pixels = np.frombuffer(bytes(image.data), dtype="<f4")
    try:
        write_exr(filename, pixels, image.width, image.height,
                  channel_count(image.format), half_precision)
    except ExrError as exc:
        raise ImageError(str(exc)) from exc