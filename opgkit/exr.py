"""Reading and writing of scanline OpenEXR images."""

from __future__ import annotations

import os
import struct
import zlib
from dataclasses import dataclass
from enum import IntEnum
from typing import Dict, List, Tuple

import numpy as np

MAGIC = b"\x76\x2f\x31\x01"

_VERSION = 2
_FLAG_TILED = 0x200
_FLAG_NON_IMAGE = 0x800
_FLAG_MULTIPART = 0x1000


class ExrError(RuntimeError):
    """Raised when an EXR file cannot be read or written."""


class PixelType(IntEnum):
    UINT = 0
    HALF = 1
    FLOAT = 2


class Compression(IntEnum):
    NONE = 0
    RLE = 1
    ZIPS = 2
    ZIP = 3
    PIZ = 4
    PXR24 = 5
    B44 = 6
    B44A = 7
    DWAA = 8
    DWAB = 9


_LINES_PER_BLOCK = {
    Compression.NONE: 1,
    Compression.RLE: 1,
    Compression.ZIPS: 1,
    Compression.ZIP: 16,
}

_DTYPES = {
    PixelType.UINT: np.dtype("<u4"),
    PixelType.HALF: np.dtype("<f2"),
    PixelType.FLOAT: np.dtype("<f4"),
}

_WRITE_CHANNELS = {
    1: ("A",),
    3: ("B", "G", "R"),
    4: ("A", "B", "G", "R"),
}


@dataclass(frozen=True)
class _Channel:
    name: str
    pixel_type: PixelType

    @property
    def dtype(self) -> np.dtype:
        return _DTYPES[self.pixel_type]


def is_exr(filename) -> bool:
    """True if the file starts with the EXR magic number."""
    try:
        with open(filename, "rb") as handle:
            return handle.read(len(MAGIC)) == MAGIC
    except OSError:
        return False


def _read_cstring(buf: bytes, pos: int) -> Tuple[str, int]:
    end = buf.index(b"\0", pos)
    return buf[pos:end].decode("latin-1"), end + 1


def _parse_attributes(buf: bytes, pos: int) -> Tuple[Dict[str, Tuple[str, bytes]], int]:
    attributes: Dict[str, Tuple[str, bytes]] = {}
    while True:
        name, pos = _read_cstring(buf, pos)
        if not name:
            return attributes, pos
        type_name, pos = _read_cstring(buf, pos)
        (size,) = struct.unpack_from("<i", buf, pos)
        pos += 4
        if size < 0 or pos + size > len(buf):
            raise ExrError(f"Invalid size for attribute '{name}'")
        attributes[name] = (type_name, buf[pos:pos + size])
        pos += size


def _parse_channels(payload: bytes) -> List[_Channel]:
    channels = []
    pos = 0
    while True:
        name, pos = _read_cstring(payload, pos)
        if not name:
            break
        pixel_type, _linear, x_sampling, y_sampling = struct.unpack_from("<iB3xii", payload, pos)
        pos += 16
        if pixel_type not in PixelType._value2member_map_:
            raise ExrError(f"Unknown pixel type {pixel_type} for channel '{name}'")
        if x_sampling != 1 or y_sampling != 1:
            raise ExrError("Subsampled channels are not supported")
        channels.append(_Channel(name, PixelType(pixel_type)))
    if not channels:
        raise ExrError("EXR image has no channels")
    return channels


def _rle_decode(data: bytes) -> bytes:
    out = bytearray()
    pos = 0
    while pos < len(data):
        count = data[pos]
        pos += 1
        if count >= 128:
            length = 256 - count
            out += data[pos:pos + length]
            pos += length
        else:
            if pos >= len(data):
                raise ExrError("Truncated RLE data")
            out += bytes([data[pos]]) * (count + 1)
            pos += 1
    return bytes(out)


def _unpredict(data: bytes) -> bytes:
    values = np.frombuffer(data, dtype=np.uint8).astype(np.int64)
    if values.size:
        values[1:] -= 128
        values = np.cumsum(values) & 0xFF
    half = (values.size + 1) // 2
    out = np.empty(values.size, dtype=np.uint8)
    out[0::2] = values[:half]
    out[1::2] = values[half:]
    return out.tobytes()


def _predict(data: bytes) -> bytes:
    raw = np.frombuffer(data, dtype=np.uint8)
    tmp = np.concatenate([raw[0::2], raw[1::2]]).astype(np.int64)
    encoded = tmp.copy()
    encoded[1:] = (tmp[1:] - tmp[:-1] + 128) & 0xFF
    return encoded.astype(np.uint8).tobytes()


def _decompress(compression: Compression, data: bytes, expected: int) -> bytes:
    if compression == Compression.NONE or len(data) >= expected:
        raw = data
    elif compression in (Compression.ZIP, Compression.ZIPS):
        raw = _unpredict(zlib.decompress(data))
    elif compression == Compression.RLE:
        raw = _unpredict(_rle_decode(data))
    else:
        raise ExrError(f"Unsupported compression {compression.name}")
    if len(raw) != expected:
        raise ExrError("Chunk size does not match the image layout")
    return raw


def _to_rgba(planes: Dict[str, np.ndarray], channels: List[_Channel]) -> np.ndarray:
    if len(channels) == 1:
        plane = planes[channels[0].name]
        return np.stack([plane] * 4, axis=-1)
    for name in ("R", "G", "B"):
        if name not in planes:
            raise ExrError(f"{name} channel not found")
    alpha = planes.get("A")
    if alpha is None:
        alpha = np.ones_like(planes["R"])
    return np.stack([planes["R"], planes["G"], planes["B"], alpha], axis=-1)


def _decode(buf: bytes) -> np.ndarray:
    if buf[:4] != MAGIC:
        raise ExrError("Not an EXR file")
    (version,) = struct.unpack_from("<I", buf, 4)
    if version & 0xFF != _VERSION:
        raise ExrError(f"Unsupported EXR version {version & 0xFF}")
    if version & (_FLAG_TILED | _FLAG_NON_IMAGE | _FLAG_MULTIPART):
        raise ExrError("Only single-part scanline EXR images are supported")

    attributes, pos = _parse_attributes(buf, 8)
    for required in ("channels", "compression", "dataWindow"):
        if required not in attributes:
            raise ExrError(f"Missing required attribute '{required}'")

    channels = _parse_channels(attributes["channels"][1])
    comp_value = attributes["compression"][1][0]
    if comp_value not in Compression._value2member_map_:
        raise ExrError(f"Unknown compression {comp_value}")
    compression = Compression(comp_value)
    if compression not in _LINES_PER_BLOCK:
        raise ExrError(f"Unsupported compression {compression.name}")

    xmin, ymin, xmax, ymax = struct.unpack_from("<iiii", attributes["dataWindow"][1])
    width = xmax - xmin + 1
    height = ymax - ymin + 1
    if width <= 0 or height <= 0:
        raise ExrError("Invalid data window")

    lines_per_block = _LINES_PER_BLOCK[compression]
    chunk_count = -(-height // lines_per_block)
    offsets = struct.unpack_from(f"<{chunk_count}Q", buf, pos)

    planes = {ch.name: np.zeros((height, width), dtype=np.float32) for ch in channels}
    line_size = sum(width * ch.dtype.itemsize for ch in channels)

    for offset in offsets:
        y, size = struct.unpack_from("<ii", buf, offset)
        start = offset + 8
        if size < 0 or start + size > len(buf):
            raise ExrError("Truncated EXR chunk")
        if y < ymin or y > ymax:
            raise ExrError("Chunk lies outside the data window")
        lines = min(lines_per_block, ymax - y + 1)
        raw = _decompress(compression, buf[start:start + size], line_size * lines)
        cursor = 0
        for line in range(lines):
            row = y - ymin + line
            for ch in channels:
                planes[ch.name][row] = np.frombuffer(raw, dtype=ch.dtype, count=width, offset=cursor)
                cursor += width * ch.dtype.itemsize

    return _to_rgba(planes, channels)


def read_exr(filename) -> np.ndarray:
    """Read an EXR image as a float32 RGBA array of shape (height, width, 4)."""
    try:
        with open(filename, "rb") as handle:
            buf = handle.read()
    except OSError as exc:
        raise ExrError(f"Cannot read file '{os.fspath(filename)}'") from exc
    try:
        return _decode(buf)
    except (struct.error, ValueError, IndexError, zlib.error) as exc:
        raise ExrError("Invalid EXR data") from exc


def _attribute(name: str, type_name: str, payload: bytes) -> bytes:
    return (name.encode("latin-1") + b"\0" + type_name.encode("latin-1") + b"\0"
            + struct.pack("<i", len(payload)) + payload)


def write_exr(filename, pixels, width: int, height: int, channels: int, half_precision: bool = True) -> None:
    """Write interleaved float pixels as a ZIP-compressed scanline EXR image."""
    if channels not in _WRITE_CHANNELS:
        raise ExrError(f"Unsupported channel count {channels}")
    if width <= 0 or height <= 0:
        raise ExrError("Image dimensions must be positive")
    data = np.asarray(pixels, dtype=np.float32)
    if data.size != width * height * channels:
        raise ExrError("Pixel data does not match the image dimensions")
    data = data.reshape(height, width, channels)

    pixel_type = PixelType.HALF if half_precision else PixelType.FLOAT
    dtype = _DTYPES[pixel_type]
    names = _WRITE_CHANNELS[channels]
    source_index = {"R": 0, "G": 1, "B": 2, "A": 3 if channels == 4 else 0}
    planes = [data[:, :, source_index[name]].astype(dtype) for name in names]

    chlist = b"".join(
        name.encode("latin-1") + b"\0" + struct.pack("<iB3xii", pixel_type, 0, 1, 1)
        for name in names
    ) + b"\0"
    window = struct.pack("<iiii", 0, 0, width - 1, height - 1)
    header = b"".join([
        MAGIC,
        struct.pack("<I", _VERSION),
        _attribute("channels", "chlist", chlist),
        _attribute("compression", "compression", bytes([Compression.ZIP])),
        _attribute("dataWindow", "box2i", window),
        _attribute("displayWindow", "box2i", window),
        _attribute("lineOrder", "lineOrder", b"\0"),
        _attribute("pixelAspectRatio", "float", struct.pack("<f", 1.0)),
        _attribute("screenWindowCenter", "v2f", struct.pack("<ff", 0.0, 0.0)),
        _attribute("screenWindowWidth", "float", struct.pack("<f", 1.0)),
        b"\0",
    ])

    lines_per_block = _LINES_PER_BLOCK[Compression.ZIP]
    chunks = []
    for y0 in range(0, height, lines_per_block):
        y1 = min(y0 + lines_per_block, height)
        raw = b"".join(plane[y].tobytes() for y in range(y0, y1) for plane in planes)
        packed = zlib.compress(_predict(raw))
        if len(packed) >= len(raw):
            packed = raw
        chunks.append(struct.pack("<ii", y0, len(packed)) + packed)

    offsets = []
    position = len(header) + 8 * len(chunks)
    for chunk in chunks:
        offsets.append(position)
        position += len(chunk)

    try:
        with open(filename, "wb") as handle:
            handle.write(header)
            handle.write(struct.pack(f"<{len(offsets)}Q", *offsets))
            for chunk in chunks:
                handle.write(chunk)
    except OSError as exc:
        raise ExrError(f"Cannot write file '{os.fspath(filename)}'") from exc