import struct

import numpy as np
import pytest

from opgkit.exr import ExrError, is_exr, read_exr, write_exr


def _attribute(name, type_name, payload):
    return name.encode() + b"\0" + type_name.encode() + b"\0" + struct.pack("<i", len(payload)) + payload


def _uncompressed_exr(names, rows, compression=b"\0"):
    """Build a one-pixel-wide float EXR; each row lists values in channel order."""
    chlist = b"".join(n.encode() + b"\0" + struct.pack("<iB3xii", 2, 0, 1, 1) for n in names) + b"\0"
    window = struct.pack("<iiii", 0, 0, 0, len(rows) - 1)
    header = (
        b"\x76\x2f\x31\x01" + struct.pack("<i", 2)
        + _attribute("channels", "chlist", chlist)
        + _attribute("compression", "compression", compression)
        + _attribute("dataWindow", "box2i", window)
        + _attribute("displayWindow", "box2i", window)
        + _attribute("lineOrder", "lineOrder", b"\0")
        + _attribute("pixelAspectRatio", "float", struct.pack("<f", 1.0))
        + _attribute("screenWindowCenter", "v2f", struct.pack("<ff", 0.0, 0.0))
        + _attribute("screenWindowWidth", "float", struct.pack("<f", 1.0))
        + b"\0"
    )
    chunks = [
        struct.pack("<ii", y, 4 * len(names)) + struct.pack(f"<{len(names)}f", *row)
        for y, row in enumerate(rows)
    ]
    offsets = []
    pos = len(header) + 8 * len(chunks)
    for chunk in chunks:
        offsets.append(pos)
        pos += len(chunk)
    return header + struct.pack(f"<{len(chunks)}Q", *offsets) + b"".join(chunks)


def test_written_file_starts_with_magic(tmp_path):
    path = tmp_path / "a.exr"
    write_exr(path, np.zeros(4 * 3), 2, 2, 3, True)
    assert path.read_bytes()[:4] == b"\x76\x2f\x31\x01"
    assert is_exr(path)


def test_is_exr_false_for_other_files(tmp_path):
    path = tmp_path / "a.txt"
    path.write_text("hello")
    assert not is_exr(path)
    assert not is_exr(tmp_path / "missing.exr")


def test_full_precision_rgba_round_trip(tmp_path):
    rng = np.random.default_rng(3)
    pixels = rng.standard_normal((40, 7, 4)).astype(np.float32)
    path = tmp_path / "rgba.exr"
    write_exr(path, pixels, 7, 40, 4, False)
    result = read_exr(path)
    assert result.shape == (40, 7, 4)
    np.testing.assert_array_equal(result, pixels)


def test_half_precision_round_trip_of_representable_values(tmp_path):
    pixels = (np.arange(5 * 6 * 3, dtype=np.float32) * 0.25).reshape(6, 5, 3)
    path = tmp_path / "half.exr"
    write_exr(path, pixels.ravel(), 5, 6, 3, True)
    result = read_exr(path)
    np.testing.assert_array_equal(result[..., :3], pixels)
    np.testing.assert_array_equal(result[..., 3], np.ones((6, 5), dtype=np.float32))


def test_single_channel_is_replicated(tmp_path):
    pixels = np.linspace(0.0, 2.0, 12, dtype=np.float32).reshape(3, 4, 1)
    path = tmp_path / "gray.exr"
    write_exr(path, pixels, 4, 3, 1, False)
    result = read_exr(path)
    for channel in range(4):
        np.testing.assert_array_equal(result[..., channel], pixels[..., 0])


def test_uniform_image_is_compressed(tmp_path):
    path = tmp_path / "zeros.exr"
    write_exr(path, np.zeros((20, 20, 4), dtype=np.float32), 20, 20, 4, False)
    assert path.stat().st_size < 20 * 20 * 4 * 4
    np.testing.assert_array_equal(read_exr(path), np.zeros((20, 20, 4), dtype=np.float32))


def test_reads_uncompressed_file(tmp_path):
    path = tmp_path / "plain.exr"
    path.write_bytes(_uncompressed_exr(["B", "G", "R"], [(0.75, 0.5, 0.25), (-1.0, 2.0, 1.5)]))
    result = read_exr(path)
    assert result.shape == (2, 1, 4)
    np.testing.assert_array_equal(result[0, 0], [0.25, 0.5, 0.75, 1.0])
    np.testing.assert_array_equal(result[1, 0, :3], [1.5, 2.0, -1.0])


def test_missing_red_channel_raises(tmp_path):
    path = tmp_path / "gb.exr"
    path.write_bytes(_uncompressed_exr(["B", "G"], [(0.5, 0.5)]))
    with pytest.raises(ExrError):
        read_exr(path)


def test_unsupported_compression_raises(tmp_path):
    path = tmp_path / "piz.exr"
    path.write_bytes(_uncompressed_exr(["B", "G", "R"], [(0.5, 0.5, 0.5)], compression=b"\x04"))
    with pytest.raises(ExrError):
        read_exr(path)


def test_truncated_file_raises(tmp_path):
    source = tmp_path / "full.exr"
    write_exr(source, np.ones((4, 4, 3)), 4, 4, 3, False)
    broken = tmp_path / "broken.exr"
    broken.write_bytes(source.read_bytes()[:-10])
    with pytest.raises(ExrError):
        read_exr(broken)


def test_non_exr_file_raises(tmp_path):
    path = tmp_path / "junk.exr"
    path.write_bytes(b"not an image at all")
    with pytest.raises(ExrError):
        read_exr(path)


def test_two_channels_rejected(tmp_path):
    with pytest.raises(ExrError):
        write_exr(tmp_path / "x.exr", np.zeros(8), 2, 2, 2, True)


def test_size_mismatch_rejected(tmp_path):
    with pytest.raises(ExrError):
        write_exr(tmp_path / "x.exr", np.zeros(5), 2, 2, 3, True)