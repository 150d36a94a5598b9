# opgkit

Host-side building blocks for a small ray-tracing playground, in plain
Python on top of numpy and Pillow.

## Modules

- `opgkit.imagedata` – `ImageFormat` (`R_UINT8`, `RG_UINT8`, `RGB_UINT8`,
  `RGBA_UINT8`, `RGB_FLOAT`, `RGBA_FLOAT`), the `ImageData` container
  (raw bytes, width, height, format), `channel_count`, `channel_size`,
  `pixel_size`, `read_image`, `write_image_png` and `write_image_exr`.
  `read_image` returns EXR files as `RGBA_FLOAT` and any image Pillow can
  open as 8-bit data. Only `*_UINT8` images can be written as PNG and only
  `RGB_FLOAT`/`RGBA_FLOAT` images as EXR; other cases raise `ImageError`.
- `opgkit.exr` – a small scanline OpenEXR reader and writer: `is_exr`,
  `read_exr` (returns a float32 array of shape `(height, width, 4)`) and
  `write_exr` (ZIP-compressed, half or full float, 1, 3 or 4 channels).
  Reading handles single-part scanline files with no, RLE, ZIPS or ZIP
  compression; anything else raises `ExrError`.
- `opgkit.paths` – `split_string`, `read_file`, `get_root_path` and
  `get_ptx_filename`, which builds `<root>/lib/ptx/<target>/<source stem>.ptx`.
- `opgkit.flags` – integer bit-flag helpers for enums: `to_underlying`,
  `has_flag`, `set_flag`, `reset_flag`.
- `opgkit.aabb` – `Aabb`, an axis-aligned 3D bounding box with `include`,
  `contains`, `intersects`, `intersection`, `enlarge`, `transform`,
  `center`, `extent`, `volume`, `area`, `longest_axis`, `distance`,
  `signed_distance` and more.
- `opgkit.stats` – `StatsDisplay`, exponentially smoothed frame timings that
  are formatted into a text block (`display_text`) at most every half second.
- `opgkit.camera_controller` – a `Camera` (4x4 camera-to-world matrix,
  aspect ratio, look-at distance) and a `CameraController` that orbits,
  zooms and moves it in response to mouse, wheel and key events
  (`ViewMode`, `KeyAction`).
- `opgkit.sbt` – `ShaderBindingTable`, which lays out raygen, miss, hit group
  and callable records into one 16-byte aligned buffer, and `SbtTable`, the
  per-raygen table of byte offsets, strides and counts.

## Install

```
pip install .
```

## Examples

```python
from opgkit.aabb import Aabb

box = Aabb((0.0, 0.0, 0.0), (1.0, 2.0, 3.0))
print(box.extent(), box.volume(), box.longest_axis())   # [1. 2. 3.] 6.0 2
print(box.distance((3.0, 0.0, 0.0)))                     # 2.0
```

```python
from opgkit.imagedata import ImageData, ImageFormat, write_image_png, read_image

image = ImageData(data=bytes([255, 0, 0] * 4), width=2, height=2,
                  format=ImageFormat.RGB_UINT8)
write_image_png("red.png", image)
loaded = read_image("red.png")
```

```python
from opgkit.paths import split_string

split_string("a  b c", " ", False)   # ['a', 'b', 'c']
```

```python
from opgkit.sbt import ShaderBindingTable

sbt = ShaderBindingTable(header_packer=lambda group: bytes(32))
sbt.add_raygen_entry("raygen")
sbt.add_miss_entry("miss", b"\x01\x02\x03\x04")
sbt.create_sbt()
print(len(sbt.buffer), sbt.get_sbt(0))
```

## What it does not do

The package does no rendering itself: there is no ray tracer, no GPU or
device access, no window, no on-screen display and no command-line program.
`ShaderBindingTable` only computes the record layout in host memory, the
camera controller only updates a `Camera` object, and `StatsDisplay` only
produces text for a caller to show.

## Tests

```
pip install .[test]
pytest
```