# rasterkit

A small raster toolkit with no dependencies. It provides an RGBA canvas with
floating-point colours and simple line drawing. It also has encoders for PNG,
BMP, TGA, Radiance HDR and baseline JPEG. Everything is written in plain
Python.

## Installing

```
pip install .
```

## Drawing and saving an image

```python
from rasterkit.color import Color
from rasterkit.image import Image

canvas = Image(64, 32)
canvas.clear(Color(0, 0, 0, 1))
canvas.draw_line(0, 0, 63, 31, Color(0.5, 0.5, 1, 1))
canvas.set_pixel(10, 5, Color(1, 0, 0, 1))

print(canvas.get_pixel(10, 5))
canvas.save_as("lines.png")
png_bytes = canvas.to_png()
```

`Image(width, height)` starts with every byte set to zero. Its `width`, `height`
and `pixels` (raw RGBA bytes, top row first) are read-only properties.

- Channels are stored as bytes. Each value is multiplied by 255, truncated and
  limited to 0..255.
- `get_pixel` clamps coordinates that fall outside the canvas to its nearest
  edge.
- `set_pixel` raises `IndexError` outside the canvas.
- `draw_line` steps one unit at a time from the start point towards the end
  point. It does not draw the end point and skips any step that falls outside
  the canvas.
- `save_as` and `to_png` write 8-bit RGBA PNG.

`Color` is a frozen dataclass with `red`, `green`, `blue` and `alpha` floats.
It supports these operations:

- multiplication by a number or by another colour;
- division by a number;
- addition of a number or of another colour;
- `luminance()`, which uses the Rec. 709 weights;
- `opaque()`;
- `clamped(low, high)`, which takes the absolute value of each channel and then
  clamps it.

`clamp_value(val, low, high)` clamps a single number.

## Encoding raw pixel data

A pixel buffer is bytes laid out row by row, top to bottom. Each pixel holds
`channels` interleaved 8-bit samples: 1 = grey, 2 = grey + alpha, 3 = RGB,
4 = RGBA.

```python
from rasterkit.png import encode_png, write_png
from rasterkit.bitmap import encode_bmp, encode_tga
from rasterkit.jpeg import encode_jpeg
from rasterkit.hdr import encode_hdr

pixels = bytes([255, 0, 0] * 4)          # a 2x2 red RGB image
png = encode_png(pixels, 2, 2, 3)
bmp = encode_bmp(pixels, 2, 2, 3)
tga = encode_tga(pixels, 2, 2, 3, rle=True)
jpg = encode_jpeg(pixels, 2, 2, 3, quality=90)
hdr = encode_hdr([1.0, 0.5, 0.25] * 4, 2, 2, 3)
```

### PNG

`encode_png` takes these options:

- `stride`: bytes per row; 0 means tightly packed.
- `compression_level`: the default is 8.
- `force_filter`: 0..4 uses that filter for every row. Any other value picks
  the best filter for each row.

### BMP

`encode_bmp` writes a 24-bit file. Grey input is expanded to RGB, and alpha is
blended against a magenta background.

### TGA

`encode_tga` writes a monochrome image for grey input and a true-colour image
for RGB. Alpha is kept. Run-length encoding is on by default (`rle=True`).

### JPEG

`encode_jpeg` takes `quality` from 1 to 100, and 0 means 90. Up to 90 the
chroma is subsampled 2x2. Alpha is ignored.

### HDR

`encode_hdr` takes linear floats instead of bytes:

- With 1 or 2 channels, grey is copied to R, G and B.
- With 3 or 4 channels the values are RGB, and alpha is dropped.

`linear_to_rgbe(red, green, blue)` packs one pixel.

### Common behaviour

Each `encode_*` function has a `write_*` companion that takes a file path
first: `write_png`, `write_bmp`, `write_tga`, `write_jpeg` and `write_hdr`.
All of them accept `flip=True`, which reverses the order in which rows are
written. Invalid arguments raise `rasterkit.png.ImageWriteError`, which is a
subclass of `ValueError`.

### Lower-level functions

- `rasterkit.deflate.zlib_compress(data, quality)` is a zlib stream with fixed
  Huffman codes.
- `rasterkit.deflate.adler32(data)`
- `rasterkit.png.crc32(data)`

## What it does not do

rasterkit only writes images. It cannot read or decode image files. It has no
command-line program, and it does not load or render graphs or maps. Drawing is
limited to single pixels, fills and straight lines.

## Running the tests

```
pip install .[test]
pytest
```