"""Uncompressed 24-bit BMP writer with top-down row order.

Pillow's BMP plugin always writes bottom-up rows with a positive height, which
some panel firmware decodes upside down, so the container is assembled here.
"""

from __future__ import annotations

import struct
from dataclasses import dataclass

from PIL import Image

from ..errors import InvalidDimensionsError

BMP_MIME_TYPE = "image/bmp"

FILE_HEADER_SIZE = 14
INFO_HEADER_SIZE = 40
PIXEL_OFFSET = FILE_HEADER_SIZE + INFO_HEADER_SIZE
BITS_PER_PIXEL = 24
# 72 DPI expressed in pixels per metre.
PIXELS_PER_METRE = 2835

# signature, file size, reserved, pixel offset | header size, width, height,
# planes, bpp, compression, image size, x/y resolution, colors used/important
_HEADER = struct.Struct("<2sIIIIiiHHIIiiII")


@dataclass(frozen=True)
class EncodedImage:
    data: bytes
    width: int
    height: int
    format: str = "bmp"
    mime_type: str = BMP_MIME_TYPE

    def __len__(self) -> int:
        return len(self.data)


def row_size(width: int) -> int:
    return (width * 3 + 3) // 4 * 4


def encode_bmp(img: Image.Image) -> EncodedImage:
    width, height = img.size
    if width <= 0 or height <= 0:
        raise InvalidDimensionsError(f"Cannot encode a {width}x{height} image")

    stride = row_size(width)
    image_size = stride * height
    header = _HEADER.pack(
        b"BM",
        PIXEL_OFFSET + image_size,
        0,
        PIXEL_OFFSET,
        INFO_HEADER_SIZE,
        width,
        -height,  # negative height marks top-down rows
        1,
        BITS_PER_PIXEL,
        0,
        image_size,
        PIXELS_PER_METRE,
        PIXELS_PER_METRE,
        0,
        0,
    )

    packed = img.convert("RGB").tobytes("raw", "BGR")
    row_bytes = width * 3
    padding = b"\x00" * (stride - row_bytes)
    rows = (packed[offset:offset + row_bytes] + padding for offset in range(0, len(packed), row_bytes))
    return EncodedImage(header + b"".join(rows), width, height)
