from __future__ import annotations

import io

import numpy as np
from PIL import Image, ImageOps, UnidentifiedImageError

from ..errors import DecodeError


def _to_eight_bit(img: Image.Image) -> Image.Image:
    """Rescale 16/32-bit integer and float grayscale modes into ``L``.

    Pillow's own conversion clips these at 255 instead of scaling them.
    Integer modes are read as 16-bit samples and float mode as 0..1.
    """
    if img.mode == "F":
        values = np.asarray(img, dtype=np.float64) * 255.0
    elif img.mode == "I" or img.mode.startswith("I;16"):
        values = np.asarray(img, dtype=np.float64) / 257.0
    else:
        return img
    return Image.fromarray(np.clip(np.floor(values + 0.5), 0, 255).astype(np.uint8))


def decode_image(data: bytes) -> Image.Image:
    """Decode encoded image bytes into an upright RGBA buffer."""
    if not data:
        raise DecodeError("Empty image payload")
    try:
        with Image.open(io.BytesIO(data)) as img:
            img.load()
            upright = ImageOps.exif_transpose(img)
            return _to_eight_bit(upright).convert("RGBA")
    except (UnidentifiedImageError, OSError, Image.DecompressionBombError) as exc:
        raise DecodeError(f"Cannot decode image: {exc}") from exc
