from __future__ import annotations

import math
from typing import Tuple

from ..errors import ConfigurationError

RGB = Tuple[int, int, int]
Lab = Tuple[float, float, float]

# D65 reference white
_XN = 95.047
_YN = 100.0
_ZN = 108.883


def _linearize(channel: int) -> float:
    value = channel / 255.0
    if value > 0.04045:
        return ((value + 0.055) / 1.055) ** 2.4
    return value / 12.92


def _lab_compand(t: float) -> float:
    if t > 0.008856:
        return t ** (1.0 / 3.0)
    return 7.787 * t + 16.0 / 116.0


def rgb_to_lab(rgb: RGB) -> Lab:
    """Convert an sRGB triple to CIE L*a*b* (D65)."""
    r, g, b = (_linearize(channel) * 100.0 for channel in rgb)

    x = r * 0.4124564 + g * 0.3575761 + b * 0.1804375
    y = r * 0.2126729 + g * 0.7151522 + b * 0.0721750
    z = r * 0.0193339 + g * 0.1191920 + b * 0.9503041

    fx = _lab_compand(x / _XN)
    fy = _lab_compand(y / _YN)
    fz = _lab_compand(z / _ZN)

    return 116.0 * fy - 16.0, 500.0 * (fx - fy), 200.0 * (fy - fz)


def lab_distance(lab1: Lab, lab2: Lab) -> float:
    return math.dist(lab1, lab2)


def parse_hex_color(value: str) -> RGB:
    """Parse ``#RRGGBB`` or ``#RGB`` into an RGB triple."""
    text = value.strip().lstrip("#")
    if len(text) == 3:
        text = "".join(ch * 2 for ch in text)
    if len(text) != 6:
        raise ConfigurationError(f"Invalid hex color: {value!r}")
    try:
        return int(text[0:2], 16), int(text[2:4], 16), int(text[4:6], 16)
    except ValueError as exc:
        raise ConfigurationError(f"Invalid hex color: {value!r}") from exc
