from __future__ import annotations

import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import List, Mapping, Tuple

from PIL import Image

from .palette import ColorMatcher, MatchStrategy, Palette
from ..errors import ConfigurationError

log = logging.getLogger(__name__)

STRENGTH_RANGE = (0.0, 1.5)
CONTRAST_RANGE = (0.5, 2.0)

Tap = Tuple[int, int, int]


@dataclass(frozen=True)
class Kernel:
    """Error-diffusion topology: ``(dx, dy, weight)`` taps over ``divisor``.

    Taps only reach pixels after the current one in raster order, so a single
    top-to-bottom, left-to-right pass never revisits a decided pixel.
    """

    key: str
    name: str
    taps: Tuple[Tap, ...]
    divisor: int

    def __post_init__(self) -> None:
        for dx, dy, _ in self.taps:
            if dy < 0 or (dy == 0 and dx <= 0):
                raise ConfigurationError(f"Kernel {self.key!r} tap ({dx}, {dy}) is not causal")

    @property
    def weight_sum(self) -> int:
        return sum(weight for _, _, weight in self.taps)

    @property
    def distributed(self) -> float:
        """Fraction of the quantization error handed on to neighbors."""
        return self.weight_sum / self.divisor


_KERNEL_TABLE = (
    Kernel(
        "floyd-steinberg",
        "Floyd-Steinberg",
        ((1, 0, 7), (-1, 1, 3), (0, 1, 5), (1, 1, 1)),
        16,
    ),
    # Only 6/8 of the error is passed on; the rest is dropped on purpose,
    # which lightens the result.
    Kernel(
        "atkinson",
        "Atkinson",
        ((1, 0, 1), (2, 0, 1), (-1, 1, 1), (0, 1, 1), (1, 1, 1), (0, 2, 1)),
        8,
    ),
    Kernel(
        "stucki",
        "Stucki",
        (
            (1, 0, 8), (2, 0, 4),
            (-2, 1, 2), (-1, 1, 4), (0, 1, 8), (1, 1, 4), (2, 1, 2),
            (-2, 2, 1), (-1, 2, 2), (0, 2, 4), (1, 2, 2), (2, 2, 1),
        ),
        42,
    ),
    Kernel(
        "jarvis",
        "Jarvis-Judice-Ninke",
        (
            (1, 0, 7), (2, 0, 5),
            (-2, 1, 3), (-1, 1, 5), (0, 1, 7), (1, 1, 5), (2, 1, 3),
            (-2, 2, 1), (-1, 2, 3), (0, 2, 5), (1, 2, 3), (2, 2, 1),
        ),
        48,
    ),
)

KERNELS: Mapping[str, Kernel] = MappingProxyType({k.key: k for k in _KERNEL_TABLE})


def get_kernel(key: str) -> Kernel:
    try:
        return KERNELS[key]
    except KeyError:
        raise ConfigurationError(
            f"Unknown dithering algorithm {key!r}; expected one of {', '.join(KERNELS)}"
        ) from None


def _check_range(name: str, value: float, bounds: Tuple[float, float]) -> None:
    low, high = bounds
    if not low <= value <= high:
        raise ConfigurationError(f"{name} must be within [{low}, {high}], got {value}")


def _clamp_byte(value: float) -> int:
    # Clamp first, then round half to even, as an 8-bit clamped store does.
    return round(min(255.0, max(0.0, value)))


def contrast_lut(contrast: float) -> List[int]:
    c = contrast - 1.0
    factor = (259 * (c * 255 + 255)) / (255 * (259 - c * 255))
    return [_clamp_byte(factor * (value - 128) + 128) for value in range(256)]


def apply_contrast(img: Image.Image, contrast: float) -> Image.Image:
    """Apply the global contrast curve to the color channels of ``img``."""
    img = img.convert("RGBA")
    if contrast == 1.0:
        return img
    lut = contrast_lut(contrast)
    return img.point(lut * 3 + list(range(256)))


def dither(
    img: Image.Image,
    palette: Palette,
    kernel: Kernel,
    strength: float = 1.0,
    contrast: float = 1.0,
    strategy: MatchStrategy = MatchStrategy.LAB_BLUE_OVERRIDE,
) -> Image.Image:
    """Quantize ``img`` to ``palette`` with error diffusion over ``kernel``.

    Returns a new RGBA image of the same size whose color channels all come
    from the palette. Alpha is carried through untouched. Error landing
    outside the image is dropped, and every neighbor update is clamped to
    a byte as soon as it is stored.
    """

    _check_range("strength", strength, STRENGTH_RANGE)
    _check_range("contrast", contrast, CONTRAST_RANGE)

    src = apply_contrast(img, contrast)
    width, height = src.size
    work = bytearray(src.tobytes())
    matcher = ColorMatcher(palette, strategy)
    colors = palette.colors

    # Per column: (byte offset, dy, factor) for the taps that stay inside
    # the image horizontally.
    column_taps = [
        [
            ((dy * width + dx) * 4, dy, weight / kernel.divisor)
            for dx, dy, weight in kernel.taps
            if 0 <= x + dx < width
        ]
        for x in range(width)
    ]

    for y in range(height):
        rows_below = height - 1 - y
        for x in range(width):
            i = (y * width + x) * 4
            old_r, old_g, old_b = work[i], work[i + 1], work[i + 2]
            new_r, new_g, new_b = colors[matcher.nearest_index((old_r, old_g, old_b))]
            work[i] = new_r
            work[i + 1] = new_g
            work[i + 2] = new_b

            err_r = (old_r - new_r) * strength
            err_g = (old_g - new_g) * strength
            err_b = (old_b - new_b) * strength
            if not (err_r or err_g or err_b):
                continue

            for offset, dy, factor in column_taps[x]:
                if dy > rows_below:
                    continue
                j = i + offset
                value = work[j] + err_r * factor
                work[j] = 0 if value <= 0 else 255 if value >= 255 else round(value)
                value = work[j + 1] + err_g * factor
                work[j + 1] = 0 if value <= 0 else 255 if value >= 255 else round(value)
                value = work[j + 2] + err_b * factor
                work[j + 2] = 0 if value <= 0 else 255 if value >= 255 else round(value)

    log.debug("dithered %sx%s with %s onto %s", width, height, kernel.key, palette.key)
    return Image.frombytes("RGBA", (width, height), bytes(work))
