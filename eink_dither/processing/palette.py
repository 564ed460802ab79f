from __future__ import annotations

import enum
from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, Mapping, Optional, Tuple

from .color import RGB, Lab, lab_distance, rgb_to_lab
from ..errors import ConfigurationError


@dataclass(frozen=True)
class Palette:
    key: str
    name: str
    colors: Tuple[RGB, ...]

    def __post_init__(self) -> None:
        if not self.colors:
            raise ConfigurationError(f"Palette {self.key!r} has no colors")

    def __contains__(self, rgb: object) -> bool:
        return rgb in self.colors

    def __len__(self) -> int:
        return len(self.colors)


_PALETTE_TABLE = (
    # NeoFrame ESP32 firmware values; green is specific to that panel.
    Palette(
        "spectra-6",
        "E-ink Spectra 6 (NeoFrame)",
        ((0, 0, 0), (255, 255, 255), (255, 255, 0), (255, 0, 0), (41, 204, 20), (0, 0, 255)),
    ),
    Palette(
        "spectra-6-ideal",
        "Spectra 6 (Ideal RGB)",
        ((0, 0, 0), (255, 255, 255), (255, 255, 0), (255, 0, 0), (0, 255, 0), (0, 0, 255)),
    ),
    # Measured panel output, muted pigments.
    Palette(
        "spectra-6-calibrated",
        "Spectra 6 (Calibrated)",
        ((0, 0, 0), (255, 255, 255), (240, 224, 80), (160, 32, 32), (96, 128, 80), (80, 128, 184)),
    ),
    Palette("bw", "Black & White", ((0, 0, 0), (255, 255, 255))),
    Palette("3-color", "Three Colors (BWR)", ((0, 0, 0), (255, 255, 255), (255, 0, 0))),
    Palette(
        "4-gray",
        "4 Gray Levels",
        ((0, 0, 0), (85, 85, 85), (170, 170, 170), (255, 255, 255)),
    ),
)

PALETTES: Mapping[str, Palette] = MappingProxyType({p.key: p for p in _PALETTE_TABLE})


def get_palette(key: str) -> Palette:
    try:
        return PALETTES[key]
    except KeyError:
        raise ConfigurationError(
            f"Unknown palette {key!r}; expected one of {', '.join(PALETTES)}"
        ) from None


class MatchStrategy(enum.Enum):
    """How a pixel is mapped onto the palette.

    ``LAB`` picks the entry with the smallest Euclidean distance in CIE L*a*b*.
    ``LAB_BLUE_OVERRIDE`` does the same, except that saturated blues
    (r < 50, g < 150, b > 100) snap straight to the palette's pure blue entry
    when it has one. Lab distance tends to send those blues to black or green
    against muted display pigments; the override is a panel-specific heuristic.
    """

    LAB = "lab"
    LAB_BLUE_OVERRIDE = "lab-blue-override"


def _is_near_blue(rgb: RGB) -> bool:
    r, g, b = rgb
    return r < 50 and g < 150 and b > 100


def blue_entry_index(palette: Palette) -> Optional[int]:
    for index, (r, g, b) in enumerate(palette.colors):
        if b > 200 and r < 50 and g < 50:
            return index
    return None


class ColorMatcher:
    """Nearest-color lookup bound to one palette for one dithering call.

    Palette Lab values are computed once up front and answers are memoised per
    input triple, since the 8-bit working buffer repeats colors heavily.
    """

    def __init__(self, palette: Palette, strategy: MatchStrategy = MatchStrategy.LAB_BLUE_OVERRIDE) -> None:
        self.palette = palette
        self.strategy = strategy
        self._labs: Tuple[Lab, ...] = tuple(rgb_to_lab(color) for color in palette.colors)
        self._blue_index = (
            blue_entry_index(palette) if strategy is MatchStrategy.LAB_BLUE_OVERRIDE else None
        )
        self._cache: Dict[RGB, int] = {}

    def nearest_index(self, rgb: RGB) -> int:
        index = self._cache.get(rgb)
        if index is None:
            index = self._lookup(rgb)
            self._cache[rgb] = index
        return index

    def nearest(self, rgb: RGB) -> RGB:
        return self.palette.colors[self.nearest_index(rgb)]

    def _lookup(self, rgb: RGB) -> int:
        if self._blue_index is not None and _is_near_blue(rgb):
            return self._blue_index

        target = rgb_to_lab(rgb)
        best_index = 0
        best_distance = float("inf")
        for index, lab in enumerate(self._labs):
            distance = lab_distance(target, lab)
            # Strict comparison keeps the first entry on ties.
            if distance < best_distance:
                best_distance = distance
                best_index = index
        return best_index
