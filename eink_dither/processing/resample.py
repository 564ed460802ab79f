"""Aspect-preserving placement and separable resampling of RGBA images.

Downscales below ``LANCZOS_THRESHOLD`` go through a Lanczos-3 filter. Anything
closer to 1:1, and every upscale, uses a bilinear (triangle) filter built from
the same weight tables, which is cheaper and indistinguishable at those ratios.
"""

from __future__ import annotations

import logging
import math
from typing import Callable, Tuple

import numpy as np
from PIL import Image

from .color import RGB
from ..errors import ConfigurationError, InvalidDimensionsError

log = logging.getLogger(__name__)

LANCZOS_A = 3
LANCZOS_THRESHOLD = 0.9
# Destination rows resampled per band.
BAND_ROWS = 32

FIT = "fit"
FILL = "fill"
MODES = (FIT, FILL)

Offset = Tuple[float, float]
Placement = Tuple[int, int, int, int]
Kernel1D = Callable[[np.ndarray], np.ndarray]


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def lanczos_kernel(x: np.ndarray, a: int = LANCZOS_A) -> np.ndarray:
    # np.sinc is the normalised sinc: sin(pi x) / (pi x), 1 at zero.
    return np.where(np.abs(x) < a, np.sinc(x) * np.sinc(x / a), 0.0)


def triangle_kernel(x: np.ndarray) -> np.ndarray:
    return np.maximum(0.0, 1.0 - np.abs(x))


def filter_weights(
    src_size: int, dst_size: int, kernel: Kernel1D, support: int
) -> Tuple[np.ndarray, np.ndarray]:
    """Return ``(indices, weights)`` tables of shape ``(dst_size, 2 * support)``.

    Row ``d`` lists the source samples contributing to destination sample ``d``
    and their weights. Taps falling outside the source get zero weight (their
    index is clamped only so it stays addressable), and each row is normalised
    to sum to one so clipped kernels at the edges keep brightness.
    """

    scale = src_size / dst_size
    centers = (np.arange(dst_size, dtype=np.float64) + 0.5) * scale - 0.5
    first = np.floor(centers).astype(np.int64) - support + 1
    indices = first[:, None] + np.arange(2 * support, dtype=np.int64)[None, :]

    weights = kernel(indices - centers[:, None])
    weights[(indices < 0) | (indices >= src_size)] = 0.0

    totals = weights.sum(axis=1)
    empty = totals == 0.0
    if empty.any():
        # Degenerate row: fall back to the nearest in-range sample.
        nearest = np.clip(np.rint(centers[empty]), 0, src_size - 1).astype(np.int64)
        weights[empty] = (indices[empty] == nearest[:, None]).astype(np.float64)
        totals = weights.sum(axis=1)

    weights /= totals[:, None]
    return np.clip(indices, 0, src_size - 1), weights


def lanczos_weights(src_size: int, dst_size: int) -> Tuple[np.ndarray, np.ndarray]:
    return filter_weights(src_size, dst_size, lanczos_kernel, LANCZOS_A)


def _convolve_axis(samples: np.ndarray, indices: np.ndarray, weights: np.ndarray, axis: int) -> np.ndarray:
    shape = [1] * samples.ndim
    shape[axis] = -1
    out = None
    for tap in range(indices.shape[1]):
        term = np.take(samples, indices[:, tap], axis=axis)
        term *= weights[:, tap].reshape(shape)
        if out is None:
            out = term
        else:
            out += term
    return out


def _separable_resize(img: Image.Image, size: Tuple[int, int], kernel: Kernel1D, support: int) -> Image.Image:
    """Resize ``img`` one band of destination rows at a time.

    Each band only converts the source rows its vertical taps reach, so the
    float working set stays proportional to ``BAND_ROWS`` instead of the
    full source photo.
    """

    width, height = size
    src_width, src_height = img.size

    x_indices, x_weights = filter_weights(src_width, width, kernel, support)
    y_indices, y_weights = filter_weights(src_height, height, kernel, support)

    pixels = np.empty((height, width, len(img.getbands())), dtype=np.uint8)
    for top in range(0, height, BAND_ROWS):
        bottom = min(top + BAND_ROWS, height)
        rows = y_indices[top:bottom]
        first = int(rows.min())
        last = int(rows.max()) + 1

        band = np.asarray(img.crop((0, first, src_width, last)), dtype=np.float64)
        horizontal = _convolve_axis(band, x_indices, x_weights, axis=1)
        del band
        both = _convolve_axis(horizontal, rows - first, y_weights[top:bottom], axis=0)

        both += 0.5
        np.floor(both, out=both)
        np.clip(both, 0, 255, out=both)
        pixels[top:bottom] = both.astype(np.uint8)
    return Image.fromarray(pixels)


def lanczos_resize(img: Image.Image, size: Tuple[int, int]) -> Image.Image:
    return _separable_resize(img.convert("RGBA"), size, lanczos_kernel, LANCZOS_A)


def bilinear_resize(img: Image.Image, size: Tuple[int, int]) -> Image.Image:
    return _separable_resize(img.convert("RGBA"), size, triangle_kernel, 1)


def _check_size(label: str, width: int, height: int) -> None:
    if width <= 0 or height <= 0:
        raise InvalidDimensionsError(f"{label} size must be positive, got {width}x{height}")


def _check_offset(offset: Offset) -> None:
    for axis, value in zip("xy", offset):
        if not -1.0 <= value <= 1.0:
            raise ConfigurationError(f"offset {axis} must be within [-1, 1], got {value}")


def compute_placement(
    src_size: Tuple[int, int],
    target_size: Tuple[int, int],
    mode: str = FIT,
    offset: Offset = (0.0, 0.0),
) -> Placement:
    """Return ``(scaled_width, scaled_height, x, y)`` for placing the source.

    ``fit`` scales the source to lie entirely within the target, ``fill``
    scales it to cover the target. The position is
    ``(target - scaled) / 2 * (1 + offset)`` on each axis: centered at 0,
    flush with the left/top edge at -1 and the right/bottom edge at +1. In
    fill mode the same formula pans the crop window.
    """

    if mode not in MODES:
        raise ConfigurationError(f"Unknown fit mode {mode!r}; expected one of {', '.join(MODES)}")
    _check_offset(offset)

    src_width, src_height = src_size
    target_width, target_height = target_size
    source_ratio = src_width / src_height
    target_ratio = target_width / target_height

    wider = source_ratio > target_ratio
    if (mode == FIT) == wider:
        scaled_width = target_width
        scaled_height = max(1, _round_half_up(target_width / source_ratio))
    else:
        scaled_height = target_height
        scaled_width = max(1, _round_half_up(target_height * source_ratio))

    x = _round_half_up((target_width - scaled_width) / 2 * (1 + offset[0]))
    y = _round_half_up((target_height - scaled_height) / 2 * (1 + offset[1]))
    return scaled_width, scaled_height, x, y


def resample(
    source: Image.Image,
    target_width: int,
    target_height: int,
    mode: str = FIT,
    offset: Offset = (0.0, 0.0),
    background: RGB = (255, 255, 255),
) -> Image.Image:
    """Scale ``source`` onto a ``target_width`` x ``target_height`` RGBA canvas."""

    _check_size("Source", *source.size)
    _check_size("Target", target_width, target_height)

    src = source.convert("RGBA")
    scaled_width, scaled_height, x, y = compute_placement(
        src.size, (target_width, target_height), mode, offset
    )
    if src.size == (target_width, target_height):
        return src

    scale = min(scaled_width / src.width, scaled_height / src.height)
    if scale < LANCZOS_THRESHOLD:
        log.debug("lanczos-3 %sx%s -> %sx%s", src.width, src.height, scaled_width, scaled_height)
        scaled = lanczos_resize(src, (scaled_width, scaled_height))
    else:
        log.debug("bilinear %sx%s -> %sx%s", src.width, src.height, scaled_width, scaled_height)
        scaled = bilinear_resize(src, (scaled_width, scaled_height))

    canvas = Image.new("RGBA", (target_width, target_height), tuple(background) + (255,))
    # Without a mask paste replaces pixels, alpha included, and clips overflow.
    canvas.paste(scaled, (x, y))
    return canvas
