"""Image transformation pipeline: resample, dither, encode."""

from .bitmap import EncodedImage, encode_bmp, row_size
from .color import parse_hex_color, rgb_to_lab
from .dither import KERNELS, Kernel, apply_contrast, dither, get_kernel
from .palette import PALETTES, ColorMatcher, MatchStrategy, Palette, get_palette
from .pipeline import (
    BatchResult,
    DitherOptions,
    archive_entries,
    dither_image,
    output_filename,
    process_batch,
    process_image,
)
from .resample import compute_placement, lanczos_weights, resample

__all__ = [
    "EncodedImage",
    "encode_bmp",
    "row_size",
    "parse_hex_color",
    "rgb_to_lab",
    "KERNELS",
    "Kernel",
    "apply_contrast",
    "dither",
    "get_kernel",
    "PALETTES",
    "ColorMatcher",
    "MatchStrategy",
    "Palette",
    "get_palette",
    "BatchResult",
    "DitherOptions",
    "archive_entries",
    "dither_image",
    "output_filename",
    "process_batch",
    "process_image",
    "compute_placement",
    "lanczos_weights",
    "resample",
]
