from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple

from PIL import Image

from .bitmap import EncodedImage, encode_bmp
from .color import RGB, parse_hex_color
from .dither import dither, get_kernel
from .palette import MatchStrategy, get_palette
from .resample import FIT, Offset, resample
from ..config import SETTINGS, DitherSettings
from ..errors import PipelineError
from ..infrastructure.decode import decode_image

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class DitherOptions:
    width: int = 1600
    height: int = 1200
    mode: str = FIT
    offset: Offset = (0.0, 0.0)
    background: RGB = (255, 255, 255)
    algorithm: str = "floyd-steinberg"
    palette: str = "spectra-6"
    strength: float = 1.0
    contrast: float = 1.0
    strategy: MatchStrategy = MatchStrategy.LAB_BLUE_OVERRIDE

    @classmethod
    def from_settings(cls, settings: DitherSettings = SETTINGS) -> "DitherOptions":
        return cls(
            width=settings.target_width,
            height=settings.target_height,
            mode=settings.fit_mode,
            background=parse_hex_color(settings.background),
            algorithm=settings.algorithm,
            palette=settings.palette,
            strength=settings.strength,
            contrast=settings.contrast,
        )


@dataclass(frozen=True)
class BatchResult:
    name: str
    filename: str
    image: Optional[EncodedImage] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.image is not None


def output_filename(name: str, prefix: str = "dithered-", extension: str = ".bmp") -> str:
    """``photo.jpg`` -> ``dithered-photo.bmp``; extensionless names keep their stem."""
    dot = name.rfind(".")
    stem = name[:dot] if dot > 0 else name
    return f"{prefix}{stem}{extension}"


def dither_image(source: Image.Image, options: DitherOptions) -> Image.Image:
    """Resample then dither ``source``; returns the quantized RGBA buffer."""
    # Resolve selectors first so a bad key fails before any pixel work.
    palette = get_palette(options.palette)
    kernel = get_kernel(options.algorithm)

    started = time.perf_counter()
    scaled = resample(
        source,
        options.width,
        options.height,
        mode=options.mode,
        offset=options.offset,
        background=options.background,
    )
    resampled_at = time.perf_counter()
    out = dither(
        scaled,
        palette,
        kernel,
        strength=options.strength,
        contrast=options.contrast,
        strategy=options.strategy,
    )
    log.debug(
        "resample %.3fs, dither %.3fs",
        resampled_at - started,
        time.perf_counter() - resampled_at,
    )
    return out


def process_image(source: Image.Image, options: DitherOptions = DitherOptions()) -> EncodedImage:
    return encode_bmp(dither_image(source, options))


def process_batch(
    items: Iterable[Tuple[str, bytes]], options: DitherOptions = DitherOptions()
) -> List[BatchResult]:
    """Decode and convert each ``(name, data)`` pair independently.

    A failing item is reported in its result and never stops the others.
    """

    results: List[BatchResult] = []
    for name, data in items:
        filename = output_filename(name)
        try:
            encoded = process_image(decode_image(data), options)
        except PipelineError as exc:
            log.warning("Skipping %s: %s", name, exc)
            results.append(BatchResult(name, filename, error=str(exc)))
            continue
        results.append(BatchResult(name, filename, image=encoded))
    return results


def archive_entries(results: Iterable[BatchResult]) -> List[Tuple[str, bytes]]:
    """``(filename, bytes)`` pairs of the successful results, for an archiver."""
    return [(result.filename, result.image.data) for result in results if result.image is not None]
