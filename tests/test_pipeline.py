import io

import pytest
from PIL import Image

from eink_dither.config import DitherSettings
from eink_dither.errors import ConfigurationError, InvalidDimensionsError
from eink_dither.processing.palette import get_palette
from eink_dither.processing.pipeline import (
    DitherOptions,
    archive_entries,
    dither_image,
    output_filename,
    process_batch,
    process_image,
)

SMALL = DitherOptions(width=16, height=12)


def _png_bytes(size=(40, 30), color=(30, 90, 200)) -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", size, color).save(buffer, "PNG")
    return buffer.getvalue()


def test_process_image_produces_bmp_of_target_size() -> None:
    encoded = process_image(Image.new("RGB", (64, 20), (200, 40, 40)), SMALL)

    assert encoded.width == 16
    assert encoded.height == 12
    assert encoded.data[:2] == b"BM"
    assert len(encoded.data) == 54 + 48 * 12


def test_end_to_end_is_byte_identical_across_runs() -> None:
    src = Image.effect_noise((50, 70), 70).convert("RGB")
    options = DitherOptions(
        width=20,
        height=16,
        mode="fill",
        offset=(0.5, -0.5),
        algorithm="stucki",
        palette="spectra-6-calibrated",
        strength=0.9,
        contrast=1.3,
    )

    assert process_image(src, options).data == process_image(src, options).data


def test_dither_image_stays_on_palette() -> None:
    options = DitherOptions(width=10, height=10, palette="3-color", background=(0, 0, 255))

    out = dither_image(Image.new("RGB", (40, 10), (128, 128, 128)), options)

    palette = get_palette("3-color")
    assert set(out.convert("RGB").getdata()) <= set(palette.colors)


@pytest.mark.parametrize(
    "overrides",
    [{"algorithm": "blue-noise"}, {"palette": "rainbow"}, {"mode": "stretch"}, {"strength": 3.0}],
)
def test_misconfiguration_fails_fast(overrides):
    options = DitherOptions(width=4, height=4, **overrides)
    with pytest.raises(ConfigurationError):
        process_image(Image.new("RGB", (8, 8)), options)


def test_invalid_target_dimensions() -> None:
    with pytest.raises(InvalidDimensionsError):
        process_image(Image.new("RGB", (8, 8)), DitherOptions(width=0, height=4))


def test_batch_isolates_failures() -> None:
    items = [
        ("first.png", _png_bytes()),
        ("broken.jpg", b"not an image"),
        ("third.png", _png_bytes((10, 40))),
    ]

    results = process_batch(items, SMALL)

    assert [r.name for r in results] == ["first.png", "broken.jpg", "third.png"]
    assert [r.ok for r in results] == [True, False, True]
    assert results[1].image is None
    assert results[1].error
    assert [name for name, _ in archive_entries(results)] == [
        "dithered-first.bmp",
        "dithered-third.bmp",
    ]


def test_batch_reports_bad_dimensions_per_item() -> None:
    results = process_batch([("a.png", _png_bytes())], DitherOptions(width=-1, height=4))

    assert not results[0].ok
    assert "positive" in results[0].error


@pytest.mark.parametrize(
    "name, expected",
    [
        ("photo.jpg", "dithered-photo.bmp"),
        ("archive.tar.gz", "dithered-archive.tar.bmp"),
        ("README", "dithered-README.bmp"),
        (".hidden", "dithered-.hidden.bmp"),
    ],
)
def test_output_filename(name, expected):
    assert output_filename(name) == expected


def test_options_from_settings() -> None:
    settings = DitherSettings(
        port=1,
        log_level="INFO",
        timeout=1.0,
        retries=0,
        target_width=1200,
        target_height=1600,
        fit_mode="fill",
        background="#000",
        algorithm="atkinson",
        palette="bw",
        strength=0.5,
        contrast=1.5,
    )

    options = DitherOptions.from_settings(settings)

    assert (options.width, options.height) == (1200, 1600)
    assert options.mode == "fill"
    assert options.background == (0, 0, 0)
    assert options.algorithm == "atkinson"
    assert options.palette == "bw"
    assert options.strength == 0.5
    assert options.contrast == 1.5
