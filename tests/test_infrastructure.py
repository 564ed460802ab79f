"""Tests for the decode and fetch collaborators."""

import io

import numpy as np
import pytest
from PIL import Image

requests = pytest.importorskip("requests")

from eink_dither.errors import DecodeError, FetchError
from eink_dither.infrastructure import network
from eink_dither.infrastructure.decode import decode_image
from eink_dither.infrastructure.network import SourceFetcher


class FakeResponse:
    def __init__(self, status: int, content: bytes = b"") -> None:
        self.status_code = status
        self.content = content

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")


class FakeSession:
    def __init__(self, responses) -> None:
        self.headers = {}
        self.calls = []
        self._responses = list(responses)

    def get(self, url, timeout=None):
        self.calls.append((url, timeout))
        outcome = self._responses.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


@pytest.fixture(autouse=True)
def no_sleep(monkeypatch):
    monkeypatch.setattr(network.time, "sleep", lambda seconds: None)


def test_decode_returns_rgba() -> None:
    buffer = io.BytesIO()
    Image.new("RGB", (3, 2), (1, 2, 3)).save(buffer, "PNG")

    img = decode_image(buffer.getvalue())

    assert img.mode == "RGBA"
    assert img.size == (3, 2)
    assert img.getpixel((0, 0)) == (1, 2, 3, 255)


def test_decode_applies_exif_orientation() -> None:
    buffer = io.BytesIO()
    exif = Image.Exif()
    exif[0x0112] = 6  # rotate 90 CW on display
    Image.new("RGB", (4, 2), (0, 0, 0)).save(buffer, "JPEG", exif=exif)

    assert decode_image(buffer.getvalue()).size == (2, 4)


def test_decode_scales_sixteen_bit_grayscale() -> None:
    buffer = io.BytesIO()
    Image.fromarray(np.full((4, 4), 32768, dtype=np.uint16)).save(buffer, "PNG")

    img = decode_image(buffer.getvalue())

    assert img.mode == "RGBA"
    assert img.getpixel((0, 0)) == (128, 128, 128, 255)
    assert img.getpixel((3, 3)) == (128, 128, 128, 255)


def test_decode_scales_sixteen_bit_extremes() -> None:
    buffer = io.BytesIO()
    values = np.array([[0, 65535]], dtype=np.uint16)
    Image.fromarray(values).save(buffer, "PNG")

    img = decode_image(buffer.getvalue())

    assert img.getpixel((0, 0)) == (0, 0, 0, 255)
    assert img.getpixel((1, 0)) == (255, 255, 255, 255)


def test_decode_scales_float_grayscale() -> None:
    buffer = io.BytesIO()
    Image.new("F", (2, 2), 0.5).save(buffer, "TIFF")

    assert decode_image(buffer.getvalue()).getpixel((1, 1)) == (128, 128, 128, 255)


@pytest.mark.parametrize("payload", [b"", b"definitely not an image"])
def test_decode_failures_raise_decode_error(payload):
    with pytest.raises(DecodeError):
        decode_image(payload)


def test_fetch_retries_then_succeeds() -> None:
    session = FakeSession([requests.ConnectionError("boom"), FakeResponse(200, b"jpeg-bytes")])
    fetcher = SourceFetcher(lambda: session, retries=2, timeout=3.0)

    assert fetcher.fetch_bytes("http://photos.example/p/1.jpg") == b"jpeg-bytes"
    assert session.calls == [
        ("http://photos.example/p/1.jpg", 3.0),
        ("http://photos.example/p/1.jpg", 3.0),
    ]
    assert session.headers["User-Agent"].startswith("eink-dither/")


def test_fetch_gives_up_after_retries() -> None:
    session = FakeSession([FakeResponse(500), FakeResponse(503)])
    fetcher = SourceFetcher(lambda: session, retries=1)

    with pytest.raises(FetchError):
        fetcher.fetch_bytes("https://photos.example/p/2.jpg")
    assert len(session.calls) == 2


def test_fetch_rejects_non_http_urls() -> None:
    session = FakeSession([])
    fetcher = SourceFetcher(lambda: session)

    with pytest.raises(FetchError):
        fetcher.fetch_bytes("file:///etc/passwd")
    assert session.calls == []
