from __future__ import annotations

import logging
import time
from typing import Callable
from urllib.parse import urlsplit

import requests

from ..config import SETTINGS
from ..errors import FetchError

log = logging.getLogger(__name__)

SessionFactory = Callable[[], requests.Session]


def _check_url(url: str) -> None:
    parts = urlsplit(url)
    if parts.scheme not in ("http", "https") or not parts.netloc:
        raise FetchError(f"Invalid photo URL: {url}")


class SourceFetcher:
    """Downloads remote photos, retrying transient failures."""

    def __init__(
        self,
        session_factory: SessionFactory | None = None,
        *,
        retries: int | None = None,
        timeout: float | None = None,
    ) -> None:
        self._session_factory = session_factory or requests.Session
        self._retries = SETTINGS.retries if retries is None else retries
        self._timeout = SETTINGS.timeout if timeout is None else timeout
        self._session = self._create_session()

    def _create_session(self) -> requests.Session:
        session = self._session_factory()
        session.headers.update({"User-Agent": "eink-dither/1.0"})
        return session

    def fetch_bytes(self, url: str) -> bytes:
        _check_url(url)
        last_exception: Exception | None = None
        for attempt in range(1, self._retries + 2):
            try:
                response = self._session.get(url, timeout=self._timeout)
                response.raise_for_status()
                return response.content
            except requests.RequestException as exc:
                last_exception = exc
                log.info("Fetch attempt %s for %s failed: %s", attempt, url, exc)
                if attempt <= self._retries:
                    time.sleep(0.4 * attempt)
        raise FetchError(f"Could not fetch {url}: {last_exception}") from last_exception


FETCHER = SourceFetcher()
