"""Collaborators at the pipeline boundary: decoding and remote fetching."""

from .decode import decode_image
from .network import FETCHER, SourceFetcher

__all__ = [
    "decode_image",
    "FETCHER",
    "SourceFetcher",
]
