"""
Shared utility functions for HLSKit.

URI resolution, resolution parsing and duration formatting used across
the decoder, the downloader and the acquisition engine.
"""

import re
from typing import Optional
from urllib.parse import urljoin, urlparse

from .models import Resolution

RESOLUTION_RE = re.compile(r'^([0-9]+)[xX]([0-9]+)$')


def is_absolute_url(uri: str) -> bool:
    """
    Check if a URI is an absolute HTTP(S) URL.

    Example:
        >>> is_absolute_url("https://example.com/a.ts")
        True
        >>> is_absolute_url("a.ts")
        False
    """
    return urlparse(uri).scheme in ('http', 'https')


def resolve_uri(base_url: Optional[str], uri: str) -> str:
    """
    Resolve a possibly relative URI against a base URL.

    Absolute URIs are returned unchanged. A relative URI with no base is
    returned unchanged as well, so callers decide whether that is an error.

    Args:
        base_url: URL of the playlist the URI was found in (may be None)
        uri: URI as written in the playlist

    Returns:
        Resolved URI

    Example:
        >>> resolve_uri("http://x/path/index.m3u8", "seg/0.ts")
        'http://x/path/seg/0.ts'
    """
    if not base_url or is_absolute_url(uri):
        return uri
    return urljoin(base_url, uri)


def parse_resolution(text: str) -> Resolution:
    """
    Parse a `WIDTHxHEIGHT` decimal-resolution.

    Raises:
        ValueError: If the text is not a resolution

    Example:
        >>> parse_resolution("1280x720")
        Resolution(width=1280, height=720)
    """
    match = RESOLUTION_RE.match(text.strip())
    if match is None:
        raise ValueError(f"expected a decimal-resolution, got {text!r}")
    return Resolution(width=int(match.group(1)), height=int(match.group(2)))


def seconds_to_timestamp(seconds: float) -> str:
    """
    Convert seconds to HH:MM:SS.mmm format.

    Args:
        seconds: Time in seconds as float

    Returns:
        Timestamp string in HH:MM:SS.mmm format

    Example:
        >>> seconds_to_timestamp(90.5)
        '00:01:30.500'
    """
    hours = int(seconds / 3600)
    minutes = int((seconds % 3600) / 60)
    seconds_remainder = seconds % 60
    milliseconds = int((seconds_remainder - int(seconds_remainder)) * 1000)

    return f"{hours:02d}:{minutes:02d}:{int(seconds_remainder):02d}.{milliseconds:03d}"
