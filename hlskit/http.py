"""
HTTP transport for HLSKit.

All three fetch kinds (playlist, key, chunk) go through `fetch_bytes`.
Any object with a requests-compatible `get()` can stand in for the session.
"""

import logging
from typing import Dict, Optional

import requests

from .errors import FetchError
from .models import ByteRange

logger = logging.getLogger(__name__)

DEFAULT_HEADERS = {
    "User-Agent": "hlskit",
    "Accept": "*/*",
}


def create_session(headers: Optional[Dict[str, str]] = None) -> requests.Session:
    """
    Create a requests session with default headers.

    Args:
        headers: Extra headers merged over the defaults

    Returns:
        Configured requests.Session
    """
    session = requests.Session()
    session.headers.update(DEFAULT_HEADERS)
    if headers:
        session.headers.update(headers)
    return session


def range_header(byte_range: ByteRange) -> Dict[str, str]:
    """
    Build an HTTP Range header for a byte range.

    Example:
        >>> range_header(ByteRange(length=100, offset=200))
        {'Range': 'bytes=200-299'}
    """
    start = byte_range.offset or 0
    return {"Range": f"bytes={start}-{start + byte_range.length - 1}"}


def fetch_bytes(
    session,
    url: str,
    timeout: int = 30,
    verify_ssl: bool = True,
    headers: Optional[Dict[str, str]] = None,
) -> bytes:
    """
    GET a URL and return the response body.

    Args:
        session: requests.Session (or compatible object)
        url: Absolute URL to fetch
        timeout: Request timeout in seconds (default: 30)
        verify_ssl: Whether to verify SSL certificates (default: True)
        headers: Extra per-request headers

    Returns:
        Response body as bytes

    Raises:
        FetchError: If the request fails or returns an error status
    """
    logger.debug(f"GET {url[:100]}")
    try:
        response = session.get(url, timeout=timeout, verify=verify_ssl, headers=headers)
        response.raise_for_status()
        return response.content
    except requests.RequestException as e:
        raise FetchError(url, str(e)) from e
