"""
Decryption key resolution for HLSKit.

Loads the raw bytes of every key a media document references, once,
before chunk acquisition starts. Workers then only read the cache.
"""

import logging
from typing import Dict, Optional

from .errors import FetchError, KeyResolutionError
from .http import fetch_bytes
from .models import Key, KeyMethod, MediaDocument
from .utils import is_absolute_url, resolve_uri

logger = logging.getLogger(__name__)

# Resolved value of a METHOD=NONE key: chunks under it are not decrypted.
NO_ENCRYPTION = b""

AES_128_KEY_SIZE = 16


class KeyResolver:
    """
    Fetches and caches key bytes by key index.

    Args:
        session: requests.Session (or compatible object) used for key fetches
        base_url: URL relative key URIs are resolved against
        timeout: Request timeout in seconds
        verify_ssl: Whether to verify SSL certificates
        headers: Extra headers sent with every key request
    """

    def __init__(
        self,
        session,
        base_url: Optional[str] = None,
        timeout: int = 30,
        verify_ssl: bool = True,
        headers: Optional[Dict[str, str]] = None,
    ):
        self.session = session
        self.base_url = base_url
        self.timeout = timeout
        self.verify_ssl = verify_ssl
        self.headers = headers
        self.cache: Dict[int, bytes] = {}

    def resolve(self, key: Key) -> bytes:
        """
        Return the raw bytes for a key, fetching them if needed.

        Args:
            key: Key descriptor from a decoded document

        Returns:
            Key bytes, or NO_ENCRYPTION for METHOD=NONE

        Raises:
            KeyResolutionError: If the method is unsupported or the fetch fails
        """
        if key.value is not None:
            return key.value

        if key.method is KeyMethod.NONE:
            key.value = NO_ENCRYPTION
            return key.value

        if key.method is not KeyMethod.AES_128:
            raise KeyResolutionError(f"unsupported key method {key.method.value}")

        url = resolve_uri(self.base_url, key.uri or "")
        if not is_absolute_url(url):
            raise KeyResolutionError(f"cannot resolve relative key URI {key.uri!r} without a base URL")

        try:
            value = fetch_bytes(
                self.session, url, timeout=self.timeout, verify_ssl=self.verify_ssl, headers=self.headers
            )
        except FetchError as e:
            raise KeyResolutionError(f"getting key {url}: {e}") from e

        if len(value) != AES_128_KEY_SIZE:
            raise KeyResolutionError(f"AES-128 key from {url} is {len(value)} bytes, expected {AES_128_KEY_SIZE}")

        key.value = value
        return value

    def resolve_all(self, document: MediaDocument) -> Dict[int, bytes]:
        """
        Resolve every key referenced by a chunk of the document.

        Returns:
            Mapping of key index to key bytes
        """
        referenced = sorted({chunk.key_index for chunk in document.chunks if chunk.key_index >= 0})
        for index in referenced:
            if index not in self.cache:
                self.cache[index] = self.resolve(document.keys[index])
                logger.debug(f"Resolved key {index} ({document.keys[index].method.value})")

        if referenced:
            logger.info(f"Resolved {len(referenced)} decryption key(s)")
        return self.cache

    def get(self, index: int) -> bytes:
        """Return cached key bytes; `resolve_all` must have run first."""
        if index < 0:
            return NO_ENCRYPTION
        return self.cache[index]
