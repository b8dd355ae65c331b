"""
Exception types for HLSKit.

Format errors abort decoding, network and key errors abort the whole
download, and chunk errors are retried by the acquisition engine until
the retry budget runs out.
"""

from typing import Optional


class HLSError(Exception):
    """Base class for all HLSKit errors."""


class PlaylistFormatError(HLSError, ValueError):
    """
    Raised when playlist text violates the playlist format.

    Args:
        message: What is wrong
        directive: Directive being decoded (e.g. "EXT-X-KEY"), if any
        attribute: Attribute being decoded (e.g. "METHOD"), if any
    """

    def __init__(self, message: str, directive: Optional[str] = None, attribute: Optional[str] = None):
        self.directive = directive
        self.attribute = attribute
        self.reason = message
        location = " ".join(part for part in (directive, attribute) if part)
        super().__init__(f"{location}: {message}" if location else message)


class FetchError(HLSError):
    """Raised when a playlist, key or chunk cannot be fetched."""

    def __init__(self, url: str, message: str):
        self.url = url
        super().__init__(f"fetching {url}: {message}")


class KeyResolutionError(HLSError):
    """Raised when a decryption key cannot be resolved."""


class ChunkError(HLSError):
    """Raised when a fetched chunk cannot be decrypted or normalized."""


class RetriesExhaustedError(HLSError):
    """Raised when a chunk keeps failing after every allowed retry."""

    def __init__(self, index: int, attempts: int, last_error: Optional[BaseException] = None):
        self.index = index
        self.attempts = attempts
        self.last_error = last_error
        super().__init__(f"chunk {index} exhausted retries after {attempts} attempts: {last_error}")


class ProgressCallbackError(HLSError):
    """Raised when the progress callback fails and the caller asked to abort on it."""


class ReassemblyError(HLSError):
    """Raised when the merge tool fails; carries its diagnostic output."""

    def __init__(self, message: str, output: str = ""):
        self.output = output
        super().__init__(f"{message}\n{output}" if output else message)


class QualitySelectionError(HLSError, ValueError):
    """Raised when no variant matches the requested quality."""
