"""
Playlist classification and decoding entry points.

A playlist is classified as a media playlist when it contains an
EXT-X-TARGETDURATION directive (RFC 8216 4.3.3.1 makes it REQUIRED there
and forbids it in master playlists); everything else is decoded as a
master playlist.
"""

import logging
from typing import List, Optional, Union

from ..errors import PlaylistFormatError
from ..models import DocumentKind, Document
from .lexer import match_directive, split_lines
from .master import decode_master
from .media import decode_media

logger = logging.getLogger(__name__)

TARGET_DURATION = "EXT-X-TARGETDURATION"


def classify(lines: List[str]) -> DocumentKind:
    """
    Classify playlist lines as master or media.

    Args:
        lines: Playlist lines after the header

    Returns:
        DocumentKind.MEDIA if any line is EXT-X-TARGETDURATION, else MASTER
    """
    for line in lines:
        directive = match_directive(line)
        if directive is not None and directive[0] == TARGET_DURATION:
            return DocumentKind.MEDIA
    return DocumentKind.MASTER


def decode(lines: List[str], base_url: Optional[str] = None) -> Document:
    """
    Classify and decode playlist lines.

    Args:
        lines: Playlist lines after the header (see `split_lines`)
        base_url: URL that relative URIs are resolved against

    Returns:
        MasterDocument or MediaDocument

    Raises:
        PlaylistFormatError: If decoding fails
    """
    kind = classify(lines)
    try:
        if kind is DocumentKind.MEDIA:
            return decode_media(lines, base_url)
        return decode_master(lines, base_url)
    except PlaylistFormatError as exc:
        logger.error(f"Failed to decode {kind.value} playlist: {exc}")
        raise


def decode_text(raw: Union[str, bytes], base_url: Optional[str] = None) -> Document:
    """
    Decode playlist text.

    Args:
        raw: Complete playlist text or bytes, starting with #EXTM3U
        base_url: URL that relative URIs are resolved against

    Returns:
        MasterDocument or MediaDocument

    Example:
        >>> doc = decode_text("#EXTM3U\\n#EXT-X-TARGETDURATION:10\\n#EXTINF:10,\\na.ts\\n")
        >>> doc.kind, doc.count
        (<DocumentKind.MEDIA: 'media'>, 1)
    """
    return decode(split_lines(raw), base_url)
