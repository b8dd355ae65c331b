"""
HLSKit - HLS (HTTP Live Streaming) Playlist and Download Toolkit

A library for decoding and encoding M3U8 playlists and for downloading
HLS streams into a single file.

Features:
- Decode master and media playlists into typed documents
- Encode documents back into playlist text
- Resolve AES-128 keys and decrypt chunks
- Download chunks concurrently with bounded per-chunk retries
- Merge chunks with ffmpeg or by byte concatenation

Example usage:
    >>> from hlskit import HLSDownloader, decode_text
    >>>
    >>> # Decode a playlist
    >>> document = decode_text(open("index.m3u8", "rb").read())
    >>> print(document.kind, document.count)
    >>>
    >>> # Download a stream
    >>> downloader = HLSDownloader()
    >>> output = downloader.download(
    ...     "https://example.com/live/master.m3u8",
    ...     output="local/video.ts",
    ...     quality="1280x720",
    ... )
"""

import logging

__version__ = "0.1.0"
__author__ = "HLSKit Contributors"
__license__ = "MIT"

# Add NullHandler to prevent "No handler found" warnings
# Users should configure logging in their application if they want to see logs
logging.getLogger(__name__).addHandler(logging.NullHandler())

# Core utility functions
from .utils import is_absolute_url, resolve_uri, parse_resolution, seconds_to_timestamp

# Playlist decoding and encoding
from .playlist import (
    split_lines,
    parse_attribute_list,
    classify,
    decode,
    decode_text,
    decode_master,
    decode_media,
    encode,
    encode_master,
    encode_media,
)

# Main classes
from .downloader import HLSDownloader, load_playlist, select_variant, is_playlist_url
from .acquisition import SegmentDownloader, WorkDir
from .keys import KeyResolver
from .merger import FFmpegMerger, BinaryMerger, format_concat_list
from .http import create_session, fetch_bytes

# Chunk decryption
from .crypto import sequence_iv, rfc_iv, choose_iv, decrypt_chunk, align_to_sync_byte, normalize_chunk

# Data models
from .models import (
    DocumentKind,
    VariantKind,
    KeyMethod,
    PlaylistType,
    RenditionType,
    ByteRange,
    Resolution,
    InitMap,
    Key,
    Chunk,
    Variant,
    IFrameVariant,
    Rendition,
    SessionDatum,
    MasterDocument,
    MediaDocument,
    Document,
    DownloadConfig,
)

# Errors
from .errors import (
    HLSError,
    PlaylistFormatError,
    FetchError,
    KeyResolutionError,
    ChunkError,
    RetriesExhaustedError,
    ProgressCallbackError,
    ReassemblyError,
    QualitySelectionError,
)

__all__ = [
    # Version info
    "__version__",
    "__author__",
    "__license__",

    # Playlist functions
    "split_lines",
    "parse_attribute_list",
    "classify",
    "decode",
    "decode_text",
    "decode_master",
    "decode_media",
    "encode",
    "encode_master",
    "encode_media",

    # Main classes
    "HLSDownloader",
    "SegmentDownloader",
    "WorkDir",
    "KeyResolver",
    "FFmpegMerger",
    "BinaryMerger",

    # Utility functions
    "load_playlist",
    "select_variant",
    "is_playlist_url",
    "format_concat_list",
    "create_session",
    "fetch_bytes",
    "is_absolute_url",
    "resolve_uri",
    "parse_resolution",
    "seconds_to_timestamp",
    "sequence_iv",
    "rfc_iv",
    "choose_iv",
    "decrypt_chunk",
    "align_to_sync_byte",
    "normalize_chunk",

    # Models
    "DocumentKind",
    "VariantKind",
    "KeyMethod",
    "PlaylistType",
    "RenditionType",
    "ByteRange",
    "Resolution",
    "InitMap",
    "Key",
    "Chunk",
    "Variant",
    "IFrameVariant",
    "Rendition",
    "SessionDatum",
    "MasterDocument",
    "MediaDocument",
    "Document",
    "DownloadConfig",

    # Errors
    "HLSError",
    "PlaylistFormatError",
    "FetchError",
    "KeyResolutionError",
    "ChunkError",
    "RetriesExhaustedError",
    "ProgressCallbackError",
    "ReassemblyError",
    "QualitySelectionError",
]
