"""
HLS downloader for HLSKit.

Entry point that turns a playlist source (URL, local file or file-like
object) into a single output file: master playlists are resolved to one
variant's media playlist, keys are resolved, chunks are acquired
concurrently in a scoped work directory and then merged.
"""

import logging
import os
import re
from typing import Dict, Optional, Tuple

from .acquisition import ProgressCallback, SegmentDownloader, WorkDir
from .errors import FetchError, PlaylistFormatError, QualitySelectionError
from .http import create_session, fetch_bytes
from .keys import KeyResolver
from .merger import FFmpegMerger
from .models import Document, DocumentKind, DownloadConfig, MasterDocument, MediaDocument, Variant
from .playlist import decode_text
from .utils import is_absolute_url, seconds_to_timestamp

logger = logging.getLogger(__name__)

QUALITY_RE = re.compile(r'^(\d+)(?:x(\d+))?$')


def is_playlist_url(source: str) -> bool:
    """
    Check if a playlist source should be fetched over HTTP.

    Args:
        source: URL or file path

    Returns:
        True if the source is an http(s) URL, False for local paths
    """
    return source.startswith('http')


def load_playlist(
    source,
    session=None,
    base_url: Optional[str] = None,
    timeout: int = 30,
    verify_ssl: bool = True,
    headers: Optional[Dict[str, str]] = None,
) -> Tuple[Document, Optional[str]]:
    """
    Load and decode a playlist from a URL, a file path or a file-like object.

    A fetched playlist's own URL becomes the base URL unless `base_url`
    overrides it.

    Args:
        source: http(s) URL, local path, or object with read()
        session: requests.Session used for URL sources (created if None)
        base_url: URL relative URIs in the playlist are resolved against
        timeout: Request timeout in seconds (default: 30)
        verify_ssl: Whether to verify SSL certificates (default: True)
        headers: Extra per-request headers

    Returns:
        Tuple of (decoded document, effective base URL)

    Raises:
        FetchError: If a URL source cannot be fetched
        PlaylistFormatError: If the playlist is malformed
        OSError: If a local file cannot be read
    """
    if hasattr(source, 'read'):
        logger.debug("Reading playlist from file object")
        raw = source.read()
    elif is_playlist_url(source):
        logger.info(f"Downloading playlist from: {source[:100]}")
        if session is None:
            session = create_session()
        raw = fetch_bytes(session, source, timeout=timeout, verify_ssl=verify_ssl, headers=headers)
        base_url = base_url or source
    else:
        logger.info(f"Reading playlist from: {source}")
        with open(source, 'rb') as f:
            raw = f.read()

    document = decode_text(raw, base_url=base_url)
    return document, base_url


def _height(variant: Variant) -> int:
    return variant.resolution.height if variant.resolution else 0


def _rank(variant: Variant) -> Tuple[int, int]:
    return _height(variant), variant.bandwidth or 0


def select_variant(master: MasterDocument, quality: str = "best") -> Variant:
    """
    Pick one variant of a master playlist.

    Args:
        master: Decoded master document
        quality: "best" (highest resolution), "worst" (lowest resolution),
            or a "WIDTHxHEIGHT" / "WIDTH" token matched against variant widths.
            Ties are broken by bandwidth.

    Returns:
        The selected variant

    Raises:
        QualitySelectionError: If there are no variants or none matches

    Example:
        >>> select_variant(master, "1280x720").resolution.width
        1280
    """
    if not master.variants:
        raise QualitySelectionError("master playlist has no variants")

    token = quality.strip().lower()
    if token == "best":
        return max(master.variants, key=_rank)
    if token == "worst":
        return min(master.variants, key=_rank)

    match = QUALITY_RE.match(token)
    if not match:
        raise QualitySelectionError(f"invalid quality {quality!r} (use best, worst or WIDTHxHEIGHT)")

    width = int(match.group(1))
    candidates = [v for v in master.variants if v.resolution is not None and v.resolution.width == width]
    if not candidates:
        available = ", ".join(str(v.resolution) for v in master.variants if v.resolution is not None)
        raise QualitySelectionError(f"no variant with width {width} (available: {available or 'none'})")
    return max(candidates, key=_rank)


class HLSDownloader:
    """
    HLS stream downloader.

    Can download from:
    - Media playlists (chunks listed directly)
    - Master playlists (a variant is selected by quality first)

    Sources may be http(s) URLs, local playlist files or file-like objects.
    Relative URIs in local playlists need an explicit base_url.
    """

    def __init__(self, session=None, merger=None):
        """
        Initialize HLS downloader.

        Args:
            session: requests.Session (or compatible object); created if None
            merger: Object with merge(paths, destination); an FFmpegMerger
                is created per download if None
        """
        self.session = session if session is not None else create_session()
        self.merger = merger

    def resolve_media(
        self,
        source,
        quality: str = "best",
        base_url: Optional[str] = None,
        timeout: int = 30,
        verify_ssl: bool = True,
        headers: Optional[Dict[str, str]] = None,
    ) -> Tuple[MediaDocument, Optional[str]]:
        """
        Load a playlist and, for master playlists, follow the selected variant.

        Returns:
            Tuple of (media document, base URL for its URIs)

        Raises:
            QualitySelectionError: If no variant matches `quality`
            PlaylistFormatError: If a playlist is malformed, or a variant
                URI leads to another master playlist
        """
        document, base_url = load_playlist(
            source, self.session, base_url=base_url, timeout=timeout, verify_ssl=verify_ssl, headers=headers
        )
        if document.kind is DocumentKind.MEDIA:
            return document, base_url

        variant = select_variant(document, quality)
        logger.info(
            f"Selected variant {variant.resolution or 'unknown resolution'} "
            f"at {variant.bandwidth} bps: {variant.uri[:100]}"
        )
        if not is_absolute_url(variant.uri):
            raise FetchError(variant.uri, "relative variant URI and no base URL to resolve it against")

        media, media_base = load_playlist(
            variant.uri, self.session, timeout=timeout, verify_ssl=verify_ssl, headers=headers
        )
        if media.kind is not DocumentKind.MEDIA:
            raise PlaylistFormatError(f"variant {variant.uri} is not a media playlist")
        return media, media_base

    def download(
        self,
        source,
        output: str,
        channels: int = 8,
        quality: str = "best",
        base_url: Optional[str] = None,
        max_retries: Optional[int] = 5,
        progress: Optional[ProgressCallback] = None,
        timeout: int = 30,
        verify_ssl: bool = True,
        headers: Optional[Dict[str, str]] = None,
        work_root: Optional[str] = None,
        legacy_iv: bool = True,
        align_sync_byte: bool = True,
        abort_on_progress_error: bool = False,
        ffmpeg_path: str = "ffmpeg",
    ) -> str:
        """
        Download an HLS stream into a single output file.

        Args:
            source: Playlist URL, local path or file-like object
            output: Output file path
            channels: Number of concurrent chunk downloads (default: 8)
            quality: Variant selection for master playlists (default: "best")
            base_url: URL relative URIs are resolved against
            max_retries: Failures allowed per chunk; None retries forever
            progress: Optional callback (completed, total) after each chunk
            timeout: Request timeout in seconds (default: 30)
            verify_ssl: Whether to verify SSL certificates (default: True)
            headers: Extra headers sent with every request
            work_root: Parent directory for the temporary chunk directory
            legacy_iv: Use the ASCII media-sequence IV when a key has no IV
            align_sync_byte: Realign chunks on the transport stream sync byte
            abort_on_progress_error: Stop when the progress callback raises
            ffmpeg_path: ffmpeg executable used when no merger was given

        Returns:
            Path of the merged output file

        Raises:
            HLSError: Any playlist, key, retry or reassembly failure
        """
        document, base_url = self.resolve_media(
            source, quality, base_url=base_url, timeout=timeout, verify_ssl=verify_ssl, headers=headers
        )
        logger.info(
            f"Media playlist: {document.count} chunks, "
            f"{seconds_to_timestamp(document.total_duration)} total"
        )

        output_dir = os.path.dirname(output)
        if output_dir:
            os.makedirs(output_dir, exist_ok=True)

        merger = self.merger if self.merger is not None else FFmpegMerger(ffmpeg_path)
        resolver = KeyResolver(
            self.session, base_url=base_url, timeout=timeout, verify_ssl=verify_ssl, headers=headers
        )

        with WorkDir(root=work_root) as workdir:
            engine = SegmentDownloader(
                document,
                resolver,
                workdir,
                self.session,
                base_url=base_url,
                max_retries=max_retries,
                progress=progress,
                legacy_iv=legacy_iv,
                align_sync_byte=align_sync_byte,
                abort_on_progress_error=abort_on_progress_error,
                timeout=timeout,
                verify_ssl=verify_ssl,
                headers=headers,
            )
            return engine.run(channels, output, merger)

    def download_from_config(self, config: DownloadConfig, progress: Optional[ProgressCallback] = None) -> str:
        """
        Download a stream using a DownloadConfig object.

        Args:
            config: DownloadConfig object with download parameters
            progress: Optional callback (completed, total) after each chunk

        Returns:
            Path of the merged output file
        """
        return self.download(
            source=config.source,
            output=config.output,
            channels=config.channels,
            quality=config.quality,
            base_url=config.base_url,
            max_retries=config.max_retries,
            progress=progress,
            timeout=config.timeout,
            verify_ssl=config.verify_ssl,
            headers=config.headers,
            work_root=config.work_root,
            legacy_iv=config.legacy_iv,
            align_sync_byte=config.align_sync_byte,
            abort_on_progress_error=config.abort_on_progress_error,
            ffmpeg_path=config.ffmpeg_path,
        )
