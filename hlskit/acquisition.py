"""
Concurrent chunk acquisition for HLSKit.

A fixed pool of worker threads pulls chunk indices from a shared FIFO,
fetches each chunk, decrypts and realigns it, and writes it to a
per-index file inside a scoped work directory. Failed chunks go back to
the tail of the queue until they succeed or run out of retries.
"""

import logging
import os
import shutil
import tempfile
import threading
from collections import deque
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Deque, Dict, List, Optional

from .crypto import choose_iv, normalize_chunk
from .errors import ChunkError, FetchError, HLSError, ProgressCallbackError, ReassemblyError, RetriesExhaustedError
from .http import fetch_bytes, range_header
from .keys import KeyResolver
from .models import MediaDocument
from .utils import is_absolute_url, resolve_uri

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int], None]


class WorkDir:
    """
    Scoped temporary directory holding one file per chunk index.

    Created on `__enter__` and removed on `__exit__`, whether the block
    succeeds or raises. Each instance gets its own directory, so
    concurrent downloads in one process do not collide.

    Args:
        root: Parent directory (default: the system temp directory)
        prefix: Directory name prefix

    Example:
        >>> with WorkDir() as workdir:
        ...     path = workdir.path_for(0)
    """

    def __init__(self, root: Optional[str] = None, prefix: str = "hlskit-"):
        self.root = root
        self.prefix = prefix
        self.path: Optional[str] = None

    def __enter__(self) -> "WorkDir":
        if self.root:
            os.makedirs(self.root, exist_ok=True)
        self.path = tempfile.mkdtemp(prefix=self.prefix, dir=self.root)
        logger.debug(f"Created work directory {self.path}")
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.cleanup()

    def cleanup(self) -> None:
        """Remove the directory and everything in it."""
        if self.path is None:
            return
        try:
            shutil.rmtree(self.path)
            logger.debug(f"Removed work directory {self.path}")
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.warning(f"Failed to remove work directory {self.path}: {str(e)}")
        self.path = None

    def path_for(self, index: int) -> str:
        """Stable path of the file holding chunk `index`."""
        if self.path is None:
            raise RuntimeError("work directory is not active (use it as a context manager)")
        return os.path.join(self.path, f"{index}.ts")


class SegmentDownloader:
    """
    Downloads every chunk of a media document with a pool of worker threads.

    Shared mutable state is the pending-index queue (guarded by
    `queue_lock`, together with the per-index attempt counts) and the
    completed count (guarded by `count_lock`). The document and the key
    cache are read-only while workers run.

    Args:
        document: Decoded media document
        resolver: Key resolver used for the document's keys
        workdir: Active WorkDir receiving one file per chunk
        session: requests.Session (or compatible object) for chunk fetches
        base_url: URL relative chunk URIs are resolved against
        max_retries: Failures allowed per chunk before the run fails;
            None requeues failed chunks forever
        progress: Optional callback (completed, total) after each chunk
        legacy_iv: Use the ASCII media-sequence IV instead of the RFC 8216 IV
        align_sync_byte: Realign chunk data on the transport stream sync byte
        abort_on_progress_error: Stop acquisition when the progress callback raises
        timeout: Request timeout in seconds
        verify_ssl: Whether to verify SSL certificates
        headers: Extra headers sent with every chunk request
    """

    def __init__(
        self,
        document: MediaDocument,
        resolver: KeyResolver,
        workdir: WorkDir,
        session,
        base_url: Optional[str] = None,
        max_retries: Optional[int] = 5,
        progress: Optional[ProgressCallback] = None,
        legacy_iv: bool = True,
        align_sync_byte: bool = True,
        abort_on_progress_error: bool = False,
        timeout: int = 30,
        verify_ssl: bool = True,
        headers: Optional[Dict[str, str]] = None,
    ):
        self.document = document
        self.resolver = resolver
        self.workdir = workdir
        self.session = session
        self.base_url = base_url
        self.max_retries = max_retries
        self.progress = progress
        self.legacy_iv = legacy_iv
        self.align_sync_byte = align_sync_byte
        self.abort_on_progress_error = abort_on_progress_error
        self.timeout = timeout
        self.verify_ssl = verify_ssl
        self.headers = headers

        self.total = document.count
        self.pending: Deque[int] = deque(range(self.total))
        self.attempts: Dict[int, int] = {}
        self.queue_lock = threading.Lock()
        self.completed = 0
        self.count_lock = threading.Lock()
        self.stopped = threading.Event()
        self.failure: Optional[HLSError] = None

    def _next_index(self) -> Optional[int]:
        with self.queue_lock:
            if self.stopped.is_set() or not self.pending:
                return None
            return self.pending.popleft()

    def _fail(self, error: HLSError) -> None:
        with self.queue_lock:
            if self.failure is None:
                self.failure = error
        self.stopped.set()

    def _requeue(self, index: int, error: Exception) -> None:
        with self.queue_lock:
            attempts = self.attempts.get(index, 0) + 1
            self.attempts[index] = attempts
            exhausted = self.max_retries is not None and attempts > self.max_retries
            if not exhausted:
                self.pending.append(index)

        if exhausted:
            logger.error(f"Chunk {index} failed {attempts} times, giving up: {error}")
            self._fail(RetriesExhaustedError(index, attempts, error))
        else:
            logger.warning(f"Error downloading chunk {index} (returning to queue): {error}")

    def _record_success(self) -> None:
        with self.count_lock:
            self.completed += 1
            completed = self.completed

        if completed % 50 == 0 or completed == self.total:
            logger.info(f"{completed} / {self.total} chunks downloaded")

        if self.progress is None:
            return
        try:
            self.progress(completed, self.total)
        except Exception as e:
            if self.abort_on_progress_error:
                logger.error(f"Progress callback failed, stopping acquisition: {str(e)}")
                failure = ProgressCallbackError(f"progress callback failed: {e}")
                failure.__cause__ = e
                self._fail(failure)
            else:
                logger.warning(f"Progress callback failed (ignored): {str(e)}")

    def _acquire(self, index: int) -> None:
        chunk = self.document.chunks[index]
        url = resolve_uri(self.base_url, chunk.uri)
        headers = dict(self.headers or {})
        if chunk.byte_range is not None:
            headers.update(range_header(chunk.byte_range))

        data = fetch_bytes(
            self.session, url, timeout=self.timeout, verify_ssl=self.verify_ssl, headers=headers or None
        )

        key_bytes = self.resolver.get(chunk.key_index)
        iv = None
        if key_bytes:
            key = self.document.keys[chunk.key_index]
            iv = choose_iv(key, self.document.media_sequence, index, legacy_iv=self.legacy_iv)

        data = normalize_chunk(data, key_bytes, iv, align=self.align_sync_byte)
        if not data:
            raise ChunkError(f"chunk {index} is empty after normalization")

        with open(self.workdir.path_for(index), 'wb') as f:
            f.write(data)
        logger.debug(f"Chunk {index} saved ({len(data)} bytes)")

    def _worker(self) -> None:
        while True:
            index = self._next_index()
            if index is None:
                return
            try:
                self._acquire(index)
            except (HLSError, OSError) as e:
                self._requeue(index, e)
                continue
            self._record_success()

    def _check_uris(self) -> None:
        for chunk in self.document.chunks:
            if not is_absolute_url(resolve_uri(self.base_url, chunk.uri)):
                raise FetchError(chunk.uri, "relative chunk URI and no base URL to resolve it against")

    def acquire(self, channels: int) -> List[str]:
        """
        Download every chunk and return the per-index file paths in order.

        Blocks until all workers have exited.

        Args:
            channels: Number of worker threads

        Returns:
            Paths of chunk files, index 0 first

        Raises:
            KeyResolutionError: If a key cannot be resolved
            RetriesExhaustedError: If a chunk failed more than max_retries times
            ProgressCallbackError: If the callback failed and abort was requested
        """
        if channels < 1:
            raise ValueError(f"channels must be at least 1, got {channels}")

        self._check_uris()
        self.resolver.resolve_all(self.document)

        logger.info(f"Downloading {self.total} chunks with {channels} workers")
        with ThreadPoolExecutor(max_workers=channels) as executor:
            futures = [executor.submit(self._worker) for _ in range(channels)]
            for future in futures:
                future.result()

        if self.failure is not None:
            raise self.failure

        paths = [self.workdir.path_for(index) for index in range(self.total)]
        for path in paths:
            if not os.path.isfile(path) or os.path.getsize(path) == 0:
                raise ReassemblyError(f"chunk file {path} is missing or empty")
        return paths

    def run(self, channels: int, destination: str, merger) -> str:
        """
        Download every chunk, then hand the ordered files to the merger.

        Args:
            channels: Number of worker threads
            destination: Output file path
            merger: Object with merge(paths, destination)

        Returns:
            The destination path
        """
        paths = self.acquire(channels)
        merger.merge(paths, destination)
        return destination
