"""
Chunk reassembly for HLSKit.

Joins the per-index chunk files into one output file, either through
ffmpeg's concat demuxer or by plain byte concatenation.
"""

import logging
import os
import shutil
import subprocess
from typing import List

from .errors import ReassemblyError

logger = logging.getLogger(__name__)


def format_concat_list(paths: List[str]) -> str:
    """
    Format an ffmpeg concat demuxer file list.

    Single quotes in paths are escaped the way the concat demuxer expects.

    Example:
        >>> format_concat_list(["/tmp/0.ts", "/tmp/1.ts"])
        "file '/tmp/0.ts'\\nfile '/tmp/1.ts'\\n"
    """
    content = ""
    for path in paths:
        escaped = os.path.abspath(path).replace("'", "'\\''")
        content += f"file '{escaped}'\n"
    return content


class FFmpegMerger:
    """
    Merges chunks with `ffmpeg -f concat ... -c copy`.

    The concat list is written next to the chunk files, so it is removed
    together with the work directory.
    """

    def __init__(self, ffmpeg_path: str = "ffmpeg"):
        """
        Initialize ffmpeg merger.

        Args:
            ffmpeg_path: ffmpeg executable name or path
        """
        self.ffmpeg_path = ffmpeg_path

    def build_command(self, list_path: str, destination: str) -> List[str]:
        return [
            self.ffmpeg_path,
            "-f", "concat",
            "-safe", "0",
            "-i", list_path,
            "-c", "copy",
            "-y", destination,
        ]

    def merge(self, paths: List[str], destination: str) -> str:
        """
        Merge chunk files in the given order.

        Args:
            paths: Chunk file paths, index 0 first
            destination: Output file path

        Returns:
            The destination path

        Raises:
            ReassemblyError: If there is nothing to merge, ffmpeg is missing,
                or ffmpeg exits with a non-zero status
        """
        if not paths:
            raise ReassemblyError("no chunks to merge")

        list_path = os.path.join(os.path.dirname(paths[0]), "list.txt")
        with open(list_path, 'w', encoding='utf-8') as f:
            f.write(format_concat_list(paths))

        command = self.build_command(list_path, destination)
        logger.info(f"Merging {len(paths)} chunks into {destination}")
        try:
            result = subprocess.run(command, capture_output=True, text=True, encoding='utf-8', errors='replace')
        except FileNotFoundError as e:
            raise ReassemblyError(f"{self.ffmpeg_path} not found; install ffmpeg or set ffmpeg_path") from e

        if result.returncode != 0:
            logger.error(f"ffmpeg exited with status {result.returncode}")
            raise ReassemblyError(f"ffmpeg exited with status {result.returncode}", result.stderr or result.stdout)

        logger.info(f"Merged output saved to: {destination}")
        return destination


class BinaryMerger:
    """
    Merges chunks by concatenating their bytes in order.

    Valid for MPEG transport stream chunks, which need no remuxing.
    """

    def merge(self, paths: List[str], destination: str) -> str:
        """
        Concatenate chunk files into `destination`.

        Raises:
            ReassemblyError: If there is nothing to merge or a file cannot be read
        """
        if not paths:
            raise ReassemblyError("no chunks to merge")

        logger.info(f"Concatenating {len(paths)} chunks into {destination}")
        try:
            with open(destination, 'wb') as out:
                for path in paths:
                    with open(path, 'rb') as chunk:
                        shutil.copyfileobj(chunk, out)
        except OSError as e:
            raise ReassemblyError(f"concatenating chunks into {destination}: {e}") from e

        logger.info(f"Merged output saved to: {destination}")
        return destination
