"""
Basic HLSKit usage example.

Demonstrates downloading an HLS stream from a media playlist URL.
"""

import logging

from hlskit import HLSDownloader

def main():
    logging.basicConfig(level=logging.INFO)

    # Initialize downloader
    downloader = HLSDownloader()

    # Download every chunk and merge them with ffmpeg
    print("Downloading stream...")
    output = downloader.download(
        "https://example.com/live/index.m3u8",
        output="/tmp/hls/video.ts",
        channels=8,
    )
    print(f"Downloaded to: {output}")

if __name__ == "__main__":
    main()
