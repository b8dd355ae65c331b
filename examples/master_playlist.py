"""
Master playlist example.

Demonstrates listing the variants of a master playlist, picking one by
resolution and downloading it with a progress callback and a bounded
retry budget.
"""

from hlskit import HLSDownloader, BinaryMerger, DownloadConfig, load_playlist, select_variant

MASTER_URL = "https://example.com/live/master.m3u8"

def print_progress(completed, total):
    print(f"\r{completed}/{total} chunks", end="", flush=True)

def main():
    # Inspect the variants
    master, _ = load_playlist(MASTER_URL)
    print(f"Found {master.count} variants:")
    for variant in master.variants:
        print(f"  {variant.resolution} @ {variant.bandwidth} bps -> {variant.uri}")

    variant = select_variant(master, "1280x720")
    print(f"\nSelected: {variant.resolution}")

    # Download with a config object; chunks are concatenated without ffmpeg
    config = DownloadConfig(
        source=MASTER_URL,
        output="/tmp/hls/video_720p.ts",
        quality="1280x720",
        channels=4,
        max_retries=3,
    )
    downloader = HLSDownloader(merger=BinaryMerger())
    output = downloader.download_from_config(config, progress=print_progress)
    print(f"\nDownloaded to: {output}")

if __name__ == "__main__":
    main()
