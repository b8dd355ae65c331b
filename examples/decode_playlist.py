"""
Playlist decoding example.

Demonstrates decoding a local media playlist, inspecting its chunks and
keys, and encoding it back to text.
"""

from hlskit import decode_text, encode, seconds_to_timestamp

PLAYLIST = """#EXTM3U
#EXT-X-VERSION:3
#EXT-X-TARGETDURATION:10
#EXT-X-MEDIA-SEQUENCE:7794
#EXT-X-KEY:METHOD=AES-128,URI="https://example.com/key"
#EXTINF:10.0,
segment_7794.ts
#EXTINF:9.5,
segment_7795.ts
#EXT-X-ENDLIST
"""

def main():
    document = decode_text(PLAYLIST, base_url="https://example.com/live/index.m3u8")

    print(f"Kind: {document.kind.value}")
    print(f"Chunks: {document.count} ({seconds_to_timestamp(document.total_duration)})")
    for chunk in document.chunks:
        key = document.key_for(chunk)
        method = key.method.value if key else "NONE"
        print(f"  {chunk.duration:>5}s  {method:<8} {chunk.uri}")

    print("\nRe-encoded playlist:")
    print(encode(document))

if __name__ == "__main__":
    main()
