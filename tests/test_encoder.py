from hlskit.models import (
    ByteRange,
    Chunk,
    IFrameVariant,
    InitMap,
    Key,
    KeyMethod,
    MasterDocument,
    MediaDocument,
    PlaylistType,
    Rendition,
    RenditionType,
    Resolution,
    SessionDatum,
    Variant,
)
from hlskit.playlist import decode_text, encode, encode_media


def test_encode_minimal_media():
    text = encode_media(MediaDocument(target_duration=10, chunks=[Chunk(uri="http://x/a.ts", duration=10.0)]))
    assert text.splitlines() == ["#EXTM3U", "#EXT-X-TARGETDURATION:10", "#EXTINF:10.0,", "http://x/a.ts"]


def test_media_round_trip():
    init_map = InitMap(uri="http://x/init.mp4", byte_range=ByteRange(length=720, offset=0))
    document = MediaDocument(
        chunks=[
            Chunk(uri="http://x/0.ts", duration=9.009, title="first, really", init_map=init_map,
                  program_date_time="2024-01-01T00:00:00.000Z"),
            Chunk(uri="http://x/all.ts", duration=10.0, byte_range=ByteRange(length=1000, offset=0),
                  init_map=init_map, key_index=0),
            Chunk(uri="http://x/all.ts", duration=10.0, byte_range=ByteRange(length=500, offset=1000),
                  discontinuity=True, init_map=init_map, key_index=1),
        ],
        keys=[
            Key(method=KeyMethod.AES_128, uri="http://x/k1", iv=bytes(range(16))),
            Key(method=KeyMethod.NONE),
        ],
        target_duration=10,
        media_sequence=42,
        discontinuity_sequence=3,
        playlist_type=PlaylistType.EVENT,
        independent_segments=True,
        end_list=True,
        time_offset=-2.5,
        precise=True,
        version=7,
    )
    assert decode_text(encode(document)) == document


def test_media_round_trip_keeps_trailing_keys():
    document = MediaDocument(
        target_duration=6,
        chunks=[Chunk(uri="http://x/a.ts", duration=6.0)],
        keys=[Key(method=KeyMethod.AES_128, uri="http://x/k")],
    )
    decoded = decode_text(encode(document))
    assert decoded.keys == document.keys
    assert decoded.chunks[0].key_index == -1


def test_master_round_trip():
    document = MasterDocument(
        variants=[
            Variant(uri="http://x/low.m3u8", bandwidth=1280000, program_id=1),
            Variant(uri="http://x/hi.m3u8", bandwidth=7680000, average_bandwidth=7000000,
                    codecs="avc1.640028,mp4a.40.2", resolution=Resolution(1920, 1080), frame_rate=29.97,
                    hdcp_level="TYPE-1", audio="aac", subtitles="subs", no_closed_captions=True),
            Variant(uri="http://x/cc.m3u8", bandwidth=900000, closed_captions="NONE"),
        ],
        iframe_variants=[
            IFrameVariant(uri="http://x/iframe.m3u8", bandwidth=86000, resolution=Resolution(640, 360),
                          codecs="avc1.4d001f"),
        ],
        renditions=[
            Rendition(type=RenditionType.AUDIO, group_id="aac", name="English", uri="http://x/en.m3u8",
                      language="en", default=True, autoselect=True, channels="2"),
            Rendition(type=RenditionType.AUDIO, group_id="aac", name="Commentary", uri="http://x/commentary.m3u8",
                      default=True),
            Rendition(type=RenditionType.SUBTITLES, group_id="subs", name="Deutsch", uri="http://x/de.m3u8",
                      language="de", forced=True, characteristics=("public.easy-to-read",)),
            Rendition(type=RenditionType.CLOSED_CAPTIONS, group_id="cc", name="CC1", instream_id="CC1"),
        ],
        session_data=[
            SessionDatum(data_id="com.example.title", value="Example", language="en"),
            SessionDatum(data_id="com.example.lyrics", uri="http://x/lyrics.json"),
        ],
        session_key=Key(method=KeyMethod.AES_128, uri="http://x/session-key"),
        independent_segments=True,
        time_offset=12.0,
        version=6,
    )
    assert decode_text(encode(document)) == document


def test_default_rendition_without_autoselect_round_trips():
    text = (
        "#EXTM3U\n"
        '#EXT-X-MEDIA:TYPE=AUDIO,GROUP-ID="aac",NAME="English",DEFAULT=YES,URI="http://x/en.m3u8"\n'
    )
    document = decode_text(text)
    encoded = encode(document)
    assert "AUTOSELECT" not in encoded
    assert decode_text(encoded) == document


def test_closed_captions_none_and_quoted_none_group_are_encoded_differently():
    document = MasterDocument(variants=[
        Variant(uri="http://x/a.m3u8", bandwidth=1, closed_captions="NONE"),
        Variant(uri="http://x/b.m3u8", bandwidth=2, no_closed_captions=True),
    ])
    lines = encode(document).splitlines()
    assert lines[1] == '#EXT-X-STREAM-INF:BANDWIDTH=1,CLOSED-CAPTIONS="NONE"'
    assert lines[3] == "#EXT-X-STREAM-INF:BANDWIDTH=2,CLOSED-CAPTIONS=NONE"
