import pytest

from hlskit.errors import PlaylistFormatError
from hlskit.models import DocumentKind, KeyMethod, RenditionType, Resolution
from hlskit.playlist import decode_text

MASTER = """#EXTM3U
#EXT-X-STREAM-INF:PROGRAM-ID=1, BANDWIDTH=1280000
http://example.com/low.m3u8
#EXT-X-STREAM-INF:PROGRAM-ID=1, BANDWIDTH=2560000
http://example.com/mid.m3u8
#EXT-X-STREAM-INF:PROGRAM-ID=1, BANDWIDTH=7680000
http://example.com/hi.m3u8
#EXT-X-STREAM-INF:PROGRAM-ID=1,BANDWIDTH=65000,CODECS="mp4a.40.5"
http://example.com/audio-only.m3u8
"""


def test_variants():
    doc = decode_text(MASTER)
    assert doc.kind is DocumentKind.MASTER
    assert doc.count == 4
    assert [v.bandwidth for v in doc.variants] == [1280000, 2560000, 7680000, 65000]
    assert doc.variants[0].program_id == 1
    assert doc.variants[0].uri == "http://example.com/low.m3u8"
    assert doc.variants[3].codecs == "mp4a.40.5"


def test_variant_attributes():
    doc = decode_text(
        "#EXTM3U\n"
        "#EXT-X-VERSION:6\n"
        "#EXT-X-INDEPENDENT-SEGMENTS\n"
        '#EXT-X-STREAM-INF:BANDWIDTH=5000000,AVERAGE-BANDWIDTH=4500000,CODECS="avc1.640028,mp4a.40.2",'
        'RESOLUTION=1920x1080,FRAME-RATE=29.970,HDCP-LEVEL=TYPE-0,AUDIO="aac",SUBTITLES="subs",'
        "CLOSED-CAPTIONS=NONE\n"
        "1080p/index.m3u8\n",
        base_url="http://x/master.m3u8",
    )
    variant = doc.variants[0]
    assert variant.average_bandwidth == 4500000
    assert variant.codecs == "avc1.640028,mp4a.40.2"
    assert variant.resolution == Resolution(1920, 1080)
    assert variant.frame_rate == pytest.approx(29.97)
    assert variant.hdcp_level == "TYPE-0"
    assert variant.audio == "aac"
    assert variant.subtitles == "subs"
    assert variant.closed_captions is None
    assert variant.no_closed_captions
    assert variant.uri == "http://x/1080p/index.m3u8"
    assert doc.version == 6
    assert doc.independent_segments


def test_stream_inf_requires_bandwidth():
    with pytest.raises(PlaylistFormatError) as exc_info:
        decode_text("#EXTM3U\n#EXT-X-STREAM-INF:RESOLUTION=640x360\nlow.m3u8\n")
    assert exc_info.value.directive == "EXT-X-STREAM-INF"
    assert exc_info.value.attribute == "BANDWIDTH"


@pytest.mark.parametrize("attributes, attribute", [
    ("BANDWIDTH=abc", "BANDWIDTH"),
    ("BANDWIDTH=1,RESOLUTION=wide", "RESOLUTION"),
    ("BANDWIDTH=1,HDCP-LEVEL=TYPE-2", "HDCP-LEVEL"),
    ("BANDWIDTH=1,CODECS=avc1", "CODECS"),
])
def test_invalid_stream_inf_attribute(attributes, attribute):
    with pytest.raises(PlaylistFormatError) as exc_info:
        decode_text(f"#EXTM3U\n#EXT-X-STREAM-INF:{attributes}\nlow.m3u8\n")
    assert exc_info.value.attribute == attribute


def test_stream_inf_must_be_followed_by_uri():
    with pytest.raises(PlaylistFormatError):
        decode_text("#EXTM3U\n#EXT-X-STREAM-INF:BANDWIDTH=1\n#EXT-X-STREAM-INF:BANDWIDTH=2\nlow.m3u8\n")
    with pytest.raises(PlaylistFormatError):
        decode_text("#EXTM3U\n#EXT-X-STREAM-INF:BANDWIDTH=1\n")


def test_stray_uri_line_fails():
    with pytest.raises(PlaylistFormatError):
        decode_text("#EXTM3U\nlow.m3u8\n")


def test_media_directive_in_master_playlist_fails():
    with pytest.raises(PlaylistFormatError) as exc_info:
        decode_text("#EXTM3U\n#EXT-X-STREAM-INF:BANDWIDTH=1\nlow.m3u8\n#EXTINF:10,\na.ts\n")
    assert exc_info.value.directive == "EXTINF"


def test_iframe_variants():
    doc = decode_text(
        "#EXTM3U\n"
        '#EXT-X-I-FRAME-STREAM-INF:BANDWIDTH=86000,URI="iframe/low.m3u8",RESOLUTION=640x360,CODECS="avc1.4d001f"\n',
        base_url="http://x/master.m3u8",
    )
    assert doc.count == 0
    iframe = doc.iframe_variants[0]
    assert iframe.bandwidth == 86000
    assert iframe.uri == "http://x/iframe/low.m3u8"
    assert iframe.resolution == Resolution(640, 360)


def test_iframe_variant_requires_uri():
    with pytest.raises(PlaylistFormatError) as exc_info:
        decode_text("#EXTM3U\n#EXT-X-I-FRAME-STREAM-INF:BANDWIDTH=86000\n")
    assert exc_info.value.attribute == "URI"


def test_renditions():
    doc = decode_text(
        "#EXTM3U\n"
        '#EXT-X-MEDIA:TYPE=AUDIO,GROUP-ID="aac",NAME="English",LANGUAGE="en",DEFAULT=YES,AUTOSELECT=YES,'
        'CHANNELS="2",URI="audio/en.m3u8"\n'
        '#EXT-X-MEDIA:TYPE=SUBTITLES,GROUP-ID="subs",NAME="Deutsch",LANGUAGE="de",FORCED=YES,'
        'CHARACTERISTICS="public.accessibility.transcribes-spoken-dialog,public.easy-to-read",URI="subs/de.m3u8"\n'
        '#EXT-X-MEDIA:TYPE=CLOSED-CAPTIONS,GROUP-ID="cc",NAME="CC1",INSTREAM-ID="CC1"\n'
        '#EXT-X-STREAM-INF:BANDWIDTH=1280000,AUDIO="aac",SUBTITLES="subs",CLOSED-CAPTIONS="cc"\n'
        "low.m3u8\n",
        base_url="http://x/master.m3u8",
    )
    audio, subtitles, captions = doc.renditions
    assert audio.type is RenditionType.AUDIO
    assert audio.group_id == "aac"
    assert audio.default and audio.autoselect
    assert audio.channels == "2"
    assert audio.uri == "http://x/audio/en.m3u8"
    assert subtitles.forced
    assert subtitles.characteristics == (
        "public.accessibility.transcribes-spoken-dialog",
        "public.easy-to-read",
    )
    assert captions.type is RenditionType.CLOSED_CAPTIONS
    assert captions.instream_id == "CC1"
    assert captions.uri is None
    assert doc.variants[0].closed_captions == "cc"


@pytest.mark.parametrize("attributes, attribute", [
    ('GROUP-ID="cc",NAME="CC1",TYPE=CLOSED-CAPTIONS', "INSTREAM-ID"),
    ('TYPE=CLOSED-CAPTIONS,GROUP-ID="cc",NAME="CC1",INSTREAM-ID="CC5"', "INSTREAM-ID"),
    ('TYPE=CLOSED-CAPTIONS,GROUP-ID="cc",NAME="CC1",INSTREAM-ID="CC1",URI="cc.m3u8"', "URI"),
    ('TYPE=AUDIO,GROUP-ID="aac",NAME="en",INSTREAM-ID="CC1"', "INSTREAM-ID"),
    ('TYPE=AUDIO,GROUP-ID="aac",NAME="en",DEFAULT=YES,AUTOSELECT=NO', "AUTOSELECT"),
    ('TYPE=AUDIO,NAME="en"', "GROUP-ID"),
    ('TYPE=MUSIC,GROUP-ID="aac",NAME="en"', "TYPE"),
    ('TYPE=AUDIO,GROUP-ID="aac",NAME="en",DEFAULT=MAYBE', "DEFAULT"),
])
def test_invalid_rendition(attributes, attribute):
    with pytest.raises(PlaylistFormatError) as exc_info:
        decode_text(f"#EXTM3U\n#EXT-X-MEDIA:{attributes}\n")
    assert exc_info.value.directive == "EXT-X-MEDIA"
    assert exc_info.value.attribute == attribute


def test_instream_id_services():
    doc = decode_text('#EXTM3U\n#EXT-X-MEDIA:TYPE=CLOSED-CAPTIONS,GROUP-ID="cc",NAME="S",INSTREAM-ID="SERVICE63"\n')
    assert doc.renditions[0].instream_id == "SERVICE63"
    with pytest.raises(PlaylistFormatError):
        decode_text('#EXTM3U\n#EXT-X-MEDIA:TYPE=CLOSED-CAPTIONS,GROUP-ID="cc",NAME="S",INSTREAM-ID="SERVICE64"\n')


def test_session_data():
    doc = decode_text(
        "#EXTM3U\n"
        '#EXT-X-SESSION-DATA:DATA-ID="com.example.title",VALUE="Example",LANGUAGE="en"\n'
        '#EXT-X-SESSION-DATA:DATA-ID="com.example.lyrics",URI="lyrics.json"\n',
        base_url="http://x/master.m3u8",
    )
    title, lyrics = doc.session_data
    assert title.data_id == "com.example.title"
    assert title.value == "Example"
    assert title.language == "en"
    assert lyrics.uri == "http://x/lyrics.json"
    assert lyrics.value is None


@pytest.mark.parametrize("attributes", [
    'DATA-ID="a",VALUE="v",URI="u.json"',
    'DATA-ID="a"',
    'VALUE="v"',
])
def test_invalid_session_data(attributes):
    with pytest.raises(PlaylistFormatError) as exc_info:
        decode_text(f"#EXTM3U\n#EXT-X-SESSION-DATA:{attributes}\n")
    assert exc_info.value.directive == "EXT-X-SESSION-DATA"


def test_session_key():
    doc = decode_text('#EXTM3U\n#EXT-X-SESSION-KEY:METHOD=AES-128,URI="https://x/key"\n')
    assert doc.session_key.method is KeyMethod.AES_128
    assert doc.session_key.uri == "https://x/key"


def test_session_key_rejects_method_none():
    with pytest.raises(PlaylistFormatError) as exc_info:
        decode_text("#EXTM3U\n#EXT-X-SESSION-KEY:METHOD=NONE\n")
    assert exc_info.value.attribute == "METHOD"


def test_start_and_duplicate_version():
    doc = decode_text("#EXTM3U\n#EXT-X-START:TIME-OFFSET=25\n#EXT-X-STREAM-INF:BANDWIDTH=1\nlow.m3u8\n")
    assert doc.time_offset == 25.0
    assert not doc.precise
    with pytest.raises(PlaylistFormatError):
        decode_text("#EXTM3U\n#EXT-X-VERSION:3\n#EXT-X-VERSION:4\n")


def test_empty_master_playlist():
    doc = decode_text("#EXTM3U\n")
    assert doc.kind is DocumentKind.MASTER
    assert doc.count == 0


def test_closed_captions_group_named_none_is_not_the_none_token():
    doc = decode_text(
        "#EXTM3U\n"
        '#EXT-X-STREAM-INF:BANDWIDTH=1,CLOSED-CAPTIONS="NONE"\nlow.m3u8\n'
        "#EXT-X-STREAM-INF:BANDWIDTH=2,CLOSED-CAPTIONS=NONE\nhi.m3u8\n"
    )
    named, absent = doc.variants
    assert named.closed_captions == "NONE"
    assert not named.no_closed_captions
    assert absent.closed_captions is None
    assert absent.no_closed_captions
