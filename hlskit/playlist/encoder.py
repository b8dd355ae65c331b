"""
Playlist re-serialization.

Renders decoded documents back into M3U8 text. Decoding the output
yields a document equal to the input in every field the format carries.
"""

from decimal import Decimal
from typing import Iterable, List, Optional, Tuple

from ..models import ByteRange, Document, DocumentKind, Key, MasterDocument, MediaDocument, VariantKind
from .lexer import HEADER


def _decimal(value: float) -> str:
    # Positional notation only: the format has no exponent syntax.
    return format(Decimal(repr(float(value))), 'f')


def _quoted(value: str) -> str:
    return f'"{value}"'


def _flag(value: bool) -> str:
    return "YES" if value else "NO"


def _attribute_list(pairs: Iterable[Tuple[str, Optional[str]]]) -> str:
    return ",".join(f"{name}={value}" for name, value in pairs if value is not None)


def _byte_range(byte_range: ByteRange) -> str:
    if byte_range.offset is None:
        return str(byte_range.length)
    return f"{byte_range.length}@{byte_range.offset}"


def _start(lines: List[str], time_offset: Optional[float], precise: bool) -> None:
    if time_offset is not None:
        lines.append("#EXT-X-START:" + _attribute_list([
            ("TIME-OFFSET", _decimal(time_offset)),
            ("PRECISE", "YES" if precise else None),
        ]))


def _key(directive: str, key: Key) -> str:
    return f"#{directive}:" + _attribute_list([
        ("METHOD", key.method.value),
        ("URI", _quoted(key.uri) if key.uri else None),
        ("IV", "0x" + key.iv.hex().upper() if key.iv is not None else None),
        ("KEYFORMAT", _quoted(key.key_format) if key.key_format is not None else None),
        ("KEYFORMATVERSIONS", _quoted(key.key_format_versions) if key.key_format_versions is not None else None),
    ])


def encode_media(document: MediaDocument) -> str:
    """
    Render a media document as playlist text.

    Example:
        >>> doc = MediaDocument(target_duration=10)
        >>> encode_media(doc).splitlines()[:2]
        ['#EXTM3U', '#EXT-X-TARGETDURATION:10']
    """
    lines = [HEADER]
    if document.version is not None:
        lines.append(f"#EXT-X-VERSION:{document.version}")
    lines.append(f"#EXT-X-TARGETDURATION:{document.target_duration}")
    if document.media_sequence:
        lines.append(f"#EXT-X-MEDIA-SEQUENCE:{document.media_sequence}")
    if document.discontinuity_sequence:
        lines.append(f"#EXT-X-DISCONTINUITY-SEQUENCE:{document.discontinuity_sequence}")
    if document.playlist_type is not None:
        lines.append(f"#EXT-X-PLAYLIST-TYPE:{document.playlist_type.value}")
    if document.iframes_only:
        lines.append("#EXT-X-I-FRAMES-ONLY")
    if document.independent_segments:
        lines.append("#EXT-X-INDEPENDENT-SEGMENTS")
    _start(lines, document.time_offset, document.precise)

    written_keys = -1
    current_map = None
    for chunk in document.chunks:
        while written_keys < chunk.key_index:
            written_keys += 1
            lines.append(_key("EXT-X-KEY", document.keys[written_keys]))
        if chunk.init_map is not None and chunk.init_map is not current_map:
            current_map = chunk.init_map
            lines.append("#EXT-X-MAP:" + _attribute_list([
                ("URI", _quoted(current_map.uri)),
                ("BYTERANGE", _quoted(_byte_range(current_map.byte_range)) if current_map.byte_range else None),
            ]))
        if chunk.discontinuity:
            lines.append("#EXT-X-DISCONTINUITY")
        if chunk.program_date_time is not None:
            lines.append(f"#EXT-X-PROGRAM-DATE-TIME:{chunk.program_date_time}")
        lines.append(f"#EXTINF:{_decimal(chunk.duration)},{chunk.title or ''}")
        if chunk.byte_range is not None:
            lines.append(f"#EXT-X-BYTERANGE:{_byte_range(chunk.byte_range)}")
        lines.append(chunk.uri)

    for key in document.keys[written_keys + 1:]:
        lines.append(_key("EXT-X-KEY", key))
    if document.end_list:
        lines.append("#EXT-X-ENDLIST")
    return "\n".join(lines) + "\n"


def _variant_attributes(variant) -> List[Tuple[str, Optional[str]]]:
    pairs = [
        ("BANDWIDTH", str(variant.bandwidth)),
        ("AVERAGE-BANDWIDTH", str(variant.average_bandwidth) if variant.average_bandwidth is not None else None),
        ("CODECS", _quoted(variant.codecs) if variant.codecs is not None else None),
        ("RESOLUTION", str(variant.resolution) if variant.resolution is not None else None),
        ("HDCP-LEVEL", variant.hdcp_level),
        ("VIDEO", _quoted(variant.video) if variant.video is not None else None),
    ]
    if variant.kind is VariantKind.STREAM:
        closed_captions = _quoted(variant.closed_captions) if variant.closed_captions is not None else None
        if variant.no_closed_captions:
            closed_captions = "NONE"
        pairs += [
            ("PROGRAM-ID", str(variant.program_id) if variant.program_id is not None else None),
            ("FRAME-RATE", _decimal(variant.frame_rate) if variant.frame_rate is not None else None),
            ("AUDIO", _quoted(variant.audio) if variant.audio is not None else None),
            ("SUBTITLES", _quoted(variant.subtitles) if variant.subtitles is not None else None),
            ("CLOSED-CAPTIONS", closed_captions),
        ]
    return pairs


def encode_master(document: MasterDocument) -> str:
    """Render a master document as playlist text."""
    lines = [HEADER]
    if document.version is not None:
        lines.append(f"#EXT-X-VERSION:{document.version}")
    if document.independent_segments:
        lines.append("#EXT-X-INDEPENDENT-SEGMENTS")
    _start(lines, document.time_offset, document.precise)
    if document.session_key is not None:
        lines.append(_key("EXT-X-SESSION-KEY", document.session_key))

    for session in document.session_data:
        lines.append("#EXT-X-SESSION-DATA:" + _attribute_list([
            ("DATA-ID", _quoted(session.data_id)),
            ("VALUE", _quoted(session.value) if session.value is not None else None),
            ("URI", _quoted(session.uri) if session.uri is not None else None),
            ("LANGUAGE", _quoted(session.language) if session.language is not None else None),
        ]))

    for rendition in document.renditions:
        lines.append("#EXT-X-MEDIA:" + _attribute_list([
            ("TYPE", rendition.type.value),
            ("GROUP-ID", _quoted(rendition.group_id)),
            ("NAME", _quoted(rendition.name)),
            ("URI", _quoted(rendition.uri) if rendition.uri is not None else None),
            ("LANGUAGE", _quoted(rendition.language) if rendition.language is not None else None),
            ("ASSOC-LANGUAGE", _quoted(rendition.assoc_language) if rendition.assoc_language is not None else None),
            ("DEFAULT", _flag(rendition.default)),
            ("AUTOSELECT", "YES" if rendition.autoselect else None),
            ("FORCED", _flag(rendition.forced) if rendition.forced else None),
            ("INSTREAM-ID", _quoted(rendition.instream_id) if rendition.instream_id is not None else None),
            ("CHARACTERISTICS", _quoted(",".join(rendition.characteristics)) if rendition.characteristics else None),
            ("CHANNELS", _quoted(rendition.channels) if rendition.channels is not None else None),
        ]))

    for variant in document.variants:
        lines.append("#EXT-X-STREAM-INF:" + _attribute_list(_variant_attributes(variant)))
        lines.append(variant.uri)

    for iframe in document.iframe_variants:
        pairs = _variant_attributes(iframe) + [("URI", _quoted(iframe.uri))]
        lines.append("#EXT-X-I-FRAME-STREAM-INF:" + _attribute_list(pairs))

    return "\n".join(lines) + "\n"


def encode(document: Document) -> str:
    """Render either kind of document as playlist text."""
    if document.kind is DocumentKind.MEDIA:
        return encode_media(document)
    return encode_master(document)
