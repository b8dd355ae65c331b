"""
Master playlist decoding.

Decodes variant streams (EXT-X-STREAM-INF plus the URI line after it),
I-frame variants, alternate renditions, session data and the session key.
"""

import logging
import re
from typing import Callable, Dict, List, Optional

from ..errors import PlaylistFormatError
from ..models import IFrameVariant, KeyMethod, MasterDocument, Rendition, RenditionType, SessionDatum, Variant
from ..utils import resolve_uri
from .attributes import AttributeRule, DecodeTable, ValueKind, apply_attributes, coerce_value, decode_key, decode_start
from .lexer import is_comment, match_directive, parse_attribute_list

logger = logging.getLogger(__name__)

MEDIA_DIRECTIVES = frozenset({
    "EXT-X-TARGETDURATION",
    "EXT-X-MEDIA-SEQUENCE",
    "EXT-X-DISCONTINUITY-SEQUENCE",
    "EXT-X-ENDLIST",
    "EXT-X-PLAYLIST-TYPE",
    "EXT-X-I-FRAMES-ONLY",
    "EXTINF",
    "EXT-X-BYTERANGE",
    "EXT-X-DISCONTINUITY",
    "EXT-X-KEY",
    "EXT-X-MAP",
    "EXT-X-PROGRAM-DATE-TIME",
})

HDCP_LEVELS = frozenset({"TYPE-0", "TYPE-1", "NONE"})

INSTREAM_ID_RE = re.compile(r'^(CC[1-4]|SERVICE(?:[1-9]|[1-5][0-9]|6[0-3]))$')


def _instream_id(value: str) -> str:
    if not INSTREAM_ID_RE.match(value):
        raise ValueError(f"invalid instream id {value!r}")
    return value


def _closed_captions(variant: Variant, value: Optional[str]) -> None:
    # Bare NONE and a group literally named "NONE" stay distinct.
    if value is None:
        variant.no_closed_captions = True
    else:
        variant.closed_captions = value


STREAM_INF_ATTRIBUTES: DecodeTable = {
    "BANDWIDTH": AttributeRule(ValueKind.INTEGER, "bandwidth"),
    "AVERAGE-BANDWIDTH": AttributeRule(ValueKind.INTEGER, "average_bandwidth"),
    "CODECS": AttributeRule(ValueKind.QUOTED, "codecs"),
    "RESOLUTION": AttributeRule(ValueKind.RESOLUTION, "resolution"),
    "FRAME-RATE": AttributeRule(ValueKind.FLOAT, "frame_rate"),
    "HDCP-LEVEL": AttributeRule(ValueKind.ENUM, "hdcp_level", choices=HDCP_LEVELS),
    "AUDIO": AttributeRule(ValueKind.QUOTED, "audio"),
    "VIDEO": AttributeRule(ValueKind.QUOTED, "video"),
    "SUBTITLES": AttributeRule(ValueKind.QUOTED, "subtitles"),
    "CLOSED-CAPTIONS": AttributeRule(ValueKind.QUOTED_OR_NONE, _closed_captions),
    "PROGRAM-ID": AttributeRule(ValueKind.INTEGER, "program_id"),
}

IFRAME_STREAM_INF_ATTRIBUTES: DecodeTable = {
    "URI": AttributeRule(ValueKind.QUOTED, "uri"),
    "BANDWIDTH": AttributeRule(ValueKind.INTEGER, "bandwidth"),
    "AVERAGE-BANDWIDTH": AttributeRule(ValueKind.INTEGER, "average_bandwidth"),
    "CODECS": AttributeRule(ValueKind.QUOTED, "codecs"),
    "RESOLUTION": AttributeRule(ValueKind.RESOLUTION, "resolution"),
    "HDCP-LEVEL": AttributeRule(ValueKind.ENUM, "hdcp_level", choices=HDCP_LEVELS),
    "VIDEO": AttributeRule(ValueKind.QUOTED, "video"),
}

RENDITION_ATTRIBUTES: DecodeTable = {
    "TYPE": AttributeRule(ValueKind.ENUM, "type", convert=RenditionType),
    "URI": AttributeRule(ValueKind.QUOTED, "uri"),
    "GROUP-ID": AttributeRule(ValueKind.QUOTED, "group_id"),
    "LANGUAGE": AttributeRule(ValueKind.QUOTED, "language"),
    "ASSOC-LANGUAGE": AttributeRule(ValueKind.QUOTED, "assoc_language"),
    "NAME": AttributeRule(ValueKind.QUOTED, "name"),
    "DEFAULT": AttributeRule(ValueKind.FLAG, "default"),
    "AUTOSELECT": AttributeRule(ValueKind.FLAG, "autoselect"),
    "FORCED": AttributeRule(ValueKind.FLAG, "forced"),
    "INSTREAM-ID": AttributeRule(ValueKind.QUOTED, "instream_id", convert=_instream_id),
    "CHARACTERISTICS": AttributeRule(ValueKind.QUOTED_LIST, "characteristics"),
    "CHANNELS": AttributeRule(ValueKind.QUOTED, "channels"),
}

SESSION_DATA_ATTRIBUTES: DecodeTable = {
    "DATA-ID": AttributeRule(ValueKind.QUOTED, "data_id"),
    "VALUE": AttributeRule(ValueKind.QUOTED, "value"),
    "URI": AttributeRule(ValueKind.QUOTED, "uri"),
    "LANGUAGE": AttributeRule(ValueKind.QUOTED, "language"),
}


class _MasterDecoder:
    """Decoding state for one pass over a master playlist."""

    def __init__(self, base_url: Optional[str] = None):
        self.base_url = base_url
        self.document = MasterDocument()
        self.pending: Optional[Variant] = None

        self.handlers: Dict[str, Callable[[str, Optional[str]], None]] = {
            "EXT-X-STREAM-INF": self._stream_inf,
            "EXT-X-I-FRAME-STREAM-INF": self._iframe_stream_inf,
            "EXT-X-MEDIA": self._media,
            "EXT-X-SESSION-DATA": self._session_data,
            "EXT-X-SESSION-KEY": self._session_key,
            "EXT-X-INDEPENDENT-SEGMENTS": self._independent_segments,
            "EXT-X-START": self._start,
            "EXT-X-VERSION": self._version,
        }

    def decode(self, lines: List[str]) -> MasterDocument:
        for line in lines:
            if is_comment(line):
                continue

            directive = match_directive(line)
            if directive is None:
                self._variant_uri(line)
                continue

            name, value = directive
            if self.pending is not None:
                raise PlaylistFormatError(f"must be followed by a URI line, found {name}", "EXT-X-STREAM-INF")
            if name in MEDIA_DIRECTIVES:
                raise PlaylistFormatError("media playlist directive found in master playlist", name)

            handler = self.handlers.get(name)
            if handler is not None:
                handler(name, value)

        if self.pending is not None:
            raise PlaylistFormatError("must be followed by a URI line", "EXT-X-STREAM-INF")
        return self.document

    def _attributes(self, name: str, value: Optional[str]) -> Dict[str, str]:
        if not value:
            raise PlaylistFormatError("attribute list is REQUIRED", name)
        return parse_attribute_list(value, name)

    def _variant_uri(self, uri: str) -> None:
        if self.pending is None:
            raise PlaylistFormatError(f"URI line {uri!r} does not follow EXT-X-STREAM-INF")
        self.pending.uri = resolve_uri(self.base_url, uri)
        self.document.variants.append(self.pending)
        self.pending = None

    def _stream_inf(self, name: str, value: Optional[str]) -> None:
        self.pending = apply_attributes(
            Variant(), self._attributes(name, value), STREAM_INF_ATTRIBUTES, name, required=("BANDWIDTH",)
        )

    def _iframe_stream_inf(self, name: str, value: Optional[str]) -> None:
        variant = apply_attributes(
            IFrameVariant(), self._attributes(name, value), IFRAME_STREAM_INF_ATTRIBUTES, name,
            required=("BANDWIDTH", "URI"),
        )
        variant.uri = resolve_uri(self.base_url, variant.uri)
        self.document.iframe_variants.append(variant)

    def _media(self, name: str, value: Optional[str]) -> None:
        attributes = self._attributes(name, value)
        rendition = apply_attributes(
            Rendition(), attributes, RENDITION_ATTRIBUTES, name, required=("TYPE", "GROUP-ID", "NAME")
        )

        if rendition.type is RenditionType.CLOSED_CAPTIONS:
            if rendition.instream_id is None:
                raise PlaylistFormatError("is REQUIRED when TYPE is CLOSED-CAPTIONS", name, "INSTREAM-ID")
            if rendition.uri is not None:
                raise PlaylistFormatError("must not be present when TYPE is CLOSED-CAPTIONS", name, "URI")
        elif rendition.instream_id is not None:
            raise PlaylistFormatError("must only be present when TYPE is CLOSED-CAPTIONS", name, "INSTREAM-ID")

        if rendition.default and "AUTOSELECT" in attributes and not rendition.autoselect:
            raise PlaylistFormatError("must be YES when DEFAULT is YES", name, "AUTOSELECT")

        if rendition.uri is not None:
            rendition.uri = resolve_uri(self.base_url, rendition.uri)
        self.document.renditions.append(rendition)

    def _session_data(self, name: str, value: Optional[str]) -> None:
        attributes = self._attributes(name, value)
        session = apply_attributes(SessionDatum(), attributes, SESSION_DATA_ATTRIBUTES, name, required=("DATA-ID",))

        if session.value is not None and session.uri is not None:
            raise PlaylistFormatError("VALUE and URI are mutually exclusive", name, "URI")
        if session.value is None and session.uri is None:
            raise PlaylistFormatError("one of VALUE or URI is REQUIRED", name, "VALUE")

        if session.uri is not None:
            session.uri = resolve_uri(self.base_url, session.uri)
        self.document.session_data.append(session)

    def _session_key(self, name: str, value: Optional[str]) -> None:
        key = decode_key(self._attributes(name, value), name, self.base_url)
        if key.method is KeyMethod.NONE:
            raise PlaylistFormatError("METHOD must not be NONE", name, "METHOD")
        self.document.session_key = key

    def _independent_segments(self, name: str, value: Optional[str]) -> None:
        self.document.independent_segments = True

    def _start(self, name: str, value: Optional[str]) -> None:
        decode_start(self.document, self._attributes(name, value), name)

    def _version(self, name: str, value: Optional[str]) -> None:
        if self.document.version is not None:
            raise PlaylistFormatError("directive must not appear more than once", name)
        try:
            self.document.version = coerce_value(ValueKind.INTEGER, (value or "").strip())
        except ValueError as exc:
            raise PlaylistFormatError(str(exc), name) from exc


def decode_master(lines: List[str], base_url: Optional[str] = None) -> MasterDocument:
    """
    Decode the lines of a master playlist.

    Args:
        lines: Playlist lines after the #EXTM3U header (see `split_lines`)
        base_url: URL that relative variant and rendition URIs are resolved against

    Returns:
        Decoded MasterDocument

    Raises:
        PlaylistFormatError: On the first format violation
    """
    document = _MasterDecoder(base_url).decode(lines)
    logger.debug(
        f"Decoded master playlist: {document.count} variants, "
        f"{len(document.iframe_variants)} I-frame variants, {len(document.renditions)} renditions"
    )
    return document
