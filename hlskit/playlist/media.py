"""
Media playlist decoding.

Walks the lines of a media playlist once. Chunk-level directives
(EXTINF, EXT-X-BYTERANGE, EXT-X-DISCONTINUITY, EXT-X-PROGRAM-DATE-TIME)
accumulate until the next URI line, which closes the chunk. EXT-X-KEY and
EXT-X-MAP stay in effect for every following chunk until replaced.
"""

import logging
from typing import Callable, Dict, List, Optional

from ..errors import PlaylistFormatError
from ..models import ByteRange, Chunk, InitMap, MediaDocument, PlaylistType
from ..utils import resolve_uri
from .attributes import (
    AttributeRule,
    DecodeTable,
    ValueKind,
    apply_attributes,
    coerce_value,
    decode_key,
    decode_start,
    parse_byte_range,
)
from .lexer import is_comment, match_directive, parse_attribute_list

logger = logging.getLogger(__name__)

MASTER_DIRECTIVES = frozenset({
    "EXT-X-MEDIA",
    "EXT-X-STREAM-INF",
    "EXT-X-I-FRAME-STREAM-INF",
    "EXT-X-SESSION-DATA",
    "EXT-X-SESSION-KEY",
})

SINGLETON_DIRECTIVES = frozenset({
    "EXT-X-VERSION",
    "EXT-X-TARGETDURATION",
    "EXT-X-MEDIA-SEQUENCE",
    "EXT-X-DISCONTINUITY-SEQUENCE",
    "EXT-X-PLAYLIST-TYPE",
})

MAP_ATTRIBUTES: DecodeTable = {
    "URI": AttributeRule(ValueKind.QUOTED, "uri"),
    "BYTERANGE": AttributeRule(ValueKind.QUOTED_BYTERANGE, "byte_range"),
}


def _require_value(name: str, value: Optional[str]) -> str:
    if value is None or value.strip() == "":
        raise PlaylistFormatError("value is REQUIRED", name)
    return value.strip()


def _scalar(name: str, value: Optional[str], kind: ValueKind):
    try:
        return coerce_value(kind, _require_value(name, value))
    except ValueError as exc:
        raise PlaylistFormatError(str(exc), name) from exc


class _MediaDecoder:
    """Decoding state for one pass over a media playlist."""

    def __init__(self, base_url: Optional[str] = None):
        self.base_url = base_url
        self.document = MediaDocument()
        self.seen = set()
        self.key_index = -1
        self.init_map: Optional[InitMap] = None
        self.previous: Optional[Chunk] = None
        self._reset_pending()

        self.handlers: Dict[str, Callable[[str, Optional[str]], None]] = {
            "EXTINF": self._extinf,
            "EXT-X-BYTERANGE": self._byterange,
            "EXT-X-DISCONTINUITY": self._discontinuity,
            "EXT-X-PROGRAM-DATE-TIME": self._program_date_time,
            "EXT-X-KEY": self._key,
            "EXT-X-MAP": self._map,
            "EXT-X-TARGETDURATION": self._target_duration,
            "EXT-X-MEDIA-SEQUENCE": self._media_sequence,
            "EXT-X-DISCONTINUITY-SEQUENCE": self._discontinuity_sequence,
            "EXT-X-PLAYLIST-TYPE": self._playlist_type,
            "EXT-X-I-FRAMES-ONLY": self._iframes_only,
            "EXT-X-INDEPENDENT-SEGMENTS": self._independent_segments,
            "EXT-X-START": self._start,
            "EXT-X-VERSION": self._version,
        }

    def _reset_pending(self) -> None:
        self.duration: Optional[float] = None
        self.title: Optional[str] = None
        self.byte_range: Optional[ByteRange] = None
        self.discontinuity = False
        self.program_date_time: Optional[str] = None

    def decode(self, lines: List[str]) -> MediaDocument:
        for line in lines:
            if is_comment(line):
                continue

            directive = match_directive(line)
            if directive is None:
                self._close_chunk(line)
                continue

            name, value = directive
            if name in MASTER_DIRECTIVES:
                raise PlaylistFormatError("master playlist directive found in media playlist", name)
            if name in SINGLETON_DIRECTIVES:
                if name in self.seen:
                    raise PlaylistFormatError("directive must not appear more than once", name)
                self.seen.add(name)

            if name == "EXT-X-ENDLIST":
                # Nothing after the end marker is interpreted.
                self.document.end_list = True
                break

            handler = self.handlers.get(name)
            if handler is not None:
                handler(name, value)

        if "EXT-X-TARGETDURATION" not in self.seen:
            raise PlaylistFormatError("directive is REQUIRED but missing", "EXT-X-TARGETDURATION")
        return self.document

    def _close_chunk(self, uri: str) -> None:
        if self.duration is None:
            raise PlaylistFormatError(f"is REQUIRED before chunk URI {uri!r}", "EXTINF")

        uri = resolve_uri(self.base_url, uri)
        byte_range = self.byte_range
        if byte_range is not None and byte_range.offset is None:
            previous = self.previous
            if previous is not None and previous.byte_range is not None and previous.uri == uri:
                byte_range.offset = previous.byte_range.end
            else:
                byte_range.offset = 0

        chunk = Chunk(
            uri=uri,
            duration=self.duration,
            title=self.title,
            byte_range=byte_range,
            discontinuity=self.discontinuity,
            init_map=self.init_map,
            program_date_time=self.program_date_time,
            key_index=self.key_index,
        )
        self.document.chunks.append(chunk)
        self.previous = chunk
        self._reset_pending()

    def _extinf(self, name: str, value: Optional[str]) -> None:
        duration, _, title = _require_value(name, value).partition(',')
        try:
            self.duration = coerce_value(ValueKind.FLOAT, duration.strip())
        except ValueError as exc:
            raise PlaylistFormatError(str(exc), name) from exc
        self.title = title.strip() or None

    def _byterange(self, name: str, value: Optional[str]) -> None:
        try:
            self.byte_range = parse_byte_range(_require_value(name, value))
        except ValueError as exc:
            raise PlaylistFormatError(str(exc), name) from exc

    def _discontinuity(self, name: str, value: Optional[str]) -> None:
        self.discontinuity = True

    def _program_date_time(self, name: str, value: Optional[str]) -> None:
        self.program_date_time = _require_value(name, value)

    def _key(self, name: str, value: Optional[str]) -> None:
        attributes = parse_attribute_list(_require_value(name, value), name)
        self.document.keys.append(decode_key(attributes, name, self.base_url))
        self.key_index = len(self.document.keys) - 1

    def _map(self, name: str, value: Optional[str]) -> None:
        attributes = parse_attribute_list(_require_value(name, value), name)
        init_map = apply_attributes(InitMap(), attributes, MAP_ATTRIBUTES, name, required=("URI",))
        init_map.uri = resolve_uri(self.base_url, init_map.uri)
        self.init_map = init_map

    def _target_duration(self, name: str, value: Optional[str]) -> None:
        self.document.target_duration = _scalar(name, value, ValueKind.INTEGER)

    def _media_sequence(self, name: str, value: Optional[str]) -> None:
        self.document.media_sequence = _scalar(name, value, ValueKind.INTEGER)

    def _discontinuity_sequence(self, name: str, value: Optional[str]) -> None:
        self.document.discontinuity_sequence = _scalar(name, value, ValueKind.INTEGER)

    def _playlist_type(self, name: str, value: Optional[str]) -> None:
        token = _scalar(name, value, ValueKind.ENUM)
        try:
            self.document.playlist_type = PlaylistType(token)
        except ValueError as exc:
            raise PlaylistFormatError(f"invalid playlist type {token!r}", name) from exc

    def _iframes_only(self, name: str, value: Optional[str]) -> None:
        self.document.iframes_only = True

    def _independent_segments(self, name: str, value: Optional[str]) -> None:
        self.document.independent_segments = True

    def _start(self, name: str, value: Optional[str]) -> None:
        decode_start(self.document, parse_attribute_list(_require_value(name, value), name), name)

    def _version(self, name: str, value: Optional[str]) -> None:
        self.document.version = _scalar(name, value, ValueKind.INTEGER)


def decode_media(lines: List[str], base_url: Optional[str] = None) -> MediaDocument:
    """
    Decode the lines of a media playlist.

    Args:
        lines: Playlist lines after the #EXTM3U header (see `split_lines`)
        base_url: URL that relative chunk, key and map URIs are resolved against

    Returns:
        Decoded MediaDocument

    Raises:
        PlaylistFormatError: On the first format violation

    Example:
        >>> doc = decode_media(["#EXT-X-TARGETDURATION:10", "#EXTINF:10,", "http://x/a.ts"])
        >>> doc.chunks[0].uri, doc.chunks[0].key_index
        ('http://x/a.ts', -1)
    """
    document = _MediaDecoder(base_url).decode(lines)
    logger.debug(f"Decoded media playlist: {document.count} chunks, {len(document.keys)} keys")
    return document
