"""
Line and attribute-list lexing for M3U8 playlists.

Splits raw playlist text into lines, recognizes directive lines
(`#EXT...[:attributes]`) and tokenizes attribute lists
(`NAME=value,NAME="quoted, value",...`) without splitting inside quotes.
"""

import re
from typing import Dict, List, Optional, Tuple, Union

from ..errors import PlaylistFormatError

HEADER = "#EXTM3U"

DIRECTIVE_RE = re.compile(r'^#(EXT[A-Z0-9-]*)(?::(.*))?$')

# One NAME=value pair. Quoted values are matched before the comma split.
ATTRIBUTE_RE = re.compile(r'\s*([A-Z0-9-]+)\s*=\s*("[^"\r\n]*"|[^",]*?)\s*(?:,|$)')


def split_lines(raw: Union[str, bytes]) -> List[str]:
    """
    Split playlist text into trimmed, non-empty lines.

    The first retained line must be the `#EXTM3U` header; it is checked and
    dropped, so the returned list starts with the first line after it.

    Args:
        raw: Playlist text, or bytes decoded as UTF-8

    Returns:
        List of lines following the header

    Raises:
        PlaylistFormatError: If the header is missing

    Example:
        >>> split_lines("#EXTM3U\\n\\n  #EXT-X-TARGETDURATION:10 \\n")
        ['#EXT-X-TARGETDURATION:10']
    """
    if isinstance(raw, bytes):
        try:
            raw = raw.decode('utf-8-sig')
        except UnicodeDecodeError as exc:
            raise PlaylistFormatError("playlist is not valid UTF-8") from exc
    elif raw.startswith('\ufeff'):
        raw = raw[1:]

    lines = [line.strip() for line in raw.splitlines()]
    lines = [line for line in lines if line]

    if not lines or lines[0] != HEADER:
        raise PlaylistFormatError(f'not a valid m3u8 playlist (does not start with "{HEADER}")')
    return lines[1:]


def match_directive(line: str) -> Optional[Tuple[str, Optional[str]]]:
    """
    Recognize a `#DIRECTIVE[:attributes]` line.

    Args:
        line: A single trimmed playlist line

    Returns:
        (name, raw attribute text or None), or None when the line is not a
        directive (a URI line or a comment)

    Example:
        >>> match_directive("#EXT-X-KEY:METHOD=NONE")
        ('EXT-X-KEY', 'METHOD=NONE')
        >>> match_directive("#EXT-X-ENDLIST")
        ('EXT-X-ENDLIST', None)
    """
    match = DIRECTIVE_RE.match(line)
    if match is None:
        return None
    return match.group(1), match.group(2)


def is_comment(line: str) -> bool:
    """Lines starting with '#' that are not directives are comments."""
    return line.startswith('#') and DIRECTIVE_RE.match(line) is None


def is_uri_line(line: str) -> bool:
    return not line.startswith('#')


def parse_attribute_list(text: Optional[str], directive: Optional[str] = None) -> Dict[str, str]:
    """
    Tokenize a comma-separated attribute list.

    Values are returned raw: quoted strings keep their quotes so callers
    can tell a quoted-string from an enumerated token. Unknown names are
    kept in the mapping.

    Args:
        text: Attribute list text (may be None or empty)
        directive: Directive name, used in error messages

    Returns:
        Mapping of attribute name to raw value

    Raises:
        PlaylistFormatError: If the list is malformed

    Example:
        >>> parse_attribute_list('BANDWIDTH=65000,CODECS="mp4a.40.5,avc1.42801e"')
        {'BANDWIDTH': '65000', 'CODECS': '"mp4a.40.5,avc1.42801e"'}
    """
    attributes: Dict[str, str] = {}
    if not text:
        return attributes

    pos = 0
    length = len(text)
    while pos < length:
        match = ATTRIBUTE_RE.match(text, pos)
        if match is None or match.end() == pos:
            raise PlaylistFormatError(f"malformed attribute list near {text[pos:]!r}", directive)
        attributes[match.group(1)] = match.group(2)
        pos = match.end()
    return attributes
