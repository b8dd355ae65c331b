"""
M3U8 playlist package for HLSKit.

Lexes playlist text, classifies it as master or media, decodes it into
the document model and renders documents back into playlist text.
"""

from .lexer import split_lines, match_directive, is_comment, parse_attribute_list
from .attributes import ValueKind, AttributeRule, coerce_value, apply_attributes, decode_key
from .decoder import classify, decode, decode_text
from .master import decode_master
from .media import decode_media
from .encoder import encode, encode_master, encode_media

__all__ = [
    # Lexing
    "split_lines",
    "match_directive",
    "is_comment",
    "parse_attribute_list",

    # Typed attribute decoding
    "ValueKind",
    "AttributeRule",
    "coerce_value",
    "apply_attributes",
    "decode_key",

    # Decoding
    "classify",
    "decode",
    "decode_text",
    "decode_master",
    "decode_media",

    # Encoding
    "encode",
    "encode_master",
    "encode_media",
]
