"""
Typed attribute decoding shared by the master and media decoders.

Each directive that carries an attribute list declares a decode table:
a mapping from attribute name to an `AttributeRule` (expected value kind
plus the record field it populates). `apply_attributes` applies a table
uniformly, so type coercion and error messages live in one place.
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, FrozenSet, Iterable, Optional, Union

from ..errors import PlaylistFormatError
from ..models import ByteRange, Key, KeyMethod
from ..utils import parse_resolution, resolve_uri

INTEGER_RE = re.compile(r'^[0-9]+$')
FLOAT_RE = re.compile(r'^[0-9]+(?:\.[0-9]*)?$|^\.[0-9]+$')
SIGNED_FLOAT_RE = re.compile(r'^-?(?:[0-9]+(?:\.[0-9]*)?|\.[0-9]+)$')
HEX_RE = re.compile(r'^0[xX]([0-9A-Fa-f]+)$')
ENUM_RE = re.compile(r'^[^",\s]+$')
BYTERANGE_RE = re.compile(r'^([0-9]+)(?:@([0-9]+))?$')


class ValueKind(Enum):
    INTEGER = "decimal-integer"
    FLOAT = "decimal-floating-point"
    SIGNED_FLOAT = "signed-decimal-floating-point"
    QUOTED = "quoted-string"
    QUOTED_LIST = "quoted comma-separated list"
    QUOTED_OR_NONE = "quoted-string or NONE"
    QUOTED_BYTERANGE = "quoted byte range"
    ENUM = "enumerated-string"
    FLAG = "YES/NO"
    HEX = "hexadecimal-sequence"
    RESOLUTION = "decimal-resolution"


def parse_byte_range(text: str) -> ByteRange:
    """Parse `<length>[@<offset>]`."""
    match = BYTERANGE_RE.match(text.strip())
    if match is None:
        raise ValueError(f"invalid byte range {text!r}")
    offset = match.group(2)
    return ByteRange(length=int(match.group(1)), offset=int(offset) if offset is not None else None)


def _unquote(raw: str) -> str:
    if len(raw) < 2 or not (raw.startswith('"') and raw.endswith('"')):
        raise ValueError(f"expected a quoted-string, got {raw!r}")
    return raw[1:-1]


def coerce_value(kind: ValueKind, raw: str) -> Any:
    """
    Convert a raw attribute value to the Python value of `kind`.

    Raises:
        ValueError: If `raw` is not a valid value of that kind
    """
    if kind is ValueKind.INTEGER:
        if not INTEGER_RE.match(raw):
            raise ValueError(f"expected a decimal-integer, got {raw!r}")
        return int(raw)
    if kind is ValueKind.FLOAT:
        if not FLOAT_RE.match(raw):
            raise ValueError(f"expected a decimal-floating-point, got {raw!r}")
        return float(raw)
    if kind is ValueKind.SIGNED_FLOAT:
        if not SIGNED_FLOAT_RE.match(raw):
            raise ValueError(f"expected a signed-decimal-floating-point, got {raw!r}")
        return float(raw)
    if kind is ValueKind.QUOTED:
        return _unquote(raw)
    if kind is ValueKind.QUOTED_LIST:
        return tuple(item.strip() for item in _unquote(raw).split(',') if item.strip())
    if kind is ValueKind.QUOTED_OR_NONE:
        return None if raw == "NONE" else _unquote(raw)
    if kind is ValueKind.QUOTED_BYTERANGE:
        return parse_byte_range(_unquote(raw))
    if kind is ValueKind.ENUM:
        if not ENUM_RE.match(raw):
            raise ValueError(f"expected an enumerated-string, got {raw!r}")
        return raw
    if kind is ValueKind.FLAG:
        if raw not in ("YES", "NO"):
            raise ValueError(f"expected YES or NO, got {raw!r}")
        return raw == "YES"
    if kind is ValueKind.HEX:
        match = HEX_RE.match(raw)
        if match is None:
            raise ValueError(f"expected a hexadecimal-sequence, got {raw!r}")
        digits = match.group(1)
        if len(digits) % 2:
            digits = "0" + digits
        return bytes.fromhex(digits)
    if kind is ValueKind.RESOLUTION:
        return parse_resolution(raw)
    raise ValueError(f"unknown value kind {kind}")


@dataclass(frozen=True)
class AttributeRule:
    """
    How to decode one attribute.

    Args:
        kind: Expected value kind
        setter: Field name to assign, or a callable (record, value)
        convert: Optional post-coercion conversion (e.g. an Enum class)
        choices: Optional set of permitted values after conversion
    """
    kind: ValueKind
    setter: Union[str, Callable[[Any, Any], None]]
    convert: Optional[Callable[[Any], Any]] = None
    choices: Optional[FrozenSet[Any]] = None

    def assign(self, record: Any, value: Any) -> None:
        if callable(self.setter):
            self.setter(record, value)
        else:
            setattr(record, self.setter, value)


DecodeTable = Dict[str, AttributeRule]


def apply_attributes(
    record: Any,
    attributes: Dict[str, str],
    table: DecodeTable,
    directive: str,
    required: Iterable[str] = (),
) -> Any:
    """
    Populate `record` from an attribute mapping using a decode table.

    Attributes missing from the table are ignored.

    Args:
        record: Object whose fields are populated
        attributes: Raw mapping from `parse_attribute_list`
        table: Decode table for this directive
        directive: Directive name, used in error messages
        required: Attribute names that must be present

    Returns:
        The populated record

    Raises:
        PlaylistFormatError: On the first missing or invalid attribute
    """
    for name in required:
        if name not in attributes:
            raise PlaylistFormatError("attribute is REQUIRED", directive, name)

    for name, raw in attributes.items():
        rule = table.get(name)
        if rule is None:
            continue
        try:
            value = coerce_value(rule.kind, raw)
            if rule.convert is not None:
                value = rule.convert(value)
        except ValueError as exc:
            raise PlaylistFormatError(str(exc), directive, name) from exc
        if rule.choices is not None and value not in rule.choices:
            raise PlaylistFormatError(f"invalid value {raw!r}", directive, name)
        rule.assign(record, value)
    return record


KEY_ATTRIBUTES: DecodeTable = {
    "METHOD": AttributeRule(ValueKind.ENUM, "method", convert=KeyMethod),
    "URI": AttributeRule(ValueKind.QUOTED, "uri"),
    "IV": AttributeRule(ValueKind.HEX, "iv"),
    "KEYFORMAT": AttributeRule(ValueKind.QUOTED, "key_format"),
    "KEYFORMATVERSIONS": AttributeRule(ValueKind.QUOTED, "key_format_versions"),
}

START_ATTRIBUTES: DecodeTable = {
    "TIME-OFFSET": AttributeRule(ValueKind.SIGNED_FLOAT, "time_offset"),
    "PRECISE": AttributeRule(ValueKind.FLAG, "precise"),
}


def decode_key(attributes: Dict[str, str], directive: str, base_url: Optional[str] = None) -> Key:
    """
    Decode an EXT-X-KEY or EXT-X-SESSION-KEY attribute mapping.

    Raises:
        PlaylistFormatError: If METHOD is missing or invalid, URI is missing
            for an encrypting method, the method is SAMPLE-AES, or the IV is
            not 128 bits
    """
    key = apply_attributes(Key(), attributes, KEY_ATTRIBUTES, directive, required=("METHOD",))

    if key.method is not KeyMethod.NONE and not key.uri:
        raise PlaylistFormatError("URI is REQUIRED unless METHOD is NONE", directive, "URI")
    if key.method is KeyMethod.SAMPLE_AES:
        raise PlaylistFormatError("SAMPLE-AES encryption is not supported", directive, "METHOD")
    if key.iv is not None and len(key.iv) != 16:
        raise PlaylistFormatError(f"IV must be 128 bits, got {len(key.iv) * 8}", directive, "IV")

    if key.uri and base_url:
        key.uri = resolve_uri(base_url, key.uri)
    return key


def decode_start(record: Any, attributes: Dict[str, str], directive: str) -> None:
    """Apply EXT-X-START to a master or media document."""
    apply_attributes(record, attributes, START_ATTRIBUTES, directive, required=("TIME-OFFSET",))
