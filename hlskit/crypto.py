"""
Chunk decryption and normalization for HLSKit.

AES-128-CBC decryption, padding removal and realignment of MPEG
transport stream data on its sync byte.
"""

from typing import Optional

from Crypto.Cipher import AES

from .errors import ChunkError
from .models import Key

BLOCK_SIZE = AES.block_size
SYNC_BYTE = 0x47


def sequence_iv(media_sequence: int) -> bytes:
    """
    Legacy IV: the media sequence number as 16 zero-padded ASCII digits.

    Some sources encrypt with this IV instead of the RFC 8216 one, and
    every chunk of a document shares it.

    Example:
        >>> sequence_iv(7794)
        b'0000000000007794'
    """
    iv = f"{media_sequence:016d}".encode("ascii")
    if len(iv) != BLOCK_SIZE:
        raise ChunkError(f"media sequence {media_sequence} does not fit a {BLOCK_SIZE}-byte IV")
    return iv


def rfc_iv(sequence_number: int) -> bytes:
    """
    RFC 8216 IV: the chunk's media sequence number as a big-endian 128-bit integer.

    Example:
        >>> rfc_iv(1).hex()
        '00000000000000000000000000000001'
    """
    return sequence_number.to_bytes(BLOCK_SIZE, "big")


def choose_iv(key: Key, media_sequence: int, chunk_index: int, legacy_iv: bool = True) -> bytes:
    """
    Pick the IV for a chunk.

    An explicit key IV always wins. Otherwise `legacy_iv` selects between
    `sequence_iv(media_sequence)` and `rfc_iv(media_sequence + chunk_index)`.
    """
    if key.iv is not None:
        return key.iv
    if legacy_iv:
        return sequence_iv(media_sequence)
    return rfc_iv(media_sequence + chunk_index)


def strip_padding(data: bytes) -> bytes:
    """
    Drop trailing padding, reading the pad length from the last byte.

    Padding bytes are not checked against the pad length.
    """
    if not data:
        return data
    pad = data[-1]
    if pad > len(data):
        raise ChunkError(f"padding length {pad} exceeds chunk length {len(data)}")
    return data[:len(data) - pad]


def decrypt_chunk(data: bytes, key: bytes, iv: bytes) -> bytes:
    """
    Decrypt an AES-128-CBC chunk and strip its padding.

    Args:
        data: Ciphertext
        key: 16-byte key
        iv: 16-byte IV

    Returns:
        Plaintext without padding

    Raises:
        ChunkError: If the ciphertext is not block-aligned or the key/IV is invalid
    """
    if len(data) % BLOCK_SIZE != 0:
        raise ChunkError(f"chunk length {len(data)} is not a multiple of the AES block size")
    try:
        cipher = AES.new(key, AES.MODE_CBC, iv=iv)
    except ValueError as e:
        raise ChunkError(f"creating AES cipher: {e}") from e
    return strip_padding(cipher.decrypt(data))


def align_to_sync_byte(data: bytes) -> bytes:
    """
    Discard everything before the first transport stream sync byte.

    Returns:
        Data starting at 0x47, or empty bytes when there is none

    Example:
        >>> align_to_sync_byte(b"\\x00\\x01\\x47\\x10")
        b'G\\x10'
    """
    index = data.find(SYNC_BYTE)
    if index < 0:
        return b""
    return data[index:]


def normalize_chunk(
    data: bytes,
    key: Optional[bytes] = None,
    iv: Optional[bytes] = None,
    align: bool = True,
) -> bytes:
    """
    Decrypt (when a key is given) and realign a fetched chunk.

    Args:
        data: Chunk body as fetched
        key: Key bytes, or None/empty for unencrypted chunks
        iv: IV, required when `key` is given
        align: Whether to realign on the sync byte

    Returns:
        Chunk bytes ready for concatenation
    """
    if key:
        data = decrypt_chunk(data, key, iv)
    if align:
        data = align_to_sync_byte(data)
    return data
