"""
Chunk codec.

Encodes and decodes the fixed binary header that carries one payload
chunk inside a transaction's data field:

    [0:4)    magic tag  b"DOOM"
    [4:8)    game_id    u32 little-endian
    [8:12)   chunk_idx  u32 little-endian
    [12]     length     u8, at most CHUNK_MAX
    [13:13+length)      chunk bytes

Anything without the tag is not a chunk and decodes to None. A tagged
payload whose header is inconsistent raises MalformedChunkError.
"""

import binascii
import struct
from collections.abc import Iterator
from dataclasses import dataclass

from cartridge.config.constants import (
    CHUNK_HEADER_SIZE,
    CHUNK_MAGIC,
    CHUNK_MAX,
    U32_MAX,
)
from cartridge.utils.exceptions import MalformedChunkError

_HEADER = struct.Struct("<4sIIB")


@dataclass(frozen=True)
class ChunkRecord:
    """One decoded chunk."""

    game_id: int
    chunk_idx: int
    data: bytes

    @property
    def length(self) -> int:
        return len(self.data)


def _hex_to_bytes(hex_payload: str) -> bytes | None:
    value = hex_payload.strip()
    if value[:2] in ("0x", "0X"):
        value = value[2:]
    try:
        return bytes.fromhex(value)
    except ValueError:
        return None


def decode_bytes(payload: bytes) -> ChunkRecord | None:
    """
    Decode a raw transaction payload.

    Args:
        payload: Raw data field bytes

    Returns:
        ChunkRecord, or None if the payload is not a chunk

    Raises:
        MalformedChunkError: Tagged payload with an invalid header
    """
    if len(payload) < CHUNK_HEADER_SIZE:
        return None

    magic, game_id, chunk_idx, length = _HEADER.unpack_from(payload)
    if magic != CHUNK_MAGIC:
        return None

    if length > CHUNK_MAX:
        raise MalformedChunkError(
            f"length {length} exceeds maximum {CHUNK_MAX}"
        )

    end = CHUNK_HEADER_SIZE + length
    if len(payload) < end:
        raise MalformedChunkError(
            f"truncated payload: need {end} bytes, got {len(payload)}"
        )

    return ChunkRecord(
        game_id=game_id,
        chunk_idx=chunk_idx,
        data=bytes(payload[CHUNK_HEADER_SIZE:end]),
    )


def decode_payload(hex_payload: str | None) -> ChunkRecord | None:
    """
    Decode a hex-encoded transaction payload.

    Empty, non-hex or untagged payloads are common on-chain and are not
    errors.

    Args:
        hex_payload: Data field as hex (optional 0x prefix)

    Returns:
        ChunkRecord, or None if no chunk is present

    Raises:
        MalformedChunkError: Tagged payload with an invalid header
    """
    if not hex_payload:
        return None

    payload = _hex_to_bytes(hex_payload)
    if payload is None:
        return None

    return decode_bytes(payload)


def encode_payload(game_id: int, chunk_idx: int, data: bytes) -> bytes:
    """
    Build the transaction payload for one chunk.

    Args:
        game_id: Payload identifier (u32)
        chunk_idx: Chunk position (u32)
        data: Chunk bytes, at most CHUNK_MAX

    Returns:
        Encoded payload bytes

    Raises:
        ValueError: If an argument is out of range
    """
    if not 0 <= game_id <= U32_MAX:
        raise ValueError(f"game_id out of range: {game_id}")
    if not 0 <= chunk_idx <= U32_MAX:
        raise ValueError(f"chunk_idx out of range: {chunk_idx}")
    if len(data) > CHUNK_MAX:
        raise ValueError(
            f"chunk of {len(data)} bytes exceeds maximum {CHUNK_MAX}"
        )

    return _HEADER.pack(CHUNK_MAGIC, game_id, chunk_idx, len(data)) + data


def encode_payload_hex(game_id: int, chunk_idx: int, data: bytes) -> str:
    """Hex form of encode_payload(), as it appears in transaction data."""
    return binascii.hexlify(encode_payload(game_id, chunk_idx, data)).decode()


def split_into_chunks(
    blob: bytes, chunk_size: int = CHUNK_MAX
) -> Iterator[tuple[int, bytes]]:
    """
    Split a file into numbered chunks.

    Args:
        blob: File contents
        chunk_size: Bytes per chunk (1..CHUNK_MAX)

    Yields:
        (chunk_idx, bytes) pairs in order
    """
    if not 1 <= chunk_size <= CHUNK_MAX:
        raise ValueError(f"chunk_size must be 1..{CHUNK_MAX}")

    for idx, offset in enumerate(range(0, len(blob), chunk_size)):
        yield idx, blob[offset:offset + chunk_size]
