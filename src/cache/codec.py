# src/cache/codec.py — v1
"""Binary encoding of fingerprint bit vectors for sidecar files.

Layout (bincode "standard" encoding of a bool sequence):
    <varint length> <one byte per bit, 0x00 or 0x01>

The varint is a single byte for lengths below 251; otherwise a marker byte
(251 = u16, 252 = u32, 253 = u64) followed by the little-endian value.
"""

from __future__ import annotations

import struct

import numpy as np

from vismatch.core.errors import CacheDecodeError

_SINGLE_BYTE_MAX = 250
_U16_MARKER = 251
_U32_MARKER = 252
_U64_MARKER = 253

_WIDE_FORMATS: dict[int, str] = {
    _U16_MARKER: "<H",
    _U32_MARKER: "<I",
    _U64_MARKER: "<Q",
}


def encode_varint(value: int) -> bytes:
    """Encode a non-negative integer as a bincode varint."""
    if value < 0:
        raise ValueError("varint value must be non-negative")
    if value <= _SINGLE_BYTE_MAX:
        return bytes([value])
    if value < 1 << 16:
        return bytes([_U16_MARKER]) + struct.pack("<H", value)
    if value < 1 << 32:
        return bytes([_U32_MARKER]) + struct.pack("<I", value)
    if value < 1 << 64:
        return bytes([_U64_MARKER]) + struct.pack("<Q", value)
    raise ValueError("varint value does not fit in 64 bits")


def decode_varint(data: bytes, offset: int = 0) -> tuple[int, int]:
    """Decode a bincode varint.

    Returns:
        (value, offset of the first byte after the varint).

    Raises:
        CacheDecodeError: On a truncated buffer or an unsupported marker.
    """
    if offset >= len(data):
        raise CacheDecodeError("truncated length prefix")
    marker = data[offset]
    if marker <= _SINGLE_BYTE_MAX:
        return marker, offset + 1
    fmt = _WIDE_FORMATS.get(marker)
    if fmt is None:
        raise CacheDecodeError(f"unsupported length marker {marker}")
    width = struct.calcsize(fmt)
    end = offset + 1 + width
    if end > len(data):
        raise CacheDecodeError("truncated length prefix")
    (value,) = struct.unpack_from(fmt, data, offset + 1)
    return value, end


def encode_bits(bits: np.ndarray) -> bytes:
    """Serialize a flat boolean array."""
    flat = np.asarray(bits, dtype=bool).ravel()
    return encode_varint(int(flat.size)) + flat.astype(np.uint8).tobytes()


def decode_bits(data: bytes) -> np.ndarray:
    """Parse bytes produced by encode_bits back into a boolean array.

    Raises:
        CacheDecodeError: If the payload is truncated, has trailing bytes or
            holds a byte other than 0x00/0x01.
    """
    length, offset = decode_varint(data)
    payload = data[offset:]
    if len(payload) != length:
        raise CacheDecodeError(
            f"expected {length} bit bytes, found {len(payload)}"
        )
    raw = np.frombuffer(payload, dtype=np.uint8)
    if raw.size and raw.max() > 1:
        raise CacheDecodeError("bit bytes must be 0x00 or 0x01")
    return raw.astype(bool)
