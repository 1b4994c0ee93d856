"""Byte-level building blocks for ordered composite keys.

Components are joined with a single ``0x00`` separator. Because the separator
is the lowest possible byte and never appears inside a string component, a
separator-terminated string sorts exactly like the string itself, so the
encoded key sorts like the component tuple.
"""

from __future__ import annotations

import struct
from typing import Optional

from flowindex.core.exceptions import DecodeError, InvalidArgument

SEP = b"\x00"
LONG_WIDTH = 8
INT_WIDTH = 4

_INT64_MIN = -(1 << 63)
_INT64_MAX = (1 << 63) - 1
_SIGN_BIT = 1 << 63


def encode_str(value: str, field: str) -> bytes:
    """UTF-8 encode a string component, rejecting the separator byte."""
    try:
        encoded = value.encode("utf-8")
    except UnicodeEncodeError as exc:
        raise InvalidArgument(f"{field} is not encodable as UTF-8: {value!r}") from exc
    if SEP in encoded:
        raise InvalidArgument(f"{field} must not contain the key separator: {value!r}")
    return encoded


def decode_str(raw: bytes, field: str) -> str:
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise DecodeError(f"{field} is not valid UTF-8: {raw!r}") from exc


def encode_long(value: int, field: str) -> bytes:
    """Fixed-width big-endian int64, offset so byte order equals numeric order.

    Adding 2**63 maps int64 onto uint64 monotonically, which is the same as
    flipping the sign bit of the two's complement form.
    """
    if not _INT64_MIN <= value <= _INT64_MAX:
        raise InvalidArgument(f"{field} is outside the int64 range: {value}")
    return struct.pack(">Q", value + _SIGN_BIT)


def decode_long(raw: bytes, field: str) -> int:
    if len(raw) != LONG_WIDTH:
        raise DecodeError(f"{field} must be {LONG_WIDTH} bytes, got {len(raw)}")
    return struct.unpack(">Q", raw)[0] - _SIGN_BIT


def encode_int(value: int) -> bytes:
    """4-byte big-endian signed int, as used for stored counters."""
    try:
        return struct.pack(">i", value)
    except struct.error as exc:
        raise InvalidArgument(f"Value {value} does not fit in a signed 32-bit int") from exc


def decode_int(raw: bytes, field: str) -> int:
    if len(raw) != INT_WIDTH:
        raise DecodeError(f"{field} must be {INT_WIDTH} bytes, got {len(raw)}")
    return struct.unpack(">i", raw)[0]


def join(*parts: bytes) -> bytes:
    return SEP.join(parts)


def split_head(raw: bytes, field: str) -> tuple[bytes, bytes]:
    """Split off a separator-terminated leading component."""
    head, sep, rest = raw.partition(SEP)
    if not sep:
        raise DecodeError(f"Missing separator after {field} in {raw!r}")
    return head, rest


def split_fixed(raw: bytes, width: int, field: str, *, terminated: bool) -> tuple[bytes, bytes]:
    """Split off a fixed-width leading component, optionally followed by SEP."""
    if len(raw) < width:
        raise DecodeError(f"Key too short for {field}: {raw!r}")
    head, rest = raw[:width], raw[width:]
    if terminated:
        if rest[:1] != SEP:
            raise DecodeError(f"Missing separator after {field} in {raw!r}")
        rest = rest[1:]
    elif rest:
        raise DecodeError(f"Unexpected trailing bytes after {field}: {rest!r}")
    return head, rest


def prefix_stop_row(prefix: bytes) -> Optional[bytes]:
    """Smallest key greater than every key starting with ``prefix``.

    None when no such key exists (empty or all-``0xff`` prefix).
    """
    trimmed = prefix.rstrip(b"\xff")
    if not trimmed:
        return None
    return trimmed[:-1] + bytes([trimmed[-1] + 1])
