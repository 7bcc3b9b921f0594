from __future__ import annotations

import math
import struct
from typing import Union

Number = Union[int, float]


def _to_integer(value: Number, bits: int, *, signed: bool) -> int:
    """Convert like a typed-array view: truncate toward zero, then wrap to `bits`."""
    if isinstance(value, float):
        if not math.isfinite(value):
            return 0
        value = math.trunc(value)
    modulus = 1 << bits
    wrapped = int(value) % modulus
    if signed and wrapped >= modulus >> 1:
        wrapped -= modulus
    return wrapped


class ByteWriter:
    """Fixed-capacity byte buffer with indexed, explicit-endianness writes."""

    def __init__(self, size: int) -> None:
        if size < 0:
            raise ValueError(f"ByteWriter size must be >= 0, got {size}")
        self._buffer = bytearray(size)

    @property
    def size(self) -> int:
        return len(self._buffer)

    def _check_bounds(self, offset: int, width: int) -> None:
        if offset < 0 or offset + width > len(self._buffer):
            raise IndexError(
                f"Write of {width} bytes at offset {offset} exceeds buffer of {len(self._buffer)} bytes"
            )

    def _pack(self, fmt: str, offset: int, value: int, *, little_endian: bool) -> None:
        order = "<" if little_endian else ">"
        self._check_bounds(offset, struct.calcsize(fmt))
        struct.pack_into(order + fmt, self._buffer, offset, value)

    def set_uint16(self, offset: int, value: Number, *, little_endian: bool) -> None:
        self._pack("H", offset, _to_integer(value, 16, signed=False), little_endian=little_endian)

    def set_int16(self, offset: int, value: Number, *, little_endian: bool) -> None:
        self._pack("h", offset, _to_integer(value, 16, signed=True), little_endian=little_endian)

    def set_uint32(self, offset: int, value: Number, *, little_endian: bool) -> None:
        self._pack("I", offset, _to_integer(value, 32, signed=False), little_endian=little_endian)

    def set_tag(self, offset: int, tag: bytes) -> None:
        # Chunk identifiers are stored as-is, i.e. big-endian ASCII.
        if len(tag) != 4:
            raise ValueError(f"Chunk tag must be exactly 4 bytes, got {tag!r}")
        self._check_bounds(offset, 4)
        self._buffer[offset : offset + 4] = tag

    def getvalue(self) -> bytes:
        """Return an immutable snapshot of the buffer."""
        return bytes(self._buffer)
