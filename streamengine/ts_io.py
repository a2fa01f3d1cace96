"""Byte-level readers and writers for MPEG transport stream tables."""

from __future__ import annotations

import io
from typing import Iterable

CRC32_INITIAL = 0xFFFFFFFF
_CRC32_POLYNOMIAL = 0x04C11DB7


class MpegTsError(Exception):
    """Raised when transport stream data is malformed or truncated."""


def _make_table() -> tuple[int, ...]:
    table = []
    for index in range(256):
        value = index << 24
        for _ in range(8):
            if value & 0x80000000:
                value = ((value << 1) ^ _CRC32_POLYNOMIAL) & 0xFFFFFFFF
            else:
                value = (value << 1) & 0xFFFFFFFF
        table.append(value)
    return tuple(table)


_CRC32_TABLE = _make_table()


def _crc_update(crc: int, data: bytes) -> int:
    for byte in data:
        crc = ((crc << 8) & 0xFFFFFFFF) ^ _CRC32_TABLE[((crc >> 24) ^ byte) & 0xFF]
    return crc


def crc32(data: bytes) -> int:
    """MPEG-2 CRC32 of a byte string (no final xor)."""
    return _crc_update(CRC32_INITIAL, data)


def crc32_buffers(buffers: Iterable[bytes]) -> int:
    """MPEG-2 CRC32 over a sequence of byte chunks taken as one stream."""
    crc = CRC32_INITIAL
    for chunk in buffers:
        crc = _crc_update(crc, chunk)
    return crc


class ByteReader:
    """Reads exact byte counts from bytes or a stream, optionally bounded."""

    def __init__(self, source, limit: int | None = None):
        if isinstance(source, (bytes, bytearray, memoryview)):
            source = io.BytesIO(bytes(source))
        self._source = source
        self._left = limit

    def remaining(self) -> int | None:
        """Bytes still allowed by the limit, or None when unbounded."""
        return self._left

    def read(self, size: int) -> bytes:
        if size < 0:
            raise ValueError("size must not be negative")
        if self._left is not None and size > self._left:
            raise MpegTsError(f"read of {size} bytes exceeds limit of {self._left}")
        data = self._source.read(size)
        if len(data) < size:
            raise MpegTsError(f"unexpected end of data: wanted {size}, got {len(data)}")
        if self._left is not None:
            self._left -= size
        return bytes(data)

    def read_uint(self, size: int) -> int:
        """Read a big-endian unsigned integer of ``size`` bytes."""
        return int.from_bytes(self.read(size), "big")

    def skip(self, size: int) -> None:
        self.read(size)

    def limit(self, size: int) -> "ByteReader":
        """A reader over the next ``size`` bytes of this one."""
        return ByteReader(self, size)


class Crc32Reader(ByteReader):
    """Reader that accumulates the MPEG-2 CRC32 of everything read through it."""

    def __init__(self, source, crc: int = CRC32_INITIAL):
        if not isinstance(source, ByteReader):
            source = ByteReader(source)
        super().__init__(source)
        self.source = source
        self.crc = crc

    def read(self, size: int) -> bytes:
        data = super().read(size)
        self.crc = _crc_update(self.crc, data)
        return data

    def read_uint(self, size: int) -> int:
        return int.from_bytes(self.read(size), "big")

    def read_crc_and_check(self) -> int:
        """Read the stored CRC from the underlying source and compare it."""
        stored = self.source.read_uint(4)
        if stored != self.crc:
            raise MpegTsError(f"crc32 mismatch: stored {stored:#010x}, computed {self.crc:#010x}")
        return stored


class Crc32Writer:
    """Writer that forwards data and accumulates its MPEG-2 CRC32."""

    def __init__(self, sink, crc: int = CRC32_INITIAL):
        self.sink = sink
        self.crc = crc

    def write(self, data: bytes) -> int:
        data = bytes(data)
        self.sink.write(data)
        self.crc = _crc_update(self.crc, data)
        return len(data)