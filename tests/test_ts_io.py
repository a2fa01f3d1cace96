import io

import pytest

from streamengine.ts_io import (
    ByteReader,
    Crc32Reader,
    Crc32Writer,
    MpegTsError,
    crc32,
    crc32_buffers,
)


def test_crc32_check_value():
    assert crc32(b"123456789") == 0x0376E6E7


def test_crc32_empty_is_initial_value():
    assert crc32(b"") == 0xFFFFFFFF


@pytest.mark.parametrize("data", [b"\x00", b"hello world", bytes(range(256))])
def test_crc32_appended_crc_gives_zero(data):
    value = crc32(data)
    assert crc32(data + value.to_bytes(4, "big")) == 0


def test_crc32_buffers_matches_joined():
    chunks = [b"abc", b"", b"defgh", b"\xff\x00"]
    assert crc32_buffers(chunks) == crc32(b"".join(chunks))


def test_byte_reader_big_endian_and_remaining():
    reader = ByteReader(b"\x01\x02\x03\x04", limit=4)
    assert reader.read_uint(2) == 0x0102
    assert reader.remaining() == 2
    assert reader.read(2) == b"\x03\x04"
    assert reader.remaining() == 0


def test_byte_reader_unbounded_remaining_is_none():
    assert ByteReader(b"abc").remaining() is None


def test_byte_reader_short_read_raises():
    reader = ByteReader(b"\x01")
    with pytest.raises(MpegTsError):
        reader.read(2)


def test_limit_bounds_reads():
    reader = ByteReader(b"abcdef")
    inner = reader.limit(2)
    assert inner.read(2) == b"ab"
    with pytest.raises(MpegTsError):
        inner.read(1)
    assert reader.read(1) == b"c"


def test_skip_advances():
    reader = ByteReader(b"abcdef")
    reader.skip(3)
    assert reader.read(3) == b"def"


def test_crc32_reader_accumulates_and_checks():
    payload = b"payload bytes"
    data = payload + crc32(payload).to_bytes(4, "big")
    reader = Crc32Reader(data)
    assert reader.read(len(payload)) == payload
    assert reader.crc == crc32(payload)
    assert reader.read_crc_and_check() == crc32(payload)


def test_crc32_reader_read_uint_updates_crc():
    reader = Crc32Reader(b"\x12\x34")
    assert reader.read_uint(2) == 0x1234
    assert reader.crc == crc32(b"\x12\x34")


def test_crc32_reader_mismatch_raises():
    payload = b"payload"
    reader = Crc32Reader(payload + b"\x00\x00\x00\x00")
    reader.read(len(payload))
    with pytest.raises(MpegTsError):
        reader.read_crc_and_check()


def test_crc32_writer_forwards_and_computes():
    sink = io.BytesIO()
    writer = Crc32Writer(sink)
    assert writer.write(b"abc") == 3
    writer.write(b"def")
    assert sink.getvalue() == b"abcdef"
    assert writer.crc == crc32(b"abcdef")