import io

import pytest

from streamengine.ts_io import ByteReader, MpegTsError
from streamengine.ts_pes import (
    STREAM_ID_AUDIO,
    STREAM_ID_VIDEO,
    PESFrame,
    PESHeader,
    PESPacket,
    decode_pts_dts,
    encode_pts_dts,
    read_pes_header,
    write_pes_header,
)


def _write(header):
    buffer = io.BytesIO()
    written = write_pes_header(buffer, header)
    return written, buffer.getvalue()


@pytest.mark.parametrize("value", [0, 1, 90000, 0x7FFF, 0x8000, (1 << 30) + 5, (1 << 33) - 1])
def test_pts_dts_round_trip(value):
    assert decode_pts_dts(encode_pts_dts(value)) == value


def test_encode_sets_marker_bits():
    encoded = encode_pts_dts(0)
    assert encoded & 1 == 1
    assert (encoded >> 16) & 1 == 1
    assert (encoded >> 32) & 1 == 1


def test_pts_zero_wire_bytes():
    header = PESHeader(stream_id=STREAM_ID_AUDIO, pts_dts_flags=0x80, pes_header_data_length=5)
    written, data = _write(header)
    assert written == len(data) == 14
    assert data[:3] == b"\x00\x00\x01"
    assert data[3] == STREAM_ID_AUDIO
    assert data[9:] == bytes([0x21, 0x00, 0x01, 0x00, 0x01])


def test_pts_only_round_trip():
    header = PESHeader(
        stream_id=STREAM_ID_AUDIO,
        pes_packet_length=8 + 10,
        pts_dts_flags=0x80,
        pes_header_data_length=5,
        pts=123456,
    )
    _, data = _write(header)
    payload = bytes(range(10))
    reader = ByteReader(data + payload)
    parsed = read_pes_header(reader)
    assert parsed.stream_id == STREAM_ID_AUDIO
    assert parsed.pts == 123456
    assert parsed.dts == 0
    assert parsed.const_ten == 0x80
    assert parsed.pts_dts_flags == 0x80
    assert parsed.payload_length == len(payload)
    assert reader.read(len(payload)) == payload


def test_pts_and_dts_round_trip():
    header = PESHeader(
        stream_id=STREAM_ID_VIDEO,
        pts_dts_flags=0xC0,
        pes_header_data_length=10,
        pts=(1 << 33) - 2,
        dts=3003,
    )
    written, data = _write(header)
    assert written == 19
    assert data[9] >> 4 == 0x3
    assert data[14] >> 4 == 0x1
    parsed = read_pes_header(data)
    assert parsed.stream_id == STREAM_ID_VIDEO
    assert parsed.pts == header.pts
    assert parsed.dts == header.dts
    assert parsed.pes_packet_length == 0
    assert parsed.payload_length == 0


def test_extra_header_bytes_are_consumed():
    header = PESHeader(stream_id=STREAM_ID_AUDIO, pts_dts_flags=0x80, pes_header_data_length=8, pts=77)
    _, data = _write(header)
    stuffing = b"\xff\xff\xff"
    reader = ByteReader(data + stuffing + b"payload")
    parsed = read_pes_header(reader)
    assert parsed.pts == 77
    assert reader.read(7) == b"payload"


def test_read_optional_fields():
    optional = bytes([0x12, 0x34, 0x56]) + bytes([0xFF]) + bytes([0xAB, 0xCD])
    raw = (
        b"\x00\x00\x01\xc0\x00\x00"
        + bytes([0x80, 0x10 | 0x04 | 0x02, len(optional)])
        + optional
    )
    parsed = read_pes_header(raw)
    assert parsed.es_rate == 0x123456
    assert parsed.additional_copy_info == 0x7F
    assert parsed.previous_pes_packet_crc == 0xABCD


def test_read_bad_start_code():
    with pytest.raises(MpegTsError):
        read_pes_header(b"\x00\x00\x02\xe0\x00\x00\x80\x00\x00")


def test_read_truncated():
    with pytest.raises(MpegTsError):
        read_pes_header(b"\x00\x00\x01\xe0\x00\x00\x80\x80\x05\x21")


def test_write_bad_start_code():
    with pytest.raises(MpegTsError):
        write_pes_header(io.BytesIO(), PESHeader(packet_start_code_prefix=2))


def test_write_bad_const_ten():
    buffer = io.BytesIO()
    with pytest.raises(MpegTsError):
        write_pes_header(buffer, PESHeader(const_ten=0))
    assert buffer.getvalue() == b""


def test_packet_and_frame_defaults():
    packet = PESPacket()
    frame = PESFrame(pid=0x101, is_key_frame=True)
    assert packet.payload == bytearray()
    assert packet.buffers == []
    assert packet.header.packet_start_code_prefix == 1
    assert frame.pid == 0x101
    assert frame.continuity_counter == 0