"""Packetized elementary stream (PES) headers."""

from __future__ import annotations

from dataclasses import dataclass, field

from .ts_io import ByteReader, MpegTsError

STREAM_ID_VIDEO = 0xE0
STREAM_ID_AUDIO = 0xC0

_PTS_MASK = (1 << 33) - 1
_MARKER_BITS = 0x100010001


@dataclass
class PESHeader:
    """Fixed and optional fields of a PES packet header.

    Flag fields hold the masked bits exactly as they sit in their byte
    (``const_ten`` is ``0x80``, ``pts_dts_flags`` is ``0x80`` or ``0xC0``).
    """

    packet_start_code_prefix: int = 0x000001
    stream_id: int = 0
    pes_packet_length: int = 0

    const_ten: int = 0x80
    pes_scrambling_control: int = 0
    pes_priority: int = 0
    data_alignment_indicator: int = 0
    copyright: int = 0
    original_or_copy: int = 0
    pts_dts_flags: int = 0
    escr_flag: int = 0
    es_rate_flag: int = 0
    dsm_trick_mode_flag: int = 0
    additional_copy_info_flag: int = 0
    pes_crc_flag: int = 0
    pes_extension_flag: int = 0
    pes_header_data_length: int = 0

    pts: int = 0
    dts: int = 0
    escr_base: int = 0
    escr_extension: int = 0
    es_rate: int = 0
    trick_mode_control: int = 0
    trick_mode_value: int = 0
    additional_copy_info: int = 0
    previous_pes_packet_crc: int = 0

    pes_private_data_flag: int = 0
    pack_header_field_flag: int = 0
    program_packet_sequence_counter_flag: int = 0
    pstd_buffer_flag: int = 0
    reserved: int = 0
    pes_extension_flag2: int = 0

    payload_length: int = 0


@dataclass
class PESPacket:
    """A PES packet: header, payload read from TS packets, chunks to write."""

    header: PESHeader = field(default_factory=PESHeader)
    payload: bytearray = field(default_factory=bytearray)
    buffers: list[bytes] = field(default_factory=list)


@dataclass
class PESFrame:
    """Per-elementary-stream state used while packing PES into TS packets."""

    pid: int = 0
    is_key_frame: bool = False
    continuity_counter: int = 0
    program_clock_reference_base: int = 0


def encode_pts_dts(value: int) -> int:
    """Spread a 33-bit timestamp over 5 bytes with marker bits (no prefix nibble)."""
    high = ((value >> 30) & 0x07) << 33
    middle = ((value >> 15) & 0x7FFF) << 17
    low = (value & 0x7FFF) << 1
    return high | middle | low | _MARKER_BITS


def decode_pts_dts(value: int) -> int:
    """Recover a 33-bit timestamp from its 5-byte encoded form."""
    high = (value >> 33) & 0x07
    middle = (value >> 17) & 0x7FFF
    low = (value >> 1) & 0x7FFF
    return ((high << 30) | (middle << 15) | low) & _PTS_MASK


def read_pes_header(reader) -> PESHeader:
    """Read a PES header, leaving the reader positioned at the payload."""
    if not isinstance(reader, ByteReader):
        reader = ByteReader(reader)
    header = PESHeader()

    header.packet_start_code_prefix = reader.read_uint(3)
    if header.packet_start_code_prefix != 0x000001:
        raise MpegTsError("read PacketStartCodePrefix is not 0x0000001")
    header.stream_id = reader.read_uint(1)
    header.pes_packet_length = reader.read_uint(2)

    length = header.pes_packet_length or (1 << 31)
    packet = reader.limit(length)

    flags = packet.read_uint(1)
    header.const_ten = flags & 0xC0
    header.pes_scrambling_control = flags & 0x30
    header.pes_priority = flags & 0x08
    header.data_alignment_indicator = flags & 0x04
    header.copyright = flags & 0x02
    header.original_or_copy = flags & 0x01

    flags = packet.read_uint(1)
    header.pts_dts_flags = flags & 0xC0
    header.escr_flag = flags & 0x20
    header.es_rate_flag = flags & 0x10
    header.dsm_trick_mode_flag = flags & 0x08
    header.additional_copy_info_flag = flags & 0x04
    header.pes_crc_flag = flags & 0x02
    header.pes_extension_flag = flags & 0x01

    header.pes_header_data_length = packet.read_uint(1)
    optional = packet.limit(header.pes_header_data_length)

    if flags & 0x80:
        header.pts = decode_pts_dts(optional.read_uint(5))
        if flags & 0x40:
            header.dts = decode_pts_dts(optional.read_uint(5))

    if header.escr_flag:
        optional.skip(6)

    if header.es_rate_flag:
        header.es_rate = optional.read_uint(3)

    if header.additional_copy_info_flag:
        header.additional_copy_info = optional.read_uint(1) & 0x7F

    if header.pes_crc_flag:
        header.previous_pes_packet_crc = optional.read_uint(2)

    if header.pes_extension_flag:
        ext = optional.read_uint(1)
        header.pes_private_data_flag = ext & 0x80
        header.pack_header_field_flag = ext & 0x40
        header.program_packet_sequence_counter_flag = ext & 0x20
        header.pstd_buffer_flag = ext & 0x10
        header.pes_extension_flag2 = ext & 0x01

        if header.pes_private_data_flag:
            optional.skip(16)
        if header.pack_header_field_flag:
            optional.skip(1)
        if header.program_packet_sequence_counter_flag:
            optional.skip(2)
        if header.pstd_buffer_flag:
            optional.skip(2)
        # The extension field length is always skipped once the extension is present.
        optional.skip(2)

    left = optional.remaining()
    if left:
        optional.skip(left)

    packet_left = packet.remaining()
    if packet_left < 65536:
        header.payload_length = packet_left
    return header


def write_pes_header(writer, header: PESHeader) -> int:
    """Write the PES header with its PTS/DTS fields; return bytes written."""
    if header.packet_start_code_prefix != 0x000001:
        raise MpegTsError("write PacketStartCodePrefix is not 0x0000001")
    if header.const_ten != 0x80:
        raise MpegTsError("pes header ConstTen != 0x80")

    out = bytearray()
    out += (header.packet_start_code_prefix & 0xFFFFFF).to_bytes(3, "big")
    out.append(header.stream_id & 0xFF)
    out += (header.pes_packet_length & 0xFFFF).to_bytes(2, "big")
    out.append(
        (
            header.const_ten
            | header.pes_scrambling_control
            | header.pes_priority
            | header.data_alignment_indicator
            | header.copyright
            | header.original_or_copy
        )
        & 0xFF
    )
    out.append(
        (
            header.pts_dts_flags
            | header.escr_flag
            | header.es_rate_flag
            | header.dsm_trick_mode_flag
            | header.additional_copy_info_flag
            | header.pes_crc_flag
            | header.pes_extension_flag
        )
        & 0xFF
    )
    out.append(header.pes_header_data_length & 0xFF)

    if header.pts_dts_flags & 0x80:
        if header.pts_dts_flags & 0x40:
            out += (encode_pts_dts(header.pts) | 3 << 36).to_bytes(5, "big")
            out += (encode_pts_dts(header.dts) | 1 << 36).to_bytes(5, "big")
        else:
            out += (encode_pts_dts(header.pts) | 2 << 36).to_bytes(5, "big")

    writer.write(bytes(out))
    return len(out)