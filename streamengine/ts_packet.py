"""Transport stream packets, their headers, and a demultiplexer that yields PES packets."""

from __future__ import annotations

import io
from dataclasses import dataclass, field
from typing import Iterator

from .ts_io import ByteReader, Crc32Reader, MpegTsError
from .ts_pes import PESPacket, read_pes_header
from .ts_pmt import PMT, read_pmt
from .ts_psi import PAT, read_pat

TS_PACKET_SIZE = 188
TS_DVHS_PACKET_SIZE = 192
TS_FEC_PACKET_SIZE = 204
TS_MAX_PACKET_SIZE = 204

SYNC_BYTE = 0x47

PID_PAT = 0x0000
PID_CAT = 0x0001
PID_TSDT = 0x0002
PID_NIT_ST = 0x0010
PID_SDT_BAT_ST = 0x0011
PID_EIT_ST = 0x0012
PID_RST_ST = 0x0013
PID_TDT_TOT_ST = 0x0014
PID_NET_SYNC = 0x0015
PID_SIGNALLING = 0x001C
PID_MEASURE = 0x001D
PID_DIT = 0x001E
PID_SIT = 0x001F
PID_PMT = 0x0100
PID_VIDEO = 0x0101
PID_AUDIO = 0x0102

PAT_PKT_TYPE = 0
PMT_PKT_TYPE = 1
PES_PKT_TYPE = 2


@dataclass
class TsHeader:
    """The 4-byte TS packet header plus the adaptation field, when present.

    On reading, adaptation flags hold their masked bits as they sit in the
    flags byte (``pcr_flag`` is ``0x10``); on writing any non-zero value
    sets the bit.
    """

    sync_byte: int = SYNC_BYTE
    transport_error_indicator: int = 0
    payload_unit_start_indicator: int = 0
    transport_priority: int = 0
    pid: int = 0
    transport_scrambling_control: int = 0
    adaption_field_control: int = 0
    continuity_counter: int = 0

    adaptation_field_length: int = 0
    discontinuity_indicator: int = 0
    random_access_indicator: int = 0
    elementary_stream_priority_indicator: int = 0
    pcr_flag: int = 0
    opcr_flag: int = 0
    splicing_point_flag: int = 0
    transport_private_data_flag: int = 0
    adaptation_field_extension_flag: int = 0

    program_clock_reference_base: int = 0
    program_clock_reference_extension: int = 0
    original_program_clock_reference_base: int = 0
    original_program_clock_reference_extension: int = 0
    splice_countdown: int = 0
    transport_private_data_length: int = 0
    private_data: bytes = b""


@dataclass
class TsPacket:
    header: TsHeader = field(default_factory=TsHeader)
    payload: bytes = b""


def _as_reader(source, limit: int | None = None) -> ByteReader:
    if isinstance(source, ByteReader):
        return source if limit is None else source.limit(limit)
    return ByteReader(source, limit)


def read_ts_header(reader) -> TsHeader:
    """Read a TS header and its adaptation field, consuming any stuffing."""
    reader = _as_reader(reader)
    word = reader.read_uint(4)
    header = TsHeader(sync_byte=(word >> 24) & 0xFF)
    if header.sync_byte != SYNC_BYTE:
        raise MpegTsError("mpegts header sync error!")

    header.transport_error_indicator = (word >> 23) & 0x01
    header.payload_unit_start_indicator = (word >> 22) & 0x01
    header.transport_priority = (word >> 21) & 0x01
    header.pid = (word >> 8) & 0x1FFF
    header.transport_scrambling_control = (word >> 6) & 0x03
    header.adaption_field_control = (word >> 4) & 0x03
    header.continuity_counter = word & 0x0F

    if header.adaption_field_control < 2:
        return header

    header.adaptation_field_length = reader.read_uint(1)
    if header.adaptation_field_length == 0:
        return header

    field_reader = reader.limit(header.adaptation_field_length)
    flags = field_reader.read_uint(1)
    header.discontinuity_indicator = flags & 0x80
    header.random_access_indicator = flags & 0x40
    header.elementary_stream_priority_indicator = flags & 0x20
    header.pcr_flag = flags & 0x10
    header.opcr_flag = flags & 0x08
    header.splicing_point_flag = flags & 0x04
    header.transport_private_data_flag = flags & 0x02
    header.adaptation_field_extension_flag = flags & 0x01

    if header.pcr_flag:
        pcr = field_reader.read_uint(6)
        header.program_clock_reference_base = pcr >> 15
        header.program_clock_reference_extension = pcr & 0x1FF

    if header.opcr_flag:
        opcr = field_reader.read_uint(6)
        header.original_program_clock_reference_base = opcr >> 15
        header.original_program_clock_reference_extension = opcr & 0x1FF

    if header.splicing_point_flag:
        header.splice_countdown = field_reader.read_uint(1)

    if header.transport_private_data_flag:
        header.transport_private_data_length = field_reader.read_uint(1)
        header.private_data = field_reader.read(header.transport_private_data_length)

    left = field_reader.remaining()
    if left:
        field_reader.skip(left)
    return header


def read_ts_packet(source) -> TsPacket:
    """Read one 188-byte packet: header, then everything left as payload."""
    reader = _as_reader(source, TS_PACKET_SIZE)
    header = read_ts_header(reader)
    payload = reader.read(reader.remaining())
    return TsPacket(header=header, payload=payload)


def _pack_flags(*values: int) -> int:
    """Pack truth values into one byte, the first value as the most significant bit."""
    byte = 0
    for value in values:
        byte = (byte << 1) | (1 if value else 0)
    return byte


def write_ts_header(writer, header: TsHeader) -> int:
    """Write the TS header and adaptation field (without stuffing); return bytes written."""
    if header.sync_byte != SYNC_BYTE:
        raise MpegTsError("mpegts header sync error!")

    word = (
        (header.sync_byte << 24)
        | (
            _pack_flags(
                header.transport_error_indicator,
                header.payload_unit_start_indicator,
                header.transport_priority,
            )
            << 21
        )
        | ((header.pid & 0x1FFF) << 8)
        | ((header.transport_scrambling_control & 0x03) << 6)
        | ((header.adaption_field_control & 0x03) << 4)
        | (header.continuity_counter & 0x0F)
    )
    out = bytearray(word.to_bytes(4, "big"))

    if header.adaption_field_control >= 2:
        out.append(header.adaptation_field_length & 0xFF)
        if header.adaptation_field_length > 0:
            out.append(
                _pack_flags(
                    header.discontinuity_indicator,
                    header.random_access_indicator,
                    header.elementary_stream_priority_indicator,
                    header.pcr_flag,
                    header.opcr_flag,
                    header.splicing_point_flag,
                    header.transport_private_data_flag,
                    header.adaptation_field_extension_flag,
                )
            )
            if header.pcr_flag:
                pcr = (
                    (header.program_clock_reference_base & ((1 << 33) - 1)) << 15
                    | 0x3F << 9
                    | (header.program_clock_reference_extension & 0x1FF)
                )
                out += pcr.to_bytes(6, "big")
            if header.opcr_flag:
                opcr = (
                    (header.original_program_clock_reference_base & ((1 << 33) - 1)) << 15
                    | 0x3F << 9
                    | (header.original_program_clock_reference_extension & 0x1FF)
                )
                out += opcr.to_bytes(6, "big")

    writer.write(bytes(out))
    return len(out)


def _read_full(source, size: int) -> bytes:
    chunks = bytearray()
    while len(chunks) < size:
        data = source.read(size - len(chunks))
        if not data:
            break
        chunks += data
    return bytes(chunks)


@dataclass
class MpegTsStream:
    """Demultiplexer state: the PAT, the PMT and the PES packet being built per PID."""

    pat: PAT = field(default_factory=PAT)
    pmt: PMT = field(default_factory=PMT)
    pes_buffer: dict[int, PESPacket | None] = field(default_factory=dict)

    def read_pat(self, packet: TsPacket, reader) -> None:
        """Parse the PAT from ``reader`` when ``packet`` carries PID 0."""
        if packet.header.pid != PID_PAT:
            return
        if len(packet.payload) == TS_PACKET_SIZE:
            reader = Crc32Reader(reader)
        self.pat = read_pat(reader)

    def read_pmt(self, packet: TsPacket, reader) -> None:
        """Parse the PMT from ``reader`` when ``packet`` carries a PMT PID listed in the PAT."""
        for program in self.pat.programs:
            if program.program_map_pid == packet.header.pid:
                source = reader
                if len(packet.payload) == TS_PACKET_SIZE:
                    source = Crc32Reader(reader)
                self.pmt = read_pmt(source)
                return

    def feed(self, source) -> Iterator[PESPacket]:
        """Read TS packets from ``source`` and yield each completed PES packet.

        Packets still being assembled when the data ends are yielded last.
        """
        if isinstance(source, (bytes, bytearray, memoryview)):
            source = io.BytesIO(bytes(source))
        while True:
            data = _read_full(source, TS_PACKET_SIZE)
            if not data:
                for pes in self.pes_buffer.values():
                    if pes is not None:
                        yield pes
                return
            if len(data) < TS_PACKET_SIZE:
                raise MpegTsError(f"unexpected end of data: wanted {TS_PACKET_SIZE}, got {len(data)}")

            reader = ByteReader(data, TS_PACKET_SIZE)
            header = read_ts_header(reader)

            if header.pid == PID_PAT:
                self.pat = read_pat(reader)
                continue

            if not self.pmt.streams:
                for program in self.pat.programs:
                    if program.program_map_pid == header.pid:
                        self.pmt = read_pmt(reader)
                        for stream in self.pmt.streams:
                            self.pes_buffer[stream.elementary_pid] = None
                        break
                continue

            if header.pid not in self.pes_buffer:
                continue
            pes = self.pes_buffer[header.pid]
            if header.payload_unit_start_indicator == 1:
                if pes is not None:
                    yield pes
                pes = PESPacket()
                self.pes_buffer[header.pid] = pes
                pes.header = read_pes_header(reader)
            if pes is not None:
                pes.payload += reader.read(reader.remaining())