"""Program specific information sections and the program association table."""

from __future__ import annotations

import io
from dataclasses import dataclass, field, replace
from enum import IntEnum

from .ts_io import ByteReader, Crc32Reader, Crc32Writer, MpegTsError

TS_PACKET_SIZE = 188
TABLE_PAS = 0x00
TABLE_TSPMS = 0x02


class PSIType(IntEnum):
    PAT = 1
    PMT = 2
    NIT = 3
    CAT = 4
    TST = 5
    IPMP_CIT = 6


_EXPECTED_TABLE = {PSIType.PAT: TABLE_PAS, PSIType.PMT: TABLE_TSPMS}

DEFAULT_PAT_PACKET = bytes(
    [
        0x47, 0x40, 0x00, 0x10,
        0x00,
        0x00, 0xB0, 0x0D, 0x00, 0x01, 0xC1, 0x00, 0x00,
        0x00, 0x01, 0xE1, 0x00,
        0xE8, 0xF9, 0x5E, 0x7D,
    ]
) + b"\xff" * 167


@dataclass
class PSIHeader:
    """Common fields of a PSI section header."""

    table_id: int = 0
    section_syntax_indicator: int = 0
    zero: int = 0
    reserved1: int = 0
    section_length: int = 0
    table_id_extension: int = 0
    reserved2: int = 0
    version_number: int = 0
    current_next_indicator: int = 0
    section_number: int = 0
    last_section_number: int = 0


@dataclass
class PATProgram:
    program_number: int = 0
    reserved3: int = 0
    network_pid: int = 0
    program_map_pid: int = 0


@dataclass
class PAT:
    header: PSIHeader = field(default_factory=PSIHeader)
    programs: list[PATProgram] = field(default_factory=list)
    crc32: int = 0


def read_psi(reader, psi_type) -> tuple[ByteReader, PSIHeader]:
    """Read a PSI header; return a reader over the table body (CRC excluded)."""
    if not isinstance(reader, ByteReader):
        reader = ByteReader(reader)
    pointer_source = reader.source if isinstance(reader, Crc32Reader) else reader
    pointer_field = pointer_source.read_uint(1)
    if pointer_field:
        pointer_source.skip(pointer_field)

    table_id = reader.read_uint(1)
    word = reader.read_uint(2)
    section_length = word & 0x3FF
    section = reader.limit(section_length)
    table_id_extension = section.read_uint(2)
    version_byte = section.read_uint(1)
    section_number = section.read_uint(1)
    last_section_number = section.read_uint(1)

    expected = _EXPECTED_TABLE.get(psi_type)
    if expected is not None and table_id != expected:
        raise MpegTsError(f"read table id != {expected}, id={table_id}")

    header = PSIHeader(
        table_id=table_id,
        section_syntax_indicator=(word & 0x8000) >> 15,
        section_length=section_length,
        table_id_extension=table_id_extension,
        version_number=version_byte & 0x3E,
        current_next_indicator=version_byte & 0x01,
        section_number=section_number,
        last_section_number=last_section_number,
    )
    body = section.limit(max(0, section.remaining() - 4))
    return body, header


def write_psi(writer, psi_type, header: PSIHeader, data: bytes) -> None:
    """Write pointer field, PSI header, body and CRC32."""
    expected = _EXPECTED_TABLE.get(psi_type)
    if expected is not None and header.table_id != expected:
        raise MpegTsError(f"write table id != {expected}, id={header.table_id}")

    length_word = ((header.section_syntax_indicator & 1) << 15) | (3 << 12) | (header.section_length & 0x0FFF)
    version_byte = ((header.version_number << 1) | header.current_next_indicator) & 0xFF

    writer.write(b"\x00")
    crc_writer = Crc32Writer(writer)
    crc_writer.write(bytes([header.table_id & 0xFF]))
    crc_writer.write(length_word.to_bytes(2, "big"))
    crc_writer.write((header.table_id_extension & 0xFFFF).to_bytes(2, "big"))
    crc_writer.write(bytes([version_byte, header.section_number & 0xFF, header.last_section_number & 0xFF]))
    crc_writer.write(data)
    writer.write(crc_writer.crc.to_bytes(4, "big"))


def read_pat(reader) -> PAT:
    """Read a PAT section; verify its CRC when reading through a Crc32Reader."""
    if not isinstance(reader, ByteReader):
        reader = ByteReader(reader)
    body, header = read_psi(reader, PSIType.PAT)
    programs = []
    while body.remaining() > 0:
        program = PATProgram(program_number=body.read_uint(2))
        pid = body.read_uint(2) & 0x1FFF
        if program.program_number == 0:
            program.network_pid = pid
        else:
            program.program_map_pid = pid
        programs.append(program)
    pat = PAT(header=header, programs=programs)
    if isinstance(reader, Crc32Reader):
        pat.crc32 = reader.read_crc_and_check()
    return pat


def write_pat(writer, pat: PAT) -> None:
    body = bytearray()
    for program in pat.programs:
        body += (program.program_number & 0xFFFF).to_bytes(2, "big")
        pid = program.network_pid if program.program_number == 0 else program.program_map_pid
        body += ((pid & 0x1FFF) | 7 << 13).to_bytes(2, "big")
    header = pat.header
    if header.section_length == 0:
        header = replace(header, section_length=2 + 3 + 4 + len(body))
    write_psi(writer, PSIType.PAT, header, bytes(body))


def write_pat_packet(writer, ts_header: bytes, pat: PAT) -> None:
    """Write a full transport packet: TS header, PAT section and 0xff stuffing."""
    if pat.header.table_id != TABLE_PAS:
        raise MpegTsError("PAT table ID error")
    buffer = io.BytesIO()
    write_pat(buffer, pat)
    section = buffer.getvalue()
    stuffing = b"\xff" * max(0, TS_PACKET_SIZE - 4 - len(section))
    writer.write(bytes(ts_header) + section + stuffing)


def write_default_pat_packet(writer) -> None:
    writer.write(DEFAULT_PAT_PACKET)