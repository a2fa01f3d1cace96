"""Program map table (PMT) sections and the fixed PMT packet writer."""

from __future__ import annotations

import io
from dataclasses import dataclass, field, replace
from enum import IntEnum

from .ts_io import ByteReader, Crc32Reader, crc32_buffers
from .ts_psi import TS_PACKET_SIZE, PSIHeader, PSIType, read_psi, write_psi

PID_PMT = 0x0100
PID_VIDEO = 0x0101
PID_AUDIO = 0x0102

STREAM_TYPE_H264 = 0x1B
STREAM_TYPE_H265 = 0x24
STREAM_TYPE_AAC = 0x0F
STREAM_TYPE_G711A = 0x90
STREAM_TYPE_G711U = 0x91


class VideoCodec(IntEnum):
    H264 = 7
    H265 = 12


class AudioCodec(IntEnum):
    PCMA = 7
    PCMU = 8
    AAC = 10


def _stream_entry(stream_type: int, pid: int) -> bytes:
    return bytes([stream_type, 0xE0 | (pid >> 8), pid & 0xFF, 0xF0, 0x00])


TS_HEADER = bytes([0x47, 0x40 | (PID_PMT >> 8), PID_PMT & 0xFF, 0x10, 0x00])
PSI_BYTES = bytes([0x02, 0xB0, 0x17, 0x00, 0x01, 0xC1, 0x00, 0x00])
PMT_BYTES = bytes([0xE0 | (PID_VIDEO >> 8), PID_VIDEO & 0xFF, 0xF0, 0x00])

_VIDEO_ENTRIES = {
    VideoCodec.H264: _stream_entry(STREAM_TYPE_H264, PID_VIDEO),
    VideoCodec.H265: _stream_entry(STREAM_TYPE_H265, PID_VIDEO),
}
_AUDIO_ENTRIES = {
    AudioCodec.AAC: _stream_entry(STREAM_TYPE_AAC, PID_AUDIO),
    AudioCodec.PCMA: _stream_entry(STREAM_TYPE_G711A, PID_AUDIO),
    AudioCodec.PCMU: _stream_entry(STREAM_TYPE_G711U, PID_AUDIO),
}


@dataclass
class Descriptor:
    tag: int = 0
    length: int = 0
    data: bytes = b""


@dataclass
class PMTStream:
    stream_type: int = 0
    elementary_pid: int = 0
    es_info_length: int = 0
    descriptors: list[Descriptor] = field(default_factory=list)


@dataclass
class PMT:
    header: PSIHeader = field(default_factory=PSIHeader)
    pcr_pid: int = 0
    program_info_length: int = 0
    program_info_descriptors: list[Descriptor] = field(default_factory=list)
    streams: list[PMTStream] = field(default_factory=list)
    crc32: int = 0


def read_pmt_descriptors(reader) -> list[Descriptor]:
    """Read descriptors until a bounded reader is exhausted."""
    if not isinstance(reader, ByteReader):
        data = bytes(reader)
        reader = ByteReader(data, len(data))
    if reader.remaining() is None:
        raise ValueError("descriptor reader must be bounded")
    descriptors = []
    while reader.remaining() > 0:
        tag = reader.read_uint(1)
        length = reader.read_uint(1)
        descriptors.append(Descriptor(tag=tag, length=length, data=reader.read(length)))
    return descriptors


def read_pmt(reader) -> PMT:
    """Read a PMT section; verify its CRC when reading through a Crc32Reader."""
    if not isinstance(reader, ByteReader):
        reader = ByteReader(reader)
    body, header = read_psi(reader, PSIType.PMT)
    pmt = PMT(header=header)
    pmt.pcr_pid = body.read_uint(2) & 0x1FFF
    pmt.program_info_length = body.read_uint(2) & 0x3FF
    if pmt.program_info_length > 0:
        pmt.program_info_descriptors = read_pmt_descriptors(body.limit(pmt.program_info_length))
    while body.remaining() > 0:
        stream = PMTStream(stream_type=body.read_uint(1))
        stream.elementary_pid = body.read_uint(2) & 0x1FFF
        stream.es_info_length = body.read_uint(2) & 0x3FF
        if stream.es_info_length > 0:
            stream.descriptors = read_pmt_descriptors(body.limit(stream.es_info_length))
        pmt.streams.append(stream)
    if isinstance(reader, Crc32Reader):
        pmt.crc32 = reader.read_crc_and_check()
    return pmt


def write_pmt_descriptors(writer, descriptors) -> None:
    for descriptor in descriptors:
        data = bytes(descriptor.data)
        writer.write(bytes([descriptor.tag & 0xFF, len(data) & 0xFF]) + data)


def _descriptor_bytes(descriptors) -> bytes:
    buffer = io.BytesIO()
    write_pmt_descriptors(buffer, descriptors)
    return buffer.getvalue()


def write_pmt_body(writer, pmt: PMT) -> None:
    """Write PCR PID, program info and the stream loop."""
    writer.write(((pmt.pcr_pid & 0x1FFF) | 7 << 13).to_bytes(2, "big"))
    program_info = _descriptor_bytes(pmt.program_info_descriptors)
    writer.write(((len(program_info) & 0x0FFF) | 0xF000).to_bytes(2, "big"))
    writer.write(program_info)
    for stream in pmt.streams:
        writer.write(bytes([stream.stream_type & 0xFF]))
        writer.write(((stream.elementary_pid & 0x1FFF) | 7 << 13).to_bytes(2, "big"))
        es_info = _descriptor_bytes(stream.descriptors)
        writer.write(((len(es_info) & 0x0FFF) | 0xF000).to_bytes(2, "big"))
        writer.write(es_info)


def write_pmt(writer, pmt: PMT) -> None:
    """Write a complete PMT section including pointer field and CRC."""
    buffer = io.BytesIO()
    write_pmt_body(buffer, pmt)
    body = buffer.getvalue()
    header = pmt.header
    if header.section_length == 0:
        header = replace(header, section_length=2 + 3 + 4 + len(body))
    write_psi(writer, PSIType.PMT, header, body)


def write_pmt_packet(writer, video_codec, audio_codec) -> None:
    """Write a 188-byte PMT packet announcing the given video and audio codecs."""
    padding = TS_PACKET_SIZE - 4 - len(PSI_BYTES) - len(PMT_BYTES) - len(TS_HEADER) - 10
    section = [PSI_BYTES, PMT_BYTES]
    video_entry = _VIDEO_ENTRIES.get(video_codec) if video_codec is not None else None
    if video_entry is None:
        padding += 5
    else:
        section.append(video_entry)
    audio_entry = _AUDIO_ENTRIES.get(audio_codec) if audio_codec is not None else None
    if audio_entry is None:
        padding += 5
    else:
        section.append(audio_entry)
    crc = crc32_buffers(section).to_bytes(4, "big")
    writer.write(TS_HEADER + b"".join(section) + crc + b"\xff" * padding)