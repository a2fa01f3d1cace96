# streamengine

Building blocks for a streaming media engine, in pure Python with no
third-party dependencies.

- `streamengine.ts_io`: the MPEG-2 CRC-32 used by PSI sections (`crc32`,
  `crc32_buffers`), bounded byte readers (`ByteReader`), and CRC-accumulating
  `Crc32Reader` / `Crc32Writer`. Malformed or truncated data raises
  `MpegTsError`.
- `streamengine.ts_psi`: PSI section headers (`read_psi`, `write_psi`) and the
  program association table (`PAT`, `read_pat`, `write_pat`,
  `write_pat_packet`, `write_default_pat_packet`).
- `streamengine.ts_pmt`: the program map table (`PMT`, `read_pmt`, `write_pmt`,
  descriptors) and `write_pmt_packet`, which writes a fixed 188-byte PMT packet
  for a `VideoCodec` and an `AudioCodec`.
- `streamengine.ts_pes`: PES headers (`PESHeader`, `read_pes_header`,
  `write_pes_header`) and the 33-bit PTS/DTS encoding (`encode_pts_dts`,
  `decode_pts_dts`).
- `streamengine.ts_packet`: TS packet headers with adaptation fields
  (`read_ts_header`, `write_ts_header`, `read_ts_packet`) and
  `MpegTsStream`, a demultiplexer whose `feed` yields PES packets.
- `streamengine.sps`: H.264 SPS parsing into profile, level, width and height
  (`parse_sps`, `SPSInfo`), with an Exp-Golomb `BitReader`.
- `streamengine.settings`: dataclasses for engine settings (`Engine`,
  `Publish`, `Subscribe`, `Pull`, `Push`, `Console`) and `Regexp`; `Pull` and
  `Push` map stream paths to remote URLs, optionally by regular expression.
- `streamengine.logs`: `Logger` with message and field translation, and
  `MultipleWriter` fan-out (`add_writer`, `delete_writer`).
- `streamengine.events`: `Event`, `create_event` and an `EventRegistry` that
  dispatches by exact event type.
- `streamengine.frame`: `DataFrame` reader/writer bookkeeping and
  `split_annexb` for splitting Annex B byte streams into NAL units.

## Installation

```
pip install .
```

To run the tests:

```
pip install .[test]
pytest
```

## Examples

Compute the PSI CRC of a section:

```python
from streamengine.ts_io import crc32

checksum = crc32(b"\x00\xb0\x0d\x00\x01\xc1\x00\x00\x00\x01\xe1\x00")
```

Demultiplex a transport stream file into PES packets:

```python
from streamengine.ts_packet import MpegTsStream

stream = MpegTsStream()
with open("capture.ts", "rb") as source:
    for pes in stream.feed(source):
        print(pes.header.stream_id, pes.header.pts, len(pes.payload))
```

Write a PMT packet announcing H.264 video and AAC audio:

```python
import io
from streamengine.ts_pmt import AudioCodec, VideoCodec, write_pmt_packet

buffer = io.BytesIO()
write_pmt_packet(buffer, VideoCodec.H264, AudioCodec.AAC)
assert len(buffer.getvalue()) == 188
```

Parse an H.264 SPS:

```python
from streamengine.sps import parse_sps

info = parse_sps(sps_bytes)
print(info.width, info.height)
```

Resolve a pull URL by regular expression:

```python
from streamengine.settings import Pull

pull = Pull(enable_regexp=True, pull_on_start={"live/(.*)": "rtmp://example.com/app/$1"})
print(pull.check_pull_on_start("live/test"))  # rtmp://example.com/app/test
```

Dispatch events by type:

```python
from streamengine.events import EventRegistry, InvitePublish, create_event

registry = EventRegistry()
registry.listen(InvitePublish, lambda event: print("invite", event.target))
registry.emit(InvitePublish(target="live/test"))
```

## What this package does not do

The settings classes hold values and defaults only: there is no layered
resolution of settings from environment variables, configuration files or
runtime changes, no YAML loading, and no generation of form schemas for them.
There is also no server, no command-line program and no network I/O; the
package reads and writes bytes you give it.