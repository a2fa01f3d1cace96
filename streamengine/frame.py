"""Data frames shared between a track writer and its readers."""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Iterator

NALU_DELIMITER = b"\x00\x00\x00\x01"


def split_annexb(frame: bytes, delimiter: bytes = NALU_DELIMITER) -> Iterator[bytes]:
    """Yield the non-empty pieces of ``frame`` separated by ``delimiter``."""
    for part in bytes(frame).split(bytes(delimiter)):
        if part:
            yield part


class ParameterSets(list):
    """Codec parameter sets (SPS, PPS, ...) as raw NAL units."""

    def annexb(self) -> list[bytes]:
        chunks: list[bytes] = []
        for unit in self:
            chunks += [NALU_DELIMITER, bytes(unit)]
        return chunks

    def write_annexb_to(self, writer) -> int:
        total = 0
        for chunk in self.annexb():
            writer.write(chunk)
            total += len(chunk)
        return total


@dataclass
class DataFrame:
    """A slot in a ring buffer: written once, read by any number of readers."""

    delta_time: int = 0
    write_time: datetime | None = None
    sequence: int = 0
    bytes_in: int = 0
    can_read: bool = False
    data: Any = None
    cond: threading.Condition | None = field(default=None, repr=False, compare=False)
    _readers: int = field(default=0, repr=False, compare=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    def is_writing(self) -> bool:
        return not self.can_read

    def is_discarded(self) -> bool:
        return self.cond is None

    def discard(self) -> int:
        """Mark the frame discarded; return how many readers still hold it."""
        self.cond = None
        return self.reader_count()

    def reader_enter(self) -> int:
        with self._lock:
            self._readers += 1
            return self._readers

    def reader_leave(self) -> int:
        with self._lock:
            self._readers -= 1
            return self._readers

    def reader_count(self) -> int:
        with self._lock:
            return self._readers

    def start_write(self) -> bool:
        """Begin rewriting; refused (and the frame discarded) while readers hold it."""
        if self.reader_count() > 0:
            self.discard()
            return False
        self.can_read = False
        return True

    def ready(self) -> None:
        """Publish the frame and wake waiting readers."""
        self.write_time = datetime.now()
        self.can_read = True
        cond = self.cond
        if cond is not None:
            with cond:
                cond.notify_all()

    def init(self) -> None:
        self.cond = threading.Condition()

    def reset(self) -> None:
        self.bytes_in = 0
        self.delta_time = 0