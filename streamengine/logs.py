"""Leveled logging with field translation and fan-out writers."""

from __future__ import annotations

import json
import sys
import threading
import time
from typing import Any

_LEVELS = {"debug": 10, "info": 20, "warn": 30, "error": 40}


class _State:
    level = _LEVELS["debug"]
    trace = False


_state = _State()


def set_level(name: str) -> None:
    """Set the global level: trace, debug, info, warn or error."""
    name = name.lower()
    if name == "trace":
        _state.trace = True
        _state.level = _LEVELS["debug"]
        return
    if name not in _LEVELS:
        raise ValueError(f"unknown log level {name!r}")
    _state.trace = False
    _state.level = _LEVELS[name]


class MultipleWriter:
    """Writes to a default sink and to every added writer; failing writers are dropped."""

    def __init__(self, default=None):
        self._default = default
        self._writers: list = []
        self._lock = threading.Lock()

    def write(self, data: str) -> int:
        target = self._default if self._default is not None else sys.stdout
        written = target.write(data)
        with self._lock:
            writers = list(self._writers)
        for writer in writers:
            try:
                writer.write(data)
            except (OSError, ValueError):
                self.remove(writer)
        return written

    def add(self, writer) -> None:
        with self._lock:
            if all(existing is not writer for existing in self._writers):
                self._writers.append(writer)

    def remove(self, writer) -> None:
        with self._lock:
            self._writers = [existing for existing in self._writers if existing is not writer]


_multiple_writer = MultipleWriter()


def add_writer(writer) -> None:
    _multiple_writer.add(writer)


def delete_writer(writer) -> None:
    _multiple_writer.remove(writer)


class Logger:
    """Named logger that translates messages and field names through a mapping."""

    def __init__(self, name: str = "", *, writer=None, mapping: dict | None = None, fields: dict | None = None):
        self.name = name
        self.mapping = mapping
        self.fields: dict[str, Any] = dict(fields or {})
        self._writer = writer

    def _derive(self, **changes) -> "Logger":
        values = {"name": self.name, "writer": self._writer, "mapping": self.mapping, "fields": self.fields}
        values.update(changes)
        return Logger(values.pop("name"), **values)

    def lang(self, mapping: dict | None) -> "Logger":
        """A fresh root logger using ``mapping`` for translations."""
        return Logger(writer=self._writer, mapping=mapping)

    def named(self, name: str) -> "Logger":
        return self._derive(name=f"{self.name}.{name}" if self.name else name)

    def _translate_fields(self, fields: dict) -> dict:
        mapping = self.mapping or {}
        return {mapping.get(key, key): value for key, value in fields.items()}

    def with_fields(self, **kwargs) -> "Logger":
        return self._derive(fields={**self.fields, **self._translate_fields(kwargs)})

    def _emit(self, level: str, msg: str, fields: dict) -> None:
        if _LEVELS[level] < _state.level:
            return
        if self.mapping:
            msg = self.mapping.get(msg, msg)
        merged = {**self.fields, **self._translate_fields(fields)}
        parts = [time.strftime("%H:%M:%S"), level.upper()]
        if self.name:
            parts.append(self.name)
        parts.append(msg)
        if merged:
            parts.append(json.dumps(merged, ensure_ascii=False, default=str))
        writer = self._writer if self._writer is not None else _multiple_writer
        writer.write("\t".join(parts) + "\n")

    def trace(self, msg: str, **kwargs) -> None:
        self._emit("debug", msg, kwargs)

    def debug(self, msg: str, **kwargs) -> None:
        self._emit("debug", msg, kwargs)

    def info(self, msg: str, **kwargs) -> None:
        self._emit("info", msg, kwargs)

    def warn(self, msg: str, **kwargs) -> None:
        self._emit("warn", msg, kwargs)

    def error(self, msg: str, **kwargs) -> None:
        self._emit("error", msg, kwargs)


_root = Logger()


def _join(args) -> str:
    return " ".join(str(arg) for arg in args)


def debug(*args) -> None:
    _root.debug(_join(args))


def info(*args) -> None:
    _root.info(_join(args))


def warn(*args) -> None:
    _root.warn(_join(args))


def error(*args) -> None:
    _root.error(_join(args))


def debugf(fmt: str, *args) -> None:
    _root.debug(fmt % args if args else fmt)


def infof(fmt: str, *args) -> None:
    _root.info(fmt % args if args else fmt)


def warnf(fmt: str, *args) -> None:
    _root.warn(fmt % args if args else fmt)


def errorf(fmt: str, *args) -> None:
    _root.error(fmt % args if args else fmt)