"""Engine, publish, subscribe, pull and push settings."""

from __future__ import annotations

import re
import threading
from dataclasses import dataclass, field
from datetime import timedelta

_UNSET = ""
_HELP_PUBLISH_CHECK = "publish auth check value"
_HELP_PUBLISH_CHECK_ARG = "publish auth argument name"
_HELP_SUBSCRIBE_CHECK = "subscribe auth check value"
_HELP_SUBSCRIBE_CHECK_ARG = "subscribe auth argument name"
_HELP_CONSOLE_CREDENTIAL = "remote console credential"


class Regexp:
    """A compiled regular expression that may be unset."""

    __slots__ = ("pattern",)

    def __init__(self, pattern: str | re.Pattern | None = None):
        if isinstance(pattern, str):
            pattern = re.compile(pattern)
        self.pattern: re.Pattern | None = pattern

    def valid(self) -> bool:
        return self.pattern is not None

    def __str__(self) -> str:
        return self.pattern.pattern if self.pattern is not None else ""

    def __repr__(self) -> str:
        return f"Regexp({str(self)!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Regexp):
            return NotImplemented
        return str(self) == str(other)

    def __hash__(self) -> int:
        return hash(str(self))

    def to_json(self) -> str:
        return '"' + str(self) + '"'

    @classmethod
    def from_json(cls, text: str) -> "Regexp":
        """Build from a JSON string literal; an empty input gives an unset expression."""
        if not text:
            return cls()
        if text.startswith('"'):
            text = text[1:]
        if text.endswith('"'):
            text = text[:-1]
        return cls(text)


def _setting(default=None, desc: str = "", *, factory=None, enum: str | None = None):
    metadata = {"desc": desc}
    if enum:
        metadata["enum"] = enum
    if factory is not None:
        return field(default_factory=factory, metadata=metadata)
    return field(default=default, metadata=metadata)


def _resolve(mapping: dict[str, str], enable_regexp: bool, stream_path: str) -> str:
    if not mapping:
        return ""
    url = mapping.get(stream_path)
    if url is not None:
        return url
    if not enable_regexp:
        return ""
    for pattern, template in mapping.items():
        try:
            match = re.search(pattern, stream_path)
        except re.error:
            continue
        if match:
            values = [match.group(0), *(group or "" for group in match.groups())]
            for index, value in enumerate(values):
                template = template.replace(f"${index}", value)
            return template
    return ""


@dataclass
class Publish:
    pub_audio: bool = _setting(True, "publish audio")
    pub_video: bool = _setting(True, "publish video")
    kick_exist: bool = _setting(False, "kick an existing publisher")
    publish_timeout: timedelta = _setting(timedelta(seconds=10), "timeout when a publisher sends no data")
    wait_close_timeout: timedelta = _setting(timedelta(0), "delay before closing (waiting for reconnect)")
    delay_close_timeout: timedelta = _setting(timedelta(0), "delay before closing (no subscribers)")
    idle_timeout: timedelta = _setting(timedelta(0), "idle (no subscribers) timeout")
    pause_timeout: timedelta = _setting(timedelta(seconds=30), "pause timeout")
    buffer_time: timedelta = _setting(timedelta(0), "buffer length, 0 keeps only the latest keyframe")
    speed_limit: timedelta = _setting(timedelta(milliseconds=500), "longest wait for speed limiting, 0 disables")
    key: str = _setting(_UNSET, _HELP_PUBLISH_CHECK)
    secret_arg_name: str = _setting("secret", _HELP_PUBLISH_CHECK_ARG)
    expire_arg_name: str = _setting("expire", "publish auth expiry argument name")
    ring_size: str = _setting("256-1024", "ring buffer size range")


@dataclass
class Subscribe:
    sub_audio: bool = _setting(True, "subscribe audio")
    sub_video: bool = _setting(True, "subscribe video")
    sub_video_arg_name: str = _setting("vts", "argument naming the video tracks to subscribe")
    sub_audio_arg_name: str = _setting("ats", "argument naming the audio tracks to subscribe")
    sub_data_arg_name: str = _setting("dts", "argument naming the data tracks to subscribe")
    sub_mode_arg_name: str = _setting("", "argument naming the subscribe mode")
    sub_audio_tracks: list[str] = _setting(desc="audio tracks to subscribe", factory=list)
    sub_video_tracks: list[str] = _setting(desc="video tracks to subscribe", factory=list)
    sub_data_tracks: list[str] = _setting(desc="data tracks to subscribe", factory=list)
    sub_mode: int = _setting(
        0,
        "subscribe mode",
        enum="0:realtime,1:no catch-up after first frame,2:start from the oldest buffered keyframe",
    )
    sync_mode: int = _setting(0, "sync mode", enum="0:timestamp,1:write time")
    i_frame_only: bool = _setting(False, "keyframes only")
    wait_timeout: timedelta = _setting(timedelta(seconds=10), "timeout waiting for a stream")
    write_buffer_size: int = _setting(0, "write buffer size")
    key: str = _setting(_UNSET, _HELP_SUBSCRIBE_CHECK)
    secret_arg_name: str = _setting("secret", _HELP_SUBSCRIBE_CHECK_ARG)
    expire_arg_name: str = _setting("expire", "subscribe auth expiry argument name")
    internal: bool = _setting(False, "internal subscriber")


@dataclass
class Pull:
    re_pull: int = _setting(0, "retries after disconnect, 0 none, -1 unlimited")
    enable_regexp: bool = _setting(False, "match stream paths with regular expressions")
    pull_on_start: dict[str, str] = _setting(desc="streams pulled at start", factory=dict)
    pull_on_sub: dict[str, str] = _setting(desc="streams pulled on subscribe", factory=dict)
    proxy: str = _setting("", "proxy address")
    _on_sub_lock: object = field(default_factory=threading.RLock, init=False, repr=False, compare=False)
    _on_start_lock: object = field(default_factory=threading.RLock, init=False, repr=False, compare=False)

    def check_pull_on_start(self, stream_path: str) -> str:
        """Remote URL to pull for ``stream_path`` at start, or an empty string."""
        with self._on_start_lock:
            return _resolve(self.pull_on_start, self.enable_regexp, stream_path)

    def check_pull_on_sub(self, stream_path: str) -> str:
        """Remote URL to pull for ``stream_path`` on subscribe, or an empty string."""
        with self._on_sub_lock:
            return _resolve(self.pull_on_sub, self.enable_regexp, stream_path)


@dataclass
class Push:
    enable_regexp: bool = _setting(False, "match stream paths with regular expressions")
    re_push: int = _setting(0, "retries after disconnect, 0 none, -1 unlimited")
    push_list: dict[str, str] = _setting(desc="automatic push list", factory=dict)
    proxy: str = _setting("", "proxy address")

    def add_push(self, url: str, stream_path: str) -> None:
        self.push_list[stream_path] = url

    def check_push(self, stream_path: str) -> str:
        """Remote URL to push ``stream_path`` to, or an empty string."""
        return _resolve(self.push_list, self.enable_regexp, stream_path)


@dataclass
class Console:
    server: str = _setting("console.example.com:44944", "remote console address")
    secret: str = _setting(_UNSET, _HELP_CONSOLE_CREDENTIAL)
    public_addr: str = _setting("", "public address for the remote console")
    public_addr_tls: str = _setting("", "public TLS address for the remote console")


@dataclass
class Engine:
    publish: Publish = field(default_factory=Publish)
    subscribe: Subscribe = field(default_factory=Subscribe)
    console: Console = field(default_factory=Console)
    enable_avcc: bool = _setting(True, "enable AVCC format")
    enable_rtp: bool = _setting(True, "enable RTP format")
    enable_sub_event: bool = _setting(True, "enable subscribe events")
    enable_auth: bool = _setting(True, "enable authentication")
    log_lang: str = _setting("zh", "log language", enum="zh:Chinese,en:English")
    log_level: str = _setting(
        "info", "log level", enum="trace:trace,debug:debug,info:info,warn:warn,error:error"
    )
    event_bus_size: int = _setting(10, "event bus size")
    pulse_interval: timedelta = _setting(timedelta(seconds=5), "pulse event interval")
    disable_all: bool = _setting(False, "disable all plugins")
    rtp_reorder_buffer_len: int = _setting(50, "RTP reorder buffer length")
    pool_size: int = _setting(0, "memory pool size")