"""Engine events and a registry that dispatches them by type."""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Generic, TypeVar

T = TypeVar("T")


@dataclass
class Event(Generic[T]):
    """An event about ``target``, stamped with the time it was created."""

    target: Any = None
    time: datetime = field(default_factory=datetime.now)


def create_event(target: T) -> Event:
    return Event(target=target)


@dataclass
class PulseEvent(Event):
    """Periodic heartbeat."""


@dataclass
class ErrorEvent(Event):
    error: BaseException | None = None


@dataclass
class SEKick(Event):
    """Ask a publisher or subscriber to leave."""


@dataclass
class UnsubscribeEvent(Event):
    """A subscriber left; ``target`` is the subscriber."""


@dataclass
class AddTrackEvent(Event):
    """A track was added; ``target`` is the track."""


@dataclass
class InvitePublish(Event):
    """Request an on-demand publisher; ``target`` is the stream path."""


@dataclass
class InviteTrackEvent(Event):
    """Request a specific track; ``target`` is the track name."""

    subscriber: Any = None


class EventRegistry:
    """Handlers keyed by the exact event type."""

    def __init__(self):
        self._handlers: dict[type, list[Callable[[Any], None]]] = defaultdict(list)

    def listen(self, event_type: type, handler: Callable[[Any], None]) -> None:
        self._handlers[event_type].append(handler)

    def emit(self, event: Any) -> None:
        for handler in list(self._handlers.get(type(event), ())):
            handler(event)


_registry = EventRegistry()


def listen_event(event_type: type, handler: Callable[[Any], None]) -> None:
    _registry.listen(event_type, handler)


def emit_event(event: Any) -> None:
    _registry.emit(event)