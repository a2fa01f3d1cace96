from datetime import datetime

from streamengine.events import (
    ErrorEvent,
    Event,
    EventRegistry,
    InvitePublish,
    InviteTrackEvent,
    create_event,
)


def test_create_event_sets_target_and_time():
    before = datetime.now()
    event = create_event("live/test")
    after = datetime.now()
    assert event.target == "live/test"
    assert before <= event.time <= after


def test_handlers_called_in_order():
    registry = EventRegistry()
    seen = []
    registry.listen(InvitePublish, lambda e: seen.append(("a", e.target)))
    registry.listen(InvitePublish, lambda e: seen.append(("b", e.target)))
    registry.emit(InvitePublish(target="live/x"))
    assert seen == [("a", "live/x"), ("b", "live/x")]


def test_dispatch_uses_exact_type():
    registry = EventRegistry()
    seen = []
    registry.listen(Event, seen.append)
    registry.emit(InvitePublish(target="live/x"))
    assert seen == []
    base = create_event(1)
    registry.emit(base)
    assert seen == [base]


def test_emit_without_handlers_calls_nothing():
    registry = EventRegistry()
    seen = []
    registry.listen(ErrorEvent, seen.append)
    registry.emit(InviteTrackEvent(target="h264", subscriber="sub"))
    assert seen == []


def test_event_fields():
    err = ValueError("boom")
    event = ErrorEvent(target="stream", error=err)
    assert event.error is err
    track = InviteTrackEvent(target="aac", subscriber="sub1")
    assert (track.target, track.subscriber) == ("aac", "sub1")