from piano_kids.core.events import EventEmitter, NoteDetectionEvents, Observable
from piano_kids.note_types import ConfirmedNote


def test_emitter_calls_listeners_once():
    emitter = EventEmitter()
    calls = []
    emitter.on("ping", calls.append)
    emitter.on("ping", calls.append)
    emitter.emit("ping", 1)
    assert calls == [1]


def test_failing_listener_does_not_stop_others():
    emitter = EventEmitter()
    calls = []

    def broken(_):
        raise RuntimeError("boom")

    emitter.on("ping", broken)
    emitter.on("ping", calls.append)
    emitter.emit("ping", 2)
    assert calls == [2]


def test_off_and_clear():
    events = NoteDetectionEvents()
    seen = []
    events.on_note_confirmed(seen.append)
    note = ConfirmedNote("Do", 262.5, 1.0)
    events.emit_note_confirmed(note)
    events.off_note_confirmed(seen.append)
    events.emit_note_confirmed(note)
    events.on_error(seen.append)
    events.clear()
    events.emit_error(RuntimeError("ignored"))
    assert seen == [note]


def test_observable_notifies_on_change_only():
    value = Observable(False)
    seen = []
    unsubscribe = value.subscribe(seen.append)

    assert value.set(True) is True
    assert value.set(True) is False
    unsubscribe()
    value.set(False)

    assert seen == [True]
    assert value.value is False
