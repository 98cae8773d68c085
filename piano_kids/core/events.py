"""Event system for Piano Kids components."""

import threading
from enum import Enum, auto
from typing import Any, Callable, Dict, Generic, List, TypeVar

from ..logger import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


class NoteDetectionEventType(Enum):
    """Event types for note detection."""

    NOTE_CONFIRMED = auto()
    LISTENING_CHANGED = auto()
    ERROR = auto()


class EventEmitter:
    """Event emitter for Piano Kids components."""

    def __init__(self):
        """Initialize the event emitter."""
        self._listeners: Dict[Any, List[Callable]] = {}
        self._lock = threading.Lock()

    def on(self, event_type: Any, callback: Callable) -> None:
        """Register a callback for an event type.

        Args:
            event_type: Event type to listen for
            callback: Function to call when the event occurs
        """
        with self._lock:
            listeners = self._listeners.setdefault(event_type, [])
            if callback not in listeners:
                listeners.append(callback)
                logger.debug(f"Added listener for event {event_type}")

    def off(self, event_type: Any, callback: Callable) -> None:
        """Remove a previously registered callback."""
        with self._lock:
            listeners = self._listeners.get(event_type, [])
            if callback in listeners:
                listeners.remove(callback)

    def emit(self, event_type: Any, *args, **kwargs) -> None:
        """Emit an event.

        A failing listener is logged and does not stop the others.

        Args:
            event_type: Event type to emit
            *args: Positional arguments to pass to listeners
            **kwargs: Keyword arguments to pass to listeners
        """
        with self._lock:
            listeners = list(self._listeners.get(event_type, []))

        for callback in listeners:
            try:
                callback(*args, **kwargs)
            except Exception as e:
                logger.error(
                    f"Error in event listener for {event_type}: {e}", exc_info=True
                )

    def clear(self) -> None:
        """Remove all event listeners."""
        with self._lock:
            self._listeners = {}
        logger.debug("Cleared all event listeners")


class NoteDetectionEvents:
    """Event emitter specifically for note detection events."""

    def __init__(self):
        """Initialize the note detection events."""
        self._emitter = EventEmitter()

    def on_note_confirmed(self, callback: Callable) -> None:
        """Register a callback receiving each ConfirmedNote."""
        self._emitter.on(NoteDetectionEventType.NOTE_CONFIRMED, callback)

    def on_listening_changed(self, callback: Callable) -> None:
        self._emitter.on(NoteDetectionEventType.LISTENING_CHANGED, callback)

    def on_error(self, callback: Callable) -> None:
        """Register a callback receiving exceptions that ended a session."""
        self._emitter.on(NoteDetectionEventType.ERROR, callback)

    def off_note_confirmed(self, callback: Callable) -> None:
        self._emitter.off(NoteDetectionEventType.NOTE_CONFIRMED, callback)

    def emit_note_confirmed(self, note) -> None:
        self._emitter.emit(NoteDetectionEventType.NOTE_CONFIRMED, note)

    def emit_listening_changed(self, listening: bool) -> None:
        self._emitter.emit(NoteDetectionEventType.LISTENING_CHANGED, listening)

    def emit_error(self, error: Exception) -> None:
        self._emitter.emit(NoteDetectionEventType.ERROR, error)

    def clear(self) -> None:
        """Remove all event listeners."""
        self._emitter.clear()


class Observable(Generic[T]):
    """A single-writer, multi-reader value holder.

    Reading ``value`` never blocks. ``set`` publishes a new value and notifies
    subscribers only when it differs from the current one.
    """

    def __init__(self, initial: T):
        self._value = initial
        self._lock = threading.Lock()
        self._subscribers: List[Callable[[T], None]] = []

    @property
    def value(self) -> T:
        return self._value

    def set(self, value: T) -> bool:
        """Publish a value. Returns True if subscribers were notified."""
        with self._lock:
            if value == self._value:
                return False
            self._value = value
            subscribers = list(self._subscribers)

        for callback in subscribers:
            try:
                callback(value)
            except Exception as e:
                logger.error(f"Error in observable subscriber: {e}", exc_info=True)
        return True

    def subscribe(self, callback: Callable[[T], None]) -> Callable[[], None]:
        """Register a change callback; returns a function that unsubscribes it."""
        with self._lock:
            self._subscribers.append(callback)

        def unsubscribe() -> None:
            with self._lock:
                if callback in self._subscribers:
                    self._subscribers.remove(callback)

        return unsubscribe
