import queue
import time
from typing import Callable, Optional, Sequence

from .audio.note_detection_service import NoteDetectionService
from .logger import get_logger
from .note_types import ConfirmedNote, ProgressState
from .sequence_matcher import SequenceMatcher

# Get logger for this module
logger = get_logger(__name__)


class PracticeSession:
    """Plays one level: detection events in, sequence scoring out.

    Confirmed notes arrive on the detection worker thread and are only
    queued there; ``process_events`` applies them to the matcher and must be
    called from the thread that owns the session (e.g. the UI loop).
    """

    def __init__(
        self,
        detection_service: Optional[NoteDetectionService] = None,
        matcher: Optional[SequenceMatcher] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize the session.

        Args:
            detection_service: Microphone input path, or None for keys only
            matcher: Sequence matcher, or None for default scoring
            clock: Time source used for per-note timings
        """
        self.detector = detection_service
        self.matcher = matcher or SequenceMatcher()
        self._clock = clock

        self.running = False
        self._unwatch_detector: Optional[Callable[[], None]] = None
        self.event_queue: "queue.Queue[str]" = queue.Queue()
        self.last_note_change_time = 0.0
        self.stats = self._empty_stats()

    @staticmethod
    def _empty_stats() -> dict:
        return {
            "total_notes": 0,
            "correct_notes": 0,
            "wrong_notes": 0,
            "times": [],
            "notes_played": {},
        }

    @property
    def state(self) -> ProgressState:
        return self.matcher.state

    def start(
        self,
        expected_notes: Sequence[str],
        durations: Optional[Sequence[float]] = None,
        level_id: Optional[str] = None,
        listen: bool = True,
    ) -> None:
        """Load a level and, if a detector is attached, start listening.

        Raises:
            InvalidSequenceError: If the level data is malformed
            AudioSetupError: If the microphone cannot be used
        """
        self.matcher.load_level(expected_notes, durations=durations, level_id=level_id)
        self._clear_queue()
        self.stats = self._empty_stats()
        self.running = True
        self.last_note_change_time = self._clock()

        if self.detector is not None and listen:
            try:
                self._start_detector()
            except Exception as e:
                logger.error(f"Error starting practice session: {e}")
                self.stop()
                raise

        logger.info(f"Practice started: {len(self.matcher.sequence)} notes to play")

    def _start_detector(self) -> None:
        """Start listening and end the session if the detector stops on its own."""
        self._stop_watching()
        self.detector.start_listening(self.note_detected_callback)
        self._unwatch_detector = self.detector.listening.subscribe(
            self._on_listening_changed
        )
        # The worker may already have ended before the subscription
        if not self.detector.is_active():
            self._on_listening_changed(False)

    def _stop_watching(self) -> None:
        if self._unwatch_detector is not None:
            self._unwatch_detector()
            self._unwatch_detector = None

    def _on_listening_changed(self, listening: bool) -> None:
        # Runs on the worker thread; notes already queued stay queued
        if listening or not self.running:
            return
        logger.warning("Note detection stopped, ending practice")
        self.running = False

    def note_detected_callback(self, note: ConfirmedNote) -> None:
        """Detection callback; runs on the worker thread and only queues."""
        if not self.running:
            return
        self.event_queue.put(note.note_name)

    def press_key(self, note: str) -> None:
        """Virtual keyboard input, queued behind any detected notes."""
        if not self.running:
            return
        self.event_queue.put(note)

    def process_events(self) -> int:
        """Apply queued notes to the matcher. Returns how many were handled.

        Notes queued before the detector stopped on its own are still applied.
        """
        handled = 0
        while True:
            try:
                note = self.event_queue.get_nowait()
            except queue.Empty:
                break
            self._handle_note(note)
            handled += 1
        return handled

    def _handle_note(self, note: str) -> None:
        before = self.matcher.state
        after = self.matcher.on_note_played(note)
        if after is before:
            # Finished or empty level; nothing applied
            return

        self.stats["total_notes"] += 1
        self.stats["notes_played"][note] = self.stats["notes_played"].get(note, 0) + 1

        if after.current_index > before.current_index:
            now = self._clock()
            self.stats["times"].append(now - self.last_note_change_time)
            self.stats["correct_notes"] += 1
            self.last_note_change_time = now
        else:
            self.stats["wrong_notes"] += 1

        if after.finished:
            outcome = "completed" if after.completed else "failed"
            logger.info(f"Practice {outcome}: score {after.score}, {after.stars} stars")
            self.stop()

    def reset(self) -> None:
        """Start the same level over, listening again if the session had ended."""
        self.matcher.reset_session()
        self._clear_queue()
        self.stats = self._empty_stats()
        self.last_note_change_time = self._clock()

        if not self.running:
            self.running = True
            if self.detector is not None:
                self._start_detector()

    def stop(self) -> None:
        """Stop the session and release the microphone."""
        self.running = False
        self._clear_queue()
        self._stop_watching()
        if self.detector is not None:
            self.detector.stop_listening()
        logger.info(
            f"Practice stopped. Correct notes: "
            f"{self.stats['correct_notes']}/{self.stats['total_notes']}"
        )

    def _clear_queue(self) -> None:
        while True:
            try:
                self.event_queue.get_nowait()
            except queue.Empty:
                break
