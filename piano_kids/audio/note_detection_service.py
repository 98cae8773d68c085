"""Note detection service that integrates audio input and note detection."""

from __future__ import annotations
import threading
import time
from typing import Callable, ClassVar, Optional

import numpy as np

from ..logger import get_logger
from ..core.events import NoteDetectionEvents, Observable
from ..core.interfaces import IAudioInput, INoteDetectionService, IPitchEstimator
from ..detection.confirmation import ConfirmationDebouncer
from ..errors import AudioReadError, AudioSetupError
from ..note_types import ConfirmedNote, DetectionSnapshot
from .frequency import FrequencyEstimator
from .note_classifier import NoteClassifier

logger = get_logger(__name__)


class NoteDetectionService(INoteDetectionService):
    """Microphone-driven detection loop: estimate, classify, debounce.

    Each listening session runs one worker thread that blocks on
    ``audio_input.read`` and pushes every block through the pipeline in
    capture order. Results are published through the ``listening``,
    ``frequency`` and ``detected_note`` observables and as ConfirmedNote
    events on ``events``.

    Lifecycle: create -> start_listening -> stop_listening -> close.
    """

    BLOCK_SIZE: ClassVar[int] = 8192  # Samples per read
    SETTLE_MS: ClassVar[float] = 500.0  # Discard input while the device settles
    STOP_TIMEOUT: ClassVar[float] = 1.0  # Seconds to wait for the worker on stop

    def __init__(
        self,
        audio_input: IAudioInput,
        estimator: Optional[IPitchEstimator] = None,
        classifier: Optional[NoteClassifier] = None,
        debouncer: Optional[ConfirmationDebouncer] = None,
        block_size: Optional[int] = None,
        settle_ms: Optional[float] = None,
        stop_timeout: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize the note detection service.

        Args:
            audio_input: Blocking audio source owned by this service
            estimator: Pitch estimator, or None for an autocorrelation one at the input's rate
            classifier: Note classifier, or None for the default note table
            debouncer: Confirmation debouncer, or None for default settings
            block_size: Samples requested per read
            settle_ms: Milliseconds of input dropped after each start
            stop_timeout: Seconds to wait for the worker when stopping
            clock: Monotonic time source in seconds
        """
        self._audio_input = audio_input
        self._estimator = estimator or FrequencyEstimator(
            sample_rate=audio_input.sample_rate
        )
        self._classifier = classifier or NoteClassifier()
        self._debouncer = debouncer or ConfirmationDebouncer()
        self._block_size = int(block_size or self.BLOCK_SIZE)
        self._settle_s = float(settle_ms if settle_ms is not None else self.SETTLE_MS) / 1000.0
        self._stop_timeout = float(
            stop_timeout if stop_timeout is not None else self.STOP_TIMEOUT
        )
        self._clock = clock

        self.events = NoteDetectionEvents()
        self.listening: Observable[bool] = Observable(False)
        self.frequency: Observable[Optional[float]] = Observable(None)
        self.detected_note: Observable[Optional[str]] = Observable(None)

        self._lifecycle_lock = threading.RLock()
        self._worker: Optional[threading.Thread] = None
        self._stop_event: Optional[threading.Event] = None
        self._started_at: Optional[float] = None
        self._session_callback: Optional[Callable[[ConfirmedNote], None]] = None

    def start_listening(
        self, on_confirmed_note: Optional[Callable[[ConfirmedNote], None]] = None
    ) -> None:
        """Start a listening session.

        Any session already running is torn down first.

        Args:
            on_confirmed_note: Optional callback for this session's confirmed notes.
                It runs on the worker thread.

        Raises:
            MicrophonePermissionError: If there is no microphone access
            AudioSetupError: If the input cannot be acquired
        """
        with self._lifecycle_lock:
            if self.is_active():
                logger.info("Restarting: stopping the current session first")
            self.stop_listening()

            # Permission problems are fatal and must surface before acquisition
            check_access = getattr(self._audio_input, "check_access", None)
            if check_access is not None:
                check_access()

            try:
                self._audio_input.open()
            except AudioSetupError:
                self._audio_input.close()
                raise
            except Exception as e:
                self._audio_input.close()
                raise AudioSetupError(f"Failed to start audio input: {e}") from e

            self._debouncer.reset()
            if on_confirmed_note is not None:
                self._session_callback = on_confirmed_note
                self.events.on_note_confirmed(on_confirmed_note)

            stop_event = threading.Event()
            self._stop_event = stop_event
            self._started_at = self._clock()
            self._worker = threading.Thread(
                target=self._run,
                args=(stop_event,),
                name="piano-kids-detector",
                daemon=True,
            )
            self._publish_listening(True)
            self._worker.start()
            logger.info("Note detection started")

    def stop_listening(self) -> None:
        """Stop the session and release the audio input. Safe to call when idle."""
        with self._lifecycle_lock:
            worker, stop_event = self._worker, self._stop_event
            self._worker = None
            self._stop_event = None

            if stop_event is not None:
                stop_event.set()
            if worker is not None and worker is not threading.current_thread():
                worker.join(self._stop_timeout)
                if worker.is_alive():
                    logger.warning(
                        f"Detection worker did not stop within {self._stop_timeout:.1f}s"
                    )

            self._audio_input.close()
            self._end_session()
            if worker is not None:
                logger.info("Note detection stopped")

    def close(self) -> None:
        """Stop listening and drop every listener."""
        self.stop_listening()
        self.events.clear()

    def __enter__(self) -> "NoteDetectionService":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def is_active(self) -> bool:
        return self.listening.value

    def get_current_note(self) -> Optional[str]:
        return self.detected_note.value

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until the worker exits on its own (e.g. end of file).

        Returns:
            True if no session is running any more
        """
        worker = self._worker
        if worker is not None:
            worker.join(timeout)
            return not worker.is_alive()
        return True

    def snapshot(self) -> DetectionSnapshot:
        return DetectionSnapshot(
            listening=self.listening.value,
            frequency=self.frequency.value,
            note_name=self.detected_note.value,
            started_at=self._started_at,
            pending_note=self._debouncer.pending_note,
            pending_count=self._debouncer.pending_count,
        )

    def _run(self, stop_event: threading.Event) -> None:
        """Worker loop; exits when the stop flag is set or the input fails."""
        ended_by_input = False
        try:
            while not stop_event.is_set():
                try:
                    block = self._audio_input.read(self._block_size)
                except AudioReadError as e:
                    if stop_event.is_set():
                        # The input was closed under a blocked read by stop_listening
                        logger.debug(f"Read interrupted by stop: {e}")
                        break
                    logger.warning(f"Audio read failed, stopping: {e}")
                    self.events.emit_error(e)
                    ended_by_input = True
                    break

                if stop_event.is_set():
                    break
                if block is None or len(block) == 0:
                    logger.info("Audio input reached end of stream")
                    ended_by_input = True
                    break

                self.process_block(block, self._clock())
        except Exception as e:
            logger.error(f"Error in detection loop: {e}", exc_info=True)
            self.events.emit_error(e)
            ended_by_input = True
        finally:
            if ended_by_input:
                self._finish_from_worker(stop_event)

    def _finish_from_worker(self, stop_event: threading.Event) -> None:
        """Implicit stop: the worker releases the input itself.

        Does not take the lifecycle lock, since stop_listening may hold it
        while joining this thread.
        """
        if stop_event.is_set():
            # stop_listening or a restart already took over
            return
        stop_event.set()
        self._audio_input.close()
        self._end_session()

    def process_block(self, block: np.ndarray, timestamp: float) -> Optional[ConfirmedNote]:
        """Run one captured block through estimate, classify and debounce.

        Args:
            block: PCM samples as read from the input
            timestamp: Capture time on the service clock

        Returns:
            The ConfirmedNote emitted for this block, if any
        """
        if self._started_at is not None and timestamp - self._started_at < self._settle_s:
            logger.debug("Discarding block while input settles")
            return None

        frequency = self._estimator.estimate(block)
        if frequency is not None:
            self.frequency.set(frequency)

        note = self._classifier.classify(frequency)
        confirmed = self._debouncer.update(note, timestamp, frequency)
        if confirmed is None:
            return None

        self.detected_note.set(confirmed.note_name)
        logger.debug(
            f"[{timestamp - (self._started_at or timestamp):.2f}s] "
            f"{confirmed.note_name} ({confirmed.frequency:.1f}Hz)"
        )
        self.events.emit_note_confirmed(confirmed)
        return confirmed

    def _publish_listening(self, listening: bool) -> None:
        if self.listening.set(listening):
            self.events.emit_listening_changed(listening)

    def _end_session(self) -> None:
        if self._session_callback is not None:
            self.events.off_note_confirmed(self._session_callback)
            self._session_callback = None
        self._started_at = None
        self._debouncer.reset()
        self.frequency.set(None)
        self.detected_note.set(None)
        self._publish_listening(False)
