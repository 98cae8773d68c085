"""Maps frequency estimates onto the solfège note table."""

from typing import ClassVar, Mapping, Optional

import numpy as np

from ..logger import get_logger
from ..note_utils import NOTE_FREQUENCIES

logger = get_logger(__name__)


class NoteClassifier:
    """Nearest-note lookup with a relative tolerance.

    A frequency is accepted only inside ``[min_frequency, max_frequency]``
    and only when it lies within ``tolerance`` (as a fraction of the target)
    of the closest table entry. Ties go to the entry listed first.
    """

    MIN_FREQUENCY: ClassVar[float] = 200.0  # Hz
    MAX_FREQUENCY: ClassVar[float] = 600.0  # Hz
    TOLERANCE: ClassVar[float] = 0.06  # 6% of the target frequency

    def __init__(
        self,
        note_frequencies: Optional[Mapping[str, float]] = None,
        min_frequency: Optional[float] = None,
        max_frequency: Optional[float] = None,
        tolerance: Optional[float] = None,
    ) -> None:
        self._table = dict(
            note_frequencies if note_frequencies is not None else NOTE_FREQUENCIES
        )
        if not self._table:
            raise ValueError("Note table must not be empty")

        self._min_frequency = float(
            min_frequency if min_frequency is not None else self.MIN_FREQUENCY
        )
        self._max_frequency = float(
            max_frequency if max_frequency is not None else self.MAX_FREQUENCY
        )
        self._tolerance = float(tolerance if tolerance is not None else self.TOLERANCE)

    @property
    def notes(self):
        return tuple(self._table)

    def nearest(self, frequency: float):
        """Return ``(note, target_frequency)`` of the closest table entry."""
        best_note = None
        best_target = 0.0
        best_distance = float("inf")
        for note, target in self._table.items():
            distance = abs(frequency - target)
            if distance < best_distance:
                best_note, best_target, best_distance = note, target, distance
        return best_note, best_target

    def classify(self, frequency: Optional[float]) -> Optional[str]:
        """Classify a frequency estimate.

        Args:
            frequency: Estimate in Hz, or None for no signal

        Returns:
            The note id, or None if out of range or outside tolerance
        """
        if frequency is None or not np.isfinite(frequency):
            return None

        if frequency < self._min_frequency or frequency > self._max_frequency:
            return None

        note, target = self.nearest(frequency)
        if abs(frequency - target) < self._tolerance * target:
            return note

        logger.debug(
            f"{frequency:.1f}Hz outside tolerance of nearest note {note} ({target:.2f}Hz)"
        )
        return None
