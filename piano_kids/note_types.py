"""Type definitions for the Piano Kids project."""

from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

from .errors import InvalidSequenceError
from .note_utils import canonical_note


@dataclass(frozen=True)
class ConfirmedNote:
    """A debounced detection, emitted once per discrete played note."""

    note_name: str  # Solfège id from the note table (e.g., 'Sol')
    frequency: float  # Estimate that produced the confirming read, in Hz
    timestamp: float  # Seconds on the detection clock


@dataclass(frozen=True)
class DetectionSnapshot:
    """Read-only view of a listening session, safe to hand to other threads."""

    listening: bool
    frequency: Optional[float]
    note_name: Optional[str]
    started_at: Optional[float]
    pending_note: Optional[str] = None
    pending_count: int = 0


@dataclass(frozen=True)
class ExpectedSequence:
    """The notes a learner must play in order, with optional per-note durations."""

    notes: Tuple[str, ...] = ()
    durations: Optional[Tuple[float, ...]] = None
    level_id: Optional[str] = None

    @classmethod
    def from_notes(
        cls,
        notes: Sequence[str],
        durations: Optional[Sequence[float]] = None,
        level_id: Optional[str] = None,
    ) -> "ExpectedSequence":
        """Build a sequence from raw level data.

        Letter names and unaccented spellings are accepted and stored in
        table spelling.

        Raises:
            InvalidSequenceError: If a note is unknown or the durations do
                not line up with the notes
        """
        canonical = []
        for position, note in enumerate(notes):
            name = canonical_note(note)
            if name is None:
                raise InvalidSequenceError(
                    f"Unknown note {note!r} at position {position}"
                )
            canonical.append(name)

        if durations is not None:
            durations = tuple(float(d) for d in durations)
            if len(durations) != len(canonical):
                raise InvalidSequenceError(
                    f"Got {len(durations)} durations for {len(canonical)} notes"
                )
            if any(d < 0 for d in durations):
                raise InvalidSequenceError("Note durations must not be negative")

        return cls(notes=tuple(canonical), durations=durations, level_id=level_id)

    def __len__(self) -> int:
        return len(self.notes)

    def __getitem__(self, index: int) -> str:
        return self.notes[index]

    def duration_at(self, index: int) -> Optional[float]:
        if self.durations is None:
            return None
        return self.durations[index]


@dataclass(frozen=True)
class ProgressState:
    """Snapshot of a learner's progress through an expected sequence."""

    current_index: int = 0
    progress: float = 0.0  # Fraction of the sequence played correctly (0-1)
    wrong_count: int = 0  # Wrong attempts since the last correct note
    completed: bool = False
    failed: bool = False
    score: int = 0
    stars: int = 0
    show_wrong_feedback: bool = False
    wrong_message: Optional[str] = None

    @property
    def finished(self) -> bool:
        return self.completed or self.failed


@dataclass(frozen=True)
class ProgressRecord:
    """Payload handed to a progress repository when a level is saved."""

    user_id: str
    level_id: Optional[str]
    stars: int
    score: int
    completed: bool
