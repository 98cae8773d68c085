"""Scores a learner's notes against a level's expected sequence."""

from dataclasses import dataclass, replace
from typing import ClassVar, Optional, Sequence, Union

from .core.events import Observable
from .core.interfaces import IProgressRepository
from .logger import get_logger
from .note_matcher import NoteMatcher
from .note_types import ExpectedSequence, ProgressRecord, ProgressState

logger = get_logger(__name__)


@dataclass(frozen=True)
class StarPolicy:
    """Score cutoffs (inclusive) for 3, 2 and 1 stars."""

    three: int
    two: int
    one: int

    DEFAULT: ClassVar["StarPolicy"]
    LESSON: ClassVar["StarPolicy"]

    def __post_init__(self):
        if not self.three >= self.two >= self.one:
            raise ValueError(
                f"Star thresholds must be non-increasing, got {self.three}/{self.two}/{self.one}"
            )

    @classmethod
    def from_thresholds(cls, thresholds: Sequence[int]) -> "StarPolicy":
        three, two, one = (int(t) for t in thresholds)
        return cls(three=three, two=two, one=one)

    def rate(self, score: float) -> int:
        if score >= self.three:
            return 3
        if score >= self.two:
            return 2
        if score >= self.one:
            return 1
        return 0


# Level screens rate with 90/70/40; the free-play lesson mode used 90/70/50
StarPolicy.DEFAULT = StarPolicy(three=90, two=70, one=40)
StarPolicy.LESSON = StarPolicy(three=90, two=70, one=50)


def score_for(progress: float) -> int:
    """Percentage score for a progress fraction."""
    return int(round(progress * 100))


class SequenceMatcher:
    """State machine tracking progress through an expected note sequence.

    Not thread-safe: drive it from a single owner (usually the consumer
    thread draining detection events). Every change publishes a new
    ProgressState on ``progress``.
    """

    MAX_WRONG_ATTEMPTS: ClassVar[int] = 3
    WRONG_MESSAGE: ClassVar[str] = "Wrong note! Try again!"

    def __init__(
        self,
        max_wrong_attempts: Optional[int] = None,
        star_policy: Optional[StarPolicy] = None,
        wrong_message: Optional[str] = None,
    ) -> None:
        self._max_wrong_attempts = max(
            1, int(max_wrong_attempts or self.MAX_WRONG_ATTEMPTS)
        )
        self._star_policy = star_policy or StarPolicy.DEFAULT
        self._wrong_message = wrong_message or self.WRONG_MESSAGE
        self._matcher = NoteMatcher()

        self._sequence = ExpectedSequence()
        self.progress: Observable[ProgressState] = Observable(ProgressState())

    @property
    def state(self) -> ProgressState:
        return self.progress.value

    @property
    def sequence(self) -> ExpectedSequence:
        return self._sequence

    @property
    def star_policy(self) -> StarPolicy:
        return self._star_policy

    @property
    def expected_note(self) -> Optional[str]:
        """The note the learner must play next, or None when finished."""
        index = self.state.current_index
        if self.state.finished or index >= len(self._sequence):
            return None
        return self._sequence[index]

    def load_level(
        self,
        expected_notes: Union[ExpectedSequence, Sequence[str]],
        durations: Optional[Sequence[float]] = None,
        level_id: Optional[str] = None,
    ) -> ProgressState:
        """Install a new expected sequence and start from scratch.

        Raises:
            InvalidSequenceError: If the level data is malformed
        """
        if isinstance(expected_notes, ExpectedSequence):
            sequence = expected_notes
        else:
            sequence = ExpectedSequence.from_notes(
                expected_notes, durations=durations, level_id=level_id
            )

        self._sequence = sequence
        logger.info(
            f"Loaded level {sequence.level_id or '<unnamed>'} with {len(sequence)} notes"
        )
        return self._publish(ProgressState())

    def reset_session(self) -> ProgressState:
        """Return to the initial state, keeping the loaded sequence."""
        logger.info("Session reset")
        return self._publish(ProgressState())

    def clear_wrong_feedback(self) -> ProgressState:
        """Dismiss the transient wrong-note feedback."""
        state = self.state
        if not state.show_wrong_feedback:
            return state
        return self._publish(replace(state, show_wrong_feedback=False))

    def on_note_played(self, note: str) -> ProgressState:
        """Apply one discrete note event.

        Args:
            note: The played note, from detection or a virtual key press

        Returns:
            The resulting ProgressState
        """
        state = self.state
        total = len(self._sequence)

        if state.finished or total == 0 or state.current_index >= total:
            return state

        expected = self._sequence[state.current_index]
        if self._matcher.match(expected, note):
            return self._on_correct(state, total)
        return self._on_wrong(state, total, note, expected)

    # The virtual keyboard produces the same events as detection
    on_key_pressed = on_note_played

    def _on_correct(self, state: ProgressState, total: int) -> ProgressState:
        new_index = state.current_index + 1
        cleared = replace(
            state,
            current_index=new_index,
            wrong_count=0,
            show_wrong_feedback=False,
            wrong_message=None,
        )

        if new_index == total:
            score = score_for(1.0)
            logger.info(f"Level completed with score {score}")
            return self._publish(
                replace(
                    cleared,
                    progress=1.0,
                    completed=True,
                    score=score,
                    stars=self._star_policy.rate(score),
                )
            )

        return self._publish(replace(cleared, progress=new_index / total))

    def _on_wrong(
        self, state: ProgressState, total: int, note: str, expected: str
    ) -> ProgressState:
        wrong_count = state.wrong_count + 1
        logger.info(
            f"Wrong note {note!r} (expected {expected!r}), "
            f"attempt {wrong_count}/{self._max_wrong_attempts}"
        )

        if wrong_count >= self._max_wrong_attempts:
            score = score_for(state.progress)
            logger.info(f"Level failed at note {state.current_index + 1}/{total}")
            return self._publish(
                replace(
                    state,
                    failed=True,
                    wrong_count=0,
                    show_wrong_feedback=False,
                    wrong_message=None,
                    score=score,
                    stars=self._star_policy.rate(score),
                )
            )

        return self._publish(
            replace(
                state,
                wrong_count=wrong_count,
                show_wrong_feedback=True,
                wrong_message=self._wrong_message,
            )
        )

    def _publish(self, state: ProgressState) -> ProgressState:
        self.progress.set(state)
        return state

    def save_progress(self, user_id: str, repository: IProgressRepository) -> bool:
        """Send the current result to a progress repository.

        Returns:
            What the repository reports, or False if no level is loaded
        """
        if len(self._sequence) == 0:
            logger.warning("No level loaded, nothing to save")
            return False

        state = self.state
        record = ProgressRecord(
            user_id=user_id,
            level_id=self._sequence.level_id,
            stars=state.stars,
            score=state.score,
            completed=state.completed,
        )
        saved = repository.save(record)
        if saved:
            logger.info(
                f"Saved progress for {user_id}: level={record.level_id}, "
                f"score={record.score}, stars={record.stars}"
            )
        else:
            logger.error(f"Failed to save progress for {user_id}")
        return saved
