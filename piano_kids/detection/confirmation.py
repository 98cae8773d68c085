import logging
from typing import Optional

from ..note_types import ConfirmedNote

logger = logging.getLogger(__name__)


class ConfirmationDebouncer:
    """
    Turns a jittery stream of per-block classifications into discrete note events.

    A note is a confirmation candidate once it has been classified
    ``confirmation_count`` times in a row. The candidate is emitted if it
    differs from the last confirmed note, or if at least ``retrigger_ms``
    have passed since that confirmation. Either way the debouncer then goes
    back to idle.
    """

    CONFIRMATION_COUNT = 2
    RETRIGGER_MS = 150.0

    def __init__(
        self,
        confirmation_count: Optional[int] = None,
        retrigger_ms: Optional[float] = None,
    ):
        self._confirmation_count = max(
            1,
            int(
                confirmation_count
                if confirmation_count is not None
                else self.CONFIRMATION_COUNT
            ),
        )
        self._retrigger_s = (
            float(retrigger_ms if retrigger_ms is not None else self.RETRIGGER_MS) / 1000.0
        )

        self._pending_note: Optional[str] = None
        self._pending_count = 0
        self._pending_frequency: Optional[float] = None
        self._last_confirmed: Optional[ConfirmedNote] = None

    @property
    def pending_note(self) -> Optional[str]:
        return self._pending_note

    @property
    def pending_count(self) -> int:
        return self._pending_count

    @property
    def last_confirmed(self) -> Optional[ConfirmedNote]:
        return self._last_confirmed

    def reset(self) -> None:
        """Forget the pending candidate and the last confirmation."""
        self._clear_pending()
        self._last_confirmed = None

    def _clear_pending(self) -> None:
        self._pending_note = None
        self._pending_count = 0
        self._pending_frequency = None

    def update(
        self,
        note: Optional[str],
        timestamp: float,
        frequency: Optional[float] = None,
    ) -> Optional[ConfirmedNote]:
        """Feed one classification.

        Args:
            note: Classified note, or None for no note / no signal
            timestamp: Time of the read, in seconds
            frequency: Estimate behind the classification, if known

        Returns:
            A ConfirmedNote when this read confirms a note, None otherwise
        """
        if note is None:
            if self._pending_note is not None:
                logger.debug(f"Dropped candidate {self._pending_note}")
            self._clear_pending()
            return None

        if note == self._pending_note:
            self._pending_count += 1
        else:
            self._pending_note = note
            self._pending_count = 1
        self._pending_frequency = frequency

        if self._pending_count < self._confirmation_count:
            return None

        candidate = ConfirmedNote(
            note_name=note,
            frequency=frequency if frequency is not None else 0.0,
            timestamp=timestamp,
        )
        self._clear_pending()

        last = self._last_confirmed
        if (
            last is not None
            and last.note_name == candidate.note_name
            and timestamp - last.timestamp < self._retrigger_s
        ):
            logger.debug(
                f"Suppressed re-trigger of {note} after "
                f"{(timestamp - last.timestamp) * 1000:.0f}ms"
            )
            return None

        self._last_confirmed = candidate
        logger.info(f"Confirmed note: {note}")
        return candidate
