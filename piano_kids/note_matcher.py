from typing import Optional

from .logger import get_logger
from .note_utils import canonical_note, normalize_note_name

# Get logger for this module
logger = get_logger(__name__)


class NoteMatcher:
    """
    Encapsulates logic for comparing played notes to expected notes.

    Comparison ignores case and accents ('re' matches 'Ré') and accepts
    letter names as aliases of their solfège syllable ('G' matches 'Sol').
    """

    @staticmethod
    def normalize(note: Optional[str]) -> str:
        """Return the comparison key for a note name."""
        if note is None:
            return ""
        canonical = canonical_note(note)
        if canonical is not None:
            return normalize_note_name(canonical)
        # Unknown names still compare case- and accent-insensitively
        return normalize_note_name(note)

    @classmethod
    def match(cls, expected: Optional[str], played: Optional[str]) -> bool:
        """
        Check if the played note matches the expected note.

        Args:
            expected: The expected note (e.g., 'Ré', 'D')
            played: The played note (e.g., 're', 'RÉ', 'D')
        Returns:
            bool: True if the notes name the same pitch class
        """
        expected_key = cls.normalize(expected)
        played_key = cls.normalize(played)

        if not expected_key or not played_key:
            logger.warning(f"Empty input - expected: {expected!r}, played: {played!r}")
            return False

        result = expected_key == played_key
        logger.debug(
            f"Note played: '{played_key}' | Expected: '{expected_key}' | Match: {result}"
        )
        return result
