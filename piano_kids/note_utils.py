"""Utility functions for working with solfège notes and frequencies."""

import unicodedata
from types import MappingProxyType
from typing import Mapping, Optional, Tuple

import numpy as np

# Middle C octave (C4 to B4), in table order. Classification ties resolve to
# the first entry, so the order matters.
NOTE_FREQUENCIES: Mapping[str, float] = MappingProxyType(
    {
        "Do": 261.63,  # C4
        "Ré": 293.66,  # D4
        "Mi": 329.63,  # E4
        "Fa": 349.23,  # F4
        "Sol": 392.00,  # G4
        "La": 440.00,  # A4
        "Si": 493.88,  # B4
    }
)

SOLFEGE_NOTES: Tuple[str, ...] = tuple(NOTE_FREQUENCIES)

LETTER_TO_SOLFEGE: Mapping[str, str] = MappingProxyType(
    {
        "C": "Do",
        "D": "Ré",
        "E": "Mi",
        "F": "Fa",
        "G": "Sol",
        "A": "La",
        "B": "Si",
    }
)

_SHARP_NOTES = ["C", "C#", "D", "D#", "E", "F", "F#", "G", "G#", "A", "A#", "B"]


def normalize_note_name(name: str) -> str:
    """Fold a note name to lowercase ASCII so 'Ré', 're' and ' RE ' compare equal."""
    if name is None:
        return ""
    decomposed = unicodedata.normalize("NFKD", str(name).strip())
    stripped = "".join(c for c in decomposed if not unicodedata.combining(c))
    return stripped.lower()


_CANONICAL = {normalize_note_name(n): n for n in SOLFEGE_NOTES}
_CANONICAL.update(
    {normalize_note_name(letter): solfege for letter, solfege in LETTER_TO_SOLFEGE.items()}
)


def canonical_note(name: str) -> Optional[str]:
    """Return the table spelling of a solfège or letter note name.

    Examples:
        >>> canonical_note("re")
        'Ré'
        >>> canonical_note("G")
        'Sol'
        >>> canonical_note("Do#") is None
        True
    """
    return _CANONICAL.get(normalize_note_name(name))


def get_note_name(freq: float) -> str:
    """Convert frequency to note name using Scientific Pitch Notation (SPN).

    Args:
        freq: Frequency in Hz

    Returns:
        Note name with octave in SPN (e.g., 'A4', 'C#4'), or '---' for no pitch
    """
    if freq is None or freq <= 0:
        return "---"

    # A4 = 440Hz is MIDI note 69
    half_steps = round(12 * np.log2(freq / 440.0))
    midi_number = 69 + half_steps

    octave = (midi_number // 12) - 1
    return f"{_SHARP_NOTES[midi_number % 12]}{octave}"
