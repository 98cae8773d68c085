import unittest

from piano_kids.note_utils import (
    NOTE_FREQUENCIES,
    SOLFEGE_NOTES,
    canonical_note,
    get_note_name,
    normalize_note_name,
)


class TestNoteTable(unittest.TestCase):
    def test_table_order(self):
        self.assertEqual(SOLFEGE_NOTES, ("Do", "Ré", "Mi", "Fa", "Sol", "La", "Si"))

    def test_table_is_read_only(self):
        with self.assertRaises(TypeError):
            NOTE_FREQUENCIES["Do"] = 0.0

    def test_frequencies_ascend(self):
        values = list(NOTE_FREQUENCIES.values())
        self.assertEqual(values, sorted(values))
        self.assertEqual(NOTE_FREQUENCIES["La"], 440.0)


class TestNoteNames(unittest.TestCase):
    def test_normalize(self):
        self.assertEqual(normalize_note_name("Ré"), "re")
        self.assertEqual(normalize_note_name("  SOL "), "sol")
        self.assertEqual(normalize_note_name(None), "")

    def test_canonical(self):
        self.assertEqual(canonical_note("re"), "Ré")
        self.assertEqual(canonical_note("RÉ"), "Ré")
        self.assertEqual(canonical_note("g"), "Sol")
        self.assertIsNone(canonical_note("Do#"))
        self.assertIsNone(canonical_note(""))


class TestScientificPitchNotation(unittest.TestCase):
    def test_middle_c(self):
        # Middle C (C4) should be ~261.63 Hz
        self.assertEqual(get_note_name(261.63), "C4")

    def test_a4(self):
        self.assertEqual(get_note_name(440.0), "A4")

    def test_octave_transitions(self):
        self.assertEqual(get_note_name(246.94), "B3")
        self.assertEqual(get_note_name(493.88), "B4")

    def test_sharps(self):
        self.assertEqual(get_note_name(277.18), "C#4")

    def test_no_pitch(self):
        self.assertEqual(get_note_name(0), "---")
        self.assertEqual(get_note_name(None), "---")


if __name__ == "__main__":
    unittest.main()
