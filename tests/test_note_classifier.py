import math
import unittest

import pytest

from piano_kids.audio.note_classifier import NoteClassifier
from piano_kids.note_utils import NOTE_FREQUENCIES


class TestNoteClassifier(unittest.TestCase):
    def setUp(self):
        self.classifier = NoteClassifier()

    def test_exact_table_frequencies(self):
        for note, frequency in NOTE_FREQUENCIES.items():
            self.assertEqual(self.classifier.classify(frequency), note)

    def test_no_signal(self):
        self.assertIsNone(self.classifier.classify(None))
        self.assertIsNone(self.classifier.classify(math.nan))

    def test_out_of_range(self):
        self.assertIsNone(self.classifier.classify(199.9))
        self.assertIsNone(self.classifier.classify(600.1))
        self.assertIsNone(self.classifier.classify(0.0))

    def test_range_bounds_are_inclusive(self):
        classifier = NoteClassifier({"A": 200.0, "B": 600.0})
        self.assertEqual(classifier.classify(200.0), "A")
        self.assertEqual(classifier.classify(600.0), "B")

    def test_within_tolerance_of_single_entry(self):
        classifier = NoteClassifier({"Mi": 329.63})
        self.assertEqual(classifier.classify(329.63 * 1.059), "Mi")
        self.assertEqual(classifier.classify(329.63 / 1.059), "Mi")

    def test_outside_tolerance_of_single_entry(self):
        classifier = NoteClassifier({"Mi": 329.63})
        self.assertIsNone(classifier.classify(329.63 * 1.061))
        self.assertIsNone(classifier.classify(329.63 * 0.939))

    def test_nearest_entry_wins_over_tolerance(self):
        # Mi * 1.059 is closer to Fa than to Mi
        self.assertEqual(self.classifier.classify(329.63 * 1.059), "Fa")
        self.assertEqual(self.classifier.classify(300.0), "Ré")
        self.assertEqual(self.classifier.classify(430.0), "La")

    def test_gap_above_table(self):
        # Nearest is Si but 560 Hz is more than 6% away
        self.assertIsNone(self.classifier.classify(560.0))

    def test_ties_go_to_first_entry(self):
        classifier = NoteClassifier({"Low": 300.0, "High": 310.0})
        self.assertEqual(classifier.classify(305.0), "Low")

    def test_nearest(self):
        self.assertEqual(self.classifier.nearest(441.0), ("La", 440.0))

    def test_notes_in_table_order(self):
        self.assertEqual(
            self.classifier.notes, ("Do", "Ré", "Mi", "Fa", "Sol", "La", "Si")
        )

    def test_empty_table_rejected(self):
        with self.assertRaises(ValueError):
            NoteClassifier({})


# Mi and Fa are about 5.9% apart, so Mi's upper tolerance edge lands on Fa
ISOLATED_FROM_UPPER_NEIGHBOUR = [
    pytest.param(note, frequency, id=note)
    for note, frequency in NOTE_FREQUENCIES.items()
    if note != "Mi"
]


@pytest.mark.parametrize("note,frequency", ISOLATED_FROM_UPPER_NEIGHBOUR)
def test_full_table_accepts_just_inside_tolerance(note, frequency):
    assert NoteClassifier().classify(frequency * 1.059) == note


@pytest.mark.parametrize("note,frequency", ISOLATED_FROM_UPPER_NEIGHBOUR)
def test_full_table_rejects_just_outside_tolerance(note, frequency):
    assert NoteClassifier().classify(frequency * 1.061) is None


def test_full_table_mi_upper_edge_goes_to_fa():
    mi = NOTE_FREQUENCIES["Mi"]
    assert NoteClassifier().classify(mi * 1.059) == "Fa"
    assert NoteClassifier().classify(mi * 1.061) == "Fa"


@pytest.mark.parametrize("note,frequency", list(NOTE_FREQUENCIES.items()))
def test_single_entry_tolerance_boundary(note, frequency):
    classifier = NoteClassifier({note: frequency})
    assert classifier.classify(frequency * 1.059) == note
    assert classifier.classify(frequency * 1.061) is None


if __name__ == "__main__":
    unittest.main()
