import unittest
from piano_kids.note_matcher import NoteMatcher


class TestNoteMatcher(unittest.TestCase):
    def test_exact_match(self):
        self.assertTrue(NoteMatcher.match("Do", "Do"))
        self.assertTrue(NoteMatcher.match("Sol", "Sol"))

    def test_case_insensitive(self):
        self.assertTrue(NoteMatcher.match("Do", "do"))
        self.assertTrue(NoteMatcher.match("Sol", "SOL"))
        self.assertTrue(NoteMatcher.match("la", "La"))

    def test_accent_insensitive(self):
        self.assertTrue(NoteMatcher.match("Ré", "Re"))
        self.assertTrue(NoteMatcher.match("Re", "RÉ"))
        self.assertTrue(NoteMatcher.match("ré", " re "))

    def test_letter_aliases(self):
        self.assertTrue(NoteMatcher.match("Do", "C"))
        self.assertTrue(NoteMatcher.match("Ré", "d"))
        self.assertTrue(NoteMatcher.match("G", "Sol"))
        self.assertTrue(NoteMatcher.match("B", "si"))

    def test_negative_cases(self):
        self.assertFalse(NoteMatcher.match("Do", "Ré"))
        self.assertFalse(NoteMatcher.match("Mi", "Fa"))
        self.assertFalse(NoteMatcher.match("La", "G"))

    def test_empty_input(self):
        self.assertFalse(NoteMatcher.match("", "Do"))
        self.assertFalse(NoteMatcher.match("Do", None))

    def test_unknown_names_still_compare(self):
        self.assertTrue(NoteMatcher.match("Ut", "ut"))
        self.assertFalse(NoteMatcher.match("Ut", "Do"))


if __name__ == "__main__":
    unittest.main()
