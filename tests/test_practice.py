import unittest

from piano_kids.audio.note_detection_service import NoteDetectionService
from piano_kids.errors import AudioReadError
from piano_kids.note_types import ConfirmedNote
from piano_kids.practice import PracticeSession

from conftest import FakeAudioInput, FakeClock, make_sine


def confirmed(note_name):
    return ConfirmedNote(note_name=note_name, frequency=0.0, timestamp=0.0)


class TestPracticeSession(unittest.TestCase):
    def setUp(self):
        self.clock = FakeClock()
        self.session = PracticeSession(clock=self.clock)
        self.session.start(["Do", "Mi", "Sol"], level_id="l1")

    def test_notes_apply_only_when_processed(self):
        self.session.note_detected_callback(confirmed("Do"))
        self.assertEqual(self.session.state.current_index, 0)
        self.assertEqual(self.session.process_events(), 1)
        self.assertEqual(self.session.state.current_index, 1)

    def test_stats(self):
        self.clock.advance(1.5)
        self.session.press_key("Do")
        self.session.press_key("La")
        self.session.process_events()

        stats = self.session.stats
        self.assertEqual(stats["total_notes"], 2)
        self.assertEqual(stats["correct_notes"], 1)
        self.assertEqual(stats["wrong_notes"], 1)
        self.assertEqual(stats["times"], [1.5])
        self.assertEqual(stats["notes_played"], {"Do": 1, "La": 1})

    def test_completion_stops_session(self):
        for note in ["Do", "Mi", "Sol", "Do"]:
            self.session.press_key(note)
        self.session.process_events()

        self.assertTrue(self.session.state.completed)
        self.assertFalse(self.session.running)
        # The trailing Do arrived after completion and was ignored
        self.assertEqual(self.session.stats["total_notes"], 3)

    def test_no_callback_when_not_running(self):
        self.session.stop()
        self.session.note_detected_callback(confirmed("Do"))
        self.session.press_key("Do")
        self.assertEqual(self.session.process_events(), 0)

    def test_reset_restarts_level(self):
        self.session.press_key("Do")
        self.session.process_events()
        self.session.stop()

        self.session.reset()
        self.assertTrue(self.session.running)
        self.assertEqual(self.session.state.current_index, 0)
        self.assertEqual(self.session.stats["total_notes"], 0)


class TestPracticeWithDetector(unittest.TestCase):
    def test_detected_notes_drive_matcher(self):
        blocks = [make_sine(261.63)] * 3 + [make_sine(329.63)] * 2
        service = NoteDetectionService(
            FakeAudioInput(blocks), clock=FakeClock(step=0.6)
        )
        session = PracticeSession(service)

        session.start(["Do", "Mi"])
        self.assertTrue(service.wait(2.0))
        session.process_events()

        self.assertTrue(session.state.completed)
        self.assertEqual(session.state.score, 100)
        self.assertFalse(session.running)
        self.assertFalse(service.is_active())

    def test_read_failure_ends_session(self):
        audio_input = FakeAudioInput(read_error=AudioReadError("lost"))
        service = NoteDetectionService(audio_input, settle_ms=0)
        session = PracticeSession(service)

        session.start(["Do", "Mi"])
        self.assertTrue(service.wait(2.0))

        self.assertFalse(service.is_active())
        self.assertFalse(session.running)
        self.assertFalse(session.state.finished)
        # Listening is not restarted behind the caller's back
        self.assertEqual(audio_input.open_count, 1)

    def test_notes_heard_before_end_of_stream_still_apply(self):
        blocks = [make_sine(261.63)] * 2
        service = NoteDetectionService(
            FakeAudioInput(blocks), clock=FakeClock(step=0.6)
        )
        session = PracticeSession(service)

        session.start(["Do", "Mi"])
        self.assertTrue(service.wait(2.0))
        self.assertFalse(session.running)

        self.assertEqual(session.process_events(), 1)
        self.assertEqual(session.state.current_index, 1)


if __name__ == "__main__":
    unittest.main()
