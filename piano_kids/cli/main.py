"""Main entry point for the Piano Kids CLI."""

import sys
import time
import argparse
from typing import List, Optional

from ..core.config import ConfigManager
from ..core.factory import ComponentFactory
from ..errors import AudioSetupError, InvalidSequenceError, MicrophonePermissionError
from ..logger import get_logger
from ..logging_config import setup_logging
from ..note_types import ConfirmedNote
from ..practice import PracticeSession
from ..progress_store import JsonProgressRepository

logger = get_logger(__name__)


def _print_note(note: ConfirmedNote) -> None:
    print(f"[{note.timestamp:7.2f}s] {note.note_name:<4} {note.frequency:7.1f} Hz")


def run_devices(factory: ComponentFactory, args: argparse.Namespace) -> int:
    """Print the audio devices that can record."""
    try:
        from ..audio.audio_input import list_input_devices
    except OSError as e:
        raise AudioSetupError(f"PortAudio is not available: {e}") from e

    devices = list_input_devices()
    if not devices:
        print("No input devices found")
        return 1

    print("Available input devices:")
    print("-" * 70)
    for device in devices:
        print(f"Device {device['id']}: {device['name']}")
        print(f"  Max input channels: {device['max_input_channels']}")
        print(f"  Default sample rate: {device['default_samplerate']} Hz")
    return 0


def run_listen(factory: ComponentFactory, args: argparse.Namespace) -> int:
    """Print every confirmed note heard on the microphone."""
    audio_input = factory.create_audio_input(device_id=args.device)
    with factory.create_note_detection_service(audio_input) as service:
        service.start_listening(_print_note)
        print(f"Listening for {args.duration:.0f}s, play some notes (Ctrl+C to stop)")
        try:
            service.wait(args.duration)
        except KeyboardInterrupt:
            print()
    return 0


def run_analyze(factory: ComponentFactory, args: argparse.Namespace) -> int:
    """Run a sound file through the detector as fast as it can be read."""
    audio_input = factory.create_audio_input("file", file_path=args.wav)
    notes: List[ConfirmedNote] = []

    # Timestamps follow the file, not the wall clock
    service = factory.create_note_detection_service(
        audio_input, clock=lambda: audio_input.position
    )

    with service:
        service.start_listening(notes.append)
        service.wait()

    for note in notes:
        _print_note(note)
    print(f"{len(notes)} notes confirmed")
    return 0


def run_play(factory: ComponentFactory, args: argparse.Namespace) -> int:
    """Play one level on the microphone and report the score."""
    expected = [n for n in args.notes.split(",") if n.strip()]
    service = factory.create_note_detection_service(
        factory.create_audio_input(device_id=args.device)
    )
    session = PracticeSession(service, factory.create_sequence_matcher())

    session.start(expected, level_id=args.level)
    print(f"Play: {' '.join(session.matcher.sequence.notes)}")

    deadline = time.monotonic() + args.duration
    shown_index = -1
    try:
        while session.running and time.monotonic() < deadline:
            session.process_events()
            state = session.state
            if state.show_wrong_feedback:
                print(f"  {state.wrong_message}")
                session.matcher.clear_wrong_feedback()
            if state.current_index != shown_index and not state.finished:
                shown_index = state.current_index
                print(f"Next note: {session.matcher.expected_note}")
            time.sleep(0.05)
        # Apply notes heard before the microphone stopped
        session.process_events()
        if not session.running and not session.state.finished:
            print("Microphone stopped")
    except KeyboardInterrupt:
        print()
    finally:
        session.stop()

    state = session.state
    result = "Completed" if state.completed else "Not completed"
    print(f"{result}: score {state.score}, {'*' * state.stars or 'no stars'}")

    if args.user:
        session.matcher.save_progress(args.user, JsonProgressRepository(args.progress_file))
    return 0 if state.completed else 2


COMMANDS = {
    "devices": run_devices,
    "listen": run_listen,
    "analyze": run_analyze,
    "play": run_play,
}


def main(args: Optional[List[str]] = None) -> int:
    """Main entry point for the CLI.

    Args:
        args: Command line arguments, or None to use sys.argv

    Returns:
        Exit code (0 for success, non-zero for error)
    """
    parser = argparse.ArgumentParser(description="Piano Kids - Note Detection and Practice")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    parser.add_argument(
        "--log-level", default=None, help="Log level for piano_kids loggers (e.g. INFO)"
    )
    parser.add_argument(
        "--config-dir", default=None, help="Directory holding the JSON configuration"
    )
    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    subparsers.add_parser("devices", help="List audio input devices")

    listen_parser = subparsers.add_parser("listen", help="Print notes heard on the microphone")
    listen_parser.add_argument(
        "--duration", type=float, default=15.0, help="Listening time in seconds"
    )
    listen_parser.add_argument(
        "--device", type=int, default=None, help="Audio input device ID"
    )

    analyze_parser = subparsers.add_parser("analyze", help="Detect notes in a sound file")
    analyze_parser.add_argument("wav", help="Path to a WAV (or other soundfile) file")

    play_parser = subparsers.add_parser("play", help="Play a level on the microphone")
    play_parser.add_argument(
        "--notes", required=True, help="Comma-separated notes, e.g. Do,Mi,Sol"
    )
    play_parser.add_argument("--level", default=None, help="Level id used when saving")
    play_parser.add_argument(
        "--duration", type=float, default=60.0, help="Time limit in seconds"
    )
    play_parser.add_argument(
        "--device", type=int, default=None, help="Audio input device ID"
    )
    play_parser.add_argument("--user", default=None, help="Save the result for this user")
    play_parser.add_argument(
        "--progress-file", default=None, help="JSON file for saved results"
    )

    parsed_args = parser.parse_args(args)

    setup_logging("DEBUG" if parsed_args.debug else parsed_args.log_level)

    handler = COMMANDS.get(parsed_args.command)
    if handler is None:
        parser.print_help()
        return 1

    factory = ComponentFactory(ConfigManager(parsed_args.config_dir))
    try:
        return handler(factory, parsed_args)
    except MicrophonePermissionError as e:
        print(f"Microphone not available: {e}", file=sys.stderr)
        return 3
    except (AudioSetupError, InvalidSequenceError) as e:
        logger.error(str(e))
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
