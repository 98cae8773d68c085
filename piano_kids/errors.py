"""Exception types raised by the Piano Kids engine."""


class PianoKidsError(Exception):
    """Base class for all Piano Kids errors."""


class AudioSetupError(PianoKidsError):
    """The audio input device could not be acquired."""


class MicrophonePermissionError(AudioSetupError):
    """No microphone is accessible, so listening cannot start."""


class AudioReadError(PianoKidsError):
    """Reading a block from an open audio input failed."""


class InvalidSequenceError(PianoKidsError, ValueError):
    """Level data could not be turned into an expected note sequence."""


class ProgressStoreError(PianoKidsError):
    """Saved progress could not be read."""
