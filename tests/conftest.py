import threading
from typing import Iterable, Optional

import numpy as np
import pytest

from piano_kids.core.interfaces import IAudioInput
from piano_kids.errors import AudioReadError, MicrophonePermissionError

SAMPLE_RATE = 22050
BLOCK_SIZE = 8192


def make_sine(frequency, amplitude=10000.0, frames=BLOCK_SIZE, sample_rate=SAMPLE_RATE):
    """Synthetic int16 sine block."""
    t = np.arange(frames) / sample_rate
    return (amplitude * np.sin(2 * np.pi * frequency * t)).astype(np.int16)


class FakeAudioInput(IAudioInput):
    """Scripted audio input.

    Returns the given blocks in order, then either raises ``read_error`` or
    reports end of stream. With ``hold=True`` it keeps returning short
    silent blocks instead, like an open microphone in a quiet room.
    """

    def __init__(
        self,
        blocks: Iterable[np.ndarray] = (),
        sample_rate: int = SAMPLE_RATE,
        read_error: Optional[Exception] = None,
        open_error: Optional[Exception] = None,
        deny_access: bool = False,
        hold: bool = False,
    ):
        self._blocks = list(blocks)
        self._sample_rate = sample_rate
        self._read_error = read_error
        self._open_error = open_error
        self._deny_access = deny_access
        self._hold = hold
        self._open = False
        self._idle = threading.Event()

        self.access_checks = 0
        self.open_count = 0
        self.close_count = 0
        self.reads = 0

    @property
    def sample_rate(self) -> int:
        return self._sample_rate

    def check_access(self) -> None:
        self.access_checks += 1
        if self._deny_access:
            raise MicrophonePermissionError("denied")

    def open(self) -> None:
        if self._open_error is not None:
            raise self._open_error
        self.open_count += 1
        self._open = True

    def is_open(self) -> bool:
        return self._open

    def read(self, frames: int) -> np.ndarray:
        if not self._open:
            raise AudioReadError("not open")
        self.reads += 1
        if self._blocks:
            return self._blocks.pop(0)
        if self._read_error is not None:
            raise self._read_error
        if self._hold:
            self._idle.wait(0.005)
            return np.zeros(256, dtype=np.int16)
        return np.zeros(0, dtype=np.int16)

    def close(self) -> None:
        if self._open:
            self.close_count += 1
        self._open = False


class FakeClock:
    """Manually driven clock; ``step`` advances it on every call."""

    def __init__(self, start: float = 0.0, step: float = 0.0):
        self.now = start
        self.step = step
        self._lock = threading.Lock()

    def __call__(self) -> float:
        with self._lock:
            now = self.now
            self.now += self.step
            return now

    def advance(self, seconds: float) -> None:
        with self._lock:
            self.now += seconds


@pytest.fixture
def sine():
    return make_sine


@pytest.fixture
def fake_input():
    return FakeAudioInput


@pytest.fixture
def clock():
    return FakeClock()
