"""Sound file replay through soundfile."""

from __future__ import annotations
import time
from typing import Optional

import numpy as np
import soundfile as sf

from ..logger import get_logger
from ..errors import AudioReadError, AudioSetupError
from .input_base import AudioInputHandler

logger = get_logger(__name__)


class WavFileInput(AudioInputHandler):
    """Replays a sound file as int16 blocks, e.g. for offline analysis."""

    def __init__(
        self,
        file_path: str,
        realtime: bool = False,
        loop: bool = False,
        gain: float = 1.0,
        **_unused,
    ) -> None:
        """Initialize the file input.

        Args:
            file_path: Path to a file soundfile can read (WAV, FLAC, OGG...)
            realtime: Sleep after each read to simulate live capture
            loop: Restart from the beginning at end of file
            gain: Linear gain applied before clipping to int16
        """
        self._file_path = str(file_path)
        self._realtime = realtime
        self._loop = loop
        self._gain = float(gain)
        self._file: Optional[sf.SoundFile] = None
        self._frames_read = 0

        try:
            info = sf.info(self._file_path)
        except (RuntimeError, OSError) as e:
            raise AudioSetupError(f"Cannot read {self._file_path}: {e}") from e
        self._sample_rate = int(info.samplerate)
        self._channels = int(info.channels)

    @property
    def sample_rate(self) -> int:
        return self._sample_rate

    def is_open(self) -> bool:
        return self._file is not None

    @property
    def position(self) -> float:
        """Seconds of audio delivered since the file was opened."""
        return self._frames_read / self._sample_rate

    def open(self) -> None:
        if self._file is not None:
            return
        try:
            self._file = sf.SoundFile(self._file_path)
        except (RuntimeError, OSError) as e:
            raise AudioSetupError(f"Cannot open {self._file_path}: {e}") from e
        self._frames_read = 0
        logger.info(f"Replaying {self._file_path} ({self._sample_rate}Hz)")

    def _read_block(self, frames: int) -> np.ndarray:
        data = self._file.read(frames, dtype="int16", always_2d=True)
        if len(data) == 0 and self._loop:
            self._file.seek(0)
            data = self._file.read(frames, dtype="int16", always_2d=True)
        return data[:, 0]

    def read(self, frames: int) -> np.ndarray:
        if self._file is None:
            raise AudioReadError("File input is not open")

        try:
            block = self._read_block(frames)
        except (RuntimeError, OSError, ValueError) as e:
            raise AudioReadError(f"Error reading {self._file_path}: {e}") from e
        self._frames_read += len(block)

        if self._gain != 1.0 and len(block):
            scaled = block.astype(np.float64) * self._gain
            block = np.clip(scaled, -32768, 32767).astype(np.int16)

        if self._realtime and len(block):
            # Simulate real-time playback speed
            time.sleep(len(block) / self._sample_rate)

        return block

    def close(self) -> None:
        audio_file, self._file = self._file, None
        if audio_file is not None:
            audio_file.close()
