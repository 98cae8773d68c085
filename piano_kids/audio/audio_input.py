"""Live microphone input through sounddevice."""

from __future__ import annotations
from typing import Any, ClassVar, Dict, List, Optional

import numpy as np
import sounddevice as sd

from ..logger import get_logger
from ..errors import AudioReadError, AudioSetupError, MicrophonePermissionError
from .input_base import AudioInputHandler

logger = get_logger(__name__)


def list_input_devices() -> List[Dict[str, Any]]:
    """List the system's audio devices that can record.

    Returns:
        One dict per input device with its id, name, channel count and default rate
    """
    devices = []
    for device_id, device in enumerate(sd.query_devices()):
        if device["max_input_channels"] > 0:
            devices.append(
                {
                    "id": device_id,
                    "name": device["name"],
                    "max_input_channels": device["max_input_channels"],
                    "default_samplerate": device["default_samplerate"],
                }
            )
    return devices


class SoundDeviceInput(AudioInputHandler):
    """Microphone input using a blocking sounddevice stream."""

    # Audio configuration
    SAMPLE_RATE: ClassVar[int] = 22050  # Hz
    CHANNELS: ClassVar[int] = 1  # Mono audio
    DTYPE: ClassVar[str] = "int16"

    def __init__(
        self,
        device_id: Optional[int] = None,
        sample_rate: Optional[int] = None,
        channels: Optional[int] = None,
        latency: str = "high",
        **_unused,
    ) -> None:
        """Initialize the audio input handler.

        Args:
            device_id: Audio input device ID, or None for the system default
            sample_rate: Sample rate in Hz, or None for default (22050)
            channels: Number of channels to capture; only the first is analyzed
            latency: sounddevice latency hint
        """
        self._device_id = device_id
        self._sample_rate = int(sample_rate or self.SAMPLE_RATE)
        self._channels = int(channels or self.CHANNELS)
        self._latency = latency
        self._stream: Optional[sd.InputStream] = None

    @property
    def sample_rate(self) -> int:
        return self._sample_rate

    def is_open(self) -> bool:
        return self._stream is not None

    def check_access(self) -> None:
        """Make sure a usable input device exists before opening a stream."""
        try:
            device = sd.query_devices(self._device_id, kind="input")
        except (sd.PortAudioError, ValueError) as e:
            raise MicrophonePermissionError(f"No microphone available: {e}") from e

        if not device or device["max_input_channels"] < 1:
            raise MicrophonePermissionError("Selected device cannot record audio")

        try:
            sd.check_input_settings(
                device=self._device_id,
                samplerate=self._sample_rate,
                channels=self._channels,
                dtype=self.DTYPE,
            )
        except (sd.PortAudioError, ValueError) as e:
            raise AudioSetupError(
                f"Input settings not supported ({self._sample_rate} Hz, "
                f"{self._channels}ch): {e}"
            ) from e

        logger.info(f"Microphone available: {device['name']}")

    def open(self) -> None:
        if self._stream is not None:
            logger.warning("Audio input already open")
            return

        stream = None
        try:
            stream = sd.InputStream(
                device=self._device_id,
                samplerate=self._sample_rate,
                channels=self._channels,
                dtype=self.DTYPE,
                latency=self._latency,
            )
            stream.start()
        except (sd.PortAudioError, ValueError) as e:
            if stream is not None:
                stream.close()
            raise AudioSetupError(f"Failed to open audio stream: {e}") from e

        self._stream = stream
        logger.info(
            f"Audio input started: device={self._device_id}, "
            f"rate={self._sample_rate}Hz, channels={self._channels}"
        )

    def read(self, frames: int) -> np.ndarray:
        stream = self._stream
        if stream is None:
            raise AudioReadError("Audio input is not open")

        try:
            data, overflowed = stream.read(frames)
        except sd.PortAudioError as e:
            raise AudioReadError(f"Audio read failed: {e}") from e

        if overflowed:
            logger.warning("Input overflow")

        # Extract mono audio data (take first channel if multi-channel)
        return np.array(data[:, 0] if data.ndim > 1 else data, dtype=np.int16)

    def close(self) -> None:
        stream, self._stream = self._stream, None
        if stream is None:
            return

        try:
            if stream.active:
                stream.stop()
        except sd.PortAudioError as e:
            logger.error(f"Error stopping audio stream: {e}")
        finally:
            stream.close()
            logger.info("Audio input stopped and closed")
