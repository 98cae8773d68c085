"""Defines the core interfaces for the Piano Kids application."""

from __future__ import annotations
from abc import ABC, abstractmethod
from typing import Callable, Optional

import numpy as np

from ..note_types import ConfirmedNote, ProgressRecord


class IAudioInput(ABC):
    """Interface for blocking audio sources feeding the detection loop."""

    @abstractmethod
    def open(self) -> None:
        """Acquire the underlying device or file.

        Raises:
            AudioSetupError: If the source cannot be acquired
        """
        pass

    @abstractmethod
    def read(self, frames: int) -> np.ndarray:
        """Block until up to ``frames`` mono samples are available.

        Returns an empty array at end of stream.

        Raises:
            AudioReadError: If the read fails
        """
        pass

    @abstractmethod
    def close(self) -> None:
        """Release the source. Safe to call more than once."""
        pass

    @abstractmethod
    def is_open(self) -> bool:
        """Check if the source is currently acquired."""
        pass

    @property
    @abstractmethod
    def sample_rate(self) -> int:
        """The sample rate of the audio stream."""
        pass


class IPitchEstimator(ABC):
    """Interface for fundamental frequency estimators."""

    @abstractmethod
    def estimate(self, samples: np.ndarray) -> Optional[float]:
        """Return the dominant fundamental in Hz, or None for no signal."""
        pass


class INoteDetectionService(ABC):
    """Interface for the microphone-driven note detection engine."""

    @abstractmethod
    def start_listening(
        self, on_confirmed_note: Optional[Callable[[ConfirmedNote], None]] = None
    ) -> None:
        """Start capturing and detecting notes."""
        pass

    @abstractmethod
    def stop_listening(self) -> None:
        """Stop capturing. Safe to call when idle."""
        pass

    @abstractmethod
    def is_active(self) -> bool:
        """Check if a listening session is running."""
        pass


class IProgressRepository(ABC):
    """Boundary to whatever stores level results (remote service, file...)."""

    @abstractmethod
    def save(self, record: ProgressRecord) -> bool:
        """Persist a level result. Returns True on success."""
        pass
