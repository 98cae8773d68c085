"""Autocorrelation pitch estimation for monophonic piano input."""

from __future__ import annotations
import math
from typing import ClassVar, Optional, TypeAlias

import numpy as np

from ..logger import get_logger
from ..core.interfaces import IPitchEstimator

logger = get_logger(__name__)


def to_mono(samples: np.ndarray) -> np.ndarray:
    """Take the first channel of a (frames x channels) block."""
    samples = np.asarray(samples)
    return samples[:, 0] if samples.ndim > 1 else samples


def signal_rms(samples: np.ndarray) -> float:
    """RMS level of a block, on the block's own amplitude scale."""
    if samples.size == 0:
        return 0.0
    data = samples.astype(np.float64)
    return float(np.sqrt(np.mean(data * data)))


class FrequencyEstimator(IPitchEstimator):
    """Estimates the fundamental of a PCM block from its raw autocorrelation.

    Only the first ``analysis_size`` samples of each block are examined.
    Lags are restricted to the ``[min_frequency, max_frequency]`` band so a
    single dot product per lag is enough; this trades precision for speed.
    """

    # Type aliases
    Frequency: TypeAlias = float

    # Audio configuration
    SAMPLE_RATE: ClassVar[int] = 22050  # Hz
    ANALYSIS_SIZE: ClassVar[int] = 2048  # Samples examined per block

    # Detection settings, on the int16 amplitude scale
    RMS_THRESHOLD: ClassVar[float] = 600.0  # Noise gate
    CORRELATION_THRESHOLD: ClassVar[float] = 50000.0  # Minimum peak correlation
    MIN_FREQUENCY: ClassVar[Frequency] = 200.0  # Hz
    MAX_FREQUENCY: ClassVar[Frequency] = 600.0  # Hz

    def __init__(
        self,
        sample_rate: Optional[int] = None,
        analysis_size: Optional[int] = None,
        rms_threshold: Optional[float] = None,
        correlation_threshold: Optional[float] = None,
        min_frequency: Optional[Frequency] = None,
        max_frequency: Optional[Frequency] = None,
    ) -> None:
        self._sample_rate = int(sample_rate) if sample_rate is not None else self.SAMPLE_RATE
        self._analysis_size = (
            int(analysis_size) if analysis_size is not None else self.ANALYSIS_SIZE
        )
        self._rms_threshold = float(
            rms_threshold if rms_threshold is not None else self.RMS_THRESHOLD
        )
        self._correlation_threshold = float(
            correlation_threshold
            if correlation_threshold is not None
            else self.CORRELATION_THRESHOLD
        )
        self._min_frequency = float(
            min_frequency if min_frequency is not None else self.MIN_FREQUENCY
        )
        self._max_frequency = float(
            max_frequency if max_frequency is not None else self.MAX_FREQUENCY
        )

        if self._sample_rate <= 0 or self._analysis_size < 2:
            raise ValueError("sample_rate must be positive and analysis_size at least 2")
        if not 0 < self._min_frequency < self._max_frequency:
            raise ValueError("Frequency band must satisfy 0 < min_frequency < max_frequency")

        # Lag search range; the correlation sums run over half the window
        self._half_window = self._analysis_size // 2
        self._min_lag = max(1, math.ceil(self._sample_rate / self._max_frequency))
        self._max_lag = min(
            math.floor(self._sample_rate / self._min_frequency), self._half_window - 1
        )

        logger.debug(
            f"FrequencyEstimator: sample_rate={self._sample_rate}Hz, "
            f"window={self._analysis_size}, lags={self._min_lag}..{self._max_lag}"
        )

    @property
    def sample_rate(self) -> int:
        return self._sample_rate

    @property
    def lag_range(self) -> tuple:
        """Inclusive (min_lag, max_lag) searched for the autocorrelation peak."""
        return self._min_lag, self._max_lag

    def autocorrelation(self, window: np.ndarray) -> np.ndarray:
        """Raw correlation sums for every lag in ``lag_range``.

        ``result[k]`` is ``sum(x[i] * x[i + lag])`` for ``lag = min_lag + k``
        and ``i`` in ``[0, half_window - lag)``.
        """
        half = min(self._half_window, len(window) // 2)
        x = window.astype(np.float64)
        sums = []
        for lag in range(self._min_lag, self._max_lag + 1):
            count = half - lag
            if count <= 0:
                sums.append(0.0)
                continue
            sums.append(float(np.dot(x[:count], x[lag : lag + count])))
        return np.asarray(sums, dtype=np.float64)

    def estimate(self, samples: np.ndarray) -> Optional[Frequency]:
        """Estimate the fundamental frequency of a block.

        Args:
            samples: Mono (or frames x channels) PCM samples

        Returns:
            Frequency in Hz, or None if the block is too quiet or aperiodic
        """
        window = to_mono(samples)[: self._analysis_size]
        if len(window) < 2 or self._max_lag < self._min_lag:
            return None

        rms = signal_rms(window)
        if rms < self._rms_threshold:
            logger.debug(f"Below noise gate: rms={rms:.1f}")
            return None

        correlations = self.autocorrelation(window)
        if correlations.size == 0:
            return None

        # argmax keeps the first (smallest) lag on ties
        best = int(np.argmax(correlations))
        best_correlation = float(correlations[best])
        best_lag = self._min_lag + best

        if best_correlation <= self._correlation_threshold:
            logger.debug(
                f"Weak periodicity: corr={best_correlation:.0f} at lag {best_lag}"
            )
            return None

        frequency = self._sample_rate / best_lag
        logger.debug(
            f"Estimate: {frequency:.1f}Hz (lag={best_lag}, corr={best_correlation:.0f}, "
            f"rms={rms:.1f})"
        )
        return frequency
