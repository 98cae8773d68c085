"""YIN pitch estimation backed by aubio.

An alternative to the autocorrelation estimator, selected with
``method="yin"`` in the ``pitch_detector`` configuration. Requires the
``aubio`` extra.
"""

from __future__ import annotations
from typing import ClassVar, Optional

import aubio
import numpy as np

from ..logger import get_logger
from ..core.interfaces import IPitchEstimator
from .frequency import FrequencyEstimator, signal_rms, to_mono

logger = get_logger(__name__)


class AubioPitchEstimator(IPitchEstimator):
    """Pitch estimator using aubio's YIN implementation."""

    DEFAULT_MIN_CONFIDENCE: ClassVar[float] = 0.7
    DEFAULT_TOLERANCE: ClassVar[float] = 0.8  # aubio YIN threshold
    INT16_SCALE: ClassVar[float] = 32768.0

    def __init__(
        self,
        sample_rate: Optional[int] = None,
        analysis_size: Optional[int] = None,
        rms_threshold: Optional[float] = None,
        min_frequency: Optional[float] = None,
        max_frequency: Optional[float] = None,
        min_confidence: Optional[float] = None,
        yin_tolerance: Optional[float] = None,
    ) -> None:
        self._sample_rate = int(sample_rate or FrequencyEstimator.SAMPLE_RATE)
        self._analysis_size = int(analysis_size or FrequencyEstimator.ANALYSIS_SIZE)
        self._rms_threshold = float(
            rms_threshold if rms_threshold is not None else FrequencyEstimator.RMS_THRESHOLD
        )
        self._min_frequency = float(min_frequency or FrequencyEstimator.MIN_FREQUENCY)
        self._max_frequency = float(max_frequency or FrequencyEstimator.MAX_FREQUENCY)
        self._min_confidence = float(
            min_confidence if min_confidence is not None else self.DEFAULT_MIN_CONFIDENCE
        )

        # One hop per analysis window: each block is judged on its own
        self._pitch_detector = aubio.pitch(
            "yin", self._analysis_size, self._analysis_size, self._sample_rate
        )
        self._pitch_detector.set_unit("Hz")
        self._pitch_detector.set_tolerance(
            float(yin_tolerance if yin_tolerance is not None else self.DEFAULT_TOLERANCE)
        )

        logger.info(
            f"Aubio YIN estimator initialized: sample_rate={self._sample_rate}, "
            f"window={self._analysis_size}"
        )

    @property
    def sample_rate(self) -> int:
        return self._sample_rate

    def estimate(self, samples: np.ndarray) -> Optional[float]:
        window = to_mono(samples)[: self._analysis_size]
        if len(window) == 0:
            return None

        if signal_rms(window) < self._rms_threshold:
            return None

        # aubio wants float32 frames of exactly the hop size
        frame = np.zeros(self._analysis_size, dtype=np.float32)
        frame[: len(window)] = window.astype(np.float32) / self.INT16_SCALE

        pitch = float(self._pitch_detector(frame)[0])
        confidence = float(self._pitch_detector.get_confidence())
        logger.debug(f"Pitch: {pitch:.2f} Hz, Confidence: {confidence:.4f}")

        if (
            confidence < self._min_confidence
            or pitch < self._min_frequency
            or pitch > self._max_frequency
        ):
            return None
        return pitch
