"""Factory for creating Piano Kids components."""

import time
from typing import Any, Callable, Dict, Optional

from ..logger import get_logger
from ..audio.file_input import WavFileInput
from ..audio.frequency import FrequencyEstimator
from ..audio.note_classifier import NoteClassifier
from ..audio.note_detection_service import NoteDetectionService
from ..detection.confirmation import ConfirmationDebouncer
from ..errors import AudioSetupError
from ..sequence_matcher import SequenceMatcher, StarPolicy
from .config import ConfigManager
from .interfaces import IAudioInput, IPitchEstimator

logger = get_logger(__name__)


def _load_sounddevice_input(**kwargs) -> IAudioInput:
    # PortAudio is only needed once a live microphone is requested
    try:
        from ..audio.audio_input import SoundDeviceInput
    except OSError as e:
        raise AudioSetupError(f"PortAudio is not available: {e}") from e

    return SoundDeviceInput(**kwargs)


def _load_yin_estimator(**kwargs) -> IPitchEstimator:
    # aubio is an optional extra; only import it when YIN is requested
    from ..audio.yin import AubioPitchEstimator

    return AubioPitchEstimator(**kwargs)


class ComponentFactory:
    """Factory for creating Piano Kids components from configuration."""

    def __init__(self, config_manager: Optional[ConfigManager] = None):
        """Initialize the component factory.

        Args:
            config_manager: Configuration manager, or None to create a default one
        """
        self.config_manager = config_manager or ConfigManager()

        # Register default component implementations
        self.estimator_classes: Dict[str, Callable[..., IPitchEstimator]] = {
            "autocorrelation": FrequencyEstimator,
            "yin": _load_yin_estimator,
        }

        self.audio_input_classes: Dict[str, Callable[..., IAudioInput]] = {
            "default": _load_sounddevice_input,
            "file": WavFileInput,
        }

    def _detector_config(self, overrides: Dict[str, Any]) -> Dict[str, Any]:
        config = self.config_manager.get_config("pitch_detector")
        config.update({k: v for k, v in overrides.items() if v is not None})
        return config

    def create_estimator(
        self, sample_rate: Optional[int] = None, **kwargs
    ) -> IPitchEstimator:
        """Create a pitch estimator.

        Raises:
            ValueError: If the configured method is not registered
        """
        config = self._detector_config(kwargs)
        method = config["method"]
        if method not in self.estimator_classes:
            raise ValueError(f"Unknown pitch estimation method: {method}")

        params = {
            "sample_rate": sample_rate or config["sample_rate"],
            "analysis_size": config["analysis_size"],
            "rms_threshold": config["rms_threshold"],
            "min_frequency": config["min_frequency"],
            "max_frequency": config["max_frequency"],
        }
        if method == "autocorrelation":
            params["correlation_threshold"] = config["correlation_threshold"]

        instance = self.estimator_classes[method](**params)
        logger.info(f"Created pitch estimator: {method}")
        return instance

    def create_classifier(self, **kwargs) -> NoteClassifier:
        config = self._detector_config(kwargs)
        return NoteClassifier(
            min_frequency=config["min_frequency"],
            max_frequency=config["max_frequency"],
            tolerance=config["tolerance"],
        )

    def create_debouncer(self, **kwargs) -> ConfirmationDebouncer:
        config = self._detector_config(kwargs)
        return ConfirmationDebouncer(
            confirmation_count=config["confirmation_count"],
            retrigger_ms=config["retrigger_ms"],
        )

    def create_audio_input(
        self, implementation: str = "default", **kwargs
    ) -> IAudioInput:
        """Create an audio input.

        Args:
            implementation: Name of the implementation to use
            **kwargs: Additional parameters to pass to the constructor

        Raises:
            ValueError: If the implementation is not registered
        """
        if implementation not in self.audio_input_classes:
            raise ValueError(f"Unknown audio input implementation: {implementation}")

        # File inputs take their format from the file itself
        config = {} if implementation == "file" else self.config_manager.get_config("audio_input")
        config.update(kwargs)

        cls = self.audio_input_classes[implementation]
        instance = cls(**config)

        logger.info(f"Created audio input: {implementation}")
        return instance

    def create_note_detection_service(
        self,
        audio_input: Optional[IAudioInput] = None,
        clock: Callable[[], float] = time.monotonic,
        **kwargs,
    ) -> NoteDetectionService:
        """Create a detection service with every stage built from configuration.

        Args:
            audio_input: Audio input, or None to create the default microphone input
            clock: Time source for settle and re-trigger timing
            **kwargs: Overrides for the ``pitch_detector`` configuration
        """
        if audio_input is None:
            audio_input = self.create_audio_input()
        # The estimator always runs at the input's rate
        kwargs.pop("sample_rate", None)

        config = self._detector_config(kwargs)
        service = NoteDetectionService(
            audio_input=audio_input,
            estimator=self.create_estimator(sample_rate=audio_input.sample_rate, **kwargs),
            classifier=self.create_classifier(**kwargs),
            debouncer=self.create_debouncer(**kwargs),
            block_size=config["block_size"],
            settle_ms=config["settle_ms"],
            stop_timeout=config["stop_timeout"],
            clock=clock,
        )
        logger.info("Created note detection service")
        return service

    def create_sequence_matcher(self, **kwargs) -> SequenceMatcher:
        config = self.config_manager.get_config("scoring")
        config.update({k: v for k, v in kwargs.items() if v is not None})
        return SequenceMatcher(
            max_wrong_attempts=config["max_wrong_attempts"],
            star_policy=StarPolicy.from_thresholds(config["star_thresholds"]),
            wrong_message=config["wrong_message"],
        )
