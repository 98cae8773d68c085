"""Core components for the Piano Kids application."""

# Import interfaces for easier access
from .interfaces import (
    IAudioInput,
    INoteDetectionService,
    IPitchEstimator,
    IProgressRepository,
)

__all__ = [
    "IAudioInput",
    "INoteDetectionService",
    "IPitchEstimator",
    "IProgressRepository",
]
