"""Base class shared by the blocking audio inputs."""

from abc import ABC

from ..core.interfaces import IAudioInput


class AudioInputHandler(IAudioInput, ABC):
    """Abstract base class for blocking audio inputs."""

    def check_access(self) -> None:
        """Verify the source may be used before acquiring it.

        Raises:
            MicrophonePermissionError: If access is not granted
        """

    def __enter__(self):
        self.open()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
