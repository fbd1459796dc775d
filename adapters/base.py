"""Audio resource and synthesis backend interfaces"""
from abc import ABC, abstractmethod
from dataclasses import dataclass

from models.personality import VoiceCharacteristics


@dataclass
class AudioResource:
    """Encoded audio returned by a remote provider."""
    audio_bytes: bytes
    duration_seconds: float
    format: str = "mp3"


class ResourceHandle(ABC):
    """
    A live, exclusively owned audio resource.

    The owner must call release() exactly once; it stops any output still
    running and revokes transient files behind the handle.
    """

    @abstractmethod
    async def wait(self) -> None:
        """Resolve when playback ends naturally, raise if it fails."""
        pass

    @abstractmethod
    def pause(self) -> None:
        pass

    @abstractmethod
    def resume(self) -> None:
        pass

    @abstractmethod
    def release(self) -> None:
        pass

    def current_time(self) -> float:
        """Elapsed seconds, 0.0 when the resource has no timing."""
        return 0.0

    def duration(self) -> float:
        """Total seconds, 0.0 when unknown."""
        return 0.0


class SynthesisBackend(ABC):
    """A way of turning narration text into a playing ResourceHandle."""

    @property
    @abstractmethod
    def name(self) -> str:
        pass

    @abstractmethod
    def is_available(self) -> bool:
        """Whether the backend is configured and its tools are installed."""
        pass

    def supports(self, characteristics: VoiceCharacteristics) -> bool:
        """Whether this backend can voice the given characteristics."""
        return True

    async def list_voices(self) -> list:
        """Voices installed for this backend, empty when it has no local voices."""
        return []

    @abstractmethod
    async def open(self, text: str, characteristics: VoiceCharacteristics,
                   volume: float = 1.0) -> ResourceHandle:
        """Generate speech for text and start playing it."""
        pass
