"""
Narration error types
"""

from typing import Optional


class NarrationError(Exception):
    """Base class for all narration and audio errors."""


class ValidationError(NarrationError):
    """Malformed input (blank text, bad parameters). Never retried."""


class NotFoundError(ValidationError):
    """Unknown voice personality id."""

    def __init__(self, personality_id: str):
        self.personality_id = personality_id
        super().__init__(f"Voice personality '{personality_id}' not found")


class ProviderError(NarrationError):
    """The remote synthesis provider rejected or failed a request."""

    def __init__(self, status_code: Optional[int], message: str):
        self.status_code = status_code
        self.message = message
        if status_code is None:
            super().__init__(message)
        else:
            super().__init__(f"{status_code}: {message}")


class SynthesisError(NarrationError):
    """The local speech synthesizer is unavailable or failed."""


class PlaybackError(NarrationError):
    """Acquiring or playing an audio resource failed."""

    def __init__(self, cause: BaseException):
        self.cause = cause
        super().__init__(f"Playback failed: {cause}")
