"""
Narrator - Speak story text with a voice personality

Backend priority for each narration:
1. ElevenLabs (if configured and the personality has a remote voice)
2. Local speech synthesizer (always tried last)
"""

import logging
from typing import List, Optional

from adapters.base import SynthesisBackend
from config import clamp_volume
from errors import PlaybackError, ProviderError, SynthesisError, ValidationError
from models.personality import DEFAULT_PERSONALITY_ID, VoicePersonality
from pipeline.playback import PlaybackCoordinator, SessionKind
from pipeline.text_prep import count_words, estimate_word_index, prepare_text
from pipeline.voice_recommender import VoiceRecommender
from pipeline.voice_registry import VoiceRegistry

logger = logging.getLogger(__name__)

FALLBACK_TEST_PHRASE = "Hello! This is a test of my voice."


def _surface(error: PlaybackError) -> Exception:
    """The error a narration caller should see for a failed session."""
    if isinstance(error.cause, SynthesisError):
        return error.cause
    return error


class NarrationService:
    """
    Public entry point for narration.

    Owns no audio itself: every narration goes through the coordinator's
    narration slot, so a new speak() always replaces the previous one.
    """

    def __init__(
        self,
        registry: VoiceRegistry,
        recommender: VoiceRecommender,
        coordinator: PlaybackCoordinator,
        local_backend: SynthesisBackend,
        remote_backend: Optional[SynthesisBackend] = None,
        audio_enabled: bool = True,
        master_volume: float = 1.0,
    ):
        self.registry = registry
        self.recommender = recommender
        self.coordinator = coordinator
        self.local_backend = local_backend
        self.remote_backend = remote_backend
        self.audio_enabled = audio_enabled
        self.master_volume = clamp_volume(master_volume)
        self._generation = 0
        self._word_count = 0
        self._backend_name: Optional[str] = None

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------

    def configure(self, audio_enabled: Optional[bool] = None,
                  master_volume: Optional[float] = None) -> None:
        """Apply settings pushed from the UI."""
        if master_volume is not None:
            self.master_volume = clamp_volume(master_volume)
        if audio_enabled is not None:
            self.audio_enabled = audio_enabled
            if not audio_enabled:
                self.stop()
        logger.info(f"Narration settings: audio_enabled={self.audio_enabled}, "
                    f"master_volume={self.master_volume:.2f}")

    def is_ready(self) -> bool:
        remote_ready = self.remote_backend is not None and self.remote_backend.is_available()
        return remote_ready or self.local_backend.is_available()

    # ------------------------------------------------------------------
    # Narration
    # ------------------------------------------------------------------

    def validate(self, text: str, personality_id: str) -> VoicePersonality:
        """
        Check a narration request without playing anything.

        Raises:
            NotFoundError: unknown personality id
            ValidationError: blank text
        """
        personality = self.registry.get(personality_id)
        if not text or not text.strip():
            raise ValidationError("Cannot narrate empty text")
        return personality

    def _backends_for(self, personality: VoicePersonality) -> List[SynthesisBackend]:
        backends = []
        remote = self.remote_backend
        if remote is not None and remote.supports(personality.characteristics) and remote.is_available():
            backends.append(remote)
        backends.append(self.local_backend)
        return backends

    async def speak(self, text: str, personality_id: str = DEFAULT_PERSONALITY_ID) -> None:
        """
        Narrate text and wait until it ends, is stopped, or is replaced.

        Raises:
            NotFoundError: unknown personality id
            ValidationError: blank text
            SynthesisError: remote path unavailable or failed, and local speech failed
            PlaybackError: audio failed for any other reason
        """
        personality = self.validate(text, personality_id)
        if not self.audio_enabled:
            logger.info("Audio disabled, skipping narration")
            return

        self._generation += 1
        generation = self._generation
        self._backend_name = None
        characteristics = personality.characteristics
        prepared = prepare_text(text, personality)
        volume = clamp_volume(characteristics.volume * self.master_volume)
        self._word_count = count_words(text)

        backends = self._backends_for(personality)
        session = None
        for index, backend in enumerate(backends):
            if generation != self._generation:
                logger.info(f"Narration with {personality.id} was replaced, not falling back")
                return
            try:
                session = await self.coordinator.play(
                    lambda backend=backend: backend.open(prepared, characteristics, volume),
                    kind=SessionKind.NARRATION,
                    volume=volume,
                    label=f"narration:{personality.id}:{backend.name}",
                )
                if generation == self._generation:
                    self._backend_name = backend.name
                break
            except PlaybackError as e:
                is_last = index == len(backends) - 1
                if not is_last and isinstance(e.cause, (ProviderError, ValidationError)):
                    logger.warning(f"{backend.name} failed for {personality.id}, "
                                   f"falling back to local speech: {e.cause}")
                    continue
                raise _surface(e) from None

        try:
            await session.wait()
        except PlaybackError as e:
            raise _surface(e) from None
        logger.info(f"Speech completed for personality: {personality.id}")

    async def test_voice(self, personality_id: str) -> None:
        """Speak the personality's first sample phrase."""
        personality = self.registry.get(personality_id)
        phrase = personality.sample_phrases[0] if personality.sample_phrases else FALLBACK_TEST_PHRASE
        await self.speak(phrase, personality_id)

    def pause(self) -> None:
        self.coordinator.pause()

    def resume(self) -> None:
        self.coordinator.resume()

    def stop(self) -> None:
        self.coordinator.stop()

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def is_speaking(self) -> bool:
        return self.coordinator.is_speaking()

    def is_paused(self) -> bool:
        return self.coordinator.is_paused()

    def get_current_time(self) -> float:
        return self.coordinator.get_current_time()

    def get_duration(self) -> float:
        return self.coordinator.get_duration()

    @property
    def active_backend(self) -> Optional[str]:
        """Backend of the current narration, None when idle."""
        if self.coordinator.narration_session is None:
            return None
        return self._backend_name

    def get_progress(self) -> dict:
        """Progress for word highlighting; word_index is None without timing."""
        current_time = self.get_current_time()
        duration = self.get_duration()
        return {
            "current_time": current_time,
            "duration": duration,
            "word_count": self._word_count,
            "word_index": estimate_word_index(current_time, duration, self._word_count),
            "backend": self.active_backend,
        }

    def get_available_personalities(self) -> List[VoicePersonality]:
        return self.registry.get_all()

    def get_recommended_voice(self, text: str, character: Optional[str] = None) -> str:
        return self.recommender.recommend(text, character)
