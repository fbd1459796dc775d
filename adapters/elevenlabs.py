"""ElevenLabs Adapter - remote speech and sound effect generation"""
import logging
from typing import Optional

import httpx

from adapters.base import AudioResource, ResourceHandle, SynthesisBackend
from adapters.player import AudioPlayer
from config import settings
from errors import ProviderError, ValidationError
from models.personality import VoiceCharacteristics

logger = logging.getLogger(__name__)

# Bits per second for the mp3_<rate>_<bitrate> output formats
DEFAULT_BITRATE = 128_000


def bitrate_for(output_format: str) -> int:
    """Bitrate in bits/s from a format name like ``mp3_44100_128``."""
    parts = output_format.split("_")
    if len(parts) == 3 and parts[0] == "mp3" and parts[2].isdigit():
        return int(parts[2]) * 1000
    return DEFAULT_BITRATE


class ElevenLabsClient:
    """
    Client for the ElevenLabs text-to-speech and sound generation API.

    Every call makes exactly one request; retry and fallback decisions
    belong to the caller.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        output_format: Optional[str] = None,
        timeout: Optional[float] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self.api_key = settings.elevenlabs_api_key if api_key is None else api_key
        self.base_url = (base_url or settings.elevenlabs_base_url).rstrip("/")
        self.output_format = output_format or settings.elevenlabs_output_format
        self.timeout = settings.elevenlabs_timeout if timeout is None else timeout
        self._http_client = http_client

    def is_configured(self) -> bool:
        return bool(self.api_key and self.api_key.strip())

    def _estimate_duration(self, audio: bytes) -> float:
        return len(audio) * 8 / bitrate_for(self.output_format)

    async def _post_audio(self, url: str, payload: dict) -> AudioResource:
        if not self.is_configured():
            raise ProviderError(None, "ElevenLabs API key not configured")

        headers = {
            "Accept": "audio/mpeg",
            "Content-Type": "application/json",
            "xi-api-key": self.api_key,
        }
        params = {"output_format": self.output_format}

        try:
            if self._http_client is not None:
                response = await self._http_client.post(
                    url, headers=headers, params=params, json=payload, timeout=self.timeout
                )
            else:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    response = await client.post(url, headers=headers, params=params, json=payload)
        except httpx.HTTPError as e:
            raise ProviderError(None, f"Cannot reach ElevenLabs at {self.base_url}: {e}") from e

        if response.status_code != 200:
            logger.error(f"ElevenLabs API error: {response.status_code} - {response.text[:200]}")
            raise ProviderError(response.status_code, response.text or response.reason_phrase)

        audio = response.content
        if not audio:
            raise ProviderError(response.status_code, "Empty audio response")
        return AudioResource(audio_bytes=audio, duration_seconds=self._estimate_duration(audio))

    async def synthesize_speech(
        self,
        text: str,
        voice_id: str,
        model_id: Optional[str] = None,
        stability: Optional[float] = None,
        similarity_boost: Optional[float] = None,
    ) -> AudioResource:
        """Generate speech audio for text with a remote voice."""
        if not text or not text.strip():
            raise ValidationError("Cannot synthesize empty text")
        if not voice_id:
            raise ValidationError("A remote voice id is required")

        logger.info(f"Generating speech with ElevenLabs: voice={voice_id}, chars={len(text)}")
        return await self._post_audio(
            f"{self.base_url}/text-to-speech/{voice_id}/stream",
            {
                "text": text,
                "model_id": model_id or settings.elevenlabs_model_id,
                "voice_settings": {
                    "stability": 0.75 if stability is None else stability,
                    "similarity_boost": 0.75 if similarity_boost is None else similarity_boost,
                    "style": 0.0,
                    "use_speaker_boost": True,
                },
            },
        )

    async def synthesize_sound_effect(self, prompt: str, duration_seconds: float = 3.0) -> AudioResource:
        """Generate a short sound effect from a descriptive prompt."""
        if not prompt or not prompt.strip():
            raise ValidationError("Cannot generate a sound effect from an empty prompt")

        logger.info(f"Generating sound effect with ElevenLabs: {prompt[:60]}")
        return await self._post_audio(
            f"{self.base_url}/sound-generation",
            {
                "text": prompt,
                "duration_seconds": duration_seconds,
                "prompt_influence": 0.3,
            },
        )


class RemoteBackend(SynthesisBackend):
    """Narration through ElevenLabs, played with the local audio player."""

    def __init__(self, client: ElevenLabsClient, player: AudioPlayer):
        self.client = client
        self.player = player

    @property
    def name(self) -> str:
        return "elevenlabs"

    def is_available(self) -> bool:
        return self.client.is_configured() and self.player.is_available()

    def supports(self, characteristics: VoiceCharacteristics) -> bool:
        return characteristics.has_remote_voice

    async def open(self, text: str, characteristics: VoiceCharacteristics,
                   volume: float = 1.0) -> ResourceHandle:
        resource = await self.client.synthesize_speech(
            text,
            characteristics.remote_voice_id,
            model_id=characteristics.remote_model_id,
            stability=characteristics.stability,
            similarity_boost=characteristics.similarity_boost,
        )
        return await self.player.play(resource, volume=volume)
