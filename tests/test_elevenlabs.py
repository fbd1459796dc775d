"""
Tests for the ElevenLabs client and the remote narration backend.
"""

import json
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from adapters.base import AudioResource
from adapters.elevenlabs import ElevenLabsClient, RemoteBackend, bitrate_for
from errors import ProviderError, ValidationError
from models.personality import VoiceCharacteristics


def _make_client(handler, api_key: str = "test-key") -> ElevenLabsClient:
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return ElevenLabsClient(
        api_key=api_key,
        base_url="https://api.test/v1",
        output_format="mp3_44100_128",
        timeout=5,
        http_client=http_client,
    )


class TestSynthesizeSpeech:

    @pytest.mark.asyncio
    async def test_success(self) -> None:
        requests = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(200, content=b"\xff" * 16000)

        client = _make_client(handler)
        resource = await client.synthesize_speech(
            "Once upon a time", "voice123", model_id="eleven_monolingual_v1",
            stability=0.6, similarity_boost=0.9,
        )

        assert resource.audio_bytes == b"\xff" * 16000
        assert resource.duration_seconds == pytest.approx(1.0)
        assert resource.format == "mp3"

        request = requests[0]
        assert request.method == "POST"
        assert request.url.path == "/v1/text-to-speech/voice123/stream"
        assert request.url.params["output_format"] == "mp3_44100_128"
        assert request.headers["xi-api-key"] == "test-key"
        payload = json.loads(request.content)
        assert payload["text"] == "Once upon a time"
        assert payload["model_id"] == "eleven_monolingual_v1"
        assert payload["voice_settings"]["stability"] == 0.6
        assert payload["voice_settings"]["similarity_boost"] == 0.9

    @pytest.mark.asyncio
    async def test_http_error_status(self) -> None:
        client = _make_client(lambda request: httpx.Response(401, text="invalid api key"))

        with pytest.raises(ProviderError) as exc_info:
            await client.synthesize_speech("Hello", "voice123")

        assert exc_info.value.status_code == 401
        assert "invalid api key" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_network_failure(self) -> None:
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        client = _make_client(handler)
        with pytest.raises(ProviderError) as exc_info:
            await client.synthesize_speech("Hello", "voice123")
        assert exc_info.value.status_code is None

    @pytest.mark.asyncio
    async def test_empty_body(self) -> None:
        client = _make_client(lambda request: httpx.Response(200, content=b""))
        with pytest.raises(ProviderError, match="Empty audio"):
            await client.synthesize_speech("Hello", "voice123")

    @pytest.mark.asyncio
    async def test_blank_text_makes_no_request(self) -> None:
        handler = MagicMock(return_value=httpx.Response(200, content=b"x"))
        client = _make_client(handler)

        with pytest.raises(ValidationError):
            await client.synthesize_speech("   ", "voice123")
        handler.assert_not_called()

    @pytest.mark.asyncio
    async def test_missing_key_makes_no_request(self) -> None:
        handler = MagicMock(return_value=httpx.Response(200, content=b"x"))
        client = _make_client(handler, api_key="")

        assert not client.is_configured()
        with pytest.raises(ProviderError, match="not configured"):
            await client.synthesize_speech("Hello", "voice123")
        handler.assert_not_called()


class TestSoundEffects:

    @pytest.mark.asyncio
    async def test_sound_generation_payload(self) -> None:
        requests = []

        def handler(request):
            requests.append(request)
            return httpx.Response(200, content=b"\x00" * 100)

        client = _make_client(handler)
        await client.synthesize_sound_effect("Gentle forest ambience", 10)

        assert requests[0].url.path == "/v1/sound-generation"
        payload = json.loads(requests[0].content)
        assert payload == {"text": "Gentle forest ambience", "duration_seconds": 10, "prompt_influence": 0.3}

    @pytest.mark.asyncio
    async def test_blank_prompt(self) -> None:
        client = _make_client(lambda request: httpx.Response(200, content=b"x"))
        with pytest.raises(ValidationError):
            await client.synthesize_sound_effect("")


def test_bitrate_for() -> None:
    assert bitrate_for("mp3_44100_128") == 128_000
    assert bitrate_for("mp3_22050_32") == 32_000
    assert bitrate_for("pcm_16000") == 128_000


class TestRemoteBackend:

    def _make_backend(self, configured=True, player_available=True):
        client = MagicMock()
        client.is_configured.return_value = configured
        client.synthesize_speech = AsyncMock(
            return_value=AudioResource(audio_bytes=b"audio", duration_seconds=2.0)
        )
        player = MagicMock()
        player.is_available.return_value = player_available
        player.play = AsyncMock(return_value="handle")
        return RemoteBackend(client, player), client, player

    def test_availability(self) -> None:
        assert self._make_backend()[0].is_available()
        assert not self._make_backend(configured=False)[0].is_available()
        assert not self._make_backend(player_available=False)[0].is_available()

    def test_supports_only_remote_voices(self) -> None:
        backend, _, _ = self._make_backend()
        assert backend.supports(VoiceCharacteristics(remote_voice_id="abc"))
        assert not backend.supports(VoiceCharacteristics())

    @pytest.mark.asyncio
    async def test_open_synthesizes_then_plays(self) -> None:
        backend, client, player = self._make_backend()
        characteristics = VoiceCharacteristics(remote_voice_id="abc", stability=0.5, similarity_boost=0.8)

        handle = await backend.open("Hello", characteristics, volume=0.6)

        assert handle == "handle"
        client.synthesize_speech.assert_awaited_once_with(
            "Hello", "abc", model_id=characteristics.remote_model_id,
            stability=0.5, similarity_boost=0.8,
        )
        player.play.assert_awaited_once_with(client.synthesize_speech.return_value, volume=0.6)
