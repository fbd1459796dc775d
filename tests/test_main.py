"""
Tests for the HTTP API with injected services.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

import main
from adapters.local_speech import LocalVoice
from conftest import FakeBackend
from pipeline.ambient import AmbientSoundService
from pipeline.narrator import NarrationService
from pipeline.playback import PlaybackCoordinator
from pipeline.voice_recommender import VoiceRecommender
from pipeline.voice_registry import VoiceRegistry


@pytest.fixture
def local_backend() -> FakeBackend:
    return FakeBackend("local")


@pytest.fixture
def client(local_backend, monkeypatch):
    monkeypatch.setattr(main.settings, "api_password", "")
    coordinator = PlaybackCoordinator()
    narrator = NarrationService(VoiceRegistry(), VoiceRecommender(), coordinator, local_backend=local_backend)
    sound_client = MagicMock()
    sound_client.is_configured.return_value = False
    player = MagicMock()
    player.is_available.return_value = True
    main.app.state.narrator = narrator
    main.app.state.sounds = AmbientSoundService(sound_client, player, coordinator)

    with TestClient(main.app) as test_client:
        yield test_client

    main.app.state.narrator = None
    main.app.state.sounds = None


def _wait_until_speaking(client: TestClient) -> dict:
    status = {}
    for _ in range(50):
        status = client.get("/api/narration/status").json()
        if status["speaking"]:
            break
    return status


# ---------------------------------------------------------------------------
# Status and voices
# ---------------------------------------------------------------------------


class TestStatusAndVoices:

    def test_status(self, client) -> None:
        response = client.get("/api/status")
        assert response.status_code == 200
        assert response.json()["status"] == "running"

    def test_health(self, client) -> None:
        data = client.get("/api/health").json()
        assert data["ready"] is True
        assert data["remote_available"] is False
        assert data["local_available"] is True
        assert data["sounds_ready"] is False

    def test_list_voices(self, client) -> None:
        voices = client.get("/api/voices").json()
        assert len(voices) == 10
        assert voices[0]["id"] == "cheerfulChild"

    def test_get_voice(self, client) -> None:
        assert client.get("/api/voices/sillyMonster").json()["name"] == "Silly Monster"
        assert client.get("/api/voices/nobody").status_code == 404

    def test_recommend(self, client) -> None:
        response = client.post("/api/voices/recommend", json={"text": "A peaceful forest walk"})
        assert response.json()["personality_id"] == "calmNatureGuide"

        response = client.post("/api/voices/recommend", json={"text": "", "character": "brave captain"})
        assert response.json()["personality_id"] == "adventurousCaptain"
        assert response.json()["personality"]["name"]

    def test_voice_test_unknown(self, client) -> None:
        assert client.post("/api/voices/nobody/test").status_code == 404

    def test_local_voices(self, client, local_backend, monkeypatch) -> None:
        voices = [LocalVoice("Alex", "Alex", "en_US")]
        monkeypatch.setattr(local_backend, "list_voices", AsyncMock(return_value=voices))

        data = client.get("/api/local-voices").json()

        assert data == [voices[0].to_dict()]

    def test_local_voices_empty_for_backend_without_voices(self, client) -> None:
        assert client.get("/api/local-voices").json() == []


# ---------------------------------------------------------------------------
# Narration
# ---------------------------------------------------------------------------


class TestNarration:

    def test_speak_validation(self, client, local_backend) -> None:
        assert client.post("/api/narration/speak", json={"text": "Hi", "personality_id": "nobody"}).status_code == 404
        assert client.post("/api/narration/speak", json={"text": "  "}).status_code == 400
        assert client.post("/api/narration/speak", json={}).status_code == 400
        assert local_backend.calls == []

    def test_speak_then_stop(self, client, local_backend) -> None:
        response = client.post("/api/narration/speak", json={"text": "Once upon a time", "personality_id": "elderlyWise"})
        assert response.status_code == 202

        status = _wait_until_speaking(client)
        assert status["speaking"] is True
        assert status["backend"] == "local"
        assert status["word_count"] == 4
        assert status["word_index"] is None

        assert client.post("/api/narration/pause").json()["status"] == "paused"
        assert client.post("/api/narration/resume").json()["status"] == "speaking"
        assert client.post("/api/narration/stop").json()["status"] == "stopped"

        status = client.get("/api/narration/status").json()
        assert status["speaking"] is False
        assert status["paused"] is False
        assert local_backend.handles[0].release_count == 1

    def test_speak_uses_default_voice(self, client, local_backend) -> None:
        response = client.post("/api/narration/speak", json={"text": "Hello"})
        assert response.json()["personality_id"] == "wiseStoryteller"
        _wait_until_speaking(client)
        client.post("/api/narration/stop")

    def test_auth_required_when_password_set(self, client, monkeypatch) -> None:
        monkeypatch.setattr(main.settings, "api_password", "secret")
        body = {"text": "Hello"}

        assert client.post("/api/narration/speak", json=body).status_code == 401
        assert client.post("/api/narration/speak", json=body, headers={"X-API-Key": "wrong"}).status_code == 403
        response = client.post("/api/narration/speak", json=body, headers={"X-API-Key": "secret"})
        assert response.status_code == 202
        _wait_until_speaking(client)
        client.post("/api/narration/stop")


# ---------------------------------------------------------------------------
# Sounds and settings
# ---------------------------------------------------------------------------


class TestSoundsAndSettings:

    def test_list_sounds(self, client) -> None:
        data = client.get("/api/sounds", params={"theme": "adventure", "setting": "space"}).json()
        assert data["sounds"] == ["ambient", "action", "discovery"]

    def test_sound_catalog(self, client) -> None:
        catalog = client.get("/api/sounds/catalog").json()
        assert sorted(catalog) == ["adventure", "friendship", "magic"]
        assert catalog["magic"]["forest"]["spellcasting"]["volume"] == 0.5

    def test_thematic_sound_validation(self, client) -> None:
        assert client.post("/api/sounds/thematic", json={"theme": "magic"}).status_code == 400
        response = client.post("/api/sounds/thematic", json={"theme": "magic", "setting": "ocean"})
        assert response.status_code == 404
        response = client.post("/api/sounds/thematic", json={"theme": "magic", "setting": "castle"})
        assert response.status_code == 202

    def test_cue_validation(self, client) -> None:
        assert client.post("/api/sounds/cue", json={"emotion": "joy", "intensity": "extreme"}).status_code == 400
        assert client.post("/api/sounds/cue", json={"emotion": "joy"}).status_code == 202

    def test_transition_and_stop(self, client) -> None:
        body = {"from_theme": "adventure", "to_theme": "magic"}
        assert client.post("/api/sounds/transition", json=body).status_code == 202
        assert client.post("/api/sounds/stop").json()["status"] == "stopped"

    def test_fade(self, client) -> None:
        response = client.post("/api/sounds/fade", json={"duration_ms": 500})
        assert response.json() == {"status": "fading", "duration_ms": 500}
        assert client.post("/api/sounds/fade", json={}).json()["duration_ms"] == 2000
        assert client.post("/api/sounds/fade", json={"duration_ms": "slow"}).status_code == 400
        assert client.post("/api/sounds/fade", json={"duration_ms": 0}).json()["status"] == "fading"

    def test_update_settings(self, client) -> None:
        response = client.put("/api/settings", json={
            "audio_enabled": False,
            "master_volume": 0.5,
            "sound_effects_enabled": False,
            "sound_volume": 2,
        })
        assert response.json() == {
            "audio_enabled": False,
            "master_volume": 0.5,
            "sound_effects_enabled": False,
            "sound_volume": 1.0,
        }

    def test_update_settings_rejects_bad_types(self, client) -> None:
        assert client.put("/api/settings", json={"master_volume": "loud"}).status_code == 400
        assert client.put("/api/settings", json={"audio_enabled": "yes"}).status_code == 400
