"""
Storybook Narration Server - Main Entry Point
Voice personalities, narration playback and story sound effects

Run: uvicorn main:app --host 0.0.0.0 --port 9000 --reload
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Tuple

from fastapi import FastAPI, Header, HTTPException
from fastapi.middleware.cors import CORSMiddleware

from adapters.elevenlabs import ElevenLabsClient, RemoteBackend
from adapters.local_speech import LocalBackend, LocalSpeechSynthesizer
from adapters.player import AudioPlayer
from config import Settings, settings
from errors import NarrationError, NotFoundError, ValidationError
from models.personality import DEFAULT_PERSONALITY_ID
from pipeline.ambient import AmbientSoundService
from pipeline.narrator import NarrationService
from pipeline.playback import PlaybackCoordinator
from pipeline.voice_recommender import VoiceRecommender
from pipeline.voice_registry import VoiceRegistry

# Configure logging
logging.basicConfig(level=getattr(logging, settings.log_level.upper(), logging.INFO))
logger = logging.getLogger(__name__)

# Narrations and sounds started from requests keep running after the response
_background_tasks = set()


def build_services(config: Settings = settings) -> Tuple[NarrationService, AmbientSoundService]:
    """Wire the narration and sound services from configuration."""
    coordinator = PlaybackCoordinator(max_effects=config.max_effect_sessions)
    player = AudioPlayer(config.player_command)
    client = ElevenLabsClient(
        api_key=config.elevenlabs_api_key,
        base_url=config.elevenlabs_base_url,
        output_format=config.elevenlabs_output_format,
        timeout=config.elevenlabs_timeout,
    )
    local = LocalBackend(LocalSpeechSynthesizer(config.local_tts_command, config.speech_language))
    remote = RemoteBackend(client, player) if client.is_configured() else None

    narrator = NarrationService(
        VoiceRegistry(),
        VoiceRecommender(),
        coordinator,
        local_backend=local,
        remote_backend=remote,
        audio_enabled=config.audio_enabled,
        master_volume=config.master_volume,
    )
    sounds = AmbientSoundService(client, player, coordinator, enabled=config.sound_effects_enabled)
    return narrator, sounds


# ============================================================================
# Authentication Dependency
# ============================================================================

async def verify_api_key(x_api_key: str = None):
    """
    Verify API key if password is configured.
    Add header: X-API-Key: your_password
    """
    if not settings.api_password:
        return True  # No password configured, allow all

    if not x_api_key:
        raise HTTPException(status_code=401, detail="X-API-Key header required")

    if x_api_key != settings.api_password:
        raise HTTPException(status_code=403, detail="Invalid API key")

    return True


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build services on startup unless they were provided already."""
    if getattr(app.state, "narrator", None) is None:
        app.state.narrator, app.state.sounds = build_services(settings)
    narrator = app.state.narrator
    logger.info(f"Storybook Narration Server started "
                f"(remote={'on' if narrator.remote_backend else 'off'}, "
                f"local={narrator.local_backend.name})")
    yield
    narrator.coordinator.stop_all()
    logger.info("Storybook Narration Server shutting down")


# Create FastAPI app
app = FastAPI(
    title="Storybook Narration Server",
    description="Narration and story sound API for the storybook app",
    version="1.0.0",
    lifespan=lifespan
)

# Configure CORS for local network access
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ============================================================================
# Helpers
# ============================================================================

def get_narrator() -> NarrationService:
    return app.state.narrator


def get_sounds() -> AmbientSoundService:
    return app.state.sounds


def to_http_error(error: NarrationError) -> HTTPException:
    if isinstance(error, NotFoundError):
        return HTTPException(status_code=404, detail=str(error))
    if isinstance(error, ValidationError):
        return HTTPException(status_code=400, detail=str(error))
    return HTTPException(status_code=500, detail=str(error))


def _log_task_result(task: asyncio.Task, label: str) -> None:
    _background_tasks.discard(task)
    if task.cancelled():
        return
    error = task.exception()
    if error is not None:
        logger.error(f"{label} failed: {error}")


def run_in_background(coro, label: str) -> asyncio.Task:
    """Run a coroutine after the response is sent, logging its failure."""
    task = asyncio.ensure_future(coro)
    _background_tasks.add(task)
    task.add_done_callback(lambda t: _log_task_result(t, label))
    return task


def _require_str(body: dict, key: str) -> str:
    value = body.get(key)
    if not isinstance(value, str) or not value.strip():
        raise HTTPException(status_code=400, detail=f"{key} required in body")
    return value


# ============================================================================
# API Endpoints
# ============================================================================

@app.get("/api/status")
async def root():
    """Health check endpoint."""
    return {
        "status": "running",
        "name": "Storybook Narration Server",
        "version": "1.0.0"
    }


@app.get("/api/health")
async def health_check():
    """Detailed health check."""
    narrator = get_narrator()
    remote = narrator.remote_backend
    return {
        "status": "healthy" if narrator.is_ready() else "degraded",
        "ready": narrator.is_ready(),
        "remote_available": remote is not None and remote.is_available(),
        "local_available": narrator.local_backend.is_available(),
        "sounds_ready": get_sounds().is_ready(),
    }


@app.get("/api/voices")
async def list_voices():
    """List all voice personalities."""
    return [p.to_dict() for p in get_narrator().get_available_personalities()]


@app.get("/api/local-voices")
async def list_local_voices():
    """Voices installed for the local synthesizer."""
    voices = await get_narrator().local_backend.list_voices()
    return [v.to_dict() for v in voices]


@app.get("/api/voices/{personality_id}")
async def get_voice(personality_id: str):
    try:
        return get_narrator().registry.get(personality_id).to_dict()
    except NotFoundError as e:
        raise to_http_error(e)


@app.post("/api/voices/recommend")
async def recommend_voice(body: dict):
    """
    Recommend a narrator voice for a story.

    Body: {"text": "...", "character": "brave captain"}
    """
    text = body.get("text") or ""
    character = body.get("character")
    if not isinstance(text, str) or (character is not None and not isinstance(character, str)):
        raise HTTPException(status_code=400, detail="text and character must be strings")

    narrator = get_narrator()
    personality_id = narrator.get_recommended_voice(text, character)
    return {
        "personality_id": personality_id,
        "personality": narrator.registry.get(personality_id).to_dict(),
    }


@app.post("/api/voices/{personality_id}/test", status_code=202)
async def test_voice(personality_id: str, x_api_key: str = Header(None)):
    """Speak the personality's sample phrase."""
    await verify_api_key(x_api_key)
    narrator = get_narrator()
    try:
        narrator.registry.get(personality_id)
    except NotFoundError as e:
        raise to_http_error(e)

    run_in_background(narrator.test_voice(personality_id), f"Voice test for {personality_id}")
    return {"status": "started", "personality_id": personality_id}


@app.post("/api/narration/speak", status_code=202)
async def speak(body: dict, x_api_key: str = Header(None)):
    """
    Start narrating text. Replaces any current narration.

    Body: {"text": "...", "personality_id": "wiseStoryteller"}
    """
    await verify_api_key(x_api_key)
    narrator = get_narrator()
    text = body.get("text")
    personality_id = body.get("personality_id") or DEFAULT_PERSONALITY_ID
    if text is not None and not isinstance(text, str):
        raise HTTPException(status_code=400, detail="text must be a string")

    try:
        narrator.validate(text, personality_id)
    except NarrationError as e:
        raise to_http_error(e)

    run_in_background(narrator.speak(text, personality_id), f"Narration with {personality_id}")
    return {"status": "started", "personality_id": personality_id}


@app.post("/api/narration/pause")
async def pause_narration():
    narrator = get_narrator()
    narrator.pause()
    return {"status": "paused" if narrator.is_paused() else "idle"}


@app.post("/api/narration/resume")
async def resume_narration():
    narrator = get_narrator()
    narrator.resume()
    return {"status": "speaking" if narrator.is_speaking() else "idle"}


@app.post("/api/narration/stop")
async def stop_narration():
    get_narrator().stop()
    return {"status": "stopped"}


@app.get("/api/narration/status")
async def narration_status():
    """Narration state and progress; poll this to highlight words."""
    narrator = get_narrator()
    return {
        "speaking": narrator.is_speaking(),
        "paused": narrator.is_paused(),
        "loading": narrator.coordinator.is_loading(),
        **narrator.get_progress(),
    }


@app.get("/api/sounds")
async def list_sounds(theme: str, setting: str):
    """List sound types for a theme/setting combination."""
    return {"theme": theme, "setting": setting, "sounds": get_sounds().get_available_sounds(theme, setting)}


@app.get("/api/sounds/catalog")
async def sound_catalog():
    """The full theme -> setting -> sound type table."""
    return get_sounds().get_sound_catalog()


@app.post("/api/sounds/thematic", status_code=202)
async def play_thematic_sound(body: dict, x_api_key: str = Header(None)):
    """
    Play a themed sound.

    Body: {"theme": "magic", "setting": "forest", "sound_type": "ambient"}
    """
    await verify_api_key(x_api_key)
    sounds = get_sounds()
    theme = _require_str(body, "theme")
    setting = _require_str(body, "setting")
    sound_type = body.get("sound_type") or "ambient"
    if sound_type not in sounds.get_available_sounds(theme, setting):
        raise HTTPException(status_code=404, detail=f"No {sound_type} sound for {theme}/{setting}")

    run_in_background(sounds.play_thematic_sound(theme, setting, sound_type),
                      f"Sound {theme}/{setting}/{sound_type}")
    return {"status": "started", "theme": theme, "setting": setting, "sound_type": sound_type}


@app.post("/api/sounds/transition", status_code=202)
async def play_transition(body: dict, x_api_key: str = Header(None)):
    await verify_api_key(x_api_key)
    from_theme = _require_str(body, "from_theme")
    to_theme = _require_str(body, "to_theme")
    run_in_background(get_sounds().play_story_transition(from_theme, to_theme),
                      f"Transition {from_theme}->{to_theme}")
    return {"status": "started"}


@app.post("/api/sounds/cue", status_code=202)
async def play_cue(body: dict, x_api_key: str = Header(None)):
    """Body: {"emotion": "happy", "intensity": "low|medium|high"}"""
    await verify_api_key(x_api_key)
    emotion = _require_str(body, "emotion")
    intensity = body.get("intensity", "medium")
    if intensity not in ("low", "medium", "high"):
        raise HTTPException(status_code=400, detail="intensity must be low, medium or high")
    run_in_background(get_sounds().play_emotional_cue(emotion, intensity), f"Cue {emotion}")
    return {"status": "started"}


@app.post("/api/sounds/fade")
async def fade_sounds(body: dict, x_api_key: str = Header(None)):
    """Body: {"duration_ms": 2000}"""
    await verify_api_key(x_api_key)
    duration_ms = body.get("duration_ms", 2000)
    if isinstance(duration_ms, bool) or not isinstance(duration_ms, (int, float)):
        raise HTTPException(status_code=400, detail="duration_ms must be a number")
    get_sounds().fade_out(duration_ms)
    return {"status": "fading", "duration_ms": duration_ms}


@app.post("/api/sounds/stop")
async def stop_sounds():
    get_sounds().stop_all()
    return {"status": "stopped"}


@app.put("/api/settings")
async def update_settings(body: dict, x_api_key: str = Header(None)):
    """
    Push audio settings from the UI.

    Body: {"audio_enabled": true, "master_volume": 0.8,
           "sound_effects_enabled": true, "sound_volume": 0.7}
    """
    await verify_api_key(x_api_key)
    narrator = get_narrator()
    sounds = get_sounds()

    for key in ("master_volume", "sound_volume"):
        value = body.get(key)
        if value is not None and (isinstance(value, bool) or not isinstance(value, (int, float))):
            raise HTTPException(status_code=400, detail=f"{key} must be a number")
    for key in ("audio_enabled", "sound_effects_enabled"):
        value = body.get(key)
        if value is not None and not isinstance(value, bool):
            raise HTTPException(status_code=400, detail=f"{key} must be true or false")

    narrator.configure(audio_enabled=body.get("audio_enabled"), master_volume=body.get("master_volume"))
    if body.get("sound_effects_enabled") is not None:
        sounds.set_enabled(body["sound_effects_enabled"])
    if body.get("sound_volume") is not None:
        sounds.set_master_volume(body["sound_volume"])

    return {
        "audio_enabled": narrator.audio_enabled,
        "master_volume": narrator.master_volume,
        "sound_effects_enabled": sounds.enabled,
        "sound_volume": sounds.master_volume,
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=settings.host, port=settings.port)
