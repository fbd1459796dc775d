"""
Storybook Narration Configuration
"""

import os
import platform


def _env_bool(name: str, default: bool) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def clamp_volume(volume: float) -> float:
    return max(0.0, min(1.0, float(volume)))


IS_MAC = platform.system() == "Darwin"

# Server config
HOST = os.environ.get("HOST", "0.0.0.0")
PORT = int(os.environ.get("PORT", "9000"))
LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

# CORS - allow all for local development
CORS_ORIGINS = os.environ.get("CORS_ORIGINS", "*").split(",")

# Security - API password (optional - leave empty for no auth)
API_PASSWORD = os.environ.get("API_PASSWORD", "")

# Remote speech / sound generation (ElevenLabs)
# Leave the key empty to narrate with the local synthesizer only
ELEVENLABS_API_KEY = os.environ.get("ELEVENLABS_API_KEY", "")
ELEVENLABS_BASE_URL = os.environ.get("ELEVENLABS_BASE_URL", "https://api.elevenlabs.io/v1")
ELEVENLABS_MODEL_ID = os.environ.get("ELEVENLABS_MODEL_ID", "eleven_monolingual_v1")
ELEVENLABS_OUTPUT_FORMAT = os.environ.get("ELEVENLABS_OUTPUT_FORMAT", "mp3_44100_128")
ELEVENLABS_TIMEOUT = float(os.environ.get("ELEVENLABS_TIMEOUT", "60"))

# Local speech and playback commands
LOCAL_TTS_COMMAND = os.environ.get("LOCAL_TTS_COMMAND", "say" if IS_MAC else "espeak-ng")
PLAYER_COMMAND = os.environ.get("PLAYER_COMMAND", "afplay" if IS_MAC else "ffplay")
SPEECH_LANGUAGE = os.environ.get("SPEECH_LANGUAGE", "en")

# Audio settings pushed by the UI (these are only the startup defaults)
AUDIO_ENABLED = _env_bool("AUDIO_ENABLED", True)
MASTER_VOLUME = clamp_volume(os.environ.get("MASTER_VOLUME", "1.0"))
SOUND_EFFECTS_ENABLED = _env_bool("SOUND_EFFECTS_ENABLED", True)
MAX_EFFECT_SESSIONS = int(os.environ.get("MAX_EFFECT_SESSIONS", "3"))


# Create settings object for easy import
class Settings:
    host = HOST
    port = PORT
    log_level = LOG_LEVEL
    cors_origins = CORS_ORIGINS
    api_password = API_PASSWORD
    elevenlabs_api_key = ELEVENLABS_API_KEY
    elevenlabs_base_url = ELEVENLABS_BASE_URL
    elevenlabs_model_id = ELEVENLABS_MODEL_ID
    elevenlabs_output_format = ELEVENLABS_OUTPUT_FORMAT
    elevenlabs_timeout = ELEVENLABS_TIMEOUT
    local_tts_command = LOCAL_TTS_COMMAND
    player_command = PLAYER_COMMAND
    speech_language = SPEECH_LANGUAGE
    audio_enabled = AUDIO_ENABLED
    master_volume = MASTER_VOLUME
    sound_effects_enabled = SOUND_EFFECTS_ENABLED
    max_effect_sessions = MAX_EFFECT_SESSIONS

settings = Settings()
