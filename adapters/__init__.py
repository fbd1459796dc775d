"""Speech, sound and playback adapters"""
from adapters.base import AudioResource, ResourceHandle, SynthesisBackend
from adapters.elevenlabs import ElevenLabsClient, RemoteBackend
from adapters.local_speech import LocalBackend, LocalSpeechSynthesizer
from adapters.player import AudioPlayer, ProcessPlayback

__all__ = [
    "AudioResource", "ResourceHandle", "SynthesisBackend",
    "ElevenLabsClient", "RemoteBackend",
    "LocalBackend", "LocalSpeechSynthesizer",
    "AudioPlayer", "ProcessPlayback",
]
