"""
Ambient Sound Service - background loops and one-shot story sound effects

All sound is generated by ElevenLabs and played through the coordinator:
ambient loops in the ambient slot, everything else as capped effects.
Sound is best-effort, so failures are logged and never raised.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Dict, List, Optional

from adapters.elevenlabs import ElevenLabsClient
from adapters.player import AudioPlayer
from config import clamp_volume
from errors import NarrationError
from pipeline.playback import PlaybackCoordinator, PlaybackSession, SessionKind

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SoundEffect:
    prompt: str
    duration: float
    volume: float

    def to_dict(self):
        return {"prompt": self.prompt, "duration": self.duration, "volume": self.volume}


THEMATIC_SOUND_EFFECTS: Dict[str, Dict[str, Dict[str, SoundEffect]]] = {
    "adventure": {
        "forest": {
            "ambient": SoundEffect("Gentle forest ambience with birds chirping, leaves rustling, and a distant stream flowing", 10, 0.3),
            "action": SoundEffect("Exciting adventure music with footsteps on forest floor, branches snapping", 5, 0.4),
            "discovery": SoundEffect("Magical discovery sound with twinkling chimes and wonder", 3, 0.5),
        },
        "ocean": {
            "ambient": SoundEffect("Peaceful ocean waves with seagulls and gentle water sounds", 10, 0.3),
            "action": SoundEffect("Underwater adventure with bubbles, swimming sounds, and dolphin calls", 5, 0.4),
            "discovery": SoundEffect("Magical underwater discovery with mystical whale songs", 3, 0.5),
        },
        "space": {
            "ambient": SoundEffect("Cosmic space ambience with distant stars and gentle spacecraft hum", 10, 0.3),
            "action": SoundEffect("Space adventure with rocket engines and cosmic energy", 5, 0.4),
            "discovery": SoundEffect("Alien discovery with otherworldly chimes and cosmic wonder", 3, 0.5),
        },
    },
    "friendship": {
        "village": {
            "ambient": SoundEffect("Cozy village atmosphere with gentle wind, distant laughter, and peaceful sounds", 10, 0.3),
            "heartwarming": SoundEffect("Warm friendship moment with soft piano and gentle strings", 4, 0.4),
            "celebration": SoundEffect("Joyful celebration with happy music and community sounds", 5, 0.5),
        },
        "castle": {
            "ambient": SoundEffect("Royal castle atmosphere with gentle echoes and distant music", 10, 0.3),
            "heartwarming": SoundEffect("Royal friendship moment with elegant harp and warm strings", 4, 0.4),
            "celebration": SoundEffect("Royal celebration with fanfare and joyful court music", 5, 0.5),
        },
    },
    "magic": {
        "forest": {
            "ambient": SoundEffect("Enchanted forest with magical sparkles, mystical wind, and fairy sounds", 10, 0.3),
            "spellcasting": SoundEffect("Magic spell being cast with mystical energy and sparkling sounds", 3, 0.5),
            "transformation": SoundEffect("Magical transformation with shimmering energy and wonder", 4, 0.6),
        },
        "castle": {
            "ambient": SoundEffect("Magical castle with echoing spells, mystical energy, and ancient magic", 10, 0.3),
            "spellcasting": SoundEffect("Powerful wizard casting spells with deep magical resonance", 3, 0.5),
            "transformation": SoundEffect("Grand magical transformation with powerful energy waves", 4, 0.6),
        },
    },
}

INTENSITY_WORDS = {"low": "subtle", "medium": "moderate", "high": "dramatic"}
INTENSITY_VOLUMES = {"low": 0.3, "medium": 0.4, "high": 0.6}
TRANSITION_VOLUME = 0.4


class AmbientSoundService:
    """Thematic ambience, transitions and emotional cues for a story."""

    def __init__(
        self,
        client: ElevenLabsClient,
        player: AudioPlayer,
        coordinator: PlaybackCoordinator,
        master_volume: float = 0.7,
        enabled: bool = True,
    ):
        self.client = client
        self.player = player
        self.coordinator = coordinator
        self.master_volume = clamp_volume(master_volume)
        self.enabled = enabled
        self._fade: Optional[asyncio.TimerHandle] = None

    def is_ready(self) -> bool:
        return self.enabled and self.client.is_configured() and self.player.is_available()

    def set_enabled(self, enabled: bool) -> None:
        self.enabled = enabled
        if not enabled:
            self.stop_all()
        logger.info(f"Sound effects {'enabled' if enabled else 'disabled'}")

    def set_master_volume(self, volume: float) -> None:
        """Set the volume applied to sounds started from now on."""
        self.master_volume = clamp_volume(volume)
        logger.info(f"Sound master volume set to {self.master_volume:.2f}")

    def get_available_sounds(self, theme: str, setting: str) -> List[str]:
        return list(THEMATIC_SOUND_EFFECTS.get(theme, {}).get(setting, {}))

    def get_sound_catalog(self) -> dict:
        """The whole theme table, theme -> setting -> type -> sound."""
        return {
            theme: {
                setting: {sound_type: effect.to_dict() for sound_type, effect in sounds.items()}
                for setting, sounds in settings_.items()
            }
            for theme, settings_ in THEMATIC_SOUND_EFFECTS.items()
        }

    async def _play(self, prompt: str, duration: float, volume: float,
                    kind: SessionKind, label: str) -> Optional[PlaybackSession]:
        if not self.is_ready():
            logger.info(f"Sound service disabled or not ready, skipping {label}")
            return None

        loop = kind is SessionKind.AMBIENT

        async def load():
            resource = await self.client.synthesize_sound_effect(prompt, duration)
            return await self.player.play(resource, volume=volume, loop=loop)

        try:
            return await self.coordinator.play(load, kind=kind, volume=volume, loop=loop, label=label)
        except NarrationError as e:
            logger.error(f"Failed to play {label}: {e}")
            return None

    async def play_thematic_sound(self, theme: str, setting: str,
                                  sound_type: str = "ambient") -> Optional[PlaybackSession]:
        """
        Play a sound from the theme table.

        Ambient sounds loop and replace the current ambient loop; other
        types play once as effects.
        """
        effect = THEMATIC_SOUND_EFFECTS.get(theme, {}).get(setting, {}).get(sound_type)
        if effect is None:
            logger.warning(f"No sound configured for theme={theme}, setting={setting}, type={sound_type}")
            return None

        self._cancel_fade()
        kind = SessionKind.AMBIENT if sound_type == "ambient" else SessionKind.EFFECT
        return await self._play(
            effect.prompt,
            effect.duration,
            self.master_volume * effect.volume,
            kind,
            f"{kind.value}:{theme}/{setting}/{sound_type}",
        )

    async def play_sound_effect(self, prompt: str, duration: float = 3.0,
                                volume: float = 0.5) -> Optional[PlaybackSession]:
        """Play a one-shot effect from a free-form prompt."""
        return await self._play(prompt, duration, clamp_volume(volume), SessionKind.EFFECT,
                                f"effect:{prompt[:30]}")

    async def play_story_transition(self, from_theme: str, to_theme: str) -> Optional[PlaybackSession]:
        prompt = f"Smooth musical transition from {from_theme} story to {to_theme} story with gentle fade"
        return await self._play(prompt, 2, self.master_volume * TRANSITION_VOLUME,
                                SessionKind.EFFECT, f"transition:{from_theme}->{to_theme}")

    async def play_emotional_cue(self, emotion: str, intensity: str = "medium") -> Optional[PlaybackSession]:
        if intensity not in INTENSITY_WORDS:
            logger.warning(f"Unknown cue intensity '{intensity}', using medium")
            intensity = "medium"
        prompt = f"{INTENSITY_WORDS[intensity]} {emotion} emotional music cue for children's story"
        return await self._play(prompt, 3, self.master_volume * INTENSITY_VOLUMES[intensity],
                                SessionKind.EFFECT, f"cue:{emotion}/{intensity}")

    def stop_ambient(self) -> None:
        self.coordinator.stop_ambient()
        logger.info("Ambient sound stopped")

    def fade_out(self, duration_ms: int = 2000) -> None:
        """
        Stop the ambient loop and effects after duration_ms.

        Process players cannot ramp volume, so the fade ends in a stop.
        A later fade or a new thematic sound replaces the pending one.
        """
        self._cancel_fade()
        if duration_ms <= 0:
            self.stop_all()
            return
        self._fade = asyncio.get_running_loop().call_later(duration_ms / 1000, self._finish_fade)
        logger.info(f"Fading out sounds over {duration_ms}ms")

    def _finish_fade(self) -> None:
        self._fade = None
        self.stop_all()

    def _cancel_fade(self) -> None:
        if self._fade is not None:
            self._fade.cancel()
            self._fade = None

    def stop_all(self) -> None:
        """Stop the ambient loop and every effect; narration is left alone."""
        self._cancel_fade()
        self.coordinator.stop_ambient()
        self.coordinator.stop_effects()
        logger.info("All sounds stopped")
