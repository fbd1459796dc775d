"""
Local Speech Adapter
Uses the platform synthesizer ('say' on macOS, 'espeak-ng' elsewhere) -
no API key or network needed.
"""

import asyncio
import logging
import re
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Sequence

from adapters.base import ResourceHandle, SynthesisBackend
from adapters.player import ProcessPlayback
from config import settings
from errors import SynthesisError, ValidationError
from models.personality import VoiceCharacteristics

logger = logging.getLogger(__name__)

# Name hints used when the synthesizer does not report voice gender/age
FEMALE_HINTS = ("female", "woman", "girl")
MALE_HINTS = ("male", "man", "boy")
CHILD_HINTS = ("child", "kid", "young")

# 'say' speaks ~180 wpm and 'espeak-ng' ~175 wpm at rate 1.0
SAY_BASE_WPM = 180
ESPEAK_BASE_WPM = 175

# Pitch base (espeak -p, say [[pbas]]) for pitch 1.0, clamped to 0-99
BASE_PITCH = 50

_SAY_LINE = re.compile(r"^(?P<name>.+?)\s+(?P<locale>[a-z]{2,3}[_-][A-Za-z0-9]+)\s+#")


@dataclass
class LocalVoice:
    """A voice installed on this machine."""
    identifier: str
    name: str
    locale: str
    gender: Optional[str] = None
    age: Optional[str] = None
    local_service: bool = True

    def to_dict(self):
        return {
            "identifier": self.identifier,
            "name": self.name,
            "locale": self.locale,
            "gender": self.gender,
            "age": self.age,
            "local_service": self.local_service,
        }


def parse_say_voices(output: str) -> List[LocalVoice]:
    """Parse ``say -v ?`` output."""
    voices = []
    for line in output.splitlines():
        match = _SAY_LINE.match(line.strip())
        if match:
            name = match.group("name").strip()
            voices.append(LocalVoice(identifier=name, name=name, locale=match.group("locale")))
    return voices


def parse_espeak_voices(output: str) -> List[LocalVoice]:
    """Parse ``espeak-ng --voices`` output."""
    voices = []
    for line in output.splitlines()[1:]:
        parts = line.split()
        if len(parts) < 4:
            continue
        language, age_gender, name = parts[1], parts[2], parts[3]
        gender = {"M": "male", "F": "female"}.get(age_gender.split("/")[-1])
        voices.append(LocalVoice(
            identifier=language,
            name=name.replace("_", " "),
            locale=language,
            gender=gender,
        ))
    return voices


def _name_gender(name: str) -> Optional[str]:
    lower = name.lower()
    # "female" contains "male", so check the female hints first
    if any(hint in lower for hint in FEMALE_HINTS):
        return "female"
    if any(hint in lower for hint in MALE_HINTS):
        return "male"
    return None


def _matches_hint(voice: LocalVoice, characteristics: VoiceCharacteristics) -> bool:
    gender = characteristics.voice_gender
    if gender in ("male", "female"):
        voice_gender = voice.gender or _name_gender(voice.name)
        if voice_gender is not None and voice_gender != gender:
            return False
    if characteristics.voice_age == "child":
        if voice.age is not None:
            return voice.age == "child"
        return any(hint in voice.name.lower() for hint in CHILD_HINTS)
    return True


def select_voice(
    voices: Sequence[LocalVoice],
    characteristics: VoiceCharacteristics,
    language: str = "en",
) -> Optional[LocalVoice]:
    """
    Pick the best installed voice for a personality.

    Precedence: explicit voice id, then voices in the language family,
    narrowed by gender/age hint when any voice matches it, then device-local
    voices, then the first candidate.
    """
    if not voices:
        return None

    if characteristics.voice_uri:
        for voice in voices:
            if voice.identifier == characteristics.voice_uri:
                return voice

    family = language.lower().split("-")[0].split("_")[0]
    candidates = [v for v in voices if re.split(r"[-_]", v.locale.lower())[0] == family]
    if not candidates:
        candidates = list(voices)

    hinted = [v for v in candidates if _matches_hint(v, characteristics)]
    if hinted:
        candidates = hinted

    local = [v for v in candidates if v.local_service]
    if local:
        candidates = local

    return candidates[0]


class LocalSpeechSynthesizer:
    """
    Platform speech synthesizer driven through its command-line tool.

    Speech goes straight to the audio device, so there is no timing data:
    handles report 0 for current time and duration.
    """

    def __init__(self, command: Optional[str] = None, language: Optional[str] = None,
                 voices: Optional[List[LocalVoice]] = None):
        self.command = command or settings.local_tts_command
        self.language = language or settings.speech_language
        self._voices = voices

    @property
    def flavor(self) -> str:
        return "say" if Path(self.command).name == "say" else "espeak"

    def is_available(self) -> bool:
        return shutil.which(self.command) is not None

    async def list_voices(self) -> List[LocalVoice]:
        """List installed voices (cached after the first call)."""
        if self._voices is not None:
            return self._voices

        args = ["-v", "?"] if self.flavor == "say" else ["--voices"]
        try:
            process = await asyncio.create_subprocess_exec(
                self.command, *args,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.DEVNULL,
            )
            stdout, _ = await process.communicate()
        except OSError as e:
            logger.warning(f"Could not list voices from {self.command}: {e}")
            self._voices = []
            return self._voices

        output = stdout.decode(errors="replace")
        if self.flavor == "say":
            self._voices = parse_say_voices(output)
        else:
            self._voices = parse_espeak_voices(output)
        logger.info(f"Local speech initialized with {len(self._voices)} voices")
        return self._voices

    def build_command(self, text: str, characteristics: VoiceCharacteristics,
                      voice: Optional[LocalVoice], volume: float = 1.0) -> List[str]:
        rate = max(0.1, min(10.0, characteristics.rate))
        pitch = max(0, min(99, int(characteristics.pitch * BASE_PITCH)))
        cmd = [self.command]
        if self.flavor == "say":
            if voice:
                cmd += ["-v", voice.identifier]
            # 'say' has no volume or pitch flags, only embedded commands
            volume = max(0.0, min(1.0, volume))
            cmd += ["-r", str(int(SAY_BASE_WPM * rate)), f"[[volm {volume:.2f}]] [[pbas {pitch}]] {text}"]
            return cmd

        amplitude = max(0, min(200, int(volume * 100)))
        if voice:
            cmd += ["-v", voice.identifier]
        cmd += [
            "-s", str(int(ESPEAK_BASE_WPM * rate)),
            "-p", str(pitch),
            "-a", str(amplitude),
            text,
        ]
        return cmd

    async def speak(self, text: str, characteristics: VoiceCharacteristics,
                    volume: float = 1.0) -> ProcessPlayback:
        """
        Start speaking text.

        Returns:
            Handle whose wait() resolves when speech finishes

        Raises:
            ValidationError: text is blank
            SynthesisError: synthesizer missing or failed to start
        """
        if not text or not text.strip():
            raise ValidationError("Cannot speak empty text")
        if not self.is_available():
            raise SynthesisError(f"Speech synthesizer '{self.command}' is not installed")

        voice = select_voice(await self.list_voices(), characteristics, self.language)
        playback = ProcessPlayback(
            self.build_command(text, characteristics, voice, volume),
            timed=False,
            failure=SynthesisError,
        )
        try:
            await playback.start()
        except OSError as e:
            raise SynthesisError(f"{self.command} failed to start: {e}") from e

        logger.info(f"Local speech: voice={voice.name if voice else 'default'}, "
                    f"rate={characteristics.rate}, text={text[:50]}...")
        return playback


class LocalBackend(SynthesisBackend):
    """Narration through the platform synthesizer."""

    def __init__(self, synthesizer: LocalSpeechSynthesizer):
        self.synthesizer = synthesizer

    @property
    def name(self) -> str:
        return "local"

    def is_available(self) -> bool:
        return self.synthesizer.is_available()

    async def list_voices(self) -> List[LocalVoice]:
        return await self.synthesizer.list_voices()

    async def open(self, text: str, characteristics: VoiceCharacteristics,
                   volume: float = 1.0) -> ResourceHandle:
        return await self.synthesizer.speak(text, characteristics, volume)
