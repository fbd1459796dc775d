"""
Voice personality models and the built-in personality catalog
"""

from dataclasses import dataclass, field
from typing import Optional, Tuple

DEFAULT_REMOTE_MODEL = "eleven_monolingual_v1"
DEFAULT_STABILITY = 0.75
DEFAULT_SIMILARITY_BOOST = 0.75


@dataclass(frozen=True)
class Emphasis:
    """Words a personality stresses, with pitch/rate multipliers."""
    words: Tuple[str, ...]
    pitch_multiplier: float = 1.0
    rate_multiplier: float = 1.0

    def to_dict(self):
        return {
            "words": list(self.words),
            "pitch_multiplier": self.pitch_multiplier,
            "rate_multiplier": self.rate_multiplier,
        }


@dataclass(frozen=True)
class VoiceCharacteristics:
    """Synthesis parameters for one personality."""
    rate: float = 1.0        # local speaking speed (0.1 - 10)
    pitch: float = 1.0       # local pitch (0 - 2)
    volume: float = 1.0      # 0 - 1
    voice_uri: Optional[str] = None       # explicit local voice identifier
    voice_gender: Optional[str] = None    # male, female, neutral
    voice_age: Optional[str] = None       # child, young, adult, elderly
    accent: Optional[str] = None
    pause_duration: int = 0               # ms between sentences
    emphasis: Optional[Emphasis] = None
    # Remote backend; no remote_voice_id means local synthesis only
    remote_voice_id: Optional[str] = None
    remote_model_id: str = DEFAULT_REMOTE_MODEL
    stability: float = DEFAULT_STABILITY
    similarity_boost: float = DEFAULT_SIMILARITY_BOOST

    @property
    def has_remote_voice(self) -> bool:
        return bool(self.remote_voice_id)

    def to_dict(self):
        return {
            "rate": self.rate,
            "pitch": self.pitch,
            "volume": self.volume,
            "voice_uri": self.voice_uri,
            "voice_gender": self.voice_gender,
            "voice_age": self.voice_age,
            "accent": self.accent,
            "pause_duration": self.pause_duration,
            "emphasis": self.emphasis.to_dict() if self.emphasis else None,
            "remote_voice_id": self.remote_voice_id,
            "remote_model_id": self.remote_model_id,
            "stability": self.stability,
            "similarity_boost": self.similarity_boost,
        }


@dataclass(frozen=True)
class VoicePersonality:
    """A named voice: synthesis parameters plus descriptive metadata."""
    id: str
    name: str
    description: str
    characteristics: VoiceCharacteristics
    sample_phrases: Tuple[str, ...] = field(default_factory=tuple)
    mannerisms: Tuple[str, ...] = field(default_factory=tuple)

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "characteristics": self.characteristics.to_dict(),
            "sample_phrases": list(self.sample_phrases),
            "mannerisms": list(self.mannerisms),
        }


DEFAULT_PERSONALITY_ID = "wiseStoryteller"

PERSONALITIES: Tuple[VoicePersonality, ...] = (
    VoicePersonality(
        id="cheerfulChild",
        name="Cheerful Child",
        description="A bright, enthusiastic 6-10 year old with boundless energy",
        characteristics=VoiceCharacteristics(
            rate=1.3, pitch=1.6, volume=0.9,
            voice_gender="neutral", voice_age="child", pause_duration=300,
            emphasis=Emphasis(("wow", "amazing", "cool", "awesome", "yay", "hooray"), 1.8, 0.8),
            remote_voice_id="jBpfuIE2acCO8z3wKNLl", stability=0.5, similarity_boost=0.8,
        ),
        sample_phrases=(
            "Oh wow! This is the BEST story ever!",
            "Can we read another one? Please, please, please?",
            "I love adventures! They're so exciting!",
        ),
        mannerisms=(
            "Giggles between sentences",
            "Emphasizes exciting words with higher pitch",
            "Speaks quickly when excited",
            "Uses lots of exclamation in tone",
        ),
    ),
    VoicePersonality(
        id="regalPrincess",
        name="Regal Princess",
        description="An elegant, refined princess with perfect pronunciation and grace",
        characteristics=VoiceCharacteristics(
            rate=0.8, pitch=1.3, volume=0.8,
            voice_gender="female", voice_age="young", accent="british", pause_duration=500,
            emphasis=Emphasis(("royal", "magnificent", "elegant", "gracious", "noble"), 1.2, 0.7),
            remote_voice_id="ThT5KcBeYPX3keUQqHPh", stability=0.8,
        ),
        sample_phrases=(
            "Good evening, dear subjects. It is my honour to share this tale with you.",
            "One must always remember the importance of kindness and grace.",
            "In the royal gardens, where roses bloom eternal...",
        ),
        mannerisms=(
            "Speaks with measured, deliberate pace",
            "Perfect enunciation of every syllable",
            "Slight pause before important words",
            "Maintains dignified tone throughout",
        ),
    ),
    VoicePersonality(
        id="elderlyWise",
        name="Elderly Storyteller",
        description="A wise 70+ year old with gentle tremor and years of wisdom",
        characteristics=VoiceCharacteristics(
            rate=0.7, pitch=0.9, volume=0.7,
            voice_gender="neutral", voice_age="elderly", pause_duration=800,
            emphasis=Emphasis(("remember", "wisdom", "long ago", "in my time", "experience"), 0.9, 0.6),
            remote_voice_id="pqHfZKP75CvOlQylNhV4", stability=0.85,
        ),
        sample_phrases=(
            "Ah, yes... I remember a tale from long, long ago...",
            "Listen carefully, young ones, for this story holds great wisdom.",
            "In my many years, I have learned that true magic comes from the heart.",
        ),
        mannerisms=(
            "Slight vocal tremor on longer words",
            "Thoughtful pauses mid-sentence",
            "Gentle, grandfatherly tone",
            "Emphasizes life lessons with slower pace",
        ),
    ),
    VoicePersonality(
        id="boomingWizard",
        name="Booming Wizard",
        description="A powerful wizard with deep, resonant voice and magical authority",
        characteristics=VoiceCharacteristics(
            rate=0.9, pitch=0.6, volume=1.0,
            voice_gender="male", voice_age="adult", pause_duration=600,
            emphasis=Emphasis(("magic", "spell", "enchantment", "power", "ancient", "mystical"), 0.5, 0.5),
            remote_voice_id="VR6AewLTigWG4xSOukaG", stability=0.7, similarity_boost=0.85,
        ),
        sample_phrases=(
            "BEHOLD! The ancient magic awakens from its slumber!",
            "By the power of the seven stars, I command thee!",
            "Young apprentice, the secrets of magic are not to be taken lightly.",
        ),
        mannerisms=(
            "Deep, resonant bass tones",
            "Dramatic pauses before magical words",
            "Authoritative, commanding presence",
            "Slight echo effect on important pronouncements",
        ),
    ),
    VoicePersonality(
        id="squeakyFairy",
        name="Excited Fairy",
        description="A tiny, high-pitched fairy with infectious enthusiasm",
        characteristics=VoiceCharacteristics(
            rate=1.5, pitch=1.9, volume=0.8,
            voice_gender="female", voice_age="child", pause_duration=200,
            emphasis=Emphasis(("sparkle", "glitter", "magic", "tiny", "flutter", "shimmer"), 2.0, 1.8),
            remote_voice_id="MF3mGyEr5k8RIxAyQkBf", stability=0.45, similarity_boost=0.8,
        ),
        sample_phrases=(
            "Tee-hee! Look at all the sparkly magic dust!",
            "Flutter, flutter! I can make flowers bloom with just a touch!",
            "Oh my stars! This is the most magical day ever!",
        ),
        mannerisms=(
            "Very high, bell-like voice",
            "Quick, excited speech patterns",
            "Giggles and tinkles between words",
            "Emphasizes magical words with extra pitch",
        ),
    ),
    VoicePersonality(
        id="adventurousCaptain",
        name="Adventurous Captain",
        description="A weathered sea captain with rough accent and nautical flair",
        characteristics=VoiceCharacteristics(
            rate=1.1, pitch=0.7, volume=0.9,
            voice_gender="male", voice_age="adult", accent="pirate", pause_duration=400,
            emphasis=Emphasis(("arrr", "matey", "treasure", "ship", "sea", "adventure"), 0.6, 0.8),
            remote_voice_id="TxGEqnHWrfWFTfGW9XjX", stability=0.6,
        ),
        sample_phrases=(
            "Arrr, matey! Gather 'round for a tale of the seven seas!",
            "Shiver me timbers! That be the finest treasure I ever did see!",
            "Yo ho ho! Every pirate needs a good adventure, savvy?",
        ),
        mannerisms=(
            "Rough, gravelly voice quality",
            "Drops letters from words ('round, 'tis)",
            "Nautical expressions and exclamations",
            "Confident, swaggering delivery",
        ),
    ),
    VoicePersonality(
        id="friendlyRobot",
        name="Friendly Robot",
        description="A helpful AI companion with mechanical precision and warmth",
        characteristics=VoiceCharacteristics(
            rate=1.0, pitch=1.1, volume=0.8,
            voice_gender="neutral", voice_age="adult", pause_duration=300,
            emphasis=Emphasis(("compute", "analyze", "process", "data", "system", "function"), 1.0, 0.9),
        ),
        sample_phrases=(
            "BEEP BOOP! Story processing complete. Initiating narrative sequence.",
            "According to my calculations, this adventure has a 99.7% chance of being amazing!",
            "ERROR: Sadness not found. Happiness levels at maximum capacity!",
        ),
        mannerisms=(
            "Precise, measured speech patterns",
            "Occasional mechanical sound effects",
            "Technical terminology mixed with emotion",
            "Consistent rhythm and timing",
        ),
    ),
    VoicePersonality(
        id="wiseStoryteller",
        name="Wise Storyteller",
        description="A masterful narrator with perfect pacing and dramatic flair",
        characteristics=VoiceCharacteristics(
            rate=0.9, pitch=1.0, volume=0.8,
            voice_gender="neutral", voice_age="adult", pause_duration=600,
            emphasis=Emphasis(("once upon a time", "long ago", "legend", "tale", "story", "moral"), 1.1, 0.8),
            remote_voice_id="ErXwobaYiN019PkySvjV",
        ),
        sample_phrases=(
            "Once upon a time, in a land far, far away...",
            "And so, dear listeners, our tale begins with a single act of kindness.",
            "The moral of our story teaches us that courage comes in many forms.",
        ),
        mannerisms=(
            "Perfect dramatic timing",
            "Rich, warm narrative voice",
            "Builds suspense with pacing",
            "Emphasizes story structure and morals",
        ),
    ),
    VoicePersonality(
        id="sillyMonster",
        name="Silly Monster",
        description="A goofy, lovable monster with playful growls and silly sounds",
        characteristics=VoiceCharacteristics(
            rate=1.2, pitch=0.8, volume=0.9,
            voice_gender="neutral", voice_age="adult", pause_duration=350,
            emphasis=Emphasis(("roar", "growl", "monster", "silly", "funny", "giggle"), 0.7, 1.3),
        ),
        sample_phrases=(
            "ROAAAAR! But don't worry, I'm just a silly monster who loves cookies!",
            "Grr-giggle! I may look scary, but I give the best monster hugs!",
            "Nom nom nom! Stories taste even better than my favorite snacks!",
        ),
        mannerisms=(
            "Playful growls and roars",
            "Exaggerated expressions",
            "Mix of scary and silly tones",
            "Lots of sound effects and onomatopoeia",
        ),
    ),
    VoicePersonality(
        id="calmNatureGuide",
        name="Calm Nature Guide",
        description="A peaceful, soothing voice like a gentle breeze through trees",
        characteristics=VoiceCharacteristics(
            rate=0.8, pitch=1.0, volume=0.7,
            voice_gender="neutral", voice_age="adult", pause_duration=700,
            emphasis=Emphasis(("nature", "peaceful", "gentle", "forest", "stream", "whisper"), 0.9, 0.7),
            remote_voice_id="21m00Tcm4TlvDq8ikWAM", stability=0.9,
        ),
        sample_phrases=(
            "Listen... can you hear the gentle whisper of the wind through the trees?",
            "In the quiet of the forest, every creature has a story to tell.",
            "Take a deep breath and let the peaceful magic of nature fill your heart.",
        ),
        mannerisms=(
            "Soft, meditative tone",
            "Long, peaceful pauses",
            "Emphasizes natural sounds and imagery",
            "Calming, therapeutic delivery",
        ),
    ),
)
