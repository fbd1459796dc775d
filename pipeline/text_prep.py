"""
Narration text preparation and progress estimation.

Personality transforms are cosmetic: progress is always estimated against
the word count of the original story text, never the transformed text.
"""

import re
from typing import Callable, Dict, Optional

from models.personality import VoicePersonality


def clean_text(text: str) -> str:
    """Strip control junk and collapse whitespace."""
    text = text.replace('\x00', '').replace('\ufffd', '')
    return ' '.join(text.split())


def count_words(text: str) -> int:
    return len(text.split())


def mark_emphasis(text: str, personality: VoicePersonality) -> str:
    """Give emphasis words a short pause so the synthesizer stresses them."""
    emphasis = personality.characteristics.emphasis
    if not emphasis:
        return text
    for word in emphasis.words:
        pattern = re.compile(rf"\b({re.escape(word)})\b(?=\s+\w)", re.IGNORECASE)
        text = pattern.sub(r"\1,", text)
    return text


def _captain(text: str) -> str:
    text = re.sub(r"\bthe\b", "th'", text)
    text = re.sub(r"\baround\b", "'round", text)
    return re.sub(r"\bit is\b", "'tis", text)


def _robot(text: str) -> str:
    return f"BEEP. {text.rstrip('.')}. BOOP."


def _monster(text: str) -> str:
    return text.replace("!", " ROAR!")


PERSONALITY_TRANSFORMS: Dict[str, Callable[[str], str]] = {
    "adventurousCaptain": _captain,
    "friendlyRobot": _robot,
    "sillyMonster": _monster,
}


def prepare_text(text: str, personality: VoicePersonality) -> str:
    """Clean text and apply the personality's emphasis and quirks."""
    prepared = mark_emphasis(clean_text(text), personality)
    transform = PERSONALITY_TRANSFORMS.get(personality.id)
    if transform:
        prepared = transform(prepared)
    return prepared


def estimate_word_index(current_time: float, duration: float, word_count: int) -> Optional[int]:
    """
    Linear estimate of the word being spoken.

    There is no word-boundary timing from either backend, so the position is
    interpolated from elapsed/duration. Returns None when duration is unknown.
    """
    if duration <= 0 or word_count <= 0:
        return None
    ratio = max(0.0, min(1.0, current_time / duration))
    return min(int(ratio * word_count), word_count - 1)
