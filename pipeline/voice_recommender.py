"""
Voice Recommender - Pick a default narrator voice for a story

Rules are checked in order and the first match wins, so the same story
and character always get the same voice.
"""

import logging
from typing import Optional, Sequence, Tuple

from models.personality import DEFAULT_PERSONALITY_ID

logger = logging.getLogger(__name__)


# (substrings, personality id) - matched against the character label
CHARACTER_RULES: Tuple[Tuple[Tuple[str, ...], str], ...] = (
    (("princess",), "regalPrincess"),
    (("captain", "pirate"), "adventurousCaptain"),
    (("wizard", "mage"), "boomingWizard"),
    (("fairy",), "squeakyFairy"),
    (("robot",), "friendlyRobot"),
    (("monster",), "sillyMonster"),
)

# (substrings, personality id) - matched against the story text
CONTENT_RULES: Tuple[Tuple[Tuple[str, ...], str], ...] = (
    (("nature", "forest", "peaceful"), "calmNatureGuide"),
    (("magic", "spell", "enchant"), "boomingWizard"),
    (("adventure", "exciting"), "cheerfulChild"),
    (("funny", "silly", "laugh"), "sillyMonster"),
    (("wise", "lesson", "moral"), "elderlyWise"),
)


def _first_match(value: str, rules: Sequence[Tuple[Tuple[str, ...], str]]) -> Optional[str]:
    for keywords, personality_id in rules:
        if any(keyword in value for keyword in keywords):
            return personality_id
    return None


class VoiceRecommender:
    """
    Recommend a voice personality from story content and character.
    """

    def __init__(
        self,
        character_rules=CHARACTER_RULES,
        content_rules=CONTENT_RULES,
        default_voice: str = DEFAULT_PERSONALITY_ID,
    ):
        self.character_rules = character_rules
        self.content_rules = content_rules
        self.default_voice = default_voice

    def recommend(self, story_text: str, character: Optional[str] = None) -> str:
        """
        Recommend a personality id.

        Args:
            story_text: Story content (may be empty)
            character: Optional character label, e.g. "brave captain"

        Returns:
            Personality id
        """
        if character:
            match = _first_match(character.lower(), self.character_rules)
            if match:
                logger.debug(f"Recommended {match} for character '{character}'")
                return match

        match = _first_match((story_text or "").lower(), self.content_rules)
        if match:
            logger.debug(f"Recommended {match} from story content")
            return match

        return self.default_voice
