"""
Voice Registry - read-only catalog of voice personalities
"""

from typing import Dict, Iterable, List, Optional

from errors import NotFoundError
from models.personality import PERSONALITIES, VoicePersonality


class VoiceRegistry:
    """Looks up voice personalities by id, preserving declaration order."""

    def __init__(self, personalities: Optional[Iterable[VoicePersonality]] = None):
        ordered = list(PERSONALITIES if personalities is None else personalities)
        self._by_id: Dict[str, VoicePersonality] = {}
        for personality in ordered:
            if personality.id in self._by_id:
                raise ValueError(f"Duplicate voice personality id: {personality.id}")
            self._by_id[personality.id] = personality

    def get_all(self) -> List[VoicePersonality]:
        return list(self._by_id.values())

    def get(self, personality_id: str) -> VoicePersonality:
        try:
            return self._by_id[personality_id]
        except KeyError:
            raise NotFoundError(personality_id) from None

    def ids(self) -> List[str]:
        return list(self._by_id)

    def __contains__(self, personality_id) -> bool:
        return personality_id in self._by_id

    def __len__(self) -> int:
        return len(self._by_id)
