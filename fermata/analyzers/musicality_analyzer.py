"""
Musicality Analyzer for Fermata

Synthesizes sound and context into market-facing signals:
- Market appeal (length sweet spot, alliteration, plain spelling)
- Phonetic/semantic alignment (hard or soft sound against the energy the
  genre and mood call for)
"""

from typing import Dict, Optional

from ..models import NameContext, NameType
from .base_analyzer import BaseAnalyzer
from .text_features import PLOSIVES, VOWELS, clamp, is_alliterative, letters, words

# Target share of plosive consonants per genre / mood
GENRE_ENERGY = {
    'metal': 0.80, 'punk': 0.80, 'rock': 0.65, 'hip-hop': 0.65,
    'electronic': 0.55, 'pop': 0.50, 'alternative': 0.55, 'indie': 0.45,
    'blues': 0.40, 'country': 0.40, 'reggae': 0.35, 'jazz': 0.40,
    'folk': 0.30, 'classical': 0.30, 'experimental': 0.50,
}

MOOD_ENERGY = {
    'energetic': 0.75, 'dark': 0.65, 'uplifting': 0.50,
    'melancholy': 0.35, 'calm': 0.25,
}


class MusicalityAnalyzer(BaseAnalyzer):
    """
    Market and musicality synergy analyzer.
    """

    name = "musicality"
    provided_fields = ("market_appeal", "phonetic_semantic_alignment")

    async def analyze(self, name: str, context: NameContext) -> Dict[str, float]:
        tokens = words(name)
        text = letters(name)
        if not text:
            return {}

        return {
            "market_appeal": round(self._score_market_appeal(name, text, tokens, context), 4),
            "phonetic_semantic_alignment": round(self._score_alignment(text, context), 4),
        }

    def _score_market_appeal(self, name: str, text: str, tokens, context: NameContext) -> float:
        score = 0.4

        if 1 <= len(tokens) <= 3:
            score += 0.2
        elif len(tokens) > 5:
            score -= 0.15

        if 4 <= len(text) <= 16:
            score += 0.15

        if is_alliterative(name):
            score += 0.1
        if context.type == NameType.BAND and name.lower().startswith("the "):
            score += 0.05
        if any(ch.isdigit() for ch in name) or any(not (ch.isalnum() or ch in " '-&") for ch in name):
            score -= 0.1

        return clamp(score)

    def _score_alignment(self, text: str, context: NameContext) -> float:
        target = self._target_energy(context)
        consonants = [ch for ch in text if ch not in VOWELS]
        if not consonants:
            return 0.5
        hardness = sum(1 for ch in consonants if ch in PLOSIVES) / len(consonants)

        if target is None:
            # No energy cue; reward moderate texture
            return clamp(0.7 - abs(hardness - 0.4))
        # Plosive shares rarely exceed 0.6, so compress the target range
        return clamp(1.0 - abs(hardness - target * 0.6) * 1.5)

    @staticmethod
    def _target_energy(context: NameContext) -> Optional[float]:
        targets = []
        if context.genre in GENRE_ENERGY:
            targets.append(GENRE_ENERGY[context.genre])
        if context.mood in MOOD_ENERGY:
            targets.append(MOOD_ENERGY[context.mood])
        if not targets:
            return None
        return sum(targets) / len(targets)
