"""
Phonetic Analyzer for Fermata

Heuristic sound analysis of a candidate name:
- Phonetic flow (vowel/consonant alternation, pleasant endings)
- Pronunciation ease (consonant runs, harsh clusters, vowel balance)
- Memorability (length, word count, alliteration)
- Uniqueness (rare letters, uncommon words)
"""

from typing import Dict

from ..models import NameContext
from .base_analyzer import BaseAnalyzer
from .text_features import (
    COMMON_WORDS,
    PLEASANT_ENDINGS,
    RARE_LETTERS,
    VOWELS,
    alternation_ratio,
    clamp,
    harsh_cluster_count,
    is_alliterative,
    letters,
    longest_consonant_run,
    syllable_count,
    words,
)


class PhoneticAnalyzer(BaseAnalyzer):
    """
    Sound-level analyzer.

    Responsibilities:
    - Score how a name flows when spoken
    - Score how hard it is to pronounce
    - Score how easily it is remembered
    - Score how unusual its letters and words are
    """

    name = "phonetic"
    provided_fields = ("phonetic_flow", "pronunciation", "memorability", "uniqueness")

    async def analyze(self, name: str, context: NameContext) -> Dict[str, float]:
        tokens = words(name)
        text = letters(name)
        if not text:
            self.logger.debug("No letters to analyze", name=name)
            return {}

        scores = {
            "phonetic_flow": self._score_flow(text, tokens),
            "pronunciation": self._score_pronunciation(name, text, tokens),
            "memorability": self._score_memorability(name, text, tokens),
            "uniqueness": self._score_uniqueness(text, tokens),
        }
        return {field: round(value, 4) for field, value in scores.items()}

    def _score_flow(self, text: str, tokens) -> float:
        score = 0.3 + alternation_ratio(text) * 0.5

        if any(token.endswith(PLEASANT_ENDINGS) for token in tokens):
            score += 0.1

        score -= min(0.2, harsh_cluster_count(text) * 0.1)

        syllables = [syllable_count(token) for token in tokens]
        if syllables and max(syllables) - min(syllables) <= 1:
            score += 0.1  # even rhythm across words

        return clamp(score)

    def _score_pronunciation(self, name: str, text: str, tokens) -> float:
        score = 1.0

        run = longest_consonant_run(text)
        if run > 3:
            score -= 0.15 * (run - 3)

        score -= min(0.3, harsh_cluster_count(text) * 0.1)

        vowel_ratio = sum(1 for ch in text if ch in VOWELS) / len(text)
        if vowel_ratio < 0.25 or vowel_ratio > 0.65:
            score -= 0.2

        if any(len(token) > 12 for token in tokens):
            score -= 0.1
        if any(ch.isdigit() for ch in name):
            score -= 0.1

        return clamp(score)

    def _score_memorability(self, name: str, text: str, tokens) -> float:
        score = 0.45

        if 1 <= len(tokens) <= 3:
            score += 0.15
        elif len(tokens) > 4:
            score -= 0.2

        if 4 <= len(text) <= 14:
            score += 0.15
        elif len(text) > 24:
            score -= 0.15

        if is_alliterative(name):
            score += 0.15

        # Internal echo: two words sharing an ending
        endings = [token[-2:] for token in tokens if len(token) >= 3]
        if len(endings) != len(set(endings)):
            score += 0.05

        return clamp(score)

    def _score_uniqueness(self, text: str, tokens) -> float:
        score = 0.4
        score += min(0.2, sum(1 for ch in set(text) if ch in RARE_LETTERS) * 0.07)

        if tokens:
            uncommon = sum(1 for token in tokens if token not in COMMON_WORDS)
            score += (uncommon / len(tokens)) * 0.3
            if uncommon == 0:
                score -= 0.15

        return clamp(score)
