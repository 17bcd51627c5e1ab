"""
Semantic Analyzer for Fermata

Meaning-level analysis of a candidate name:
- Semantic coherence between the words (lexicon overlap, concept links)
- Creativity of the combination
- Cultural appeal
- Appropriateness for the name type and mood
- Genre fit

When a word association service is supplied, concept links from the
external graph strengthen the coherence and genre signals. Without one the
analyzer relies on its built-in lexicons.
"""

import asyncio
from typing import Dict, List, Set

from ..models import NameContext, NameType
from .base_analyzer import BaseAnalyzer
from .text_features import COMMON_WORDS, clamp, words

GENRE_LEXICON: Dict[str, Set[str]] = {
    'rock': {'stone', 'thunder', 'road', 'fire', 'electric', 'wild', 'rebel', 'riot', 'steel', 'highway'},
    'metal': {'iron', 'blood', 'doom', 'steel', 'storm', 'death', 'shadow', 'throne', 'skull', 'fury'},
    'pop': {'love', 'star', 'sugar', 'dream', 'heart', 'shine', 'candy', 'summer', 'dance', 'glow'},
    'electronic': {'pulse', 'wave', 'neon', 'circuit', 'signal', 'synth', 'echo', 'digital', 'static', 'grid'},
    'hip-hop': {'street', 'crown', 'gold', 'flow', 'block', 'city', 'king', 'hustle', 'verse', 'beat'},
    'jazz': {'blue', 'smoke', 'velvet', 'midnight', 'swing', 'note', 'lounge', 'cool', 'brass', 'moon'},
    'folk': {'river', 'hollow', 'meadow', 'willow', 'harvest', 'wander', 'pine', 'lantern', 'creek', 'home'},
    'country': {'dust', 'whiskey', 'truck', 'porch', 'county', 'boots', 'prairie', 'rodeo', 'barn', 'dirt'},
    'classical': {'sonata', 'aria', 'opus', 'requiem', 'nocturne', 'etude', 'grace', 'chamber', 'veil', 'hymn'},
    'punk': {'riot', 'noise', 'rage', 'filth', 'chaos', 'spit', 'wreck', 'brat', 'anarchy', 'kick'},
    'indie': {'paper', 'ghost', 'bicycle', 'glass', 'attic', 'polaroid', 'fox', 'bloom', 'tape', 'weather'},
    'blues': {'blue', 'crossroad', 'muddy', 'train', 'delta', 'rain', 'lonesome', 'hound', 'cry', 'whiskey'},
}

MOOD_LEXICON: Dict[str, Set[str]] = {
    'dark': {'shadow', 'night', 'black', 'grave', 'raven', 'void', 'ash', 'doom', 'hollow', 'crypt'},
    'uplifting': {'rise', 'sun', 'bright', 'hope', 'gold', 'sky', 'shine', 'bloom', 'free', 'glow'},
    'melancholy': {'rain', 'grey', 'tears', 'fading', 'lost', 'autumn', 'echo', 'ghost', 'winter', 'blue'},
    'energetic': {'rush', 'spark', 'blaze', 'riot', 'thunder', 'jump', 'fast', 'electric', 'wild', 'kick'},
    'calm': {'still', 'quiet', 'drift', 'soft', 'breeze', 'tide', 'haze', 'slow', 'calm', 'dream'},
}

SENSITIVE_TERMS = frozenset({'hate', 'kill', 'slave', 'nazi', 'rape', 'terror', 'massacre', 'genocide'})


class SemanticAnalyzer(BaseAnalyzer):
    """
    Meaning-level analyzer.

    Responsibilities:
    - Score coherence between the words of a name
    - Score creative combination of ideas
    - Score cultural acceptability
    - Score fit for the requested type, mood and genre
    """

    name = "semantic"
    provided_fields = (
        "semantic_coherence", "creativity", "cultural_appeal",
        "appropriateness", "genre_optimization",
    )

    def __init__(
        self,
        word_association_service=None,
        concept_limit: int = 20,
        lookup_budget_seconds: float = 1.5
    ):
        """
        Args:
            word_association_service: Optional service exposing
                related_concepts(word, limit); failures degrade to []
            concept_limit: Concepts fetched per word
            lookup_budget_seconds: Time allowed for all concept lookups of
                one name; keep it below the analyzer timeout
        """
        super().__init__()
        self.word_association_service = word_association_service
        self.concept_limit = concept_limit
        self.lookup_budget_seconds = lookup_budget_seconds

    async def analyze(self, name: str, context: NameContext) -> Dict[str, float]:
        tokens = [token for token in words(name) if token not in ('the', 'a', 'an', 'of')]
        if not tokens:
            return {}

        concepts = await self._gather_concepts(tokens)
        categories = self._lexicon_categories(tokens)

        scores = {
            "semantic_coherence": self._score_coherence(tokens, categories, concepts),
            "creativity": self._score_creativity(tokens, categories),
            "cultural_appeal": self._score_cultural_appeal(tokens),
            "appropriateness": self._score_appropriateness(name, tokens, context),
            "genre_optimization": self._score_genre_fit(tokens, context, concepts),
        }
        return {field: round(value, 4) for field, value in scores.items()}

    async def _gather_concepts(self, tokens: List[str]) -> Dict[str, Set[str]]:
        """
        Related concept words per token from the association service.

        Tokens are looked up concurrently and the phase is bounded by
        lookup_budget_seconds; tokens whose lookup has not finished by then
        (or failed) contribute no concepts.
        """
        if self.word_association_service is None:
            return {}

        lookups = {
            asyncio.ensure_future(
                self.word_association_service.related_concepts(token, self.concept_limit)
            ): token
            for token in set(tokens)
        }
        try:
            done, pending = await asyncio.wait(lookups, timeout=self.lookup_budget_seconds)
        finally:
            for task in lookups:
                if not task.done():
                    task.cancel()
        if pending:
            self.logger.debug(
                "Concept lookups over budget",
                finished=len(done),
                abandoned=len(pending),
                budget=self.lookup_budget_seconds
            )

        concepts: Dict[str, Set[str]] = {}
        for task in done:
            if task.cancelled() or task.exception() is not None:
                continue
            concepts[lookups[task]] = {
                entry["word"].lower() for entry in task.result() if entry.get("word")
            }
        return concepts

    @staticmethod
    def _lexicon_categories(tokens: List[str]) -> Dict[str, Set[str]]:
        """Lexicon categories each token belongs to."""
        categories: Dict[str, Set[str]] = {}
        for token in tokens:
            hits = {genre for genre, lexicon in GENRE_LEXICON.items() if token in lexicon}
            hits |= {f"mood:{mood}" for mood, lexicon in MOOD_LEXICON.items() if token in lexicon}
            categories[token] = hits
        return categories

    def _score_coherence(
        self,
        tokens: List[str],
        categories: Dict[str, Set[str]],
        concepts: Dict[str, Set[str]]
    ) -> float:
        if len(tokens) == 1:
            return 0.65 if categories[tokens[0]] else 0.6

        score = 0.5
        pairs = [(a, b) for i, a in enumerate(tokens) for b in tokens[i + 1:]]

        shared = sum(1 for a, b in pairs if categories[a] & categories[b])
        score += 0.2 * (shared / len(pairs))

        if concepts:
            linked = sum(
                1 for a, b in pairs
                if b in concepts.get(a, set()) or a in concepts.get(b, set())
            )
            score += 0.25 * (linked / len(pairs))

        if len(tokens) > 5:
            score -= 0.1
        return clamp(score)

    def _score_creativity(self, tokens: List[str], categories: Dict[str, Set[str]]) -> float:
        score = 0.45

        uncommon = sum(1 for token in tokens if token not in COMMON_WORDS)
        score += 0.25 * (uncommon / len(tokens))
        if uncommon == 0:
            score -= 0.15

        # Juxtaposing ideas from different lexicons
        distinct = set().union(*categories.values()) if categories else set()
        if len(distinct) >= 2:
            score += 0.15

        if len(set(tokens)) < len(tokens):
            score -= 0.05
        return clamp(score)

    def _score_cultural_appeal(self, tokens: List[str]) -> float:
        score = 0.75
        score -= 0.3 * sum(1 for token in tokens if token in SENSITIVE_TERMS)
        if len(tokens) > 5:
            score -= 0.1
        return clamp(score)

    def _score_appropriateness(self, name: str, tokens: List[str], context: NameContext) -> float:
        score = 0.55

        if context.type == NameType.BAND:
            if 1 <= len(tokens) <= 4:
                score += 0.1
            if name.lower().startswith("the ") or tokens[-1].endswith("s"):
                score += 0.1
        else:
            if 1 <= len(tokens) <= 6:
                score += 0.15

        if context.mood:
            lexicon = MOOD_LEXICON.get(context.mood, set())
            if any(token in lexicon for token in tokens):
                score += 0.15
        return clamp(score)

    def _score_genre_fit(
        self,
        tokens: List[str],
        context: NameContext,
        concepts: Dict[str, Set[str]]
    ) -> float:
        if not context.genre:
            return 0.5
        lexicon = GENRE_LEXICON.get(context.genre)
        if lexicon is None:
            return 0.5

        hits = sum(1 for token in tokens if token in lexicon)
        linked = sum(1 for token in tokens if concepts.get(token, set()) & lexicon)
        ratio = min(1.0, (hits + 0.5 * linked) / len(tokens))
        return clamp(0.4 + 0.55 * ratio)
